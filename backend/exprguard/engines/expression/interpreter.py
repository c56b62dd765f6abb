"""
Tree-walking interpreter for parsed condition expressions.

Numbers follow IEEE 754 (x/0 -> inf, 0/0 -> nan, no ZeroDivisionError).
Arithmetic and ordering need numbers; booleans are not numbers. ``==``/``!=``
compare structurally: values of different kinds are never equal.

FUNCTIONS is checked again here, independently of the validator and parser.
"""

import math
import time
from collections.abc import Callable, Mapping
from typing import Any

from .errors import EvaluationError, EvaluationTimeoutError, SecurityViolation
from .parser import (
    BinaryOp,
    BooleanLiteral,
    Call,
    Group,
    Node,
    NumberLiteral,
    UnaryOp,
    Variable,
)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _describe(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, str):
        return "string"
    return type(value).__name__


def truthy(value: Any) -> bool:
    """Truthiness used by &&, || and !: 0, nan, None, False and "" are false."""
    if value is None:
        return False
    if isinstance(value, float) and math.isnan(value):
        return False
    return bool(value)


def strict_equals(left: Any, right: Any) -> bool:
    if left is None or right is None:
        return left is None and right is None
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if _is_number(left) and _is_number(right):
        return left == right
    if isinstance(left, str) and isinstance(right, str):
        return left == right
    return False


# --- arithmetic ----------------------------------------------------------------


def _divide(left: float, right: float) -> float:
    if right == 0:
        if left == 0 or math.isnan(left):
            return math.nan
        return math.copysign(math.inf, left) * math.copysign(1.0, right)
    return left / right


def _modulo(left: float, right: float) -> float:
    if right == 0 or math.isinf(left) or math.isnan(left) or math.isnan(right):
        return math.nan
    if math.isinf(right):
        return float(left)
    return math.fmod(left, right)


def _is_odd_integer(value: float) -> bool:
    return float(value).is_integer() and int(value) % 2 == 1


def _power(left: float, right: float) -> float:
    if left == 0 and right < 0:
        # -0 keeps its sign under odd negative exponents
        return math.copysign(math.inf, left) if _is_odd_integer(right) else math.inf
    try:
        return math.pow(left, right)
    except OverflowError:
        if left < 0 and _is_odd_integer(right):
            return -math.inf
        return math.inf
    except ValueError:
        return math.nan


def _multiply(left: float, right: float) -> float:
    return float(left) * float(right)


_ARITHMETIC: dict[str, Callable[[float, float], float]] = {
    "+": lambda a, b: float(a) + float(b),
    "-": lambda a, b: float(a) - float(b),
    "*": _multiply,
    "/": _divide,
    "%": _modulo,
    "^": _power,
}

_RELATIONAL: dict[str, Callable[[float, float], bool]] = {
    ">": lambda a, b: a > b,
    "<": lambda a, b: a < b,
    ">=": lambda a, b: a >= b,
    "<=": lambda a, b: a <= b,
}


# --- function table ----------------------------------------------------------------


def _min(*args: float) -> float:
    if any(math.isnan(a) for a in args):
        return math.nan
    return float(min(args)) if args else math.inf


def _max(*args: float) -> float:
    if any(math.isnan(a) for a in args):
        return math.nan
    return float(max(args)) if args else -math.inf


def _finite_only(fn: Callable[[float], Any]) -> Callable[[float], float]:
    def wrapper(x: float) -> float:
        if not math.isfinite(x):
            return float(x)
        return float(fn(x))

    return wrapper


def _round_half_up(x: float) -> float:
    base = math.floor(x)
    return float(base + 1) if x - base >= 0.5 else float(base)


FUNCTIONS: Mapping[str, tuple[Callable[..., float], int | None]] = {
    # name: (callable, exact arity or None for variadic)
    "min": (_min, None),
    "max": (_max, None),
    "floor": (_finite_only(math.floor), 1),
    "ceil": (_finite_only(math.ceil), 1),
    "round": (_finite_only(_round_half_up), 1),
    "abs": (lambda x: float(abs(x)), 1),
}


class Interpreter:
    """
    Evaluates an AST against a sanitized context.

    deadline is a time.monotonic() value; once passed, evaluation aborts with
    EvaluationTimeoutError.
    """

    def __init__(self, context: Mapping[str, Any], deadline: float | None = None) -> None:
        self._context = context
        self._deadline = deadline

    def evaluate(self, node: Node) -> Any:
        try:
            return self._eval(node)
        except RecursionError as e:
            raise EvaluationError("Expression is nested too deeply to evaluate") from e

    def _eval(self, node: Node) -> Any:
        if self._deadline is not None and time.monotonic() > self._deadline:
            raise EvaluationTimeoutError("Expression evaluation timeout")

        if isinstance(node, NumberLiteral):
            return node.value
        if isinstance(node, BooleanLiteral):
            return node.value
        if isinstance(node, Variable):
            if node.name not in self._context:
                raise EvaluationError(f"Undefined variable: {node.name}")
            return self._context[node.name]
        if isinstance(node, Group):
            return self._eval(node.expr)
        if isinstance(node, UnaryOp):
            operand = self._eval(node.operand)
            if node.op == "!":
                return not truthy(operand)
            if node.op == "-":
                return -self._number(operand, "-")
            raise EvaluationError(f"Unknown unary operator: {node.op}")
        if isinstance(node, BinaryOp):
            op = node.op
            if op == "&&":
                return truthy(self._eval(node.left)) and truthy(self._eval(node.right))
            if op == "||":
                return truthy(self._eval(node.left)) or truthy(self._eval(node.right))
            left = self._eval(node.left)
            right = self._eval(node.right)
            if op == "==":
                return strict_equals(left, right)
            if op == "!=":
                return not strict_equals(left, right)
            if op in _RELATIONAL:
                return _RELATIONAL[op](self._number(left, op), self._number(right, op))
            if op in _ARITHMETIC:
                return _ARITHMETIC[op](self._number(left, op), self._number(right, op))
            raise EvaluationError(f"Unknown operator: {op}")
        if isinstance(node, Call):
            return self._call(node)
        raise EvaluationError(f"Unsupported expression node: {type(node).__name__}")

    def _call(self, node: Call) -> float:
        entry = FUNCTIONS.get(node.name)
        if entry is None:
            raise SecurityViolation(f"Security violation: Unauthorized function call: {node.name}")
        fn, arity = entry
        if arity is not None and len(node.args) != arity:
            raise EvaluationError(
                f"{node.name}() takes exactly {arity} argument(s), got {len(node.args)}"
            )
        args = [self._number(self._eval(arg), f"{node.name}()") for arg in node.args]
        return fn(*args)

    @staticmethod
    def _number(value: Any, where: str) -> float:
        if not _is_number(value):
            raise EvaluationError(f"Operand of {where!r} must be a number, got {_describe(value)}")
        return value
