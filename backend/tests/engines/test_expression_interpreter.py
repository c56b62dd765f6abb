"""Unit tests for engines.expression.interpreter."""

import math
import time

import pytest

from exprguard.engines.expression.errors import (
    EvaluationError,
    EvaluationTimeoutError,
    SecurityViolation,
)
from exprguard.engines.expression.interpreter import Interpreter, strict_equals, truthy
from exprguard.engines.expression.parser import Call, NumberLiteral, parse_expression


def run(expression: str, context: dict | None = None):
    return Interpreter(context or {}).evaluate(parse_expression(expression))


class TestArithmetic:
    @pytest.mark.parametrize(
        ("expr", "expected"),
        [
            ("2 + 2", 4.0),
            ("10 - 4", 6.0),
            ("3 * 4", 12.0),
            ("15 / 3", 5.0),
            ("10 % 3", 1.0),
            ("-5 % 3", -2.0),
            ("2 ^ 3", 8.0),
            ("2 ^ 3 ^ 2", 512.0),
            ("-2 ^ 2", 4.0),
            ("((5 - 2) * 2) + 1", 7.0),
            ("1 + 2 * 3", 7.0),
        ],
    )
    def test_values(self, expr, expected):
        assert run(expr) == expected

    def test_division_by_zero(self):
        assert run("7 / 0") == math.inf
        assert run("-7 / 0") == -math.inf
        assert math.isnan(run("0 / 0"))

    def test_division_by_zero_from_context(self):
        assert run("x / y", {"x": 1.0, "y": 0.0}) == math.inf

    def test_modulo_edge_cases(self):
        assert math.isnan(run("5 % 0"))
        assert run("5 % x", {"x": math.inf}) == 5.0
        assert math.isnan(run("x % 2", {"x": math.inf}))

    def test_power_edge_cases(self):
        assert run("10 ^ 400") == math.inf
        assert math.isnan(run("(0 - 8) ^ 0.5"))
        assert run("0 ^ -1") == math.inf
        assert run("(0 - 10) ^ 401") == -math.inf

    def test_negative_zero_base(self):
        assert run("(0 * -1) ^ -1") == -math.inf
        assert run("(0 * -1) ^ -3") == -math.inf
        assert run("(0 * -1) ^ -2") == math.inf
        assert run("(0 * -1) ^ -0.5") == math.inf
        assert run("0 ^ -3") == math.inf

    @pytest.mark.parametrize(
        ("expr", "context"),
        [
            ("flag + 1", {"flag": True}),
            ("a + 1", {"a": None}),
            ("s > 1", {"s": "calm"}),
            ("-flag", {"flag": False}),
            ("true * 2", {}),
        ],
    )
    def test_non_number_operands(self, expr, context):
        with pytest.raises(EvaluationError, match="must be a number"):
            run(expr, context)


class TestComparisonAndLogic:
    def test_relational(self):
        assert run("5 > 3") is True
        assert run("5 <= 3") is False
        assert run("(5 > 3) && (2 < 10)") is True

    def test_equality_is_strict(self):
        assert run("a == b", {"a": None, "b": None}) is True
        assert run("flag == 1", {"flag": True}) is False
        assert run("s == t", {"s": "calm", "t": "calm"}) is True
        assert run("s != t", {"s": "calm", "t": "angry"}) is True
        assert run("n == n", {"n": math.nan}) is False
        assert run("a == 0", {"a": None}) is False

    def test_short_circuit(self):
        assert run("false && missing") is False
        assert run("true || missing") is True
        with pytest.raises(EvaluationError, match="Undefined variable: missing"):
            run("missing || true")

    def test_logical_results_are_booleans(self):
        assert run("1 && 2") is True
        assert run("0 || 0") is False

    def test_negation(self):
        assert run("!0") is True
        assert run("!x", {"x": math.nan}) is True
        assert run("!s", {"s": ""}) is True
        assert run("!!1") is True

    def test_helpers(self):
        assert truthy(None) is False
        assert truthy(0.0) is False
        assert truthy("x") is True
        assert strict_equals(1.0, 1) is True
        assert strict_equals(False, 0.0) is False


class TestFunctions:
    @pytest.mark.parametrize(
        ("expr", "expected"),
        [
            ("min(5, 10)", 5.0),
            ("max(3, 7)", 7.0),
            ("min(4, 2, 8)", 2.0),
            ("floor(3.7)", 3.0),
            ("ceil(2.1)", 3.0),
            ("round(4.5)", 5.0),
            ("round(-4.5)", -4.0),
            ("round(2.4)", 2.0),
            ("round(2.5)", 3.0),
            ("round(-2.5)", -2.0),
            ("round(0.49999999999999994)", 0.0),
            ("abs(-5)", 5.0),
            ("min()", math.inf),
            ("max()", -math.inf),
            ("floor(1 / 0)", math.inf),
        ],
    )
    def test_values(self, expr, expected):
        assert run(expr) == expected

    def test_nan_propagates(self):
        assert math.isnan(run("min(1, 0 / 0)"))
        assert math.isnan(run("round(0 / 0)"))

    def test_arity(self):
        with pytest.raises(EvaluationError, match="exactly 1 argument"):
            run("floor(1, 2)")

    def test_argument_types(self):
        with pytest.raises(EvaluationError, match="must be a number"):
            run("abs(true)")

    def test_unknown_function_rejected_by_interpreter(self):
        with pytest.raises(SecurityViolation):
            Interpreter({}).evaluate(Call("eval", ()))


class TestVariablesAndLimits:
    def test_variables(self):
        assert run("(health / maxHealth) > 0.5", {"health": 75.0, "maxHealth": 100.0}) is True

    def test_undefined_variable(self):
        with pytest.raises(EvaluationError, match="Undefined variable: x"):
            run("x + 1")

    def test_deadline(self):
        interpreter = Interpreter({}, deadline=time.monotonic() - 1)
        with pytest.raises(EvaluationTimeoutError, match="timeout"):
            interpreter.evaluate(NumberLiteral(1.0))

    def test_unsupported_node(self):
        with pytest.raises(EvaluationError, match="Unsupported expression node"):
            Interpreter({}).evaluate(object())  # type: ignore[arg-type]
