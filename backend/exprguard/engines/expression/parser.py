"""
Tokenizer and recursive-descent parser for the condition grammar.

Precedence, highest first:

    ( ... )  >  ! -  >  ^  >  * / %  >  + -  >  > < >= <=  >  == !=  >  &&  >  ||

``^`` is right-associative; everything else is left-associative. Operands are
numbers, true/false, identifiers and calls to whitelisted functions. The
grammar has no production for assignment, member access, indexing or string
literals, so those can only ever produce a syntax error.
"""

import re
from dataclasses import dataclass
from typing import Union

from exprguard.core.config import settings

from .errors import ExpressionSyntaxError, SecurityViolation, ValidationError
from .validator import ALLOWED_FUNCTIONS

_TOKEN_RE = re.compile(
    r"""
    (?P<ws>\s+)
  | (?P<number>\d+(?:\.\d*)?|\.\d+)
  | (?P<ident>[A-Za-z_$][A-Za-z0-9_$]*)
  | (?P<op>&&|\|\||==|!=|>=|<=|[-+*/%^!<>(),])
    """,
    re.VERBOSE,
)

_KEYWORDS = {"true": True, "false": False}


@dataclass(frozen=True, slots=True)
class Token:
    kind: str  # number | ident | op | end
    text: str
    pos: int


# --- AST ---------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class NumberLiteral:
    value: float


@dataclass(frozen=True, slots=True)
class BooleanLiteral:
    value: bool


@dataclass(frozen=True, slots=True)
class Variable:
    name: str


@dataclass(frozen=True, slots=True)
class UnaryOp:
    op: str
    operand: "Node"


@dataclass(frozen=True, slots=True)
class BinaryOp:
    op: str
    left: "Node"
    right: "Node"


@dataclass(frozen=True, slots=True)
class Group:
    expr: "Node"


@dataclass(frozen=True, slots=True)
class Call:
    name: str
    args: tuple["Node", ...]


Node = Union[NumberLiteral, BooleanLiteral, Variable, UnaryOp, BinaryOp, Group, Call]


def tokenize(expression: str) -> list[Token]:
    tokens: list[Token] = []
    pos = 0
    length = len(expression)
    while pos < length:
        match = _TOKEN_RE.match(expression, pos)
        if match is None:
            raise ExpressionSyntaxError(f"Unexpected character {expression[pos]!r}", pos)
        kind = match.lastgroup or ""
        if kind != "ws":
            tokens.append(Token(kind, match.group(0), pos))
        pos = match.end()
    tokens.append(Token("end", "", length))
    return tokens


class _Parser:
    def __init__(self, tokens: list[Token], max_depth: int) -> None:
        self._tokens = tokens
        self._index = 0
        self._depth = 0
        self._max_depth = max_depth

    # -- helpers --

    @property
    def _current(self) -> Token:
        return self._tokens[self._index]

    def _advance(self) -> Token:
        token = self._tokens[self._index]
        if token.kind != "end":
            self._index += 1
        return token

    def _match(self, *ops: str) -> str | None:
        token = self._current
        if token.kind == "op" and token.text in ops:
            self._index += 1
            return token.text
        return None

    def _expect(self, op: str) -> None:
        if self._match(op) is None:
            token = self._current
            found = token.text or "end of expression"
            raise ExpressionSyntaxError(f"Expected {op!r}, found {found!r}", token.pos)

    def _enter(self) -> None:
        self._depth += 1
        if self._depth > self._max_depth:
            raise ValidationError(
                f"Expression nesting exceeds maximum depth of {self._max_depth}"
            )

    def _leave(self) -> None:
        self._depth -= 1

    # -- grammar --

    def parse(self) -> "Node":
        node = self._or()
        token = self._current
        if token.kind != "end":
            raise ExpressionSyntaxError(f"Unexpected token {token.text!r}", token.pos)
        return node

    def _or(self) -> "Node":
        node = self._and()
        while self._match("||"):
            node = BinaryOp("||", node, self._and())
        return node

    def _and(self) -> "Node":
        node = self._equality()
        while self._match("&&"):
            node = BinaryOp("&&", node, self._equality())
        return node

    def _equality(self) -> "Node":
        node = self._relational()
        while (op := self._match("==", "!=")) is not None:
            node = BinaryOp(op, node, self._relational())
        return node

    def _relational(self) -> "Node":
        node = self._additive()
        while (op := self._match(">", "<", ">=", "<=")) is not None:
            node = BinaryOp(op, node, self._additive())
        return node

    def _additive(self) -> "Node":
        node = self._multiplicative()
        while (op := self._match("+", "-")) is not None:
            node = BinaryOp(op, node, self._multiplicative())
        return node

    def _multiplicative(self) -> "Node":
        node = self._power()
        while (op := self._match("*", "/", "%")) is not None:
            node = BinaryOp(op, node, self._power())
        return node

    def _power(self) -> "Node":
        base = self._unary()
        if self._match("^") is None:
            return base
        self._enter()
        try:
            exponent = self._power()
        finally:
            self._leave()
        return BinaryOp("^", base, exponent)

    def _unary(self) -> "Node":
        op = self._match("!", "-")
        if op is None:
            return self._primary()
        self._enter()
        try:
            return UnaryOp(op, self._unary())
        finally:
            self._leave()

    def _primary(self) -> "Node":
        token = self._current
        if token.kind == "number":
            self._advance()
            return NumberLiteral(float(token.text))
        if token.kind == "ident":
            self._advance()
            if token.text in _KEYWORDS:
                return BooleanLiteral(_KEYWORDS[token.text])
            if self._current.kind == "op" and self._current.text == "(":
                return self._call(token)
            return Variable(token.text)
        if self._match("("):
            self._enter()
            try:
                inner = self._or()
            finally:
                self._leave()
            self._expect(")")
            return Group(inner)
        found = token.text or "end of expression"
        raise ExpressionSyntaxError(f"Unexpected {found!r}", token.pos)

    def _call(self, name_token: Token) -> "Node":
        if name_token.text not in ALLOWED_FUNCTIONS:
            raise SecurityViolation(
                f"Security violation: Unauthorized function call: {name_token.text}"
            )
        self._expect("(")
        self._enter()
        try:
            args: list[Node] = []
            if self._match(")") is None:
                args.append(self._or())
                while self._match(","):
                    args.append(self._or())
                self._expect(")")
        finally:
            self._leave()
        return Call(name_token.text, tuple(args))


def parse_expression(expression: str, max_depth: int | None = None) -> "Node":
    """
    Parse expression into an AST.

    Raises ExpressionSyntaxError for malformed input, SecurityViolation for a
    call outside the function whitelist and ValidationError when nesting is
    deeper than max_depth (default EXPRESSION_MAX_DEPTH).
    """
    depth = max_depth if max_depth is not None else settings.EXPRESSION_MAX_DEPTH
    return _Parser(tokenize(expression), depth).parse()
