"""Unit tests for engines.expression.parser."""

import pytest

from exprguard.engines.expression.errors import (
    EvaluationError,
    ExpressionSyntaxError,
    SecurityViolation,
    ValidationError,
)
from exprguard.engines.expression.parser import (
    BinaryOp,
    BooleanLiteral,
    Call,
    Group,
    NumberLiteral,
    UnaryOp,
    Variable,
    parse_expression,
    tokenize,
)


def num(value):
    return NumberLiteral(float(value))


class TestTokenize:
    def test_tokens(self):
        tokens = tokenize("a>=1.5 && !b")
        assert [(t.kind, t.text) for t in tokens] == [
            ("ident", "a"),
            ("op", ">="),
            ("number", "1.5"),
            ("op", "&&"),
            ("op", "!"),
            ("ident", "b"),
            ("end", ""),
        ]

    def test_positions(self):
        tokens = tokenize("  x + 1")
        assert [t.pos for t in tokens] == [2, 4, 6, 7]

    @pytest.mark.parametrize("expr", ["a = b", "a & b", "a | b", "a[0]", "a ? b : c"])
    def test_unexpected_character(self, expr):
        with pytest.raises(ExpressionSyntaxError, match="Unexpected character"):
            tokenize(expr)

    def test_leading_dot_number(self):
        assert tokenize(".5")[0].text == ".5"


class TestPrecedence:
    def test_multiplication_binds_tighter(self):
        assert parse_expression("1 + 2 * 3") == BinaryOp("+", num(1), BinaryOp("*", num(2), num(3)))

    def test_left_associative(self):
        assert parse_expression("8 - 3 - 2") == BinaryOp("-", BinaryOp("-", num(8), num(3)), num(2))

    def test_power_right_associative(self):
        assert parse_expression("2 ^ 3 ^ 2") == BinaryOp(
            "^", num(2), BinaryOp("^", num(3), num(2))
        )

    def test_unary_binds_tighter_than_power(self):
        assert parse_expression("-2 ^ 2") == BinaryOp("^", UnaryOp("-", num(2)), num(2))

    def test_logical_layers(self):
        tree = parse_expression("a || b && c == d > 1")
        assert tree == BinaryOp(
            "||",
            Variable("a"),
            BinaryOp(
                "&&",
                Variable("b"),
                BinaryOp("==", Variable("c"), BinaryOp(">", Variable("d"), num(1))),
            ),
        )

    def test_group(self):
        assert parse_expression("(a + 1) * 2") == BinaryOp(
            "*", Group(BinaryOp("+", Variable("a"), num(1))), num(2)
        )


class TestPrimaries:
    def test_booleans(self):
        assert parse_expression("true") == BooleanLiteral(True)
        assert parse_expression("false") == BooleanLiteral(False)

    def test_negation(self):
        assert parse_expression("!flag") == UnaryOp("!", Variable("flag"))

    def test_call(self):
        assert parse_expression("min(1, x)") == Call("min", (num(1), Variable("x")))

    def test_call_without_args(self):
        assert parse_expression("max()") == Call("max", ())

    def test_nested_call(self):
        assert parse_expression("abs(floor(x))") == Call("abs", (Call("floor", (Variable("x"),)),))


class TestSyntaxErrors:
    @pytest.mark.parametrize(
        "expr", ["1 +", "(1 + 2", "1 2", "a.b", ")", "min(1,", "min(1 2)", "* 3", "()"]
    )
    def test_rejected(self, expr):
        with pytest.raises(ExpressionSyntaxError):
            parse_expression(expr)

    def test_is_evaluation_error(self):
        with pytest.raises(EvaluationError):
            parse_expression("1 +")

    def test_position_reported(self):
        with pytest.raises(ExpressionSyntaxError) as exc_info:
            parse_expression("1 2")
        assert exc_info.value.position == 2
        assert "at position 2" in str(exc_info.value)


class TestCallWhitelist:
    @pytest.mark.parametrize("expr", ["foo(1)", "Min(1, 2)", "min(1, bar())"])
    def test_unknown_function(self, expr):
        with pytest.raises(SecurityViolation, match="Unauthorized function call"):
            parse_expression(expr)


class TestDepthLimit:
    def test_parentheses(self):
        parse_expression("(((((1)))))", max_depth=5)
        with pytest.raises(ValidationError, match="maximum depth of 5"):
            parse_expression("((((((1))))))", max_depth=5)

    def test_unary_chain(self):
        parse_expression("- - 1", max_depth=2)
        with pytest.raises(ValidationError):
            parse_expression("- - - 1", max_depth=2)

    def test_power_chain(self):
        parse_expression("2 ^ 2 ^ 2", max_depth=2)
        with pytest.raises(ValidationError):
            parse_expression("2 ^ 2 ^ 2 ^ 2", max_depth=2)

    def test_calls(self):
        with pytest.raises(ValidationError):
            parse_expression("abs(abs(abs(1)))", max_depth=2)

    def test_default_limit(self):
        with pytest.raises(ValidationError):
            parse_expression("(" * 40 + "1" + ")" * 40)

    def test_siblings_do_not_accumulate(self):
        parse_expression(" + ".join(["((1))"] * 20), max_depth=2)
