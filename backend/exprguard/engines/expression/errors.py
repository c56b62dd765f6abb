"""
Exception hierarchy for the expression engine.

Three kinds are kept strictly apart:

- ValidationError: the input itself is unusable (not a string, empty, too long,
  nested too deeply).
- SecurityViolation: the input contains a disallowed construct.
- EvaluationError: the input is clean but cannot be computed in the given
  context. evaluate_condition() turns these into False.
"""


class ExpressionError(Exception):
    """Base class for every error raised by the expression engine."""

    pass


class ValidationError(ExpressionError, ValueError):
    """Structural problem with the expression string."""

    pass


class SecurityViolation(ExpressionError):
    """Expression contains a construct that is never allowed."""

    pass


class EvaluationError(ExpressionError):
    """Expression is valid but cannot be evaluated against the context."""

    pass


class ExpressionSyntaxError(EvaluationError):
    """Expression does not match the grammar."""

    def __init__(self, message: str, position: int | None = None) -> None:
        if position is not None:
            message = f"{message} at position {position}"
        super().__init__(message)
        self.position = position


class EvaluationTimeoutError(EvaluationError):
    """Evaluation exceeded EXPRESSION_EVAL_TIMEOUT_MS."""

    pass


class ContextError(ValueError):
    """Raised by ContextBuilder for a disallowed name or value."""

    pass
