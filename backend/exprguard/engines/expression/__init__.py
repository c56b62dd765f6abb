"""
Sandboxed condition-expression engine.

Exports: SafeEvaluator and the module-level shortcuts, the error hierarchy,
context helpers, parse_expression and lint_expressions.
"""

from .auditor import SecurityAuditor
from .context import ContextBuilder, EvaluationContext, sanitize_context
from .errors import (
    ContextError,
    EvaluationError,
    EvaluationTimeoutError,
    ExpressionError,
    ExpressionSyntaxError,
    SecurityViolation,
    ValidationError,
)
from .evaluator import (
    SafeEvaluator,
    evaluate_condition,
    evaluate_expression,
    get_security_stats,
    safe_evaluator,
    validate_expression,
)
from .lint import lint_expressions
from .parser import parse_expression
from .validator import ALLOWED_FUNCTIONS, MAX_EXPRESSION_LENGTH, ExpressionValidator

__all__ = [
    "ALLOWED_FUNCTIONS",
    "MAX_EXPRESSION_LENGTH",
    "ContextBuilder",
    "ContextError",
    "EvaluationContext",
    "EvaluationError",
    "EvaluationTimeoutError",
    "ExpressionError",
    "ExpressionSyntaxError",
    "ExpressionValidator",
    "SafeEvaluator",
    "SecurityAuditor",
    "SecurityViolation",
    "ValidationError",
    "evaluate_condition",
    "evaluate_expression",
    "get_security_stats",
    "lint_expressions",
    "parse_expression",
    "safe_evaluator",
    "sanitize_context",
    "validate_expression",
]
