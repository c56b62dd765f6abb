"""
Engines: sandboxed condition expressions.
"""

from exprguard.engines.expression import (
    SafeEvaluator,
    evaluate_condition,
    evaluate_expression,
    validate_expression,
)

__all__ = [
    "SafeEvaluator",
    "evaluate_condition",
    "evaluate_expression",
    "validate_expression",
]
