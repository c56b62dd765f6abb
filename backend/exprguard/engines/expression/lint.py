"""
Static check for authored condition expressions (scenario triggers,
intervention requirements).

Runs the same validator and parser as SafeEvaluator but never raises for bad
content and never writes to an audit trail; content linting is not an attack
signal.

Usage::

    warnings = lint_expressions({"grief_trigger": "grief.memory > 500"})
    # [{"name": "grief_trigger", "kind": "syntax", "message": "..."}]
"""

from collections.abc import Iterable, Mapping
from typing import Any

from .auditor import KIND_SECURITY, KIND_VALIDATION
from .errors import ExpressionSyntaxError, SecurityViolation, ValidationError
from .parser import parse_expression
from .validator import ExpressionValidator

KIND_SYNTAX = "syntax"

_validator = ExpressionValidator(auditor=None)


def lint_expression(expression: Any, max_depth: int | None = None) -> tuple[str, str] | None:
    """Return (kind, message) for the first problem in expression, or None."""
    try:
        _validator.validate(expression)
        parse_expression(expression, max_depth=max_depth)
    except SecurityViolation as e:
        return KIND_SECURITY, str(e)
    except ValidationError as e:
        return KIND_VALIDATION, str(e)
    except ExpressionSyntaxError as e:
        return KIND_SYNTAX, str(e)
    return None


def lint_expressions(
    expressions: Mapping[str, Any] | Iterable[tuple[str, Any]],
    max_depth: int | None = None,
) -> list[dict[str, Any]]:
    """
    Check a batch of named expressions.

    Each warning is a dict with ``name``, ``kind`` (validation, security or
    syntax) and ``message`` keys. An empty list means every expression is clean.
    """
    items = expressions.items() if isinstance(expressions, Mapping) else expressions
    warnings: list[dict[str, Any]] = []
    for name, expression in items:
        problem = lint_expression(expression, max_depth=max_depth)
        if problem is None:
            continue
        kind, message = problem
        warnings.append({"name": name, "kind": kind, "message": message})
    return warnings
