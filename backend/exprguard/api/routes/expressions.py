"""
Expression endpoints: validate, evaluate, condition, lint, stats.

Used by content tooling (linting authored trigger conditions) and monitoring.
Errors from the engine are mapped to JSON responses by the handlers in
exprguard.main.
"""

import math

from fastapi import APIRouter

from exprguard.api.deps import EvaluatorDep
from exprguard.engines.expression import lint_expressions
from exprguard.schemas import (
    ConditionEvaluateOut,
    ExpressionEvaluateIn,
    ExpressionEvaluateOut,
    ExpressionLintIn,
    ExpressionLintOut,
    ExpressionValidateIn,
    ExpressionValidateOut,
    LintWarning,
    SecurityStatsOut,
)

router = APIRouter(prefix="/expressions", tags=["expressions"])


@router.post("/validate", response_model=ExpressionValidateOut)
def validate(body: ExpressionValidateIn, evaluator: EvaluatorDep) -> ExpressionValidateOut:
    """Security and validation gate only; 400 on rejection."""
    evaluator.validate_expression(body.expression)
    return ExpressionValidateOut(valid=True)


@router.post("/evaluate", response_model=ExpressionEvaluateOut)
def evaluate(body: ExpressionEvaluateIn, evaluator: EvaluatorDep) -> ExpressionEvaluateOut:
    """Evaluate a numeric formula. inf/nan are returned as result=null with display set."""
    value = evaluator.evaluate_expression(body.expression, body.context)
    return ExpressionEvaluateOut(
        result=value if math.isfinite(value) else None,
        display=repr(value),
    )


@router.post("/condition", response_model=ConditionEvaluateOut)
def condition(body: ExpressionEvaluateIn, evaluator: EvaluatorDep) -> ConditionEvaluateOut:
    """Evaluate a gate condition; evaluation failures come back as false."""
    return ConditionEvaluateOut(
        result=evaluator.evaluate_condition(body.expression, body.context)
    )


@router.post("/lint", response_model=ExpressionLintOut)
def lint(body: ExpressionLintIn) -> ExpressionLintOut:
    warnings = [LintWarning(**w) for w in lint_expressions(body.expressions)]
    return ExpressionLintOut(clean=not warnings, warnings=warnings)


@router.get("/stats", response_model=SecurityStatsOut)
def stats(evaluator: EvaluatorDep) -> SecurityStatsOut:
    return SecurityStatsOut(**evaluator.get_security_stats())
