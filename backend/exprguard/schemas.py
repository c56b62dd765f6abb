"""
Pydantic schemas for the expression API.
"""

from typing import Any

from pydantic import BaseModel, Field

# Context values are closed to primitives at the schema level; the evaluator
# sanitizes again regardless.
ContextIn = dict[str, float | bool | str | None]


class ExpressionValidateIn(BaseModel):
    """Body for POST /expressions/validate."""

    expression: str


class ExpressionValidateOut(BaseModel):
    valid: bool = True


class ExpressionEvaluateIn(BaseModel):
    """Body for POST /expressions/evaluate and /expressions/condition."""

    expression: str
    context: ContextIn = Field(default_factory=dict)


class ExpressionEvaluateOut(BaseModel):
    """Numeric result. result is null for inf/nan; display always carries the value."""

    result: float | None
    display: str


class ConditionEvaluateOut(BaseModel):
    result: bool


class ExpressionLintIn(BaseModel):
    """Body for POST /expressions/lint: name -> expression as authored in content."""

    expressions: dict[str, Any] = Field(default_factory=dict)


class LintWarning(BaseModel):
    name: str
    kind: str
    message: str


class ExpressionLintOut(BaseModel):
    clean: bool
    warnings: list[LintWarning]


class ViolationRecord(BaseModel):
    timestamp: str
    expression: str
    violation: str
    kind: str
    evaluation_count: int


class SecurityStatsOut(BaseModel):
    total_evaluations: int
    security_violations: int
    history_size: int
    recent_violations: list[ViolationRecord]
    uptime_seconds: float
