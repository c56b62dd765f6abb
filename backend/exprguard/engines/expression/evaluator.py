"""
SafeEvaluator: validate -> sanitize context -> parse -> interpret.

Entry points:

- validate_expression(expr): security/validation gate only.
- evaluate_expression(expr, context) -> float: raises on any failure.
- evaluate_condition(expr, context) -> bool: fails closed. EvaluationError
  (undefined variable, type mismatch, syntax error, timeout) gives False;
  ValidationError and SecurityViolation still propagate.
- get_security_stats(): auditor snapshot.

Each SafeEvaluator owns its SecurityAuditor. A default instance and module
level shortcuts are provided for callers that do not manage their own.
"""

import logging
import time
from typing import Any

from exprguard.core.config import settings

from .auditor import KIND_SECURITY, KIND_VALIDATION, SecurityAuditor
from .context import sanitize_context
from .errors import EvaluationError, SecurityViolation, ValidationError
from .interpreter import Interpreter, truthy
from .parser import Node, parse_expression
from .validator import ExpressionValidator

logger = logging.getLogger(__name__)


class SafeEvaluator:
    """Sandboxed evaluator for narrative trigger conditions and requirement formulas."""

    def __init__(
        self,
        *,
        auditor: SecurityAuditor | None = None,
        max_depth: int | None = None,
        timeout_ms: int | None = None,
    ) -> None:
        self.auditor = auditor or SecurityAuditor()
        self.validator = ExpressionValidator(self.auditor)
        self._max_depth = max_depth if max_depth is not None else settings.EXPRESSION_MAX_DEPTH
        self._timeout_ms = (
            timeout_ms if timeout_ms is not None else settings.EXPRESSION_EVAL_TIMEOUT_MS
        )
        logger.info("SafeEvaluator initialized with security controls")

    def validate_expression(self, expression: Any) -> bool:
        """Raise ValidationError/SecurityViolation if expression is not allowed."""
        self.validator.validate(expression)
        return True

    def parse(self, expression: Any) -> Node:
        """Validate and parse. Parser-level rejections are recorded like validator ones."""
        self.validator.validate(expression)
        try:
            return parse_expression(expression, max_depth=self._max_depth)
        except SecurityViolation as e:
            self.auditor.record_violation(str(e), expression, kind=KIND_SECURITY)
            raise
        except ValidationError as e:
            self.auditor.record_violation(str(e), expression, kind=KIND_VALIDATION)
            raise

    def evaluate_expression(self, expression: Any, context: Any = None) -> float:
        """Evaluate a numeric formula. Booleans become 1.0/0.0."""
        evaluation_id = self.auditor.record_evaluation()
        started = time.monotonic()
        result = self._run(expression, context, evaluation_id, started, "expression")
        if isinstance(result, bool):
            return 1.0 if result else 0.0
        if isinstance(result, (int, float)):
            return float(result)
        logger.error(
            "Expression evaluation failed id=%s expression=%r error=%s",
            evaluation_id,
            self._prefix(expression),
            "non-numeric result",
        )
        raise EvaluationError("Expression did not evaluate to a number")

    def evaluate_condition(self, expression: Any, context: Any = None) -> bool:
        """Evaluate a boolean gate; evaluation failures resolve to False."""
        evaluation_id = self.auditor.record_evaluation()
        started = time.monotonic()
        try:
            result = self._run(expression, context, evaluation_id, started, "condition")
        except EvaluationError:
            return False
        return truthy(result)

    def get_security_stats(self) -> dict[str, Any]:
        return self.auditor.get_stats()

    def _run(
        self,
        expression: Any,
        context: Any,
        evaluation_id: int,
        started: float,
        mode: str,
    ) -> Any:
        try:
            tree = self.parse(expression)
        except EvaluationError as e:
            self._log_failure(mode, evaluation_id, expression, e, started)
            raise
        safe_context = sanitize_context(context)
        logger.debug(
            "Evaluating %s id=%s expression=%r context_keys=%s",
            mode,
            evaluation_id,
            self._prefix(expression),
            list(safe_context),
        )
        deadline = started + self._timeout_ms / 1000.0 if self._timeout_ms > 0 else None
        try:
            result = Interpreter(safe_context, deadline=deadline).evaluate(tree)
        except SecurityViolation as e:
            self.auditor.record_violation(str(e), expression, kind=KIND_SECURITY)
            raise
        except EvaluationError as e:
            self._log_failure(mode, evaluation_id, expression, e, started)
            raise
        logger.debug(
            "%s evaluation successful id=%s result=%r duration=%.2fms",
            mode.capitalize(),
            evaluation_id,
            result,
            (time.monotonic() - started) * 1000,
        )
        return result

    def _log_failure(
        self, mode: str, evaluation_id: int, expression: Any, error: Exception, started: float
    ) -> None:
        # Failed conditions are routine (stale or missing state), failed formulas are not.
        level = logging.ERROR if mode == "expression" else logging.DEBUG
        logger.log(
            level,
            "%s evaluation failed id=%s expression=%r error=%s duration=%.2fms",
            mode.capitalize(),
            evaluation_id,
            self._prefix(expression),
            error,
            (time.monotonic() - started) * 1000,
        )

    @staticmethod
    def _prefix(expression: Any) -> str:
        text = expression if isinstance(expression, str) else repr(expression)
        return text[: settings.LOG_EXPRESSION_PREFIX]


safe_evaluator = SafeEvaluator()


def validate_expression(expression: Any) -> bool:
    return safe_evaluator.validate_expression(expression)


def evaluate_expression(expression: Any, context: Any = None) -> float:
    return safe_evaluator.evaluate_expression(expression, context)


def evaluate_condition(expression: Any, context: Any = None) -> bool:
    return safe_evaluator.evaluate_condition(expression, context)


def get_security_stats() -> dict[str, Any]:
    return safe_evaluator.get_security_stats()
