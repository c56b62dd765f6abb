"""
SecurityAuditor: evaluation counter and bounded history of rejected expressions.

One auditor is owned by each SafeEvaluator. All state is guarded by a single
lock so the evaluator can be shared across worker threads.
"""

import logging
import threading
import time
from collections import deque
from datetime import datetime, timezone
from typing import Any

from exprguard.core.config import settings

logger = logging.getLogger(__name__)

KIND_SECURITY = "security"
KIND_VALIDATION = "validation"


class SecurityAuditor:
    """Counts evaluations and keeps the most recent rejections."""

    def __init__(
        self,
        *,
        history_size: int | None = None,
        expression_prefix: int | None = None,
    ) -> None:
        size = history_size if history_size is not None else settings.AUDIT_HISTORY_SIZE
        self._prefix = (
            expression_prefix
            if expression_prefix is not None
            else settings.AUDIT_EXPRESSION_PREFIX
        )
        self._lock = threading.Lock()
        self._history: deque[dict[str, Any]] = deque(maxlen=max(1, size))
        self._evaluations = 0
        self._violations = 0
        self._started = time.monotonic()

    def record_evaluation(self) -> int:
        """Increment the evaluation counter and return the new value."""
        with self._lock:
            self._evaluations += 1
            return self._evaluations

    def record_violation(
        self, reason: str, expression: Any, kind: str = KIND_SECURITY
    ) -> dict[str, Any]:
        """Append a rejection to the history and bump the violation counter."""
        if isinstance(expression, str):
            snippet = expression[: self._prefix]
        else:
            snippet = repr(expression)[: self._prefix]
        with self._lock:
            self._violations += 1
            record = {
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "expression": snippet,
                "violation": reason,
                "kind": kind,
                "evaluation_count": self._evaluations,
            }
            self._history.append(record)
        if kind == KIND_SECURITY:
            logger.error("SECURITY VIOLATION DETECTED: %s expression=%r", reason, snippet)
        else:
            logger.warning("Expression rejected: %s expression=%r", reason, snippet)
        return record

    def get_stats(self, recent_limit: int | None = None) -> dict[str, Any]:
        """
        Snapshot of the counters.

        recent_violations holds the newest `recent_limit` records, oldest first.
        """
        limit = recent_limit if recent_limit is not None else settings.AUDIT_RECENT_LIMIT
        with self._lock:
            history = list(self._history)
            stats = {
                "total_evaluations": self._evaluations,
                "security_violations": self._violations,
                "history_size": len(history),
            }
        stats["recent_violations"] = [dict(r) for r in history[-limit:]] if limit > 0 else []
        stats["uptime_seconds"] = round(time.monotonic() - self._started, 3)
        return stats

    def reset(self) -> None:
        with self._lock:
            self._history.clear()
            self._evaluations = 0
            self._violations = 0
