"""
Evaluation context: the flat, primitive-only variable bindings an expression sees.

Two ways in:

- sanitize_context(raw) for arbitrary caller mappings; disallowed entries are
  dropped silently.
- ContextBuilder for callers that assemble the context themselves; disallowed
  entries raise ContextError.

Either way the result is an EvaluationContext whose values are float, bool,
None or str. Callables, containers and objects never reach the interpreter.
"""

import logging
import math
from collections.abc import Iterator, Mapping
from numbers import Real
from types import MappingProxyType
from typing import Any, Union

from .errors import ContextError
from .validator import DENYLISTED_IDENTIFIERS, IDENTIFIER_RE

logger = logging.getLogger(__name__)

ContextValue = Union[float, bool, None, str]


def is_allowed_name(name: object) -> bool:
    """True when name is a grammar identifier outside the denylist."""
    if not isinstance(name, str) or not IDENTIFIER_RE.fullmatch(name):
        return False
    if name.startswith("__"):
        return False
    return name.lower() not in DENYLISTED_IDENTIFIERS


def _to_number(value: Real) -> float:
    try:
        return float(value)
    except OverflowError:
        return math.inf if value > 0 else -math.inf


def coerce_value(value: Any) -> tuple[bool, ContextValue]:
    """Return (ok, value) with numbers normalised to float."""
    if value is None or isinstance(value, (bool, str)):
        return True, value
    if isinstance(value, Real):
        return True, _to_number(value)
    return False, None


class EvaluationContext(Mapping[str, ContextValue]):
    """Immutable name -> primitive mapping. Build via sanitize_context or ContextBuilder."""

    __slots__ = ("_data",)

    def __init__(self, data: Mapping[str, ContextValue] | None = None) -> None:
        self._data = MappingProxyType(dict(data or {}))

    def __getitem__(self, key: str) -> ContextValue:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"EvaluationContext({dict(self._data)!r})"


class ContextBuilder:
    """
    Typed builder for EvaluationContext.

        ctx = ContextBuilder().number("health", 75).number("maxHealth", 100).build()
    """

    def __init__(self) -> None:
        self._values: dict[str, ContextValue] = {}

    def _set(self, name: str, value: ContextValue) -> "ContextBuilder":
        if not is_allowed_name(name):
            raise ContextError(f"Context name not allowed: {name!r}")
        self._values[name] = value
        return self

    def number(self, name: str, value: float) -> "ContextBuilder":
        if isinstance(value, bool) or not isinstance(value, Real):
            raise ContextError(f"Context value for {name!r} must be a number")
        return self._set(name, _to_number(value))

    def boolean(self, name: str, value: bool) -> "ContextBuilder":
        if not isinstance(value, bool):
            raise ContextError(f"Context value for {name!r} must be a boolean")
        return self._set(name, value)

    def null(self, name: str) -> "ContextBuilder":
        return self._set(name, None)

    def string(self, name: str, value: str) -> "ContextBuilder":
        if not isinstance(value, str):
            raise ContextError(f"Context value for {name!r} must be a string")
        return self._set(name, value)

    def update(self, values: Mapping[str, Any]) -> "ContextBuilder":
        """Add every entry of values; raises on the first disallowed one."""
        for name, value in values.items():
            ok, coerced = coerce_value(value)
            if not ok:
                raise ContextError(
                    f"Context value for {name!r} has unsupported type {type(value).__name__}"
                )
            self._set(name, coerced)
        return self

    def build(self) -> EvaluationContext:
        return EvaluationContext(self._values)


def sanitize_context(raw: Any) -> EvaluationContext:
    """
    Filter an arbitrary mapping down to a safe EvaluationContext.

    Drops keys that are not identifiers, are denylisted or start with "__",
    and values that are not number/bool/None/str. Non-mappings give an empty
    context.
    """
    if isinstance(raw, EvaluationContext):
        return raw
    if not isinstance(raw, Mapping):
        return EvaluationContext()

    safe: dict[str, ContextValue] = {}
    dropped: list[str] = []
    for key, value in raw.items():
        if not is_allowed_name(key):
            dropped.append(repr(key))
            continue
        ok, coerced = coerce_value(value)
        if not ok:
            dropped.append(repr(key))
            continue
        safe[key] = coerced
    if dropped:
        logger.debug("sanitize_context dropped keys: %s", ", ".join(dropped))
    return EvaluationContext(safe)
