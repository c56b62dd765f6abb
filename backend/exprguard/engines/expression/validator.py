"""
Lexical security gate for condition expressions.

Runs before any parsing. Rejects input that is not a non-empty string of at
most MAX_EXPRESSION_LENGTH characters, and input containing constructs the
grammar never allows: denylisted identifiers (anywhere in a property path),
statement/assignment syntax, quotes, markup, characters outside the operator
alphabet and calls to functions outside ALLOWED_FUNCTIONS.

Usage::

    validator = ExpressionValidator(auditor)
    validator.validate("health > 10")      # returns None or raises
"""

import re
from typing import NoReturn

from .auditor import KIND_SECURITY, KIND_VALIDATION, SecurityAuditor
from .errors import SecurityViolation, ValidationError

MAX_EXPRESSION_LENGTH = 500

ALLOWED_FUNCTIONS = frozenset({"min", "max", "floor", "ceil", "round", "abs"})

DENYLISTED_IDENTIFIERS = frozenset(
    {
        "eval",
        "function",
        "window",
        "document",
        "process",
        "global",
        "require",
        "import",
        "fetch",
        "xmlhttprequest",
        "settimeout",
        "setinterval",
        "constructor",
        "prototype",
        "__proto__",
        "navigator",
        "location",
    }
)

IDENTIFIER_RE = re.compile(r"[A-Za-z_$][A-Za-z0-9_$]*")

# Split the way the tokenizer does: "1eval" is the number 1 then the identifier
# eval, while "evaluationScore" and "a1eval" are single identifiers.
_SCAN_RE = re.compile(r"(?P<number>\d+(?:\.\d*)?|\.\d+)|(?P<ident>[A-Za-z_$][A-Za-z0-9_$]*)")
_CALL_RE = re.compile(r"([A-Za-z_$][A-Za-z0-9_$]*)\s*\(")
# "=" that is neither part of ==, !=, <=, >= nor the second char of ==
_ASSIGNMENT_RE = re.compile(r"(?<![=!<>])=(?!=)")
_COMPOUND_ASSIGNMENT_RE = re.compile(r"(?:\*\*|<<|>>>?|&&|\|\||\?\?|[-+*/%^&|])=")
_INCREMENT_RE = re.compile(r"\+\+|--")
_QUOTE_RE = re.compile(r"['\"`]")
_MARKUP_RE = re.compile(r"[{}]|</?script\b", re.IGNORECASE)
_ALLOWED_CHARS_RE = re.compile(r"^[A-Za-z0-9_$.\s+\-*/%^()!<>=&|,]+$")


def find_denylisted_identifier(expression: str) -> str | None:
    """Return the first denylisted identifier in expression, or None."""
    for match in _SCAN_RE.finditer(expression):
        word = match.group("ident")
        if word is not None and word.lower() in DENYLISTED_IDENTIFIERS:
            return word
    return None


def find_unauthorized_call(expression: str) -> str | None:
    """Return the first called name outside ALLOWED_FUNCTIONS, or None."""
    for match in _CALL_RE.finditer(expression):
        name = match.group(1)
        if name not in ALLOWED_FUNCTIONS:
            return name
    return None


class ExpressionValidator:
    """
    Security validator. Every rejection is recorded with the auditor (when one
    is attached) before the error is raised.
    """

    def __init__(self, auditor: SecurityAuditor | None = None) -> None:
        self.auditor = auditor

    def validate(self, expression: object) -> None:
        if not isinstance(expression, str):
            self._reject(ValidationError, "Expression must be a string", expression)
        if len(expression) > MAX_EXPRESSION_LENGTH:
            self._reject(
                ValidationError,
                f"Expression exceeds maximum length of {MAX_EXPRESSION_LENGTH} characters",
                expression,
            )
        if not expression.strip():
            self._reject(ValidationError, "Expression cannot be empty", expression)

        word = find_denylisted_identifier(expression)
        if word is not None:
            self._reject(SecurityViolation, f"Blocked identifier: {word}", expression)

        if ";" in expression:
            self._reject(SecurityViolation, "Statement separator ';' is not allowed", expression)
        if _INCREMENT_RE.search(expression):
            self._reject(SecurityViolation, "Increment/decrement operators are not allowed", expression)
        if _COMPOUND_ASSIGNMENT_RE.search(expression) or _ASSIGNMENT_RE.search(expression):
            self._reject(SecurityViolation, "Assignment is not allowed", expression)
        if _QUOTE_RE.search(expression):
            self._reject(SecurityViolation, "String literals are not allowed", expression)
        if _MARKUP_RE.search(expression):
            self._reject(SecurityViolation, "Blocks and markup are not allowed", expression)
        if not _ALLOWED_CHARS_RE.match(expression):
            self._reject(
                SecurityViolation,
                "Expression contains non-whitelisted characters",
                expression,
            )

        name = find_unauthorized_call(expression)
        if name is not None:
            self._reject(SecurityViolation, f"Unauthorized function call: {name}", expression)

    def _reject(
        self,
        exc_type: type[ValidationError] | type[SecurityViolation],
        reason: str,
        expression: object,
    ) -> NoReturn:
        if self.auditor is not None:
            kind = KIND_SECURITY if exc_type is SecurityViolation else KIND_VALIDATION
            self.auditor.record_violation(reason, expression, kind=kind)
        if exc_type is SecurityViolation:
            raise SecurityViolation(f"Security violation: {reason}")
        raise exc_type(reason)
