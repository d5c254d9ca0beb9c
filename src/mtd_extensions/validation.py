"""Declarative validation for settings objects.

Each settings class lists its rules per field::

    class KeyVaultConfig(ValidatableConfig):
        rules = {
            "key_vault_url": (required(), url()),
        }

A rule is a plain function ``(field, value) -> list[ValidationError]``.
``validate()`` evaluates every rule of every field and raises a single
InvalidConfigurationError carrying all violations.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping, Sized
from typing import Any, ClassVar
from urllib.parse import urlparse

from .exceptions import InvalidConfigurationError

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_URL_SCHEMES = frozenset({"http", "https", "ftp"})

VIOLATION_SEPARATOR = "; "


class ValidationError(Exception):
    """Validation error with field name, message, and code."""

    def __init__(self, field: str, message: str, *, code: str | None = None) -> None:
        self.field = field
        self.message = message
        self.code = code if code is not None else f"INVALID_{field.upper()}"
        super().__init__(f"ValidationError({field}, {self.code}): {message}")


class ValidationErrors:
    """A collection of ValidationError instances."""

    def __init__(self) -> None:
        self._errors: list[ValidationError] = []

    def has_errors(self) -> bool:
        """Returns True if there are any errors."""
        return len(self._errors) > 0

    def get_errors(self) -> list[ValidationError]:
        """Returns a copy of all collected errors."""
        return list(self._errors)

    def add(self, error: ValidationError) -> None:
        """Adds a validation error to the collection."""
        self._errors.append(error)

    def extend(self, errors: list[ValidationError]) -> None:
        for error in errors:
            self.add(error)

    def messages(self) -> list[str]:
        return [e.message for e in self._errors]


Rule = Callable[[str, Any], list[ValidationError]]


def required(message: str | None = None) -> Rule:
    """Fail on None and on blank strings."""

    def rule(field: str, value: Any) -> list[ValidationError]:
        if value is None or (isinstance(value, str) and not value.strip()):
            return [ValidationError(field, message or f"{field} is required.", code="REQUIRED")]
        return []

    return rule


def min_length(length: int, message: str | None = None) -> Rule:
    """Fail when a sized value has fewer than ``length`` items. None passes."""

    def rule(field: str, value: Any) -> list[ValidationError]:
        if isinstance(value, Sized) and len(value) < length:
            return [
                ValidationError(
                    field,
                    message or f"{field} must contain at least {length} item(s).",
                    code="MIN_LENGTH",
                )
            ]
        return []

    return rule


def pattern(regex: str, message: str | None = None) -> Rule:
    """Fail when a string does not fully match ``regex``. None and "" pass."""
    compiled = re.compile(regex)

    def rule(field: str, value: Any) -> list[ValidationError]:
        if value is None or value == "":
            return []
        if not isinstance(value, str) or not compiled.fullmatch(value):
            return [
                ValidationError(
                    field,
                    message or f"{field} must match the pattern '{regex}'.",
                    code="PATTERN",
                )
            ]
        return []

    return rule


def value_range(
    minimum: float | None = None,
    maximum: float | None = None,
    message: str | None = None,
) -> Rule:
    """Fail when a number lies outside ``[minimum, maximum]``. None passes."""

    def rule(field: str, value: Any) -> list[ValidationError]:
        if value is None:
            return []
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return [ValidationError(field, message or f"{field} must be a number.", code="RANGE")]
        if (minimum is not None and value < minimum) or (maximum is not None and value > maximum):
            return [
                ValidationError(
                    field,
                    message or f"{field} must be between {minimum} and {maximum}.",
                    code="RANGE",
                )
            ]
        return []

    return rule


def url(message: str | None = None) -> Rule:
    """Fail unless the value is an absolute http, https or ftp URL. None passes."""

    def rule(field: str, value: Any) -> list[ValidationError]:
        if value is None:
            return []
        parsed = urlparse(value) if isinstance(value, str) else None
        if parsed is None or parsed.scheme.lower() not in _URL_SCHEMES or not parsed.netloc:
            return [ValidationError(field, message or f"{field} must be a valid URL.", code="URL")]
        return []

    return rule


def email(message: str | None = None) -> Rule:
    """Fail unless the value looks like an email address. None passes."""

    def rule(field: str, value: Any) -> list[ValidationError]:
        if value is None:
            return []
        if not isinstance(value, str) or not _EMAIL_RE.match(value):
            return [
                ValidationError(
                    field,
                    message or f"{field} must be a valid email address.",
                    code="EMAIL",
                )
            ]
        return []

    return rule


def one_of(*choices: str, message: str | None = None) -> Rule:
    """Fail unless the value equals one of ``choices``, ignoring case. None passes."""
    allowed = {c.casefold() for c in choices}

    def rule(field: str, value: Any) -> list[ValidationError]:
        if value is None:
            return []
        if not isinstance(value, str) or value.casefold() not in allowed:
            return [
                ValidationError(
                    field,
                    message or f"{field} must be one of: {', '.join(choices)}.",
                    code="ONE_OF",
                )
            ]
        return []

    return rule


class ValidatableConfig:
    """Base class for settings objects validated through declared rules.

    Validation is never implicit: callers run ``validate()`` before handing
    the object to a collaborator.
    """

    rules: ClassVar[Mapping[str, tuple[Rule, ...]]] = {}

    def collect_errors(self) -> list[ValidationError]:
        """Evaluate every rule and return all violations in declaration order."""
        errors = ValidationErrors()
        for field, field_rules in self.rules.items():
            value = getattr(self, field, None)
            for rule in field_rules:
                errors.extend(rule(field, value))
        return errors.get_errors()

    def is_valid(self) -> bool:
        return not self.collect_errors()

    def validate(self) -> None:
        """Raise InvalidConfigurationError listing every violation.

        Raises:
            InvalidConfigurationError: if any rule fails
        """
        errors = self.collect_errors()
        if errors:
            joined = VIOLATION_SEPARATOR.join(e.message for e in errors)
            raise InvalidConfigurationError(
                f"{type(self).__name__} validation failed: {joined}",
                errors=errors,
            )
