"""mtd_extensions exception types."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .validation import ValidationError


class ExtensionsError(Exception):
    """Base class for errors raised by mtd_extensions."""

    def __init__(
        self,
        code: str,
        message: str,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return f"{self.code}: {super().__str__()}"


class ExtensionsErrorCodes:
    """Error code constants for ExtensionsError."""

    ARGUMENT_MISSING: str = "ARGUMENT_MISSING"
    INVALID_CONFIGURATION: str = "INVALID_CONFIGURATION"
    READ_FILE: str = "READ_FILE_ERROR"
    PARSE_FILE: str = "PARSE_FILE_ERROR"
    VAULT: str = "VAULT_ERROR"


class ArgumentMissingError(ExtensionsError, ValueError):
    """A required collaborator was not supplied."""

    def __init__(self, argument: str) -> None:
        super().__init__(
            code=ExtensionsErrorCodes.ARGUMENT_MISSING,
            message=f"Value cannot be None: {argument}",
        )
        self.argument = argument


def ensure_argument(value: object, argument: str) -> None:
    """Raise ArgumentMissingError when value is None."""
    if value is None:
        raise ArgumentMissingError(argument)


class InvalidConfigurationError(ExtensionsError):
    """A settings object failed its declared validation rules.

    ``errors`` holds every field-level violation, not just the first one.
    """

    def __init__(
        self,
        message: str,
        errors: list[ValidationError] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ExtensionsErrorCodes.INVALID_CONFIGURATION,
            message=message,
            cause=cause,
        )
        self.errors = list(errors or [])

    @property
    def fields(self) -> list[str]:
        return [e.field for e in self.errors]


class ConfigFileError(ExtensionsError):
    """A settings or secrets file could not be read or parsed."""


class VaultErrorCode(str, Enum):
    """Vault error codes."""

    NOT_FOUND = "NOT_FOUND"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    SERVER_ERROR = "SERVER_ERROR"
    TIMEOUT = "TIMEOUT"
    UNREACHABLE = "UNREACHABLE"


class VaultError(ExtensionsError):
    """The secret vault could not be reached or answered with an error."""

    def __init__(
        self,
        vault_code: VaultErrorCode,
        message: str,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ExtensionsErrorCodes.VAULT,
            message=f"{vault_code.value}: {message}",
            cause=cause,
        )
        self.vault_code = vault_code
