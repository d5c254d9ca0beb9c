"""Settings value objects."""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import ParseResult, urlparse

from .validation import (
    ValidatableConfig,
    email,
    min_length,
    one_of,
    pattern,
    required,
    url,
    value_range,
)

ENVIRONMENT_VARIABLE_PREFIX_PATTERN = r"^[a-zA-Z][a-zA-Z_]*[a-zA-Z]_$"


@dataclass
class KeyVaultConfig(ValidatableConfig):
    """Key vault settings.

    ``environment_variable_prefix`` must end with ``_``. When it is unset the
    environment variable stage is skipped.
    """

    key_vault_url: str | None = None
    environment_variable_prefix: str | None = None

    rules = {
        "key_vault_url": (
            required("key_vault_url is required."),
            url("key_vault_url must be a valid URL."),
        ),
        "environment_variable_prefix": (
            pattern(
                ENVIRONMENT_VARIABLE_PREFIX_PATTERN,
                "environment_variable_prefix must start with a letter, may contain letters "
                "or underscores in between, and must end with '_'.",
            ),
        ),
    }

    @property
    def key_vault_uri(self) -> ParseResult:
        """The parsed form of key_vault_url."""
        return urlparse(self.key_vault_url or "")


@dataclass
class ApiKeyConfig(ValidatableConfig):
    """The list of accepted API keys."""

    keys: list[str] | None = None

    rules = {
        "keys": (
            required("Please provide a list of keys."),
            min_length(1, "At least one API key is required."),
        ),
    }


@dataclass
class SwaggerConfig(ValidatableConfig):
    """Swagger UI and OpenAPI document settings."""

    title: str | None = None
    description: str | None = None
    contact_name: str = "MTD"
    contact_email: str = "developer@mtd.org"
    major_version: int = 1
    minor_version: int = 0
    # Declares the X-ApiKey security scheme used by SimpleApiKeyFilter.
    include_api_key_security: bool = True
    run_swagger_at_root: bool = True
    custom_css_path: str | None = None

    rules = {
        "title": (required("A title is required."),),
        "description": (required("A description is required."),),
        "contact_email": (email("contact_email must be a valid email address."),),
        "major_version": (value_range(1, None, "major_version must be greater than 0."),),
        "minor_version": (
            value_range(0, None, "minor_version must be greater than or equal to 0."),
        ),
    }

    @property
    def api_version(self) -> str:
        return f"{self.major_version}.{self.minor_version}"


@dataclass
class LogConfig(ValidatableConfig):
    """Logging settings."""

    level: str = "INFO"
    format: str = "json"  # "json" or "text"

    rules = {
        "level": (
            required(),
            one_of("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"),
        ),
        "format": (one_of("json", "text"),),
    }
