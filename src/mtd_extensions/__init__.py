"""mtd extensions for FastAPI applications."""

from .api_key import (
    API_KEY_HEADER,
    ApiKeyMiddleware,
    ApiKeySet,
    AuthorizationDecision,
    AuthorizationOutcome,
    SimpleApiKeyFilter,
    add_api_key_filter,
)
from .builder import configure_for_key_vault, create_builder
from .configuration import (
    Configuration,
    ConfigurationBuilder,
    ConfigurationSource,
    EnvironmentVariablesSource,
    MemorySource,
    SecretsFileSource,
    SourceKind,
    VaultSource,
    YamlFileSource,
)
from .exceptions import (
    ArgumentMissingError,
    ConfigFileError,
    ExtensionsError,
    ExtensionsErrorCodes,
    InvalidConfigurationError,
    VaultError,
    VaultErrorCode,
)
from .hosting import Environments, HostEnvironment
from .logger import configure_logging, get_logger
from .models import ApiKeyConfig, KeyVaultConfig, LogConfig, SwaggerConfig
from .options import bind_options, get_validated_options
from .swagger import use_swagger
from .validation import ValidatableConfig, ValidationError, ValidationErrors
from .vault import HttpVaultClient, InMemoryVaultClient, Secret, SecretVaultClient

__all__ = [
    "API_KEY_HEADER",
    "ApiKeyConfig",
    "ApiKeyMiddleware",
    "ApiKeySet",
    "AuthorizationDecision",
    "AuthorizationOutcome",
    "SimpleApiKeyFilter",
    "add_api_key_filter",
    "Configuration",
    "ConfigurationBuilder",
    "ConfigurationSource",
    "EnvironmentVariablesSource",
    "MemorySource",
    "SecretsFileSource",
    "SourceKind",
    "VaultSource",
    "YamlFileSource",
    "configure_for_key_vault",
    "create_builder",
    "Environments",
    "HostEnvironment",
    "KeyVaultConfig",
    "LogConfig",
    "SwaggerConfig",
    "bind_options",
    "get_validated_options",
    "use_swagger",
    "configure_logging",
    "get_logger",
    "ValidatableConfig",
    "ValidationError",
    "ValidationErrors",
    "HttpVaultClient",
    "InMemoryVaultClient",
    "Secret",
    "SecretVaultClient",
    "ExtensionsError",
    "ExtensionsErrorCodes",
    "ArgumentMissingError",
    "ConfigFileError",
    "InvalidConfigurationError",
    "VaultError",
    "VaultErrorCode",
]
