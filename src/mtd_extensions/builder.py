"""Application configuration builders."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from .configuration import (
    ConfigurationBuilder,
    ConfigurationSource,
    EnvironmentVariablesSource,
    SecretsFileSource,
    VaultSource,
)
from .exceptions import ensure_argument
from .hosting import HostEnvironment
from .logger import get_logger
from .models import KeyVaultConfig
from .vault import HttpVaultClient, SecretVaultClient

logger = get_logger(__name__)


def create_builder(
    environment: HostEnvironment | None = None,
    *,
    base_path: Path | str | None = None,
) -> ConfigurationBuilder:
    """Return a builder preloaded with the application's settings files.

    Adds ``appsettings.yaml`` and ``appsettings.{Environment}.yaml`` from
    ``base_path`` (the content root by default); both are optional.
    """
    environment = environment or HostEnvironment.from_environ()
    root = Path(base_path) if base_path is not None else environment.content_root
    builder = ConfigurationBuilder(environment)
    builder.add_yaml_file(root / "appsettings.yaml", optional=True)
    builder.add_yaml_file(
        root / f"appsettings.{environment.environment_name}.yaml",
        optional=True,
    )
    return builder


def configure_for_key_vault(
    builder: ConfigurationBuilder,
    key_vault_config: KeyVaultConfig,
    *,
    vault_client: SecretVaultClient | None = None,
    token_provider: Callable[[], str] | None = None,
    user_secrets: ConfigurationSource | None = None,
) -> ConfigurationBuilder:
    """Layer the vault, environment variables and user secrets over ``builder``.

    The order is:

    1. the key vault (overrides the settings files and other initial sources)
    2. environment variables starting with the configured prefix, if one is
       set (overrides the vault)
    3. user secrets, in the Development environment only (overrides all of
       the above)

    Args:
        builder: the builder to extend
        key_vault_config: vault settings; validated before anything is added
        vault_client: the client used to read secrets. Defaults to an
            HttpVaultClient for ``key_vault_url``.
        token_provider: returns the bearer token the default client sends
            with each request. Ignored when ``vault_client`` is given.
        user_secrets: the Development secrets source. Defaults to the
            per-user secrets file of the application.

    Returns:
        the same builder

    Raises:
        ArgumentMissingError: if builder or key_vault_config is None
        InvalidConfigurationError: if key_vault_config fails validation
    """
    ensure_argument(builder, "builder")
    ensure_argument(key_vault_config, "key_vault_config")

    key_vault_config.validate()

    client = vault_client or HttpVaultClient(
        key_vault_config.key_vault_url or "",
        token_provider=token_provider,
    )
    builder.add_source(VaultSource(client))
    logger.info("config_stage_added", stage="vault", vault_url=key_vault_config.key_vault_url)

    prefix = key_vault_config.environment_variable_prefix
    if prefix and prefix.strip():
        builder.add_source(EnvironmentVariablesSource(prefix))
        logger.info("config_stage_added", stage="environment", prefix=prefix)

    environment = builder.environment
    if environment.is_development():
        source = user_secrets or SecretsFileSource.for_application(environment.application_name)
        builder.add_source(source)
        logger.info("config_stage_added", stage="user_secrets", source=source.name)

    return builder
