"""Shared fixtures."""

from collections.abc import Iterator

import pytest
import structlog

from mtd_extensions import ApiKeyConfig, HostEnvironment, KeyVaultConfig

VAULT_URL = "https://mykeyvault.vault.azure.net/"


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    yield
    structlog.reset_defaults()


@pytest.fixture
def key_vault_config() -> KeyVaultConfig:
    return KeyVaultConfig(key_vault_url=VAULT_URL)


@pytest.fixture
def api_key_config() -> ApiKeyConfig:
    return ApiKeyConfig(keys=["ValidKey"])


@pytest.fixture
def development() -> HostEnvironment:
    return HostEnvironment(environment_name="Development", application_name="test-app")


@pytest.fixture
def production() -> HostEnvironment:
    return HostEnvironment(environment_name="Production", application_name="test-app")
