"""layered configuration unit tests."""

from pathlib import Path

import pytest

from mtd_extensions.configuration import (
    Configuration,
    ConfigurationBuilder,
    EnvironmentVariablesSource,
    MemorySource,
    SecretsFileSource,
    SourceKind,
    VaultSource,
    YamlFileSource,
    flatten,
)
from mtd_extensions.exceptions import (
    ConfigFileError,
    ExtensionsErrorCodes,
    VaultError,
    VaultErrorCode,
)
from mtd_extensions.vault import InMemoryVaultClient, SecretVaultClient


class _CountingVault(InMemoryVaultClient):
    def __init__(self, secrets: dict[str, str]) -> None:
        super().__init__(secrets)
        self.load_count = 0

    def load_all(self) -> dict[str, str]:
        self.load_count += 1
        return super().load_all()


class _UnreachableVault(SecretVaultClient):
    def __init__(self) -> None:
        self.calls = 0

    def list_secret_names(self) -> list[str]:
        self.calls += 1
        raise VaultError(VaultErrorCode.UNREACHABLE, "connection refused")

    def get_secret(self, name: str):  # type: ignore[no-untyped-def]
        raise AssertionError("not reached")


def test_flatten_nested() -> None:
    """Nested mappings and lists become delimited keys."""
    data = {"Swagger": {"Title": "T", "MajorVersion": 2}, "ApiKeys": {"Keys": ["a", "b"]}}
    assert flatten(data) == {
        "Swagger:Title": "T",
        "Swagger:MajorVersion": "2",
        "ApiKeys:Keys:0": "a",
        "ApiKeys:Keys:1": "b",
    }


def test_flatten_scalars() -> None:
    """Booleans render lowercase and null leaves are dropped."""
    assert flatten({"a": True, "b": None, "c": 1.5}) == {"a": "true", "c": "1.5"}


def test_null_yaml_value_is_absent(tmp_path: Path) -> None:
    """A key left empty in YAML is not defined at all."""
    path = tmp_path / "appsettings.yaml"
    path.write_text("ApiKeys:\n  Keys:\nName: app\n", encoding="utf-8")
    config = ConfigurationBuilder().add_yaml_file(path).build()
    assert "ApiKeys:Keys" not in config
    assert config.get_section("ApiKeys") == {}
    assert config["Name"] == "app"


def test_later_source_wins() -> None:
    """The last added source wins on collision."""
    config = (
        ConfigurationBuilder()
        .add_memory({"a": "base", "b": "base"})
        .add_memory({"b": "override"})
        .build()
    )
    assert config["a"] == "base"
    assert config["b"] == "override"


def test_lookup_is_case_insensitive() -> None:
    """Keys match regardless of case."""
    config = ConfigurationBuilder().add_memory({"Swagger": {"Title": "T"}}).build()
    assert config.get("swagger:title") == "T"
    assert "SWAGGER:TITLE" in config


def test_missing_key() -> None:
    """Undefined keys fall back to the default or raise KeyError."""
    config = ConfigurationBuilder().add_memory({"a": "1"}).build()
    assert config.get("missing") is None
    assert config.get("missing", "fallback") == "fallback"
    assert "missing" not in config
    with pytest.raises(KeyError):
        config["missing"]


def test_get_section_merges_sources() -> None:
    """A section merges children across sources."""
    config = (
        ConfigurationBuilder()
        .add_memory({"Swagger": {"Title": "base", "Description": "d"}, "Other": {"x": "1"}})
        .add_memory({"swagger:title": "override"})
        .build()
    )
    section = config.get_section("Swagger")
    assert {k.casefold(): v for k, v in section.items()} == {
        "title": "override",
        "description": "d",
    }


def test_as_dict() -> None:
    """The merged view holds the winning value per key."""
    config = ConfigurationBuilder().add_memory({"a": "1"}).add_memory({"A": "2", "b": "3"}).build()
    assert {k.casefold(): v for k, v in config.as_dict().items()} == {"a": "2", "b": "3"}


def test_sources_keep_order() -> None:
    """Sources keep the order they were added in."""
    builder = ConfigurationBuilder().add_memory({}, name="first").add_memory({}, name="second")
    config = builder.build()
    assert [s.name for s in config.sources] == ["first", "second"]
    assert all(s.kind == SourceKind.BASE for s in config.sources)


def test_environment_source_filters_and_strips_prefix() -> None:
    """Only prefixed variables are read, without the prefix."""
    source = EnvironmentVariablesSource(
        "MYAPP_",
        environ={"MYAPP_Swagger__Title": "T", "MYAPP_Level": "debug", "OTHER_Level": "info"},
    )
    assert dict(source.items()) == {"Swagger:Title": "T", "Level": "debug"}
    assert source.kind == SourceKind.ENVIRONMENT


def test_environment_source_reads_process_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """The process environment is read by default."""
    monkeypatch.setenv("MTDTEST_Feature__Enabled", "true")
    source = EnvironmentVariablesSource("MTDTEST_")
    assert source.get("Feature:Enabled") == "true"


def test_yaml_file_source(tmp_path: Path) -> None:
    """YAML values are flattened to strings."""
    path = tmp_path / "appsettings.yaml"
    path.write_text("Swagger:\n  Title: From YAML\n  MajorVersion: 3\n", encoding="utf-8")
    source = YamlFileSource(path)
    assert source.get("Swagger:Title") == "From YAML"
    assert source.get("Swagger:MajorVersion") == "3"


def test_yaml_file_source_optional_missing(tmp_path: Path) -> None:
    """A missing optional file is empty."""
    source = YamlFileSource(tmp_path / "missing.yaml", optional=True)
    assert source.items() == []


def test_yaml_file_source_required_missing(tmp_path: Path) -> None:
    """A missing required file fails to read."""
    with pytest.raises(ConfigFileError) as exc_info:
        ConfigurationBuilder().add_yaml_file(tmp_path / "missing.yaml").build()
    assert exc_info.value.code == ExtensionsErrorCodes.READ_FILE


def test_yaml_file_source_invalid(tmp_path: Path) -> None:
    """Broken YAML fails to parse."""
    path = tmp_path / "broken.yaml"
    path.write_text("a: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigFileError) as exc_info:
        YamlFileSource(path).items()
    assert exc_info.value.code == ExtensionsErrorCodes.PARSE_FILE


def test_secrets_file_source(tmp_path: Path) -> None:
    """Secrets file values are read by nested key."""
    path = tmp_path / "secrets.json"
    path.write_text('{"Database": {"Password": "s3cr3t"}}', encoding="utf-8")
    source = SecretsFileSource(path)
    assert source.get("database:password") == "s3cr3t"
    assert source.kind == SourceKind.SECRETS_FILE


def test_secrets_file_source_missing_file(tmp_path: Path) -> None:
    """A missing secrets file is empty."""
    assert SecretsFileSource(tmp_path / "secrets.json").items() == []


def test_secrets_file_source_invalid_json(tmp_path: Path) -> None:
    """Broken JSON fails to parse."""
    path = tmp_path / "secrets.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigFileError) as exc_info:
        SecretsFileSource(path).items()
    assert exc_info.value.code == ExtensionsErrorCodes.PARSE_FILE


def test_secrets_file_for_application(tmp_path: Path) -> None:
    """The per-application path lives under the given root."""
    source = SecretsFileSource.for_application("my-app", root=tmp_path)
    assert source.path == tmp_path / "my-app" / "secrets.json"


def test_vault_source_maps_delimiter() -> None:
    """Vault names map -- to the key delimiter."""
    source = VaultSource(InMemoryVaultClient({"Database--Password": "s3cr3t"}))
    assert source.get("Database:Password") == "s3cr3t"
    assert source.kind == SourceKind.VAULT


def test_vault_source_is_lazy() -> None:
    """The vault loads once, on first lookup."""
    client = _CountingVault({"a": "vault"})
    config = Configuration([MemorySource({"b": "base"}), VaultSource(client)])
    assert client.load_count == 0
    assert config.get("a") == "vault"
    assert config.get("a") == "vault"
    assert client.load_count == 1


def test_vault_not_reached_when_higher_source_defines_key() -> None:
    """A higher source answers without touching the vault."""
    vault = _UnreachableVault()
    config = Configuration(
        [
            MemorySource({"base": "1"}),
            VaultSource(vault),
            MemorySource({"key": "env"}),
        ]
    )
    assert config.get("key") == "env"
    assert vault.calls == 0


def test_unreachable_vault_fails_on_first_access() -> None:
    """Vault failures surface at lookup time and are not cached."""
    vault = _UnreachableVault()
    config = Configuration([MemorySource({"base": "1"}), VaultSource(vault)])
    with pytest.raises(VaultError) as exc_info:
        config.get("base")
    assert exc_info.value.vault_code == VaultErrorCode.UNREACHABLE
    with pytest.raises(VaultError):
        config.get("base")
    assert vault.calls == 2
