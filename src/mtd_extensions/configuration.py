"""Layered configuration.

A Configuration is an ordered list of sources. Keys are hierarchical
(``Section:Key``) and case-insensitive. A lookup walks the sources from the
last added to the first and returns the first value found, so later sources
override earlier ones.
"""

from __future__ import annotations

import json
import os
from abc import ABC, abstractmethod
from collections.abc import Iterator, Mapping
from enum import StrEnum
from pathlib import Path
from typing import Any

import yaml

from .exceptions import ConfigFileError, ExtensionsErrorCodes
from .hosting import HostEnvironment
from .logger import get_logger
from .vault import SecretVaultClient

logger = get_logger(__name__)

KEY_DELIMITER = ":"
USER_SECRETS_ROOT = Path.home() / ".mtd" / "usersecrets"


class SourceKind(StrEnum):
    """Kind of a configuration source."""

    BASE = "base"
    VAULT = "vault"
    ENVIRONMENT = "environment"
    SECRETS_FILE = "secrets_file"


def normalize_key(key: str) -> str:
    return key.casefold()


def flatten(data: Any, prefix: str = "") -> dict[str, str]:
    """Flatten nested mappings and lists into ``Parent:Child`` keys.

    None leaves are dropped; a null setting is the same as an absent one.
    """
    result: dict[str, str] = {}
    if isinstance(data, Mapping):
        items: Iterator[tuple[Any, Any]] = iter(data.items())
    elif isinstance(data, list):
        items = iter(enumerate(data))
    else:
        if prefix and data is not None:
            result[prefix] = _to_str(data)
        return result
    for key, value in items:
        path = f"{prefix}{KEY_DELIMITER}{key}" if prefix else str(key)
        result.update(flatten(value, path))
    return result


def _to_str(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class ConfigurationSource(ABC):
    """A named provider of key/value pairs.

    Content is loaded once and kept. A failed load is not remembered; the next
    access loads again.
    """

    kind: SourceKind = SourceKind.BASE
    # Lazy sources are loaded on first lookup instead of when the view is built.
    lazy: bool = False

    def __init__(self, name: str) -> None:
        self.name = name
        self._entries: dict[str, tuple[str, str]] | None = None

    @abstractmethod
    def load(self) -> Mapping[str, str]:
        """Read the raw key/value pairs of this source."""
        ...

    def _ensure_loaded(self) -> dict[str, tuple[str, str]]:
        if self._entries is None:
            self._entries = {normalize_key(k): (k, v) for k, v in self.load().items()}
        return self._entries

    @property
    def loaded(self) -> bool:
        return self._entries is not None

    def get(self, key: str) -> str | None:
        entry = self._ensure_loaded().get(normalize_key(key))
        return None if entry is None else entry[1]

    def items(self) -> list[tuple[str, str]]:
        return list(self._ensure_loaded().values())

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, kind={self.kind.value!r})"


class MemorySource(ConfigurationSource):
    """In-memory mapping; nested values are flattened."""

    def __init__(self, data: Mapping[str, Any], name: str = "memory") -> None:
        super().__init__(name)
        self._data = flatten(dict(data))

    def load(self) -> Mapping[str, str]:
        return self._data


class YamlFileSource(ConfigurationSource):
    """YAML settings file."""

    def __init__(self, path: Path | str, *, optional: bool = False) -> None:
        self.path = Path(path)
        self.optional = optional
        super().__init__(str(self.path))

    def load(self) -> Mapping[str, str]:
        if not self.path.exists():
            if self.optional:
                return {}
            raise ConfigFileError(
                code=ExtensionsErrorCodes.READ_FILE,
                message=f"Config file not found: {self.path}",
            )
        try:
            text = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigFileError(
                code=ExtensionsErrorCodes.READ_FILE,
                message=f"Failed to read config file: {self.path}",
                cause=e,
            ) from e
        try:
            data = yaml.safe_load(text) or {}
        except yaml.YAMLError as e:
            raise ConfigFileError(
                code=ExtensionsErrorCodes.PARSE_FILE,
                message=f"Failed to parse YAML: {self.path}",
                cause=e,
            ) from e
        if not isinstance(data, Mapping):
            raise ConfigFileError(
                code=ExtensionsErrorCodes.PARSE_FILE,
                message=f"Config file must contain a mapping: {self.path}",
            )
        return flatten(data)


class EnvironmentVariablesSource(ConfigurationSource):
    """Environment variables whose names start with ``prefix``.

    The prefix is stripped and ``__`` becomes the key delimiter, so
    ``MYAPP_Swagger__Title`` is read as ``Swagger:Title``.
    """

    kind = SourceKind.ENVIRONMENT

    def __init__(self, prefix: str = "", environ: Mapping[str, str] | None = None) -> None:
        super().__init__(f"environment:{prefix}" if prefix else "environment")
        self.prefix = prefix
        self._environ = environ

    def load(self) -> Mapping[str, str]:
        environ = os.environ if self._environ is None else self._environ
        folded = self.prefix.casefold()
        result: dict[str, str] = {}
        for name, value in environ.items():
            if not name.casefold().startswith(folded):
                continue
            key = name[len(self.prefix):].replace("__", KEY_DELIMITER)
            if key:
                result[key] = value
        return result


class SecretsFileSource(ConfigurationSource):
    """Developer-local JSON secrets file. A missing file is empty."""

    kind = SourceKind.SECRETS_FILE

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        super().__init__(str(self.path))

    @classmethod
    def for_application(cls, application_name: str, root: Path | None = None) -> SecretsFileSource:
        """The per-user secrets file of ``application_name``."""
        return cls((root or USER_SECRETS_ROOT) / application_name / "secrets.json")

    def load(self) -> Mapping[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except OSError as e:
            raise ConfigFileError(
                code=ExtensionsErrorCodes.READ_FILE,
                message=f"Failed to read secrets file: {self.path}",
                cause=e,
            ) from e
        except json.JSONDecodeError as e:
            raise ConfigFileError(
                code=ExtensionsErrorCodes.PARSE_FILE,
                message=f"Failed to parse secrets file: {self.path}",
                cause=e,
            ) from e
        return flatten(data)


class VaultSource(ConfigurationSource):
    """Secrets from a vault, fetched on the first lookup that reaches them.

    Secret names use ``--`` as the key delimiter: ``Database--Password`` is
    read as ``Database:Password``.
    """

    kind = SourceKind.VAULT
    lazy = True

    def __init__(self, client: SecretVaultClient, name: str = "vault") -> None:
        super().__init__(name)
        self.client = client

    def load(self) -> Mapping[str, str]:
        return {
            secret_name.replace("--", KEY_DELIMITER): value
            for secret_name, value in self.client.load_all().items()
        }


class Configuration:
    """Merged, read-only view over an ordered list of sources.

    The priority of a source is its index in ``sources``; higher wins.
    """

    def __init__(self, sources: list[ConfigurationSource]) -> None:
        self._sources = tuple(sources)
        for source in self._sources:
            if not source.lazy:
                source._ensure_loaded()

    @property
    def sources(self) -> tuple[ConfigurationSource, ...]:
        return self._sources

    def get(self, key: str, default: str | None = None) -> str | None:
        for source in reversed(self._sources):
            value = source.get(key)
            if value is not None:
                return value
        return default

    def __getitem__(self, key: str) -> str:
        value = self.get(key)
        if value is None:
            raise KeyError(key)
        return value

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.get(key) is not None

    def _merged(self, prefix: str = "") -> dict[str, tuple[str, str]]:
        folded = normalize_key(prefix)
        merged: dict[str, tuple[str, str]] = {}
        for source in self._sources:
            for key, value in source.items():
                if folded and not normalize_key(key).startswith(folded):
                    continue
                relative = key[len(prefix):]
                merged[normalize_key(relative)] = (relative, value)
        return merged

    def get_section(self, name: str) -> dict[str, str]:
        """Children of ``name`` keyed relative to the section."""
        merged = self._merged(f"{name}{KEY_DELIMITER}")
        return dict(merged.values())

    def as_dict(self) -> dict[str, str]:
        return dict(self._merged().values())


class ConfigurationBuilder:
    """Collects configuration sources in precedence order."""

    def __init__(self, environment: HostEnvironment | None = None) -> None:
        self.environment = environment or HostEnvironment()
        self._sources: list[ConfigurationSource] = []

    @property
    def sources(self) -> list[ConfigurationSource]:
        return list(self._sources)

    def add_source(self, source: ConfigurationSource) -> ConfigurationBuilder:
        self._sources.append(source)
        logger.debug(
            "config_source_added",
            source=source.name,
            kind=source.kind.value,
            priority=len(self._sources) - 1,
        )
        return self

    def add_memory(self, data: Mapping[str, Any], name: str = "memory") -> ConfigurationBuilder:
        return self.add_source(MemorySource(data, name=name))

    def add_yaml_file(self, path: Path | str, *, optional: bool = False) -> ConfigurationBuilder:
        return self.add_source(YamlFileSource(path, optional=optional))

    def add_environment_variables(
        self,
        prefix: str = "",
        environ: Mapping[str, str] | None = None,
    ) -> ConfigurationBuilder:
        return self.add_source(EnvironmentVariablesSource(prefix, environ))

    def add_secrets_file(self, path: Path | str) -> ConfigurationBuilder:
        return self.add_source(SecretsFileSource(path))

    def add_vault(self, client: SecretVaultClient) -> ConfigurationBuilder:
        return self.add_source(VaultSource(client))

    def has_source(self, kind: SourceKind) -> bool:
        return any(s.kind == kind for s in self._sources)

    def build(self) -> Configuration:
        return Configuration(self._sources)
