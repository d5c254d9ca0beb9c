"""Secret vault clients."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import httpx

from .exceptions import VaultError, VaultErrorCode
from .logger import get_logger

logger = get_logger(__name__)

DEFAULT_API_VERSION = "7.4"


@dataclass
class Secret:
    """A secret stored in the vault."""

    name: str
    value: str
    enabled: bool = True
    tags: dict[str, str] = field(default_factory=dict)


class SecretVaultClient(ABC):
    """Abstract secret vault client."""

    @abstractmethod
    def list_secret_names(self) -> list[str]: ...

    @abstractmethod
    def get_secret(self, name: str) -> Secret: ...

    def load_all(self) -> dict[str, str]:
        """Return the value of every enabled secret keyed by secret name."""
        result: dict[str, str] = {}
        for name in self.list_secret_names():
            secret = self.get_secret(name)
            if secret.enabled:
                result[secret.name] = secret.value
        return result


class InMemoryVaultClient(SecretVaultClient):
    """In-memory vault client for testing."""

    def __init__(self, secrets: dict[str, str] | None = None) -> None:
        self._store: dict[str, Secret] = {}
        for name, value in (secrets or {}).items():
            self.put_secret(Secret(name=name, value=value))

    def put_secret(self, secret: Secret) -> None:
        """Store a secret."""
        self._store[secret.name] = secret

    def list_secret_names(self) -> list[str]:
        return list(self._store)

    def get_secret(self, name: str) -> Secret:
        secret = self._store.get(name)
        if secret is None:
            raise VaultError(VaultErrorCode.NOT_FOUND, name)
        return secret


class HttpVaultClient(SecretVaultClient):
    """Azure Key Vault REST client built on httpx.

    ``token_provider`` returns a bearer token for each request. Without it
    requests are sent unauthenticated.
    """

    def __init__(
        self,
        vault_url: str,
        *,
        token_provider: Callable[[], str] | None = None,
        api_version: str = DEFAULT_API_VERSION,
        timeout: float = 10.0,
    ) -> None:
        self._vault_url = vault_url.rstrip("/")
        self._token_provider = token_provider
        self._api_version = api_version
        self._timeout = timeout

    @property
    def vault_url(self) -> str:
        return self._vault_url

    def _headers(self) -> dict[str, str]:
        if self._token_provider is None:
            return {}
        return {"Authorization": f"Bearer {self._token_provider()}"}

    def _get(self, client: httpx.Client, url: str, params: dict[str, str] | None) -> dict[str, Any]:
        try:
            resp = client.get(url, params=params, headers=self._headers())
            resp.raise_for_status()
            result = resp.json()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status in (401, 403):
                code = VaultErrorCode.PERMISSION_DENIED
            elif status == 404:
                code = VaultErrorCode.NOT_FOUND
            else:
                code = VaultErrorCode.SERVER_ERROR
            raise VaultError(code, f"GET {url} failed: HTTP {status}", cause=e) from e
        except httpx.TimeoutException as e:
            raise VaultError(VaultErrorCode.TIMEOUT, f"GET {url} timed out", cause=e) from e
        except httpx.HTTPError as e:
            raise VaultError(VaultErrorCode.UNREACHABLE, f"GET {url} failed: {e}", cause=e) from e
        except ValueError as e:
            raise VaultError(
                VaultErrorCode.SERVER_ERROR, f"GET {url} returned a non-JSON body", cause=e
            ) from e
        if not isinstance(result, dict):
            raise VaultError(VaultErrorCode.SERVER_ERROR, f"GET {url} returned unexpected JSON")
        return result

    def _list(self, client: httpx.Client) -> list[tuple[str, bool]]:
        entries: list[tuple[str, bool]] = []
        url: str | None = f"{self._vault_url}/secrets"
        params: dict[str, str] | None = {"api-version": self._api_version}
        while url:
            page = self._get(client, url, params)
            for item in page.get("value") or []:
                secret_id = item.get("id") if isinstance(item, dict) else None
                if not isinstance(secret_id, str) or not secret_id:
                    raise VaultError(
                        VaultErrorCode.SERVER_ERROR,
                        f"GET {url} returned a secret item without an id",
                    )
                name = secret_id.rstrip("/").rsplit("/", 1)[-1]
                enabled = item.get("attributes", {}).get("enabled", True)
                entries.append((name, enabled))
            # nextLink already carries the api-version query.
            url = page.get("nextLink")
            params = None
        return entries

    def _fetch(self, client: httpx.Client, name: str) -> Secret:
        data = self._get(
            client,
            f"{self._vault_url}/secrets/{name}",
            {"api-version": self._api_version},
        )
        attributes = data.get("attributes", {})
        return Secret(
            name=name,
            value=data.get("value", ""),
            enabled=attributes.get("enabled", True),
            tags=data.get("tags") or {},
        )

    def list_secret_names(self) -> list[str]:
        with httpx.Client(timeout=self._timeout) as client:
            return [name for name, _ in self._list(client)]

    def get_secret(self, name: str) -> Secret:
        with httpx.Client(timeout=self._timeout) as client:
            return self._fetch(client, name)

    def load_all(self) -> dict[str, str]:
        result: dict[str, str] = {}
        with httpx.Client(timeout=self._timeout) as client:
            for name, enabled in self._list(client):
                if not enabled:
                    continue
                result[name] = self._fetch(client, name).value
        logger.debug("vault_secrets_loaded", vault_url=self._vault_url, count=len(result))
        return result
