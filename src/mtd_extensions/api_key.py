"""Simple shared-secret API key filter.

Requests carry the key in the ``X-ApiKey`` header. Keys are compared
case-insensitively with plain string equality; the comparison is not
constant-time.

Example usage::

    app = FastAPI()
    add_api_key_filter(app, ApiKeyConfig(keys=["..."]))
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from enum import StrEnum

import structlog
from fastapi import FastAPI
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from .exceptions import InvalidConfigurationError, ensure_argument
from .logger import get_logger
from .models import ApiKeyConfig
from .validation import ValidationError

API_KEY_HEADER = "X-ApiKey"


class AuthorizationDecision(StrEnum):
    ALLOW = "allow"
    DENY = "deny"


class AuthorizationOutcome(StrEnum):
    """Why a decision was made. Only used for logging."""

    VALID = "valid"
    INVALID = "invalid"
    MISSING = "missing"

    @property
    def decision(self) -> AuthorizationDecision:
        if self is AuthorizationOutcome.VALID:
            return AuthorizationDecision.ALLOW
        return AuthorizationDecision.DENY


class ApiKeySet:
    """Immutable, non-empty set of case-insensitive keys."""

    __slots__ = ("_keys",)

    def __init__(self, keys: Iterable[str]) -> None:
        folded = frozenset(k.casefold() for k in keys if k)
        if not folded:
            raise InvalidConfigurationError(
                "ApiKeySet validation failed: At least one API key is required.",
                errors=[
                    ValidationError(
                        "keys", "At least one API key is required.", code="MIN_LENGTH"
                    )
                ],
            )
        self._keys = folded

    @classmethod
    def from_config(cls, config: ApiKeyConfig) -> ApiKeySet:
        config.validate()
        return cls(config.keys or [])

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.casefold() in self._keys

    def __len__(self) -> int:
        return len(self._keys)

    def __repr__(self) -> str:
        return f"ApiKeySet(<{len(self._keys)} keys>)"


def _header_value(headers: Mapping[str, str], name: str) -> str | None:
    value = headers.get(name)
    if value is not None:
        return value
    folded = name.casefold()
    for key, candidate in headers.items():
        if key.casefold() == folded:
            return candidate
    return None


class SimpleApiKeyFilter:
    """Allows a request when its X-ApiKey header matches one of the keys."""

    def __init__(
        self,
        api_key_config: ApiKeyConfig,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        """
        Raises:
            ArgumentMissingError: if api_key_config is None
            InvalidConfigurationError: if api_key_config has no keys
        """
        ensure_argument(api_key_config, "api_key_config")
        self._keys = ApiKeySet.from_config(api_key_config)
        self._logger = logger or get_logger(__name__)

    @property
    def keys(self) -> ApiKeySet:
        return self._keys

    def evaluate(self, headers: Mapping[str, str]) -> AuthorizationOutcome:
        self._logger.debug("api_key_filter_executing", filter=type(self).__name__)
        key = _header_value(headers, API_KEY_HEADER)
        if key is None:
            self._logger.info("api_key_missing", header=API_KEY_HEADER)
            return AuthorizationOutcome.MISSING
        if key in self._keys:
            self._logger.debug("api_key_valid")
            return AuthorizationOutcome.VALID
        self._logger.warning("api_key_invalid")
        return AuthorizationOutcome.INVALID

    def authorize(self, headers: Mapping[str, str]) -> AuthorizationDecision:
        return self.evaluate(headers).decision


def documentation_paths(app: FastAPI) -> set[str]:
    """Paths serving the OpenAPI document and its UIs."""
    paths = {p for p in (app.docs_url, app.redoc_url, app.openapi_url) if p}
    if app.docs_url and app.swagger_ui_oauth2_redirect_url:
        paths.add(app.swagger_ui_oauth2_redirect_url)
    paths.update(getattr(app.state, "swagger_paths", ()))
    return paths


class ApiKeyMiddleware(BaseHTTPMiddleware):
    """Answers 401 with an empty body unless the filter allows the request.

    With ``exempt_paths`` left as None the documentation routes of the
    receiving FastAPI app stay open.
    """

    def __init__(
        self,
        app: ASGIApp,
        api_key_filter: SimpleApiKeyFilter,
        exempt_paths: Iterable[str] | None = None,
    ) -> None:
        super().__init__(app)
        self.api_key_filter = api_key_filter
        self.exempt_paths = None if exempt_paths is None else frozenset(exempt_paths)

    def _is_exempt(self, request: Request) -> bool:
        if self.exempt_paths is not None:
            return request.url.path in self.exempt_paths
        owner = request.scope.get("app")
        if isinstance(owner, FastAPI):
            return request.url.path in documentation_paths(owner)
        return False

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if not self._is_exempt(request):
            if self.api_key_filter.authorize(request.headers) is AuthorizationDecision.DENY:
                return Response(status_code=401)
        return await call_next(request)


def add_api_key_filter(
    app: FastAPI,
    api_key_config: ApiKeyConfig,
    logger: structlog.stdlib.BoundLogger | None = None,
    *,
    exempt_paths: Iterable[str] | None = None,
) -> SimpleApiKeyFilter:
    """Guard every route of ``app`` with a SimpleApiKeyFilter.

    Raises:
        ArgumentMissingError: if app or api_key_config is None
        InvalidConfigurationError: if api_key_config has no keys
    """
    ensure_argument(app, "app")
    api_key_filter = SimpleApiKeyFilter(api_key_config, logger)
    app.add_middleware(ApiKeyMiddleware, api_key_filter=api_key_filter, exempt_paths=exempt_paths)
    return api_key_filter
