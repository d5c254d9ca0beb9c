"""Swagger UI and OpenAPI wiring for FastAPI applications."""

from __future__ import annotations

from html import escape
from typing import Any

from fastapi import FastAPI
from fastapi.openapi.docs import get_swagger_ui_html
from fastapi.openapi.utils import get_openapi
from starlette.requests import Request
from starlette.responses import HTMLResponse, JSONResponse

from .api_key import API_KEY_HEADER
from .exceptions import ensure_argument
from .logger import get_logger
from .models import SwaggerConfig

logger = get_logger(__name__)

API_KEY_SCHEME = "ApiKey"
SWAGGER_UI_PARAMETERS: dict[str, Any] = {
    "docExpansion": "none",
    "displayRequestDuration": True,
}


def swagger_document_url(config: SwaggerConfig) -> str:
    return f"/swagger/v{config.api_version}/swagger.json"


def swagger_ui_url(config: SwaggerConfig) -> str:
    return "/" if config.run_swagger_at_root else "/swagger"


def _build_openapi(app: FastAPI, config: SwaggerConfig) -> dict[str, Any]:
    if app.openapi_schema:
        return app.openapi_schema
    schema = get_openapi(
        title=app.title,
        version=app.version,
        openapi_version=app.openapi_version,
        summary=app.summary,
        description=app.description,
        routes=app.routes,
        webhooks=app.webhooks.routes,
        tags=app.openapi_tags,
        servers=app.servers,
        terms_of_service=app.terms_of_service,
        contact=app.contact,
        license_info=app.license_info,
        separate_input_output_schemas=app.separate_input_output_schemas,
    )
    if config.include_api_key_security:
        components = schema.setdefault("components", {})
        components.setdefault("securitySchemes", {})[API_KEY_SCHEME] = {
            "type": "apiKey",
            "in": "header",
            "name": API_KEY_HEADER,
            "description": "API key needed to access the endpoints.",
        }
        schema["security"] = [{API_KEY_SCHEME: []}]
    app.openapi_schema = schema
    return schema


def _swagger_ui_html(config: SwaggerConfig) -> str:
    html = get_swagger_ui_html(
        openapi_url=swagger_document_url(config),
        title=config.title or "",
        swagger_ui_parameters=SWAGGER_UI_PARAMETERS,
    ).body.decode("utf-8")
    if config.custom_css_path and config.custom_css_path.strip():
        link = f'<link type="text/css" rel="stylesheet" href="{escape(config.custom_css_path)}">'
        html = html.replace("</head>", f"{link}\n</head>", 1)
    return html


def use_swagger(app: FastAPI, swagger_config: SwaggerConfig) -> FastAPI:
    """Add the OpenAPI document and Swagger UI to ``app``.

    The document is served at ``/swagger/v{major}.{minor}/swagger.json`` and
    the UI at ``/`` (or ``/swagger`` when run_swagger_at_root is off).

    Args:
        app: the application to extend
        swagger_config: the Swagger settings; validated first

    Returns:
        the app

    Raises:
        ArgumentMissingError: if app or swagger_config is None
        InvalidConfigurationError: if swagger_config fails validation
    """
    ensure_argument(app, "app")
    ensure_argument(swagger_config, "swagger_config")

    swagger_config.validate()

    app.title = swagger_config.title or app.title
    app.description = swagger_config.description or ""
    app.version = swagger_config.api_version
    app.contact = {"name": swagger_config.contact_name, "email": swagger_config.contact_email}
    app.openapi_schema = None
    app.openapi = lambda: _build_openapi(app, swagger_config)  # type: ignore[method-assign]

    document_url = swagger_document_url(swagger_config)
    ui_url = swagger_ui_url(swagger_config)
    html = _swagger_ui_html(swagger_config)

    async def swagger_document(request: Request) -> JSONResponse:
        return JSONResponse(app.openapi())

    async def swagger_ui(request: Request) -> HTMLResponse:
        return HTMLResponse(html)

    app.add_route(document_url, swagger_document, include_in_schema=False)
    app.add_route(ui_url, swagger_ui, include_in_schema=False)
    app.state.swagger_paths = (document_url, ui_url)

    logger.info("swagger_enabled", document_url=document_url, ui_url=ui_url)
    return app
