"""Logging for mtd_extensions.

Library modules emit structlog events through ``get_logger`` and never
configure logging themselves. Applications that have no logging setup of
their own can call ``configure_logging`` once at startup::

    configure_logging(get_validated_options(configuration, "Logging", LogConfig))
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

import structlog

from .models import LogConfig

# Name of the root handler installed by configure_logging.
HANDLER_NAME = "mtd_extensions"

_SHARED_PROCESSORS: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.processors.TimeStamper(fmt="iso"),
]


def _renderer(config: LogConfig) -> structlog.types.Processor:
    if config.format.casefold() == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=False)


def configure_logging(
    config: LogConfig | None = None,
    *,
    stream: TextIO | None = None,
) -> structlog.stdlib.BoundLogger:
    """Route structlog events and stdlib records through one root handler.

    Records from plain ``logging`` loggers (uvicorn, httpx) get the same
    level, logger name and timestamp fields as structlog events. Calling it
    again replaces the handler installed by the previous call.

    Args:
        config: level and format; defaults to ``LogConfig()``
        stream: where records are written; stderr by default

    Returns:
        the ``mtd_extensions`` logger

    Raises:
        InvalidConfigurationError: if config fails validation
    """
    config = config or LogConfig()
    config.validate()

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.set_name(HANDLER_NAME)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_SHARED_PROCESSORS,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(config),
            ],
        )
    )

    root = logging.getLogger()
    for existing in list(root.handlers):
        if existing.get_name() == HANDLER_NAME:
            root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(config.level.upper())

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *_SHARED_PROCESSORS,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    return get_logger(HANDLER_NAME)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.stdlib.get_logger(name)
