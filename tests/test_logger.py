"""logger unit tests."""

import io
import json
import logging
from collections.abc import Iterator

import pytest
import structlog
from structlog.testing import capture_logs

from mtd_extensions.exceptions import InvalidConfigurationError
from mtd_extensions.logger import HANDLER_NAME, configure_logging, get_logger
from mtd_extensions.models import LogConfig


@pytest.fixture(autouse=True)
def _restore_root_logger() -> Iterator[None]:
    root = logging.getLogger()
    level = root.level
    yield
    for handler in list(root.handlers):
        if handler.get_name() == HANDLER_NAME:
            root.removeHandler(handler)
    root.setLevel(level)


def _lines(stream: io.StringIO) -> list[str]:
    return [line for line in stream.getvalue().splitlines() if line]


def test_json_output() -> None:
    """JSON lines carry the event, level and logger name."""
    stream = io.StringIO()
    logger = configure_logging(LogConfig(level="INFO", format="json"), stream=stream)
    logger.info("service_started", port=8080)

    record = json.loads(_lines(stream)[0])
    assert record["event"] == "service_started"
    assert record["port"] == 8080
    assert record["level"] == "info"
    assert record["logger"] == HANDLER_NAME
    assert "timestamp" in record


def test_stdlib_records_share_format() -> None:
    """Plain logging records are rendered like structlog events."""
    stream = io.StringIO()
    configure_logging(LogConfig(format="json"), stream=stream)
    logging.getLogger("thirdparty").warning("disk almost full")

    record = json.loads(_lines(stream)[0])
    assert record["event"] == "disk almost full"
    assert record["level"] == "warning"
    assert record["logger"] == "thirdparty"


def test_level_filters_events() -> None:
    """Events below the configured level are dropped."""
    stream = io.StringIO()
    logger = configure_logging(LogConfig(level="warning", format="json"), stream=stream)
    logger.info("ignored")
    logger.warning("kept")
    assert [json.loads(line)["event"] for line in _lines(stream)] == ["kept"]


def test_text_output() -> None:
    """The text format renders a console line instead of JSON."""
    stream = io.StringIO()
    logger = configure_logging(LogConfig(format="text"), stream=stream)
    logger.info("service_started")
    line = _lines(stream)[0]
    assert "service_started" in line
    assert not line.startswith("{")


def test_reconfigure_replaces_handler() -> None:
    """Configuring twice leaves a single handler writing to the latest stream."""
    first, second = io.StringIO(), io.StringIO()
    configure_logging(LogConfig(), stream=first)
    logger = configure_logging(LogConfig(), stream=second)
    logger.info("once")

    names = [h.get_name() for h in logging.getLogger().handlers]
    assert names.count(HANDLER_NAME) == 1
    assert first.getvalue() == ""
    assert len(_lines(second)) == 1


def test_defaults() -> None:
    """Without a config the INFO level and stdlib wrapper are used."""
    configure_logging(stream=io.StringIO())
    assert logging.getLogger().level == logging.INFO
    assert structlog.get_config()["wrapper_class"] is structlog.stdlib.BoundLogger


def test_invalid_config() -> None:
    """An invalid config is rejected before anything is installed."""
    with pytest.raises(InvalidConfigurationError) as exc_info:
        configure_logging(LogConfig(level="INFO", format="xml"))
    assert exc_info.value.fields == ["format"]
    assert HANDLER_NAME not in [h.get_name() for h in logging.getLogger().handlers]


def test_get_logger_emits_events() -> None:
    """Library loggers emit through the current structlog configuration."""
    with capture_logs() as logs:
        get_logger("mtd_extensions.test").info("something_happened", key="value")
    assert logs == [{"event": "something_happened", "key": "value", "log_level": "info"}]
