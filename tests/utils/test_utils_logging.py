"""Tests for utils/logging.py - Logging setup."""

import io
import json
import logging
import sys

import pytest

from ccat_client.config import LoggingSettings
from ccat_client.utils.logging import PACKAGE_LOGGER, JSONFormatter, setup_logging

pytestmark = pytest.mark.unit


@pytest.fixture(autouse=True)
def clean_logger():
    yield
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="ccat_client.socket",
        level=logging.WARNING,
        pathname="socket.py",
        lineno=1,
        msg="lost %s",
        args=("connection",),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    """Tests for JSONFormatter."""

    def test_basic_fields(self):
        payload = json.loads(JSONFormatter().format(_record()))

        assert payload["level"] == "WARNING"
        assert payload["logger"] == "ccat_client.socket"
        assert payload["message"] == "lost connection"
        assert "timestamp" in payload

    def test_extra_fields_included(self):
        payload = json.loads(JSONFormatter().format(_record(url="ws://cat/ws/user", attempt=2)))

        assert payload["url"] == "ws://cat/ws/user"
        assert payload["attempt"] == 2

    def test_exception_included(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = _record()
            record.exc_info = sys.exc_info()

        payload = json.loads(JSONFormatter().format(record))

        assert "RuntimeError: boom" in payload["exception"]


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_text_format(self):
        stream = io.StringIO()
        logger = setup_logging(LoggingSettings(level="info"), stream=stream)

        logging.getLogger("ccat_client.socket").info("Connecting")

        assert logger.name == PACKAGE_LOGGER
        assert logger.level == logging.INFO
        assert "INFO" in stream.getvalue()
        assert "ccat_client.socket: Connecting" in stream.getvalue()

    def test_level_filters(self):
        stream = io.StringIO()
        setup_logging(LoggingSettings(level="warning"), stream=stream)

        logging.getLogger("ccat_client.client").info("hidden")

        assert stream.getvalue() == ""

    def test_json_format(self):
        stream = io.StringIO()
        setup_logging(LoggingSettings(format="json"), stream=stream)

        logging.getLogger("ccat_client.socket").warning("lost", extra={"retried": 1})

        payload = json.loads(stream.getvalue().strip())
        assert payload["message"] == "lost"
        assert payload["retried"] == 1

    def test_repeated_calls_replace_handler(self):
        first = io.StringIO()
        second = io.StringIO()
        setup_logging(stream=first)
        logger = setup_logging(stream=second)

        logging.getLogger("ccat_client").info("once")

        assert len(logger.handlers) == 1
        assert first.getvalue() == ""
        assert second.getvalue().count("once") == 1

    def test_foreign_handlers_kept(self):
        logger = logging.getLogger(PACKAGE_LOGGER)
        foreign = logging.NullHandler()
        logger.addHandler(foreign)

        setup_logging(stream=io.StringIO())

        assert foreign in logger.handlers
