"""Tests for structured logging configuration."""

import json
import logging

import pytest
import structlog

from kontroler_sdk import session, streaming
from kontroler_sdk.logging import configure


@pytest.fixture(autouse=True)
def restore_logging():
    """Undo configure() so other tests see unconfigured logging."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    structlog.reset_defaults()
    root.handlers[:] = handlers
    root.setLevel(level)


def last_record(text: str) -> dict:
    return json.loads(text.strip().splitlines()[-1])


def test_unconfigured_sdk_is_quiet(capsys):
    """Test SDK debug events print nothing unless an application opts in."""
    structlog.reset_defaults()

    session.logger.debug("session_login", user="admin")
    streaming.logger.debug("log_stream_started", stream="pod:x")

    captured = capsys.readouterr()
    assert captured.out == ""
    assert "session_login" not in captured.err


def test_json_output(capsys):
    configure(level="info", log_format="json")

    structlog.get_logger("kontroler_sdk.transport").info("session_relogin", url="http://h/x")

    captured = capsys.readouterr()
    record = last_record(captured.err)
    assert record["event"] == "session_relogin"
    assert record["level"] == "info"
    assert record["url"] == "http://h/x"
    assert "timestamp" in record
    assert captured.out == ""


def test_sdk_module_loggers_follow_configuration(capsys):
    """Test loggers created at import time pick up a later configure()."""
    configure(level="DEBUG", log_format="json")

    session.logger.debug("session_login", user="admin")

    record = last_record(capsys.readouterr().err)
    assert record["event"] == "session_login"
    assert record["user"] == "admin"


def test_level_filters(capsys):
    configure(level="WARNING", log_format="json")

    streaming.logger.debug("log_stream_started", stream="pod:x")

    assert capsys.readouterr().err == ""


def test_level_from_environment(capsys, monkeypatch):
    monkeypatch.setenv("KONTROLER_LOG_LEVEL", "DEBUG")
    configure(log_format="json")

    streaming.logger.debug("log_stream_started", stream="pod:x")

    assert "log_stream_started" in capsys.readouterr().err


def test_console_output(capsys):
    configure(level="INFO", log_format="console")

    streaming.logger.warning("log_stream_failed", stream="pod:x")

    err = capsys.readouterr().err
    assert "log_stream_failed" in err
    assert "pod:x" in err


def test_stdlib_loggers_are_routed(capsys):
    configure(level="INFO", log_format="json")

    logging.getLogger("httpx").info("HTTP Request: GET http://h/x")

    record = last_record(capsys.readouterr().err)
    assert record["event"] == "HTTP Request: GET http://h/x"
    assert record["level"] == "info"
