"""Tests for JSON logging."""

import json
import logging
from io import StringIO

import pytest

from devops_stack.core.logging import _JsonFormatter, get_logger, setup_logging


@pytest.fixture
def capture():
    logger = get_logger("test.json")
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(_JsonFormatter())
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    yield logger, stream
    logger.removeHandler(handler)


def test_setup_logging_is_idempotent():
    """Test that repeated setup adds one JSON handler."""
    setup_logging()
    setup_logging("info")
    root = logging.getLogger()
    json_handlers = [h for h in root.handlers if isinstance(h.formatter, _JsonFormatter)]
    assert len(json_handlers) == 1


def test_get_logger_returns_logger():
    """Test that get_logger returns a logger instance."""
    logger = get_logger("test")
    assert isinstance(logger, logging.Logger)
    assert logger.name == "test"


def test_json_formatter_produces_json(capture):
    """Test that logs are formatted as JSON."""
    logger, stream = capture
    logger.info("Test message")

    parsed = json.loads(stream.getvalue().strip())
    assert parsed["level"] == "INFO"
    assert parsed["logger"] == "test.json"
    assert parsed["msg"] == "Test message"
    assert "timestamp" in parsed


def test_json_formatter_merges_extra_fields(capture):
    """Test that extra_fields land at the top level."""
    logger, stream = capture
    logger.info("Request completed", extra={"extra_fields": {"status": 200, "path": "/x"}})

    parsed = json.loads(stream.getvalue().strip())
    assert parsed["status"] == 200
    assert parsed["path"] == "/x"


def test_json_formatter_includes_exception(capture):
    """Test that exceptions are serialized."""
    logger, stream = capture
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        logger.exception("failed")

    parsed = json.loads(stream.getvalue().strip())
    assert "RuntimeError: boom" in parsed["exc_info"]
