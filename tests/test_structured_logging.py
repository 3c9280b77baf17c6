"""
Basic tests for the structured logging components.
"""

import json
import logging

import pytest

from rating_core.exceptions import LedgerError
from rating_core.monitoring.structured_logger import (
    CorrelationIdManager,
    CorrelationIdProcessor,
    JSONFormatter,
    LoggingContext,
    OperationLogger,
    configure_logging,
    get_logger,
)

LOGGER_NAME = "tests.rating"


@pytest.fixture
def structured(caplog):
    caplog.set_level(logging.DEBUG, logger=LOGGER_NAME)
    return get_logger(LOGGER_NAME, component="rating_engine")


class TestLoggingContext:
    """Test correlation id handling."""

    def test_sets_and_restores_context(self):
        assert CorrelationIdManager.get_correlation_id() is None

        with LoggingContext(correlation_id="corr-1", user_id="alice") as context:
            assert CorrelationIdManager.get_correlation_id() == "corr-1"
            assert CorrelationIdManager.get_user_id() == "alice"
            assert CorrelationIdManager.get_request_id() == context.request_id

        assert CorrelationIdManager.get_correlation_id() is None
        assert CorrelationIdManager.get_user_id() is None

    def test_nested_context_inherits_correlation_id(self):
        with LoggingContext(correlation_id="outer"):
            with LoggingContext(user_id="bob") as inner:
                assert inner.correlation_id == "outer"
            assert CorrelationIdManager.get_user_id() is None
            assert CorrelationIdManager.get_correlation_id() == "outer"

    def test_processor_adds_ids(self):
        with LoggingContext(correlation_id="corr-2", request_id="req-2", user_id="carol"):
            event = CorrelationIdProcessor()(None, "info", {"event": "x"})

        assert event == {
            "event": "x",
            "correlation_id": "corr-2",
            "request_id": "req-2",
            "user_id": "carol",
        }


class TestStructuredLogger:
    """Test structured log output."""

    def test_info_renders_key_values(self, structured, caplog):
        with LoggingContext(correlation_id="corr-3"):
            structured.info("rating published", dataset_id="bus-stops", count=3)

        message = caplog.records[-1].getMessage()
        assert message.startswith("event='rating published'")
        assert "dataset_id='bus-stops'" in message
        assert "count=3" in message
        assert "component='rating_engine'" in message
        assert "correlation_id='corr-3'" in message

    def test_error_includes_error_context(self, structured, caplog):
        structured.error("ledger failed", error=LedgerError("disk full", {"table": "rating"}))

        record = caplog.records[-1]
        assert record.levelno == logging.ERROR
        assert "error_type='LedgerError'" in record.getMessage()
        assert "error_context={'table': 'rating'}" in record.getMessage()

    def test_with_context(self, structured, caplog):
        structured.with_context(dataset_id="bus-stops").warning("slow catalog")

        assert "dataset_id='bus-stops'" in caplog.records[-1].getMessage()

    def test_level_filtering(self, caplog):
        caplog.set_level(logging.WARNING, logger=LOGGER_NAME)
        get_logger(LOGGER_NAME).debug("hidden")

        assert not [r for r in caplog.records if "hidden" in r.getMessage()]


class TestOperationLogger:
    """Test operation timing logs."""

    def test_success(self, structured, caplog):
        operation = OperationLogger(structured, "post_rating")
        operation.start(dataset_id="bus-stops")
        operation.success(count=1)

        started, finished = [r.getMessage() for r in caplog.records[-2:]]
        assert "operation_status='started'" in started
        assert "operation_status='success'" in finished
        assert "dataset_id='bus-stops'" in finished
        assert "duration_ms=" in finished

    def test_error_on_exception(self, structured, caplog):
        with pytest.raises(LedgerError):
            with OperationLogger(structured, "post_rating"):
                raise LedgerError("disk full")

        message = caplog.records[-1].getMessage()
        assert "operation_status='error'" in message
        assert "error_message='disk full'" in message


class TestJSONFormatter:
    def test_format(self):
        record = logging.LogRecord("rating_core.x", logging.INFO, __file__, 10, "hello %s", ("world",), None)

        with LoggingContext(correlation_id="corr-4", user_id="dave"):
            entry = json.loads(JSONFormatter().format(record))

        assert entry["message"] == "hello world"
        assert entry["level"] == "info"
        assert entry["correlation_id"] == "corr-4"
        assert entry["user_id"] == "dave"


def test_configure_logging_replaces_handlers():
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        configure_logging("DEBUG", json_format=True)

        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JSONFormatter)
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
