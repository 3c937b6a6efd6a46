"""Unit tests for structured logging helpers."""

import json
import logging
import sys

import pytest

from trainer_scheduling.infrastructure.logging import (
    CorrelationIDFilter,
    JSONFormatter,
    clear_correlation_id,
    get_correlation_id,
    log_business_rule_violation,
    log_scheduling_event,
    set_correlation_id,
)


@pytest.fixture(autouse=True)
def reset_correlation_id():
    yield
    clear_correlation_id()


def make_record(message="hello", **extra):
    record = logging.LogRecord("trainer_scheduling.test", logging.INFO, __file__, 10, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestCorrelationId:
    """Test cases for correlation id tracking."""

    def test_set_and_clear(self):
        """Test the correlation id context helpers."""
        set_correlation_id("req-1")
        assert get_correlation_id() == "req-1"

        clear_correlation_id()
        assert get_correlation_id() is None

    def test_filter_adds_correlation_id(self):
        """Test that records carry the current correlation id."""
        record = make_record()

        set_correlation_id("req-2")
        CorrelationIDFilter().filter(record)
        assert record.correlation_id == "req-2"

        clear_correlation_id()
        CorrelationIDFilter().filter(record)
        assert record.correlation_id == "unknown"


class TestJSONFormatter:
    """Test cases for JSONFormatter."""

    def test_format(self):
        """Test the JSON layout of a record with extras."""
        record = make_record("Booked", correlation_id="req-3", appointment_id="abc")

        entry = json.loads(JSONFormatter().format(record))

        assert entry["message"] == "Booked"
        assert entry["level"] == "INFO"
        assert entry["service"] == "trainer-scheduling"
        assert entry["correlation_id"] == "req-3"
        assert entry["extra"] == {"appointment_id": "abc"}

    def test_format_exception(self):
        """Test that exception details are included."""
        try:
            raise ValueError("boom")
        except ValueError:
            record = logging.LogRecord("x", logging.ERROR, __file__, 1, "failed", None, sys.exc_info())

        entry = json.loads(JSONFormatter().format(record))

        assert entry["exception"]["type"] == "ValueError"
        assert entry["exception"]["message"] == "boom"


class TestLogHelpers:
    """Test cases for scheduling log helpers."""

    def test_business_rule_violation(self, caplog):
        """Test that violations are logged at WARNING with structured fields."""
        logger = logging.getLogger("trainer_scheduling.test")

        with caplog.at_level(logging.WARNING, logger="trainer_scheduling.test"):
            log_business_rule_violation(logger, "create_appointment", "overlap", error_kind="slot_conflict")

        record = caplog.records[-1]
        assert record.levelno == logging.WARNING
        assert record.getMessage() == "Business rule violation: create_appointment - overlap"
        assert record.business_rule == "create_appointment"
        assert record.error_kind == "slot_conflict"

    def test_scheduling_event(self, caplog):
        """Test that successful operations are logged at INFO."""
        logger = logging.getLogger("trainer_scheduling.test")

        with caplog.at_level(logging.INFO, logger="trainer_scheduling.test"):
            log_scheduling_event(logger, "cancel_appointment", "abc", status="cancelled")

        record = caplog.records[-1]
        assert record.getMessage() == "Scheduling operation succeeded: cancel_appointment"
        assert record.appointment_id == "abc"
        assert record.status == "cancelled"
