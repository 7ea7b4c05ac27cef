"""Unit tests for PII filtering and log formatting."""

import json
import logging
import sys

from app.core.logging import JSONLogFormatter, filter_pii, setup_logging


class TestPIIFiltering:
    """Test PII filtering functionality."""

    def test_filter_card_number(self):
        filtered = filter_pii("Card number 4276123456789014 was used")
        assert "4276123456789014" not in filtered
        assert "[CARD]" in filtered

    def test_filter_spaced_card_number(self):
        filtered = filter_pii("card 4276 1234 5678 9014")
        assert "9014" not in filtered
        assert "[CARD]" in filtered

    def test_filter_email(self):
        filtered = filter_pii("Contact: user@example.com")
        assert "user@example.com" not in filtered
        assert "[EMAIL]" in filtered

    def test_masked_numbers_are_kept(self):
        text = "Transfer from card **** **** **** 9014"
        assert filter_pii(text) == text

    def test_filter_preserves_non_pii(self):
        text = "Transfer 500.00 rejected: insufficient balance"
        assert filter_pii(text) == text

    def test_filter_empty_values(self):
        assert filter_pii("") == ""
        assert filter_pii(None) is None


def make_record(msg, *args, **extra):
    record = logging.LogRecord("app.test", logging.INFO, __file__, 1, msg, args, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONLogFormatter:
    """Test structured log output."""

    def test_basic_fields(self):
        output = json.loads(JSONLogFormatter().format(make_record("hello %s", "world")))

        assert output["message"] == "hello world"
        assert output["level"] == "INFO"
        assert output["logger"] == "app.test"
        assert "timestamp" in output

    def test_message_is_filtered(self):
        output = json.loads(
            JSONLogFormatter().format(make_record("issued %s", "4276123456789014"))
        )
        assert "4276123456789014" not in output["message"]

    def test_extra_fields_are_copied(self):
        output = json.loads(
            JSONLogFormatter().format(
                make_record("done", request_id="abc", status_code=200, duration_ms=12)
            )
        )
        assert output["request_id"] == "abc"
        assert output["status_code"] == 200
        assert output["duration_ms"] == 12

    def test_exception_is_filtered(self):
        try:
            raise RuntimeError("bad card 4276123456789014")
        except RuntimeError:
            record = make_record("failed")
            record.exc_info = sys.exc_info()

        output = json.loads(JSONLogFormatter().format(record))
        assert "RuntimeError" in output["exception"]
        assert "4276123456789014" not in output["exception"]


class TestSetupLogging:
    def test_json_handler_installed(self):
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            setup_logging("DEBUG", json_format=True)
            assert root.level == logging.DEBUG
            assert any(isinstance(h.formatter, JSONLogFormatter) for h in root.handlers)
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)
