"""Tests for observability utilities."""

import json
import logging

from anonrelay.observability.correlation import (
    correlation_id_for_update,
    get_correlation_id,
    reset_correlation_id,
    set_correlation_id,
)
from anonrelay.observability.logging import JsonFormatter
from anonrelay.observability.redaction import (
    hash_identifier,
    redact_string,
    redact_value,
    safe_log_context,
)


class TestRedaction:
    """Tests for redaction helpers."""

    def test_redact_phone_number(self):
        result = redact_string("Call me at +55 11 99999-8888")
        assert "99999" not in result
        assert "[REDACTED]" in result

    def test_redact_email(self):
        result = redact_string("Email: user@example.com")
        assert "user@example.com" not in result
        assert "[REDACTED]" in result

    def test_redact_telegram_handle(self):
        result = redact_string("ask @secret_guest about it")
        assert "secret_guest" not in result
        assert "[REDACTED]" in result

    def test_redact_value_dict_only_keys(self):
        result = redact_value({"username": "secret123", "chat": "john"})
        assert "secret123" not in result
        assert "john" not in result
        assert "username" in result

    def test_redact_value_set_only_len(self):
        assert redact_value(frozenset({"1", "2"})) == "list(len=2)"

    def test_safe_log_context(self):
        ctx = safe_log_context(phone="+5511999998888", count=42)
        assert "[REDACTED]" in ctx["phone"]
        assert ctx["count"] == "42"

    def test_hash_identifier_is_stable_and_short(self):
        assert hash_identifier(111222) == hash_identifier("111222")
        assert len(hash_identifier(111222)) == 12
        assert "111222" not in hash_identifier(111222)


class TestCorrelation:
    def test_update_based_id_is_stable(self):
        assert correlation_id_for_update(42) == correlation_id_for_update(42)
        assert "42" in correlation_id_for_update(42)

    def test_missing_update_id_generates_fresh_id(self):
        assert correlation_id_for_update(None) != correlation_id_for_update(None)

    def test_set_and_reset(self):
        token = set_correlation_id("cid-1")
        assert get_correlation_id() == "cid-1"
        reset_correlation_id(token)
        assert get_correlation_id() == ""


class TestJsonFormatter:
    def test_includes_correlation_id_and_extra_fields(self):
        record = logging.LogRecord("anonrelay.test", logging.INFO, __file__, 1, "hello", None, None)
        record.extra_fields = {"guest_hash": "abc"}

        token = set_correlation_id("cid-json")
        try:
            data = json.loads(JsonFormatter().format(record))
        finally:
            reset_correlation_id(token)

        assert data["message"] == "hello"
        assert data["service"] == "anonrelay"
        assert data["correlationId"] == "cid-json"
        assert data["guest_hash"] == "abc"
