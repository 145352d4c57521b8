"""Tests for logging utilities and sensitive data redaction."""

from __future__ import annotations

import json
import logging

import pytest

from fridgelist.logging_utils import JsonFormatter, configure_logging


def _record(msg: str, *args: object) -> logging.LogRecord:
    return logging.LogRecord(
        name="fridgelist.test.redaction",
        level=logging.INFO,
        pathname=__file__,
        lineno=0,
        msg=msg,
        args=args,
        exc_info=None,
    )


@pytest.mark.parametrize("fmt", ["plain", "json"])
def test_sensitive_data_filter_redacts_api_key(fmt):
    secret = "top-secret-key"
    configure_logging("INFO", fmt, [secret])

    handler = logging.getLogger().handlers[0]
    record = _record("Calling fridge API with key %s", secret)

    for filter_ in handler.filters:
        filter_.filter(record)

    formatted = handler.format(record)
    assert secret not in formatted
    assert "[redacted]" in formatted


def test_header_values_are_masked_without_known_secret():
    configure_logging("DEBUG", "plain", [])

    handler = logging.getLogger().handlers[0]
    record = _record("headers X-API-Key: abc123 sent")

    for filter_ in handler.filters:
        filter_.filter(record)

    assert "abc123" not in handler.format(record)


def test_http_client_loggers_stay_quiet():
    configure_logging("DEBUG", "plain", [])

    assert logging.getLogger("httpx").level == logging.WARNING


def test_json_formatter_includes_operation():
    record = _record("Cache upsert failed")
    record.operation = "upsert"

    payload = json.loads(JsonFormatter().format(record))

    assert payload["operation"] == "upsert"
    assert payload["message"] == "Cache upsert failed"
