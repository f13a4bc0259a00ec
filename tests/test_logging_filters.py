"""Tests for sensitive data filtering in logs."""

from __future__ import annotations

import json
import logging
from io import StringIO

import pytest

from lead_api.core.logging import (
    JsonFormatter,
    RequestIdFilter,
    SensitiveDataFilter,
    clear_request_id,
    hash_for_log,
    set_request_id,
)


@pytest.fixture
def capture():
    """Logger wired to an in-memory stream through the production filters."""

    def _make(name: str) -> tuple[logging.Logger, StringIO]:
        logger = logging.getLogger(name)
        logger.setLevel(logging.INFO)
        logger.handlers.clear()
        logger.propagate = False

        stream = StringIO()
        handler = logging.StreamHandler(stream)
        handler.addFilter(RequestIdFilter())
        handler.addFilter(SensitiveDataFilter())
        handler.setFormatter(JsonFormatter())
        logger.addHandler(handler)
        return logger, stream

    return _make


def test_sensitive_filter_redacts_api_keys(capture):
    """Ensure SensitiveDataFilter redacts API key fields."""
    logger, stream = capture("test_redaction")

    logger.info(
        "test_event",
        extra={
            "api_key": "sk-secret-123",
            "x-api-key": "another-secret",
            "safe_field": "visible",
        },
    )

    output = stream.getvalue()
    assert "sk-secret-123" not in output
    assert "another-secret" not in output
    assert "[REDACTED]" in output
    assert "visible" in output


def test_sensitive_filter_redacts_lead_pii(capture):
    """Phone numbers and raw bodies never reach the log line."""
    logger, stream = capture("test_pii_redaction")

    logger.info(
        "intake_event",
        extra={
            "phone": "13800138000",
            "body": {"name": "Zhang San", "phone": "13800138000"},
            "kind": "consultation",
        },
    )

    output = stream.getvalue()
    assert "13800138000" not in output
    assert "Zhang San" not in output
    assert "consultation" in output


def test_sensitive_filter_redacts_nested_dicts(capture):
    """Ensure nested sensitive fields are redacted."""
    logger, stream = capture("test_nested")

    logger.info(
        "nested_event",
        extra={
            "headers": {"x-api-key": "secret-key", "user-agent": "pytest"},
            "lead": {"phone": "13900139000", "source": "footer"},
        },
    )

    data = json.loads(stream.getvalue())
    assert data["headers"]["x-api-key"] == "[REDACTED]"
    assert data["headers"]["user-agent"] == "pytest"
    assert data["lead"]["phone"] == "[REDACTED]"
    assert data["lead"]["source"] == "footer"


def test_safe_fields_pass_through(capture):
    """Verify safe fields pass through unmodified."""
    logger, stream = capture("test_safe_fields")

    logger.info(
        "safe_event",
        extra={
            "request_path": "/api/leads/phone",
            "status_code": 201,
            "phone_hash": hash_for_log("13800138000"),
        },
    )

    data = json.loads(stream.getvalue())
    assert data["message"] == "safe_event"
    assert data["request_path"] == "/api/leads/phone"
    assert data["status_code"] == 201
    assert data["phone_hash"] == hash_for_log("13800138000")
    assert "[REDACTED]" not in stream.getvalue()


def test_request_id_is_attached_from_context(capture):
    logger, stream = capture("test_request_id")

    set_request_id("req-123")
    try:
        logger.info("with_context")
    finally:
        clear_request_id()

    assert json.loads(stream.getvalue())["request_id"] == "req-123"


def test_hash_for_log_is_stable_and_short():
    assert hash_for_log("13800138000") == hash_for_log("13800138000")
    assert hash_for_log("13800138000") != hash_for_log("13800138001")
    assert len(hash_for_log("13800138000")) == 16
