"""Tests for sensitive data filtering in logs."""

from __future__ import annotations

import json
import logging
from io import StringIO

import pytest

from merchant_api.core.logging import (
    JsonFormatter,
    RequestIdFilter,
    SensitiveDataFilter,
    clear_request_id,
    set_request_id,
)


@pytest.fixture
def capture() -> tuple[logging.Logger, StringIO]:
    logger = logging.getLogger("test_redaction")
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


def test_redacts_service_role_key_and_authorization(capture):
    logger, stream = capture

    logger.info(
        "backend_call",
        extra={
            "service_role_key": "sr-secret-123",
            "authorization": "Bearer another-secret",
            "safe_field": "visible",
        },
    )

    output = stream.getvalue()
    assert "sr-secret-123" not in output
    assert "another-secret" not in output
    assert "[REDACTED]" in output
    assert "visible" in output


def test_redacts_client_identifiers(capture):
    logger, stream = capture

    logger.warning(
        "suspicious_request",
        extra={
            "email": "jane@x.com",
            "client_ip": "203.0.113.4",
            "key_hash": "ab12cd34ef56ab12",
        },
    )

    output = stream.getvalue()
    assert "jane@x.com" not in output
    assert "203.0.113.4" not in output
    assert "ab12cd34ef56ab12" in output


def test_redacts_nested_headers(capture):
    logger, stream = capture

    logger.info(
        "nested_event",
        extra={
            "headers": {
                "X-Forwarded-For": "203.0.113.4",
                "user-agent": "pytest",
            },
        },
    )

    output = stream.getvalue()
    assert "203.0.113.4" not in output
    assert "pytest" in output


def test_safe_fields_pass_through(capture):
    logger, stream = capture

    logger.info(
        "rate_limit.exceeded",
        extra={
            "policies": ["otp_send_ip", "otp_send_email"],
            "remaining": 0,
            "retry_after_s": 900,
        },
    )

    record = json.loads(stream.getvalue())
    assert record["message"] == "rate_limit.exceeded"
    assert record["level"] == "info"
    assert record["policies"] == ["otp_send_ip", "otp_send_email"]
    assert record["retry_after_s"] == 900


def test_request_id_is_attached_from_context(capture):
    logger, stream = capture

    set_request_id("req-abc")
    try:
        logger.info("with_context")
    finally:
        clear_request_id()

    assert json.loads(stream.getvalue())["request_id"] == "req-abc"


def test_exception_info_is_rendered(capture):
    logger, stream = capture

    try:
        raise RuntimeError("lookup failed")
    except RuntimeError:
        logger.exception("unexpected")

    record = json.loads(stream.getvalue())
    assert record["exc_type"] == "RuntimeError"
    assert "lookup failed" in record["exc"]
