"""Tests for the named policy table."""

import pytest

from merchant_api.core.rate_limit_policies import (
    EMAIL_CHECK_BY_IP,
    EMAIL_CHECK_NOTICE,
    OTP_SEND_BY_EMAIL,
    OTP_SEND_BY_IP,
    OTP_SEND_NOTICE,
    POLICY_TABLE,
    RateLimitPolicy,
)


def test_otp_policies_allow_three_per_fifteen_minutes() -> None:
    for policy in (OTP_SEND_BY_IP, OTP_SEND_BY_EMAIL):
        assert policy.window_ms == 900_000
        assert policy.max_requests == 3


def test_email_check_allows_ten_per_minute() -> None:
    assert EMAIL_CHECK_BY_IP.window_ms == 60_000
    assert EMAIL_CHECK_BY_IP.max_requests == 10


def test_table_is_keyed_by_unique_names() -> None:
    assert set(POLICY_TABLE) == {"otp_send_ip", "otp_send_email", "email_check_ip"}
    assert POLICY_TABLE["otp_send_email"] is OTP_SEND_BY_EMAIL


@pytest.mark.parametrize(
    "kwargs",
    [
        {"name": "", "window_ms": 1_000, "max_requests": 1},
        {"name": "p", "window_ms": 0, "max_requests": 1},
        {"name": "p", "window_ms": 1_000, "max_requests": 0},
    ],
)
def test_invalid_policy_rejected(kwargs: dict) -> None:
    with pytest.raises(ValueError):
        RateLimitPolicy(**kwargs)


def test_notices_embed_wait_time() -> None:
    assert OTP_SEND_NOTICE.render(42) == "Please wait 42 seconds before requesting another code."
    assert "7 seconds" in EMAIL_CHECK_NOTICE.render(7)
    assert OTP_SEND_NOTICE.error == "Too many OTP requests"
