"""Named rate limit policies for the protected auth capabilities.

Quotas are deploy-time constants: changing them means shipping a new build,
not flipping a setting.

| Policy            | Window  | Max | Protects                          |
|-------------------|---------|-----|-----------------------------------|
| otp_send_ip       | 15 min  | 3   | OTP dispatch, keyed by client IP  |
| otp_send_email    | 15 min  | 3   | OTP dispatch, keyed by email      |
| email_check_ip    | 1 min   | 10  | email existence lookup, by IP     |
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitPolicy:
    """Fixed-window quota applied to one identifier class.

    Attributes:
        name: Stable policy name, also used to namespace store keys.
        window_ms: Window length in milliseconds.
        max_requests: Allowed requests per window.
    """

    name: str
    window_ms: int
    max_requests: int

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("policy name must be non-empty")
        if self.window_ms <= 0:
            raise ValueError("window_ms must be > 0")
        if self.max_requests < 1:
            raise ValueError("max_requests must be >= 1")


@dataclass(frozen=True)
class ThrottleNotice:
    """User-facing wording for a throttled capability."""

    error: str
    message_template: str

    def render(self, retry_after: int) -> str:
        return self.message_template.format(retry_after=retry_after)


OTP_SEND_BY_IP = RateLimitPolicy(name="otp_send_ip", window_ms=15 * 60 * 1000, max_requests=3)
OTP_SEND_BY_EMAIL = RateLimitPolicy(name="otp_send_email", window_ms=15 * 60 * 1000, max_requests=3)
EMAIL_CHECK_BY_IP = RateLimitPolicy(name="email_check_ip", window_ms=60 * 1000, max_requests=10)

POLICY_TABLE: dict[str, RateLimitPolicy] = {
    policy.name: policy
    for policy in (OTP_SEND_BY_IP, OTP_SEND_BY_EMAIL, EMAIL_CHECK_BY_IP)
}

OTP_SEND_NOTICE = ThrottleNotice(
    error="Too many OTP requests",
    message_template="Please wait {retry_after} seconds before requesting another code.",
)
EMAIL_CHECK_NOTICE = ThrottleNotice(
    error="Too many email checks",
    message_template="Please wait {retry_after} seconds before checking another email.",
)
