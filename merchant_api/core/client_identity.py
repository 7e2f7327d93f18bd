"""Client identifier extraction for rate limit keys.

Identifiers are prefixed by class (``ip:``, ``email:``) so an IP-looking value
and an email-looking value can never land in the same bucket.

Known weak point: requests without forwarding headers all map to
``ip:unknown`` and share one quota. The service runs behind a reverse proxy
that always sets ``X-Forwarded-For``, so such requests are atypical.
"""

from __future__ import annotations

from typing import Mapping

from fastapi import Request

UNKNOWN_IDENTIFIER = "unknown"


def get_client_ip(headers: Mapping[str, str]) -> str:
    """Resolve the client IP from proxy headers.

    Order of preference: first entry of ``X-Forwarded-For``, then
    ``X-Real-IP``, then the ``"unknown"`` sentinel.

    Args:
        headers: Case-insensitive request headers.

    Returns:
        Client IP string or ``"unknown"``.

    Examples:
        >>> get_client_ip({"x-forwarded-for": "203.0.113.4, 10.0.0.1"})
        '203.0.113.4'
        >>> get_client_ip({"x-real-ip": " 198.51.100.7 "})
        '198.51.100.7'
        >>> get_client_ip({})
        'unknown'
    """
    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    real_ip = headers.get("x-real-ip")
    if real_ip and real_ip.strip():
        return real_ip.strip()

    return UNKNOWN_IDENTIFIER


def normalize_email(email: str | None) -> str:
    """Trim and lower-case an email address."""
    return (email or "").strip().lower()


def ip_identifier(request: Request) -> str:
    """Build the ``ip:`` identifier for an incoming request."""
    return f"ip:{get_client_ip(request.headers)}"


def email_identifier(email: str | None) -> str:
    """Build the ``email:`` identifier for a caller-supplied address.

    Blank input falls back to the ``"unknown"`` sentinel rather than failing.
    """
    return f"email:{normalize_email(email) or UNKNOWN_IDENTIFIER}"
