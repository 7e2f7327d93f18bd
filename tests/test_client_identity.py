"""Tests for client identifier extraction."""

import pytest
from starlette.datastructures import Headers
from starlette.requests import Request

from merchant_api.core.client_identity import (
    email_identifier,
    get_client_ip,
    ip_identifier,
    normalize_email,
)


def _request(headers: dict[str, str]) -> Request:
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/",
        "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
    }
    return Request(scope)


class TestGetClientIp:
    def test_uses_first_forwarded_for_entry(self) -> None:
        headers = Headers({"X-Forwarded-For": "203.0.113.4, 10.0.0.1, 10.0.0.2"})
        assert get_client_ip(headers) == "203.0.113.4"

    def test_forwarded_for_wins_over_real_ip(self) -> None:
        headers = Headers({"X-Forwarded-For": "203.0.113.4", "X-Real-IP": "198.51.100.7"})
        assert get_client_ip(headers) == "203.0.113.4"

    def test_falls_back_to_real_ip(self) -> None:
        headers = Headers({"X-Real-IP": " 198.51.100.7 "})
        assert get_client_ip(headers) == "198.51.100.7"

    def test_empty_forwarded_entry_falls_through(self) -> None:
        headers = Headers({"X-Forwarded-For": " , 10.0.0.1", "X-Real-IP": "198.51.100.7"})
        assert get_client_ip(headers) == "198.51.100.7"

    def test_sentinel_when_no_headers(self) -> None:
        assert get_client_ip(Headers({})) == "unknown"


class TestIpIdentifier:
    def test_prefixes_with_ip(self) -> None:
        request = _request({"x-forwarded-for": "203.0.113.4"})
        assert ip_identifier(request) == "ip:203.0.113.4"

    def test_header_less_requests_share_one_bucket(self) -> None:
        assert ip_identifier(_request({})) == "ip:unknown"
        assert ip_identifier(_request({"user-agent": "other-client"})) == "ip:unknown"


class TestEmailIdentifier:
    @pytest.mark.parametrize(
        "raw",
        ["Jane@X.com", "  jane@x.com  ", "JANE@X.COM\n"],
    )
    def test_normalizes_before_prefixing(self, raw: str) -> None:
        assert email_identifier(raw) == "email:jane@x.com"

    @pytest.mark.parametrize("raw", [None, "", "   "])
    def test_blank_email_uses_sentinel(self, raw) -> None:
        assert email_identifier(raw) == "email:unknown"

    def test_classes_never_collide(self) -> None:
        assert email_identifier("12345") != f"ip:{get_client_ip(Headers({'x-real-ip': '12345'}))}"

    def test_normalize_email(self) -> None:
        assert normalize_email(" Owner@Shop.Example ") == "owner@shop.example"
        assert normalize_email(None) == ""
