"""Tests for the limiter evaluator and composite decisions."""

from unittest.mock import Mock

import pytest

from merchant_api.adapters.rate_limit.base import RateLimitDecision
from merchant_api.adapters.rate_limit.in_memory import InMemoryWindowStore
from merchant_api.core.rate_limit_policies import (
    EMAIL_CHECK_BY_IP,
    OTP_SEND_BY_EMAIL,
    OTP_SEND_BY_IP,
    RateLimitPolicy,
)
from merchant_api.services.rate_limiter import RateLimiter, combine_decisions


@pytest.fixture
def limiter(store: InMemoryWindowStore) -> RateLimiter:
    return RateLimiter(store)


def _decision(**overrides) -> RateLimitDecision:
    base = {"allowed": True, "limit": 3, "remaining": 2, "reset_at": 1_900.0}
    base.update(overrides)
    return RateLimitDecision(**base)


class TestCheck:
    def test_passes_policy_parameters_to_store(self) -> None:
        store = Mock()
        store.check_and_increment.return_value = _decision()
        limiter = RateLimiter(store)

        result = limiter.check(OTP_SEND_BY_IP, "ip:203.0.113.4")

        store.check_and_increment.assert_called_once_with(
            "otp_send_ip:ip:203.0.113.4",
            window_ms=900_000,
            max_requests=3,
        )
        assert result == store.check_and_increment.return_value

    def test_policies_do_not_share_counters(self, limiter: RateLimiter) -> None:
        for _ in range(3):
            limiter.check(OTP_SEND_BY_IP, "ip:203.0.113.4")
        assert limiter.check(OTP_SEND_BY_IP, "ip:203.0.113.4").allowed is False

        decision = limiter.check(EMAIL_CHECK_BY_IP, "ip:203.0.113.4")
        assert decision.allowed is True
        assert decision.remaining == 9

    def test_window_boundary_for_policy(self, limiter: RateLimiter) -> None:
        policy = RateLimitPolicy(name="tiny", window_ms=1_000, max_requests=2)

        assert limiter.check(policy, "ip:9.9.9.9").remaining == 1
        assert limiter.check(policy, "ip:9.9.9.9").remaining == 0
        assert limiter.check(policy, "ip:9.9.9.9").allowed is False


class TestCheckAll:
    def test_denies_when_email_quota_exhausted_but_ip_is_fresh(
        self, limiter: RateLimiter, clock: Mock
    ) -> None:
        for _ in range(3):
            limiter.check(OTP_SEND_BY_EMAIL, "email:jane@x.com")

        clock.return_value = 1_100.0
        decision = limiter.check_all(
            [
                (OTP_SEND_BY_IP, "ip:198.51.100.7"),
                (OTP_SEND_BY_EMAIL, "email:jane@x.com"),
            ]
        )

        assert decision.allowed is False
        assert decision.remaining == 0
        assert decision.retry_after_seconds == 800

    def test_evaluates_every_check_even_after_denial(
        self, limiter: RateLimiter, store: InMemoryWindowStore
    ) -> None:
        for _ in range(3):
            limiter.check(OTP_SEND_BY_IP, "ip:198.51.100.7")

        limiter.check_all(
            [
                (OTP_SEND_BY_IP, "ip:198.51.100.7"),
                (OTP_SEND_BY_EMAIL, "email:jane@x.com"),
            ]
        )

        assert store.get_entry("otp_send_email:email:jane@x.com").count == 1

    def test_allowed_surfaces_tightest_remaining(self, limiter: RateLimiter) -> None:
        limiter.check(OTP_SEND_BY_EMAIL, "email:jane@x.com")

        decision = limiter.check_all(
            [
                (OTP_SEND_BY_IP, "ip:198.51.100.7"),
                (OTP_SEND_BY_EMAIL, "email:jane@x.com"),
            ]
        )

        assert decision.allowed is True
        assert decision.remaining == 1
        assert decision.retry_after_seconds is None


class TestCombineDecisions:
    def test_retry_after_is_maximum_of_denials(self) -> None:
        ip = _decision(allowed=False, remaining=0, reset_at=1_030.0, retry_after_seconds=30)
        email = _decision(allowed=False, remaining=0, reset_at=1_600.0, retry_after_seconds=600)

        combined = combine_decisions([ip, email])

        assert combined.allowed is False
        assert combined.retry_after_seconds == 600
        assert combined.reset_at == 1_600.0

    def test_one_denial_denies_everything(self) -> None:
        allowed = _decision(remaining=2)
        denied = _decision(allowed=False, remaining=0, retry_after_seconds=12)

        combined = combine_decisions([allowed, denied])

        assert combined.allowed is False
        assert combined.retry_after_seconds == 12
        assert combined.remaining == 0

    def test_limit_is_minimum(self) -> None:
        combined = combine_decisions([_decision(limit=10, remaining=9), _decision(limit=3, remaining=2)])

        assert combined.limit == 3
        assert combined.remaining == 2

    def test_single_decision_is_returned_unchanged(self) -> None:
        decision = _decision()
        assert combine_decisions([decision]) is decision

    def test_empty_input_rejected(self) -> None:
        with pytest.raises(ValueError):
            combine_decisions([])
