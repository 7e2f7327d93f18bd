"""Limiter evaluator: applies named policies to identifiers.

Keeps call sites independent of the backing store; swapping the in-memory
store for a shared one only changes what gets passed to ``RateLimiter``.
"""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

from merchant_api.adapters.rate_limit.base import AbstractWindowStore, RateLimitDecision
from merchant_api.core.rate_limit_policies import RateLimitPolicy

logger = logging.getLogger(__name__)


def combine_decisions(decisions: Sequence[RateLimitDecision]) -> RateLimitDecision:
    """Merge several decisions into one where every check must pass.

    The tightest constraint is surfaced: ``remaining`` and ``limit`` take the
    minimum, while ``reset_at`` and ``retry_after_seconds`` take the maximum
    so the caller waits for the longest blocking window.

    Args:
        decisions: At least one decision.

    Returns:
        Combined decision.

    Raises:
        ValueError: If ``decisions`` is empty.
    """
    if not decisions:
        raise ValueError("at least one decision is required")
    if len(decisions) == 1:
        return decisions[0]

    allowed = all(d.allowed for d in decisions)
    retry_after: int | None = None
    if not allowed:
        retry_after = max(d.retry_after_seconds or 0 for d in decisions)

    return RateLimitDecision(
        allowed=allowed,
        limit=min(d.limit for d in decisions),
        remaining=min(d.remaining for d in decisions),
        reset_at=max(d.reset_at for d in decisions),
        retry_after_seconds=retry_after,
    )


class RateLimiter:
    """Evaluate rate limit policies against a window store."""

    def __init__(self, store: AbstractWindowStore) -> None:
        self._store = store

    @property
    def store(self) -> AbstractWindowStore:
        return self._store

    @staticmethod
    def build_key(policy: RateLimitPolicy, identifier: str) -> str:
        """Namespace an identifier by policy so policies never share counters."""
        return f"{policy.name}:{identifier}"

    def check(self, policy: RateLimitPolicy, identifier: str) -> RateLimitDecision:
        """Consume one request from ``identifier``'s budget under ``policy``.

        Args:
            policy: Policy to apply.
            identifier: Prefixed identifier key (e.g. ``"ip:203.0.113.4"``).

        Returns:
            The store's decision, unchanged.
        """
        return self._store.check_and_increment(
            self.build_key(policy, identifier),
            window_ms=policy.window_ms,
            max_requests=policy.max_requests,
        )

    def check_all(
        self,
        checks: Iterable[tuple[RateLimitPolicy, str]],
    ) -> RateLimitDecision:
        """Run every check and admit only if all of them allow.

        Each check is evaluated (and consumes budget) even when an earlier one
        already denied, so every identifier is charged for the attempt.

        Args:
            checks: ``(policy, identifier)`` pairs.

        Returns:
            Combined decision (see ``combine_decisions``).
        """
        decisions = [self.check(policy, identifier) for policy, identifier in checks]
        return combine_decisions(decisions)
