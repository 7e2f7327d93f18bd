"""Window store interfaces.

The limiter depends on this abstraction (not the concrete implementation)
so the in-memory store can be swapped for a shared counter service later
with no changes at the call sites.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of a single admission check.

    Attributes:
        allowed: Whether the request is allowed to proceed.
        limit: Max requests per window for the governing policy.
        remaining: Requests left in the current window (0 when blocked).
        reset_at: UNIX epoch seconds when the current window ends.
        retry_after_seconds: Whole seconds until ``reset_at``; only set when blocked.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: float
    retry_after_seconds: int | None = None


class AbstractWindowStore(ABC):
    """Interface for fixed-window counter stores."""

    @abstractmethod
    def check_and_increment(
        self,
        key: str,
        *,
        window_ms: int,
        max_requests: int,
    ) -> RateLimitDecision:
        """Atomically evaluate and record one request for ``key``.

        Args:
            key: Opaque identifier key (e.g. ``"ip:203.0.113.4"``).
            window_ms: Window length in milliseconds.
            max_requests: Allowed requests per window.

        Returns:
            RateLimitDecision describing whether the request was admitted.
        """
        raise NotImplementedError

    def entry_count(self) -> int | None:
        """Number of tracked windows, or None when the backend cannot tell."""
        return None
