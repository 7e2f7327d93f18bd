"""In-memory fixed-window store.

Notes:
- Per-process only: running multiple workers multiplies the effective limit,
  and a restart silently resets every client's quota.
- Thread-safe: a single lock guards the check-then-increment sequence and the
  expiry sweep, so concurrent requests can never over-admit a key.
"""

from __future__ import annotations

import asyncio
import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable

from merchant_api.adapters.rate_limit.base import AbstractWindowStore, RateLimitDecision

logger = logging.getLogger(__name__)


@dataclass
class RateLimitEntry:
    count: int
    reset_at: float


class InMemoryWindowStore(AbstractWindowStore):
    """Fixed-window counters keyed by identifier.

    A window starts with the first request seen for a key and lasts
    ``window_ms``; once ``reset_at`` has passed the entry is replaced, not
    merged. Expired entries are handled lazily on access and also removed by
    a periodic sweep that bounds memory.
    """

    def __init__(
        self,
        *,
        clock: Callable[[], float] = time.time,
        sweep_interval_seconds: float = 60.0,
    ) -> None:
        """Initialize the store.

        Args:
            clock: Time source returning UNIX time in seconds.
            sweep_interval_seconds: Delay between background sweeps.

        Raises:
            ValueError: If the sweep interval is not positive.
        """
        if sweep_interval_seconds <= 0:
            raise ValueError("sweep_interval_seconds must be > 0")

        self._clock = clock
        self._sweep_interval = sweep_interval_seconds
        self._lock = threading.Lock()
        self._entries: dict[str, RateLimitEntry] = {}
        self._sweep_task: asyncio.Task | None = None
        self._stop_event: asyncio.Event | None = None

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def entry_count(self) -> int | None:
        return len(self)

    def get_entry(self, key: str) -> RateLimitEntry | None:
        """Return a copy of the entry for ``key`` (for diagnostics and tests)."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            return RateLimitEntry(count=entry.count, reset_at=entry.reset_at)

    def check_and_increment(
        self,
        key: str,
        *,
        window_ms: int,
        max_requests: int,
    ) -> RateLimitDecision:
        """Evaluate and record one request for ``key``.

        Args:
            key: Identifier key.
            window_ms: Window length in milliseconds.
            max_requests: Allowed requests per window.

        Returns:
            RateLimitDecision with the admission outcome.

        Raises:
            ValueError: If key is empty or the window parameters are invalid.
        """
        if not key:
            raise ValueError("key must be a non-empty string")
        if window_ms <= 0:
            raise ValueError("window_ms must be > 0")
        if max_requests < 1:
            raise ValueError("max_requests must be >= 1")

        with self._lock:
            now = self._clock()
            entry = self._entries.get(key)

            if entry is None or entry.reset_at <= now:
                entry = RateLimitEntry(count=1, reset_at=now + window_ms / 1000.0)
                self._entries[key] = entry
                return RateLimitDecision(
                    allowed=True,
                    limit=max_requests,
                    remaining=max_requests - 1,
                    reset_at=entry.reset_at,
                )

            if entry.count < max_requests:
                entry.count += 1
                return RateLimitDecision(
                    allowed=True,
                    limit=max_requests,
                    remaining=max_requests - entry.count,
                    reset_at=entry.reset_at,
                )

            return RateLimitDecision(
                allowed=False,
                limit=max_requests,
                remaining=0,
                reset_at=entry.reset_at,
                retry_after_seconds=int(math.ceil(entry.reset_at - now)),
            )

    def sweep(self) -> int:
        """Remove every entry whose window has ended.

        Expiry is re-evaluated under the lock for each entry, so an entry a
        concurrent request has just recreated is never dropped.

        Returns:
            Number of entries removed.
        """
        with self._lock:
            now = self._clock()
            expired = [key for key, entry in self._entries.items() if entry.reset_at <= now]
            for key in expired:
                del self._entries[key]
            remaining = len(self._entries)

        if expired:
            logger.debug(
                "rate_limit.sweep",
                extra={"removed": len(expired), "entries": remaining},
            )
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    async def start_sweeper(self) -> None:
        """Start the background sweep task on the running event loop."""
        if self._sweep_task is not None:
            logger.debug("rate_limit.sweeper_already_running")
            return

        self._stop_event = asyncio.Event()
        self._sweep_task = asyncio.create_task(self._run_sweeps())
        logger.info(
            "rate_limit.sweeper_started",
            extra={"interval_s": self._sweep_interval},
        )

    async def stop_sweeper(self) -> None:
        """Stop the background sweep task, cancelling it if it does not exit."""
        if self._sweep_task is None:
            return

        assert self._stop_event is not None
        self._stop_event.set()

        try:
            await asyncio.wait_for(self._sweep_task, timeout=5.0)
        except asyncio.TimeoutError:
            logger.warning("rate_limit.sweeper_stop_timeout")
            self._sweep_task.cancel()
            try:
                await self._sweep_task
            except asyncio.CancelledError:
                pass
        finally:
            self._sweep_task = None
            self._stop_event = None
            logger.info("rate_limit.sweeper_stopped")

    async def _run_sweeps(self) -> None:
        stop_event = self._stop_event
        assert stop_event is not None
        while not stop_event.is_set():
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self._sweep_interval)
            except asyncio.TimeoutError:
                # Interval elapsed
                self.sweep()
