"""Per-client fixed-window rate limiter.

Windows are aligned to multiples of ``window_seconds`` since the epoch, so
every client shares the same reset instant and ``X-RateLimit-Reset`` is an
exact epoch second. Counters live in memory behind an ``asyncio.Lock`` per
client identity.
"""

from __future__ import annotations

import logging
import time
from asyncio import Lock
from dataclasses import dataclass

from api_envelope.exceptions import RateLimitExceededError
from api_envelope.models.envelope import RateLimitState

logger = logging.getLogger(__name__)


@dataclass
class _WindowCounter:
    """Request count for one client within one window."""

    window_start: int
    count: int = 0


class RateLimiter:
    """Fixed-window rate limiter keyed by client identity.

    Args:
        window_seconds: Length of each quota window in seconds.
    """

    def __init__(self, window_seconds: int = 3600) -> None:
        if window_seconds < 1:
            raise ValueError("window_seconds must be at least 1")
        self.window_seconds = window_seconds
        self._counters: dict[str, _WindowCounter] = {}
        self._locks: dict[str, Lock] = {}
        self._active_window: int | None = None

    def __len__(self) -> int:
        return len(self._counters)

    def _get_lock(self, identity: str) -> Lock:
        if identity not in self._locks:
            self._locks[identity] = Lock()
        return self._locks[identity]

    def _window_start(self, now: float) -> int:
        current = int(now)
        return current - current % self.window_seconds

    def _current_counter(self, identity: str, now: float) -> _WindowCounter:
        window_start = self._window_start(now)
        counter = self._counters.get(identity)
        if counter is None or counter.window_start != window_start:
            counter = _WindowCounter(window_start=window_start)
            self._counters[identity] = counter
        return counter

    def _state(self, counter: _WindowCounter, limit: int) -> RateLimitState:
        return RateLimitState(
            limit=limit,
            remaining=max(0, limit - counter.count),
            reset_epoch_seconds=counter.window_start + self.window_seconds,
            window_seconds=self.window_seconds,
        )

    async def hit(self, identity: str, limit: int) -> RateLimitState:
        """Count a request for ``identity`` and return its updated quota.

        Args:
            identity: Client key, e.g. ``user:<sub>`` or ``ip:<address>``.
            limit: Requests allowed per window for this client.

        Returns:
            The client's quota after this request was counted.

        Raises:
            RateLimitExceededError: When the window's quota is already used up.
                Rejected requests are not counted.
        """
        async with self._get_lock(identity):
            now = time.time()
            self._roll_window(now)
            counter = self._current_counter(identity, now)

            if counter.count >= limit:
                state = self._state(counter, limit)
                exc = RateLimitExceededError(identity, state, now=now)
                logger.warning(
                    "Rate limit exceeded",
                    extra={
                        "client_id": identity,
                        "retry_after_seconds": exc.retry_after,
                    },
                )
                raise exc

            counter.count += 1
            return self._state(counter, limit)

    async def peek(self, identity: str, limit: int) -> RateLimitState:
        """Return the client's current quota without counting a request."""
        async with self._get_lock(identity):
            return self._state(self._current_counter(identity, time.time()), limit)

    def _roll_window(self, now: float) -> None:
        window_start = self._window_start(now)
        if window_start != self._active_window:
            self._active_window = window_start
            self.prune(now)

    def prune(self, now: float | None = None) -> int:
        """Drop counters whose window has ended. Returns how many were removed.

        Called automatically by :meth:`hit` on the first request of each new
        window. Clients whose lock is held are kept until the next rollover.
        """
        current_start = self._window_start(time.time() if now is None else now)
        stale = [
            identity
            for identity, counter in self._counters.items()
            if counter.window_start != current_start and not self._get_lock(identity).locked()
        ]
        for identity in stale:
            del self._counters[identity]
            self._locks.pop(identity, None)
        return len(stale)

    def reset(self) -> None:
        """Forget every client's counters."""
        self._counters.clear()
        self._locks.clear()
        self._active_window = None
