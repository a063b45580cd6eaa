"""Caller-side retry policy: exponential backoff with jitter, 5xx only.

The server never retries on a caller's behalf. Clients decide, and this
policy encodes the documented rule: back off exponentially with jitter on
server errors, never retry client errors (429 included; wait for
``X-RateLimit-Reset`` instead).

Example:
    >>> policy = RetryPolicy(max_retries=3, base_delay=0.5)
    >>> policy.should_retry(503, attempt=0)
    True
    >>> policy.should_retry(404, attempt=0)
    False
"""

from __future__ import annotations

import random
from dataclasses import dataclass

from api_envelope.models.errors import ErrorCode, is_retryable


def is_retryable_status(status_code: int) -> bool:
    """Only 5xx responses are worth retrying."""
    return 500 <= status_code <= 599


@dataclass(frozen=True)
class RetryPolicy:
    """Exponential backoff with optional jitter.

    Delay = min(base_delay * (multiplier ** attempt), max_delay) +/- jitter

    Attributes:
        max_retries: Maximum number of retry attempts
        base_delay: Initial delay in seconds
        max_delay: Maximum delay cap in seconds
        multiplier: Exponential multiplier
        jitter_range: Jitter as a fraction of the delay (0 disables it)
    """

    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 60.0
    multiplier: float = 2.0
    jitter_range: float = 0.25

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be non-negative")
        if not 0.0 <= self.jitter_range <= 1.0:
            raise ValueError("jitter_range must be between 0 and 1")

    def next_delay(self, attempt: int) -> float:
        """Seconds to wait before retry number ``attempt`` (zero-based)."""
        delay = min(self.base_delay * (self.multiplier**attempt), self.max_delay)
        if self.jitter_range:
            jitter_amount = delay * self.jitter_range
            delay += random.uniform(-jitter_amount, jitter_amount)
        return max(0.0, delay)

    def should_retry(self, status_code: int, attempt: int) -> bool:
        """Whether a request that got ``status_code`` may be retried again."""
        return attempt < self.max_retries and is_retryable_status(status_code)

    def should_retry_code(self, code: ErrorCode | str, attempt: int) -> bool:
        """Same as :meth:`should_retry`, keyed on the envelope's error code."""
        return attempt < self.max_retries and is_retryable(code)
