"""Retry policy for task workers.

RetryPolicy defines how many times a failing worker is retried and how
long to wait between attempts. The delay is fixed by default; a backoff
greater than 1.0 makes it grow geometrically.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RetryPolicy:
    """Retry configuration for a task.

    Attributes:
        max_retries: Retries after the first attempt (0 = run once).
        retry_interval: Delay before the first retry, in seconds.
        retry_backoff: Multiplier for the delay after each retry.
            E.g., 2.0 means delays are 1s, 2s, 4s, 8s...

    Example:
        # Retry up to 3 times, half a second apart
        policy = RetryPolicy(max_retries=3, retry_interval=0.5)

        # Exponential backoff starting at 1s
        policy = RetryPolicy(max_retries=4, retry_interval=1.0, retry_backoff=2.0)
    """

    max_retries: int = 0
    retry_interval: float = 0.0
    retry_backoff: float = 1.0

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries cannot be negative")

        if self.retry_interval < 0:
            raise ValueError("retry_interval cannot be negative")

        if self.retry_backoff < 1.0:
            raise ValueError("retry_backoff must be >= 1.0")

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def get_delay_for_retry(self, retry: int) -> float:
        """Delay in seconds before retry number ``retry`` (0-indexed)."""
        return self.retry_interval * (self.retry_backoff**retry)

    def should_retry(self, retry_count: int) -> bool:
        """True if another retry is allowed after ``retry_count`` retries."""
        return retry_count < self.max_retries
