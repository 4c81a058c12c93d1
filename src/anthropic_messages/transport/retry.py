"""
Backoff policy for non-streaming requests.

Only whole-response POSTs are retried. A stream is never replayed once it
has been opened, so ``stream_post`` does not consult this policy.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from enum import Enum

from anthropic_messages.errors import ApiError, ErrorKind


class JitterStrategy(str, Enum):
    """Jitter strategy for retry delays."""

    NONE = "none"
    FULL = "full"
    EQUAL = "equal"


@dataclass(frozen=True)
class RetryConfig:
    """Exponential backoff settings.

    Attributes:
        max_retries: Retries after the first attempt (0 disables retrying)
        min_delay_ms: Delay before the first retry in milliseconds
        max_delay_ms: Upper bound for a computed delay in milliseconds
        jitter: Jitter strategy applied to computed delays
        exponential_base: Growth factor between attempts
        retry_on_kinds: Error kinds that are retried
    """

    max_retries: int = 3
    min_delay_ms: int = 500
    max_delay_ms: int = 30000
    jitter: JitterStrategy = JitterStrategy.FULL
    exponential_base: float = 2.0
    retry_on_kinds: frozenset[ErrorKind] = field(
        default_factory=lambda: frozenset({ErrorKind.RATE_LIMITED, ErrorKind.OVERLOADED})
    )

    @classmethod
    def no_retry(cls) -> RetryConfig:
        """Create a config that disables retries."""
        return cls(max_retries=0)

    @property
    def enabled(self) -> bool:
        return self.max_retries > 0


class RetryPolicy:
    """Decides whether and how long to wait before retrying a request.

    Example:
        >>> policy = RetryPolicy(RetryConfig(max_retries=2))
        >>> policy.should_retry(error, attempt=0)
        True
    """

    def __init__(self, config: RetryConfig | None = None) -> None:
        self._config = config or RetryConfig()

    @property
    def config(self) -> RetryConfig:
        return self._config

    def calculate_delay(self, attempt: int, retry_after: float | None = None) -> float:
        """Calculate the delay before a retry.

        Args:
            attempt: Attempt that just failed (0-based)
            retry_after: Server ``retry-after`` hint in seconds

        Returns:
            Delay in seconds
        """
        # A server hint wins over the computed delay
        if retry_after is not None and retry_after > 0:
            return retry_after

        base_ms = min(
            self._config.min_delay_ms * (self._config.exponential_base**attempt),
            self._config.max_delay_ms,
        )

        if self._config.jitter == JitterStrategy.FULL:
            delay_ms = random.uniform(0, base_ms)
        elif self._config.jitter == JitterStrategy.EQUAL:
            delay_ms = base_ms / 2 + random.uniform(0, base_ms / 2)
        else:
            delay_ms = base_ms

        return delay_ms / 1000.0

    def should_retry(self, error: Exception, attempt: int) -> bool:
        """Check whether a failed attempt should be retried.

        Args:
            error: Error raised by the attempt
            attempt: Attempt that failed (0-based)

        Returns:
            True if another attempt is allowed
        """
        if attempt >= self._config.max_retries:
            return False
        return isinstance(error, ApiError) and error.kind in self._config.retry_on_kinds
