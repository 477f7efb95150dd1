"""
Backoff policy for reconnecting to external dependencies.
"""

import random
import time
from typing import Optional


class RetryConfig:
    """Configuration for retry behavior.

    ``max_attempts`` bounds the number of attempts and ``max_total_time``
    bounds the wall-clock window; crossing either one ends the retry loop.
    """

    def __init__(self,
                 max_attempts: int = 3,
                 base_delay: float = 1.0,
                 max_delay: float = 60.0,
                 exponential_base: float = 2.0,
                 jitter: bool = True,
                 backoff_strategy: str = "exponential",
                 max_total_time: Optional[float] = None):
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.exponential_base = exponential_base
        self.jitter = jitter
        self.backoff_strategy = backoff_strategy
        self.max_total_time = max_total_time


class RetryBudget:
    """Tracks attempts and elapsed time against a RetryConfig."""

    def __init__(self, config: RetryConfig, clock=time.monotonic):
        self.config = config
        self._clock = clock
        self._started_at = clock()
        self.attempts = 0

    @property
    def elapsed(self) -> float:
        return self._clock() - self._started_at

    def next_delay(self) -> Optional[float]:
        """Return the delay before the next attempt, or None when exhausted."""
        if self.attempts >= self.config.max_attempts:
            return None

        delay = calculate_delay(self.attempts + 1, self.config)
        if self.config.max_total_time is not None and self.elapsed + delay > self.config.max_total_time:
            return None

        self.attempts += 1
        return delay


def calculate_delay(attempt: int, config: RetryConfig) -> float:
    """Calculate delay between retry attempts."""
    if config.backoff_strategy == "exponential":
        delay = config.base_delay * (config.exponential_base ** (attempt - 1))
    elif config.backoff_strategy == "linear":
        delay = config.base_delay * attempt
    elif config.backoff_strategy == "fixed":
        delay = config.base_delay
    else:
        delay = config.base_delay

    # Apply max delay cap
    delay = min(delay, config.max_delay)

    if config.jitter:
        jitter_amount = delay * 0.1  # 10% jitter
        delay += random.uniform(-jitter_amount, jitter_amount)

    return max(0.0, delay)
