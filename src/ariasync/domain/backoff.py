"""Domain model for the reconnection backoff schedule."""

import random
from dataclasses import dataclass


@dataclass
class BackoffConfig:
    """Linear backoff with a ceiling and a periodic counter reset.

    The connection retry driver never gives up: after reset_after attempts the
    attempt counter starts over instead of stopping.
    """

    base_delay: float = 2.0  # Delay after the first failed attempt
    step: float = 1.0  # Added per further attempt
    max_delay: float = 10.0  # Cap
    reset_after: int = 10  # Attempts before the counter resets
    jitter: bool = False  # Add randomness to spread reconnect storms

    def delay_for(self, attempt: int) -> float:
        """
        Calculate the wait after the given failed attempt.

        Formula: min(base_delay + step * (attempt - 1), max_delay)

        Args:
            attempt: Failed attempt number (1-indexed)

        Returns:
            Delay in seconds with optional jitter

        Examples:
            >>> config = BackoffConfig()
            >>> [config.delay_for(n) for n in (1, 2, 3)]
            [2.0, 3.0, 4.0]
            >>> config.delay_for(20)
            10.0
        """
        attempt = max(attempt, 1)
        delay = min(self.base_delay + self.step * (attempt - 1), self.max_delay)

        if self.jitter:
            # ±10% keeps the delay close to the schedule
            jitter_amount = delay * 0.1
            delay = max(0.0, delay + random.uniform(-jitter_amount, jitter_amount))

        return delay

    def next_attempt(self, attempt: int) -> int:
        """Advance the attempt counter, wrapping to 1 after reset_after."""
        if attempt >= self.reset_after:
            return 1
        return attempt + 1
