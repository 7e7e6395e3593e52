"""Retry budget and exponential backoff for completion calls."""

from __future__ import annotations

from dataclasses import dataclass

from llm_market_assistant.core.errors import CompletionError


@dataclass(frozen=True, slots=True)
class BackoffPolicy:
    """Attempt budget with capped exponential backoff.

    The delay after failed attempt ``n`` (1-based) is
    ``min(base_delay * exponential_base ** (n - 1), max_delay)``. No delay
    follows the final attempt.

    Attributes:
        max_attempts: Total number of sends per logical call.
        base_delay: Delay in seconds after the first failed attempt.
        max_delay: Upper bound for any single delay in seconds.
        exponential_base: Growth factor between consecutive delays.
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 5.0
    exponential_base: float = 2.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if self.base_delay < 0 or self.max_delay < 0:
            raise ValueError("Backoff delays must be non-negative")

    def delay_for(self, attempt: int) -> float:
        """Return the wait in seconds after failed attempt ``attempt``.

        Args:
            attempt: 1-based index of the attempt that just failed.

        Returns:
            Delay in seconds.
        """
        if attempt < 1:
            raise ValueError(f"attempt must be >= 1, got {attempt}")
        return min(self.base_delay * (self.exponential_base ** (attempt - 1)), self.max_delay)

    def should_retry(self, attempt: int, error: CompletionError) -> bool:
        """Decide whether another attempt follows a failed one."""
        return error.retryable and attempt < self.max_attempts
