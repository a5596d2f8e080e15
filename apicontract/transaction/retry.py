"""
Retry policy for units of work.

A unit of work re-runs an attempt when it fails with a retryable error:
- errors with a truthy `retryable` attribute (e.g. TransactionConflictError)
- nothing else; completion signals and TransactionAborted are never retried

BackoffStrategy subclasses decide how long to wait between attempts.
"""

from __future__ import annotations

import random
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field

from .errors import TransactionConflictError


def is_retryable(exc: BaseException) -> bool:
    """True if a failed attempt may be re-run."""
    if isinstance(exc, TransactionConflictError):
        return True
    return getattr(exc, "retryable", False) is True


# =============================================================================
# Backoff Strategies
# =============================================================================


class BackoffStrategy(ABC):
    """Delay calculation between attempts."""

    @abstractmethod
    def get_delay(self, attempt: int) -> float:
        """
        Delay before the attempt after `attempt`.

        Args:
            attempt: Number of the attempt that just failed (1-indexed)

        Returns:
            Delay in seconds
        """
        ...

    def reset(self) -> None:
        """Reset any internal state before a new unit of work."""


@dataclass
class NoBackoff(BackoffStrategy):
    """Re-run immediately. Suits tests and in-memory stores."""

    def get_delay(self, attempt: int) -> float:
        return 0.0


@dataclass
class ConstantBackoff(BackoffStrategy):
    """
    Fixed delay between attempts.

    Example:
        backoff = ConstantBackoff(delay=0.05)
    """

    delay: float = 0.05

    def get_delay(self, attempt: int) -> float:
        return self.delay


@dataclass
class ExponentialBackoff(BackoffStrategy):
    """
    Exponentially increasing delay, with optional jitter.

    delay = base * (multiplier ^ (attempt - 1)), capped at max_delay

    Example:
        backoff = ExponentialBackoff(base=0.01, multiplier=2.0, max_delay=1.0)
        # Attempt 1: 10ms, Attempt 2: 20ms, Attempt 3: 40ms, ...
    """

    base: float = 0.01
    multiplier: float = 2.0
    max_delay: float = 1.0
    jitter: bool = True
    jitter_factor: float = 0.25  # +/- 25%

    def get_delay(self, attempt: int) -> float:
        delay = self.base * (self.multiplier ** (attempt - 1))
        delay = min(delay, self.max_delay)

        if self.jitter:
            jitter_range = delay * self.jitter_factor
            delay += random.uniform(-jitter_range, jitter_range)
            delay = max(0, delay)

        return delay


# =============================================================================
# Retry Policy
# =============================================================================


@dataclass
class RetryPolicy:
    """
    Retry budget of a unit of work.

    Example:
        policy = RetryPolicy(max_attempts=3, backoff=NoBackoff())
    """

    max_attempts: int = 4
    backoff: BackoffStrategy = field(default_factory=ExponentialBackoff)
    retry_if: Callable[[BaseException], bool] = is_retryable

    def should_retry(self, attempt: int, error: BaseException) -> bool:
        """
        Determine if another attempt should run.

        Args:
            attempt: Number of the attempt that just failed (1-indexed)
            error: Exception that ended the attempt
        """
        if attempt >= self.max_attempts:
            return False
        return self.retry_if(error)

    def get_delay(self, attempt: int) -> float:
        return self.backoff.get_delay(attempt)

    def reset(self) -> None:
        self.backoff.reset()


DEFAULT_TX_POLICY = RetryPolicy(
    max_attempts=4,
    backoff=ExponentialBackoff(base=0.01, multiplier=2.0, max_delay=0.5),
)


__all__ = [
    "DEFAULT_TX_POLICY",
    "BackoffStrategy",
    "ConstantBackoff",
    "ExponentialBackoff",
    "NoBackoff",
    "RetryPolicy",
    "is_retryable",
]
