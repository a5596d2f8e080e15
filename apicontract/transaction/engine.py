"""
Unit-of-work engine.

UnitOfWork.run(attempt_fn) runs attempt_fn with a fresh TransactionContext
until it succeeds and commits, fails with a non-retryable error, or runs out
of attempts. Attempts are strictly sequential.

Example:
    uow = RetryingUnitOfWork(InMemoryStore({"n": 0}))

    async def increment(tx):
        n = await tx.get("n")
        tx.put("n", n + 1)
        return n + 1

    await uow.run(increment)  # -> 1
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from apicontract.observability import RequestLogger, get_metrics

from .context import TransactionContext
from .errors import TransactionFailedError
from .retry import DEFAULT_TX_POLICY, RetryPolicy
from .store import InMemoryStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

AttemptFn = Callable[[TransactionContext], Awaitable[T]]


class UnitOfWork(ABC):
    """Runs an attempt function inside a retryable transaction."""

    @abstractmethod
    async def run(self, attempt_fn: AttemptFn[T], *, read_only: bool = False) -> T:
        """
        Run attempt_fn until it commits.

        Args:
            attempt_fn: Async callable receiving the attempt's TransactionContext
            read_only: Refuse writes in every attempt

        Returns:
            Result of the successful attempt

        Raises:
            TransactionFailedError: If the retry budget is exhausted
            Exception: Any non-retryable error raised by attempt_fn
        """
        ...


class RetryingUnitOfWork(UnitOfWork):
    """
    Optimistic unit of work over an InMemoryStore.

    Buffered writes are committed after attempt_fn returns; a version
    conflict at commit time counts as a retryable failure of the attempt.
    """

    def __init__(
        self,
        store: InMemoryStore | None = None,
        policy: RetryPolicy | None = None,
    ):
        self.store = store if store is not None else InMemoryStore()
        self.policy = policy if policy is not None else DEFAULT_TX_POLICY

    async def run(self, attempt_fn: AttemptFn[T], *, read_only: bool = False) -> T:
        metrics = get_metrics()
        self.policy.reset()
        attempt = 0

        while True:
            attempt += 1
            metrics.record_attempt()
            tx = TransactionContext(self.store, attempt=attempt, read_only=read_only)
            try:
                result = await attempt_fn(tx)
                if not read_only:
                    self.store.commit(tx.reads, tx.writes)
            except Exception as e:
                if not self.policy.retry_if(e):
                    metrics.record_abort()
                    raise
                if not self.policy.should_retry(attempt, e):
                    metrics.record_failure()
                    logger.error(
                        f"[unit_of_work] giving up after {attempt} attempts: "
                        f"{type(e).__name__}: {e}"
                    )
                    raise TransactionFailedError(attempt, e) from e

                delay = self.policy.get_delay(attempt)
                metrics.record_retry()
                RequestLogger().attempt_failed(
                    attempt=attempt,
                    max_attempts=self.policy.max_attempts,
                    error=str(e),
                    error_type=type(e).__name__,
                    delay_ms=delay * 1000,
                )
                await asyncio.sleep(delay)
                continue
            finally:
                tx.close()

            metrics.record_commit()
            return result


def describe(uow: UnitOfWork) -> dict[str, Any]:
    """Summary of a unit of work's configuration, logged at startup."""
    if isinstance(uow, RetryingUnitOfWork):
        return {
            "engine": type(uow).__name__,
            "max_attempts": uow.policy.max_attempts,
            "backoff": type(uow.policy.backoff).__name__,
        }
    return {"engine": type(uow).__name__}


__all__ = [
    "AttemptFn",
    "RetryingUnitOfWork",
    "UnitOfWork",
    "describe",
]
