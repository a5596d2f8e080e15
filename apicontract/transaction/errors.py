"""Errors raised by the unit-of-work engine."""

from __future__ import annotations

from collections.abc import Iterable


class TransactionError(Exception):
    """Base class for transaction failures."""


class TransactionConflictError(TransactionError):
    """
    Another unit of work changed data this attempt read.

    Always retryable.
    """

    retryable = True

    def __init__(self, keys: Iterable[str]):
        self.keys = sorted(keys)
        super().__init__(f"conflicting writes on keys: {', '.join(self.keys)}")


class ReadOnlyTransactionError(TransactionError):
    """A read-only transaction attempted a write."""

    retryable = False


class TransactionClosedError(TransactionError):
    """A transaction context was used after its attempt ended."""

    retryable = False


class TransactionFailedError(TransactionError):
    """
    The retry budget ran out.

    Attributes:
        attempts: Number of attempts made
        last_error: Error that ended the final attempt
    """

    http_code = 500
    retryable = False

    def __init__(self, attempts: int, last_error: BaseException):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"transaction failed after {attempts} attempts: "
            f"{type(last_error).__name__}: {last_error}"
        )


__all__ = [
    "ReadOnlyTransactionError",
    "TransactionClosedError",
    "TransactionConflictError",
    "TransactionError",
    "TransactionFailedError",
]
