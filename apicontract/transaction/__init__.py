"""
Unit-of-work engine for transactional APIs.

See engine.py for the retry loop and store.py for the optimistic store.
"""

from .context import TransactionContext
from .engine import RetryingUnitOfWork, UnitOfWork, describe
from .errors import (
    ReadOnlyTransactionError,
    TransactionClosedError,
    TransactionConflictError,
    TransactionError,
    TransactionFailedError,
)
from .retry import (
    DEFAULT_TX_POLICY,
    BackoffStrategy,
    ConstantBackoff,
    ExponentialBackoff,
    NoBackoff,
    RetryPolicy,
    is_retryable,
)
from .store import DELETED, MISSING, InMemoryStore

__all__ = [
    "DEFAULT_TX_POLICY",
    "DELETED",
    "MISSING",
    # Retry
    "BackoffStrategy",
    "ConstantBackoff",
    "ExponentialBackoff",
    # Store
    "InMemoryStore",
    "NoBackoff",
    "ReadOnlyTransactionError",
    "RetryPolicy",
    # Engine
    "RetryingUnitOfWork",
    "TransactionClosedError",
    "TransactionConflictError",
    "TransactionContext",
    # Errors
    "TransactionError",
    "TransactionFailedError",
    "UnitOfWork",
    "describe",
    "is_retryable",
]
