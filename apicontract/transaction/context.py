"""
Transaction context for one unit-of-work attempt.

A fresh TransactionContext is created for every attempt and closed when the
attempt ends. Reads go to the store and record the version seen; writes
are buffered and only reach the store when the unit of work commits.
Values are copied on the way in and out, so handler code never holds a
reference into the store.
"""

from __future__ import annotations

import copy
from typing import Any

from .errors import ReadOnlyTransactionError, TransactionClosedError
from .store import DELETED, MISSING, InMemoryStore


class TransactionContext:
    """
    Attempt-scoped view of an InMemoryStore.

    Attributes:
        attempt: Attempt number within the unit of work (1-indexed)
        read_only: Whether writes are refused
    """

    def __init__(self, store: InMemoryStore, attempt: int = 1, read_only: bool = False):
        self._store = store
        self.attempt = attempt
        self.read_only = read_only
        self._reads: dict[str, int] = {}
        self._writes: dict[str, Any] = {}
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def reads(self) -> dict[str, int]:
        return dict(self._reads)

    @property
    def writes(self) -> dict[str, Any]:
        return dict(self._writes)

    async def get(self, key: str, default: Any = None, *, create_if_missing: bool = False) -> Any:
        """
        Read a value.

        Args:
            key: Key to read
            default: Returned when the key does not exist
            create_if_missing: Also buffer a write of `default` for a missing key
        """
        self._check_open()
        if key in self._writes:
            value = self._writes[key]
            return copy.deepcopy(default if value is DELETED else value)

        version, value = self._store.read(key)
        self._reads.setdefault(key, version)
        if value is MISSING:
            if create_if_missing:
                self.put(key, default)
            return copy.deepcopy(default)
        return value

    def put(self, key: str, value: Any) -> None:
        """Buffer a write of `value` to `key`."""
        self._check_writable()
        self._writes[key] = copy.deepcopy(value)

    def delete(self, key: str) -> None:
        """Buffer the removal of `key`."""
        self._check_writable()
        self._writes[key] = DELETED

    def make_read_only(self) -> None:
        self.read_only = True

    def close(self) -> None:
        self._closed = True

    def _check_open(self) -> None:
        if self._closed:
            raise TransactionClosedError(
                f"transaction of attempt {self.attempt} is closed; "
                "contexts must not outlive their attempt"
            )

    def _check_writable(self) -> None:
        self._check_open()
        if self.read_only:
            raise ReadOnlyTransactionError("cannot write in a read-only transaction")


__all__ = [
    "TransactionContext",
]
