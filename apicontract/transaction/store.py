"""
In-memory versioned key/value store.

Every key carries a version number that increases on each committed write.
commit() applies a unit of work's buffered writes only if every key it read
still has the version it saw (optimistic concurrency). commit() never
awaits, so it runs atomically with respect to other requests on the same
event loop.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .errors import TransactionConflictError

logger = logging.getLogger(__name__)


class _Missing:
    """Marks an absent (or deleted) value. Survives copying as itself."""

    def __repr__(self) -> str:
        return "MISSING"

    def __copy__(self) -> _Missing:
        return self

    def __deepcopy__(self, memo: dict[int, Any]) -> _Missing:
        return self


MISSING: Any = _Missing()
DELETED: Any = MISSING


@dataclass
class Entry:
    version: int
    value: Any


class InMemoryStore:
    """
    Versioned key/value store for units of work.

    Example:
        store = InMemoryStore({"counter": 0})
        version, value = store.read("counter")  # (1, 0)
    """

    def __init__(self, initial: Mapping[str, Any] | None = None):
        self._entries: dict[str, Entry] = {}
        self.commits = 0
        for key, value in (initial or {}).items():
            self._entries[key] = Entry(version=1, value=copy.deepcopy(value))

    def read(self, key: str) -> tuple[int, Any]:
        """Return (version, value); a missing key has version 0 and MISSING."""
        entry = self._entries.get(key)
        if entry is None:
            return 0, MISSING
        return entry.version, copy.deepcopy(entry.value)

    def version(self, key: str) -> int:
        entry = self._entries.get(key)
        return entry.version if entry else 0

    def commit(self, reads: Mapping[str, int], writes: Mapping[str, Any]) -> None:
        """
        Apply buffered writes atomically.

        Args:
            reads: key -> version observed by the unit of work
            writes: key -> new value (DELETED removes the key)

        Raises:
            TransactionConflictError: If any read key changed since it was read
        """
        conflicts = [key for key, seen in reads.items() if self.version(key) != seen]
        if conflicts:
            raise TransactionConflictError(conflicts)

        for key, value in writes.items():
            if value is DELETED:
                if key in self._entries:
                    # keep the version counter so a later re-create still conflicts
                    self._entries[key] = Entry(self._entries[key].version + 1, MISSING)
                continue
            self._entries[key] = Entry(self.version(key) + 1, copy.deepcopy(value))
        self.commits += 1
        logger.debug(f"[store] committed {len(writes)} writes")

    def snapshot(self) -> dict[str, Any]:
        """Current values of all live keys."""
        return {
            key: copy.deepcopy(entry.value)
            for key, entry in self._entries.items()
            if entry.value is not MISSING
        }

    def __contains__(self, key: str) -> bool:
        entry = self._entries.get(key)
        return entry is not None and entry.value is not MISSING


__all__ = [
    "DELETED",
    "MISSING",
    "InMemoryStore",
]
