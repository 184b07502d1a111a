"""
Versioned latest-value store for one query.

Each publish swaps in a whole immutable QueryValue stamped with the next
sequence number for its key. Single writer (the reader), all access on
one event loop, so publish() never awaits and needs no lock.
"""

from dataclasses import replace
from typing import Optional

from ..types import QueryKey, QueryValue


class QueryStore:
    """Latest QueryValue for one key, with a per-key sequence."""

    def __init__(self, key: QueryKey):
        self.key = key
        self._current: Optional[QueryValue] = None
        self._seq = 0

    @property
    def seq(self) -> int:
        return self._seq

    @property
    def latest(self) -> QueryValue:
        """Current value; an empty NOT_AVAILABLE value before the first publish."""
        if self._current is None:
            return QueryValue(key=self.key)
        return self._current

    def publish(self, value: QueryValue) -> QueryValue:
        """Stamp value with the next sequence and make it current."""
        if value.key != self.key:
            raise ValueError(f"Store for {self.key} cannot hold {value.key}")
        self._seq += 1
        self._current = replace(value, seq=self._seq)
        return self._current
