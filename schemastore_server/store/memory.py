"""
In-memory key/value table implementation for testing.

This module provides a simple in-memory table backend for:
- Unit tests
- Integration tests
- Local development without a data directory

Invariants:
    - All data is lost on process exit
    - Provides same ordering guarantees as the SQLite backend
    - Thread-safe for concurrent access

How to change safely:
    - Keep interface compatible with KeyValueTable protocol
"""

from __future__ import annotations

import bisect
import threading
from typing import Dict, Iterator, List, Optional, Tuple
import logging

from .base import prefix_successor

logger = logging.getLogger(__name__)


class InMemoryTable:
    """In-memory implementation of KeyValueTable.

    Keys live in a dict for lookups and in a sorted list for prefix scans.

    Thread safety:
        Every operation holds an internal lock. scan_prefix copies the
        matching range under the lock before yielding, so a scan never sees
        a half-applied write.

    Example:
        >>> table = InMemoryTable()
        >>> table.put(b"k", b"v")
        >>> table.get(b"k")
        b'v'
    """

    def __init__(self) -> None:
        """Initialize an empty table."""
        self._data: Dict[bytes, bytes] = {}
        self._keys: List[bytes] = []
        self._lock = threading.Lock()

    def put(self, key: bytes, value: bytes) -> None:
        with self._lock:
            if key not in self._data:
                bisect.insort(self._keys, key)
            self._data[key] = bytes(value)

    def get(self, key: bytes) -> Optional[bytes]:
        with self._lock:
            return self._data.get(key)

    def delete(self, key: bytes) -> None:
        with self._lock:
            if self._data.pop(key, None) is None:
                return
            index = bisect.bisect_left(self._keys, key)
            del self._keys[index]

    def scan_prefix(self, prefix: bytes) -> Iterator[Tuple[bytes, bytes]]:
        with self._lock:
            start = bisect.bisect_left(self._keys, prefix)
            upper = prefix_successor(prefix)
            end = len(self._keys) if upper is None else bisect.bisect_left(self._keys, upper)
            rows = [(key, self._data[key]) for key in self._keys[start:end]]
        yield from rows

    def close(self) -> None:
        with self._lock:
            self._data.clear()
            self._keys.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)
