"""
Base protocol for the ordered key/value table underneath the registry.

This module defines the KeyValueTable protocol that all backends must
implement, plus the factory that picks a backend from configuration.

Invariants:
    - Keys and values are bytes
    - scan_prefix yields matching pairs in ascending key order
    - Each put/delete is atomic for its single key; nothing more is promised

How to change safely:
    - Protocol changes require updating all implementations
    - Multi-key consistency belongs to the callers, never to a backend
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Iterator, Optional, Protocol, Tuple, runtime_checkable
import logging

if TYPE_CHECKING:
    from ..config import Settings

logger = logging.getLogger(__name__)


def prefix_successor(prefix: bytes) -> Optional[bytes]:
    """Smallest key greater than every key starting with ``prefix``.

    Returns None when no such key exists (empty prefix or all 0xff bytes).
    """
    stripped = prefix.rstrip(b"\xff")
    if not stripped:
        return None
    return stripped[:-1] + bytes([stripped[-1] + 1])


@runtime_checkable
class KeyValueTable(Protocol):
    """Protocol for ordered key/value table backends.

    Atomicity contract:
        - put() and delete() are atomic for a single key
        - get() never observes a partially written value

    Ordering contract:
        - scan_prefix() yields keys in ascending byte order

    Example:
        >>> table = InMemoryTable()
        >>> table.put(b"a:1", b"one")
        >>> list(table.scan_prefix(b"a:"))
        [(b'a:1', b'one')]
    """

    @abstractmethod
    def put(self, key: bytes, value: bytes) -> None:
        """Write ``value`` under ``key``, replacing any existing value.

        Raises:
            StorageError: If the backend fails
        """
        ...

    @abstractmethod
    def get(self, key: bytes) -> Optional[bytes]:
        """Read the value under ``key``, or None if absent.

        Raises:
            StorageError: If the backend fails
        """
        ...

    @abstractmethod
    def delete(self, key: bytes) -> None:
        """Delete ``key``. Deleting an absent key is a no-op.

        Raises:
            StorageError: If the backend fails
        """
        ...

    @abstractmethod
    def scan_prefix(self, prefix: bytes) -> Iterator[Tuple[bytes, bytes]]:
        """Lazily yield every (key, value) whose key starts with ``prefix``.

        Raises:
            StorageError: If the backend fails
        """
        ...

    @abstractmethod
    def close(self) -> None:
        """Release backend resources."""
        ...


def create_table(settings: "Settings") -> KeyValueTable:
    """Factory function to create a table from configuration.

    Args:
        settings: Server configuration

    Returns:
        Appropriate KeyValueTable implementation

    Raises:
        ValueError: If backend is not supported
    """
    from .memory import InMemoryTable
    from .sqlite_table import SqliteTable

    if settings.storage_backend == "sqlite":
        return SqliteTable(
            str(settings.db_path),
            wal_mode=settings.wal_mode,
            busy_timeout_ms=settings.busy_timeout_ms,
        )
    elif settings.storage_backend == "memory":
        logger.warning("Using in-memory table; all schemas are lost on exit")
        return InMemoryTable()
    else:
        raise ValueError(f"Unsupported storage backend: {settings.storage_backend}")
