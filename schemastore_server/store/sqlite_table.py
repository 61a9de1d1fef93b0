"""
SQLite key/value table for SchemaStore.

This module stores every registry key in one SQLite file holding a single
ordered table. It is the durable backend behind SchemaStorage.

Invariants:
    - One SQLite file per server
    - Keys are BLOBs compared bytewise, so prefix scans are range scans
    - Every statement runs in autocommit mode (single-key atomicity)

How to change safely:
    - Table migrations must be backward compatible
    - Never add multi-key transactions here; the registry composes them

Table schema:
    kv:
        - key BLOB PRIMARY KEY
        - value BLOB NOT NULL
        - updated_at INTEGER (Unix ms)
"""

from __future__ import annotations

import logging
import sqlite3
import time
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from ..errors import StorageError
from .base import prefix_successor

logger = logging.getLogger(__name__)


class SqliteTable:
    """SQLite-backed implementation of KeyValueTable.

    Thread safety:
        Each operation opens its own connection.
        SQLite handles concurrent access via WAL mode and the busy timeout.

    Example:
        >>> table = SqliteTable("/var/lib/schemastore/schemas.db")
        >>> table.put(b"key", b"value")
        >>> table.get(b"key")
        b'value'
    """

    # SQLite schema version for migrations
    SCHEMA_VERSION = 1

    def __init__(
        self,
        db_path: str,
        wal_mode: bool = True,
        busy_timeout_ms: int = 5000,
    ) -> None:
        """Initialize the table and create its schema if needed.

        Args:
            db_path: SQLite database file
            wal_mode: Enable SQLite WAL mode
            busy_timeout_ms: SQLite busy timeout
        """
        self.db_path = Path(db_path)
        self.wal_mode = wal_mode
        self.busy_timeout_ms = busy_timeout_ms

        with self._get_connection() as conn:
            self._create_schema(conn)
        logger.info("Initialized schema table", extra={"db_path": str(self.db_path)})

    @contextmanager
    def _get_connection(self) -> Iterator[sqlite3.Connection]:
        """Open a configured connection and translate backend failures.

        Yields:
            SQLite connection

        Raises:
            StorageError: If SQLite fails
        """
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            conn = sqlite3.connect(
                str(self.db_path),
                timeout=self.busy_timeout_ms / 1000.0,
                isolation_level=None,  # Autocommit
            )
        except sqlite3.Error as e:
            raise StorageError(f"Failed to open {self.db_path}: {e}") from e

        try:
            conn.execute(f"PRAGMA busy_timeout = {self.busy_timeout_ms}")
            if self.wal_mode:
                conn.execute("PRAGMA journal_mode = WAL")
            conn.execute("PRAGMA synchronous = NORMAL")

            yield conn
        except sqlite3.Error as e:
            raise StorageError(f"SQLite operation failed: {e}") from e
        finally:
            conn.close()

    def _create_schema(self, conn: sqlite3.Connection) -> None:
        """Create database schema."""
        conn.executescript("""
            -- Schema version tracking
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY,
                applied_at INTEGER NOT NULL
            );

            CREATE TABLE IF NOT EXISTS kv (
                key BLOB PRIMARY KEY,
                value BLOB NOT NULL,
                updated_at INTEGER NOT NULL
            ) WITHOUT ROWID;

            INSERT OR IGNORE INTO schema_version (version, applied_at)
            VALUES (1, strftime('%s', 'now') * 1000);
        """)

    def put(self, key: bytes, value: bytes) -> None:
        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT INTO kv (key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value,
                                               updated_at = excluded.updated_at
                """,
                (bytes(key), bytes(value), int(time.time() * 1000)),
            )

    def get(self, key: bytes) -> bytes | None:
        with self._get_connection() as conn:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (bytes(key),)).fetchone()
            if row is None:
                return None
            return bytes(row[0])

    def delete(self, key: bytes) -> None:
        with self._get_connection() as conn:
            conn.execute("DELETE FROM kv WHERE key = ?", (bytes(key),))

    def scan_prefix(self, prefix: bytes) -> Iterator[tuple[bytes, bytes]]:
        upper = prefix_successor(prefix)
        with self._get_connection() as conn:
            if upper is None:
                cursor = conn.execute(
                    "SELECT key, value FROM kv WHERE key >= ? ORDER BY key",
                    (bytes(prefix),),
                )
            else:
                cursor = conn.execute(
                    "SELECT key, value FROM kv WHERE key >= ? AND key < ? ORDER BY key",
                    (bytes(prefix), upper),
                )
            # Rows are read before the connection closes
            rows = [(bytes(k), bytes(v)) for k, v in cursor.fetchall()]
        yield from rows

    def close(self) -> None:
        # Connections are per-operation; nothing is held open
        logger.debug("Closed schema table", extra={"db_path": str(self.db_path)})
