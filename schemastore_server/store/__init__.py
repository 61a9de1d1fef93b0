"""
Key/value table abstraction for SchemaStore.

This module provides a pluggable ordered table supporting:
- SQLite (durable, default)
- In-memory (for testing)

Invariants:
    - put()/delete() are atomic per key
    - scan_prefix() yields keys in ascending order
    - Backend failures surface as StorageError

How to change safely:
    - New backends must implement KeyValueTable protocol
"""

from .base import KeyValueTable, create_table, prefix_successor
from .memory import InMemoryTable
from .sqlite_table import SqliteTable

__all__ = [
    # Protocol
    "KeyValueTable",
    "prefix_successor",
    # Factory
    "create_table",
    # Implementations
    "SqliteTable",
    "InMemoryTable",
]
