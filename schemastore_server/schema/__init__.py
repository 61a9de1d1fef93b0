"""
Schema module for SchemaStore.

This module provides the versioned schema registry, including:
- Type definitions (SchemaId, SchemaDescriptor, SchemaEntry, ...)
- Storage adapter mapping schemas onto an ordered key/value table
- Schema registry owning versioning and lifecycle rules

Invariants:
    - Version content is immutable once written
    - Versions are assigned by the registry, never by callers
    - Adding content never creates a descriptor implicitly

How to change safely:
    - Keep the storage key layout stable
    - Route every mutation through SchemaRegistry
"""

from .registry import SchemaRegistry
from .storage import SchemaStorage
from .types import (
    SchemaDescriptor,
    SchemaEntry,
    SchemaEntryVersion,
    SchemaId,
    SchemaType,
    SchemaVersionRecord,
)

__all__ = [
    # Types
    "SchemaId",
    "SchemaType",
    "SchemaDescriptor",
    "SchemaVersionRecord",
    "SchemaEntry",
    "SchemaEntryVersion",
    # Storage
    "SchemaStorage",
    # Registry
    "SchemaRegistry",
]
