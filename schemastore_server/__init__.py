"""
SchemaStore Server - Versioned schema registry.

This package implements a small registry that associates a namespace-scoped
schema id with immutable, numbered versions of binary schema content plus
mutable descriptive metadata:
- Schema descriptors and version records on an ordered key/value table
- SQLite as the durable table, in-memory for tests
- A REST API over aiohttp
- JSON functions for normalizing and querying semi-structured values

Architecture:
    ┌─────────────┐     ┌─────────────┐     ┌────────────────┐
    │   Client    │────▶│    HTTP     │────▶│ SchemaService  │
    └─────────────┘     │   Server    │     │   (façade)     │
                        └─────────────┘     └───────┬────────┘
                                                    │
                                                    ▼
                                           ┌────────────────┐
                                           │ SchemaRegistry │
                                           └───────┬────────┘
                                                   │
                                                   ▼
                                           ┌────────────────┐
                                           │ SchemaStorage  │
                                           └───────┬────────┘
                                                   │
                                                   ▼
                                           ┌────────────────┐
                                           │ KeyValueTable  │
                                           │(SQLite/memory) │
                                           └────────────────┘

Invariants:
    - Version content is immutable once written
    - Versions start at 1 and strictly increase per schema id
    - Adding content never creates a schema id implicitly

How to change safely:
    - Keep the storage key layout stable (see schema/storage.py)
    - Keep every mutation of one id under the registry's per-id lock
"""

from ._version import __version__

__all__ = ["__version__"]
