"""
SchemaStore Test Suite.

This package contains:
- unit/: Unit tests (in-memory and temporary SQLite tables)
- integration/: Integration tests (HTTP API, concurrent access)
"""
