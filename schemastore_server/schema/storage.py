"""
Schema storage adapter.

Maps registry concepts (descriptors, version records, version counters)
onto keys of a generic ordered KeyValueTable.

Key layout, for one schema id:
    prefix   = u16 len(namespace) | namespace | u16 len(id) | id   (UTF-8)
    prefix + b"c"                        latest assigned version (u64 BE)
    prefix + b"d"                        descriptor (JSON)
    prefix + b"v" + u64 BE version       version content (raw bytes)

Invariants:
    - No id's prefix is a prefix of another id's keys (length-prefixed parts)
    - All version records of one id are contiguous and sorted by version
    - Guarantees only single-key atomicity; the registry serializes
      multi-key operations per id

How to change safely:
    - The key layout is a storage format; changing it needs a migration
"""

from __future__ import annotations

import json
import logging
import struct
from collections.abc import Iterator

from ..errors import ValidationError
from ..store.base import KeyValueTable
from .types import SchemaDescriptor, SchemaId, SchemaVersionRecord

logger = logging.getLogger(__name__)

_COUNTER = b"c"
_DESCRIPTOR = b"d"
_VERSION = b"v"

_U16 = struct.Struct(">H")
_U64 = struct.Struct(">Q")

MAX_PART_BYTES = 0xFFFF
MAX_VERSION = 2**64 - 1


def _encode_part(value: str, field_name: str) -> bytes:
    raw = value.encode("utf-8")
    if len(raw) > MAX_PART_BYTES:
        raise ValidationError(
            f"Schema {field_name} is too long ({len(raw)} bytes, at most {MAX_PART_BYTES}).",
            field_name=field_name,
        )
    return _U16.pack(len(raw)) + raw


def id_prefix(schema_id: SchemaId) -> bytes:
    """Key prefix shared by every row of ``schema_id``."""
    return _encode_part(schema_id.namespace, "namespace") + _encode_part(schema_id.id, "id")


def version_key(schema_id: SchemaId, version: int) -> bytes:
    if not 0 <= version <= MAX_VERSION:
        raise ValidationError(f"Schema version {version} is out of range.", field_name="version")
    return id_prefix(schema_id) + _VERSION + _U64.pack(version)


class SchemaStorage:
    """Registry-specific read/write/scan operations over a KeyValueTable.

    Example:
        >>> storage = SchemaStorage(InMemoryTable())
        >>> storage.write_descriptor(descriptor)
        >>> storage.read_descriptor(descriptor.id) == descriptor
        True
    """

    def __init__(self, table: KeyValueTable) -> None:
        self.table = table

    # --- Descriptor ---

    def read_descriptor(self, schema_id: SchemaId) -> SchemaDescriptor | None:
        raw = self.table.get(id_prefix(schema_id) + _DESCRIPTOR)
        if raw is None:
            return None
        return SchemaDescriptor.from_dict(schema_id, json.loads(raw.decode("utf-8")))

    def write_descriptor(self, descriptor: SchemaDescriptor) -> None:
        value = json.dumps(descriptor.to_dict(), sort_keys=True).encode("utf-8")
        self.table.put(id_prefix(descriptor.id) + _DESCRIPTOR, value)

    def delete_descriptor(self, schema_id: SchemaId) -> None:
        self.table.delete(id_prefix(schema_id) + _DESCRIPTOR)

    def has_descriptor(self, schema_id: SchemaId) -> bool:
        return self.table.get(id_prefix(schema_id) + _DESCRIPTOR) is not None

    # --- Version records ---

    def read_version(self, schema_id: SchemaId, version: int) -> SchemaVersionRecord | None:
        if version < 1:
            return None
        content = self.table.get(version_key(schema_id, version))
        if content is None:
            return None
        return SchemaVersionRecord(id=schema_id, version=version, content=content)

    def write_version(self, record: SchemaVersionRecord) -> None:
        self.table.put(version_key(record.id, record.version), record.content)

    def delete_version(self, schema_id: SchemaId, version: int) -> None:
        self.table.delete(version_key(schema_id, version))

    def scan_versions(self, schema_id: SchemaId) -> Iterator[SchemaVersionRecord]:
        """Lazily yield every version record of ``schema_id``, lowest first."""
        prefix = id_prefix(schema_id) + _VERSION
        for key, value in self.table.scan_prefix(prefix):
            (version,) = _U64.unpack(key[len(prefix):])
            yield SchemaVersionRecord(id=schema_id, version=version, content=value)

    def versions(self, schema_id: SchemaId) -> list[int]:
        return [record.version for record in self.scan_versions(schema_id)]

    # --- Version counter ---

    def read_counter(self, schema_id: SchemaId) -> int:
        """Latest version ever assigned to ``schema_id`` (0 if none)."""
        raw = self.table.get(id_prefix(schema_id) + _COUNTER)
        if raw is None:
            return 0
        (value,) = _U64.unpack(raw)
        return value

    def write_counter(self, schema_id: SchemaId, version: int) -> None:
        self.table.put(id_prefix(schema_id) + _COUNTER, _U64.pack(version))

    def delete_counter(self, schema_id: SchemaId) -> None:
        self.table.delete(id_prefix(schema_id) + _COUNTER)
