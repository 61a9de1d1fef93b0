"""
Schema Registry for SchemaStore.

The SchemaRegistry is the central authority for versioned schemas.
It provides:
- Creation and replacement of schema descriptors
- Appending immutable content versions
- Resolution of a specific or the current version
- Removal of a single version or of a whole identity

Invariants:
    - A version record exists only while its descriptor exists
    - Versions start at 1 and strictly increase per id; a number is never
      handed out twice while the identity lives, even after the latest
      version is removed
    - The current version is the highest version still stored
    - Once delete_identity() returns, no read observes the identity
    - A failed delete_identity() may leave version rows without a
      descriptor; they are unreadable and create() purges them

How to change safely:
    - Keep every mutation of one id inside _locked(id)
    - Keep reads gated on the descriptor; delete_identity removes it first

Example:
    >>> registry = SchemaRegistry(SchemaStorage(InMemoryTable()))
    >>> orders = SchemaId("default", "orders")
    >>> registry.create(SchemaDescriptor(orders, "Orders", "Order events", SchemaType.AVRO))
    >>> registry.add(orders, b'{"type": "record"}')
    1
    >>> registry.get_entry(orders).version
    1
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Dict, Optional, Set

from ..errors import RegistryError, SchemaNotFoundError, StorageError, ValidationError
from .storage import SchemaStorage
from .types import (
    SchemaDescriptor,
    SchemaEntry,
    SchemaId,
    SchemaType,
    SchemaVersionRecord,
)

logger = logging.getLogger(__name__)


class _IdLock:
    """Lock for one schema id plus the number of callers holding or waiting on it."""

    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.users = 0


class SchemaRegistry:
    """Versioned schema store on top of SchemaStorage.

    Thread-safety:
        - Mutations of one id are serialized by a per-id lock, so two
          concurrent add() calls never receive the same version and
          delete_identity() never races add() or remove_version()
        - Different ids never contend
        - Reads take no lock; each stored value is a single key

    Example:
        >>> version = registry.add(orders, content)
        >>> registry.get_versions(orders)
        {1}
    """

    def __init__(self, storage: SchemaStorage) -> None:
        self.storage = storage
        self._locks: Dict[SchemaId, _IdLock] = {}
        self._locks_guard = threading.Lock()

    @contextmanager
    def _locked(self, schema_id: SchemaId) -> Iterator[None]:
        """Hold the per-id lock; the lock entry is dropped when unused."""
        with self._locks_guard:
            entry = self._locks.get(schema_id)
            if entry is None:
                entry = self._locks[schema_id] = _IdLock()
            entry.users += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._locks_guard:
                entry.users -= 1
                if entry.users == 0:
                    del self._locks[schema_id]

    @contextmanager
    def _storage_errors(self, action: str, schema_id: SchemaId) -> Iterator[None]:
        try:
            yield
        except StorageError as e:
            logger.error(
                f"Storage failure while trying to {action} schema {schema_id}: {e}",
                exc_info=True,
            )
            raise RegistryError(f"Failed to {action} schema '{schema_id}': {e}", cause=e) from e

    def _require_descriptor(self, schema_id: SchemaId) -> SchemaDescriptor:
        descriptor = self.storage.read_descriptor(schema_id)
        if descriptor is None:
            raise SchemaNotFoundError(
                f"Schema '{schema_id}' does not exist.", schema_id=str(schema_id)
            )
        return descriptor

    @staticmethod
    def _validate(descriptor: SchemaDescriptor) -> None:
        if not descriptor.id.id:
            raise ValidationError("Schema id must be specified.", field_name="id")
        if not descriptor.name:
            raise ValidationError("Schema name must be specified.", field_name="name")
        if not descriptor.description:
            raise ValidationError(
                "Schema description must be specified.", field_name="description"
            )
        if not isinstance(descriptor.type, SchemaType):
            raise ValidationError(
                f"Schema type '{descriptor.type}' is invalid.", field_name="type"
            )

    def _purge(self, schema_id: SchemaId) -> int:
        """Delete every version record and the counter of an id. Caller holds the id lock."""
        removed = 0
        for record in list(self.storage.scan_versions(schema_id)):
            self.storage.delete_version(schema_id, record.version)
            removed += 1
        self.storage.delete_counter(schema_id)
        return removed

    def create(self, descriptor: SchemaDescriptor) -> None:
        """Create or replace the descriptor of an identity.

        Existing version records are left untouched. When no descriptor
        exists, rows left behind by an interrupted delete_identity() are
        purged first so the new identity starts empty.

        Args:
            descriptor: Descriptor to write

        Raises:
            ValidationError: If id, name or description is empty, a key part is
                too long, or the type is unknown
            RegistryError: If storage fails
        """
        self._validate(descriptor)
        with self._locked(descriptor.id), self._storage_errors("create", descriptor.id):
            if not self.storage.has_descriptor(descriptor.id):
                self._purge(descriptor.id)
            self.storage.write_descriptor(descriptor)
        logger.info(
            "Wrote schema descriptor",
            extra={
                "schema_id": str(descriptor.id),
                "schema_name": descriptor.name,
                "schema_type": descriptor.type.value,
            },
        )

    def add(self, schema_id: SchemaId, content: Optional[bytes]) -> int:
        """Append content as the next version of an identity.

        Args:
            schema_id: Identity to add to
            content: Non-empty schema content

        Returns:
            Version the content was written to

        Raises:
            ValidationError: If content is empty or absent
            SchemaNotFoundError: If the identity has no descriptor
            RegistryError: If storage fails
        """
        if not content:
            raise ValidationError("Schema content must be provided.", field_name="content")

        with self._locked(schema_id), self._storage_errors("add a version to", schema_id):
            self._require_descriptor(schema_id)
            latest = self.storage.read_counter(schema_id)
            for record in self.storage.scan_versions(schema_id):
                latest = max(latest, record.version)
            version = latest + 1
            self.storage.write_version(
                SchemaVersionRecord(id=schema_id, version=version, content=bytes(content))
            )
            self.storage.write_counter(schema_id, version)

        logger.info(
            "Added schema version",
            extra={"schema_id": str(schema_id), "version": version, "size": len(content)},
        )
        return version

    def get_entry(self, schema_id: SchemaId, version: Optional[int] = None) -> SchemaEntry:
        """Get a schema entry at ``version``, or at the current version if omitted.

        Raises:
            SchemaNotFoundError: If the identity, the version, or (for the
                current version) any version does not exist
            RegistryError: If storage fails
        """
        with self._storage_errors("read", schema_id):
            descriptor = self._require_descriptor(schema_id)
            records = list(self.storage.scan_versions(schema_id))

            if version is None:
                if not records:
                    raise SchemaNotFoundError(
                        f"Schema '{schema_id}' does not have any versions.",
                        schema_id=str(schema_id),
                    )
                selected = records[-1]
            else:
                selected = next((r for r in records if r.version == version), None)
                if selected is None:
                    raise SchemaNotFoundError(
                        f"Schema '{schema_id}' does not have version {version}.",
                        schema_id=str(schema_id),
                        version=version,
                    )

        return SchemaEntry(
            id=schema_id,
            name=descriptor.name,
            description=descriptor.description,
            type=descriptor.type,
            version=selected.version,
            content=selected.content,
            versions=frozenset(r.version for r in records),
        )

    def get_versions(self, schema_id: SchemaId) -> Set[int]:
        """All versions currently stored for an identity (possibly empty).

        Raises:
            SchemaNotFoundError: If the identity has no descriptor
            RegistryError: If storage fails
        """
        with self._storage_errors("list versions of", schema_id):
            self._require_descriptor(schema_id)
            return set(self.storage.versions(schema_id))

    def has_schema(self, schema_id: SchemaId) -> bool:
        """Whether a descriptor exists for ``schema_id``.

        Raises:
            RegistryError: If storage fails
        """
        with self._storage_errors("look up", schema_id):
            return self.storage.has_descriptor(schema_id)

    def remove_version(self, schema_id: SchemaId, version: int) -> None:
        """Delete one version record, leaving the descriptor and other versions.

        Raises:
            SchemaNotFoundError: If the identity or that version does not exist
            RegistryError: If storage fails
        """
        with self._locked(schema_id), self._storage_errors("remove a version of", schema_id):
            self._require_descriptor(schema_id)
            if self.storage.read_version(schema_id, version) is None:
                raise SchemaNotFoundError(
                    f"Schema '{schema_id}' does not have version {version}.",
                    schema_id=str(schema_id),
                    version=version,
                )
            self.storage.delete_version(schema_id, version)

        logger.info(
            "Removed schema version",
            extra={"schema_id": str(schema_id), "version": version},
        )

    def delete_identity(self, schema_id: SchemaId) -> None:
        """Delete the descriptor and every version of an identity.

        Deleting an unknown identity is a no-op; callers check has_schema()
        first when they need to report it.

        Raises:
            RegistryError: If storage fails
        """
        with self._locked(schema_id), self._storage_errors("delete", schema_id):
            # Readers gate on the descriptor, so it goes first
            self.storage.delete_descriptor(schema_id)
            removed = self._purge(schema_id)

        logger.info(
            "Deleted schema",
            extra={"schema_id": str(schema_id), "versions_removed": removed},
        )
