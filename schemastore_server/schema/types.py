"""
Core type definitions for the SchemaStore registry.

This module defines the foundational types for versioned schemas:
- SchemaId: Namespace-qualified identity of one logical schema
- SchemaType: Closed set of recognized schema content formats
- SchemaDescriptor: Mutable metadata of an identity
- SchemaVersionRecord: One immutable, numbered content payload
- SchemaEntry: Read model assembled from a descriptor and its versions
- SchemaEntryVersion: The (id, version) pair returned by an upload

Invariants:
    - SchemaId is immutable; equality is structural
    - Version numbers are positive integers assigned by the registry
    - Version content is never updated in place

Example:
    >>> from schemastore_server.schema.types import SchemaDescriptor, SchemaId, SchemaType
    >>> SchemaDescriptor(
    ...     id=SchemaId("default", "orders"),
    ...     name="Orders",
    ...     description="Order events",
    ...     type=SchemaType.AVRO,
    ... )
"""

from __future__ import annotations

import base64
from dataclasses import dataclass
from dataclasses import field as dataclass_field
from enum import Enum
from typing import Any


class SchemaType(Enum):
    """Recognized schema content formats."""

    AVRO = "avro"
    PROTOBUF_DESC = "protobuf-desc"
    PROTOBUF_BINARY = "protobuf-binary"
    COPYBOOK = "copybook"

    @classmethod
    def from_str(cls, value: str | None) -> SchemaType:
        """Convert a tag to SchemaType.

        Matches either the tag value (``"protobuf-desc"``) or the member
        name (``"PROTOBUF_DESC"``), case-insensitively.

        Args:
            value: Tag to convert

        Returns:
            Corresponding SchemaType

        Raises:
            ValueError: If value is not a recognized tag
        """
        if value is not None:
            normalized = value.strip().lower()
            for kind in cls:
                if normalized in (kind.value, kind.name.lower()):
                    return kind
        valid = [k.value for k in cls]
        raise ValueError(f"Invalid schema type '{value}'. Valid types: {valid}")


@dataclass(frozen=True)
class SchemaId:
    """Identity of one logical schema across all of its versions.

    Attributes:
        namespace: Namespace (context) the schema belongs to
        id: Schema id, unique within the namespace
    """

    namespace: str
    id: str

    @classmethod
    def of(cls, namespace: str, id: str) -> SchemaId:
        return cls(namespace=namespace, id=id)

    def to_dict(self) -> dict[str, str]:
        return {"namespace": self.namespace, "id": self.id}

    def __str__(self) -> str:
        return f"{self.namespace}:{self.id}"


@dataclass(frozen=True)
class SchemaDescriptor:
    """Metadata row for a schema identity.

    Attributes:
        id: Schema identity
        name: Human-readable name
        description: Free-form description
        type: Format of the content stored under this identity
    """

    id: SchemaId
    name: str
    description: str
    type: SchemaType

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation (without the id)."""
        return {
            "name": self.name,
            "description": self.description,
            "type": self.type.value,
        }

    @classmethod
    def from_dict(cls, id: SchemaId, data: dict[str, Any]) -> SchemaDescriptor:
        """Create from dictionary representation."""
        return cls(
            id=id,
            name=data["name"],
            description=data["description"],
            type=SchemaType(data["type"]),
        )


@dataclass(frozen=True)
class SchemaVersionRecord:
    """One immutable version of schema content."""

    id: SchemaId
    version: int
    content: bytes


@dataclass(frozen=True)
class SchemaEntry:
    """Schema as returned to readers.

    Attributes:
        id: Schema identity
        name: Descriptor name
        description: Descriptor description
        type: Descriptor type
        version: Version of ``content``
        content: Raw schema content of that version
        versions: Every version currently stored for the identity
    """

    id: SchemaId
    name: str
    description: str
    type: SchemaType
    version: int
    content: bytes
    versions: frozenset[int] = dataclass_field(default_factory=frozenset)

    @property
    def current(self) -> int:
        """Highest version stored for the identity."""
        return max(self.versions) if self.versions else self.version

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-ready dictionary; content is base64 encoded."""
        return {
            "id": self.id.id,
            "namespace": self.id.namespace,
            "name": self.name,
            "description": self.description,
            "type": self.type.value,
            "version": self.version,
            "current": self.current,
            "versions": sorted(self.versions),
            "specification": base64.b64encode(self.content).decode("ascii"),
        }


@dataclass(frozen=True)
class SchemaEntryVersion:
    """Result of uploading content: the id and the version it landed on."""

    id: SchemaId
    version: int

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id.id, "version": self.version}
