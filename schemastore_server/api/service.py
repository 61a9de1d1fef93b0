"""
Request façade for SchemaStore.

SchemaService maps every external operation 1:1 onto a SchemaRegistry call
and translates the outcome into a ServiceResponse envelope. Transports
(the HTTP server) only parse requests and serialize envelopes.

Invariants:
    - No business logic lives here beyond identity construction
      (namespace defaulting) and outcome translation
    - SchemaNotFoundError maps to 404; ValidationError and RegistryError
      map to 500
    - Every envelope has the same shape: status, message, count, values

How to change safely:
    - Add operations to the registry first, then expose them here
    - Keep envelope fields stable; clients parse them
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from pydantic import BaseModel, Field, model_validator

from ..errors import RegistryError, SchemaNotFoundError, ValidationError
from ..schema import (
    SchemaDescriptor,
    SchemaEntryVersion,
    SchemaId,
    SchemaRegistry,
    SchemaType,
)

logger = logging.getLogger(__name__)

OK = 200
NOT_FOUND = 404
ERROR = 500


class ServiceResponse(BaseModel):
    """Response envelope shared by success and error outcomes."""

    status: int = Field(default=OK, description="HTTP-style status code")
    message: str = Field(default="Success", description="Human-readable outcome")
    count: int = Field(default=0, description="Number of entries in values")
    values: list[Any] = Field(default_factory=list, description="Result payload")

    @model_validator(mode="after")
    def _sync_count(self) -> ServiceResponse:
        self.count = len(self.values)
        return self

    @property
    def ok(self) -> bool:
        return self.status == OK


def success(message: str = "Success", values: Optional[list[Any]] = None) -> ServiceResponse:
    return ServiceResponse(status=OK, message=message, values=values or [])


def not_found(message: str) -> ServiceResponse:
    return ServiceResponse(status=NOT_FOUND, message=message)


def error(message: str) -> ServiceResponse:
    return ServiceResponse(status=ERROR, message=message)


class SchemaService:
    """Schema management operations exposed to transports.

    Attributes:
        registry: Schema registry doing the work
        default_namespace: Namespace used when a request does not name one

    Example:
        >>> service = SchemaService(registry)
        >>> service.create(None, "orders", "Orders", "Order events", "avro").status
        200
        >>> service.add(None, "orders", b"...").values
        [{'id': 'orders', 'version': 1}]
    """

    def __init__(self, registry: SchemaRegistry, default_namespace: str = "default") -> None:
        self.registry = registry
        self.default_namespace = default_namespace

    def schema_id(self, namespace: Optional[str], id: Optional[str]) -> SchemaId:
        return SchemaId.of(namespace or self.default_namespace, id or "")

    def _call(self, operation: str, schema_id: SchemaId, fn: Callable[[], ServiceResponse]) -> ServiceResponse:
        try:
            return fn()
        except SchemaNotFoundError as e:
            logger.warning(
                f"{operation} failed: {e.message}",
                extra={"schema_id": str(schema_id), "error_code": e.code},
            )
            return not_found(e.message)
        except ValidationError as e:
            logger.warning(
                f"{operation} rejected: {e.message}",
                extra={"schema_id": str(schema_id), "error_code": e.code},
            )
            return error(e.message)
        except RegistryError as e:
            logger.error(
                f"{operation} failed: {e.message}",
                extra={"schema_id": str(schema_id), "error_code": e.code},
            )
            return error(e.message)

    def create(
        self,
        namespace: Optional[str],
        id: Optional[str],
        name: Optional[str],
        description: Optional[str],
        type: Optional[str],
    ) -> ServiceResponse:
        """Create an entry for a schema, overwriting the metadata if the id exists."""
        schema_id = self.schema_id(namespace, id)

        def run() -> ServiceResponse:
            try:
                schema_type: Any = SchemaType.from_str(type)
            except ValueError:
                schema_type = type
            self.registry.create(
                SchemaDescriptor(
                    id=schema_id,
                    name=name or "",
                    description=description or "",
                    type=schema_type,
                )
            )
            return success(
                f"Successfully created schema entry with id '{schema_id.id}', name '{name}'"
            )

        return self._call("create", schema_id, run)

    def add(self, namespace: Optional[str], id: str, content: Optional[bytes]) -> ServiceResponse:
        """Upload content as the next version of a schema."""
        schema_id = self.schema_id(namespace, id)

        def run() -> ServiceResponse:
            version = self.registry.add(schema_id, content)
            return success(values=[SchemaEntryVersion(schema_id, version).to_dict()])

        return self._call("add", schema_id, run)

    def delete_identity(self, namespace: Optional[str], id: str) -> ServiceResponse:
        """Delete a schema and all of its versions."""
        schema_id = self.schema_id(namespace, id)

        def run() -> ServiceResponse:
            if not self.registry.has_schema(schema_id):
                return not_found(f"Id {schema_id} not found.")
            self.registry.delete_identity(schema_id)
            return success(f"Successfully deleted schema {schema_id}")

        return self._call("delete", schema_id, run)

    def delete_version(self, namespace: Optional[str], id: str, version: int) -> ServiceResponse:
        """Delete one version of a schema."""
        schema_id = self.schema_id(namespace, id)

        def run() -> ServiceResponse:
            self.registry.remove_version(schema_id, version)
            return success(f"Successfully deleted version '{version}' of schema {schema_id}")

        return self._call("delete version", schema_id, run)

    def get_entry(
        self, namespace: Optional[str], id: str, version: Optional[int] = None
    ) -> ServiceResponse:
        """Get a schema at ``version``, or at its current version if omitted."""
        schema_id = self.schema_id(namespace, id)

        def run() -> ServiceResponse:
            entry = self.registry.get_entry(schema_id, version)
            return success(values=[entry.to_dict()])

        return self._call("get", schema_id, run)

    def get_versions(self, namespace: Optional[str], id: str) -> ServiceResponse:
        """List the versions stored for a schema, ascending."""
        schema_id = self.schema_id(namespace, id)

        def run() -> ServiceResponse:
            return success(values=sorted(self.registry.get_versions(schema_id)))

        return self._call("list versions", schema_id, run)
