"""
Error types for SchemaStore.

This module defines all exception types raised by the server:
- SchemaStoreError: Base exception
- ValidationError: Malformed or missing input, raised before any mutation
- SchemaNotFoundError: Referenced schema id or version does not exist
- RegistryError: Registry operation failed in the underlying storage
- StorageError: Key/value table backend failure
- ParseError: Malformed JSON text
- PathEvaluationError: Invalid or non-matching JSON path

Invariants:
    - All errors inherit from SchemaStoreError
    - Errors include context for debugging
    - None of these errors are retried internally
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class SchemaStoreError(Exception):
    """Base exception for all SchemaStore errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "SCHEMASTORE_ERROR"
        self.details = details or {}


class ValidationError(SchemaStoreError):
    """Request input failed validation.

    Raised when:
    - Schema id, name or description is missing
    - Schema type is not a recognized tag
    - Uploaded schema content is empty
    - A namespace or id is too long to key, or a version is out of range
    """

    def __init__(self, message: str, field_name: Optional[str] = None) -> None:
        super().__init__(
            message,
            code="VALIDATION_ERROR",
            details={"field": field_name},
        )
        self.field_name = field_name


class SchemaNotFoundError(SchemaStoreError):
    """Schema id, or a version of it, does not exist."""

    def __init__(
        self,
        message: str,
        schema_id: Optional[str] = None,
        version: Optional[int] = None,
    ) -> None:
        super().__init__(
            message,
            code="SCHEMA_NOT_FOUND",
            details={"schema_id": schema_id, "version": version},
        )
        self.schema_id = schema_id
        self.version = version


class RegistryError(SchemaStoreError):
    """Registry operation failed because the storage underneath failed."""

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(
            message,
            code="REGISTRY_ERROR",
            details={"cause": repr(cause) if cause is not None else None},
        )
        self.cause = cause


class StorageError(SchemaStoreError):
    """Key/value table backend failure."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="STORAGE_ERROR")


class ParseError(SchemaStoreError):
    """JSON text could not be parsed."""

    def __init__(self, message: str, position: Optional[int] = None) -> None:
        super().__init__(
            message,
            code="PARSE_ERROR",
            details={"position": position},
        )
        self.position = position


class PathEvaluationError(SchemaStoreError):
    """JSON path is invalid or matched nothing."""

    def __init__(self, message: str, path: Optional[str] = None) -> None:
        super().__init__(
            message,
            code="PATH_EVALUATION_ERROR",
            details={"path": path},
        )
        self.path = path
