"""
API module for SchemaStore.

This module provides the external interfaces:
- SchemaService: request façade translating calls into registry operations
- HTTP server: REST routes bound to SchemaService

Invariants:
    - Transports hold no business logic
    - Not-found and error outcomes share one envelope shape

How to change safely:
    - Add the operation to SchemaService before exposing a route
    - HTTP endpoints should match SchemaService semantics
"""

from .http_server import HttpConfig, create_http_app, run_http_server
from .service import SchemaService, ServiceResponse

__all__ = [
    "SchemaService",
    "ServiceResponse",
    "HttpConfig",
    "create_http_app",
    "run_http_server",
]
