"""
HTTP server implementation for SchemaStore.

This module binds the schema REST routes to SchemaService. Each route has
a namespaced form under /v1/contexts/{context} and a short form that uses
the configured default namespace.

Invariants:
    - Handlers only parse requests and serialize ServiceResponse envelopes
    - The HTTP status always equals the envelope status
    - Unhandled exceptions become a 500 envelope, never a bare stack trace

How to change safely:
    - Keep both route forms in sync
    - Version the API if breaking changes are needed
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Optional

from aiohttp import web

from .service import SchemaService, ServiceResponse, error

logger = logging.getLogger(__name__)

# Exclusive upper bound for version path segments (int64 range)
MAX_VERSION = 2**63


@dataclass
class HttpConfig:
    """HTTP server configuration."""

    host: str = "0.0.0.0"
    port: int = 8081
    cors_origins: tuple[str, ...] = ("*",)


def respond(response: ServiceResponse) -> web.Response:
    return web.json_response(response.model_dump(mode="json"), status=response.status)


def create_http_app(
    service: SchemaService,
    config: HttpConfig | None = None,
) -> web.Application:
    """Create an HTTP application for SchemaStore.

    Args:
        service: SchemaService instance
        config: HTTP server configuration

    Returns:
        aiohttp Application instance
    """
    config = config or HttpConfig()
    app = web.Application()

    for base in ("/v1", "/v1/contexts/{context}"):
        app.router.add_put(f"{base}/schemas", lambda r: handle_create(r, service))
        app.router.add_post(f"{base}/schemas/{{id}}", lambda r: handle_upload(r, service))
        app.router.add_delete(f"{base}/schemas/{{id}}", lambda r: handle_delete(r, service))
        app.router.add_delete(
            f"{base}/schemas/{{id}}/versions/{{version}}",
            lambda r: handle_delete_version(r, service),
        )
        app.router.add_get(f"{base}/schemas/{{id}}", lambda r: handle_get(r, service))
        app.router.add_get(
            f"{base}/schemas/{{id}}/versions/{{version}}",
            lambda r: handle_get_version(r, service),
        )
        app.router.add_get(
            f"{base}/schemas/{{id}}/versions", lambda r: handle_list_versions(r, service)
        )
    app.router.add_get("/v1/health", handle_health)

    # Add CORS middleware
    @web.middleware
    async def cors_middleware(request: web.Request, handler: Callable) -> web.StreamResponse:
        if request.method == "OPTIONS":
            response = web.Response()
        else:
            try:
                response = await handler(request)
            except web.HTTPException as e:
                response = e

        origin = request.headers.get("Origin", "*")
        if "*" in config.cors_origins or origin in config.cors_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
        response.headers["Access-Control-Allow-Methods"] = "GET, POST, PUT, DELETE, OPTIONS"
        response.headers["Access-Control-Allow-Headers"] = "Content-Type"

        return response

    app.middlewares.append(cors_middleware)

    # Add error handler (runs inside CORS)
    @web.middleware
    async def error_middleware(request: web.Request, handler: Callable) -> web.StreamResponse:
        try:
            return await handler(request)
        except web.HTTPException:
            raise
        except Exception as e:
            logger.error(f"HTTP handler error: {e}", exc_info=True)
            return respond(error(str(e)))

    app.middlewares.append(error_middleware)

    return app


def parse_version(request: web.Request) -> Optional[int]:
    """Version path segment as an int, or None if it is not a positive integer."""
    raw = request.match_info["version"]
    try:
        version = int(raw)
    except ValueError:
        return None
    return version if 0 < version < MAX_VERSION else None


async def handle_create(request: web.Request, service: SchemaService) -> web.Response:
    """Handle PUT /schemas - Create or replace a schema descriptor."""
    query = request.query
    return respond(
        service.create(
            request.match_info.get("context"),
            query.get("id"),
            query.get("name"),
            query.get("description"),
            query.get("type"),
        )
    )


async def handle_upload(request: web.Request, service: SchemaService) -> web.Response:
    """Handle POST /schemas/{id} - Upload content as the next version."""
    content = await request.read()
    return respond(
        service.add(request.match_info.get("context"), request.match_info["id"], content)
    )


async def handle_delete(request: web.Request, service: SchemaService) -> web.Response:
    """Handle DELETE /schemas/{id} - Delete a schema and all versions."""
    return respond(
        service.delete_identity(request.match_info.get("context"), request.match_info["id"])
    )


async def handle_delete_version(request: web.Request, service: SchemaService) -> web.Response:
    """Handle DELETE /schemas/{id}/versions/{version} - Delete one version."""
    version = parse_version(request)
    if version is None:
        return respond(error(f"Invalid schema version '{request.match_info['version']}'."))
    return respond(
        service.delete_version(
            request.match_info.get("context"), request.match_info["id"], version
        )
    )


async def handle_get(request: web.Request, service: SchemaService) -> web.Response:
    """Handle GET /schemas/{id} - Get the current version of a schema."""
    return respond(service.get_entry(request.match_info.get("context"), request.match_info["id"]))


async def handle_get_version(request: web.Request, service: SchemaService) -> web.Response:
    """Handle GET /schemas/{id}/versions/{version} - Get a specific version."""
    version = parse_version(request)
    if version is None:
        return respond(error(f"Invalid schema version '{request.match_info['version']}'."))
    return respond(
        service.get_entry(request.match_info.get("context"), request.match_info["id"], version)
    )


async def handle_list_versions(request: web.Request, service: SchemaService) -> web.Response:
    """Handle GET /schemas/{id}/versions - List versions of a schema."""
    return respond(
        service.get_versions(request.match_info.get("context"), request.match_info["id"])
    )


async def handle_health(request: web.Request) -> web.Response:
    """Handle GET /v1/health - Health check."""
    return web.json_response({"healthy": True, "service": "schemastore"})


async def run_http_server(
    service: SchemaService,
    config: HttpConfig | None = None,
    shutdown_event: asyncio.Event | None = None,
) -> None:
    """Run the HTTP server until cancelled or ``shutdown_event`` is set.

    Args:
        service: SchemaService instance
        config: HTTP server configuration
        shutdown_event: Optional event that stops the server when set
    """
    config = config or HttpConfig()
    app = create_http_app(service, config)

    runner = web.AppRunner(app)
    await runner.setup()

    site = web.TCPSite(runner, config.host, config.port)
    await site.start()

    logger.info(f"HTTP server running on http://{config.host}:{config.port}")

    try:
        if shutdown_event is not None:
            await shutdown_event.wait()
        else:
            while True:
                await asyncio.sleep(3600)
    except asyncio.CancelledError:
        pass
    finally:
        await runner.cleanup()
