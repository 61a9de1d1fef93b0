"""
SchemaStore Server - Main entry point.

This module starts the server with all components:
- Key/value table (SQLite or in-memory)
- Schema registry and request façade
- HTTP server

Usage:
    python -m schemastore_server.main

Configuration is entirely via environment variables.
See config.py for all available settings.

Invariants:
    - The table is opened before the HTTP server accepts requests
    - Graceful shutdown stops the HTTP server before closing the table

How to change safely:
    - Add new components with enable/disable settings
    - Test shutdown sequence thoroughly
"""

from __future__ import annotations

import asyncio
import logging
import signal
import sys

import json_log_formatter
from pydantic import ValidationError as SettingsError

from .api import HttpConfig, SchemaService, run_http_server
from .config import Settings
from .schema import SchemaRegistry, SchemaStorage
from .store import KeyValueTable, create_table

logger = logging.getLogger(__name__)


def setup_logging(settings: Settings) -> None:
    """Configure logging based on configuration.

    Args:
        settings: Server configuration
    """
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    if settings.log_format == "json":
        formatter = json_log_formatter.JSONFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]

    # Reduce noise from libraries
    logging.getLogger("aiohttp.access").setLevel(logging.WARNING)


class Server:
    """SchemaStore server orchestrator.

    Attributes:
        settings: Server configuration
        table: Key/value table under the registry
        registry: Schema registry
        service: Request façade used by the HTTP server

    Example:
        >>> server = Server()
        >>> await server.start()
        >>> # Server is running until request_shutdown()
        >>> await server.stop()
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or Settings()
        self._running = False
        self._shutdown_event = asyncio.Event()

        # Components (initialized in start())
        self.table: KeyValueTable | None = None
        self.registry: SchemaRegistry | None = None
        self.service: SchemaService | None = None

    async def start(self) -> None:
        """Start the server and block until shutdown is requested."""
        if self._running:
            logger.warning("Server already running")
            return

        logger.info("Starting SchemaStore server")
        self.settings.log_config()

        try:
            self.table = create_table(self.settings)
            self.registry = SchemaRegistry(SchemaStorage(self.table))
            self.service = SchemaService(
                self.registry, default_namespace=self.settings.default_namespace
            )
            self._running = True

            await run_http_server(
                self.service,
                HttpConfig(
                    host=self.settings.host,
                    port=self.settings.port,
                    cors_origins=tuple(self.settings.cors_origins),
                ),
                shutdown_event=self._shutdown_event,
            )
        except Exception as e:
            logger.error(f"Server startup failed: {e}", exc_info=True)
            await self.stop()
            raise

    async def stop(self) -> None:
        """Stop the server gracefully."""
        if self.table is None:
            return

        logger.info("Stopping SchemaStore server")
        self._shutdown_event.set()
        self.table.close()
        self.table = None
        self._running = False
        logger.info("SchemaStore server stopped")

    def request_shutdown(self) -> None:
        """Request graceful shutdown."""
        self._shutdown_event.set()


def main() -> None:
    """Main entry point."""
    try:
        settings = Settings()
    except SettingsError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    setup_logging(settings)

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    server = Server(settings)

    def handle_signal(sig: int) -> None:
        logger.info(f"Received signal {sig}, initiating shutdown")
        server.request_shutdown()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, handle_signal, sig)

    try:
        loop.run_until_complete(server.start())
    except KeyboardInterrupt:
        pass
    finally:
        loop.run_until_complete(server.stop())
        loop.close()


if __name__ == "__main__":
    main()
