"""
Configuration management for SchemaStore.

All configuration is done via environment variables prefixed with
``SCHEMASTORE_`` - no config files inside containers. Loading goes through
pydantic-settings so values are typed and validated on startup.

Invariants:
    - All settings have sensible defaults for local development
    - storage_backend and log_format are closed sets; anything else fails
      validation instead of falling back to a default

How to change safely:
    - Add new settings with defaults that maintain backward compatibility
    - Keep env variable names stable; they are part of the deployment contract
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Server configuration loaded from environment."""

    # Storage
    storage_backend: Literal["sqlite", "memory"] = Field(
        default="sqlite", description="Key/value table backend"
    )
    data_dir: str = Field(default="/var/lib/schemastore", description="Directory for SQLite files")
    db_file: str = Field(default="schemas.db", description="SQLite file name inside data_dir")
    wal_mode: bool = Field(default=True, description="Enable SQLite WAL journal mode")
    busy_timeout_ms: int = Field(default=5000, description="SQLite busy timeout in milliseconds")

    # Registry
    default_namespace: str = Field(
        default="default", description="Namespace used when a request does not name one"
    )

    # HTTP
    host: str = Field(default="0.0.0.0", description="HTTP bind host")
    port: int = Field(default=8081, description="HTTP bind port")
    cors_origins: list[str] = Field(default=["*"], description="Allowed CORS origins")

    # Observability
    log_level: str = Field(default="INFO", description="DEBUG, INFO, WARNING or ERROR")
    log_format: Literal["json", "text"] = Field(default="json", description="Log line format")

    model_config = {"env_prefix": "SCHEMASTORE_"}

    @property
    def db_path(self) -> Path:
        """Full path of the SQLite database file."""
        return Path(self.data_dir) / self.db_file

    def log_config(self) -> None:
        """Log configuration."""
        logger.info(
            "Server configuration loaded",
            extra={
                "storage_backend": self.storage_backend,
                "db_path": str(self.db_path) if self.storage_backend == "sqlite" else None,
                "default_namespace": self.default_namespace,
                "http_bind": f"{self.host}:{self.port}",
                "log_level": self.log_level,
            },
        )
