"""
Unit tests for server configuration.

Tests cover:
- Defaults
- Environment overrides
- Rejection of unknown backends and formats
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from schemastore_server.config import Settings


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self, monkeypatch):
        for name in ("SCHEMASTORE_STORAGE_BACKEND", "SCHEMASTORE_DATA_DIR", "SCHEMASTORE_PORT"):
            monkeypatch.delenv(name, raising=False)

        settings = Settings()

        assert settings.storage_backend == "sqlite"
        assert settings.port == 8081
        assert settings.db_path == Path("/var/lib/schemastore/schemas.db")

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("SCHEMASTORE_STORAGE_BACKEND", "memory")
        monkeypatch.setenv("SCHEMASTORE_DEFAULT_NAMESPACE", "analytics")
        monkeypatch.setenv("SCHEMASTORE_PORT", "9000")
        monkeypatch.setenv("SCHEMASTORE_WAL_MODE", "false")

        settings = Settings()

        assert settings.storage_backend == "memory"
        assert settings.default_namespace == "analytics"
        assert settings.port == 9000
        assert settings.wal_mode is False

    def test_unknown_backend_rejected(self, monkeypatch):
        monkeypatch.setenv("SCHEMASTORE_STORAGE_BACKEND", "redis")

        with pytest.raises(ValidationError):
            Settings()

    def test_unknown_log_format_rejected(self):
        with pytest.raises(ValidationError):
            Settings(log_format="xml")
