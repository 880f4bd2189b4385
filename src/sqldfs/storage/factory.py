"""DFS service factory for sqldfs."""

from __future__ import annotations

import logging

from sqldfs.config import DfsSettings
from sqldfs.persistence.db import ConnectionProvider
from sqldfs.persistence.dialects import detect_dialect
from sqldfs.storage.sql import SqlDfsService

logger = logging.getLogger(__name__)


def create_dfs_service(settings: DfsSettings | None = None) -> SqlDfsService:
    """Build a SqlDfsService from settings.

    The caller owns the returned service and must call ``shutdown()``.

    Raises:
        ConfigurationError: If a required property is missing, the URL is
            malformed, or the database driver is not installed
        SchemaProvisionError: If auto-create is enabled and the DDL fails
    """
    settings = settings or DfsSettings()
    settings.require()

    logger.info(f"Initializing SQL DFS service with config: {settings.safe_info()}")

    provider = ConnectionProvider.from_settings(settings)
    dialect = detect_dialect(settings.url)
    logger.info(
        f"Detected dialect {dialect.value} (driver dialect: {provider.dialect_name})"
    )

    try:
        return SqlDfsService(
            provider,
            table_name=settings.table_name,
            dialect=dialect,
            server_address=settings.server_address,
            auto_create_table=settings.auto_create_table,
        )
    except Exception:
        provider.dispose()
        raise
