"""Exception hierarchy for sqldfs.

Failures a caller is actively waiting on (store, download, fetch_meta)
are raised. Maintenance failures (the pre-delete inside store, expired
file cleanup) are logged and never leave the service.
"""

from __future__ import annotations


class DfsError(Exception):
    """Base class for all sqldfs errors."""


class ConfigurationError(DfsError):
    """A required property is missing or invalid at startup."""


class SchemaProvisionError(DfsError):
    """The CREATE TABLE statement failed while auto-create was enabled."""


class PoolConnectionError(DfsError):
    """The connection pool could not supply a connection."""


class StoreError(DfsError):
    """Inserting a blob failed, including unique constraint violations."""


class DownloadError(DfsError):
    """Querying or streaming a blob into its target failed."""


class FetchMetaError(DfsError):
    """Querying blob metadata failed."""


class CleanupError(DfsError):
    """The bulk delete of expired blobs failed. Only ever logged."""
