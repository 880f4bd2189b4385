"""sqldfs: job artifact storage in a relational database.

Persists opaque binary files as rows of a single table on MySQL-, Oracle-,
SQL Server- or PostgreSQL-flavoured servers, with the flavour detected
from the connection URL's ``productName`` parameter.
"""

from sqldfs.errors import (
    CleanupError,
    ConfigurationError,
    DfsError,
    DownloadError,
    FetchMetaError,
    PoolConnectionError,
    SchemaProvisionError,
    StoreError,
)
from sqldfs.persistence.dialects import Dialect, detect_mode
from sqldfs.storage import (
    BufferSink,
    BytesSource,
    DownloadRequest,
    FileLocation,
    FileMeta,
    FileSink,
    FileSource,
    SqlDfsService,
    StoreRequest,
    create_dfs_service,
)

__version__ = "0.1.0"

__all__ = [
    "BufferSink",
    "BytesSource",
    "CleanupError",
    "ConfigurationError",
    "DfsError",
    "Dialect",
    "DownloadError",
    "DownloadRequest",
    "FetchMetaError",
    "FileLocation",
    "FileMeta",
    "FileSink",
    "FileSource",
    "PoolConnectionError",
    "SchemaProvisionError",
    "SqlDfsService",
    "StoreError",
    "StoreRequest",
    "create_dfs_service",
    "detect_mode",
]
