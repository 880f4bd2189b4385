"""Blob storage for sqldfs.

Stores job artifacts and logs as rows of a relational table:
- One row per (bucket, key), enforced by a unique constraint
- Payloads passed to the driver as buffers and read back in slices
- Age-based cleanup per bucket
"""

from sqldfs.storage.base import (
    ByteSink,
    ByteSource,
    DfsService,
    DownloadRequest,
    FileLocation,
    FileMeta,
    StoreRequest,
)
from sqldfs.storage.factory import create_dfs_service
from sqldfs.storage.sql import SqlDfsService
from sqldfs.storage.streams import BufferSink, BytesSource, FileSink, FileSource

__all__ = [
    "ByteSink",
    "ByteSource",
    "BufferSink",
    "BytesSource",
    "DfsService",
    "DownloadRequest",
    "FileLocation",
    "FileMeta",
    "FileSink",
    "FileSource",
    "SqlDfsService",
    "StoreRequest",
    "create_dfs_service",
]
