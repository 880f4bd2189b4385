"""Base blob storage interface.

Defines the domain types and the abstract interface for DFS backends.
"""

from __future__ import annotations

import mmap
from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from dataclasses import dataclass, field
from datetime import datetime
from typing import BinaryIO, TypeAlias

# Anything a DBAPI driver accepts as a binary parameter without a Python-side copy
Payload: TypeAlias = bytes | bytearray | memoryview | mmap.mmap


@dataclass(frozen=True)
class FileLocation:
    """Identifies a blob: a key inside a bucket."""

    bucket: str
    key: str

    def __str__(self) -> str:
        return f"{self.bucket}/{self.key}"


@dataclass(frozen=True)
class FileMeta:
    """Read-only view of a stored blob's metadata."""

    length: int
    last_modified: datetime | None
    meta: dict[str, str] = field(default_factory=dict)


class ByteSource(ABC):
    """Readable bytes of known length."""

    @property
    @abstractmethod
    def size(self) -> int:
        """Number of bytes the source yields."""
        ...

    @property
    @abstractmethod
    def description(self) -> str:
        """Where the bytes come from, recorded in blob metadata."""
        ...

    @abstractmethod
    def payload(self) -> AbstractContextManager[Payload]:
        """Expose the bytes as a buffer for the duration of the context."""
        ...


class ByteSink(ABC):
    """Writable destination for downloaded bytes."""

    @property
    @abstractmethod
    def description(self) -> str:
        ...

    @abstractmethod
    def ensure_parent(self) -> None:
        """Create the container the sink writes into, if missing."""
        ...

    @abstractmethod
    def open(self) -> AbstractContextManager[BinaryIO]:
        """Open the sink for writing, truncating previous content."""
        ...


@dataclass(frozen=True)
class StoreRequest:
    location: FileLocation
    source: ByteSource


@dataclass(frozen=True)
class DownloadRequest:
    location: FileLocation
    target: ByteSink


class DfsService(ABC):
    """Abstract base class for DFS storage backends."""

    @abstractmethod
    def store(self, request: StoreRequest) -> None:
        """Store the request's bytes at its location, replacing any previous blob.

        Raises:
            StoreError: If the blob could not be written
            PoolConnectionError: If no connection is available
        """
        ...

    @abstractmethod
    def download(self, request: DownloadRequest) -> None:
        """Write the blob at the request's location into its target.

        A missing blob is not an error: the target is left untouched.

        Raises:
            DownloadError: If the blob could not be read or written out
            PoolConnectionError: If no connection is available
        """
        ...

    @abstractmethod
    def fetch_meta(self, location: FileLocation) -> FileMeta | None:
        """Return the blob's metadata, or None if it does not exist.

        Raises:
            FetchMetaError: If the lookup failed
            PoolConnectionError: If no connection is available
        """
        ...

    @abstractmethod
    def clean_expired_files(self, bucket: str, days: int) -> None:
        """Delete blobs in a bucket not modified within ``days`` days.

        Never raises; failures are logged.
        """
        ...

    @abstractmethod
    def shutdown(self) -> None:
        """Release the backend's resources."""
        ...
