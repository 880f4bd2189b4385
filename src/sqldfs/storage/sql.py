"""Relational database blob storage.

Stores each blob as one row of a single table:
    (bucket_name, data_key) -> data, data_length, meta, gmt_create, gmt_modified

Every operation checks out its own pooled autocommit connection, so
``store`` is two independent statements: a best-effort delete of the
previous blob followed by an insert. Concurrent stores to the same
location race; the unique constraint on (bucket_name, data_key) rejects
the loser, which surfaces as StoreError.
"""

from __future__ import annotations

import logging
import socket
import time
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

import orjson
from sqlalchemy import ColumnElement, Connection, and_, delete, insert, select
from sqlalchemy.exc import SQLAlchemyError

from sqldfs.errors import (
    CleanupError,
    DfsError,
    DownloadError,
    FetchMetaError,
    StoreError,
)
from sqldfs.observability.logging import LogContext
from sqldfs.persistence.db import ConnectionProvider
from sqldfs.persistence.dialects import Dialect
from sqldfs.persistence.schema import ensure_schema
from sqldfs.persistence.tables import blob_slice, blob_table, max_slice_size
from sqldfs.storage.base import (
    ByteSink,
    DfsService,
    DownloadRequest,
    FileLocation,
    FileMeta,
    StoreRequest,
)

logger = logging.getLogger(__name__)

# Metadata keys written with every blob
META_SERVER = "_server_"
META_LOCAL_FILE_PATH = "_local_file_path_"


def utcnow() -> datetime:
    """Current UTC time without tzinfo, matching the TIMESTAMP columns."""
    return datetime.now(UTC).replace(tzinfo=None)


class SqlDfsService(DfsService):
    """Blob storage backed by a table in a relational database."""

    CHUNK_SIZE = 64 * 1024  # 64KB slices when reading downloads

    def __init__(
        self,
        provider: ConnectionProvider,
        table_name: str = "oms_dfs_store",
        dialect: Dialect = Dialect.UNKNOWN,
        server_address: str | None = None,
        auto_create_table: bool = False,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        """Initialize the store.

        Args:
            provider: Connection pool, owned by the service from now on
            table_name: Name of the blob table
            dialect: Dialect used to provision the table
            server_address: Host identifier recorded in blob metadata
            auto_create_table: Create the table if it does not exist
            clock: Source of the current time for timestamps and expiry

        Raises:
            SchemaProvisionError: If auto_create_table is set and the DDL fails
        """
        self._provider = provider
        self._table = blob_table(table_name)
        self._clock = clock
        self.table_name = table_name
        self.dialect = dialect
        self.server_address = server_address or socket.gethostname()

        if auto_create_table:
            ensure_schema(provider, dialect, table_name)

    def __enter__(self) -> SqlDfsService:
        return self

    def __exit__(self, *args: Any) -> None:
        self.shutdown()

    def _where_location(self, location: FileLocation) -> ColumnElement[bool]:
        return and_(
            self._table.c.bucket_name == location.bucket,
            self._table.c.data_key == location.key,
        )

    def store(self, request: StoreRequest) -> None:
        """Store a blob, replacing whatever was stored at its location."""
        location = request.location
        source = request.source

        with LogContext(operation="store", location=location):
            self._delete_internal(location)

            started = time.perf_counter()
            now = self._clock()
            meta = {
                META_SERVER: self.server_address,
                META_LOCAL_FILE_PATH: source.description,
            }

            try:
                size = source.size
                with source.payload() as payload, self._provider.connection() as conn:
                    conn.execute(
                        insert(self._table),
                        {
                            "bucket_name": location.bucket,
                            "data_key": location.key,
                            "data": payload,
                            "data_length": size,
                            "meta": orjson.dumps(meta).decode(),
                            "gmt_create": now,
                            "gmt_modified": now,
                        },
                    )
            except (SQLAlchemyError, OSError) as exc:
                logger.error(f"Failed to store {location}", exc_info=True)
                raise StoreError(f"Failed to store {location}: {exc}") from exc

            elapsed = time.perf_counter() - started
            logger.info(
                f"Stored {location} ({size} bytes, dialect={self.dialect.value}) "
                f"in {elapsed:.3f}s"
            )

    def download(self, request: DownloadRequest) -> None:
        """Write a blob into the request's target; a missing blob is a no-op.

        The blob is read in slices of at most ``CHUNK_SIZE`` bytes on one
        connection, so memory use does not grow with the blob size.
        """
        location = request.location

        with LogContext(operation="download", location=location):
            started = time.perf_counter()
            try:
                request.target.ensure_parent()
                with self._provider.connection() as conn:
                    length = conn.execute(
                        select(self._table.c.data_length).where(self._where_location(location))
                    ).scalar_one_or_none()
                    if length is None:
                        logger.warning(f"Blob {location} not found, nothing downloaded")
                        return
                    written = self._copy_slices(conn, location, length, request.target)
            except (SQLAlchemyError, OSError) as exc:
                logger.error(f"Failed to download {location}", exc_info=True)
                raise DownloadError(f"Failed to download {location}: {exc}") from exc

            if written != length:
                logger.error(f"Blob {location} changed during download")
                raise DownloadError(
                    f"Blob {location} changed during download: "
                    f"expected {length} bytes, read {written}"
                )

            elapsed = time.perf_counter() - started
            logger.info(
                f"Downloaded {location} to {request.target.description} "
                f"({written} bytes) in {elapsed:.3f}s"
            )

    def _copy_slices(
        self, conn: Connection, location: FileLocation, length: int, target: ByteSink
    ) -> int:
        chunk_size = max_slice_size(self.dialect, self.CHUNK_SIZE)
        written = 0
        with target.open() as out:
            while written < length:
                piece = conn.execute(
                    select(
                        blob_slice(self.dialect, self._table.c.data, written + 1, chunk_size)
                    ).where(self._where_location(location))
                ).scalar_one_or_none()
                if not piece:
                    break
                out.write(piece)
                written += len(piece)
        return written

    def fetch_meta(self, location: FileLocation) -> FileMeta | None:
        """Look up a blob's length, modification time and metadata."""
        table = self._table
        query = select(table.c.data_length, table.c.gmt_modified, table.c.meta).where(
            self._where_location(location)
        )

        with LogContext(operation="fetch_meta", location=location):
            try:
                with self._provider.connection() as conn:
                    row = conn.execute(query).first()
                if row is None:
                    return None
                meta = orjson.loads(row.meta) if row.meta else {}
                if not isinstance(meta, dict):
                    raise ValueError(f"metadata is a JSON {type(meta).__name__}, not an object")
            except (SQLAlchemyError, ValueError) as exc:
                logger.error(f"Failed to fetch metadata of {location}", exc_info=True)
                raise FetchMetaError(f"Failed to fetch metadata of {location}: {exc}") from exc

            return FileMeta(
                length=row.data_length,
                last_modified=row.gmt_modified,
                meta={str(key): str(value) for key, value in meta.items()},
            )

    def clean_expired_files(self, bucket: str, days: int) -> None:
        """Delete blobs in ``bucket`` last modified more than ``days`` days ago."""
        with LogContext(operation="clean_expired_files"):
            try:
                deleted = self._delete_modified_before(bucket, self._expiry_cutoff(days))
            except CleanupError:
                logger.error(
                    f"Failed to clean expired files in bucket={bucket}, days={days}",
                    exc_info=True,
                )
                return

            logger.info(
                f"Cleaned expired files in bucket={bucket}, days={days}, deleted={deleted}"
            )

    def _expiry_cutoff(self, days: int) -> datetime:
        try:
            return self._clock() - timedelta(days=days)
        except OverflowError as exc:
            raise CleanupError(f"Retention of {days} days is out of range: {exc}") from exc

    def _delete_modified_before(self, bucket: str, cutoff: datetime) -> int:
        table = self._table
        statement = delete(table).where(
            table.c.bucket_name == bucket,
            table.c.gmt_modified < cutoff,
        )
        try:
            with self._provider.connection() as conn:
                return conn.execute(statement).rowcount
        except (DfsError, SQLAlchemyError) as exc:
            raise CleanupError(f"Bulk delete in bucket {bucket} failed: {exc}") from exc

    def _delete_internal(self, location: FileLocation) -> None:
        """Delete the blob at ``location`` if present, logging any failure."""
        try:
            with self._provider.connection() as conn:
                conn.execute(delete(self._table).where(self._where_location(location)))
        except (DfsError, SQLAlchemyError):
            logger.error(f"Failed to delete previous blob at {location}", exc_info=True)

    def shutdown(self) -> None:
        """Dispose of the connection pool."""
        self._provider.dispose()
        logger.info(f"SQL DFS service on table {self.table_name} shut down")
