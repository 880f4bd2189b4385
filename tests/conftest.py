"""Global pytest configuration and fixtures.

Tests run against file-backed SQLite databases, which take the
PostgreSQL-compatible DDL (no productName in the URL).
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from datetime import datetime, timedelta
from pathlib import Path

import pytest
from sqlalchemy import func, insert, select

from sqldfs.config import DfsSettings
from sqldfs.persistence.db import ConnectionProvider
from sqldfs.persistence.tables import blob_table
from sqldfs.storage.sql import SqlDfsService

TABLE_NAME = "oms_dfs_store"


class FakeClock:
    """Manually advanced clock returning naive UTC datetimes."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 10, 12, 0, 0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def sqlite_url(tmp_path: Path) -> str:
    return f"sqlite:///{tmp_path / 'dfs.db'}"


@pytest.fixture
def dfs_settings(sqlite_url: str) -> DfsSettings:
    return DfsSettings(
        _env_file=None,
        url=sqlite_url,
        username="powerjob",
        password="secret",
        auto_create_table=True,
        server_address="test-host",
    )


@pytest.fixture
def provider(dfs_settings: DfsSettings) -> Iterator[ConnectionProvider]:
    provider = ConnectionProvider.from_settings(dfs_settings)
    yield provider
    provider.dispose()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def service(provider: ConnectionProvider, clock: FakeClock) -> Iterator[SqlDfsService]:
    service = SqlDfsService(
        provider,
        table_name=TABLE_NAME,
        server_address="test-host",
        auto_create_table=True,
        clock=clock,
    )
    yield service
    service.shutdown()


@pytest.fixture
def count_rows(provider: ConnectionProvider) -> Callable[..., int]:
    """Count blob rows, optionally filtered by bucket and key."""
    table = blob_table(TABLE_NAME)

    def count(bucket: str | None = None, key: str | None = None) -> int:
        query = select(func.count()).select_from(table)
        if bucket is not None:
            query = query.where(table.c.bucket_name == bucket)
        if key is not None:
            query = query.where(table.c.data_key == key)
        with provider.connection() as conn:
            return conn.execute(query).scalar_one()

    return count


@pytest.fixture
def drop_table(provider: ConnectionProvider) -> Callable[[], None]:
    """Drop the blob table so subsequent statements fail."""

    def drop() -> None:
        with provider.connection() as conn:
            conn.exec_driver_sql(f"DROP TABLE {TABLE_NAME}")

    return drop


@pytest.fixture
def insert_row(provider: ConnectionProvider, clock: FakeClock) -> Callable[..., None]:
    """Write a blob row directly, bypassing the service."""
    table = blob_table(TABLE_NAME)

    def insert_(
        bucket: str,
        key: str,
        data: bytes = b"",
        data_length: int | None = None,
        meta: str | None = "{}",
    ) -> None:
        with provider.connection() as conn:
            conn.execute(
                insert(table),
                {
                    "bucket_name": bucket,
                    "data_key": key,
                    "data": data,
                    "data_length": len(data) if data_length is None else data_length,
                    "meta": meta,
                    "gmt_create": clock.now,
                    "gmt_modified": clock.now,
                },
            )

    return insert_
