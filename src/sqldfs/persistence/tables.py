"""SQLAlchemy Core definition of the blob table.

The table is created by dialect-specific DDL (see ``schema``); this
definition only drives INSERT/SELECT/DELETE generation, so the surrogate
``id`` column is left out and the database fills it.

Blobs are read back in slices with the substring function of the
emulated dialect, so a download never materializes the whole column.
"""

from __future__ import annotations

from collections.abc import Callable

from sqlalchemy import (
    BigInteger,
    Column,
    ColumnElement,
    DateTime,
    LargeBinary,
    MetaData,
    String,
    Table,
    Text,
    func,
)

from sqldfs.persistence.dialects import Dialect

# Slice expression builders: (column, 1-based start, length) -> expression
SliceBuilder = Callable[[ColumnElement, int, int], ColumnElement[bytes]]

# DBMS_LOB.SUBSTR returns RAW, capped at 2000 bytes in SQL
ORACLE_MAX_SLICE = 2000


def _substr(column: ColumnElement, start: int, length: int) -> ColumnElement[bytes]:
    return func.substr(column, start, length, type_=LargeBinary)


def _sqlserver_substring(column: ColumnElement, start: int, length: int) -> ColumnElement[bytes]:
    return func.substring(column, start, length, type_=LargeBinary)


def _oracle_lob_substr(column: ColumnElement, start: int, length: int) -> ColumnElement[bytes]:
    # Amount comes before offset
    return func.dbms_lob.substr(column, length, start, type_=LargeBinary)


SLICE_BUILDERS: dict[Dialect, SliceBuilder] = {
    Dialect.MYSQL: _substr,
    Dialect.ORACLE: _oracle_lob_substr,
    Dialect.SQLSERVER: _sqlserver_substring,
    Dialect.POSTGRES_COMPATIBLE: _substr,
    Dialect.UNKNOWN: _substr,
}

_uncovered = set(Dialect) - set(SLICE_BUILDERS)
if _uncovered:
    raise RuntimeError(f"No blob slice builder for dialects: {sorted(d.value for d in _uncovered)}")


def blob_slice(
    dialect: Dialect, column: ColumnElement, start: int, length: int
) -> ColumnElement[bytes]:
    """Select ``length`` bytes of a binary column starting at 1-based ``start``."""
    return SLICE_BUILDERS[dialect](column, start, length)


def max_slice_size(dialect: Dialect, requested: int) -> int:
    """Clamp a slice size to what the dialect's substring function returns."""
    if dialect is Dialect.ORACLE:
        return min(requested, ORACLE_MAX_SLICE)
    return requested


def blob_table(table_name: str) -> Table:
    """Build the Core table for a (possibly schema-qualified) table name."""
    schema, _, name = table_name.rpartition(".")
    return Table(
        name,
        MetaData(),
        Column("bucket_name", String(255), nullable=False),
        Column("data_key", String(255), nullable=False),
        Column("data", LargeBinary, nullable=False),
        Column("data_length", BigInteger, nullable=False),
        Column("meta", Text),
        Column("gmt_create", DateTime),
        Column("gmt_modified", DateTime),
        schema=schema or None,
    )
