"""Dialect-aware provisioning of the blob table.

Every dialect gets the same logical columns:

    id            surrogate identity primary key
    bucket_name   VARCHAR(255)
    data_key      VARCHAR(255)
    data          binary large object
    data_length   64-bit integer
    meta          JSON text (string -> string)
    gmt_create    timestamp
    gmt_modified  timestamp

plus a unique constraint on (bucket_name, data_key). Each statement is
guarded so that running it against an existing table is a no-op.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from sqlalchemy.exc import SQLAlchemyError

from sqldfs.errors import SchemaProvisionError
from sqldfs.persistence.db import ConnectionProvider
from sqldfs.persistence.dialects import Dialect

logger = logging.getLogger(__name__)

# ORA-00955: name is already used by an existing object
ORACLE_NAME_IN_USE = -955


def _mysql_ddl(table_name: str) -> str:
    return f"""CREATE TABLE IF NOT EXISTS {table_name} (
  id BIGINT AUTO_INCREMENT PRIMARY KEY,
  bucket_name VARCHAR(255) NOT NULL,
  data_key VARCHAR(255) NOT NULL,
  data LONGBLOB NOT NULL,
  data_length BIGINT NOT NULL,
  meta LONGTEXT,
  gmt_create DATETIME,
  gmt_modified DATETIME,
  UNIQUE KEY uk_bucket_key (bucket_name, data_key)
)"""


def _oracle_ddl(table_name: str) -> str:
    # Oracle has no IF NOT EXISTS: create and discard only the "already exists" failure
    return f"""BEGIN
  EXECUTE IMMEDIATE 'CREATE TABLE {table_name} (
    id NUMBER(19) GENERATED BY DEFAULT AS IDENTITY PRIMARY KEY,
    bucket_name VARCHAR2(255) NOT NULL,
    data_key VARCHAR2(255) NOT NULL,
    data BLOB NOT NULL,
    data_length NUMBER(19) NOT NULL,
    meta CLOB,
    gmt_create TIMESTAMP,
    gmt_modified TIMESTAMP,
    CONSTRAINT uk_bucket_key UNIQUE (bucket_name, data_key)
  )';
EXCEPTION
  WHEN OTHERS THEN
    IF SQLCODE != {ORACLE_NAME_IN_USE} THEN
      RAISE;
    END IF;
END;"""


def _sqlserver_ddl(table_name: str) -> str:
    schema, _, name = table_name.rpartition(".")
    guard = f"SELECT 1 FROM sys.tables WHERE name = N'{name}'"
    if schema:
        guard += f" AND schema_id = SCHEMA_ID(N'{schema}')"
    return f"""IF NOT EXISTS ({guard})
CREATE TABLE {table_name} (
  id BIGINT IDENTITY(1,1) PRIMARY KEY,
  bucket_name VARCHAR(255) NOT NULL,
  data_key VARCHAR(255) NOT NULL,
  data VARBINARY(MAX) NOT NULL,
  data_length BIGINT NOT NULL,
  meta NVARCHAR(MAX),
  gmt_create DATETIME2,
  gmt_modified DATETIME2,
  CONSTRAINT uk_bucket_key UNIQUE (bucket_name, data_key)
)"""


def _postgres_ddl(table_name: str) -> str:
    return f"""CREATE TABLE IF NOT EXISTS {table_name} (
  id BIGSERIAL PRIMARY KEY,
  bucket_name VARCHAR(255) NOT NULL,
  data_key VARCHAR(255) NOT NULL,
  data BYTEA NOT NULL,
  data_length BIGINT NOT NULL,
  meta TEXT,
  gmt_create TIMESTAMP,
  gmt_modified TIMESTAMP,
  UNIQUE (bucket_name, data_key)
)"""


DDL_BUILDERS: dict[Dialect, Callable[[str], str]] = {
    Dialect.MYSQL: _mysql_ddl,
    Dialect.ORACLE: _oracle_ddl,
    Dialect.SQLSERVER: _sqlserver_ddl,
    Dialect.POSTGRES_COMPATIBLE: _postgres_ddl,
    Dialect.UNKNOWN: _postgres_ddl,
}

_uncovered = set(Dialect) - set(DDL_BUILDERS)
if _uncovered:
    raise RuntimeError(f"No DDL builder for dialects: {sorted(d.value for d in _uncovered)}")


def build_create_table_sql(dialect: Dialect, table_name: str) -> str:
    """Return the guarded CREATE TABLE statement for a dialect."""
    return DDL_BUILDERS[dialect](table_name)


def ensure_schema(provider: ConnectionProvider, dialect: Dialect, table_name: str) -> None:
    """Create the blob table unless it already exists.

    Args:
        provider: Connection pool to run the DDL on
        dialect: Dialect to generate the DDL for
        table_name: Name of the blob table

    Raises:
        SchemaProvisionError: If the statement fails. Not retried.
    """
    ddl = build_create_table_sql(dialect, table_name)
    logger.info(f"Provisioning blob table {table_name} (dialect={dialect.value})")
    logger.debug(f"Using DDL:\n{ddl}")

    try:
        with provider.connection() as conn:
            conn.exec_driver_sql(ddl)
    except SQLAlchemyError as exc:
        raise SchemaProvisionError(f"Failed to create blob table {table_name}: {exc}") from exc
