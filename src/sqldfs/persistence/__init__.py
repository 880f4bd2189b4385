"""Persistence layer for sqldfs.

This module provides:
- Dialect detection from the connection URL's productName parameter
- Dialect-specific, idempotent CREATE TABLE generation
- A pooled, autocommit connection provider built on SQLAlchemy
- The Core table used to generate blob DML, with per-dialect slice reads
"""

from sqldfs.persistence.db import ConnectionProvider, build_engine_url
from sqldfs.persistence.dialects import Dialect, detect_dialect, detect_mode
from sqldfs.persistence.schema import build_create_table_sql, ensure_schema
from sqldfs.persistence.tables import blob_slice, blob_table, max_slice_size

__all__ = [
    # DB
    "ConnectionProvider",
    "build_engine_url",
    # Dialects
    "Dialect",
    "detect_dialect",
    "detect_mode",
    # Schema
    "build_create_table_sql",
    "ensure_schema",
    # Tables
    "blob_slice",
    "blob_table",
    "max_slice_size",
]
