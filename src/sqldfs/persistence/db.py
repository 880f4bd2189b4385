"""Pooled database connectivity for the blob store.

Wraps a SQLAlchemy engine configured for autocommit, so every statement
is its own transaction. The provider is constructed and owned by the
caller and must be disposed explicitly.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import Connection, Engine, create_engine, make_url
from sqlalchemy.engine import URL
from sqlalchemy.exc import ArgumentError, SQLAlchemyError

from sqldfs.config import DfsSettings
from sqldfs.errors import ConfigurationError, PoolConnectionError

logger = logging.getLogger(__name__)

# URL schemes used by the vendor's JDBC driver, which SQLAlchemy has no dialect for
VENDOR_SCHEMES = frozenset({"kingbase8", "kingbase"})

_PRODUCT_NAME_PARAM = "productname"


def build_engine_url(settings: DfsSettings) -> URL:
    """Translate the configured connection URL into a SQLAlchemy URL.

    - A leading ``jdbc:`` is dropped.
    - Vendor schemes are replaced by the configured driver.
    - Credentials are taken from the settings for server URLs; file
      databases (no host) take none.
    - The ``productName`` parameter is removed; it only selects the dialect.

    Raises:
        ConfigurationError: If the URL cannot be parsed.
    """
    raw = settings.url or ""
    if raw.lower().startswith("jdbc:"):
        raw = raw[len("jdbc:") :]

    try:
        url = make_url(raw)
    except ArgumentError as exc:
        raise ConfigurationError(f"Invalid storage URL: {exc}") from exc
    if url.drivername.lower() in VENDOR_SCHEMES:
        url = url.set(drivername=settings.driver)

    if url.host:
        password = settings.password.get_secret_value() if settings.password else None
        url = url.set(username=settings.username, password=password)

    product_keys = [key for key in url.query if key.lower() == _PRODUCT_NAME_PARAM]
    if product_keys:
        url = url.difference_update_query(product_keys)
    return url


class ConnectionProvider:
    """Owned connection pool handing out autocommit connections."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        self._disposed = False

    @classmethod
    def from_settings(cls, settings: DfsSettings) -> ConnectionProvider:
        """Create the pool described by the settings.

        ``pool_min_idle`` connections are kept open once created; bursts up
        to ``pool_max_size`` are served by overflow connections.

        Raises:
            ConfigurationError: If the URL is malformed, names an unknown
                dialect, or its DBAPI driver is not installed.
        """
        url = build_engine_url(settings)
        try:
            engine = create_engine(
                url,
                isolation_level="AUTOCOMMIT",
                pool_size=settings.pool_min_idle,
                max_overflow=settings.pool_max_size - settings.pool_min_idle,
                pool_timeout=settings.pool_timeout,
                pool_recycle=settings.pool_recycle,
                pool_pre_ping=settings.pool_pre_ping,
            )
        except (ArgumentError, ImportError) as exc:
            raise ConfigurationError(
                f"Cannot create engine for driver {url.drivername!r}: {exc}"
            ) from exc
        return cls(engine)

    @property
    def dialect_name(self) -> str:
        """Name of the SQLAlchemy dialect in use (e.g. ``postgresql``)."""
        return self._engine.dialect.name

    @contextmanager
    def connection(self) -> Iterator[Connection]:
        """Acquire a pooled connection, releasing it on every exit path.

        Raises:
            PoolConnectionError: If the pool cannot supply a connection or
                has been disposed.
        """
        if self._disposed:
            raise PoolConnectionError("Connection pool has been disposed")

        try:
            conn = self._engine.connect()
        except SQLAlchemyError as exc:
            raise PoolConnectionError(f"Unable to acquire a database connection: {exc}") from exc

        try:
            yield conn
        finally:
            conn.close()

    def dispose(self) -> None:
        """Close all pooled connections. Safe to call more than once."""
        if self._disposed:
            return
        self._disposed = True
        self._engine.dispose()
        logger.info("Connection pool disposed")
