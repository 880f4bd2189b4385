"""SQL dialect detection from a connection string.

Kingbase-family servers emulate another database and advertise which one
through a ``productName`` URL parameter:

    jdbc:kingbase8://localhost:54321/powerjob-daily?productName=MySQL
"""

from __future__ import annotations

from enum import Enum

UNKNOWN_MODE = "unknown"

_PRODUCT_NAME_KEY = "productname="


class Dialect(str, Enum):
    """SQL flavour the blob table is provisioned for."""

    MYSQL = "mysql"
    ORACLE = "oracle"
    SQLSERVER = "sqlserver"
    POSTGRES_COMPATIBLE = "postgresql"
    UNKNOWN = "unknown"

    @classmethod
    def from_mode(cls, mode: str) -> Dialect:
        """Map a detected mode tag to a dialect.

        Unrecognised product names are assumed to speak PostgreSQL.
        """
        if not mode or mode == UNKNOWN_MODE:
            return cls.UNKNOWN
        if mode in (cls.MYSQL.value, cls.ORACLE.value, cls.SQLSERVER.value):
            return cls(mode)
        return cls.POSTGRES_COMPATIBLE


def detect_mode(connection_string: str | None) -> str:
    """Extract the lower-cased ``productName`` value from a connection string.

    Returns ``"unknown"`` when the string is absent or carries no
    ``productName`` parameter. Never raises.
    """
    if connection_string is None:
        return UNKNOWN_MODE

    lower = connection_string.lower()
    idx = lower.find(_PRODUCT_NAME_KEY)
    if idx == -1:
        return UNKNOWN_MODE

    mode = lower[idx + len(_PRODUCT_NAME_KEY) :]
    return mode.split("&", 1)[0].strip()


def detect_dialect(connection_string: str | None) -> Dialect:
    """Detect the dialect of a connection string."""
    return Dialect.from_mode(detect_mode(connection_string))
