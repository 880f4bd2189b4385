from __future__ import annotations

import re
import socket
from typing import Any

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from sqldfs.errors import ConfigurationError

# Plain identifier, optionally schema-qualified. Table names are spliced into DDL/DML.
_TABLE_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_$]*(\.[A-Za-z_][A-Za-z0-9_$]*)?$")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SQLDFS_", env_file=".env", extra="ignore")

    # Observability
    log_level: str = "INFO"
    log_json: bool = False


class DfsSettings(BaseSettings):
    """Settings of the relational blob store, namespaced by backend type."""

    model_config = SettingsConfigDict(
        env_prefix="OMS_STORAGE_DFS_KINGBASE_", env_file=".env", extra="ignore"
    )

    # Connection
    driver: str = "postgresql+psycopg2"
    url: str | None = None
    username: str | None = None
    password: SecretStr | None = None

    # Table
    table_name: str = "oms_dfs_store"
    auto_create_table: bool = False

    # Connection pool
    pool_min_idle: int = 2
    pool_max_size: int = 16
    pool_timeout: int = 30
    pool_recycle: int = 1800  # Recycle connections after 30 minutes
    pool_pre_ping: bool = True

    # Written into each blob's metadata as the originating host
    server_address: str = Field(default_factory=socket.gethostname)

    def require(self) -> None:
        """Validate the properties the store cannot start without.

        Raises:
            ConfigurationError: If url, username or password is missing,
                the table name is not a plain identifier, or the pool
                bounds are inconsistent.
        """
        password = self.password.get_secret_value() if self.password else ""
        missing = [
            name
            for name, value in (
                ("url", self.url),
                ("username", self.username),
                ("password", password),
            )
            if not value
        ]
        if missing:
            prefix = self.model_config.get("env_prefix", "")
            names = ", ".join(f"{name} ({prefix}{name.upper()})" for name in missing)
            raise ConfigurationError(f"Missing required storage properties: {names}")

        if not _TABLE_NAME_RE.match(self.table_name):
            raise ConfigurationError(f"Invalid table name: {self.table_name!r}")

        if self.pool_min_idle < 0 or self.pool_max_size < max(self.pool_min_idle, 1):
            raise ConfigurationError(
                f"Invalid pool bounds: min_idle={self.pool_min_idle}, "
                f"max_size={self.pool_max_size}"
            )

    def safe_info(self) -> dict[str, Any]:
        """Return the settings without credentials, for logging."""
        return self.model_dump(exclude={"password"})


settings = Settings()
