"""Tests for the connection provider."""

from pathlib import Path

import pytest

from sqldfs.config import DfsSettings
from sqldfs.errors import ConfigurationError, PoolConnectionError
from sqldfs.persistence import db
from sqldfs.persistence.db import ConnectionProvider, build_engine_url


def make_settings(url: str, **kwargs: object) -> DfsSettings:
    return DfsSettings(_env_file=None, url=url, username="powerjob", password="s3cret", **kwargs)


class TestBuildEngineUrl:
    """Test connection URL translation."""

    def test_jdbc_vendor_url(self) -> None:
        """jdbc: prefix and vendor scheme are replaced by the driver."""
        url = build_engine_url(
            make_settings("jdbc:kingbase8://localhost:54321/powerjob-daily?productName=MySQL")
        )

        assert url.drivername == "postgresql+psycopg2"
        assert url.host == "localhost"
        assert url.port == 54321
        assert url.database == "powerjob-daily"

    def test_product_name_removed_other_params_kept(self) -> None:
        """productName is stripped in any case, other parameters survive."""
        url = build_engine_url(
            make_settings("kingbase8://h:54321/db?PRODUCTNAME=Oracle&sslmode=require")
        )

        assert dict(url.query) == {"sslmode": "require"}

    def test_credentials_injected(self) -> None:
        """Username and password come from the settings."""
        url = build_engine_url(make_settings("kingbase8://h:54321/db"))

        assert url.username == "powerjob"
        assert url.password == "s3cret"

    def test_custom_driver(self) -> None:
        """The configured driver replaces the vendor scheme."""
        url = build_engine_url(make_settings("kingbase8://h/db", driver="mysql+pymysql"))

        assert url.drivername == "mysql+pymysql"

    def test_sqlalchemy_url_kept(self) -> None:
        """Non-vendor schemes are used as given."""
        url = build_engine_url(make_settings("postgresql+psycopg2://h/db?productName=pg"))

        assert url.drivername == "postgresql+psycopg2"
        assert dict(url.query) == {}

    def test_file_database_takes_no_credentials(self, tmp_path: Path) -> None:
        """File databases have no host and get no credentials."""
        url = build_engine_url(make_settings(f"sqlite:///{tmp_path / 'x.db'}"))

        assert url.username is None
        assert url.password is None

    def test_malformed_url(self) -> None:
        """An unparsable URL is a configuration error."""
        with pytest.raises(ConfigurationError, match="Invalid storage URL"):
            build_engine_url(make_settings("not a url"))


class TestConnectionProvider:
    """Test connection acquisition and disposal."""

    def test_connection_executes(self, provider: ConnectionProvider) -> None:
        """Acquired connections run statements."""
        with provider.connection() as conn:
            assert conn.exec_driver_sql("SELECT 1").scalar_one() == 1

    def test_dialect_name(self, provider: ConnectionProvider) -> None:
        """The underlying SQLAlchemy dialect is exposed."""
        assert provider.dialect_name == "sqlite"

    def test_autocommit(self, provider: ConnectionProvider) -> None:
        """Each statement is visible to other connections without a commit."""
        with provider.connection() as writer:
            writer.exec_driver_sql("CREATE TABLE ledger (x INTEGER)")
            writer.exec_driver_sql("INSERT INTO ledger (x) VALUES (1)")

            with provider.connection() as reader:
                assert reader.exec_driver_sql("SELECT COUNT(*) FROM ledger").scalar_one() == 1

    def test_acquisition_failure(self, tmp_path: Path) -> None:
        """Unreachable databases raise PoolConnectionError."""
        url = f"sqlite:///{tmp_path / 'missing-dir' / 'dfs.db'}"
        provider = ConnectionProvider.from_settings(make_settings(url))

        with pytest.raises(PoolConnectionError):
            with provider.connection():
                pass

    def test_dispose_is_idempotent(self, provider: ConnectionProvider) -> None:
        """dispose can be called repeatedly and blocks further use."""
        provider.dispose()
        provider.dispose()

        with pytest.raises(PoolConnectionError, match="disposed"):
            with provider.connection():
                pass

    def test_unknown_dialect_is_configuration_error(self) -> None:
        """A scheme SQLAlchemy has no dialect for fails at construction."""
        with pytest.raises(ConfigurationError, match="nosuchdb"):
            ConnectionProvider.from_settings(make_settings("nosuchdb://h/db"))

    def test_unknown_vendor_driver_is_configuration_error(self) -> None:
        """A bad driver override for the vendor scheme fails at construction."""
        settings = make_settings("kingbase8://h:54321/db", driver="postgresql+nosuchdbapi")

        with pytest.raises(ConfigurationError, match="postgresql\\+nosuchdbapi"):
            ConnectionProvider.from_settings(settings)

    def test_missing_dbapi_is_configuration_error(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """An uninstalled DBAPI module is reported as a configuration error."""

        def missing_driver(*args: object, **kwargs: object) -> None:
            raise ModuleNotFoundError("No module named 'psycopg2'")

        monkeypatch.setattr(db, "create_engine", missing_driver)

        with pytest.raises(ConfigurationError, match="psycopg2"):
            ConnectionProvider.from_settings(make_settings("kingbase8://h:54321/db"))
