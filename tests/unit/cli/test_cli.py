"""Tests for the sqldfs CLI."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest
from typer.testing import CliRunner

from sqldfs.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def restore_root_logger() -> Iterator[None]:
    """The CLI reconfigures the root logger; put it back afterwards."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def dfs_env(monkeypatch: pytest.MonkeyPatch, sqlite_url: str) -> None:
    monkeypatch.setenv("OMS_STORAGE_DFS_KINGBASE_URL", sqlite_url)
    monkeypatch.setenv("OMS_STORAGE_DFS_KINGBASE_USERNAME", "powerjob")
    monkeypatch.setenv("OMS_STORAGE_DFS_KINGBASE_PASSWORD", "secret")
    monkeypatch.setenv("OMS_STORAGE_DFS_KINGBASE_AUTO_CREATE_TABLE", "true")
    monkeypatch.setenv("OMS_STORAGE_DFS_KINGBASE_SERVER_ADDRESS", "cli-host")


@pytest.mark.usefixtures("dfs_env")
class TestBlobCommands:
    """Test put/get/stat/clean end to end."""

    def test_init_schema(self) -> None:
        """init-schema reports the table and dialect."""
        result = runner.invoke(app, ["--log-level", "warning", "init-schema"])

        assert result.exit_code == 0, result.output
        assert "oms_dfs_store ready (dialect: unknown)" in result.output

    def test_put_stat_get_clean(self, tmp_path: Path) -> None:
        """A stored file can be inspected, downloaded and expired."""
        source = tmp_path / "job-42.log"
        source.write_bytes(b"job 42 output\n")
        dest = tmp_path / "restored" / "job-42.log"

        result = runner.invoke(app, ["put", "logs", "job-42.log", str(source)])
        assert result.exit_code == 0, result.output

        result = runner.invoke(app, ["stat", "logs", "job-42.log"])
        assert result.exit_code == 0, result.output
        assert "length" in result.output
        assert "14" in result.output
        assert "cli-host" in result.output

        result = runner.invoke(app, ["get", "logs", "job-42.log", str(dest)])
        assert result.exit_code == 0, result.output
        assert dest.read_bytes() == b"job 42 output\n"

        result = runner.invoke(app, ["clean", "logs", "--days", "0"])
        assert result.exit_code == 0, result.output

        result = runner.invoke(app, ["stat", "logs", "job-42.log"])
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_get_missing_blob(self, tmp_path: Path) -> None:
        """Downloading a missing blob succeeds without creating the file."""
        dest = tmp_path / "missing.log"

        result = runner.invoke(app, ["get", "logs", "missing.log", str(dest)])

        assert result.exit_code == 0, result.output
        assert "not found" in result.output
        assert not dest.exists()


def test_missing_configuration_exits_with_error(monkeypatch: pytest.MonkeyPatch) -> None:
    """Commands fail cleanly when the URL is not configured."""
    monkeypatch.delenv("OMS_STORAGE_DFS_KINGBASE_URL", raising=False)
    monkeypatch.chdir(Path(__file__).parent)

    result = runner.invoke(app, ["stat", "logs", "job.log"])

    assert result.exit_code == 1
    assert "Missing required storage properties" in result.output


def test_malformed_url_exits_with_error(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """An unparsable URL is reported instead of a traceback."""
    monkeypatch.setenv("OMS_STORAGE_DFS_KINGBASE_URL", "not a url")
    monkeypatch.setenv("OMS_STORAGE_DFS_KINGBASE_USERNAME", "powerjob")
    monkeypatch.setenv("OMS_STORAGE_DFS_KINGBASE_PASSWORD", "secret")
    monkeypatch.chdir(tmp_path)

    result = runner.invoke(app, ["stat", "logs", "job.log"])

    assert result.exit_code == 1
    assert "Invalid storage URL" in result.output
    assert result.exception is None or isinstance(result.exception, SystemExit)
