"""Helpers shared by CLI commands."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

import typer

from sqldfs.config import DfsSettings
from sqldfs.errors import DfsError
from sqldfs.storage.factory import create_dfs_service
from sqldfs.storage.sql import SqlDfsService


@contextmanager
def open_service(**overrides: object) -> Iterator[SqlDfsService]:
    """Build the service from the environment and shut it down afterwards.

    Exits with code 1 and a message on any sqldfs error.
    """
    try:
        settings = DfsSettings(**overrides)
        service = create_dfs_service(settings)
    except DfsError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    try:
        yield service
    except DfsError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    finally:
        service.shutdown()
