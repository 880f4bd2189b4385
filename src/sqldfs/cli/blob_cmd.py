"""CLI commands for storing, fetching and expiring blobs.

Usage:
    sqldfs put logs job-42.log ./job-42.log
    sqldfs get logs job-42.log ./restored/job-42.log
    sqldfs stat logs job-42.log
    sqldfs clean logs --days 7
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from sqldfs.cli.common import open_service
from sqldfs.storage.base import DownloadRequest, FileLocation, StoreRequest
from sqldfs.storage.streams import FileSink, FileSource

console = Console()

put_app = typer.Typer(help="Store a local file as a blob")
get_app = typer.Typer(help="Download a blob into a local file")
stat_app = typer.Typer(help="Show a blob's metadata")
clean_app = typer.Typer(help="Delete blobs older than a number of days")


@put_app.callback(invoke_without_command=True)
def put(
    bucket: str = typer.Argument(..., help="Bucket to store into"),
    key: str = typer.Argument(..., help="Key of the blob"),
    file: Path = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        readable=True,
        help="Local file to store",
    ),
) -> None:
    """Store FILE at BUCKET/KEY, replacing any previous blob."""
    location = FileLocation(bucket, key)
    with open_service() as service:
        service.store(StoreRequest(location, FileSource(file)))
    typer.echo(f"Stored {file} at {location}")


@get_app.callback(invoke_without_command=True)
def get(
    bucket: str = typer.Argument(..., help="Bucket to read from"),
    key: str = typer.Argument(..., help="Key of the blob"),
    dest: Path = typer.Argument(..., dir_okay=False, help="File to write"),
) -> None:
    """Download BUCKET/KEY into DEST. A missing blob leaves DEST untouched."""
    location = FileLocation(bucket, key)
    with open_service() as service:
        if service.fetch_meta(location) is None:
            typer.echo(f"Blob {location} not found")
            return
        service.download(DownloadRequest(location, FileSink(dest)))
    typer.echo(f"Downloaded {location} to {dest}")


@stat_app.callback(invoke_without_command=True)
def stat(
    bucket: str = typer.Argument(..., help="Bucket to read from"),
    key: str = typer.Argument(..., help="Key of the blob"),
) -> None:
    """Show length, modification time and metadata of BUCKET/KEY."""
    location = FileLocation(bucket, key)
    with open_service() as service:
        file_meta = service.fetch_meta(location)

    if file_meta is None:
        typer.echo(f"Blob {location} not found", err=True)
        raise typer.Exit(code=1)

    table = Table(title=str(location))
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("length", str(file_meta.length))
    last_modified = file_meta.last_modified
    table.add_row("last_modified", last_modified.isoformat() if last_modified else "-")
    for name, value in sorted(file_meta.meta.items()):
        table.add_row(name, value)
    console.print(table)


@clean_app.callback(invoke_without_command=True)
def clean(
    bucket: str = typer.Argument(..., help="Bucket to clean"),
    days: int = typer.Option(
        7,
        "--days",
        "-d",
        min=0,
        help="Delete blobs not modified within this many days",
    ),
) -> None:
    """Delete blobs in BUCKET not modified within DAYS days."""
    with open_service() as service:
        service.clean_expired_files(bucket, days)
    typer.echo(f"Cleaned blobs older than {days} days in {bucket}")
