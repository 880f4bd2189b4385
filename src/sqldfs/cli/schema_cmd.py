"""CLI command for provisioning the blob table.

Usage:
    sqldfs init-schema
    sqldfs init-schema --table-name job_artifacts
"""

from __future__ import annotations

import typer

from sqldfs.cli.common import open_service

app = typer.Typer(help="Create the blob table if it does not exist")


@app.callback(invoke_without_command=True)
def init_schema(
    table_name: str | None = typer.Option(
        None,
        "--table-name",
        "-t",
        help="Table to create (defaults to the configured table name)",
    ),
) -> None:
    """Create the blob table for the detected dialect.

    Runs regardless of the auto_create_table setting; an existing
    table is left untouched.
    """
    overrides: dict[str, object] = {"auto_create_table": True}
    if table_name:
        overrides["table_name"] = table_name

    with open_service(**overrides) as service:
        typer.echo(f"Table {service.table_name} ready (dialect: {service.dialect.value})")
