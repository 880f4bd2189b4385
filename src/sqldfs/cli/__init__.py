"""CLI commands for sqldfs.

Provides command-line interface using Typer:
- sqldfs init-schema: Create the blob table
- sqldfs put: Store a local file
- sqldfs get: Download a blob
- sqldfs stat: Show blob metadata
- sqldfs clean: Delete expired blobs

Connection settings come from OMS_STORAGE_DFS_KINGBASE_* environment
variables or a .env file.

Usage:
    sqldfs --help
    sqldfs init-schema
    sqldfs put logs job-42.log ./job-42.log
    sqldfs clean logs --days 7
"""

import typer

from sqldfs.cli.blob_cmd import clean_app, get_app, put_app, stat_app
from sqldfs.cli.schema_cmd import app as schema_app
from sqldfs.config import settings
from sqldfs.observability.logging import configure_logging

# Main CLI application
app = typer.Typer(
    name="sqldfs",
    help="sqldfs: job artifact storage in a relational database",
    no_args_is_help=True,
)

# Add subcommands
app.add_typer(schema_app, name="init-schema")
app.add_typer(put_app, name="put")
app.add_typer(get_app, name="get")
app.add_typer(stat_app, name="stat")
app.add_typer(clean_app, name="clean")


@app.callback()
def callback(
    log_level: str = typer.Option(
        settings.log_level,
        "--log-level",
        "-l",
        help="Log level: debug, info, warning, error",
    ),
    json_logs: bool = typer.Option(
        settings.log_json,
        "--json-logs/--console-logs",
        help="Emit JSON log lines instead of console lines",
    ),
) -> None:
    """sqldfs: job artifact storage in a relational database."""
    configure_logging(json_format=json_logs, level=log_level)


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
