from pathlib import Path
from typing import Optional

import typer

from db_schema_sync.config import ConfigManager, SchemaSyncConfig


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:  # pragma: no cover
        import db_schema_sync

        typer.echo(f"db-schema-sync version: {db_schema_sync.__version__}")
        raise typer.Exit()


app = typer.Typer(name="db-schema-sync")


@app.callback()
def app_callback(
    ctx: typer.Context,
    root: Optional[Path] = typer.Option(
        None,
        "--root",
        "-r",
        help="Directory holding schema definition files",
        envvar="DB_SCHEMA_SYNC_ROOT",
    ),
    pattern: Optional[str] = typer.Option(
        None,
        "--pattern",
        help="Glob selecting schema definition files, e.g. '**/*.dbdef.json'",
    ),
    regexp: Optional[str] = typer.Option(
        None,
        "--regexp",
        help="Regular expression whose first group names the namespace of a file",
    ),
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """db-schema-sync - database schema definitions indexed from files."""
    ctx.obj = {"root": root, "name_pattern": pattern, "name_regexp": regexp}


def get_config(ctx: typer.Context) -> SchemaSyncConfig:
    """Load config, applying options given on the command line."""
    overrides = ctx.obj or {}
    try:
        return ConfigManager().load_config(**overrides)
    except ValueError as e:
        typer.echo(f"Invalid configuration: {e}", err=True)
        raise typer.Exit(1)
