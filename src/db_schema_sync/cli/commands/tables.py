"""One-shot commands printing the schema index."""

import asyncio
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from db_schema_sync.cli.app import app, get_config
from db_schema_sync.config import SchemaSyncConfig
from db_schema_sync.errors import WatcherSetupError
from db_schema_sync.sync import SchemaSyncService

console = Console()


async def load_index(config: SchemaSyncConfig) -> SchemaSyncService:
    """Load every schema file once, without watching."""
    service = SchemaSyncService(config)
    if not service.root.is_dir():
        raise WatcherSetupError(f"Schema root is not a directory: {service.root}")
    await service.load_all()
    return service


def _load_or_exit(config: SchemaSyncConfig) -> SchemaSyncService:
    try:
        service = asyncio.run(load_index(config))
    except WatcherSetupError as e:
        console.print(f"[red]✗ {escape(str(e))}[/red]")
        raise typer.Exit(1)

    for path, error in service.stats.failures.items():
        console.print(f"[yellow]Skipped {escape(path)}: {escape(error)}[/yellow]")
    return service


@app.command()
def tables(
    ctx: typer.Context,
    namespace: Annotated[
        Optional[str],
        typer.Option("--namespace", "-n", help="Only list tables of this namespace"),
    ] = None,
) -> None:
    """List the tables defined by the schema files."""
    service = _load_or_exit(get_config(ctx))
    records = service.get_collection(namespace.lower() if namespace else None)

    if not records:
        console.print("[yellow]No tables found.[/yellow]")
        return

    table = Table(title=f"Tables: {namespace or 'all'}")
    table.add_column("Namespace", style="cyan")
    table.add_column("Table", style="bold")
    table.add_column("Fields", justify="right")
    table.add_column("Indexes", justify="right")
    table.add_column("Description")

    for record in records:
        table.add_row(
            record.namespace,
            record.name,
            str(len(record.fields)),
            str(len(record.indexes)),
            record.description or "",
        )

    console.print(table)
    console.print(f"\n{len(records)} tables in {len(service.index.namespaces())} namespaces")


@app.command()
def show(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Table name (case-insensitive)")],
) -> None:
    """Show the fields and indexes of one table."""
    service = _load_or_exit(get_config(ctx))
    record = service.get_table(name)
    if record is None:
        console.print(f"[red]✗ Table not found: {escape(name)}[/red]")
        raise typer.Exit(1)

    fields = Table(title=f"{record.namespace}.{record.name}")
    fields.add_column("Field", style="bold")
    fields.add_column("Type")
    fields.add_column("Mandatory", justify="center")
    fields.add_column("PK", justify="center")
    fields.add_column("Key", justify="center")
    fields.add_column("Format")
    fields.add_column("Description")

    for field in record.fields:
        fields.add_row(
            field.name,
            field.type or "",
            "✓" if field.mandatory else "",
            "✓" if field.is_pk else "",
            "✓" if field.is_key else "",
            field.format or "",
            field.description or "",
        )
    console.print(fields)

    if record.indexes:
        indexes = Table(title="Indexes")
        indexes.add_column("Index", style="bold")
        indexes.add_column("Primary", justify="center")
        indexes.add_column("Unique", justify="center")
        indexes.add_column("Fields")
        for index in record.indexes:
            indexes.add_row(
                index.name,
                "✓" if index.is_pk else "",
                "✓" if index.is_unique else "",
                ", ".join(index.fields),
            )
        console.print(indexes)
