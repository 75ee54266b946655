"""Watch command - keep the schema index in sync until interrupted."""

import asyncio
import signal
import sys

import typer
from loguru import logger
from rich.console import Console
from rich.markup import escape

from db_schema_sync.cli.app import app, get_config
from db_schema_sync.config import SchemaSyncConfig, config_dir
from db_schema_sync.errors import WatcherSetupError
from db_schema_sync.sync import SchemaSyncService
from db_schema_sync.utils import setup_logging

console = Console()

WATCH_STATUS_JSON = "watch-status.json"


async def run_watch(config: SchemaSyncConfig) -> None:
    """Run the schema watcher as a long-running process.

    This is the async core of the watch command. It:
    1. Starts the sync service (watcher + initial load)
    2. Prints every change notification with the namespace's table count
    3. Blocks until SIGINT/SIGTERM, then disposes the service
    """
    service = SchemaSyncService(
        config,
        status_path=config_dir() / WATCH_STATUS_JSON,
        quiet=False,
    )

    def _print_change(namespace: str) -> None:
        tables = service.get_collection(namespace)
        console.print(f"[cyan]{escape(namespace)}[/cyan]: {len(tables)} tables")

    subscription = service.on_change.subscribe(_print_change)

    # --- Signal handling ---
    shutdown_event = asyncio.Event()

    def _signal_handler() -> None:
        logger.info("Shutdown signal received")
        shutdown_event.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _signal_handler)

    # --- Run ---
    try:
        await service.start()
        logger.info("Schema watcher running, press Ctrl+C to stop")
        await shutdown_event.wait()
    finally:
        subscription.dispose()
        await service.dispose()
        logger.info("Schema watcher stopped")


@app.command()
def watch(ctx: typer.Context) -> None:
    """Watch schema definition files and report index changes."""
    config = get_config(ctx)
    setup_logging(log_level=config.log_level, log_file=config.log_file)

    if sys.platform == "win32":  # pragma: no cover
        asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

    try:
        asyncio.run(run_watch(config))
    except WatcherSetupError as e:
        console.print(f"[red]✗ Could not start watcher: {escape(str(e))}[/red]")
        raise typer.Exit(1)
