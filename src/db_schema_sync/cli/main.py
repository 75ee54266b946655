"""Main CLI entry point for db-schema-sync."""  # pragma: no cover

import sys  # pragma: no cover

if sys.platform == "win32":  # pragma: no cover
    import asyncio

    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

from db_schema_sync.cli.app import app  # pragma: no cover

# Register commands
from db_schema_sync.cli.commands import tables, watch  # noqa: F401  # pragma: no cover

if __name__ == "__main__":  # pragma: no cover
    app()
