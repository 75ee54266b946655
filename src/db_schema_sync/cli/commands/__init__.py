"""CLI commands for db-schema-sync."""

from . import tables, watch

__all__ = ["tables", "watch"]
