"""File watching and index synchronization."""

from db_schema_sync.sync.events import ChangeEmitter, ChangeStream, Subscription
from db_schema_sync.sync.watch_service import WatchService, WatchServiceState
from db_schema_sync.sync.sync_service import SchemaSyncService, SyncStats, attach

__all__ = [
    "ChangeEmitter",
    "ChangeStream",
    "SchemaSyncService",
    "Subscription",
    "SyncStats",
    "WatchService",
    "WatchServiceState",
    "attach",
]
