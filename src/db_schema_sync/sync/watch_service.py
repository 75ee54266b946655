"""Watch service for schema definition files."""

import asyncio
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Awaitable, Callable, List, Optional, Set, Tuple

from loguru import logger
from pydantic import BaseModel, Field
from rich.console import Console
from rich.markup import escape
from watchfiles import Change, awatch

from db_schema_sync.errors import WatcherSetupError
from db_schema_sync.file_utils import build_pattern_spec, matches_pattern

FileChange = Tuple[Change, str]
FileHandler = Callable[[str], Awaitable[Any]]

MAX_RECENT_EVENTS = 100


class WatchEvent(BaseModel):
    timestamp: datetime
    path: str
    action: str  # changed, deleted
    status: str  # success, error
    error: Optional[str] = None


class WatchServiceState(BaseModel):
    # Service status
    running: bool = False
    start_time: datetime = Field(default_factory=datetime.now)
    pid: int = Field(default_factory=os.getpid)

    # Stats
    error_count: int = 0
    last_error: Optional[datetime] = None
    last_scan: Optional[datetime] = None

    # File counts
    synced_files: int = 0

    # Recent activity, newest first
    recent_events: List[WatchEvent] = Field(default_factory=list)

    def add_event(
        self,
        path: str,
        action: str,
        status: str,
        error: Optional[str] = None,
    ) -> WatchEvent:
        event = WatchEvent(
            timestamp=datetime.now(),
            path=path,
            action=action,
            status=status,
            error=error,
        )
        self.recent_events.insert(0, event)
        self.recent_events = self.recent_events[:MAX_RECENT_EVENTS]
        return event

    def record_error(self, error: str, path: str = "") -> None:
        self.error_count += 1
        self.add_event(path=path, action="sync", status="error", error=error)
        self.last_error = datetime.now()


class WatchService:
    """Watches a directory for schema files matching a glob.

    The service is only an event source: created and modified files are
    passed to on_changed, deleted files to on_deleted. It holds no schema
    state of its own.
    """

    def __init__(
        self,
        root: Path,
        name_pattern: str,
        on_changed: FileHandler,
        on_deleted: FileHandler,
        debounce_ms: int = 200,
        status_path: Optional[Path] = None,
        quiet: bool = True,
        stop_timeout: float = 5.0,
    ):
        self.root = Path(root).expanduser().absolute()
        self.name_pattern = name_pattern
        self.on_changed = on_changed
        self.on_deleted = on_deleted
        self.debounce_ms = debounce_ms
        self.status_path = status_path
        self.stop_timeout = stop_timeout
        self.state = WatchServiceState()
        self.console = Console(quiet=quiet)
        self._spec = None
        self._stop_event: Optional[asyncio.Event] = None
        self._task: Optional[asyncio.Task] = None
        self._dispatch_tasks: Set[asyncio.Task] = set()
        self._stopped = False

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Validate the setup and start watching in a background task.

        Raises:
            WatcherSetupError: If the root is not a directory or the pattern is invalid
        """
        if self._task is not None:
            raise WatcherSetupError("Watch service already started")
        if not self.root.is_dir():
            raise WatcherSetupError(f"Schema root is not a directory: {self.root}")
        if not os.access(self.root, os.R_OK | os.X_OK):
            raise WatcherSetupError(f"Permission denied on schema root: {self.root}")
        self._spec = build_pattern_spec(self.name_pattern)

        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self.run(), name="schema-watch")
        logger.info(f"Watch service started: root={self.root}, pattern={self.name_pattern}")

    async def stop(self) -> None:
        """Stop watching. Safe to call more than once and from inside a handler."""
        if self._stopped:
            return
        self._stopped = True

        if self._stop_event is not None:
            self._stop_event.set()

        task = self._task
        if task is None or task.done():
            return

        # called from the watch loop or one of its handlers: the loop exits on its own
        current = asyncio.current_task()
        if current is task or current in self._dispatch_tasks:
            return

        try:
            await asyncio.wait_for(task, timeout=self.stop_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Watch service did not stop within {self.stop_timeout}s, cancelled")
        except Exception as e:
            logger.error(f"Watch service ended with error: {e}")
        logger.info("Watch service stopped")

    async def run(self) -> None:
        """Watch for file changes until stop() is called."""
        self.state.running = True
        self.state.start_time = datetime.now()
        await self.write_status()

        try:
            async for changes in awatch(
                self.root,
                debounce=self.debounce_ms,
                watch_filter=self.filter_changes,
                recursive=True,
                stop_event=self._stop_event,
            ):
                await self.handle_changes(changes)
        except Exception as e:
            logger.exception("Watch service error")
            self.state.record_error(str(e))
            await self.write_status()
            raise
        finally:
            self.state.running = False
            await self.write_status()

    def filter_changes(self, change: Change, path: str) -> bool:
        """Accept only files matching the schema file pattern."""
        if self._spec is None:
            self._spec = build_pattern_spec(self.name_pattern)
        return matches_pattern(path, self.root, self._spec)

    async def write_status(self) -> None:
        if self.status_path is None:
            return
        try:
            self.status_path.parent.mkdir(parents=True, exist_ok=True)
            self.status_path.write_text(self.state.model_dump_json(indent=2))
        except OSError as e:
            logger.warning(f"Could not write watch status to {self.status_path}: {e}")

    async def handle_changes(self, changes: Set[FileChange]) -> None:
        """Dispatch one batch of file changes.

        A batch is a set, so the order of changes to one path is lost. All
        changes to a path collapse into one action decided by the file system:
        a path that exists is reloaded, a missing one is unloaded.

        Every path runs as its own task so I/O for different files can
        overlap. The batch is complete when all of its handlers finished.
        """
        paths = sorted({path for _, path in changes})
        logger.debug(f"Handling {len(changes)} file changes on {len(paths)} paths")

        dispatched: List[Tuple[str, str, asyncio.Task]] = []
        for path in paths:
            if os.path.exists(path):
                action, handler = "changed", self.on_changed
            else:
                action, handler = "deleted", self.on_deleted

            task = asyncio.create_task(handler(path))
            self._dispatch_tasks.add(task)
            task.add_done_callback(self._dispatch_tasks.discard)
            dispatched.append((action, path, task))

        results = await asyncio.gather(*(t for _, _, t in dispatched), return_exceptions=True)

        for (action, path, _), result in zip(dispatched, results):
            if isinstance(result, BaseException):
                logger.error(f"Handler failed: action={action}, path={path}, error={result}")
                self.state.record_error(str(result), path=path)
                self.console.print(
                    f"[red]✗[/red] {action}: {escape(path)} ({escape(str(result))})"
                )
            elif result is False:
                # handler contained its own failure and reported it
                self.state.record_error(f"{action} failed", path=path)
                self.console.print(f"[yellow]![/yellow] {action}: {escape(path)} (not loaded)")
            else:
                self.state.synced_files += 1
                self.state.add_event(path=path, action=action, status="success")
                self.console.print(f"[green]✓[/green] {action}: {escape(path)}")

        self.state.last_scan = datetime.now()
        await self.write_status()
