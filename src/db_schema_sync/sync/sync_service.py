"""Service keeping the schema index in sync with schema definition files."""

import asyncio
import json
import re
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, AsyncIterator, Dict, List, Optional, Union

from loguru import logger
from pydantic import ValidationError

from db_schema_sync.config import SchemaSyncConfig
from db_schema_sync.errors import SchemaLoadError, SchemaParseError, WatcherSetupError
from db_schema_sync.file_utils import build_pattern_spec, read_file_content, scan_directory
from db_schema_sync.schema import NamespaceResolver, SchemaFile, SchemaIndex, map_schema_file
from db_schema_sync.sync.events import ChangeEmitter
from db_schema_sync.sync.watch_service import WatchService
from db_schema_sync.utils import FilePath


@dataclass
class SyncStats:
    """Counters for load and unload operations.

    Attributes:
        loaded: Files loaded successfully
        unloaded: Unload operations (deletes)
        failed: Loads that failed to read or parse
        failures: path -> error message of the last failed load, cleared on success
    """

    loaded: int = 0
    unloaded: int = 0
    failed: int = 0
    failures: Dict[str, str] = field(default_factory=dict)


class SchemaSyncService:
    """Loads schema definition files into a SchemaIndex and keeps it current.

    Every file maps to one namespace. Loading a file first purges its
    namespace, then reads, parses and inserts the tables it defines. A
    deleted file purges its namespace. Each completed load (successful or
    not) and each unload fires exactly one change notification carrying
    the namespace.

    Operations on the same namespace are serialized in trigger order;
    operations on different namespaces run concurrently.
    """

    def __init__(
        self,
        config: SchemaSyncConfig,
        index: Optional[SchemaIndex] = None,
        status_path: Optional[Path] = None,
        quiet: bool = True,
    ):
        self.config = config
        self.root = Path(config.root).expanduser().absolute()
        self.resolver = NamespaceResolver.from_pattern(config.name_regexp)
        self.index = index if index is not None else SchemaIndex()
        self.on_change = ChangeEmitter()
        self.stats = SyncStats()
        self.watch_service = WatchService(
            root=self.root,
            name_pattern=config.name_pattern,
            on_changed=self.load_file,
            on_deleted=self.unload_file,
            debounce_ms=config.debounce_ms,
            status_path=status_path,
            quiet=quiet,
        )
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}
        self._initial_load: Optional[asyncio.Task] = None
        self._disposed = False

    async def __aenter__(self) -> "SchemaSyncService":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.dispose()

    # --- Lifecycle ---

    async def start(self) -> None:
        """Start watching and schedule the initial load of every matching file.

        Raises:
            WatcherSetupError: If the watcher cannot be established
        """
        self.watch_service.start()
        self._initial_load = asyncio.create_task(self.load_all(), name="schema-initial-load")

    async def wait_ready(self) -> None:
        """Wait until the initial load has finished."""
        if self._initial_load is not None:
            await asyncio.shield(self._initial_load)

    async def dispose(self) -> None:
        """Stop watching. The index keeps its content. Safe to call more than once."""
        if self._disposed:
            return
        self._disposed = True

        if self._initial_load is not None and not self._initial_load.done():
            self._initial_load.cancel()
            try:
                await self._initial_load
            except asyncio.CancelledError:
                logger.debug("Initial schema load cancelled by dispose")

        await self.watch_service.stop()
        logger.info(f"Schema sync disposed: root={self.root}")

    # --- Queries ---

    def get_collection(self, namespace: Optional[str] = None) -> List[SchemaFile]:
        if namespace:
            return self.index.query_by_namespace(namespace)
        return self.index.query_all()

    def get_table(self, name: str) -> Optional[SchemaFile]:
        return self.index.find_table(name)

    # --- Load / unload ---

    async def load_all(self) -> int:
        """Load every file under root that matches the pattern.

        Returns:
            Number of files loaded successfully
        """
        start_time = time.time()
        spec = build_pattern_spec(self.config.name_pattern)
        paths = [path async for path in scan_directory(self.root, spec)]
        logger.info(f"Initial schema load started: root={self.root}, files={len(paths)}")

        results = await asyncio.gather(*(self.load_file(path) for path in paths))
        loaded = sum(1 for ok in results if ok)

        duration_ms = int((time.time() - start_time) * 1000)
        logger.info(
            f"Initial schema load completed: loaded={loaded}, failed={len(paths) - loaded}, "
            f"tables={len(self.index)}, duration_ms={duration_ms}"
        )
        return loaded

    async def load_file(self, path: FilePath) -> bool:
        """Reload the tables of one schema file.

        Read and parse errors are logged and recorded in stats; the namespace
        is left empty in that case.

        Returns:
            True if the file was loaded, False otherwise
        """
        path = str(path)
        if not path:
            return False

        namespace = self.resolver.resolve(path)
        async with self._lock_for(namespace):
            removed = self.index.remove_namespace(namespace)
            if removed:
                logger.debug(f"Purged before load: namespace={namespace}, tables={removed}")

            try:
                content = await read_file_content(path)
                records = map_schema_file(namespace, self.parse_content(content, path))
            except SchemaLoadError as e:
                self.stats.failed += 1
                self.stats.failures[path] = str(e)
                logger.error(f"Can't load schema file: path={path}, error={e}")
                self.on_change.fire(namespace)
                return False

            self.index.insert(records)
            self.stats.loaded += 1
            self.stats.failures.pop(path, None)
            logger.info(
                f"Loaded schema file: path={path}, namespace={namespace}, tables={len(records)}"
            )
            self.on_change.fire(namespace)
            return True

    async def unload_file(self, path: FilePath) -> bool:
        """Remove the tables of one schema file's namespace."""
        path = str(path)
        if not path:
            return False

        namespace = self.resolver.resolve(path)
        async with self._lock_for(namespace):
            removed = self.index.remove_namespace(namespace)
            self.stats.unloaded += 1
            self.stats.failures.pop(path, None)
            logger.info(
                f"Unloaded schema file: path={path}, namespace={namespace}, tables={removed}"
            )
            self.on_change.fire(namespace)
            return True

    @staticmethod
    def parse_content(content: str, path: Optional[str] = None) -> Any:
        """Deserialize schema file content.

        Raises:
            SchemaParseError: If the content is not valid JSON
        """
        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            raise SchemaParseError(f"Invalid JSON: {e}", path=path) from e
        except (ValueError, RecursionError) as e:
            raise SchemaParseError(f"Unparseable content: {e}", path=path) from e

    @asynccontextmanager
    async def _lock_for(self, namespace: str) -> AsyncIterator[None]:
        """Hold the namespace lock. The lock is dropped once nobody holds or waits for it."""
        lock = self._locks.get(namespace)
        if lock is None:
            lock = self._locks[namespace] = asyncio.Lock()
        self._lock_users[namespace] = self._lock_users.get(namespace, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[namespace] -= 1
            if not self._lock_users[namespace]:
                del self._lock_users[namespace]
                del self._locks[namespace]


async def attach(
    name_pattern: Optional[str] = None,
    name_regexp: Union[str, re.Pattern, None] = None,
    root: Optional[FilePath] = None,
    config: Optional[SchemaSyncConfig] = None,
    **kwargs: Any,
) -> SchemaSyncService:
    """Create a SchemaSyncService, start watching and trigger the initial load.

    Explicit arguments override the matching config values. The returned
    service is owned by the caller, who must dispose() it.

    Raises:
        WatcherSetupError: If the watcher cannot be established
    """
    overrides: Dict[str, Any] = {}
    if name_pattern is not None:
        overrides["name_pattern"] = name_pattern
    if name_regexp is not None:
        overrides["name_regexp"] = (
            name_regexp.pattern if isinstance(name_regexp, re.Pattern) else name_regexp
        )
    if root is not None:
        overrides["root"] = Path(root)

    if config is None:
        try:
            config = SchemaSyncConfig(**overrides)
        except ValidationError as e:
            raise WatcherSetupError(f"Invalid schema sync configuration: {e}") from e
    elif overrides:
        config = config.model_copy(update=overrides)

    service = SchemaSyncService(config, **kwargs)
    await service.start()
    return service
