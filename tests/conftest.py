"""Common test fixtures."""

import json
from pathlib import Path
from typing import Any, Callable, List

import pytest
import pytest_asyncio

from db_schema_sync.config import SchemaSyncConfig
from db_schema_sync.sync import SchemaSyncService

# group 1 is the file's base name without the .def extension
NAME_REGEXP = r"([^/\\]+)\.def$"


@pytest.fixture(autouse=True)
def isolated_config_dir(tmp_path, monkeypatch) -> Path:
    """Keep every test away from the user's ~/.db-schema-sync directory."""
    config_dir = tmp_path / "config"
    monkeypatch.setenv("DB_SCHEMA_SYNC_CONFIG_DIR", str(config_dir))
    for name in ("ROOT", "NAME_PATTERN", "NAME_REGEXP", "DEBOUNCE_MS", "LOG_LEVEL", "LOG_FILE"):
        monkeypatch.delenv(f"DB_SCHEMA_SYNC_{name}", raising=False)
    return config_dir


@pytest.fixture
def schema_root(tmp_path) -> Path:
    root = tmp_path / "workspace"
    root.mkdir()
    return root


@pytest.fixture
def config(schema_root) -> SchemaSyncConfig:
    return SchemaSyncConfig(
        root=schema_root,
        name_pattern="**/*.def",
        name_regexp=NAME_REGEXP,
        debounce_ms=50,
    )


@pytest.fixture
def orders_table() -> dict:
    """The Orders table in on-disk format."""
    return {
        "label": "Orders",
        "detail": "Customer orders",
        "fields": [
            {"label": "OrderId", "dataType": "integer", "mandatory": True},
            {"label": "Total", "dataType": "decimal", "format": ">>>,>>9.99"},
        ],
        "indexes": [
            {
                "label": "PK_Orders",
                "primary": True,
                "unique": True,
                "fields": [{"label": "OrderId"}],
            }
        ],
    }


@pytest.fixture
def customer_table() -> dict:
    return {
        "label": "Customer",
        "detail": "Customers",
        "fields": [
            {"label": "CustNum", "dataType": "integer", "mandatory": True},
            {"label": "Name", "dataType": "character", "detail": "Customer name"},
            {"label": "Country", "dataType": "character"},
        ],
        "indexes": [
            {
                "label": "PK_Customer",
                "primary": True,
                "unique": True,
                "fields": [{"label": "CustNum"}],
            },
            {"label": "IX_Name", "primary": False, "unique": False, "fields": [{"label": "Name"}]},
        ],
    }


@pytest.fixture
def write_schema(schema_root) -> Callable[..., Path]:
    """Write a schema definition file under the workspace root.

    Tables are serialized as JSON; a str is written as-is.
    """

    def _write(relative_path: str, tables: List[Any] | str) -> Path:
        path = schema_root / relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        content = tables if isinstance(tables, str) else json.dumps(tables)
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def sync_service(config) -> SchemaSyncService:
    """A sync service that is not watching; tests drive load/unload directly."""
    return SchemaSyncService(config)


@pytest_asyncio.fixture
async def running_service(config):
    """A started sync service with the initial load completed."""
    service = SchemaSyncService(config)
    await service.start()
    await service.wait_ready()
    yield service
    await service.dispose()
