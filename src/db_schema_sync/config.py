"""Configuration management for db-schema-sync.

Settings come from three places, highest priority first:

1. Environment variables prefixed with DB_SCHEMA_SYNC_
2. The JSON config file (~/.db-schema-sync/config.json)
3. Field defaults
"""

import json
import os
import re
from pathlib import Path
from typing import Any, Dict, Optional

from loguru import logger
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_NAME_PATTERN = "**/*.dbdef.json"


class SchemaSyncConfig(BaseSettings):
    """Settings for the schema watcher and index."""

    root: Path = Field(
        default_factory=Path.cwd,
        description="Directory watched for schema definition files",
    )
    name_pattern: str = Field(
        default=DEFAULT_NAME_PATTERN,
        description="Glob (gitignore syntax) selecting schema definition files under root",
    )
    name_regexp: Optional[str] = Field(
        default=None,
        description="Regular expression whose first group names the namespace of a file path",
    )
    debounce_ms: int = Field(
        default=200,
        description="Milliseconds to wait for filesystem events to settle",
        gt=0,
    )
    log_level: str = Field(default="INFO", description="Log level for console and file sinks")
    log_file: Optional[Path] = Field(default=None, description="Optional log file path")

    model_config = SettingsConfigDict(
        env_prefix="DB_SCHEMA_SYNC_",
        extra="ignore",
    )

    @field_validator("name_pattern")
    @classmethod
    def validate_name_pattern(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("name_pattern must not be empty")
        return v.strip()

    @field_validator("name_regexp")
    @classmethod
    def validate_name_regexp(cls, v: Optional[str]) -> Optional[str]:
        if not v:
            return None
        try:
            compiled = re.compile(v)
        except re.error as e:
            raise ValueError(f"Invalid name_regexp {v!r}: {e}") from e
        if compiled.groups < 1:
            raise ValueError(f"name_regexp {v!r} needs a capture group for the namespace")
        return v

    @property
    def compiled_regexp(self) -> Optional[re.Pattern]:
        return re.compile(self.name_regexp) if self.name_regexp else None


def config_dir() -> Path:
    """Directory holding the JSON config file."""
    env_dir = os.environ.get("DB_SCHEMA_SYNC_CONFIG_DIR")
    if env_dir:
        return Path(env_dir)
    return Path.home() / ".db-schema-sync"


class ConfigManager:
    """Loads and saves SchemaSyncConfig as JSON."""

    def __init__(self, config_file: Optional[Path] = None):
        self.config_file = config_file or config_dir() / "config.json"

    def _file_values(self) -> Dict[str, Any]:
        if not self.config_file.exists():
            return {}
        try:
            data = json.loads(self.config_file.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable config file {self.config_file}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring config file {self.config_file}: expected a JSON object")
            return {}
        return data

    def load_config(self, **overrides: Any) -> SchemaSyncConfig:
        """Load config from file, letting environment variables win over file values.

        Explicit keyword overrides (e.g. CLI options) win over both.
        """
        values = {
            key: value
            for key, value in self._file_values().items()
            if f"DB_SCHEMA_SYNC_{key.upper()}" not in os.environ
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        return SchemaSyncConfig(**values)

    def save_config(self, config: SchemaSyncConfig) -> None:
        self.config_file.parent.mkdir(parents=True, exist_ok=True)
        self.config_file.write_text(config.model_dump_json(indent=2), encoding="utf-8")
        logger.debug(f"Saved config to {self.config_file}")
