"""Utilities for reading and enumerating schema definition files."""

import asyncio
import os
from pathlib import Path
from typing import AsyncIterator, List, Tuple

import aiofiles
import pathspec
from loguru import logger

from db_schema_sync.errors import SchemaReadError, WatcherSetupError
from db_schema_sync.utils import FilePath


def build_pattern_spec(pattern: str) -> pathspec.PathSpec:
    """Build a PathSpec matching schema file paths relative to the watched root.

    Args:
        pattern: Glob in gitignore syntax, e.g. "**/*.dbdef.json"

    Returns:
        PathSpec object for matching relative paths

    Raises:
        WatcherSetupError: If the pattern is empty or cannot be compiled
    """
    if not pattern or not pattern.strip():
        raise WatcherSetupError("Schema file pattern must not be empty")
    try:
        return pathspec.PathSpec.from_lines("gitwildmatch", [pattern.strip()])
    except Exception as e:
        raise WatcherSetupError(f"Invalid schema file pattern {pattern!r}: {e}") from e


def matches_pattern(path: FilePath, root: Path, spec: pathspec.PathSpec) -> bool:
    """Check whether an absolute path under root matches the pattern spec.

    Paths outside the root never match.
    """
    try:
        relative_path = Path(path).relative_to(root)
    except ValueError:
        return False
    return spec.match_file(relative_path.as_posix())


async def read_file_content(path: FilePath) -> str:
    """Read a schema file as utf-8 text without blocking the event loop.

    Raises:
        SchemaReadError: If the file is missing, unreadable or not valid utf-8
    """
    try:
        async with aiofiles.open(path, mode="r", encoding="utf-8") as f:
            return await f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise SchemaReadError(f"Can't read schema file: {e}", path=str(path)) from e


async def scan_directory(root: Path, spec: pathspec.PathSpec) -> AsyncIterator[str]:
    """Stream files under root that match the pattern spec.

    os.scandir is synchronous, so each directory listing runs in the
    default executor.

    Args:
        root: Directory to scan
        spec: PathSpec built by build_pattern_spec

    Yields:
        Absolute paths of matching files
    """

    def _sync_scandir(dir_path: Path) -> Tuple[List[str], List[Path]]:
        try:
            entries = list(os.scandir(dir_path))
        except PermissionError:
            logger.warning(f"Permission denied scanning directory: {dir_path}")
            return [], []

        files = []
        subdirs = []
        for entry in entries:
            if entry.is_dir(follow_symlinks=False):
                subdirs.append(Path(entry.path))
            elif entry.is_file(follow_symlinks=False):
                if matches_pattern(entry.path, root, spec):
                    files.append(entry.path)
        return sorted(files), sorted(subdirs)

    async def _walk(dir_path: Path) -> AsyncIterator[str]:
        loop = asyncio.get_running_loop()
        files, subdirs = await loop.run_in_executor(None, _sync_scandir, dir_path)

        for file_path in files:
            yield file_path

        for subdir in subdirs:
            async for file_path in _walk(subdir):
                yield file_path

    async for file_path in _walk(root):
        yield file_path
