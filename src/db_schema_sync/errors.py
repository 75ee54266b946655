"""
Exceptions raised while loading schema definition files and watching for changes.
"""


class SchemaSyncError(Exception):
    """Base exception for all schema sync errors."""

    pass


class SchemaLoadError(SchemaSyncError):
    """Raised when a single schema definition file cannot be loaded."""

    def __init__(self, message: str, path: str | None = None):
        self.path = path
        location = f" ({path})" if path else ""
        super().__init__(f"{message}{location}")


class SchemaReadError(SchemaLoadError):
    """Raised when a schema file is missing or unreadable at read time."""

    pass


class SchemaParseError(SchemaLoadError):
    """Raised when file content is not a valid list of table descriptors."""

    pass


class WatcherSetupError(SchemaSyncError):
    """Raised when the file watcher cannot be established."""

    pass
