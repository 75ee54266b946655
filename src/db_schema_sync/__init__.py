"""db-schema-sync - in-memory schema index kept in sync with definition files."""

__version__ = "0.1.0"
