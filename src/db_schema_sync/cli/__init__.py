"""CLI tools for db-schema-sync."""
