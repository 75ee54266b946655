"""Schema model, mapping and in-memory index."""

from db_schema_sync.schema.models import (
    Field,
    Index,
    RawField,
    RawIndex,
    RawTable,
    SchemaFile,
)
from db_schema_sync.schema.mapper import map_schema_file
from db_schema_sync.schema.namespace import NamespaceResolver
from db_schema_sync.schema.index import SchemaIndex

__all__ = [
    # Models
    "Field",
    "Index",
    "RawField",
    "RawIndex",
    "RawTable",
    "SchemaFile",
    # Mapper
    "map_schema_file",
    # Namespace
    "NamespaceResolver",
    # Index
    "SchemaIndex",
]
