"""Maps deserialized schema definition content into SchemaFile records.

The mapping is a pure function: raw descriptors are validated first, then
each table's indexes are built so that key flags on fields can be derived
from them. Ordering of tables, fields, indexes and index members follows
the source exactly.
"""

from typing import Any, List, Sequence

from pydantic import ValidationError

from db_schema_sync.errors import SchemaParseError
from db_schema_sync.schema.models import Field, Index, RawTable, SchemaFile


def _validate_tables(raw_list: Any) -> List[RawTable]:
    """Validate the structure of every descriptor before mapping any of them.

    Raises:
        SchemaParseError: If raw_list is not a list or any item is malformed
    """
    if not isinstance(raw_list, list):
        raise SchemaParseError(
            f"Schema definition must be a list of tables, got {type(raw_list).__name__}"
        )

    tables = []
    for position, item in enumerate(raw_list):
        try:
            tables.append(RawTable.model_validate(item))
        except ValidationError as e:
            errors = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or '<item>'}: {err['msg']}"
                for err in e.errors()
            )
            raise SchemaParseError(
                f"Malformed table descriptor at position {position}: {errors}"
            ) from e
    return tables


def _map_table(namespace: str, table: RawTable) -> SchemaFile:
    indexes = [
        Index(
            name=raw_index.label,
            is_pk=raw_index.primary,
            is_unique=raw_index.unique,
            fields=raw_index.member_names,
        )
        for raw_index in table.indexes
    ]

    # membership is exact, case-sensitive string equality
    primary_members = {name for index in indexes if index.is_pk for name in index.fields}
    key_members = {name for index in indexes for name in index.fields}

    fields = [
        Field(
            name=raw_field.label,
            type=raw_field.data_type,
            description=raw_field.detail,
            mandatory=raw_field.mandatory,
            format=raw_field.format,
            is_pk=raw_field.label in primary_members,
            is_key=raw_field.label in key_members,
        )
        for raw_field in table.fields
    ]

    return SchemaFile(
        namespace=namespace,
        name=table.label,
        description=table.detail,
        fields=fields,
        indexes=indexes,
    )


def map_schema_file(namespace: str, raw_list: Sequence[Any]) -> List[SchemaFile]:
    """Convert a deserialized schema definition file into SchemaFile records.

    Args:
        namespace: Namespace that owns every produced record
        raw_list: Parsed file content, a list of table descriptors

    Returns:
        One SchemaFile per descriptor, in source order

    Raises:
        SchemaParseError: If the content does not have the expected shape.
            Nothing is returned for the file in that case.
    """
    tables = _validate_tables(raw_list)
    return [_map_table(namespace, table) for table in tables]
