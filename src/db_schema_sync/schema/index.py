"""In-memory collection of SchemaFile records."""

from typing import Iterator, List, Optional, Sequence

from db_schema_sync.schema.models import SchemaFile


class SchemaIndex:
    """Ordered collection of table records grouped by namespace.

    The index is owned by the sync service, which is the only writer.
    Reads return snapshots, so callers never see the list change under them.
    Table names are not unique across namespaces; find_table returns the
    first record in collection order.
    """

    def __init__(self) -> None:
        self._records: List[SchemaFile] = []

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[SchemaFile]:
        return iter(list(self._records))

    def insert(self, records: Sequence[SchemaFile]) -> None:
        """Append records to the end of the collection. Duplicates are not checked."""
        self._records.extend(records)

    def remove_namespace(self, namespace: str) -> int:
        """Remove every record of a namespace.

        Returns:
            Number of records removed (0 when the namespace was absent)
        """
        before = len(self._records)
        self._records = [r for r in self._records if r.namespace != namespace]
        return before - len(self._records)

    def query_all(self) -> List[SchemaFile]:
        return list(self._records)

    def query_by_namespace(self, namespace: str) -> List[SchemaFile]:
        return [r for r in self._records if r.namespace == namespace]

    def find_table(self, name: str) -> Optional[SchemaFile]:
        """Find a table by case-insensitive name, first match wins."""
        name = name.lower()
        return next((r for r in self._records if r.name.lower() == name), None)

    def namespaces(self) -> List[str]:
        """Distinct namespaces in first-seen order."""
        return list(dict.fromkeys(r.namespace for r in self._records))
