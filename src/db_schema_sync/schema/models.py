"""Data model for database schema definitions.

Two layers live here:

- Raw descriptors (pydantic) mirror the on-disk JSON shape and do the
  structural validation when a file is loaded.
- SchemaFile, Field and Index (dataclasses) are the normalized records held
  in the in-memory index.

On-disk shape of one schema definition file:

    [
      {
        "label": "Orders",
        "detail": "Customer orders",
        "fields": [
          {"label": "OrderId", "detail": "...", "dataType": "integer", "mandatory": true}
        ],
        "indexes": [
          {"label": "PK_Orders", "primary": true, "unique": true,
           "fields": [{"label": "OrderId"}]}
        ]
      }
    ]
"""

from dataclasses import dataclass, field
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field as PydanticField


# --- Raw descriptors ---


class RawIndexMember(BaseModel):
    """One entry of an index's field list."""

    model_config = ConfigDict(extra="ignore")

    label: str


class RawField(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    label: str
    detail: Optional[str] = None
    data_type: Optional[str] = PydanticField(default=None, alias="dataType")
    mandatory: bool = False
    format: Optional[str] = None


class RawIndex(BaseModel):
    model_config = ConfigDict(extra="ignore")

    label: str
    primary: bool = False
    unique: bool = False
    # members are usually {"label": ...} objects, plain strings are accepted too
    fields: List[Union[RawIndexMember, str]]

    @property
    def member_names(self) -> List[str]:
        return [m if isinstance(m, str) else m.label for m in self.fields]


class RawTable(BaseModel):
    """A table descriptor as found in a schema definition file."""

    model_config = ConfigDict(extra="ignore")

    label: str
    detail: Optional[str] = None
    fields: List[RawField]
    indexes: List[RawIndex]


# --- Normalized records ---


@dataclass
class Index:
    """An index of a table. fields holds member field names in source order."""

    name: str
    is_pk: bool = False
    is_unique: bool = False
    fields: List[str] = field(default_factory=list)


@dataclass
class Field:
    """A column of a table.

    is_pk and is_key are derived from the owning table's indexes: a field is a
    key field when any index lists it, and a primary field when a primary
    index lists it.
    """

    name: str
    type: Optional[str] = None
    description: Optional[str] = None
    mandatory: bool = False
    format: Optional[str] = None
    is_pk: bool = False
    is_key: bool = False


@dataclass
class SchemaFile:
    """One table record of the schema index, owned by a namespace."""

    namespace: str
    name: str
    description: Optional[str] = None
    fields: List[Field] = field(default_factory=list)
    indexes: List[Index] = field(default_factory=list)

    def get_field(self, name: str) -> Optional[Field]:
        """Look up a field by exact name."""
        return next((f for f in self.fields if f.name == name), None)

    @property
    def primary_key(self) -> Optional[Index]:
        return next((i for i in self.indexes if i.is_pk), None)
