"""
Pydantic models for the serialized schema collection.

Field aliases are the wire names read by document renderers
(``tableName``, ``isPrimaryKey``, ``totalDatabases``, ...).
"""
from __future__ import annotations

import json
from typing import Any, Iterable, Sequence

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from .parser import ParsedColumn, ParsedTable


class _DocModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class ColumnDoc(_DocModel):
    """One column of a table."""
    name: str
    type: str
    nullable: bool = True
    is_primary_key: bool = Field(False, alias="isPrimaryKey")
    comment: str = ""

    @field_validator("comment", mode="before")
    @classmethod
    def none_as_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @classmethod
    def from_parsed(cls, column: ParsedColumn) -> ColumnDoc:
        return cls(
            name=column.name,
            type=column.data_type,
            nullable=column.nullable,
            is_primary_key=column.is_primary_key,
            comment=column.comment,
        )


class TableDoc(_DocModel):
    """One table with its columns in declaration order."""
    table_name: str = Field(..., alias="tableName")
    comment: str = ""
    columns: list[ColumnDoc] = Field(default_factory=list)

    @field_validator("comment", mode="before")
    @classmethod
    def none_as_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @classmethod
    def from_parsed(cls, table: ParsedTable) -> TableDoc:
        return cls(
            table_name=table.table_name,
            comment=table.comment,
            columns=[ColumnDoc.from_parsed(c) for c in table.columns],
        )


class DatabaseDoc(_DocModel):
    """All tables extracted from one source."""
    database: str
    tables: list[TableDoc] = Field(default_factory=list)


class SchemaCollection(_DocModel):
    """Aggregate of every source in one extraction run.

    Totals are derived on serialization, never stored.
    """
    databases: list[DatabaseDoc] = Field(default_factory=list)

    @computed_field(alias="totalDatabases")
    @property
    def total_databases(self) -> int:
        return len(self.databases)

    @computed_field(alias="totalTables")
    @property
    def total_tables(self) -> int:
        return sum(len(db.tables) for db in self.databases)

    @classmethod
    def from_sources(
        cls,
        sources: Iterable[tuple[str, Sequence[ParsedTable]]]
    ) -> SchemaCollection:
        """Fold (database, tables) pairs into a collection, keeping order.

        Args:
            sources: Source identity and parsed tables, in discovery order

        Returns:
            SchemaCollection with one DatabaseDoc per source
        """
        databases = [
            DatabaseDoc(
                database=database,
                tables=[TableDoc.from_parsed(t) for t in tables],
            )
            for database, tables in sources
        ]
        return cls(databases=databases)

    def to_document(self) -> dict[str, Any]:
        """Return the collection as a plain dict using wire field names."""
        return self.model_dump(by_alias=True)

    def to_json(self, indent: int = 2) -> str:
        """Serialize deterministically (same input, same bytes)."""
        return json.dumps(self.to_document(), ensure_ascii=False, indent=indent) + "\n"

    @classmethod
    def from_json(cls, data: str | bytes) -> SchemaCollection:
        """Load a serialized collection; totals in the input are ignored."""
        return cls.model_validate_json(data)
