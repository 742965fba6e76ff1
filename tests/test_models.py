"""Tests for the serialized schema collection models."""
import json

import pytest
from pydantic import ValidationError

from schemadoc.sql_schema import (
    ColumnDoc,
    DatabaseDoc,
    ParsedColumn,
    ParsedTable,
    SchemaCollection,
    TableDoc,
)


def sample_collection() -> SchemaCollection:
    orders = ParsedTable(
        table_name="orders",
        comment="订单表",
        columns=(
            ParsedColumn(name="id", data_type="INT", nullable=False, is_primary_key=True),
            ParsedColumn(name="total", data_type="DECIMAL(10,2)", comment="order total"),
        ),
    )
    users = ParsedTable(table_name="users", columns=(ParsedColumn(name="id", data_type="BIGINT"),))
    return SchemaCollection.from_sources([("shop", [orders]), ("auth", [users])])


class TestSchemaCollection:
    """Test collection construction and serialization."""

    def test_from_sources_keeps_order(self):
        """Should keep sources and tables in the given order."""
        collection = sample_collection()

        assert [db.database for db in collection.databases] == ["shop", "auth"]
        assert collection.total_databases == 2
        assert collection.total_tables == 2

    def test_parsed_fields_mapped(self):
        """Should carry parsed column fields into the documents."""
        column = sample_collection().databases[0].tables[0].columns[0]

        assert column == ColumnDoc(
            name="id", type="INT", nullable=False, is_primary_key=True, comment=""
        )

    def test_wire_names(self):
        """Should serialize with camelCase wire names."""
        document = sample_collection().to_document()

        assert list(document) == ["databases", "totalDatabases", "totalTables"]
        table = document["databases"][0]["tables"][0]
        assert list(table) == ["tableName", "comment", "columns"]
        assert list(table["columns"][0]) == ["name", "type", "nullable", "isPrimaryKey", "comment"]

    def test_non_ascii_preserved(self):
        """Should write non-ASCII comments as-is."""
        assert "订单表" in sample_collection().to_json()

    def test_json_roundtrip(self):
        """Should load what it writes."""
        collection = sample_collection()
        assert SchemaCollection.from_json(collection.to_json()) == collection

    def test_totals_derived_on_load(self):
        """Should ignore stored totals and recompute them."""
        data = json.dumps({
            "databases": [{"database": "shop", "tables": []}],
            "totalDatabases": 7,
            "totalTables": 42,
        })
        collection = SchemaCollection.from_json(data)

        assert collection.total_databases == 1
        assert collection.total_tables == 0

    def test_null_comments_become_empty(self):
        """Should accept null comments as empty strings."""
        table = TableDoc.model_validate({
            "tableName": "t",
            "comment": None,
            "columns": [{"name": "a", "type": "INT", "comment": None}],
        })

        assert table.comment == ""
        assert table.columns[0].comment == ""
        assert table.columns[0].nullable is True
        assert table.columns[0].is_primary_key is False

    def test_missing_required_field(self):
        """Should reject a table without a name."""
        with pytest.raises(ValidationError):
            DatabaseDoc.model_validate({"database": "shop", "tables": [{"columns": []}]})

    def test_frozen(self):
        """Should not allow mutation after construction."""
        collection = sample_collection()
        with pytest.raises(ValidationError):
            collection.databases = []
