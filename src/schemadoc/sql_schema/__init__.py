"""SQL Schema extraction module.

Provides specialized handling for SQL creation scripts:
- Parse CREATE TABLE statements into table and column records
- Extract primary keys, nullability, normalized types and comments
- Fold per-source results into a serializable schema collection
"""
from __future__ import annotations

from .parser import (
    ParsedColumn,
    ParsedTable,
    ParseResult,
    StructuralAnomaly,
    parse_schema,
    extract_tables,
    decompose_columns,
    extract_primary_keys,
)

from .models import (
    ColumnDoc,
    TableDoc,
    DatabaseDoc,
    SchemaCollection,
)

from .extractor import (
    SourceResult,
    SourceFailure,
    ExtractionReport,
    scan_sql_files,
    source_identity,
    read_source,
    extract_source,
    extract_sources,
    extract_directory,
    write_collection,
)

__all__ = [
    # Parser types
    "ParsedColumn",
    "ParsedTable",
    "ParseResult",
    "StructuralAnomaly",
    # Parser functions
    "parse_schema",
    "extract_tables",
    "decompose_columns",
    "extract_primary_keys",
    # Serialized models
    "ColumnDoc",
    "TableDoc",
    "DatabaseDoc",
    "SchemaCollection",
    # Extractor
    "SourceResult",
    "SourceFailure",
    "ExtractionReport",
    "scan_sql_files",
    "source_identity",
    "read_source",
    "extract_source",
    "extract_sources",
    "extract_directory",
    "write_collection",
]
