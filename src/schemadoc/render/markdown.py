"""
Schema Document Renderer

Turns a serialized schema collection into a Markdown document: one heading
per database and table, the table comment, and a column table with
localized yes/no labels.
"""
from __future__ import annotations

import logging
from pathlib import Path

from pydantic import ValidationError

from ..errors import RenderInputError
from ..sql_schema.extractor import write_text_atomic
from ..sql_schema.models import SchemaCollection

logger = logging.getLogger(__name__)


LABELS: dict[str, dict[str, str]] = {
    "en": {
        "title": "Database Schema",
        "database": "Database",
        "table": "Table",
        "table_comment": "Description",
        "none": "None",
        "column": "Column",
        "type": "Type",
        "nullable": "Nullable",
        "primary_key": "Primary Key",
        "comment": "Comment",
        "yes": "Yes",
        "no": "No",
    },
    "zh": {
        "title": "数据库表结构文档",
        "database": "数据库",
        "table": "表名",
        "table_comment": "表说明",
        "none": "无",
        "column": "字段名",
        "type": "数据类型",
        "nullable": "可空",
        "primary_key": "主键",
        "comment": "说明",
        "yes": "是",
        "no": "否",
    },
}


def render_markdown(collection: SchemaCollection, locale: str = "en") -> str:
    """Generate the Markdown schema document.

    Args:
        collection: Extracted schema collection
        locale: Label language ("en" or "zh")

    Returns:
        Markdown text ending with a newline
    """
    if locale not in LABELS:
        raise ValueError(f"Unsupported locale: {locale}")
    labels = LABELS[locale]

    lines = []
    lines.append(f"# {labels['title']}\n")

    for db in collection.databases:
        lines.append(f"## {labels['database']}: {db.database}\n")

        for table in db.tables:
            lines.append(f"### {labels['table']}: {table.table_name}\n")
            lines.append(f"**{labels['table_comment']}:** {_cell(table.comment) or labels['none']}\n")

            lines.append(
                f"| {labels['column']} | {labels['type']} | {labels['nullable']} "
                f"| {labels['primary_key']} | {labels['comment']} |"
            )
            lines.append("|---|---|---|---|---|")
            for col in table.columns:
                nullable = labels["yes"] if col.nullable else labels["no"]
                is_pk = labels["yes"] if col.is_primary_key else labels["no"]
                lines.append(
                    f"| {_cell(col.name)} | {_cell(col.type)} | {nullable} "
                    f"| {is_pk} | {_cell(col.comment)} |"
                )
            lines.append("")

    return "\n".join(lines).rstrip("\n") + "\n"


def load_collection(input_path: Path | str) -> SchemaCollection:
    """Read a serialized collection from disk.

    Raises:
        RenderInputError: If the file cannot be read or is not a collection
    """
    input_path = Path(input_path)
    try:
        data = input_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise RenderInputError(f"Failed to read {input_path}: {e}") from e

    try:
        return SchemaCollection.from_json(data)
    except ValidationError as e:
        raise RenderInputError(f"Invalid schema collection in {input_path}: {e}") from e


def render_file(
    input_path: Path | str,
    output_path: Path | str,
    locale: str = "en"
) -> SchemaCollection:
    """Render a serialized collection file to a Markdown file.

    Returns:
        The collection that was rendered

    Raises:
        RenderInputError: If the input is unusable
        OutputWriteError: If the output cannot be written
    """
    collection = load_collection(input_path)
    write_text_atomic(output_path, render_markdown(collection, locale))
    logger.info(
        f"Rendered {collection.total_tables} tables from "
        f"{collection.total_databases} databases to {output_path}"
    )
    return collection


def _cell(text: str) -> str:
    """Escape text for a single Markdown table cell."""
    return " ".join(text.replace("|", "\\|").splitlines()).strip()
