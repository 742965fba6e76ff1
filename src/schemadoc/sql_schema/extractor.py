"""SQL schema extraction driver.

Discovers schema sources in a directory, parses each one, folds the results
into a SchemaCollection, and writes it out.
"""
from __future__ import annotations

import asyncio
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from ..config import ExtractConfig
from ..errors import FatalInputError, OutputWriteError, SourceReadError
from .models import SchemaCollection
from .parser import DEFAULT_DIALECT, ParsedTable, StructuralAnomaly, parse_schema

logger = logging.getLogger(__name__)

# Directories never descended into in recursive mode
SKIP_DIRS = {
    ".git", ".hg", ".svn",
    "node_modules", "__pycache__", ".venv", "venv",
    "vendor", "dist", "build", "target",
    ".cache", ".pytest_cache"
}


@dataclass(frozen=True)
class SourceResult:
    """Extraction result for one schema source."""
    database: str
    path: Path
    tables: tuple[ParsedTable, ...] = ()
    anomalies: tuple[StructuralAnomaly, ...] = ()


@dataclass(frozen=True)
class SourceFailure:
    """A source that could not be read."""
    path: Path
    reason: str


@dataclass(frozen=True)
class ExtractionReport:
    """Outcome of one extraction run."""
    collection: SchemaCollection
    sources: tuple[SourceResult, ...] = ()
    failures: tuple[SourceFailure, ...] = ()
    discovered: int = 0

    @property
    def anomaly_count(self) -> int:
        return sum(len(s.anomalies) for s in self.sources)

    def summary_lines(self) -> list[str]:
        """Human-readable run summary."""
        lines = [
            f"Sources found: {self.discovered}",
            f"Databases extracted: {self.collection.total_databases}",
            f"Tables extracted: {self.collection.total_tables}",
            f"Skipped items: {self.anomaly_count}",
            f"Failed sources: {len(self.failures)}",
        ]
        if self.sources:
            lines.append("")
            lines.append("Per database:")
            for source in self.sources:
                lines.append(f"  - {source.database}: {len(source.tables)} tables")
        if self.failures:
            lines.append("")
            lines.append("Failures:")
            for failure in self.failures:
                lines.append(f"  - {failure.path}: {failure.reason}")
        return lines


def scan_sql_files(
    input_dir: Path,
    extensions: list[str] | set[str] | None = None,
    recursive: bool = False
) -> list[Path]:
    """Scan a directory for schema source files.

    Args:
        input_dir: Directory to scan
        extensions: Accepted suffixes, lower-case with leading dot
            (default: .sql)
        recursive: Descend into subdirectories

    Returns:
        Matching file paths sorted by path relative to input_dir
    """
    suffixes = {ext.lower() for ext in (extensions or [".sql"])}
    candidates = input_dir.rglob("*") if recursive else input_dir.iterdir()

    found = []
    for item in candidates:
        rel_parts = item.relative_to(input_dir).parts
        if any(part in SKIP_DIRS for part in rel_parts[:-1]):
            continue
        if item.is_file() and item.suffix.lower() in suffixes:
            found.append(item)

    return sorted(found, key=lambda p: p.relative_to(input_dir).as_posix())


def source_identity(path: Path) -> str:
    """Database name for a source: the file name without its suffix."""
    return path.stem


def read_source(path: Path, encoding: str = "utf-8") -> str:
    """Read a whole source file.

    Raises:
        SourceReadError: If the file cannot be opened or decoded
    """
    try:
        return path.read_text(encoding=encoding)
    except (OSError, UnicodeDecodeError) as e:
        raise SourceReadError(path, str(e)) from e


def extract_source(
    path: Path,
    encoding: str = "utf-8",
    dialect: str = DEFAULT_DIALECT
) -> SourceResult:
    """Read and parse one schema source.

    Args:
        path: Path to the SQL file
        encoding: Text encoding of the file
        dialect: sqlglot dialect used to lex the file

    Returns:
        SourceResult with the tables in declaration order

    Raises:
        SourceReadError: If the file cannot be read
    """
    content = read_source(path, encoding)
    result = parse_schema(content, dialect)

    database = source_identity(path)
    for table in result.tables:
        suffix = f" - {table.comment}" if table.comment else ""
        logger.debug(f"{database}: table {table.table_name}{suffix}")

    skipped = f", {len(result.anomalies)} skipped items" if result.anomalies else ""
    logger.info(f"Extracted from {path.name}: {len(result.tables)} tables{skipped}")

    return SourceResult(
        database=database,
        path=path,
        tables=result.tables,
        anomalies=result.anomalies,
    )


def extract_sources(
    paths: list[Path],
    encoding: str = "utf-8",
    workers: int = 1,
    dialect: str = DEFAULT_DIALECT
) -> tuple[list[SourceResult], list[SourceFailure]]:
    """Extract every source, keeping discovery order.

    A source that cannot be read is recorded as a failure and the remaining
    sources are still processed.

    Args:
        paths: Source files in discovery order
        encoding: Text encoding of the files
        workers: Sources extracted concurrently (1 = sequential)
        dialect: sqlglot dialect used to lex the files

    Returns:
        Tuple of (results, failures), each in discovery order
    """
    if workers > 1 and len(paths) > 1:
        outcomes = asyncio.run(_extract_concurrently(paths, encoding, workers, dialect))
    else:
        outcomes = [_extract_or_fail(path, encoding, dialect) for path in paths]

    results = [o for o in outcomes if isinstance(o, SourceResult)]
    failures = [o for o in outcomes if isinstance(o, SourceFailure)]
    return results, failures


def _extract_or_fail(path: Path, encoding: str, dialect: str) -> SourceResult | SourceFailure:
    try:
        return extract_source(path, encoding, dialect)
    except SourceReadError as e:
        logger.warning(str(e))
        return SourceFailure(path=path, reason=e.reason)


async def _extract_concurrently(
    paths: list[Path],
    encoding: str,
    workers: int,
    dialect: str
) -> list[SourceResult | SourceFailure]:
    """Fan sources out to worker threads; gather preserves input order."""
    semaphore = asyncio.Semaphore(workers)

    async def run(path: Path) -> SourceResult | SourceFailure:
        async with semaphore:
            return await asyncio.to_thread(_extract_or_fail, path, encoding, dialect)

    return list(await asyncio.gather(*(run(path) for path in paths)))


def extract_directory(
    input_dir: Path | str,
    config: ExtractConfig | None = None
) -> ExtractionReport:
    """Extract every schema source in a directory into one collection.

    Args:
        input_dir: Directory holding one SQL file per database
        config: Discovery/reading settings (defaults if omitted)

    Returns:
        ExtractionReport with the collection, per-source results and failures

    Raises:
        FatalInputError: If the directory is missing or unreadable, holds no
            sources, or none of its sources could be read
    """
    config = config or ExtractConfig()
    input_dir = Path(input_dir)

    if not input_dir.exists():
        raise FatalInputError(f"Input directory not found: {input_dir}")
    if not input_dir.is_dir():
        raise FatalInputError(f"Input path is not a directory: {input_dir}")

    try:
        paths = scan_sql_files(input_dir, config.extensions, config.recursive)
    except OSError as e:
        raise FatalInputError(f"Cannot read input directory {input_dir}: {e}") from e

    if not paths:
        raise FatalInputError(
            f"No schema sources ({', '.join(config.extensions)}) found in {input_dir}"
        )

    logger.info(f"Found {len(paths)} schema sources in {input_dir} (dialect: {config.dialect})")

    results, failures = extract_sources(paths, config.encoding, config.workers, config.dialect)
    if not results:
        raise FatalInputError(
            f"None of the {len(paths)} schema sources in {input_dir} could be read"
        )

    collection = SchemaCollection.from_sources(
        (result.database, result.tables) for result in results
    )

    return ExtractionReport(
        collection=collection,
        sources=tuple(results),
        failures=tuple(failures),
        discovered=len(paths),
    )


def _file_mode() -> int:
    """Mode a plain ``open(..., "w")`` would give a new file."""
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def write_text_atomic(output_path: Path | str, content: str) -> None:
    """Write text to a temporary file next to the target, then replace it.

    Raises:
        OutputWriteError: If the destination cannot be written; no partial
            file is left behind
    """
    output_path = Path(output_path)
    tmp_name = None
    try:
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{output_path.name}.", suffix=".tmp", dir=output_path.parent
        )
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
            f.write(content)
        # mkstemp creates the file owner-only
        os.chmod(tmp_name, _file_mode())
        os.replace(tmp_name, output_path)
    except OSError as e:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise OutputWriteError(output_path, str(e)) from e


def write_collection(
    collection: SchemaCollection,
    output_path: Path | str,
    indent: int = 2
) -> None:
    """Serialize a collection to JSON at output_path.

    Raises:
        OutputWriteError: If the file cannot be written
    """
    write_text_atomic(output_path, collection.to_json(indent=indent))
    logger.info(f"Wrote {output_path}")
