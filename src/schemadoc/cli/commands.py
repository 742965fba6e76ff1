from __future__ import annotations
import argparse
import logging
import sys
from pathlib import Path
from dotenv import load_dotenv

from schemadoc.config import SchemaDocConfig, load_config
from schemadoc.errors import FatalInputError, SchemaDocError
from schemadoc.render import render_file
from schemadoc.sql_schema import extract_directory, write_collection

logger = logging.getLogger(__name__)


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="schemadoc",
        description="schemadoc - extract table documentation from SQL creation scripts"
    )
    parser.add_argument("--config", default=None,
                        help="Path to YAML configuration file (default: $SCHEMADOC_CONFIG)")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Enable debug logging")
    sub = parser.add_subparsers(dest="cmd", required=True)

    # Extract command
    extract = sub.add_parser("extract", help="Extract schema metadata from a directory of SQL files")
    extract.add_argument("input_dir", help="Directory holding one SQL file per database")
    extract.add_argument("output_file", help="Path of the JSON document to write")
    extract.add_argument("--workers", type=_positive_int, default=None,
                         help="Extract this many sources concurrently (default: from config)")
    extract.add_argument("--dialect", default=None,
                         help="sqlglot dialect of the sources, e.g. mysql or postgres (default: from config)")

    # Render command
    render = sub.add_parser("render", help="Render an extracted JSON document as Markdown")
    render.add_argument("input_file", help="JSON document produced by 'extract'")
    render.add_argument("output_file", help="Path of the Markdown document to write")
    render.add_argument("--locale", choices=["en", "zh"], default=None,
                        help="Label language (default: from config)")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Parse arguments, run one command, and return the exit status."""
    # Load environment variables first
    load_dotenv()

    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    _configure_logging(config, args.verbose)

    try:
        if args.cmd == "extract":
            extract_cmd(args.input_dir, args.output_file, config, args.workers, args.dialect)
        elif args.cmd == "render":
            render_cmd(args.input_file, args.output_file, config, args.locale)
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 130
    except SchemaDocError as e:
        logger.error(str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


def run() -> None:
    """Main CLI entry point."""
    sys.exit(main())


def _configure_logging(config: SchemaDocConfig, verbose: bool = False) -> None:
    level = "DEBUG" if verbose else config.logging.level
    logging.basicConfig(
        level=getattr(logging, level),
        format=config.logging.format,
        handlers=[
            logging.StreamHandler(sys.stderr)
        ]
    )


def extract_cmd(
    input_dir: str | Path,
    output_file: str | Path,
    config: SchemaDocConfig,
    workers: int | None = None,
    dialect: str | None = None
) -> None:
    """Extract every SQL source in input_dir and write the JSON collection.

    Args:
        input_dir: Directory of SQL creation scripts
        output_file: Destination JSON path
        config: Loaded configuration
        workers: Override for config.extract.workers
        dialect: Override for config.extract.dialect

    Raises:
        FatalInputError: If no source could be extracted
        OutputWriteError: If the output cannot be written
    """
    overrides = {}
    if workers is not None:
        overrides["workers"] = workers
    if dialect is not None:
        overrides["dialect"] = dialect
    try:
        extract_config = config.extract.model_validate({**config.extract.model_dump(), **overrides})
    except ValueError as e:
        raise FatalInputError(f"Invalid extract options: {e}") from e

    print(f"Extracting schema sources from: {input_dir}")
    report = extract_directory(input_dir, extract_config)
    write_collection(report.collection, output_file, indent=config.output.indent)

    print(f"\n✓ Extraction complete")
    print(f"  Output: {output_file}")
    for line in report.summary_lines():
        print(f"  {line}" if line else "")


def render_cmd(
    input_file: str | Path,
    output_file: str | Path,
    config: SchemaDocConfig,
    locale: str | None = None
) -> None:
    """Render a JSON collection to Markdown.

    Raises:
        RenderInputError: If the input is missing or invalid
        OutputWriteError: If the output cannot be written
    """
    collection = render_file(input_file, output_file, locale or config.render.locale)

    print(f"✓ Document written: {output_file}")
    print(f"  Databases: {collection.total_databases}")
    print(f"  Tables: {collection.total_tables}")
