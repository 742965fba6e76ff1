"""Exception types raised by schemadoc.

Structural anomalies (skipped table blocks or column lines) are not
exceptions; they are reported as records by the parser.
"""
from __future__ import annotations

from pathlib import Path


class SchemaDocError(Exception):
    """Base class for schemadoc errors."""


class FatalInputError(SchemaDocError):
    """The input directory is unusable or yields no readable sources."""


class SourceReadError(SchemaDocError):
    """A single schema source could not be read."""

    def __init__(self, path: Path | str, reason: str) -> None:
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Failed to read {self.path}: {reason}")


class OutputWriteError(SchemaDocError):
    """The output document could not be written."""

    def __init__(self, path: Path | str, reason: str) -> None:
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Failed to write {self.path}: {reason}")


class RenderInputError(SchemaDocError):
    """The renderer input is missing or is not a valid schema collection."""
