"""Document rendering for extracted schema collections."""
from .markdown import LABELS, load_collection, render_file, render_markdown

__all__ = [
    "LABELS",
    "load_collection",
    "render_file",
    "render_markdown",
]
