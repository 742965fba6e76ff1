"""schemadoc - table documentation from SQL creation scripts."""

__version__ = "0.1.0"
