"""Configuration management for schemadoc."""
from .settings import (
    CONFIG_ENV_VAR,
    ExtractConfig,
    LoggingConfig,
    OutputConfig,
    RenderConfig,
    SchemaDocConfig,
    load_config,
)

__all__ = [
    "CONFIG_ENV_VAR",
    "ExtractConfig",
    "LoggingConfig",
    "OutputConfig",
    "RenderConfig",
    "SchemaDocConfig",
    "load_config",
]
