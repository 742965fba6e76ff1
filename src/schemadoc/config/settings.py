"""Configuration loading and validation.

Loads optional YAML configuration for schemadoc with full validation, then
applies environment overrides.
"""
from __future__ import annotations
import codecs
import os
import yaml
from pathlib import Path
from typing import Literal
from pydantic import BaseModel, Field, field_validator
from sqlglot.dialects.dialect import Dialect


CONFIG_ENV_VAR = "SCHEMADOC_CONFIG"


class ExtractConfig(BaseModel):
    """Source discovery and reading."""
    extensions: list[str] = Field(
        default_factory=lambda: [".sql"],
        description="File suffixes treated as schema sources"
    )
    encoding: str = Field("utf-8", description="Text encoding of source files")
    recursive: bool = Field(False, description="Descend into subdirectories")
    workers: int = Field(1, ge=1, le=32, description="Sources extracted concurrently")
    dialect: str = Field("mysql", description="sqlglot dialect used to lex sources")

    @field_validator("extensions")
    @classmethod
    def normalize_extensions(cls, v: list[str]) -> list[str]:
        """Lower-case suffixes with a leading dot."""
        normalized = []
        for ext in v:
            ext = ext.strip().lower()
            if not ext:
                continue
            normalized.append(ext if ext.startswith(".") else f".{ext}")
        if not normalized:
            raise ValueError("extensions must name at least one suffix")
        return normalized

    @field_validator("encoding")
    @classmethod
    def validate_encoding(cls, v: str) -> str:
        """Reject encodings Python does not know."""
        try:
            codecs.lookup(v)
        except LookupError:
            raise ValueError(f"unknown encoding: {v}")
        return v

    @field_validator("dialect")
    @classmethod
    def validate_dialect(cls, v: str) -> str:
        """Reject dialects sqlglot does not know."""
        try:
            Dialect.get_or_raise(v)
        except ValueError:
            raise ValueError(f"unknown SQL dialect: {v}")
        return v


class OutputConfig(BaseModel):
    """Serialized collection output."""
    indent: int = Field(2, ge=0, le=8, description="JSON indentation")


class RenderConfig(BaseModel):
    """Document rendering."""
    locale: Literal["en", "zh"] = Field("en", description="Label language")


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field("INFO", description="Log level")
    format: str = Field(
        "%(asctime)s %(levelname)s %(name)s: %(message)s",
        description="logging format string"
    )

    @field_validator("level", mode="before")
    @classmethod
    def upper_level(cls, v):
        return v.upper() if isinstance(v, str) else v


class SchemaDocConfig(BaseModel):
    """Complete schemadoc configuration."""
    extract: ExtractConfig = Field(default_factory=ExtractConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    render: RenderConfig = Field(default_factory=RenderConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_yaml(cls, path: str | Path) -> SchemaDocConfig:
        """Load configuration from YAML file.

        Args:
            path: Path to YAML configuration file

        Returns:
            Validated SchemaDocConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If configuration is invalid
        """
        config_path = Path(path)

        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path, 'r', encoding="utf-8") as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in {config_path}: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ValueError(f"Configuration in {config_path} must be a mapping")

        try:
            return cls.model_validate(data)
        except Exception as e:
            raise ValueError(f"Invalid configuration in {config_path}: {e}") from e

    @classmethod
    def from_env(cls, env_var: str = CONFIG_ENV_VAR) -> SchemaDocConfig:
        """Load configuration from the path in an environment variable.

        Falls back to defaults when the variable is not set.
        """
        config_path = os.getenv(env_var)
        if not config_path:
            return cls()
        return cls.from_yaml(config_path)

    def with_env_overrides(self) -> SchemaDocConfig:
        """Apply SCHEMADOC_LOG_LEVEL / SCHEMADOC_WORKERS on top of this config."""
        data = self.model_dump()

        log_level = os.getenv("SCHEMADOC_LOG_LEVEL")
        if log_level:
            data["logging"]["level"] = log_level

        workers = os.getenv("SCHEMADOC_WORKERS")
        if workers:
            try:
                data["extract"]["workers"] = int(workers)
            except ValueError:
                raise ValueError(f"SCHEMADOC_WORKERS must be an integer, got {workers!r}")

        return type(self).model_validate(data)


def load_config(config_path: str | Path | None = None) -> SchemaDocConfig:
    """Load configuration from file or environment, then apply overrides.

    Args:
        config_path: Optional explicit path to config file

    Returns:
        Validated SchemaDocConfig instance

    Raises:
        FileNotFoundError: If an explicit config file doesn't exist
        ValueError: If configuration is invalid
    """
    if config_path:
        config = SchemaDocConfig.from_yaml(config_path)
    else:
        config = SchemaDocConfig.from_env()

    return config.with_env_overrides()
