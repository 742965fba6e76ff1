"""Tests for configuration loading and validation."""
import pytest
from pydantic import ValidationError

from schemadoc.config import (
    ExtractConfig,
    LoggingConfig,
    SchemaDocConfig,
    load_config,
)


@pytest.fixture
def write_config(tmp_path):
    def _write(text: str):
        path = tmp_path / "schemadoc.yaml"
        path.write_text(text, encoding="utf-8")
        return path
    return _write


class TestDefaults:
    """Test default configuration values."""

    def test_defaults(self):
        """Should provide working defaults without a file."""
        config = SchemaDocConfig()

        assert config.extract.extensions == [".sql"]
        assert config.extract.encoding == "utf-8"
        assert config.extract.recursive is False
        assert config.extract.workers == 1
        assert config.extract.dialect == "mysql"
        assert config.output.indent == 2
        assert config.render.locale == "en"
        assert config.logging.level == "INFO"

    def test_load_without_path(self):
        """Should fall back to defaults when SCHEMADOC_CONFIG is unset."""
        assert load_config() == SchemaDocConfig()


class TestValidation:
    """Test field validation."""

    def test_extensions_normalized(self):
        """Should lower-case suffixes and add the leading dot."""
        config = ExtractConfig(extensions=["SQL", " .DDL ", ""])
        assert config.extensions == [".sql", ".ddl"]

    def test_extensions_required(self):
        """Should reject an empty suffix list."""
        with pytest.raises(ValidationError):
            ExtractConfig(extensions=[])

    def test_unknown_encoding(self):
        """Should reject encodings Python does not know."""
        with pytest.raises(ValidationError):
            ExtractConfig(encoding="no-such-codec")

    def test_known_dialect(self):
        """Should accept any dialect sqlglot knows."""
        assert ExtractConfig(dialect="postgres").dialect == "postgres"

    def test_unknown_dialect(self):
        """Should reject dialects sqlglot does not know."""
        with pytest.raises(ValidationError, match="unknown SQL dialect"):
            ExtractConfig(dialect="no-such-dialect")

    @pytest.mark.parametrize("workers", [0, 33])
    def test_workers_range(self, workers):
        """Should keep workers between 1 and 32."""
        with pytest.raises(ValidationError):
            ExtractConfig(workers=workers)

    def test_level_case_insensitive(self):
        """Should accept lower-case log levels."""
        assert LoggingConfig(level="debug").level == "DEBUG"

    def test_unknown_level(self):
        """Should reject unknown log levels."""
        with pytest.raises(ValidationError):
            LoggingConfig(level="LOUD")


class TestYamlLoading:
    """Test loading from YAML files."""

    def test_from_yaml(self, write_config):
        """Should load nested sections."""
        path = write_config(
            "extract:\n"
            "  extensions: [sql, ddl]\n"
            "  recursive: true\n"
            "  workers: 4\n"
            "output:\n"
            "  indent: 4\n"
            "render:\n"
            "  locale: zh\n"
            "logging:\n"
            "  level: warning\n"
        )
        config = SchemaDocConfig.from_yaml(path)

        assert config.extract.extensions == [".sql", ".ddl"]
        assert config.extract.recursive is True
        assert config.extract.workers == 4
        assert config.output.indent == 4
        assert config.render.locale == "zh"
        assert config.logging.level == "WARNING"

    def test_empty_file(self, write_config):
        """Should treat an empty file as all defaults."""
        assert SchemaDocConfig.from_yaml(write_config("")) == SchemaDocConfig()

    def test_missing_file(self, tmp_path):
        """Should raise FileNotFoundError for a missing file."""
        with pytest.raises(FileNotFoundError):
            SchemaDocConfig.from_yaml(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, write_config):
        """Should raise ValueError for malformed YAML."""
        with pytest.raises(ValueError, match="Invalid YAML"):
            SchemaDocConfig.from_yaml(write_config("extract: [unclosed\n"))

    def test_not_a_mapping(self, write_config):
        """Should raise ValueError when the document is not a mapping."""
        with pytest.raises(ValueError, match="must be a mapping"):
            SchemaDocConfig.from_yaml(write_config("- just\n- a list\n"))

    def test_invalid_values(self, write_config):
        """Should raise ValueError for values that fail validation."""
        with pytest.raises(ValueError, match="Invalid configuration"):
            SchemaDocConfig.from_yaml(write_config("output:\n  indent: 20\n"))


class TestEnvironment:
    """Test environment variable handling."""

    def test_config_path_from_env(self, write_config, monkeypatch):
        """Should load the file named by SCHEMADOC_CONFIG."""
        monkeypatch.setenv("SCHEMADOC_CONFIG", str(write_config("render:\n  locale: zh\n")))
        assert load_config().render.locale == "zh"

    def test_explicit_path_wins(self, write_config, monkeypatch, tmp_path):
        """Should prefer an explicit path over SCHEMADOC_CONFIG."""
        monkeypatch.setenv("SCHEMADOC_CONFIG", str(tmp_path / "missing.yaml"))
        assert load_config(write_config("output:\n  indent: 0\n")).output.indent == 0

    def test_overrides(self, write_config, monkeypatch):
        """Should apply level and worker overrides on top of the file."""
        monkeypatch.setenv("SCHEMADOC_LOG_LEVEL", "error")
        monkeypatch.setenv("SCHEMADOC_WORKERS", "8")

        config = load_config(write_config("extract:\n  workers: 2\n"))

        assert config.logging.level == "ERROR"
        assert config.extract.workers == 8

    def test_bad_worker_override(self, monkeypatch):
        """Should reject a non-integer worker override."""
        monkeypatch.setenv("SCHEMADOC_WORKERS", "many")

        with pytest.raises(ValueError, match="SCHEMADOC_WORKERS"):
            load_config()
