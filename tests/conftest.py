"""Shared pytest fixtures for all tests."""
import shutil
from pathlib import Path

import pytest

FIXTURES_DIR = Path(__file__).parent / "fixtures" / "sql"


@pytest.fixture
def sql_fixtures_dir():
    """Directory holding the sample SQL creation scripts."""
    return FIXTURES_DIR


@pytest.fixture
def input_dir(tmp_path):
    """Empty input directory for an extraction run."""
    path = tmp_path / "sql"
    path.mkdir()
    return path


@pytest.fixture
def write_source(input_dir):
    """Write a schema source into input_dir and return its path."""
    def _write(name: str, content: str | bytes) -> Path:
        path = input_dir / name
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")
        return path
    return _write


@pytest.fixture
def shop_dir(input_dir):
    """Input directory containing only shop.sql."""
    shutil.copy(FIXTURES_DIR / "shop.sql", input_dir / "shop.sql")
    return input_dir


@pytest.fixture(autouse=True)
def clean_schemadoc_env(monkeypatch):
    """Keep the caller's SCHEMADOC_* variables out of every test."""
    for var in ("SCHEMADOC_CONFIG", "SCHEMADOC_LOG_LEVEL", "SCHEMADOC_WORKERS"):
        monkeypatch.delenv(var, raising=False)
