"""Pytest fixtures for transit tests."""

from pathlib import Path
from typing import Any

import pytest

from transit import JSONStorage, MemoryStorage, MigratorConfig
from tests.helpers.mock_factories import create_mock_storage


def write_tree(base: Path, tree: dict[str, Any]) -> Path:
    """Write a nested {name: content | subtree} mapping under base."""
    base.mkdir(parents=True, exist_ok=True)
    for name, content in tree.items():
        path = base / name
        if isinstance(content, dict):
            write_tree(path, content)
        else:
            path.write_text(content)
    return base


@pytest.fixture
def make_tree(tmp_path):
    """Return a function materializing a file tree inside tmp_path."""

    def _make(tree: dict[str, Any]) -> Path:
        return write_tree(tmp_path, tree)

    return _make


@pytest.fixture
def memory_storage():
    """Create an empty in-memory storage."""
    return MemoryStorage()


@pytest.fixture
def json_storage(tmp_path):
    """Create a JSON storage inside tmp_path."""
    return JSONStorage(tmp_path / "storage.json")


@pytest.fixture
def mock_storage():
    """Create a mock storage with an empty record."""
    return create_mock_storage()


@pytest.fixture
def quiet_config():
    """Engine configuration with progress output disabled."""
    return MigratorConfig(log=None)
