"""Shared test fixtures."""

from pathlib import Path

import pytest

from src.store import DocumentStore


@pytest.fixture
def store(tmp_path: Path) -> DocumentStore:
    """A DocumentStore backed by a temporary database."""
    return DocumentStore(db_path=tmp_path / "test.db")
