"""Shared pytest fixtures."""

from __future__ import annotations

import pytest

from redline.db.connection import Database
from redline.db.schema import initialize


@pytest.fixture
def tmp_db(tmp_path):
    """File-based DB in tmp_path with schema initialized, closed after test."""
    db = Database(tmp_path / ".redline.db")
    conn = db.connect()
    initialize(conn)
    yield conn
    conn.close()


@pytest.fixture
def ten_words() -> str:
    """A ten-word sentence; adding one word keeps Jaccard at 10/11 (> 0.9)."""
    return "A quick brown fox jumps over one lazy sleeping dog."
