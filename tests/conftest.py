"""Shared test fixtures."""

from datetime import datetime, timezone

import pytest

from recall.app import App
from recall.db import init_db
from recall.models import CardCandidate, SourceLocation

NOW = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


def make_candidate(prompt="What?", response="That.", tags=(), path="/notes/a.md", line=0):
    return CardCandidate(prompt=prompt, response=response, tags=set(tags),
                         source_location=SourceLocation(path, line, line))


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def tmp_recall_dir(tmp_path):
    """Create a temporary recall directory with an adapters/ subdir."""
    recall_dir = tmp_path / "recall_dir"
    recall_dir.mkdir()
    (recall_dir / "adapters").mkdir()
    return recall_dir


@pytest.fixture
def db_conn():
    """In-memory SQLite database with schema applied."""
    conn = init_db(":memory:")
    yield conn
    conn.close()


@pytest.fixture
def app(tmp_recall_dir):
    """App instance with tmp recall_dir and in-memory DB."""
    a = App(recall_dir=tmp_recall_dir)
    a.init_db(":memory:")
    yield a
    a.close()
