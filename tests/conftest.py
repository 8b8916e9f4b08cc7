"""Shared test fixtures for PersonaSim."""

import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent))

from fakes import FakeProvider  # noqa: E402
from observability import metrics  # noqa: E402
from web.user_store import init_db  # noqa: E402


@pytest.fixture
def fake_provider():
    return FakeProvider()


@pytest.fixture
def db(tmp_path):
    """Fresh SQLite database per test."""
    db_path = tmp_path / "personasim.db"
    init_db(db_path)
    return db_path


@pytest.fixture(autouse=True)
def _reset_metrics():
    metrics.reset()
    yield
    metrics.reset()
