import json
from pathlib import Path

import pytest

from bookreviews.db.database import BookRepository, DatabaseManager, ReviewRepository, UserRepository


FIXTURES = Path(__file__).parent / "fixtures"
ISBN = "9780596004651"


def load_fixture(name: str) -> str:
    return (FIXTURES / name).read_text(encoding="utf-8")


@pytest.fixture
def success_body():
    """Raw Books API answer for Head first Java."""
    return load_fixture(f"openlibrary/success-{ISBN}.json")


@pytest.fixture
def success_payload(success_body):
    return json.loads(success_body)


@pytest.fixture
def db(tmp_path):
    """Fresh SQLite database per test."""
    manager = DatabaseManager(url=f"sqlite:///{tmp_path / 'test.db'}")
    manager.create_schema()
    yield manager
    manager.close()


@pytest.fixture
def repositories(db):
    return {
        "books": BookRepository(db),
        "reviews": ReviewRepository(db),
        "users": UserRepository(db),
    }
