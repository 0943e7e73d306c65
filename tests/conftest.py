from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
for path in (SRC, ROOT):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from rowgraph.config import reset_settings  # noqa: E402


@pytest.fixture(autouse=True)
def _fresh_settings():
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def db():
    from tests.helpers.blog import make_db

    connector = make_db()
    yield connector
    connector.close()


@pytest.fixture
def blog_db(db):
    from tests.helpers.blog import seed_blog

    seed_blog(db)
    db.statements.clear()
    return db
