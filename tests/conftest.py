"""Pytest configuration for test isolation.

The categorizer enables its external OpenAI stage whenever ``OPENAI_API_KEY``
is present. A developer shell (or a local ``.env``) may carry a real key, so
an autouse fixture removes it: no test reaches the network unless it installs
the stub from ``tests/helpers/openai_stub.py`` explicitly.

Engines are cached per database URL in ``db.client``; each test disposes them
so temporary SQLite files are released.
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from db.client import dispose_engines


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("HOUSEHOLD_LEDGER_CATEGORIES", raising=False)


@pytest.fixture(autouse=True)
def _dispose_engines() -> Iterator[None]:
    yield
    dispose_engines()


@pytest.fixture
def db_url(tmp_path) -> str:
    """A fresh SQLite database with the bundled category catalog seeded."""

    from tests.helpers.db import bootstrap_sqlite_db, seed_catalog

    url = bootstrap_sqlite_db(tmp_path / "ledger.sqlite3")
    seed_catalog(database_url=url)
    return url
