"""DB helpers for tests: bootstrap a temporary SQLite DB and seed reference data."""

from __future__ import annotations

import os
from collections.abc import Sequence
from datetime import date
from decimal import Decimal
from pathlib import Path

from db import Base
from db.client import get_engine, session_scope
from db.models.finance import HlMember, HlMovement
from household_ledger.categories import CategoryCatalog, load_catalog, seed_categories
from sqlalchemy import event


def bootstrap_sqlite_db(db_file: Path, *, set_default_env: bool = False) -> str:
    """Create a SQLite database file, initialize schema, and return the URL.

    Using a file-backed SQLite DB ensures multiple SQLAlchemy connections share
    the same state (in-memory DBs are per-connection by default).
    """

    url = f"sqlite+pysqlite:///{db_file}"
    db_file.parent.mkdir(parents=True, exist_ok=True)
    engine = get_engine(database_url=url)

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_conn, _):  # pragma: no cover - tiny bridge
        dbapi_conn.execute("PRAGMA foreign_keys = ON")

    Base.metadata.create_all(bind=engine)

    if set_default_env:
        os.environ.setdefault("DATABASE_URL", url)
    return url


def seed_catalog(*, database_url: str, catalog: CategoryCatalog | None = None) -> int:
    with session_scope(database_url=database_url) as session:
        return seed_categories(session, catalog or load_catalog())


def add_member(
    *,
    database_url: str,
    member_id: str,
    household_id: str,
    aliases: Sequence[str],
    nickname: str | None = None,
) -> None:
    with session_scope(database_url=database_url) as session:
        session.add(
            HlMember(
                id=member_id,
                household_id=household_id,
                nickname=nickname or member_id,
                name_aliases=list(aliases),
            )
        )


def add_movement(
    *,
    database_url: str,
    household_id: str,
    amount: str,
    on: date,
    transfer_type: str = "own_account",
    category_id: str = "transfer/own-account",
    description: str = "ΕΜΒΑΣΜΑ ΙΔΙΟΚΤΗΤΗ",
    bank_source: str = "alpha-bank",
    bank_reference: str | None = None,
) -> int:
    """Insert one already-classified movement and return its id."""

    with session_scope(database_url=database_url) as session:
        row = HlMovement(
            household_id=household_id,
            bank_source=bank_source,
            bank_reference=bank_reference,
            date=on,
            description=description,
            amount=Decimal(amount),
            category_id=category_id,
            raw_data={},
            transfer_type=transfer_type,
        )
        session.add(row)
        session.flush()
        return row.id


def get_movement(*, database_url: str, movement_id: int) -> HlMovement:
    with session_scope(database_url=database_url) as session:
        row = session.get(HlMovement, movement_id)
        assert row is not None
        session.expunge(row)
        return row
