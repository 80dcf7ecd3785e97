from __future__ import annotations

import json
from pathlib import Path

import pytest
from household_ledger.categories import (
    RESERVED_IDS,
    TRANSFER_OWN_ACCOUNT,
    UNCATEGORIZED,
    Category,
    CategoryCatalog,
    catalog_from_session,
    load_catalog,
    seed_categories,
)
from pydantic import ValidationError


def _reserved() -> list[Category]:
    return [Category(id=rid, name=rid) for rid in RESERVED_IDS]


def test_bundled_seed_loads_with_reserved_ids() -> None:
    catalog = load_catalog()
    for rid in RESERVED_IDS:
        assert rid in catalog
    assert catalog.get("groceries") is not None


def test_categorizable_excludes_sentinel_and_transfers() -> None:
    ids = {c.id for c in load_catalog().categorizable()}
    assert UNCATEGORIZED not in ids
    assert not any(i.startswith("transfer/") for i in ids)
    assert "cash" in ids


def test_exclusion_and_transfer_type() -> None:
    catalog = load_catalog()
    assert catalog.is_excluded_from_spending(TRANSFER_OWN_ACCOUNT)
    assert not catalog.is_excluded_from_spending("groceries")
    assert CategoryCatalog.transfer_type_for("transfer/to-household-member") == "household_member"
    assert CategoryCatalog.transfer_type_for("transfer/from-third-party") == "third_party"
    assert CategoryCatalog.transfer_type_for("groceries") is None


def test_catalog_rejects_duplicates_and_missing_reserved() -> None:
    with pytest.raises(ValueError, match="Duplicate"):
        CategoryCatalog([*_reserved(), Category(id="cash", name="again")])
    with pytest.raises(ValueError, match="reserved"):
        CategoryCatalog([Category(id="groceries", name="Groceries")])


def test_load_catalog_from_env_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    seed = {
        "version": 1,
        "categories": [
            {"id": "coffee", "name": "Coffee", "keywords": ["espresso"]},
            *({"id": rid, "name": rid} for rid in RESERVED_IDS),
        ],
    }
    path = tmp_path / "cats.json"
    path.write_text(json.dumps(seed), encoding="utf-8")
    monkeypatch.setenv("HOUSEHOLD_LEDGER_CATEGORIES", str(path))

    catalog = load_catalog()
    assert catalog.ids()[0] == "coffee"
    assert catalog.get("coffee").keywords == ("espresso",)


def test_load_catalog_rejects_bad_seed(tmp_path: Path) -> None:
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"categories": [{"id": " ", "name": "x"}]}), encoding="utf-8")
    with pytest.raises(ValidationError):
        load_catalog(path)


def test_seed_round_trips_through_database(db_url: str) -> None:
    from db.client import session_scope

    bundled = load_catalog()
    with session_scope(database_url=db_url) as session:
        from_db = catalog_from_session(session)
        # Re-seeding is an upsert.
        assert seed_categories(session, bundled) == len(bundled)

    assert from_db.ids() == bundled.ids()
    assert from_db.get("groceries").keywords == bundled.get("groceries").keywords


def test_load_catalog_from_db_by_url(db_url: str) -> None:
    from household_ledger.categories import load_catalog_from_db

    assert load_catalog_from_db(db_url).ids() == load_catalog().ids()
