"""Category catalog shared by the categorizer and the transfer classifier.

The catalog is an ordered list of ``{id, name, keywords}`` entries. Order is
meaningful: the keyword stage of the categorizer returns the first category
whose keywords match. The reserved ids below must always be present.

Sources
-------
- ``load_catalog(path)``: the JSON seed bundled with the package (or the file
  named by ``HOUSEHOLD_LEDGER_CATEGORIES``), validated with pydantic.
- ``load_catalog_from_db(...)``: the ``hl_categories`` table.
"""

from __future__ import annotations

import os
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from os import PathLike
from pathlib import Path

from sqlalchemy import select
from sqlalchemy.orm import Session

from .logging_setup import get_logger
from .models import CategorySeed, TransferType

logger = get_logger("household_ledger.categories")

UNCATEGORIZED = "uncategorized"
CASH = "cash"
TRANSFER_PREFIX = "transfer/"
TRANSFER_OWN_ACCOUNT = "transfer/own-account"
TRANSFER_TO_HOUSEHOLD_MEMBER = "transfer/to-household-member"
TRANSFER_FROM_HOUSEHOLD_MEMBER = "transfer/from-household-member"
TRANSFER_TO_THIRD_PARTY = "transfer/to-third-party"
TRANSFER_FROM_THIRD_PARTY = "transfer/from-third-party"

RESERVED_IDS: tuple[str, ...] = (
    UNCATEGORIZED,
    CASH,
    TRANSFER_OWN_ACCOUNT,
    TRANSFER_TO_HOUSEHOLD_MEMBER,
    TRANSFER_FROM_HOUSEHOLD_MEMBER,
    TRANSFER_TO_THIRD_PARTY,
    TRANSFER_FROM_THIRD_PARTY,
)

_TRANSFER_TYPE_BY_SUFFIX: dict[str, TransferType] = {
    "own-account": "own_account",
    "to-household-member": "household_member",
    "from-household-member": "household_member",
    "to-external-member": "third_party",
    "from-external-member": "third_party",
    "to-third-party": "third_party",
    "from-third-party": "third_party",
}

CATEGORIES_ENV = "HOUSEHOLD_LEDGER_CATEGORIES"
DEFAULT_SEED_PATH = Path(__file__).resolve().parent / "ingest" / "seeds" / "categories.v1.json"


def is_transfer_category(category_id: str | None) -> bool:
    return bool(category_id) and category_id.startswith(TRANSFER_PREFIX)


@dataclass(frozen=True, slots=True)
class Category:
    id: str
    name: str
    keywords: tuple[str, ...] = ()
    exclude_from_spending: bool = False


class CategoryCatalog:
    """Ordered, read-only collection of :class:`Category` entries."""

    def __init__(self, categories: Iterable[Category]):
        self._items: tuple[Category, ...] = tuple(categories)
        self._by_id: dict[str, Category] = {}
        for c in self._items:
            if c.id in self._by_id:
                raise ValueError(f"Duplicate category id: {c.id}")
            self._by_id[c.id] = c
        missing = [rid for rid in RESERVED_IDS if rid not in self._by_id]
        if missing:
            raise ValueError("Category catalog is missing reserved ids: " + ", ".join(missing))

    def __iter__(self) -> Iterator[Category]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, category_id: object) -> bool:
        return category_id in self._by_id

    def get(self, category_id: str) -> Category | None:
        return self._by_id.get(category_id)

    def ids(self) -> tuple[str, ...]:
        return tuple(c.id for c in self._items)

    def categorizable(self) -> tuple[Category, ...]:
        """Categories the description-based cascade may return.

        Excludes the ``uncategorized`` sentinel and the reserved transfer ids,
        which only the transfer classifier assigns.
        """

        return tuple(
            c for c in self._items if c.id != UNCATEGORIZED and not is_transfer_category(c.id)
        )

    def is_excluded_from_spending(self, category_id: str) -> bool:
        cat = self._by_id.get(category_id)
        if cat is not None and cat.exclude_from_spending:
            return True
        return is_transfer_category(category_id)

    @staticmethod
    def transfer_type_for(category_id: str | None) -> TransferType | None:
        """``transfer/own-account`` → ``own_account``; ``None`` for non-transfer ids."""

        if not is_transfer_category(category_id):
            return None
        return _TRANSFER_TYPE_BY_SUFFIX.get(category_id[len(TRANSFER_PREFIX) :])


def load_catalog(path: str | PathLike[str] | None = None) -> CategoryCatalog:
    """Load and validate a category seed file.

    ``path`` defaults to ``$HOUSEHOLD_LEDGER_CATEGORIES`` and then to the seed
    bundled with the package.

    Raises
    ------
    pydantic.ValidationError
        If the file does not match the seed schema.
    ValueError
        If a reserved category id is missing.
    """

    chosen = Path(path or os.getenv(CATEGORIES_ENV) or DEFAULT_SEED_PATH)
    text = chosen.read_text(encoding="utf-8")
    seed = CategorySeed.model_validate_json(text)
    catalog = CategoryCatalog(
        Category(
            id=e.id,
            name=e.name,
            keywords=tuple(e.keywords),
            exclude_from_spending=e.exclude_from_spending,
        )
        for e in seed.categories
    )
    logger.debug("load_catalog source=%s categories=%d", chosen.name, len(catalog))
    return catalog


def catalog_from_session(session: Session) -> CategoryCatalog:
    from db.models.finance import HlCategory

    rows = session.scalars(
        select(HlCategory).order_by(HlCategory.sort_order.asc(), HlCategory.id.asc())
    ).all()
    return CategoryCatalog(
        Category(
            id=r.id,
            name=r.name,
            keywords=tuple(r.keywords or ()),
            exclude_from_spending=bool(r.exclude_from_spending),
        )
        for r in rows
    )


def load_catalog_from_db(database_url: str | None = None) -> CategoryCatalog:
    """Read the catalog from ``hl_categories`` (ordered by ``sort_order``)."""

    from db.client import session_scope

    with session_scope(database_url=database_url) as session:
        return catalog_from_session(session)


def seed_categories(session: Session, catalog: CategoryCatalog) -> int:
    """Upsert every catalog entry into ``hl_categories``; returns the row count.

    ``sort_order`` follows catalog order so that a catalog read back from the
    database keeps the keyword-stage precedence.
    """

    from db.models.finance import HlCategory

    n = 0
    for order, c in enumerate(catalog):
        session.merge(
            HlCategory(
                id=c.id,
                name=c.name,
                keywords=list(c.keywords),
                exclude_from_spending=c.exclude_from_spending,
                sort_order=order,
            )
        )
        n += 1
    session.flush()
    logger.info("seed_categories count=%d", n)
    return n


__all__ = [
    "UNCATEGORIZED",
    "CASH",
    "TRANSFER_PREFIX",
    "TRANSFER_OWN_ACCOUNT",
    "TRANSFER_TO_HOUSEHOLD_MEMBER",
    "TRANSFER_FROM_HOUSEHOLD_MEMBER",
    "TRANSFER_TO_THIRD_PARTY",
    "TRANSFER_FROM_THIRD_PARTY",
    "RESERVED_IDS",
    "DEFAULT_SEED_PATH",
    "Category",
    "CategoryCatalog",
    "is_transfer_category",
    "load_catalog",
    "load_catalog_from_db",
    "catalog_from_session",
    "seed_categories",
]
