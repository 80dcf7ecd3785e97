"""Public entry points for the ``household_ledger`` package.

- :func:`process_statement` (alias :func:`process`): bytes in, processed
  movements and the resolved bank identifier out. No database access.
- :func:`ingest_statement`: process, persist and link inside a caller-owned
  session.
- :func:`link`: run the own-account linker for one household in its own
  transaction.
"""

from __future__ import annotations

import time
from collections.abc import Sequence
from typing import NamedTuple

from db.models.finance import HlCategory
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .categories import (
    CASH,
    TRANSFER_OWN_ACCOUNT,
    catalog_from_session,
    is_transfer_category,
    load_catalog,
    seed_categories,
)
from .categorize import Categorizer
from .ingest.detect import resolve_adapter
from .linking import link_own_account_transfers
from .logging_setup import get_logger
from .models import HouseholdMember, ProcessedMovement, RawMovement, TransferClassification
from .persistence import load_household_members, persist_movements
from .transfers import classify_transfer

_logger = get_logger("household_ledger.api")


class IngestResult(NamedTuple):
    created: int
    skipped: int
    linked: int
    bank_source: str


def _category_for(
    movement: RawMovement,
    transfer: TransferClassification,
    categorizer: Categorizer,
) -> str:
    if transfer.transfer_type == "own_account":
        return TRANSFER_OWN_ACCOUNT
    hint = movement.raw_data.get("category_hint")
    if isinstance(hint, str) and (hint == CASH or is_transfer_category(hint)):
        return hint
    if transfer.is_transfer and transfer.category_id:
        return transfer.category_id
    return categorizer.categorize(movement.description)


def process_statement(
    buffer: bytes,
    bank: str = "auto",
    household_members: Sequence[HouseholdMember] = (),
    *,
    content_type: str | None = None,
    acting_user_id: str | None = None,
    categorizer: Categorizer | None = None,
) -> tuple[list[ProcessedMovement], str]:
    """Parse, classify and categorize one uploaded statement.

    Parameters
    ----------
    buffer:
        Raw bytes of the upload.
    bank:
        ``"auto"`` or a registered adapter name (see ``ingest.BANK_IDS``).
    household_members:
        Members whose aliases identify household-member transfers.
    content_type:
        Optional MIME type supplied with the upload.
    acting_user_id:
        Member uploading the file; a transfer to them is an own-account move.
    categorizer:
        Defaults to :meth:`Categorizer.from_env` over the bundled catalog.

    Returns
    -------
    tuple[list[ProcessedMovement], str]
        Movements in statement order and the adapter name used.

    Raises
    ------
    MalformedInputError
        If the container (PDF/xlsx) cannot be read at all.
    ValueError
        If ``bank`` is not a known identifier.
    """

    t0 = time.perf_counter()
    adapter = resolve_adapter(buffer, bank, content_type)
    raw = adapter.parse(buffer)
    categorizer = categorizer or Categorizer.from_env()

    out: list[ProcessedMovement] = []
    for movement in raw:
        transfer = classify_transfer(
            movement.description,
            movement.amount,
            household_members,
            movement.raw_data,
            transfer_hint=movement.transfer_hint,
            acting_user_id=acting_user_id,
        )
        category_id = _category_for(movement, transfer, categorizer)
        out.append(ProcessedMovement.from_parts(movement, transfer, category_id))

    _logger.info(
        "process_statement bank=%s movements=%d transfers=%d latency_ms=%.2f",
        adapter.name,
        len(out),
        sum(1 for m in out if m.transfer_type != "none"),
        (time.perf_counter() - t0) * 1000.0,
    )
    return out, adapter.name


process = process_statement


def ingest_statement(
    session: Session,
    buffer: bytes,
    *,
    household_id: str,
    bank: str = "auto",
    content_type: str | None = None,
    owner_id: str | None = None,
    acting_user_id: str | None = None,
    categorizer: Categorizer | None = None,
) -> IngestResult:
    """Process ``buffer`` for ``household_id``, persist the result and link transfers.

    Members come from ``hl_members``. Without an explicit ``categorizer`` the
    catalog is read from ``hl_categories``; when that table is empty the
    bundled seed is written to it first. The caller commits ``session``.
    """

    members = load_household_members(session, household_id)
    if categorizer is None:
        seeded = session.scalar(select(func.count()).select_from(HlCategory))
        if seeded:
            catalog = catalog_from_session(session)
        else:
            # Movements reference hl_categories, so the bundled seed is stored first.
            catalog = load_catalog()
            seed_categories(session, catalog)
        categorizer = Categorizer.from_env(catalog)

    movements, bank_source = process_statement(
        buffer,
        bank,
        members,
        content_type=content_type,
        acting_user_id=acting_user_id,
        categorizer=categorizer,
    )
    persisted = persist_movements(
        session,
        household_id=household_id,
        bank_source=bank_source,
        movements=movements,
        owner_id=owner_id,
    )
    linked = link_own_account_transfers(session, household_id)
    return IngestResult(
        created=persisted.created,
        skipped=persisted.skipped,
        linked=linked,
        bank_source=bank_source,
    )


def link(household_id: str, *, database_url: str | None = None) -> int:
    """Link own-account transfer legs of ``household_id`` and commit."""

    from db.client import session_scope

    with session_scope(database_url=database_url) as session:
        return link_own_account_transfers(session, household_id)


__all__ = [
    "IngestResult",
    "process_statement",
    "process",
    "ingest_statement",
    "link",
]
