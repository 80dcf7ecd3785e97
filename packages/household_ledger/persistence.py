"""Persistence integration for household_ledger.

Functions here write processed movements to the shared database owned by
``libs/db`` and read the household-member directory back. They rely on the
SQLAlchemy ORM models in ``db.models.finance`` and a session provided by the
caller (see ``db.client.session_scope``).

Scope:
- Insert processed movements into ``hl_movements``, skipping any whose
  ``(bank_source, bank_reference)`` is already stored.
- Load ``HouseholdMember`` records for counterparty resolution.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from typing import Any, NamedTuple

from db.models.finance import HlMember, HlMovement
from sqlalchemy import select
from sqlalchemy.orm import Session

from .logging_setup import get_logger
from .models import HouseholdMember, ProcessedMovement

_logger = get_logger("household_ledger.persistence")


class PersistResult(NamedTuple):
    created: int
    skipped: int


def _existing_references(session: Session, bank_source: str, refs: set[str]) -> set[str]:
    if not refs:
        return set()
    found: set[str] = set()
    chunk = sorted(refs)
    # Stay well below SQLite's bound-parameter limit.
    for i in range(0, len(chunk), 500):
        rows = session.scalars(
            select(HlMovement.bank_reference).where(
                HlMovement.bank_source == bank_source,
                HlMovement.bank_reference.in_(chunk[i : i + 500]),
            )
        )
        found.update(r for r in rows if r is not None)
    return found


def _json_safe(raw: Any) -> Any:
    if isinstance(raw, dict):
        return {str(k): _json_safe(v) for k, v in raw.items()}
    if isinstance(raw, (list, tuple)):
        return [_json_safe(v) for v in raw]
    if raw is None or isinstance(raw, (str, int, float, bool)):
        return raw
    return str(raw)


def persist_movements(
    session: Session,
    *,
    household_id: str,
    bank_source: str,
    movements: Iterable[ProcessedMovement],
    owner_id: str | None = None,
) -> PersistResult:
    """Insert ``movements`` into ``hl_movements`` and flush.

    Movements without a ``bank_reference`` are always inserted. Those with a
    reference already stored for ``bank_source`` (or repeated within the same
    batch) are skipped.
    """

    items = list(movements)
    refs = {m.bank_reference for m in items if m.bank_reference}
    seen = _existing_references(session, bank_source, refs)

    created = 0
    skipped = 0
    for m in items:
        if m.bank_reference:
            if m.bank_reference in seen:
                skipped += 1
                continue
            seen.add(m.bank_reference)
        session.add(
            HlMovement(
                household_id=household_id,
                owner_id=owner_id,
                bank_source=bank_source,
                bank_reference=m.bank_reference,
                date=date.fromisoformat(m.date),
                description=m.description,
                amount=m.amount,
                category_id=m.category_id,
                raw_data=_json_safe(dict(m.raw_data)),
                transfer_type=m.transfer_type,
                transfer_counterparty=m.counterparty_name,
                transfer_counterparty_user_id=m.counterparty_user_id,
                is_excluded_from_analytics=m.exclude_from_analytics,
                is_high_confidence=m.high_confidence,
            )
        )
        created += 1
    session.flush()
    _logger.info(
        "persist_movements household_id=%s bank_source=%s created=%d skipped=%d",
        household_id,
        bank_source,
        created,
        skipped,
    )
    return PersistResult(created=created, skipped=skipped)


def load_household_members(session: Session, household_id: str) -> list[HouseholdMember]:
    rows = session.scalars(
        select(HlMember).where(HlMember.household_id == household_id).order_by(HlMember.id)
    ).all()
    return [
        HouseholdMember(
            id=r.id,
            name_aliases=tuple(str(a) for a in (r.name_aliases or ())),
            household_id=r.household_id,
        )
        for r in rows
    ]


__all__ = ["PersistResult", "persist_movements", "load_household_members"]
