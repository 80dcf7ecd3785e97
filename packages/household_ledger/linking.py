"""Pair the two legs of own-account transfers within one household.

Candidates are persisted ``own_account`` movements with no linked movement.
Walking them in date order, each unconsumed movement takes the first other
candidate dated within ``LINK_WINDOW_DAYS`` whose amount negates its own
(within ``AMOUNT_TOLERANCE``). Both legs point at each other, are excluded
from analytics and carry the own-account category. A movement with no
counterpart is still excluded and tagged, and is retried on the next run.

Matching is greedy and order dependent, not an optimal assignment.
"""

from __future__ import annotations

import threading
import time
from decimal import Decimal

from db.models.finance import HlMovement
from sqlalchemy import select
from sqlalchemy.orm import Session

from .categories import TRANSFER_OWN_ACCOUNT
from .logging_setup import get_logger

_logger = get_logger("household_ledger.linking")

LINK_WINDOW_DAYS = 2
AMOUNT_TOLERANCE = Decimal("0.01")

_locks_guard = threading.Lock()
_household_locks: dict[str, threading.Lock] = {}


def _household_lock(household_id: str) -> threading.Lock:
    with _locks_guard:
        lock = _household_locks.get(household_id)
        if lock is None:
            lock = threading.Lock()
            _household_locks[household_id] = lock
        return lock


def _is_counterpart(a: HlMovement, b: HlMovement) -> bool:
    if abs((b.date - a.date).days) > LINK_WINDOW_DAYS:
        return False
    return abs(Decimal(a.amount) + Decimal(b.amount)) <= AMOUNT_TOLERANCE


def _mark(movement: HlMovement) -> None:
    movement.is_excluded_from_analytics = True
    movement.category_id = TRANSFER_OWN_ACCOUNT


def link_own_account_transfers(session: Session, household_id: str) -> int:
    """Link unlinked own-account legs of ``household_id``; return movements linked.

    Each pair counts twice. Runs holding a per-household lock, and the
    candidate rows are selected ``FOR UPDATE`` where the database supports it.
    The caller owns the transaction; this function only flushes.
    """

    t0 = time.perf_counter()
    with _household_lock(household_id):
        candidates = list(
            session.scalars(
                select(HlMovement)
                .where(
                    HlMovement.household_id == household_id,
                    HlMovement.transfer_type == "own_account",
                    HlMovement.linked_movement_id.is_(None),
                )
                .order_by(HlMovement.date, HlMovement.id)
                .with_for_update()
            )
        )

        consumed: set[int] = set()
        linked = 0
        for current in candidates:
            if current.id in consumed:
                continue
            _mark(current)
            for other in candidates:
                if other.id == current.id or other.id in consumed:
                    continue
                if _is_counterpart(current, other):
                    current.linked_movement_id = other.id
                    other.linked_movement_id = current.id
                    _mark(other)
                    consumed.update((current.id, other.id))
                    linked += 2
                    _logger.debug("link_pair a=%s b=%s", current.id, other.id)
                    break
        session.flush()

    _logger.info(
        "link_own_account_transfers household_id=%s candidates=%d linked=%d latency_ms=%.2f",
        household_id,
        len(candidates),
        linked,
        (time.perf_counter() - t0) * 1000.0,
    )
    return linked


__all__ = ["link_own_account_transfers", "LINK_WINDOW_DAYS", "AMOUNT_TOLERANCE"]
