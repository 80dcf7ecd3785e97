"""Revolut account statement CSV.

The current export has a fixed header:
``Type, Product, Started Date, Completed Date, Description, Amount, Fee,
Currency, State, Balance``. Older or hand-edited exports are read by
locating the date, description and amount columns heuristically.

Revolut issues no per-row reference in either layout, so one is synthesized
from the row content and position.
"""

from __future__ import annotations

import re
from decimal import Decimal
from typing import Any

from ...logging_setup import get_logger
from ...models import RawMovement, TransferHint
from ...text import collapse_whitespace, fold
from ..base import StatementAdapter
from ..utils import cell, normalize_date, parse_amount, read_delimited, short_hash

logger = get_logger("household_ledger.ingest.revolut")

EXPECTED_HEADER = (
    "type",
    "product",
    "started date",
    "completed date",
    "description",
    "amount",
    "fee",
    "currency",
    "state",
    "balance",
)

_POCKET_PATTERNS = ("to pocket", "αποταμιευση")
_APPLE_PAY_DEPOSIT = "apple pay deposit"
_TRANSFER_COUNTERPARTY_RE = re.compile(r"^Transfer (?:to|from) (.+)$", re.IGNORECASE)
_TRAILING_CURRENCY_RE = re.compile(r"\s+from\s+[A-Z]{3}\s*$", re.IGNORECASE)


def extract_transfer_counterparty(description: str) -> str | None:
    """``"Transfer to John Smith"`` → ``"John Smith"`` (``None`` when not a named transfer)."""

    m = _TRANSFER_COUNTERPARTY_RE.match(description.strip())
    if not m:
        return None
    name = _TRAILING_CURRENCY_RE.sub("", m.group(1).strip()).strip()
    return name if len(name) >= 2 else None


def _is_explicit(header: list[str]) -> bool:
    if len(header) < len(EXPECTED_HEADER):
        return False
    return all(h.strip().lower() == e for h, e in zip(header, EXPECTED_HEADER))


def _first_index(header: list[str], pred) -> int:
    for idx, h in enumerate(header):
        if pred(h):
            return idx
    return -1


class RevolutCsvAdapter(StatementAdapter):
    name = "revolut"
    encoding = "utf-8"

    def parse(self, data: bytes) -> list[RawMovement]:
        rows = read_delimited(self.decode(data), ",")
        if not rows:
            return []

        header = [h.strip().lower() for h in rows[0]]
        explicit = _is_explicit(header)
        if explicit:
            date_idx, desc_idx, amount_idx = 3, 4, 5
            started_idx, type_idx, state_idx, product_idx = 2, 0, 8, 1
        else:
            date_idx = _first_index(header, lambda h: "date" in h or "started" in h)
            desc_idx = _first_index(
                header,
                lambda h: "description" in h or "reference" in h or "product" in h,
            )
            amount_idx = _first_index(header, lambda h: "amount" in h and "date" not in h)
            started_idx, product_idx = -1, -1
            type_idx = _first_index(header, lambda h: h == "type")
            state_idx = _first_index(header, lambda h: h == "state")
        ref_idx = _first_index(
            header, lambda h: "reference" in h or h == "id" or "transaction" in h
        )

        out: list[RawMovement] = []
        for i, row in enumerate(rows[1:], start=1):
            if len(row) < 2:
                continue
            state = cell(row, state_idx).upper()
            if state == "PENDING":
                continue

            date_raw = cell(row, date_idx if date_idx >= 0 else 0) or cell(row, started_idx)
            description = collapse_whitespace(cell(row, desc_idx if desc_idx >= 0 else 1))
            amount = (
                parse_amount(cell(row, amount_idx))
                if amount_idx >= 0
                else _first_nonzero_amount(row[2:])
            )
            date = normalize_date(date_raw)
            if date is None or not description or amount is None:
                logger.debug("skip_row adapter=%s line=%d", self.name, i + 1)
                continue

            tx_type = cell(row, type_idx).upper()
            reference = cell(row, ref_idx) or short_hash(date, description, amount, i)

            raw: dict[str, Any] = {"row": list(row)}
            if tx_type:
                raw["type"] = tx_type
            if explicit:
                raw["product"] = cell(row, product_idx)
                raw["state"] = state
                raw["description"] = description

            hint: TransferHint | None = None
            folded = fold(description)
            if tx_type == "TRANSFER":
                if any(p in folded for p in _POCKET_PATTERNS):
                    hint = "own_account"
                else:
                    counterparty = extract_transfer_counterparty(description)
                    if counterparty:
                        raw["transfer_counterparty"] = counterparty
            elif tx_type == "DEPOSIT" and _APPLE_PAY_DEPOSIT in folded:
                # Top-up from the owner's own card.
                hint = "own_account"
            if hint:
                raw["own_account_transfer"] = True

            out.append(
                RawMovement(
                    date=date,
                    description=description,
                    amount=amount,
                    bank_reference=reference,
                    raw_data=raw,
                    transfer_hint=hint,
                )
            )
        return out

    def detect(self, text: str) -> bool:
        folded = fold(text)
        if "revolut" in folded:
            return True
        return "type" in folded and "completed" in folded and "," in text


def _first_nonzero_amount(cells: list[str]) -> Decimal | None:
    for value in cells:
        amount = parse_amount(value)
        if amount is not None and amount != 0:
            return amount
    return None


__all__ = ["RevolutCsvAdapter", "extract_transfer_counterparty", "EXPECTED_HEADER"]
