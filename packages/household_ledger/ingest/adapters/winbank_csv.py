"""Piraeus Bank (winbank) account statement CSV.

The export opens with a bank preamble (address, IBAN, BIC ``PIRBGRAA``) and a
header line containing ``Ημ/νία``/``Αιτιολογία``. Each movement then spans
several ``;``-separated lines:

- a main line: ``date;type;value date;credit;debit;balance``
- detail lines with an empty first cell, either ``="free text"`` (details)
  or a bare token (references, e.g. ``PO0123456789``).

Credits are positive and debits negative in their respective columns.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from decimal import Decimal

from ...models import RawMovement, TransferHint
from ...text import collapse_whitespace, fold
from ..base import StatementAdapter
from ..utils import cell, normalize_date, parse_amount

HEADER_SCAN_LINES = 25
HEADER_TOKENS = ("Ημ/νία", "Αιτιολογία")
SKIP_TOKENS = ("Opening Balance", "Closing Balance", "Ταχυδρομική", "ΤΗΛ.:")

# Bank transaction ids: PO..., AT..., EB..., F... (1-3 letter prefix + alphanumerics).
BANK_TX_ID_RE = re.compile(r"^[A-Z]{1,3}[A-Z0-9]{8,}$")
_DETAIL_RE = re.compile(r'^="(.+)"$')

CATEGORY_CASH = "cash"
CATEGORY_TRANSFER_FROM = "transfer/from-third-party"
CATEGORY_TRANSFER_TO = "transfer/to-third-party"


def category_from_reference(reference: str | None, amount: Decimal) -> str | None:
    """Map a winbank reference prefix to a category hint.

    ``AT`` is an ATM withdrawal, ``F26TI``/``F928TO`` are incoming/outgoing
    transfers, ``EB`` is an e-banking transfer whose direction follows the
    sign. ``PO`` (card purchase) and anything else yields no hint.
    """

    if not reference:
        return None
    ref = reference.upper()
    if ref.startswith("AT"):
        return CATEGORY_CASH
    if ref.startswith("PO"):
        return None
    if ref.startswith("F26TI"):
        return CATEGORY_TRANSFER_FROM
    if ref.startswith("F928TO"):
        return CATEGORY_TRANSFER_TO
    if ref.startswith("EB"):
        return CATEGORY_TRANSFER_FROM if amount >= 0 else CATEGORY_TRANSFER_TO
    return None


@dataclass(slots=True)
class _Pending:
    date: str
    type: str
    value_date: str
    credit: Decimal
    debit: Decimal
    balance: Decimal | None
    details: list[str] = field(default_factory=list)
    refs: list[str] = field(default_factory=list)

    def build(self) -> RawMovement:
        if self.credit != 0:
            amount = abs(self.credit)
        elif self.debit != 0:
            amount = -abs(self.debit)
        else:
            amount = Decimal("0.00")
        description = self.details[0] if self.details else self.type

        reference = next((r for r in self.refs if BANK_TX_ID_RE.match(r)), None)
        if reference is None and self.refs:
            reference = self.refs[-1]

        raw: dict[str, object] = {
            "type": self.type,
            "details": list(self.details),
            "balance": str(self.balance) if self.balance is not None else None,
            "value_date": self.value_date,
            "refs": list(self.refs),
        }
        category_hint = category_from_reference(reference, amount)
        if category_hint:
            raw["category_hint"] = category_hint

        hint: TransferHint | None = None
        # Outgoing top-ups of the owner's Revolut account.
        if amount < 0 and any("revolut" in fold(d) for d in self.details):
            hint = "own_account"
            raw["own_account_transfer"] = True

        return RawMovement(
            date=self.date,
            description=collapse_whitespace(description),
            amount=amount,
            bank_reference=reference or None,
            raw_data=raw,
            transfer_hint=hint,
        )


class WinbankCsvAdapter(StatementAdapter):
    name = "winbank"
    encoding = "cp1253"

    def parse(self, data: bytes) -> list[RawMovement]:
        lines = self.decode(data).splitlines()

        header_idx = next(
            (
                i
                for i, line in enumerate(lines[:HEADER_SCAN_LINES])
                if any(tok in line for tok in HEADER_TOKENS)
            ),
            -1,
        )
        if header_idx < 0:
            return []

        out: list[RawMovement] = []
        current: _Pending | None = None
        for line in lines[header_idx + 1 :]:
            if not line.strip() or any(tok in line for tok in SKIP_TOKENS):
                continue
            cols = line.split(";")
            first = cell(cols, 0).strip()
            date = normalize_date(first) if first else None

            if date is not None:
                if current is not None:
                    out.append(current.build())
                current = _Pending(
                    date=date,
                    type=cell(cols, 1).strip(),
                    value_date=cell(cols, 2).strip(),
                    credit=parse_amount(cell(cols, 3), decimal_comma=True) or Decimal("0.00"),
                    debit=parse_amount(cell(cols, 4), decimal_comma=True) or Decimal("0.00"),
                    balance=parse_amount(cell(cols, 5), decimal_comma=True),
                )
            elif current is not None and not first:
                detail = cell(cols, 1).strip()
                if not detail:
                    continue
                m = _DETAIL_RE.match(detail)
                if m:
                    current.details.append(m.group(1))
                else:
                    current.refs.append(detail)
        if current is not None:
            out.append(current.build())
        return out

    def detect(self, text: str) -> bool:
        folded = fold(text)
        return "pirbgraa" in folded or "piraeusbank" in folded


__all__ = ["WinbankCsvAdapter", "category_from_reference", "BANK_TX_ID_RE"]
