"""Payzy (Cosmote e-money) PDF statement.

Each completed transaction renders as one text line:

``***2139<merchant>Ολοκληρώθηκε -12,50 € 10/03/2024 14:22``

The statement carries no transaction id, so ``bank_reference`` is a hash of
(date, merchant, amount, position). Re-parsing the same file reproduces the
same references; two byte-identical rows in different files collide.
"""

from __future__ import annotations

import re

from ...models import RawMovement, TransferHint
from ...text import collapse_whitespace, fold
from ..base import StatementAdapter
from ..utils import extract_pdf_text, normalize_date, parse_amount, short_hash

ROW_RE = re.compile(
    r"\*{3}\d{4}(.+?)Ολοκληρώθηκε\s*([-+]?[\d.,]+)\s*€?\s*"
    r"(\d{1,2}/\d{1,2}/\d{4})\s+(\d{1,2}:\d{2})"
)
COMPLETED = "Ολοκληρώθηκε"
# Wallet top-ups from the owner's own card.
OWN_ACCOUNT_MERCHANTS = ("PAYZY BY COSMOTE",)


def parse_statement_text(text: str) -> list[RawMovement]:
    out: list[RawMovement] = []
    for index, m in enumerate(ROW_RE.finditer(text)):
        merchant = collapse_whitespace(m.group(1))
        amount_raw, date_raw, time_raw = m.group(2), m.group(3), m.group(4)
        magnitude = parse_amount(amount_raw.lstrip("+-"))
        date = normalize_date(date_raw)
        if magnitude is None or date is None or not merchant:
            continue
        # Only explicit "+" rows are inflows.
        amount = abs(magnitude) if amount_raw.startswith("+") else -abs(magnitude)

        raw = {
            "merchant": merchant,
            "status": COMPLETED,
            "date_str": date_raw,
            "time_str": time_raw,
        }
        hint: TransferHint | None = None
        if any(fold(own) in fold(merchant) for own in OWN_ACCOUNT_MERCHANTS):
            hint = "own_account"
            raw["own_account_transfer"] = True

        out.append(
            RawMovement(
                date=date,
                description=merchant,
                amount=amount,
                bank_reference=short_hash(date, merchant, amount, index),
                raw_data=raw,
                transfer_hint=hint,
            )
        )
    return out


class PayzyPdfAdapter(StatementAdapter):
    name = "payzy"
    kind = "pdf"

    def parse(self, data: bytes) -> list[RawMovement]:
        return parse_statement_text(extract_pdf_text(data))

    def detect(self, text: str) -> bool:
        folded = fold(text)
        return (
            fold("Υπηρεσίες Ηλεκτρονικού Χρήματος") in folded
            or "e-proof" in folded
            or (fold("Συναλλαγές") in folded and fold("Όνομα εμπόρου") in folded)
        )


__all__ = ["PayzyPdfAdapter", "parse_statement_text", "ROW_RE"]
