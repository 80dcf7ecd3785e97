"""Column-locating parser shared by the delimited-text bank exports.

Layout (after the optional header row):
``date, description, debit, credit[, reference ...]``

Header cells are located by case/accent-insensitive substring match against
Greek and English tokens; columns no token matched fall back to their
positional slot. A first row whose first cell is already a date is data, not
a header, and the whole layout is then positional.
"""

from __future__ import annotations

from typing import ClassVar

from ...logging_setup import get_logger
from ...models import RawMovement
from ...text import collapse_whitespace
from ..base import StatementAdapter
from ..utils import cell, find_column, normalize_date, read_delimited, signed_amount

logger = get_logger("household_ledger.ingest.delimited")

DATE_TOKENS = ("ημερομηνία", "date")
DESCRIPTION_TOKENS = ("περιγραφή", "description")
DEBIT_TOKENS = ("χρέωση", "debit")
CREDIT_TOKENS = ("πίστωση", "credit")


class DelimitedStatementAdapter(StatementAdapter):
    delimiter: ClassVar[str] = ";"
    reference_tokens: ClassVar[tuple[str, ...]] = ("reference",)
    decimal_comma: ClassVar[bool] = False

    def parse(self, data: bytes) -> list[RawMovement]:
        rows = read_delimited(self.decode(data), self.delimiter)
        if not rows:
            return []

        header = rows[0]
        if normalize_date(cell(header, 0)) is not None:
            # Headerless export: the first row is already a movement.
            header = []
            body = rows
        else:
            body = rows[1:]
        date_idx = find_column(header, DATE_TOKENS)
        desc_idx = find_column(header, DESCRIPTION_TOKENS)
        debit_idx = find_column(header, DEBIT_TOKENS)
        credit_idx = find_column(header, CREDIT_TOKENS)
        ref_idx = find_column(header, self.reference_tokens)

        if date_idx < 0:
            date_idx = 0
        if desc_idx < 0:
            desc_idx = 1
        if debit_idx < 0:
            debit_idx = 2
        if credit_idx < 0:
            credit_idx = 3

        out: list[RawMovement] = []
        for line_no, row in enumerate(body, start=len(rows) - len(body) + 1):
            if len(row) < 2:
                continue
            date = normalize_date(cell(row, date_idx))
            description = collapse_whitespace(cell(row, desc_idx))
            amount = signed_amount(
                cell(row, debit_idx), cell(row, credit_idx), decimal_comma=self.decimal_comma
            )
            if date is None or not description or amount is None:
                logger.debug("skip_row adapter=%s line=%d", self.name, line_no)
                continue
            reference = cell(row, ref_idx) or None
            out.append(
                RawMovement(
                    date=date,
                    description=description,
                    amount=amount,
                    bank_reference=reference,
                    raw_data={"row": list(row)},
                )
            )
        return out


__all__ = ["DelimitedStatementAdapter"]
