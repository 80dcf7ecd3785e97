"""National Bank of Greece statement workbook (.xlsx).

Columns are addressed by their Greek header names. Amounts are unsigned;
the ``Χρέωση / Πίστωση`` marker carries the direction. A non-empty
counterparty account marks the row as a transfer, and the counterparty name
is kept for household-member matching.
"""

from __future__ import annotations

import io
from datetime import date, datetime
from typing import Any

from openpyxl import load_workbook

from ...logging_setup import get_logger
from ...models import RawMovement
from ...text import collapse_whitespace, fold
from ..base import MalformedInputError, StatementAdapter
from ..utils import normalize_date, parse_amount

logger = get_logger("household_ledger.ingest.nbg_xlsx")

COL_DATE = "Ημερομηνία"
COL_MERCHANT = "Κατάστημα"
COL_CATEGORY = "Κατηγορία συναλλαγής"
COL_AMOUNT = "Ποσό συναλλαγής"
COL_DEBIT_CREDIT = "Χρέωση / Πίστωση"
COL_DESCRIPTION = "Περιγραφή"
COL_REFERENCE = "Αριθμός αναφοράς"
COL_TRANSACTION_NO = "Α/Α Συναλλαγής"
COL_COUNTERPARTY_ACCOUNT = "Λογαριασμός αντισυμβαλλόμενου"
COL_COUNTERPARTY_NAME = "Ονοματεπώνυμο αντισυμβαλλόμενου"

HEADER_SCAN_ROWS = 20


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return collapse_whitespace(str(value))


def _json_safe(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


def _is_debit(marker: Any) -> bool:
    dc = _text(marker).lower()
    return "χ" in dc or dc == "d"


class NbgXlsxAdapter(StatementAdapter):
    name = "nbg-xlsx"
    kind = "spreadsheet"

    def parse(self, data: bytes) -> list[RawMovement]:
        try:
            wb = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
        except Exception as exc:  # zipfile/openpyxl raise unrelated error types
            raise MalformedInputError(f"Unreadable spreadsheet: {exc}") from exc
        try:
            sheet_name = next(
                (n for n in wb.sheetnames if n.strip().lower() == "data"),
                wb.sheetnames[0] if wb.sheetnames else None,
            )
            if sheet_name is None:
                return []
            rows = [list(r) for r in wb[sheet_name].iter_rows(values_only=True)]
        finally:
            wb.close()
        return self._parse_rows(rows)

    def _parse_rows(self, rows: list[list[Any]]) -> list[RawMovement]:
        if not rows:
            return []
        header_idx = next(
            (
                i
                for i, r in enumerate(rows[:HEADER_SCAN_ROWS])
                if any(fold(_text(c)) == fold(COL_DATE) for c in r)
            ),
            0,
        )
        header = [_text(c) for c in rows[header_idx]]
        index = {fold(h): i for i, h in enumerate(header) if h}

        def get(row: list[Any], column: str) -> Any:
            i = index.get(fold(column))
            if i is None or i >= len(row):
                return None
            return row[i]

        out: list[RawMovement] = []
        for line_no, row in enumerate(rows[header_idx + 1 :], start=header_idx + 2):
            date_val = get(row, COL_DATE)
            if date_val in (None, ""):
                continue
            movement_date = normalize_date(date_val)
            magnitude = parse_amount(get(row, COL_AMOUNT))
            if movement_date is None or magnitude is None:
                logger.debug("skip_row adapter=%s line=%d", self.name, line_no)
                continue
            if magnitude < 0:
                amount = magnitude
            elif _is_debit(get(row, COL_DEBIT_CREDIT)):
                amount = -magnitude
            else:
                amount = magnitude

            counterparty_name = _text(get(row, COL_COUNTERPARTY_NAME))
            counterparty_account = _text(get(row, COL_COUNTERPARTY_ACCOUNT))
            parts = [
                _text(get(row, COL_MERCHANT)),
                _text(get(row, COL_DESCRIPTION)),
                _text(get(row, COL_CATEGORY)),
                counterparty_name,
            ]
            description = " - ".join(p for p in parts if p) or "Unknown"
            reference = _text(get(row, COL_REFERENCE)) or _text(get(row, COL_TRANSACTION_NO))

            raw: dict[str, Any] = {
                "row": {h: _json_safe(row[i]) for i, h in enumerate(header) if h and i < len(row)},
            }
            if counterparty_account:
                raw["counterparty_account"] = counterparty_account
            if counterparty_name:
                raw["counterparty_name"] = counterparty_name

            out.append(
                RawMovement(
                    date=movement_date,
                    description=description,
                    amount=amount,
                    bank_reference=reference or None,
                    raw_data=raw,
                )
            )
        return out


__all__ = ["NbgXlsxAdapter"]
