from __future__ import annotations

import io
from datetime import datetime
from decimal import Decimal

import pytest
from household_ledger.ingest.adapters import NbgXlsxAdapter
from household_ledger.ingest.base import MalformedInputError
from openpyxl import Workbook

HEADER = [
    "Α/Α Συναλλαγής",
    "Ημερομηνία",
    "Κατάστημα",
    "Περιγραφή",
    "Κατηγορία συναλλαγής",
    "Ποσό συναλλαγής",
    "Χρέωση / Πίστωση",
    "Αριθμός αναφοράς",
    "Λογαριασμός αντισυμβαλλόμενου",
    "Ονοματεπώνυμο αντισυμβαλλόμενου",
]


def _workbook_bytes(rows: list[list[object]], *, sheet: str = "data", preamble: int = 0) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = sheet
    for _ in range(preamble):
        ws.append(["Εθνική Τράπεζα"])
    ws.append(HEADER)
    for r in rows:
        ws.append(r)
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


def test_nbg_xlsx_signs_and_descriptions() -> None:
    data = _workbook_bytes(
        [
            [1, datetime(2024, 3, 10), "ΣΚΛΑΒΕΝΙΤΗΣ", "ΑΓΟΡΑ", "Σούπερ μάρκετ", 45.2, "Χρέωση", "R1", None, None],
            [2, "11/03/2024", None, "ΜΙΣΘΟΔΟΣΙΑ", None, 1500, "Πίστωση", None, None, None],
            [3, "12/03/2024", None, "ΕΠΙΣΤΡΟΦΗ", None, -9.99, "Πίστωση", "R3", None, None],
        ],
        preamble=2,
    )
    movements = NbgXlsxAdapter().parse(data)

    assert [(m.date, m.amount, m.bank_reference) for m in movements] == [
        ("2024-03-10", Decimal("-45.20"), "R1"),
        ("2024-03-11", Decimal("1500.00"), "2"),
        ("2024-03-12", Decimal("-9.99"), "R3"),
    ]
    assert movements[0].description == "ΣΚΛΑΒΕΝΙΤΗΣ - ΑΓΟΡΑ - Σούπερ μάρκετ"
    assert movements[0].raw_data["row"]["Ημερομηνία"] == "2024-03-10T00:00:00"


def test_nbg_xlsx_counterparty_fields_kept() -> None:
    data = _workbook_bytes(
        [
            [
                7,
                "15/03/2024",
                None,
                "ΜΕΤΑΦΟΡΑ",
                None,
                80,
                "Χρέωση",
                "R7",
                "GR1601101250000000012300695",
                "ΠΑΠΑΔΟΠΟΥΛΟΥ ΜΑΡΙΑ",
            ]
        ]
    )
    (m,) = NbgXlsxAdapter().parse(data)

    assert m.amount == Decimal("-80.00")
    assert m.description == "ΜΕΤΑΦΟΡΑ - ΠΑΠΑΔΟΠΟΥΛΟΥ ΜΑΡΙΑ"
    assert m.raw_data["counterparty_account"] == "GR1601101250000000012300695"
    assert m.raw_data["counterparty_name"] == "ΠΑΠΑΔΟΠΟΥΛΟΥ ΜΑΡΙΑ"


def test_nbg_xlsx_skips_rows_without_date_or_amount() -> None:
    data = _workbook_bytes(
        [
            [1, None, "X", None, None, 5, "Χρέωση", None, None, None],
            [2, "31/02/2024", "Y", None, None, 5, "Χρέωση", None, None, None],
            [3, "01/03/2024", "Z", None, None, None, "Χρέωση", None, None, None],
            [4, "02/03/2024", None, None, None, 5, "Χρέωση", None, None, None],
        ]
    )
    movements = NbgXlsxAdapter().parse(data)
    assert [(m.date, m.description) for m in movements] == [("2024-03-02", "Unknown")]


def test_nbg_xlsx_first_sheet_when_no_data_sheet() -> None:
    data = _workbook_bytes(
        [[1, "10/03/2024", "SHOP", None, None, 3.5, "Χρέωση", None, None, None]],
        sheet="Κινήσεις",
    )
    (m,) = NbgXlsxAdapter().parse(data)
    assert m.amount == Decimal("-3.50")


def test_nbg_xlsx_rejects_non_workbook() -> None:
    with pytest.raises(MalformedInputError):
        NbgXlsxAdapter().parse(b"PK\x03\x04 not really a zip")
