from __future__ import annotations

from decimal import Decimal

import household_ledger.ingest.adapters.generic_pdf as generic_mod
import household_ledger.ingest.adapters.payzy_pdf as payzy_mod
import pytest
from household_ledger.ingest.adapters import GenericPdfAdapter, PayzyPdfAdapter
from household_ledger.ingest.base import MalformedInputError

PAYZY_TEXT = "\n".join(
    [
        "Υπηρεσίες Ηλεκτρονικού Χρήματος",
        "Συναλλαγές",
        "***2139SKLAVENITIS ΑΘΗΝΑΟλοκληρώθηκε -12,50 € 10/03/2024 14:22",
        "***2139PAYZY BY COSMOTEΟλοκληρώθηκε +50,00 € 11/03/2024 09:01",
        "***2139E-FOOD   DELIVERY Ολοκληρώθηκε 8,90 € 12/03/2024 20:15",
        "***2139BROKEN ROWΟλοκληρώθηκε -1,00 € 31/02/2024 10:00",
    ]
)

GENERIC_TEXT = "\n".join(
    [
        "ACME BANK STATEMENT",
        "Page 1 of 2",
        "Balance 01/03/2024",
        "10/03/2024 SUPERMARKET XYZ -23,45",
        "2024-03-11 CARD 1234 PAYMENT 1.234,56 EUR",
        "12/03/2024 REFUND (5,00)",
    ]
)


def test_payzy_text_grammar() -> None:
    movements = payzy_mod.parse_statement_text(PAYZY_TEXT)

    assert [(m.date, m.description, m.amount) for m in movements] == [
        ("2024-03-10", "SKLAVENITIS ΑΘΗΝΑ", Decimal("-12.50")),
        ("2024-03-11", "PAYZY BY COSMOTE", Decimal("50.00")),
        ("2024-03-12", "E-FOOD DELIVERY", Decimal("-8.90")),
    ]
    assert movements[0].raw_data["time_str"] == "14:22"
    assert movements[0].raw_data["status"] == "Ολοκληρώθηκε"


def test_payzy_topup_is_own_account() -> None:
    topup = payzy_mod.parse_statement_text(PAYZY_TEXT)[1]
    assert topup.transfer_hint == "own_account"
    assert topup.raw_data["own_account_transfer"] is True


def test_payzy_references_reproduce_on_reparse() -> None:
    first = [m.bank_reference for m in payzy_mod.parse_statement_text(PAYZY_TEXT)]
    second = [m.bank_reference for m in payzy_mod.parse_statement_text(PAYZY_TEXT)]
    assert first == second
    assert len(set(first)) == 3


def test_payzy_detect() -> None:
    adapter = PayzyPdfAdapter()
    assert adapter.detect("ΥΠΗΡΕΣΙΕΣ ΗΛΕΚΤΡΟΝΙΚΟΥ ΧΡΗΜΑΤΟΣ")
    assert adapter.detect("e-Proof of transactions")
    assert not adapter.detect("ACME BANK STATEMENT")


def test_payzy_adapter_uses_pdf_text(monkeypatch: pytest.MonkeyPatch) -> None:
    seen: list[bytes] = []

    def _fake_extract(data: bytes, **_kw) -> str:
        seen.append(data)
        return PAYZY_TEXT

    monkeypatch.setattr(payzy_mod, "extract_pdf_text", _fake_extract)
    movements = PayzyPdfAdapter().parse(b"%PDF-fake")
    assert seen == [b"%PDF-fake"]
    assert len(movements) == 3


def test_generic_pdf_lines() -> None:
    movements = generic_mod.parse_statement_text(GENERIC_TEXT)

    assert [(m.date, m.description, m.amount) for m in movements] == [
        ("2024-03-10", "SUPERMARKET XYZ", Decimal("-23.45")),
        ("2024-03-11", "CARD 1234 PAYMENT", Decimal("1234.56")),
        ("2024-03-12", "REFUND", Decimal("-5.00")),
    ]
    assert movements[0].raw_data == {"line": "10/03/2024 SUPERMARKET XYZ -23,45"}
    assert all(m.bank_reference is None for m in movements)


def test_generic_pdf_adapter_uses_pdf_text(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(generic_mod, "extract_pdf_text", lambda data, **_kw: GENERIC_TEXT)
    assert len(GenericPdfAdapter().parse(b"%PDF-fake")) == 3


@pytest.mark.parametrize("adapter", [PayzyPdfAdapter(), GenericPdfAdapter()])
def test_pdf_adapters_reject_unreadable_pdf(adapter) -> None:
    with pytest.raises(MalformedInputError):
        adapter.parse(b"this is not a pdf document")
