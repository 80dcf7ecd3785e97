from __future__ import annotations

from decimal import Decimal

import pytest
from household_ledger.models import HouseholdMember
from household_ledger.transfers import (
    TRANSFER_RULES,
    classify_transfer,
    extract_counterparty,
    match_member,
    resolve_counterparty,
)

MARIA = HouseholdMember(id="u-maria", name_aliases=("Μαρία Παπαδοπούλου", "Maria Papadopoulou"))
JOHN = HouseholdMember(id="u-john", name_aliases=("John Smyth",))


def test_rule_table_order() -> None:
    assert [r.name for r in TRANSFER_RULES] == [
        "adapter_own_account_hint",
        "bank_own_account_marker",
        "bank_third_party_marker",
        "structured_category_hint",
        "own_account_keyword",
        "third_party_keyword",
        "counterparty_account_field",
        "revolut_transfer_counterparty",
    ]


# ---- Examples ----------------------------------------------------------------


def test_send_money_to_unknown_person_is_third_party() -> None:
    result = classify_transfer("SEND MONEY TO JOHN SMITH", Decimal("-40.00"), [MARIA])

    assert result.transfer_type == "third_party"
    assert result.category_id == "transfer/to-third-party"
    assert result.counterparty_name == "JOHN SMITH"
    assert result.counterparty_user_id is None
    assert not result.exclude_from_analytics


def test_bank_own_account_marker_is_high_confidence() -> None:
    result = classify_transfer(
        "ΕΜΒΑΣΜΑ ΙΔΙΟΚΤΗΤΗ ΠΡΟΣ ΛΟΓ. ΤΑΜΙΕΥΤΗΡΙΟΥ", Decimal("-150.00")
    )

    assert result.transfer_type == "own_account"
    assert result.high_confidence is True
    assert result.exclude_from_analytics is True
    assert result.category_id == "transfer/own-account"


def test_no_signal_is_not_a_transfer() -> None:
    result = classify_transfer("ΣΚΛΑΒΕΝΙΤΗΣ ΧΑΛΑΝΔΡΙ", Decimal("-45.20"), [MARIA, JOHN])

    assert result.transfer_type == "none"
    assert result.category_id is None
    assert result.counterparty_name is None
    assert result.counterparty_user_id is None
    assert not result.exclude_from_analytics
    assert not result.high_confidence


def test_keywords_match_whole_words_only() -> None:
    assert classify_transfer("OTHERWISE STORE", Decimal("-3.00")).transfer_type == "none"


# ---- Alias matching ----------------------------------------------------------


def test_one_substitution_resolves_to_household_member() -> None:
    result = classify_transfer("SEND MONEY TO JOHN SMITH", Decimal("-40.00"), [MARIA, JOHN])

    assert result.transfer_type == "household_member"
    assert result.counterparty_user_id == "u-john"
    assert result.category_id == "transfer/to-household-member"


def test_incoming_member_transfer_uses_from_category() -> None:
    result = classify_transfer("ΕΙΣΠΡΑΞΗ ΑΠΟ ΠΑΠΑΔΟΠΟΥΛΟΥ ΜΑΡΙΑ", Decimal("25.00"), [MARIA])

    assert result.transfer_type == "household_member"
    assert result.counterparty_user_id == "u-maria"
    assert result.category_id == "transfer/from-household-member"


def test_distant_name_stays_third_party() -> None:
    member = HouseholdMember(id="u-kostas", name_aliases=("Kostas Georgiou",))
    result = classify_transfer("PAYMENT TO JOHN SMITH", Decimal("-10.00"), [member])

    assert result.transfer_type == "third_party"
    assert result.counterparty_name == "JOHN SMITH"


def test_match_member_by_alias_word_containment() -> None:
    assert match_member("PAPADOPOULOU", [JOHN, MARIA]) is MARIA
    assert match_member("Παπαδοπουλου Μ", [MARIA]) is MARIA
    assert match_member("X", [MARIA]) is None
    assert match_member(None, [MARIA]) is None


def test_acting_user_match_is_own_account() -> None:
    result = resolve_counterparty(
        "MARIA PAPADOPOULOU", Decimal("-80.00"), [MARIA], acting_user_id="u-maria"
    )

    assert result.transfer_type == "own_account"
    assert result.exclude_from_analytics is True
    assert result.category_id == "transfer/own-account"
    assert result.counterparty_user_id == "u-maria"


def test_resolve_without_usable_name() -> None:
    result = resolve_counterparty("", Decimal("12.00"), [MARIA])

    assert result.transfer_type == "third_party"
    assert result.counterparty_name is None
    assert result.category_id == "transfer/from-third-party"


# ---- Extraction --------------------------------------------------------------


@pytest.mark.parametrize(
    ("description", "keyword", "expected"),
    [
        ("SEND MONEY TO JOHN SMITH", "SEND MONEY", "JOHN SMITH"),
        ("ΑΠΟΣΤΟΛΗ ΣΕ ΓΙΩΡΓΟ 25 EUR", "ΑΠΟΣΤΟΛΗ ΣΕ", "ΓΙΩΡΓΟ"),
        ("PAYMENT TO ALEXANDROS KONSTANTINIDIS PAPADOPOULOS", "PAYMENT TO", "ALEXANDROS KONSTANTINIDIS"),
        ("SEND MONEY 1234", "SEND MONEY", None),
        ("LIDL", "SEND MONEY", None),
    ],
)
def test_extract_counterparty(description: str, keyword: str, expected: str | None) -> None:
    assert extract_counterparty(description, keyword) == expected


# ---- Structured hints --------------------------------------------------------


def test_adapter_hint_wins() -> None:
    result = classify_transfer(
        "To pocket EUR Holiday", Decimal("-20.00"), transfer_hint="own_account"
    )
    assert result.transfer_type == "own_account"
    assert result.high_confidence is True


def test_third_party_marker_uses_structured_name() -> None:
    raw = {"counterparty_name": "Maria Papadopoulou"}
    result = classify_transfer("ΕΜΒΑΣΜΑ ΤΡΙΤΟΥ", Decimal("-30.00"), [MARIA], raw)

    assert result.transfer_type == "household_member"
    assert result.high_confidence is True


def test_winbank_transfer_category_hint() -> None:
    raw = {"category_hint": "transfer/from-third-party"}
    result = classify_transfer("ΕΙΣΕΡΧΟΜΕΝΟ", Decimal("500.00"), raw_data=raw)

    assert result.transfer_type == "third_party"
    assert result.category_id == "transfer/from-third-party"


def test_cash_category_hint_is_not_a_transfer() -> None:
    result = classify_transfer("ΑΝΑΛΗΨΗ ATM", Decimal("-100.00"), raw_data={"category_hint": "cash"})
    assert result.transfer_type == "none"


def test_generic_own_account_keyword() -> None:
    result = classify_transfer("ΜΕΤΑΦΟΡΑ ΠΡΟΣ ΛΟΓΑΡΙΑΣΜΟ 123", Decimal("-60.00"), [MARIA])

    assert result.transfer_type == "own_account"
    assert result.high_confidence is False
    assert result.category_id == "transfer/own-account"


def test_counterparty_account_field() -> None:
    raw = {"counterparty_account": "GR16011012500", "counterparty_name": "ΠΑΠΑΔΟΠΟΥΛΟΥ ΜΑΡΙΑ"}
    result = classify_transfer("ΠΛΗΡΩΜΗ", Decimal("-80.00"), [MARIA], raw)

    assert result.transfer_type == "household_member"
    assert result.counterparty_user_id == "u-maria"


def test_revolut_transfer_counterparty() -> None:
    raw = {"type": "TRANSFER", "transfer_counterparty": "Jon Smyth"}
    result = classify_transfer("Transfer to Jon Smyth", Decimal("-15.00"), [JOHN], raw)

    assert result.transfer_type == "household_member"
    assert result.counterparty_user_id == "u-john"


def test_failing_rule_degrades_to_not_a_transfer(monkeypatch: pytest.MonkeyPatch) -> None:
    import household_ledger.transfers as transfers_mod

    def _boom(_ctx):
        raise RuntimeError("bad rule")

    monkeypatch.setattr(
        transfers_mod, "TRANSFER_RULES", (transfers_mod.TransferRule("boom", _boom),)
    )
    result = classify_transfer("ΕΜΒΑΣΜΑ ΙΔΙΟΚΤΗΤΗ", Decimal("-1.00"))
    assert result.transfer_type == "none"


def test_own_account_keyword_naming_a_member_is_member_transfer() -> None:
    result = classify_transfer(
        "ΜΕΤΑΦΟΡΑ ΠΡΟΣ MARIA PAPADOPOULOU", Decimal("-30.00"), [MARIA], acting_user_id="u-other"
    )

    assert result.transfer_type == "household_member"
    assert result.counterparty_user_id == "u-maria"
    assert result.category_id == "transfer/to-household-member"
    assert result.exclude_from_analytics is False


def test_own_account_keyword_naming_the_acting_user() -> None:
    result = classify_transfer(
        "ΜΕΤΑΦΟΡΑ ΠΡΟΣ MARIA PAPADOPOULOU", Decimal("-30.00"), [MARIA], acting_user_id="u-maria"
    )

    assert result.transfer_type == "own_account"
    assert result.counterparty_user_id == "u-maria"
    assert result.exclude_from_analytics is True
