"""Transfer classification and household-member counterparty resolution.

Public API:
    - :func:`classify_transfer`
    - :func:`resolve_counterparty`, :func:`match_member`,
      :func:`extract_counterparty`
    - :data:`TRANSFER_RULES`

Classification is a single pass over :data:`TRANSFER_RULES`; the first rule
returning an outcome wins and the fallback is "not a transfer". Keyword rules
compare the normalized description (see :mod:`household_ledger.text`) with
whole-word phrase matching.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from rapidfuzz.distance import Levenshtein

from .categories import (
    CategoryCatalog,
    TRANSFER_FROM_HOUSEHOLD_MEMBER,
    TRANSFER_FROM_THIRD_PARTY,
    TRANSFER_OWN_ACCOUNT,
    TRANSFER_TO_HOUSEHOLD_MEMBER,
    TRANSFER_TO_THIRD_PARTY,
    is_transfer_category,
)
from .logging_setup import get_logger
from .models import NOT_A_TRANSFER, HouseholdMember, TransferClassification, TransferHint
from .text import normalize, significant_words

_logger = get_logger("household_ledger.transfers")

# Bank-specific exact phrases (high confidence).
BANK_OWN_ACCOUNT_MARKERS: tuple[str, ...] = (
    "ΕΜΒΑΣΜΑ ΙΔΙΟΚΤΗΤΗ",  # Alpha Bank: remittance between the holder's accounts
    "PAYZY BY COSMOTE",  # Payzy wallet top-up
)
BANK_THIRD_PARTY_MARKERS: tuple[str, ...] = ("ΕΜΒΑΣΜΑ ΤΡΙΤΟΥ",)

OWN_ACCOUNT_KEYWORDS: tuple[str, ...] = (
    "ΜΕΤΑΦΟΡΑ ΠΡΟΣ",
    "METAFORA",
    "ΕΜΒΑΣΜΑ ΠΡΟΣ",
    "EMVASMA",
    "REVOLUT",
    "WISE",
    "ΔΙΑΤΡΑΠΕΖΙΚΗ",
    "DIATRAPEZIKI",
    "SEPA TRANSFER",
    "CREDIT TRANSFER",
    "OWN ACCOUNT",
    "INTERNAL TRANSFER",
)

THIRD_PARTY_KEYWORDS: tuple[str, ...] = (
    "ΑΠΟΣΤΟΛΗ ΣΕ",
    "ΠΛΗΡΩΜΗ ΠΡΟΣ",
    "SEND MONEY",
    "PAYMENT TO",
    "TRANSFERRED TO",
    "ΜΕΤΑΦΟΡΑ ΑΠΟ",
    "ΕΙΣΠΡΑΞΗ ΑΠΟ",
)

# Leading words between a keyword and the name ("SEND MONEY TO <name>").
_CONNECTORS = frozenset(normalize(w) for w in ("to", "from", "προς", "από", "σε", "στον", "στην"))
_NAME_STOP_RE = re.compile(r"\d|\beur\b")
COUNTERPARTY_SOFT_LIMIT = 20
MIN_NAME_LEN = 2
MAX_ALIAS_EDITS = 2

_NBG_COUNTERPARTY_ACCOUNT_COL = "Λογαριασμός αντισυμβαλλόμενου"
_NBG_COUNTERPARTY_NAME_COL = "Ονοματεπώνυμο αντισυμβαλλόμενου"


# ---- Keyword helpers ---------------------------------------------------------


def _find_phrase(norm: str, phrase: str) -> re.Match[str] | None:
    p = normalize(phrase)
    if not p or not norm:
        return None
    return re.search(rf"(?:^|\s){re.escape(p)}(?=\s|$)", norm)


def _first_phrase(norm: str, phrases: Sequence[str]) -> str | None:
    for phrase in phrases:
        if _find_phrase(norm, phrase):
            return phrase
    return None


def extract_counterparty(description: str, keyword: str) -> str | None:
    """Return the name following ``keyword`` in ``description``.

    The name starts after the keyword (and any connector such as ``TO`` or
    ``ΠΡΟΣ``) and ends at the first digit or ``EUR`` marker, or at the first
    space past the 20th character, whichever comes first. The result is the
    upper-cased normalized text; ``None`` when nothing usable follows.
    """

    norm = normalize(description)
    m = _find_phrase(norm, keyword)
    if not m:
        return None
    words = norm[m.end() :].split()
    while words and words[0] in _CONNECTORS:
        words.pop(0)
    after = " ".join(words)

    cut = len(after)
    stop = _NAME_STOP_RE.search(after)
    if stop:
        cut = stop.start()
    soft = after.find(" ", COUNTERPARTY_SOFT_LIMIT)
    if soft >= 0:
        cut = min(cut, soft)
    name = after[:cut].strip().upper()
    return name or None


# ---- Alias matching ----------------------------------------------------------


def _alias_matches(counterparty: str, alias: str) -> bool:
    a = normalize(alias)
    if len(a) < MIN_NAME_LEN:
        return False
    if Levenshtein.distance(counterparty, a) <= MAX_ALIAS_EDITS:
        return True
    cp_words = significant_words(counterparty)
    for aw in significant_words(a):
        if aw in counterparty:
            return True
        if len(counterparty) >= 3 and counterparty in aw:
            return True
        if any(Levenshtein.distance(aw, cw) <= MAX_ALIAS_EDITS for cw in cp_words):
            return True
    return False


def match_member(name: str | None, members: Sequence[HouseholdMember]) -> HouseholdMember | None:
    """Return the first member one of whose aliases matches ``name``.

    Both sides are normalized. An alias matches when the whole strings are
    within two edits, or when any alias word of three or more characters is
    contained in the name (or contains it) or is within two edits of a name
    word.
    """

    cp = normalize(name)
    if len(cp) < MIN_NAME_LEN:
        return None
    for member in members:
        for alias in member.name_aliases or ():
            if alias and _alias_matches(cp, str(alias)):
                return member
    return None


def _direction(amount: Decimal, to_id: str, from_id: str) -> str:
    return to_id if amount < 0 else from_id


def resolve_counterparty(
    name: str | None,
    amount: Decimal,
    members: Sequence[HouseholdMember],
    *,
    acting_user_id: str | None = None,
    high_confidence: bool = False,
) -> TransferClassification:
    """Turn a counterparty name into a transfer classification.

    - no usable name → ``third_party`` without a name
    - alias match with the acting user → ``own_account``
    - alias match with another member → ``household_member``
    - otherwise → ``third_party`` keeping the raw name for manual resolution
    """

    cleaned = (name or "").strip()
    if len(cleaned) < MIN_NAME_LEN:
        return TransferClassification(
            transfer_type="third_party",
            category_id=_direction(amount, TRANSFER_TO_THIRD_PARTY, TRANSFER_FROM_THIRD_PARTY),
            high_confidence=high_confidence,
        )
    member = match_member(cleaned, members)
    if member is None:
        return TransferClassification(
            transfer_type="third_party",
            counterparty_name=cleaned,
            category_id=_direction(amount, TRANSFER_TO_THIRD_PARTY, TRANSFER_FROM_THIRD_PARTY),
            high_confidence=high_confidence,
        )
    if acting_user_id and member.id == acting_user_id:
        return TransferClassification(
            transfer_type="own_account",
            counterparty_name=cleaned,
            counterparty_user_id=member.id,
            exclude_from_analytics=True,
            category_id=TRANSFER_OWN_ACCOUNT,
            high_confidence=high_confidence,
        )
    return TransferClassification(
        transfer_type="household_member",
        counterparty_name=cleaned,
        counterparty_user_id=member.id,
        category_id=_direction(
            amount, TRANSFER_TO_HOUSEHOLD_MEMBER, TRANSFER_FROM_HOUSEHOLD_MEMBER
        ),
        high_confidence=high_confidence,
    )


def _own_account(*, counterparty: str | None = None, high_confidence: bool) -> TransferClassification:
    return TransferClassification(
        transfer_type="own_account",
        counterparty_name=counterparty,
        exclude_from_analytics=True,
        category_id=TRANSFER_OWN_ACCOUNT,
        high_confidence=high_confidence,
    )


# ---- Rule table --------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class TransferContext:
    description: str
    norm: str
    amount: Decimal
    members: Sequence[HouseholdMember]
    raw_data: Mapping[str, Any]
    transfer_hint: TransferHint | None
    acting_user_id: str | None

    def resolve(self, name: str | None, *, high_confidence: bool = False) -> TransferClassification:
        return resolve_counterparty(
            name,
            self.amount,
            self.members,
            acting_user_id=self.acting_user_id,
            high_confidence=high_confidence,
        )


@dataclass(frozen=True, slots=True)
class TransferRule:
    name: str
    apply: Callable[[TransferContext], TransferClassification | None]


def _raw_text(raw: Mapping[str, Any], key: str, row_column: str | None = None) -> str | None:
    value = raw.get(key)
    if (value is None or value == "") and row_column is not None:
        row = raw.get("row")
        if isinstance(row, Mapping):
            value = row.get(row_column)
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _structured_counterparty_name(raw: Mapping[str, Any]) -> str | None:
    return _raw_text(raw, "counterparty_name", _NBG_COUNTERPARTY_NAME_COL)


def _rule_adapter_own_account_hint(ctx: TransferContext) -> TransferClassification | None:
    if ctx.transfer_hint == "own_account" or ctx.raw_data.get("own_account_transfer") is True:
        return _own_account(high_confidence=True)
    return None


def _rule_bank_own_account_marker(ctx: TransferContext) -> TransferClassification | None:
    if _first_phrase(ctx.norm, BANK_OWN_ACCOUNT_MARKERS):
        return _own_account(high_confidence=True)
    return None


def _rule_bank_third_party_marker(ctx: TransferContext) -> TransferClassification | None:
    marker = _first_phrase(ctx.norm, BANK_THIRD_PARTY_MARKERS)
    if marker is None:
        return None
    name = extract_counterparty(ctx.description, marker) or _structured_counterparty_name(
        ctx.raw_data
    )
    return ctx.resolve(name, high_confidence=True)


def _rule_structured_category_hint(ctx: TransferContext) -> TransferClassification | None:
    hint = _raw_text(ctx.raw_data, "category_hint")
    if not is_transfer_category(hint):
        return None
    transfer_type = CategoryCatalog.transfer_type_for(hint) or "third_party"
    return TransferClassification(
        transfer_type=transfer_type,
        exclude_from_analytics=transfer_type == "own_account",
        category_id=hint,
    )


def _rule_own_account_keyword(ctx: TransferContext) -> TransferClassification | None:
    keyword = _first_phrase(ctx.norm, OWN_ACCOUNT_KEYWORDS)
    if keyword is None:
        return None
    name = extract_counterparty(ctx.description, keyword) or _structured_counterparty_name(
        ctx.raw_data
    )
    # A named household member turns the move into a member transfer (or an
    # own-account one when the member is the acting user).
    if match_member(name, ctx.members) is not None:
        return ctx.resolve(name)
    return _own_account(counterparty=name, high_confidence=False)


def _rule_third_party_keyword(ctx: TransferContext) -> TransferClassification | None:
    keyword = _first_phrase(ctx.norm, THIRD_PARTY_KEYWORDS)
    if keyword is None:
        return None
    name = extract_counterparty(ctx.description, keyword) or _structured_counterparty_name(
        ctx.raw_data
    )
    return ctx.resolve(name)


def _rule_counterparty_account_field(ctx: TransferContext) -> TransferClassification | None:
    if _raw_text(ctx.raw_data, "counterparty_account", _NBG_COUNTERPARTY_ACCOUNT_COL) is None:
        return None
    return ctx.resolve(_structured_counterparty_name(ctx.raw_data))


def _rule_revolut_transfer_counterparty(ctx: TransferContext) -> TransferClassification | None:
    tx_type = (_raw_text(ctx.raw_data, "type") or "").upper()
    name = _raw_text(ctx.raw_data, "transfer_counterparty")
    if tx_type != "TRANSFER" or name is None:
        return None
    return ctx.resolve(name)


TRANSFER_RULES: tuple[TransferRule, ...] = (
    TransferRule("adapter_own_account_hint", _rule_adapter_own_account_hint),
    TransferRule("bank_own_account_marker", _rule_bank_own_account_marker),
    TransferRule("bank_third_party_marker", _rule_bank_third_party_marker),
    TransferRule("structured_category_hint", _rule_structured_category_hint),
    TransferRule("own_account_keyword", _rule_own_account_keyword),
    TransferRule("third_party_keyword", _rule_third_party_keyword),
    TransferRule("counterparty_account_field", _rule_counterparty_account_field),
    TransferRule("revolut_transfer_counterparty", _rule_revolut_transfer_counterparty),
)


def classify_transfer(
    description: str,
    amount: Decimal,
    members: Sequence[HouseholdMember] = (),
    raw_data: Mapping[str, Any] | None = None,
    *,
    transfer_hint: TransferHint | None = None,
    acting_user_id: str | None = None,
) -> TransferClassification:
    """Classify one movement as own-account, household-member, third-party or none.

    Never raises; an unexpected failure inside a rule degrades to "not a
    transfer" and is logged.
    """

    ctx = TransferContext(
        description=description or "",
        norm=normalize(description),
        amount=amount,
        members=members,
        raw_data=raw_data or {},
        transfer_hint=transfer_hint,
        acting_user_id=acting_user_id,
    )
    for rule in TRANSFER_RULES:
        try:
            outcome = rule.apply(ctx)
        except Exception as e:  # noqa: BLE001 - classification must not fail the batch
            _logger.warning("classify_transfer:rule_failed rule=%s error=%r", rule.name, e)
            return NOT_A_TRANSFER
        if outcome is not None:
            _logger.debug(
                "classify_transfer rule=%s type=%s category=%s",
                rule.name,
                outcome.transfer_type,
                outcome.category_id,
            )
            return outcome
    return NOT_A_TRANSFER


__all__ = [
    "BANK_OWN_ACCOUNT_MARKERS",
    "BANK_THIRD_PARTY_MARKERS",
    "OWN_ACCOUNT_KEYWORDS",
    "THIRD_PARTY_KEYWORDS",
    "TransferContext",
    "TransferRule",
    "TRANSFER_RULES",
    "classify_transfer",
    "extract_counterparty",
    "match_member",
    "resolve_counterparty",
]
