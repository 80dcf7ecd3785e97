"""Data models and type aliases for ``household_ledger``.

The pipeline moves one statement row through three immutable shapes:

- :class:`RawMovement`: what a format adapter recovered from the source row.
- :class:`TransferClassification`: what the transfer classifier decided.
- :class:`ProcessedMovement`: both of the above plus the effective category,
  handed to the persistence collaborator.

Amounts are :class:`~decimal.Decimal` quantized to two places (negative =
outflow); dates are ISO ``YYYY-MM-DD`` strings.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

# ---------------------------------------------------------------------------
# Enumerations (closed string sets)
# ---------------------------------------------------------------------------

type TransferType = Literal["none", "own_account", "household_member", "third_party"]
"""Outcome of transfer classification; ``none`` means ordinary spending/income."""

type TransferHint = Literal["own_account"]
"""Adapter signal that the source format itself marks the row as a transfer."""

TRANSFER_TYPES: tuple[str, ...] = ("none", "own_account", "household_member", "third_party")


# ---------------------------------------------------------------------------
# Parser output
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class RawMovement:
    """A single movement recovered from one statement row.

    Attributes
    ----------
    date:
        ISO ``YYYY-MM-DD``.
    description:
        Trimmed free text as shown by the bank.
    amount:
        Signed amount; debits/outflows negative, credits/inflows positive.
    bank_reference:
        Provider-issued identifier when available (or synthesized by formats
        that have none). Used upstream for de-duplication.
    raw_data:
        JSON-friendly bag with the original columns and format-specific hints
        (``counterparty_name``, ``category_hint``, ...).
    transfer_hint:
        Set when the source format unambiguously marks an internal transfer.
    """

    date: str
    description: str
    amount: Decimal
    bank_reference: str | None = None
    raw_data: Mapping[str, Any] = field(default_factory=dict)
    transfer_hint: TransferHint | None = None


# ---------------------------------------------------------------------------
# Classifier output
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class TransferClassification:
    transfer_type: TransferType = "none"
    counterparty_name: str | None = None
    # Only set for ``household_member`` (or ``own_account`` resolved to the
    # acting user).
    counterparty_user_id: str | None = None
    exclude_from_analytics: bool = False
    # Reserved ``transfer/...`` id; ``None`` when ``transfer_type == "none"``.
    category_id: str | None = None
    high_confidence: bool = False

    @property
    def is_transfer(self) -> bool:
        return self.transfer_type != "none"


NOT_A_TRANSFER = TransferClassification()


# ---------------------------------------------------------------------------
# Pipeline output
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ProcessedMovement:
    """RawMovement + TransferClassification + the effective ``category_id``."""

    date: str
    description: str
    amount: Decimal
    category_id: str
    bank_reference: str | None = None
    raw_data: Mapping[str, Any] = field(default_factory=dict)
    transfer_hint: TransferHint | None = None
    transfer_type: TransferType = "none"
    counterparty_name: str | None = None
    counterparty_user_id: str | None = None
    exclude_from_analytics: bool = False
    high_confidence: bool = False

    @classmethod
    def from_parts(
        cls,
        movement: RawMovement,
        transfer: TransferClassification,
        category_id: str,
    ) -> ProcessedMovement:
        return cls(
            date=movement.date,
            description=movement.description,
            amount=movement.amount,
            category_id=category_id,
            bank_reference=movement.bank_reference,
            raw_data=movement.raw_data,
            transfer_hint=movement.transfer_hint,
            transfer_type=transfer.transfer_type,
            counterparty_name=transfer.counterparty_name,
            counterparty_user_id=transfer.counterparty_user_id,
            exclude_from_analytics=transfer.exclude_from_analytics,
            high_confidence=transfer.high_confidence,
        )


# ---------------------------------------------------------------------------
# Collaborator inputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class HouseholdMember:
    """A tracked person whose aliases identify transfers to/from them."""

    id: str
    name_aliases: Sequence[str]
    household_id: str | None = None


type Movements = Sequence[RawMovement]
"""Ordered output of one adapter run (output order = input row order)."""


# ---------------------------------------------------------------------------
# Validated DTOs (category seed file, external categorizer reply)
# ---------------------------------------------------------------------------


class CategorySeedEntry(BaseModel):
    """One category as declared in the JSON seed file."""

    model_config = ConfigDict(strict=True, extra="forbid", str_strip_whitespace=True)

    id: str
    name: str
    keywords: list[str] = Field(default_factory=list)
    exclude_from_spending: bool = False

    @field_validator("id", "name")
    @classmethod
    def _non_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("must be non-empty")
        return v


class CategorySeed(BaseModel):
    model_config = ConfigDict(strict=True, extra="allow")

    categories: list[CategorySeedEntry]

    @field_validator("categories")
    @classmethod
    def _unique_ids(cls, v: list[CategorySeedEntry]) -> list[CategorySeedEntry]:
        seen: set[str] = set()
        for entry in v:
            if entry.id in seen:
                raise ValueError(f"duplicate category id: {entry.id}")
            seen.add(entry.id)
        return v


class CategoryReply(BaseModel):
    """Structured reply of the external categorizer: ``{"category": "<id>"}``."""

    model_config = ConfigDict(strict=True, extra="forbid", str_strip_whitespace=True)

    category: str


__all__ = [
    "TransferType",
    "TransferHint",
    "TRANSFER_TYPES",
    "RawMovement",
    "TransferClassification",
    "NOT_A_TRANSFER",
    "ProcessedMovement",
    "HouseholdMember",
    "Movements",
    "CategorySeedEntry",
    "CategorySeed",
    "CategoryReply",
]
