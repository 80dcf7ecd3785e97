from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Any

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    func,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# SQLite only autoincrements INTEGER PRIMARY KEY (rowid) columns.
_BigIntPk = BigInteger().with_variant(Integer, "sqlite")


class Base(DeclarativeBase):
    pass


# ---------------------------
# Reference: hl_categories
# ---------------------------


class HlCategory(Base):
    __tablename__ = "hl_categories"

    # Slash-separated identifiers (e.g. ``transfer/own-account``) are the
    # primary key; display names may repeat across parents.
    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    keywords: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    exclude_from_spending: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default=text("false")
    )
    sort_order: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


# ---------------------------
# Directory: hl_members
# ---------------------------


class HlMember(Base):
    __tablename__ = "hl_members"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    household_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    nickname: Mapped[str] = mapped_column(String(100), nullable=False)
    # Full legal names in any script/case (e.g. Greek and Latin spellings).
    # Read-only to the classifier; maintained by household administration.
    name_aliases: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


# ---------------------------
# Core: hl_movements
# ---------------------------


class HlMovement(Base):
    __tablename__ = "hl_movements"

    id: Mapped[int] = mapped_column(_BigIntPk, primary_key=True, autoincrement=True)
    household_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    owner_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    bank_source: Mapped[str] = mapped_column(
        String(50), nullable=False, server_default=text("'unknown'")
    )
    # Provider-issued (or synthesized) identifier; dedup key together with
    # ``bank_source`` via the partial unique index below.
    bank_reference: Mapped[str | None] = mapped_column(String(100), nullable=True)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    category_id: Mapped[str] = mapped_column(
        String(50),
        ForeignKey("hl_categories.id"),
        nullable=False,
    )
    raw_data: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    transfer_type: Mapped[str | None] = mapped_column(String(20), nullable=True)
    transfer_counterparty: Mapped[str | None] = mapped_column(String(255), nullable=True)
    transfer_counterparty_user_id: Mapped[str | None] = mapped_column(
        String(64), nullable=True
    )
    # Self-reference to the opposite leg of an own-account transfer.
    linked_movement_id: Mapped[int | None] = mapped_column(
        _BigIntPk, ForeignKey("hl_movements.id", ondelete="SET NULL"), nullable=True
    )
    is_excluded_from_analytics: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default=text("false")
    )
    is_high_confidence: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default=text("false")
    )
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint(
            (
                "transfer_type IS NULL OR transfer_type in "
                "('none','own_account','household_member','third_party')"
            ),
            name="ck_hl_mv_transfer_type",
        ),
        Index(
            "uniq_hl_mv_bank_reference",
            "bank_source",
            "bank_reference",
            unique=True,
            postgresql_where=text("bank_reference IS NOT NULL"),
            sqlite_where=text("bank_reference IS NOT NULL"),
        ),
        Index("ix_hl_mv_household_transfer", "household_id", "transfer_type", "date"),
    )


__all__ = [
    "Base",
    "HlCategory",
    "HlMember",
    "HlMovement",
]
