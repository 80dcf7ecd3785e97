"""Shared SQLAlchemy models registry for the workspace database.

Currently includes the household finance models used by ``household_ledger``.
"""

from .finance import Base, HlCategory, HlMember, HlMovement

__all__ = [
    "Base",
    "HlCategory",
    "HlMember",
    "HlMovement",
]
