"""Statement ingestion: adapter registry and format detection.

Adapters are instantiated once here, in registration order. Detection walks
this order and the first adapter whose signature matches wins, so adapters
with distinctive signatures come before the generic ones.
"""

from __future__ import annotations

from .adapters import (
    AlphaBankCsvAdapter,
    GenericPdfAdapter,
    NbgTsvAdapter,
    NbgXlsxAdapter,
    PayzyPdfAdapter,
    RevolutCsvAdapter,
    WinbankCsvAdapter,
)
from .base import MalformedInputError, StatementAdapter

ADAPTERS: tuple[StatementAdapter, ...] = (
    WinbankCsvAdapter(),
    RevolutCsvAdapter(),
    AlphaBankCsvAdapter(),
    NbgTsvAdapter(),
    NbgXlsxAdapter(),
    PayzyPdfAdapter(),
    GenericPdfAdapter(),
)

_BY_NAME: dict[str, StatementAdapter] = {a.name: a for a in ADAPTERS}

BANK_IDS: tuple[str, ...] = tuple(_BY_NAME)
DEFAULT_ADAPTER = "alpha-bank"


def get_adapter(name: str) -> StatementAdapter:
    """Return the registered adapter called ``name``.

    Raises
    ------
    ValueError
        If no adapter is registered under ``name``.
    """

    try:
        return _BY_NAME[name]
    except KeyError:
        raise ValueError(
            f"Unknown bank: {name!r} (expected one of {', '.join(BANK_IDS)})"
        ) from None


__all__ = [
    "ADAPTERS",
    "BANK_IDS",
    "DEFAULT_ADAPTER",
    "MalformedInputError",
    "StatementAdapter",
    "get_adapter",
]
