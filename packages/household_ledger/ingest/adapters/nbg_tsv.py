"""National Bank of Greece tab-separated export (UTF-8)."""

from __future__ import annotations

from ...text import fold
from .delimited import DelimitedStatementAdapter


class NbgTsvAdapter(DelimitedStatementAdapter):
    name = "nbg"
    encoding = "utf-8"
    delimiter = "\t"
    reference_tokens = ("reference", "αριθμός αναφοράς", "α/α")

    def detect(self, text: str) -> bool:
        folded = fold(text)
        if "nbg" in folded:
            return True
        if "\t" not in text:
            return False
        return any(t in folded for t in ("debit", "credit", "χρεωση", "πιστωση"))


__all__ = ["NbgTsvAdapter"]
