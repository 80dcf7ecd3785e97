"""Alpha Bank legacy CSV export (Windows-1253, ``;`` separated)."""

from __future__ import annotations

from ...text import fold
from .delimited import DelimitedStatementAdapter


class AlphaBankCsvAdapter(DelimitedStatementAdapter):
    name = "alpha-bank"
    encoding = "cp1253"
    delimiter = ";"
    reference_tokens = ("αριθμός", "reference", "κωδικός")
    decimal_comma = True

    def detect(self, text: str) -> bool:
        folded = fold(text)
        if "alpha" in folded:
            return True
        return ";" in text and ("χρεωση" in folded or "debit" in folded)


__all__ = ["AlphaBankCsvAdapter"]
