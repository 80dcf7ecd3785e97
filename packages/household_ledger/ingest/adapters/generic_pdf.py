"""Best-effort parser for text-based PDF statements of any bank.

Every extracted line holding a date and a money amount becomes a movement;
what remains of the line is the description. Lines without both are dropped
silently, which makes this adapter lossy by nature.
"""

from __future__ import annotations

import re

from ...logging_setup import get_logger
from ...models import RawMovement
from ...text import collapse_whitespace
from ..base import StatementAdapter
from ..utils import extract_pdf_text, normalize_date, parse_amount

logger = get_logger("household_ledger.ingest.generic_pdf")

DATE_RE = re.compile(r"(?<!\d)(\d{1,2}[/\-.]\d{1,2}[/\-.]\d{4}|\d{4}-\d{2}-\d{2})(?!\d)")
# Requires a decimal part so that bare integers (card digits, counters) are ignored.
AMOUNT_RE = re.compile(
    r"\(\s*\d[\d.,]*[.,]\d{2}\s*\)"
    r"|[-+]?\s?\d[\d.,]*[.,]\d{2}(?!\d)-?(?:\s?(?:€|EUR|\$))?"
)


def parse_statement_text(text: str) -> list[RawMovement]:
    out: list[RawMovement] = []
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        date_match = DATE_RE.search(line)
        if not date_match:
            continue
        rest = line[: date_match.start()] + " " + line[date_match.end() :]
        amount_match = AMOUNT_RE.search(rest)
        if not amount_match:
            continue
        date = normalize_date(date_match.group(1))
        amount = parse_amount(amount_match.group(0))
        description = collapse_whitespace(
            rest[: amount_match.start()] + " " + rest[amount_match.end() :]
        )
        if date is None or amount is None or not description:
            logger.debug("drop_line reason=incomplete line=%r", line)
            continue
        out.append(
            RawMovement(
                date=date,
                description=description,
                amount=amount,
                raw_data={"line": line},
            )
        )
    return out


class GenericPdfAdapter(StatementAdapter):
    name = "generic-pdf"
    kind = "pdf"

    def parse(self, data: bytes) -> list[RawMovement]:
        return parse_statement_text(extract_pdf_text(data))


__all__ = ["GenericPdfAdapter", "parse_statement_text"]
