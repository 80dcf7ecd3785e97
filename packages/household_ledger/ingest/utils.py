"""Parsing helpers shared by the statement adapters.

Amounts, dates and header lookups behave identically across banks; only the
column layout and encoding differ per adapter.
"""

from __future__ import annotations

import csv
import hashlib
import io
import re
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

import pdfplumber

from ..text import fold
from .base import MalformedInputError

_CENTS = Decimal("0.01")
_CURRENCY_RE = re.compile(r"(?i)eur|€|\$|\s")
_KEEP_RE = re.compile(r"[^0-9.,]")
_DOT_THOUSANDS_RE = re.compile(r"^\d{1,3}(?:\.\d{3})+$")
_ISO_RE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})(?:$|[T\s])")
_DMY_RE = re.compile(r"^(\d{1,2})[/.\-](\d{1,2})[/.\-](\d{4}|\d{2})(?:$|\s)")
_EXCEL_EPOCH = datetime(1899, 12, 30)


def parse_amount(raw: Any, *, decimal_comma: bool = False) -> Decimal | None:
    """Parse a bank-formatted amount into a 2-decimal ``Decimal``.

    Accepts ``1.234,56``, ``1,234.56``, ``150,00``, ``-12.5``, ``12.50-``,
    ``(12,50)``, ``+3,00 €`` and numeric objects. When both ``,`` and ``.``
    appear, the right-most one is the decimal separator; a lone separator
    repeated several times is a thousands separator. With ``decimal_comma``
    (Greek-locale exports) a lone dot followed by groups of three digits, as
    in ``1.500``, is a thousands separator too.

    Returns ``None`` when no number can be recovered.
    """

    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, Decimal):
        value = raw
    elif isinstance(raw, (int, float)):
        value = Decimal(str(raw))
    else:
        s = _CURRENCY_RE.sub("", str(raw))
        if not s:
            return None
        negative = False
        if s.startswith("(") and s.endswith(")"):
            negative = True
            s = s[1:-1]
        if s.startswith("-") or s.endswith("-"):
            negative = True
        digits = _KEEP_RE.sub("", s)
        if not any(ch.isdigit() for ch in digits):
            return None
        digits = _normalize_separators(digits, decimal_comma=decimal_comma)
        try:
            value = Decimal(digits)
        except InvalidOperation:
            return None
        if negative:
            value = -value
    if not value.is_finite():
        return None
    return value.quantize(_CENTS, rounding=ROUND_HALF_UP)


def _normalize_separators(s: str, *, decimal_comma: bool = False) -> str:
    has_comma = "," in s
    has_dot = "." in s
    if has_comma and has_dot:
        if s.rfind(",") > s.rfind("."):
            return s.replace(".", "").replace(",", ".")
        return s.replace(",", "")
    if has_comma:
        if s.count(",") > 1:
            return s.replace(",", "")
        return s.replace(",", ".")
    if has_dot and (s.count(".") > 1 or (decimal_comma and _DOT_THOUSANDS_RE.match(s))):
        return s.replace(".", "")
    return s


def signed_amount(debit: Any, credit: Any, *, decimal_comma: bool = False) -> Decimal | None:
    """Collapse separate debit/credit columns into one signed amount.

    A non-zero debit wins and is always negative; otherwise the credit is
    positive. ``None`` when neither column carries a value.
    """

    d = parse_amount(debit, decimal_comma=decimal_comma)
    c = parse_amount(credit, decimal_comma=decimal_comma)
    if d is not None and d != 0:
        return -abs(d)
    if c is not None and c != 0:
        return abs(c)
    if d is not None or c is not None:
        return Decimal("0.00")
    return None


def normalize_date(raw: Any) -> str | None:
    """Return ``raw`` as ISO ``YYYY-MM-DD`` or ``None`` when it is not a real date."""

    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, datetime):
        return raw.date().isoformat()
    if isinstance(raw, date):
        return raw.isoformat()
    if isinstance(raw, (int, float)):
        # Spreadsheet serial day number.
        if not 1 <= raw < 2958466:
            return None
        return (_EXCEL_EPOCH + timedelta(days=int(raw))).date().isoformat()

    s = str(raw).strip()
    m = _ISO_RE.match(s)
    if m:
        y, mo, d = int(m.group(1)), int(m.group(2)), int(m.group(3))
    else:
        m = _DMY_RE.match(s)
        if not m:
            return None
        d, mo, y = int(m.group(1)), int(m.group(2)), int(m.group(3))
        if y < 100:
            y += 2000
    try:
        return date(y, mo, d).isoformat()
    except ValueError:
        return None


def find_column(header: list[str], tokens: tuple[str, ...]) -> int:
    """Index of the first header cell containing any of ``tokens`` (case/accent-insensitive)."""

    folded_tokens = [fold(t) for t in tokens]
    for idx, cell in enumerate(header):
        folded = fold(cell)
        if any(t in folded for t in folded_tokens):
            return idx
    return -1


def read_delimited(text: str, delimiter: str) -> list[list[str]]:
    """Split delimited text into trimmed rows, dropping blank rows."""

    rows: list[list[str]] = []
    for row in csv.reader(io.StringIO(text), delimiter=delimiter):
        cells = [c.strip() for c in row]
        if any(cells):
            rows.append(cells)
    return rows


def cell(row: list[str], idx: int) -> str:
    """Return ``row[idx]`` or ``""`` when the column is absent."""

    if idx < 0 or idx >= len(row):
        return ""
    return row[idx]


def extract_pdf_text(data: bytes, *, max_pages: int | None = None) -> str:
    """Return the plain text of a PDF, one page after another.

    Raises
    ------
    MalformedInputError
        When the buffer is not a readable PDF.
    """

    try:
        with pdfplumber.open(io.BytesIO(data)) as pdf:
            pages = pdf.pages if max_pages is None else pdf.pages[:max_pages]
            return "\n".join((page.extract_text() or "") for page in pages)
    except Exception as exc:  # pdfminer raises a variety of parser errors
        raise MalformedInputError(f"Unreadable PDF: {exc}") from exc


def short_hash(*parts: object) -> str:
    """First 16 hex characters of SHA-256 over the ``|``-joined parts."""

    payload = "|".join(str(p) for p in parts)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()[:16]


__all__ = [
    "parse_amount",
    "signed_amount",
    "normalize_date",
    "find_column",
    "read_delimited",
    "cell",
    "extract_pdf_text",
    "short_hash",
]
