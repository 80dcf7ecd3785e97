"""Format detection for uploaded statements.

Container types are told apart by magic bytes (``%PDF``, zip ``PK``) or the
declared content type. Text statements are matched against each text
adapter's content signature in registration order, with the buffer decoded
in that adapter's own encoding. Detection never raises: an unrecognized
buffer goes to the default delimited-text adapter.
"""

from __future__ import annotations

from typing import Literal

from ..logging_setup import get_logger
from . import ADAPTERS, BANK_IDS, DEFAULT_ADAPTER, get_adapter
from .base import MalformedInputError, StatementAdapter
from .utils import extract_pdf_text

logger = get_logger("household_ledger.ingest.detect")

type Container = Literal["pdf", "spreadsheet", "text"]

PDF_MAGIC = b"%PDF"
ZIP_MAGIC = b"PK"
PDF_CONTENT_TYPE = "application/pdf"
XLSX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
HEAD_CHARS = 4096
GENERIC_PDF = "generic-pdf"
SPREADSHEET_ADAPTER = "nbg-xlsx"


def sniff_container(buffer: bytes, content_type: str | None = None) -> Container:
    """Classify ``buffer`` as a PDF, a zip-based spreadsheet or plain text."""

    ct = (content_type or "").split(";")[0].strip().lower()
    if ct == PDF_CONTENT_TYPE or buffer[:4] == PDF_MAGIC:
        return "pdf"
    if ct == XLSX_CONTENT_TYPE or buffer[:2] == ZIP_MAGIC:
        return "spreadsheet"
    return "text"


def _detect_pdf(buffer: bytes) -> str:
    try:
        first_page = extract_pdf_text(buffer, max_pages=1)
    except MalformedInputError:
        return GENERIC_PDF
    for adapter in ADAPTERS:
        if adapter.kind == "pdf" and adapter.detect(first_page):
            return adapter.name
    return GENERIC_PDF


def _detect_text(buffer: bytes) -> str:
    for adapter in ADAPTERS:
        if adapter.kind != "text":
            continue
        head = adapter.decode(buffer)[:HEAD_CHARS]
        if adapter.detect(head):
            return adapter.name
    return DEFAULT_ADAPTER


def detect_format(buffer: bytes, content_type: str | None = None) -> str:
    """Return the identifier of the adapter best suited to ``buffer``."""

    container = sniff_container(buffer, content_type)
    if container == "pdf":
        name = _detect_pdf(buffer)
    elif container == "spreadsheet":
        name = SPREADSHEET_ADAPTER
    else:
        name = _detect_text(buffer)
    logger.info("detect_format container=%s adapter=%s bytes=%d", container, name, len(buffer))
    return name


def resolve_adapter(
    buffer: bytes,
    bank: str = "auto",
    content_type: str | None = None,
) -> StatementAdapter:
    """Combine a caller-supplied bank hint with the container type.

    ``bank="auto"`` defers entirely to :func:`detect_format`. An explicit
    hint is honoured unless it contradicts the container: PDF uploads only
    go to PDF adapters and an ``nbg`` hint on a workbook selects the
    spreadsheet adapter.

    Raises
    ------
    ValueError
        If ``bank`` is neither ``"auto"`` nor a registered adapter name.
    """

    hint = (bank or "auto").strip().lower()
    if hint != "auto" and hint not in BANK_IDS:
        get_adapter(hint)

    container = sniff_container(buffer, content_type)
    if container == "pdf":
        if hint != "auto" and get_adapter(hint).kind == "pdf":
            return get_adapter(hint)
        return get_adapter(_detect_pdf(buffer))
    if container == "spreadsheet" and hint in ("auto", "nbg"):
        return get_adapter(SPREADSHEET_ADAPTER)
    if hint == "auto":
        return get_adapter(detect_format(buffer, content_type))
    return get_adapter(hint)


__all__ = [
    "Container",
    "sniff_container",
    "detect_format",
    "resolve_adapter",
    "HEAD_CHARS",
]
