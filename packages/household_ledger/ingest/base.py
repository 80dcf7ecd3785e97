"""Adapter contract shared by every statement format."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import ClassVar, Literal

from ..models import RawMovement

type AdapterKind = Literal["text", "pdf", "spreadsheet"]


class MalformedInputError(ValueError):
    """The byte buffer cannot be interpreted at all by the selected adapter.

    Raised only for container-level failures (not a valid PDF/xlsx, or a text
    buffer that cannot be decoded). Individual malformed rows are skipped.
    """


class StatementAdapter(ABC):
    """One bank/format parser.

    Subclasses set ``name`` (the bank identifier reported to callers and used
    as the dedup namespace), ``kind`` and, for text formats, ``encoding``.
    """

    name: ClassVar[str]
    kind: ClassVar[AdapterKind] = "text"
    encoding: ClassVar[str] = "utf-8"

    @abstractmethod
    def parse(self, data: bytes) -> list[RawMovement]:
        """Return the movements found in ``data`` in source row order."""

    def detect(self, text: str) -> bool:
        """Return True when ``text`` (decoded head or first PDF page) looks like this format."""

        return False

    def decode(self, data: bytes) -> str:
        """Decode ``data`` with this adapter's encoding.

        A UTF-8 BOM is dropped. Legacy single-byte formats re-saved as UTF-8
        by spreadsheet tools are accepted when the buffer is valid UTF-8.
        Undecodable bytes become U+FFFD rather than failing the batch.
        """

        if data.startswith(b"\xef\xbb\xbf"):
            return data[3:].decode("utf-8", errors="replace")
        if self.encoding.replace("-", "").lower() != "utf8":
            try:
                return data.decode("utf-8")
            except UnicodeDecodeError:
                pass
        return data.decode(self.encoding, errors="replace")

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r}>"


__all__ = ["AdapterKind", "MalformedInputError", "StatementAdapter"]
