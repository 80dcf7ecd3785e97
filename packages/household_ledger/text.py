"""Text normalization shared by adapters, the categorizer and the classifier.

Bank descriptions mix Greek and Latin scripts, accented and unaccented forms
and arbitrary punctuation. Every comparison in this package goes through
:func:`normalize` so that ``"Μεταφορά προς"`` and ``"ΜΕΤΑΦΟΡΑ ΠΡΟΣ"`` compare
equal.
"""

from __future__ import annotations

import re
import unicodedata

_NON_WORD_RE = re.compile(r"[^\w\s]|_", re.UNICODE)
_WS_RE = re.compile(r"\s+")


def fold(text: str | None) -> str:
    """Casefold ``text`` and strip diacritics (combining marks)."""

    if not text:
        return ""
    decomposed = unicodedata.normalize("NFKD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.casefold()


def collapse_whitespace(text: str | None) -> str:
    """Trim and collapse internal whitespace runs (tabs/newlines) to one space."""

    if not text:
        return ""
    return _WS_RE.sub(" ", text).strip()


def normalize(text: str | None) -> str:
    """Return the comparison form of ``text``.

    Casefolded, diacritics removed, punctuation replaced by spaces and
    whitespace collapsed. ``None`` and empty input yield ``""``.
    """

    return collapse_whitespace(_NON_WORD_RE.sub(" ", fold(text)))


def significant_words(text: str | None, *, min_len: int = 3) -> list[str]:
    """Return the normalized words of ``text`` with at least ``min_len`` characters."""

    return [w for w in normalize(text).split(" ") if len(w) >= min_len]


__all__ = ["fold", "collapse_whitespace", "normalize", "significant_words"]
