from __future__ import annotations

import re

"""Header normalization used as the matching key for column classification."""

__all__ = [
    "ARABIC_DIACRITICS",
    "normalize_header",
]

_WHITESPACE_RE = re.compile(r"\s+")

# Fathatan, fatha and the Quranic annotation signs U+0610..U+061A
ARABIC_DIACRITICS = "\u064b\u064e" + "".join(chr(cp) for cp in range(0x0610, 0x061B))
_DIACRITICS_RE = re.compile(f"[{ARABIC_DIACRITICS}]")


def normalize_header(raw_header: object) -> str:
    """Canonicalize a raw header: trim, lower-case, drop whitespace and diacritics.

    >>> normalize_header("  الرقم  القومى ")
    'الرقمالقومى'
    >>> normalize_header("Student Name")
    'studentname'
    """
    key = str(raw_header).strip().lower()
    key = _WHITESPACE_RE.sub("", key)
    return _DIACRITICS_RE.sub("", key)
