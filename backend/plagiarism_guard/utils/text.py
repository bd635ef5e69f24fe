"""Text preparation helpers for embedding requests."""

from __future__ import annotations

import unicodedata

_WHITESPACE = frozenset("\u0009\u000a\u000b\u000c\u000d\u0020\u00a0\u1680\u2000\u2001\u2002\u2003\u2004\u2005\u2006\u2007\u2008\u2009\u200a\u202f\u205f\u3000")


def collapse_whitespace(text: str) -> str:
    """Collapse consecutive whitespace characters into single spaces."""

    if not text:
        return ""

    parts: list[str] = []
    current: list[str] = []
    for char in text:
        if char in _WHITESPACE:
            if current:
                parts.append("".join(current))
                current.clear()
        else:
            current.append(char)
    if current:
        parts.append("".join(current))
    return " ".join(parts)


def prepare_for_embedding(text: str | None) -> str:
    """Return the NFC-normalised, whitespace-collapsed text sent to the embedding provider."""

    if not text:
        return ""
    return unicodedata.normalize("NFC", collapse_whitespace(text))
