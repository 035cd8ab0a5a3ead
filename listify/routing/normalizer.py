"""
Location text normalization and slug generation.

normalize() canonicalizes user input and registry names/aliases alike before
the Matcher compares them. slugify() derives the stable URL identifier of an
entity from its display name.

Both functions are pure and locale independent (Unicode decomposition plus
ASCII rules only).
"""

from __future__ import annotations

import re
import unicodedata

_WHITESPACE_RE = re.compile(r"\s+")
_DISALLOWED_RE = re.compile(r"[^a-z0-9 ,-]")
_SLUG_SEPARATOR_RE = re.compile(r"[^a-z0-9]+")


def _strip_diacritics(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def normalize(raw: str) -> str:
    """
    Canonicalize raw location text for exact matching.

    Trims, collapses whitespace runs to one space, lower-cases and drops every
    character outside ``[a-z0-9 ,-]``. Accented letters keep their base
    letter. Whitespace is collapsed again after stripping so that removed
    punctuation never leaves a double space behind.

    Examples:
        >>> normalize("  KwaZulu-Natal ")
        'kwazulu-natal'
        >>> normalize("Umhlánga   Rocks!")
        'umhlanga rocks'
        >>> normalize("   ")
        ''
    """
    if not raw:
        return ""
    text = _WHITESPACE_RE.sub(" ", raw.strip())
    text = _strip_diacritics(text).lower()
    text = _DISALLOWED_RE.sub("", text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def slugify(name: str) -> str:
    """
    Derive a URL-safe slug from a display name.

    Lowercase, diacritics stripped, every run of other characters collapsed
    to a single hyphen, no leading or trailing hyphens.

        >>> slugify("KwaZulu-Natal")
        'kwazulu-natal'
        >>> slugify("Port Elizabeth (Gqeberha)")
        'port-elizabeth-gqeberha'
    """
    if not name:
        return ""
    text = _strip_diacritics(name).lower()
    return _SLUG_SEPARATOR_RE.sub("-", text).strip("-")
