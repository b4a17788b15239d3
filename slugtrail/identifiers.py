"""Identifier helpers: the default slug normalizer and key-shape predicates."""

from __future__ import annotations

import re
import unicodedata
from typing import Any, Optional

_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_DIGITS = re.compile(r"[0-9]+")


def slugify(value: Optional[str]) -> str:
    """Minimal slugifier for URLs.

    Folds to ASCII, lower-cases and collapses every run of other characters
    into a single ``-``.
    """
    if not value:
        return ""
    folded = unicodedata.normalize("NFKD", str(value)).encode("ascii", "ignore").decode("ascii")
    return _NON_ALNUM.sub("-", folded.lower()).strip("-")


def is_unfriendly_id(value: Any) -> bool:
    """True when ``value`` looks like a primary key rather than a slug.

    Non-strings are always keys. A string is a key when it survives an
    int round trip unchanged, so ``"42"`` and ``"-7"`` are keys but
    ``"0042"`` and ``"42-apples"`` are slugs.
    """
    if not isinstance(value, str):
        return True
    try:
        return str(int(value)) == value
    except ValueError:
        return False


def sequence_suffix(slug: str, candidate: str, separator: str) -> Optional[str]:
    """Return the text after ``candidate + separator`` or None if ``slug`` is not sequenced."""
    prefix = f"{candidate}{separator}"
    if not slug.startswith(prefix):
        return None
    return slug[len(prefix):]


def is_sequenced_variant(slug: Optional[str], candidate: str, separator: str) -> bool:
    """True for ``candidate`` itself or ``candidate + separator + <digits>``."""
    if not slug:
        return False
    if slug == candidate:
        return True
    suffix = sequence_suffix(slug, candidate, separator)
    return suffix is not None and _DIGITS.fullmatch(suffix) is not None
