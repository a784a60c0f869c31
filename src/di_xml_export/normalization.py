"""
Column name normalization.

Two columns from different files are "the same column" iff their
normalized display names are equal. The normalized name is always derived
on demand and never stored.
"""

import re
import unicodedata

_WHITESPACE = re.compile(r'\s+')


def normalize_name(name: str) -> str:
    """
    Normalize a column name for cross-file matching.

    Steps:
    1. Lower-case
    2. NFD decomposition, then drop combining marks (diacritics)
    3. Trim and collapse internal whitespace runs to a single space

    Args:
        name: Raw column key or display name

    Returns:
        Normalized name (idempotent: normalize_name(normalize_name(s)) == normalize_name(s))

    Example:
        >>> normalize_name('São  Paulo ')
        'sao paulo'
        >>> normalize_name('SAO PAULO')
        'sao paulo'
    """
    if not name:
        return ''

    decomposed = unicodedata.normalize('NFD', name.lower())
    stripped = ''.join(ch for ch in decomposed if not unicodedata.combining(ch))

    return _WHITESPACE.sub(' ', stripped).strip()


def names_match(left: str, right: str) -> bool:
    """Check whether two names fall in the same normalized group."""
    return normalize_name(left) == normalize_name(right)
