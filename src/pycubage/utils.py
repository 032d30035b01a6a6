"""
Small shared helpers for code normalisation.
"""
from typing import Iterable, Optional, Set

WILDCARD = '*'


def normalize_code(code: Optional[str]) -> str:
    """Trim and upper-case a species or product code.

    ``None`` becomes an empty string.
    """
    if code is None:
        return ''
    return str(code).strip().upper()


def is_wildcard(code: Optional[str]) -> bool:
    """True when a rule field matches anything (``None``, blank or ``*``)."""
    if code is None:
        return True
    stripped = str(code).strip()
    return stripped == '' or stripped == WILDCARD


def normalize_tags(tags: Optional[Iterable[str]]) -> Set[str]:
    """Normalise a collection of defect tags for comparison."""
    if not tags:
        return set()
    return {normalize_code(tag) for tag in tags if normalize_code(tag)}
