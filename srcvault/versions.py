"""
Version string ordering for catalog releases and components.

This is a best-effort heuristic, not semantic versioning:

- positions are compared numerically when both segments are plain
  non-negative integers (so ``1.9`` sorts before ``1.10``);
- a missing trailing segment counts as ``0``;
- when no numeric position decides, the full strings are compared
  lexicographically.

Mixed alphanumeric segments (``10A``, ``b8``) never compare numerically
and can order unexpectedly. Callers must tolerate that.
"""

import re
from functools import cmp_to_key
from itertools import zip_longest

_NUMERIC = re.compile(r'[0-9]+')


def _as_int(segment: str):
    if _NUMERIC.fullmatch(segment):
        return int(segment)
    return None


def compare_versions(a: str, b: str) -> int:
    """Compare two version strings.

    Returns a negative number if ``a`` sorts first, zero if equal and a
    positive number if ``b`` sorts first.
    """
    for a_part, b_part in zip_longest(a.split('.'), b.split('.'), fillvalue='0'):
        a_int = _as_int(a_part)
        b_int = _as_int(b_part)
        if a_int is None or b_int is None:
            continue
        if a_int != b_int:
            return -1 if a_int < b_int else 1

    return (a > b) - (a < b)


version_key = cmp_to_key(compare_versions)


def sort_versions(versions):
    """Return version strings sorted oldest first."""
    return sorted(versions, key=version_key)
