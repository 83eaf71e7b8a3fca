"""Jaccard word-overlap similarity between text units.

Pure functions. ``similarity_matrix`` is O(n·m); callers must bound the
number of units (paragraph-level diffs are fine for any document, word-level
diffs of very large documents should be chunked by the caller).
"""

from __future__ import annotations


def tokenize(unit: object) -> frozenset[str]:
    """Lower-cased whitespace token set of *unit* (non-strings are empty)."""
    if not isinstance(unit, str):
        return frozenset()
    return frozenset(unit.lower().split())


def jaccard(a: frozenset[str], b: frozenset[str]) -> float:
    """|A∩B| / |A∪B|, with 1.0 for two empty sets and 0.0 if only one is empty."""
    if not a and not b:
        return 1.0
    if not a or not b:
        return 0.0
    return len(a & b) / len(a | b)


def similarity(unit_a: object, unit_b: object) -> float:
    """Return the Jaccard similarity of two text units in [0, 1]."""
    return jaccard(tokenize(unit_a), tokenize(unit_b))


def similarity_matrix(left: list[str], right: list[str]) -> list[list[float]]:
    """Return the ``len(left) × len(right)`` similarity matrix.

    Each unit is tokenized once.
    """
    left_tokens = [tokenize(u) for u in left]
    right_tokens = [tokenize(u) for u in right]
    return [[jaccard(a, b) for b in right_tokens] for a in left_tokens]
