"""Multi-granularity diff with move and modification detection.

Pipeline:
  1. Segment both contents into units (see ``redline.diff.text``).
  2. Build the base × target similarity matrix (Jaccard, ``redline.diff.similarity``).
  3. Greedy best-match: candidate pairs are taken by descending similarity
     (ties: smaller index distance, then lower indices) while both units are
     still unmatched. A pair is a candidate when its similarity reaches the
     move threshold, or when both units share an index and it reaches the
     replacement floor.
  4. Matched pairs become moved / modification / replacement; identical
     units at the same index are unchanged and omitted.
  5. Leftover base units are deletions, leftover target units insertions.

The result is deterministic and never raises on bad content: anything that
does not segment simply yields fewer units.
"""

from __future__ import annotations

from collections import Counter

from redline.diff.models import CHANGE_KINDS, GRANULARITIES, PARAGRAPH, Change, DiffThresholds
from redline.diff.similarity import similarity, similarity_matrix
from redline.diff.text import plain_text, segment
from redline.protocols import TextExtractor


def diff(
    base: object,
    target: object,
    granularity: str = PARAGRAPH,
    *,
    thresholds: DiffThresholds | None = None,
    extractor: TextExtractor | None = None,
) -> list[Change]:
    """Return the changes that turn *base* into *target*, sorted by position.

    Args:
        base: Base content (HTML or plain text).
        target: Target content.
        granularity: ``word``, ``sentence`` or ``paragraph``.
        thresholds: Similarity cut-offs; defaults to :class:`DiffThresholds`.
        extractor: Plain-text extractor; defaults to the BeautifulSoup one.

    Raises:
        ValueError: If *granularity* is unknown.
    """
    _, left = segment(base, granularity, extractor)
    _, right = segment(target, granularity, extractor)
    return diff_units(
        [s.text for s in left],
        [s.text for s in right],
        granularity,
        thresholds=thresholds,
    )


def diff_units(
    left: list[str],
    right: list[str],
    granularity: str = PARAGRAPH,
    *,
    thresholds: DiffThresholds | None = None,
) -> list[Change]:
    """Diff two already-segmented unit lists. See :func:`diff`."""
    if granularity not in GRANULARITIES:
        raise ValueError(f"Unknown granularity '{granularity}'.")
    thresholds = thresholds or DiffThresholds()

    matches = _match(left, right, granularity, thresholds)
    matched_right = {j for j, _ in matches.values()}
    modify_at = thresholds.modification_for(granularity)

    changes: list[Change] = []
    for i, unit in enumerate(left):
        if i not in matches:
            changes.append(
                Change(
                    id="",
                    kind="deletion",
                    granularity=granularity,
                    left_unit=unit,
                    left_index=i,
                    position=_position(i, len(left)),
                )
            )
            continue

        j, score = matches[i]
        if i != j:
            kind = "moved"
        elif unit == right[j]:
            continue
        elif score > modify_at:
            kind = "modification"
        else:
            kind = "replacement"
        changes.append(
            Change(
                id="",
                kind=kind,
                granularity=granularity,
                left_unit=unit,
                right_unit=right[j],
                left_index=i,
                right_index=j,
                position=_position(j, len(right)),
                similarity=round(score, 4),
            )
        )

    for j, unit in enumerate(right):
        if j not in matched_right:
            changes.append(
                Change(
                    id="",
                    kind="insertion",
                    granularity=granularity,
                    right_unit=unit,
                    right_index=j,
                    position=_position(j, len(right)),
                )
            )

    changes.sort(key=lambda c: c.position)
    for n, change in enumerate(changes):
        change.id = f"chg-{n}"
    return changes


def summarize(changes: list[Change]) -> dict[str, int]:
    """Count changes per kind (every kind present, zero if absent)."""
    counts = Counter(c.kind for c in changes)
    return {kind: counts.get(kind, 0) for kind in CHANGE_KINDS if kind != "unchanged"}


def overall_similarity(
    base: object,
    target: object,
    extractor: TextExtractor | None = None,
) -> float:
    """Jaccard similarity of the two documents' full plain text."""
    left = plain_text(base if isinstance(base, str) else "", extractor)
    right = plain_text(target if isinstance(target, str) else "", extractor)
    return similarity(left, right)


def change_scale(score: float) -> str:
    """Bucket an overall similarity: minor | moderate | major | rewrite."""
    if score > 0.9:
        return "minor"
    if score > 0.7:
        return "moderate"
    if score > 0.3:
        return "major"
    return "rewrite"


# ---------------------------------------------------------------------------
# Matching
# ---------------------------------------------------------------------------


def _match(
    left: list[str],
    right: list[str],
    granularity: str,
    thresholds: DiffThresholds,
) -> dict[int, tuple[int, float]]:
    """Return ``{left_index: (right_index, similarity)}`` for matched pairs."""
    if not left or not right:
        return {}

    move_at = thresholds.move_for(granularity)
    floor = thresholds.replacement_floor

    candidates: list[tuple[float, int, int, int, int]] = []
    for i, row in enumerate(similarity_matrix(left, right)):
        for j, score in enumerate(row):
            if score >= move_at or (i == j and score >= floor):
                candidates.append((-score, abs(i - j), min(i, j), i, j))
    candidates.sort()

    matches: dict[int, tuple[int, float]] = {}
    taken: set[int] = set()
    for neg_score, _, _, i, j in candidates:
        if i in matches or j in taken:
            continue
        matches[i] = (j, -neg_score)
        taken.add(j)
    return matches


def _position(index: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return index / total * 100
