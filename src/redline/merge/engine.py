"""Merge pipeline: diff → classify → rules → stats → fold into base content.

One ClassifiedChange is produced per base location (insertions per target
index), carrying one alternative per compare version that changed that
location. Units that only shifted because of insertions or deletions around
them are not changes; a unit whose relative order changed is a ``moved``
change whose alternative is placed at an anchor in the base. Resolved changes
are spliced into the base by segment span, so untouched units keep their
exact bytes.
"""

from __future__ import annotations

from collections.abc import Sequence

from redline.diff.engine import diff_units
from redline.diff.models import PARAGRAPH, Change, DiffThresholds
from redline.diff.text import Segment, block_payload, looks_like_markup, segment, splice
from redline.merge.classifier import classify, section_label
from redline.merge.rules import apply_rules, get_preset
from redline.merge.types import (
    RESOLVED_STATUSES,
    Alternative,
    ClassifiedChange,
    MergeOutcome,
    MergeResult,
    MergeRule,
    MergeStats,
    Preset,
)
from redline.protocols import TextExtractor
from redline.versions.models import VersionNode


def build_changes(
    base: VersionNode,
    compares: Sequence[VersionNode],
    *,
    granularity: str = PARAGRAPH,
    thresholds: DiffThresholds | None = None,
    extractor: TextExtractor | None = None,
) -> list[ClassifiedChange]:
    """Diff *base* against every compare version and classify the result."""
    _, base_segments = segment(base.content, granularity, extractor)
    base_units = [s.text for s in base_segments]
    into_markup = granularity == PARAGRAPH and looks_like_markup(base.content)

    groups: dict[tuple[str, int], tuple[Change, list[Alternative]]] = {}
    for version in compares:
        source, segments = segment(version.content, granularity, extractor)
        changes = diff_units(
            base_units,
            [s.text for s in segments],
            granularity,
            thresholds=thresholds,
        )
        in_order = _in_order(_matched_pairs(changes, len(base_units)))
        for change in changes:
            anchor = None
            if change.kind == "insertion":
                key = ("insert", change.right_index)
                anchor = _anchor(change.right_index, in_order)
            else:
                key = ("base", change.left_index)
                if change.kind == "moved":
                    if (change.left_index, change.right_index) not in in_order:
                        anchor = _anchor(change.right_index, in_order)
                    elif change.left_unit == change.right_unit:
                        continue
            alt = _alternative(version, change, source, segments, granularity, into_markup, anchor)
            if key in groups:
                groups[key][1].append(alt)
            else:
                groups[key] = (change, [alt])

    total = len(base_units)
    classified: list[ClassifiedChange] = []
    for (side, index), (change, alternatives) in sorted(
        groups.items(), key=lambda item: (item[1][0].position, item[0])
    ):
        section = section_label(index, total if side == "base" else max(total, index + 1))
        classified.append(classify(change, section=section, alternatives=alternatives, location=index))

    for n, change in enumerate(classified):
        change.id = f"chg-{n}"
    return classified


def compute_stats(changes: Sequence[ClassifiedChange]) -> MergeStats:
    """Aggregate counts; impact buckets only count changes not auto-handled."""
    open_changes = [c for c in changes if c.status != "auto-handled"]
    return MergeStats(
        total=len(changes),
        critical=sum(1 for c in open_changes if c.impact == "critical"),
        important=sum(1 for c in open_changes if c.impact == "important"),
        normal=sum(1 for c in open_changes if c.impact == "normal"),
        auto_handled=len(changes) - len(open_changes),
        reviewed=sum(1 for c in changes if c.status == "accepted"),
    )


def merge_into(
    base_content: str,
    changes: Sequence[ClassifiedChange],
    granularity: str = PARAGRAPH,
    extractor: TextExtractor | None = None,
) -> MergeOutcome:
    """Fold accepted / auto-handled changes into *base_content*.

    The unit at ``change.location`` is replaced by the selected alternative;
    an empty alternative removes the unit. An alternative with an anchor
    (insertions, reordered units) is placed before the base unit at its
    anchor, or after the last remaining unit; a reordered unit is lifted out
    of its old location. Changes whose location no longer exists (or whose
    selected alternative is missing) are reported in ``skipped``. Pending and
    rejected changes do not affect the output.

    At sentence and word granularity the merge operates on the plain text, so
    the merged content carries no markup.
    """
    source, segments = segment(base_content, granularity, extractor)
    separator = _separator(source, granularity)

    edits: list[tuple[int, int, str]] = []
    placed: dict[int, list[tuple[int, str]]] = {}
    removed: set[int] = set()
    outcome = MergeOutcome(content=source)

    for change in changes:
        if change.status not in RESOLVED_STATUSES:
            continue
        alt = change.selected_alternative()
        if alt is None:
            outcome.skipped.append(change.id)
            continue

        if change.kind == "insertion":
            anchor = alt.anchor if alt.anchor is not None else change.location
            placed.setdefault(_clamp(anchor, segments), []).append((change.right_index, alt.payload))
            outcome.applied.append(change.id)
            continue

        if not 0 <= change.location < len(segments):
            outcome.skipped.append(change.id)
            continue

        if alt.anchor is not None:
            removed.add(change.location)
            placed.setdefault(_clamp(alt.anchor, segments), []).append((change.right_index, alt.payload))
        elif alt.payload.strip():
            seg = segments[change.location]
            edits.append((seg.start, seg.end, alt.payload))
        else:
            removed.add(change.location)
        outcome.applied.append(change.id)

    for index in removed:
        end = segments[index + 1].start if index + 1 < len(segments) else len(source)
        edits.append((segments[index].start, end, ""))

    kept = [seg for n, seg in enumerate(segments) if n not in removed]
    for anchor, items in placed.items():
        payloads = [payload for _, payload in sorted(items, key=lambda item: item[0])]
        if anchor >= 0:
            start = segments[anchor].start
            edits.append((start, start, "".join(p + separator for p in payloads)))
        elif kept:
            edits.append((kept[-1].end, kept[-1].end, separator + separator.join(payloads)))
        elif segments:
            start = segments[0].start
            edits.append((start, start, separator.join(payloads)))
        else:
            body = source.rstrip()
            lead = separator if body else ""
            edits.append((len(body), len(body), lead + separator.join(payloads)))

    content = splice(source, edits)
    if segments and len(segments) - 1 in removed:
        content = content.rstrip()
    outcome.content = content
    return outcome


def classify_and_merge(
    base: VersionNode,
    compares: Sequence[VersionNode],
    preset: str | Preset = "balanced",
    custom_rules: Sequence[MergeRule] = (),
    *,
    granularity: str = PARAGRAPH,
    thresholds: DiffThresholds | None = None,
    extractor: TextExtractor | None = None,
) -> MergeResult:
    """Classify every change between *base* and *compares* and auto-resolve.

    Custom rules are evaluated before the preset's rules, so project rules
    override preset defaults.

    Raises:
        UnknownPresetError: If *preset* is an unknown preset id.
    """
    preset_obj = get_preset(preset) if isinstance(preset, str) else preset
    changes = build_changes(
        base,
        compares,
        granularity=granularity,
        thresholds=thresholds,
        extractor=extractor,
    )
    changes = apply_rules(changes, [*custom_rules, *preset_obj.rules])
    return MergeResult(
        changes=changes,
        stats=compute_stats(changes),
        outcome=merge_into(base.content, changes, granularity, extractor),
        granularity=granularity,
    )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _alternative(
    version: VersionNode,
    change: Change,
    source: str,
    segments: list[Segment],
    granularity: str,
    into_markup: bool,
    anchor: int | None = None,
) -> Alternative:
    text = change.right_unit or ""
    markup = None
    if granularity == PARAGRAPH and change.right_index >= 0:
        seg = segments[change.right_index]
        markup = block_payload(source[seg.start:seg.end], seg.text, into_markup=into_markup)
    return Alternative(
        version_id=version.id,
        version_number=version.number,
        text=text,
        markup=markup,
        is_manual=version.is_manual,
        anchor=anchor,
    )


def _matched_pairs(changes: Sequence[Change], base_total: int) -> list[tuple[int, int]]:
    """``(base index, compare index)`` of every matched unit, unchanged ones included."""
    pairs = [
        (c.left_index, c.right_index)
        for c in changes
        if c.left_index >= 0 and c.right_index >= 0
    ]
    touched = {c.left_index for c in changes if c.left_index >= 0}
    pairs.extend((i, i) for i in range(base_total) if i not in touched)
    return sorted(pairs)


def _in_order(pairs: list[tuple[int, int]]) -> set[tuple[int, int]]:
    """Longest run of *pairs* (sorted by base index) whose compare indices increase.

    These units kept their relative order; every other matched unit was
    reordered. Ties go to the earliest chain found.
    """
    if not pairs:
        return set()
    best = [1] * len(pairs)
    prev = [-1] * len(pairs)
    for k, (_, right) in enumerate(pairs):
        for m in range(k):
            if pairs[m][1] < right and best[m] + 1 > best[k]:
                best[k] = best[m] + 1
                prev[k] = m
    k = max(range(len(pairs)), key=lambda n: best[n])
    chain: set[tuple[int, int]] = set()
    while k >= 0:
        chain.add(pairs[k])
        k = prev[k]
    return chain


def _anchor(right_index: int, in_order: set[tuple[int, int]]) -> int:
    """Base index a compare unit at *right_index* goes before (-1: at the end)."""
    following = [left for left, right in in_order if right > right_index]
    return min(following) if following else -1


def _clamp(anchor: int, segments: list[Segment]) -> int:
    return anchor if 0 <= anchor < len(segments) else -1


def _separator(source: str, granularity: str) -> str:
    if granularity != PARAGRAPH:
        return " "
    return "" if looks_like_markup(source) else "\n\n"
