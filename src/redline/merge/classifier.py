"""Heuristic classification of diff changes into review types and impact."""

from __future__ import annotations

import re
from collections.abc import Iterable

from redline.diff.models import Change
from redline.merge.types import Alternative, ClassifiedChange

_NON_WORD_RE = re.compile(r"[^\w\s]")
_FIRST_PERSON_RE = re.compile(r"\b(i|we|my|our|me|us)\b", re.IGNORECASE)
_EMOTIONAL_RE = re.compile(
    r"\b(passionate|excited|love|amazing|incredible|awesome)\b", re.IGNORECASE
)

# Register markers, checked in order; the first register present wins.
_TONE_REGISTERS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("personal", ("i", "we", "my", "our", "me", "us")),
    ("professional", ("organization", "company", "service", "solution", "provide")),
    ("casual", ("really", "pretty", "kinda", "stuff", "thing")),
    ("formal", ("furthermore", "therefore", "consequently", "additionally")),
)


def classify(
    change: Change,
    *,
    section: str = "",
    alternatives: Iterable[Alternative] = (),
    location: int | None = None,
) -> ClassifiedChange:
    """Annotate *change* with a change type, impact and review metadata.

    Args:
        change: Raw diff change.
        section: Section label (``introduction``, ``conclusion``, ``section-N``).
        alternatives: Candidate texts from compare versions. Defaults to none.
        location: Unit index in the base. Defaults to the change's left index,
            or its right index for insertions.
    """
    original = change.left_unit or ""
    proposed = change.right_unit or ""
    if change.kind == "moved" and original == proposed:
        change_type = "structure"
    else:
        change_type = detect_change_type(original, proposed)
    impact = calculate_impact(original, proposed, change_type, section)
    if location is None:
        location = change.left_index if change.left_index >= 0 else change.right_index

    classified = ClassifiedChange(
        id=change.id,
        kind=change.kind,
        granularity=change.granularity,
        left_unit=change.left_unit,
        right_unit=change.right_unit,
        left_index=change.left_index,
        right_index=change.right_index,
        position=change.position,
        similarity=change.similarity,
        type=change_type,
        impact=impact,
        alternatives=list(alternatives),
        location=location,
        section=section,
        length=count_words(proposed if proposed else original),
        semantic_shift=detect_semantic_shift(original, proposed),
    )
    classified.explanation = explain(classified)
    return classified


def detect_change_type(original: str, modified: str) -> str:
    """Return the review type of a change from *original* to *modified*."""
    if not original.strip() and modified.strip():
        return "addition"
    if original.strip() and not modified.strip():
        return "deletion"

    if _NON_WORD_RE.sub("", original) == _NON_WORD_RE.sub("", modified):
        return "punctuation"
    if original.lower() == modified.lower():
        return "grammar"

    orig_words = original.lower().split()
    mod_words = modified.lower().split()

    if len(orig_words) == len(mod_words):
        differing = [(a, b) for a, b in zip(orig_words, mod_words) if a != b]
        if len(differing) == 1 and levenshtein(*differing[0]) <= 2:
            return "spelling"

    delta = abs(len(orig_words) - len(mod_words))
    if delta > 10:
        return "structure"
    if detect_tone_change(original, modified):
        return "tone"
    if delta <= 3:
        return "word-choice"
    return "modification"


def calculate_impact(original: str, modified: str, change_type: str, section: str) -> str:
    """Return critical | important | normal for a classified change."""
    if change_type == "structure":
        return "critical"
    if change_type == "deletion" and count_words(original) > 20:
        return "critical"

    label = section.lower()
    if "intro" in label and change_type in ("tone", "modification", "addition"):
        return "critical"
    if "conclusion" in label and change_type in ("tone", "modification"):
        return "critical"

    if change_type == "tone":
        return "important"
    if change_type == "addition" and count_words(modified) > 10:
        return "important"
    if change_type == "word-choice" and count_words(modified) > 5:
        return "important"
    return "normal"


def detect_tone_change(original: str, modified: str) -> bool:
    """First-person voice or emotional language toggled between the texts."""
    if bool(_FIRST_PERSON_RE.search(original)) != bool(_FIRST_PERSON_RE.search(modified)):
        return True
    return bool(_EMOTIONAL_RE.search(original)) != bool(_EMOTIONAL_RE.search(modified))


def detect_semantic_shift(original: str, modified: str) -> bool:
    """True when both texts have a register and the registers differ."""
    before = _register(original)
    after = _register(modified)
    return bool(before and after and before != after)


def section_label(location: int, total: int) -> str:
    """Section name for a base unit index out of *total* units."""
    if location == 0:
        return "introduction"
    if total > 1 and location == total - 1:
        return "conclusion"
    return f"section-{location + 1}"


def explain(change: ClassifiedChange) -> str:
    """One-line reviewer explanation of why a change matters."""
    if change.type in ("grammar", "punctuation", "spelling"):
        return "Minor correction that improves readability."
    if change.type == "tone":
        if change.semantic_shift:
            return "Significant tone shift detected - may affect voice and brand perception."
        return "Subtle tone adjustment."
    if change.type == "structure":
        return "Changes document flow and organization - review carefully."
    if change.type == "addition":
        if change.length > 20:
            return "Substantial new content added - verify accuracy and relevance."
        return "New content added."
    if change.type == "deletion":
        if change.length > 10:
            return "Significant content removed - ensure this is intentional."
        return "Content removed."
    if change.type == "word-choice":
        return "Word choice variation - may affect clarity or style."
    return "Content modified."


def count_words(text: str) -> int:
    return len(text.split())


def levenshtein(a: str, b: str) -> int:
    """Edit distance between *a* and *b*."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            current.append(
                min(
                    previous[j] + 1,
                    current[j - 1] + 1,
                    previous[j - 1] + (ca != cb),
                )
            )
        previous = current
    return previous[-1]


def _register(text: str) -> str:
    words = set(re.findall(r"[a-z']+", text.lower()))
    for name, markers in _TONE_REGISTERS:
        if words.intersection(markers):
            return name
    return ""
