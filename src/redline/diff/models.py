"""Value types produced by the diff engine."""

from __future__ import annotations

from dataclasses import dataclass

PARAGRAPH = "paragraph"
SENTENCE = "sentence"
WORD = "word"

GRANULARITIES: frozenset[str] = frozenset([PARAGRAPH, SENTENCE, WORD])

CHANGE_KINDS: tuple[str, ...] = (
    "insertion",
    "deletion",
    "replacement",
    "moved",
    "modification",
    "unchanged",
)


@dataclass(frozen=True)
class DiffThresholds:
    """Similarity cut-offs used to pair units across two versions.

    Attributes:
        replacement_floor: Minimum similarity for two units at the same index
            to be reported as a replacement instead of delete + insert.
        paragraph_move: Minimum similarity to pair paragraphs at any index.
        move: Minimum similarity to pair sentences or words at any index.
        paragraph_modification: Paragraph pairs above this are modifications.
        modification: Sentence/word pairs above this are modifications.
    """

    replacement_floor: float = 0.3
    paragraph_move: float = 0.6
    move: float = 0.7
    paragraph_modification: float = 0.85
    modification: float = 0.9

    def move_for(self, granularity: str) -> float:
        return self.paragraph_move if granularity == PARAGRAPH else self.move

    def modification_for(self, granularity: str) -> float:
        return self.paragraph_modification if granularity == PARAGRAPH else self.modification


@dataclass
class Change:
    """One difference between a base and a target version.

    ``left_index`` / ``right_index`` are -1 when the unit is absent on that
    side. ``position`` is a 0–100 location used for minimap placement.
    """

    id: str
    kind: str  # insertion | deletion | replacement | moved | modification | unchanged
    granularity: str  # word | sentence | paragraph
    left_unit: str | None = None
    right_unit: str | None = None
    left_index: int = -1
    right_index: int = -1
    position: float = 0.0
    similarity: float | None = None
