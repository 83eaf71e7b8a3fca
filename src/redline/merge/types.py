"""Types for merge classification and the rule engine."""

from __future__ import annotations

from dataclasses import dataclass, field

from redline.diff.models import Change

CHANGE_TYPES: tuple[str, ...] = (
    "grammar",
    "punctuation",
    "spelling",
    "word-choice",
    "tone",
    "structure",
    "addition",
    "deletion",
    "modification",
)

IMPACTS: tuple[str, ...] = ("critical", "important", "normal")

STATUSES: tuple[str, ...] = ("pending", "accepted", "auto-handled", "rejected")

RESOLVED_STATUSES: frozenset[str] = frozenset(["accepted", "auto-handled"])


@dataclass(frozen=True)
class Alternative:
    """A candidate text for a change, proposed by one compare version.

    ``text`` is plain text; ``markup`` is what gets spliced into the merged
    document (the raw HTML block at paragraph granularity). ``anchor`` is set
    when the text is placed rather than written over the base unit: it is the
    base index the text goes before, or -1 to append.
    """

    version_id: str
    text: str
    is_manual: bool = False
    version_number: str = ""
    markup: str | None = None
    anchor: int | None = None

    @property
    def payload(self) -> str:
        return self.text if self.markup is None else self.markup

    @property
    def source(self) -> str:
        return "manual" if self.is_manual else "ai"


@dataclass
class ClassifiedChange(Change):
    """A diff change annotated with semantic type, review impact and status."""

    type: str = "modification"
    impact: str = "normal"  # critical | important | normal
    alternatives: list[Alternative] = field(default_factory=list)
    status: str = "pending"  # pending | accepted | auto-handled | rejected
    rule_applied: str | None = None
    selected_alternative_id: str | None = None
    location: int = -1
    section: str = ""
    length: int = 0
    semantic_shift: bool = False
    explanation: str = ""

    def selected_alternative(self) -> Alternative | None:
        if self.selected_alternative_id is None:
            return None
        for alt in self.alternatives:
            if alt.version_id == self.selected_alternative_id:
                return alt
        return None


@dataclass(frozen=True)
class LengthCondition:
    """Compare a change's length against *value* in words or characters."""

    operator: str  # < | > | <= | >= | =
    value: int
    unit: str = "words"  # words | characters


@dataclass(frozen=True)
class RuleCondition:
    """Declarative predicate over ClassifiedChange attributes.

    Every field that is set must match; an empty condition matches all changes.
    """

    change_types: tuple[str, ...] | None = None
    kinds: tuple[str, ...] | None = None
    impacts: tuple[str, ...] | None = None
    sections: tuple[str, ...] | None = None
    source: str | None = None  # manual | ai
    semantic_shift: bool | None = None
    keywords: tuple[str, ...] | None = None
    length: LengthCondition | None = None


@dataclass(frozen=True)
class RuleAction:
    """What a matching rule does.

    ``auto-accept`` resolves the change with its ``alternative``-th
    alternative (or the first one from ``prefer``); ``flag`` keeps it pending
    for manual review. Either may override the change's impact.
    """

    type: str = "flag"  # auto-accept | flag
    alternative: int = 0
    prefer: str | None = None  # manual | ai
    set_impact: str | None = None


@dataclass(frozen=True)
class MergeRule:
    id: str
    name: str
    condition: RuleCondition = field(default_factory=RuleCondition)
    action: RuleAction = field(default_factory=RuleAction)
    enabled: bool = True


@dataclass(frozen=True)
class Preset:
    """A named, ordered bundle of merge rules."""

    id: str
    name: str
    description: str
    rules: tuple[MergeRule, ...] = ()


@dataclass(frozen=True)
class MergeStats:
    """Aggregate counts over a classified change list.

    Impact counts exclude auto-handled changes, so
    ``total == critical + important + normal + auto_handled``.
    """

    total: int = 0
    critical: int = 0
    important: int = 0
    normal: int = 0
    auto_handled: int = 0
    reviewed: int = 0


@dataclass
class MergeOutcome:
    """Result of folding resolved changes into base content."""

    content: str
    applied: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


@dataclass
class MergeResult:
    changes: list[ClassifiedChange]
    stats: MergeStats
    outcome: MergeOutcome
    granularity: str = "paragraph"
