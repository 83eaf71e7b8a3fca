"""Domain models for the version graph."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

ORIGINS: frozenset[str] = frozenset(["initial", "ai", "manual", "merge", "restore"])


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Checkpoint:
    """An auto-saved (or manually saved) content snapshot attached to a node."""

    id: str
    content: str
    timestamp: datetime = field(default_factory=utcnow)
    kind: str = "auto-save"  # auto-save | manual


@dataclass
class VersionNode:
    """A content snapshot plus provenance metadata.

    Attributes:
        id: Stable node id (``"v<number>"``).
        number: Hierarchical version number: ``"3"`` for root-level versions,
            ``"3.2"`` for branches of root version 3.
        parent_id: Id of the parent node; None only for the tree root.
        content: Opaque rich-text document.
        prompt: Instruction that produced this version, if any.
        note: User-editable description (like a commit message).
        origin: How the node was produced: initial | ai | manual | merge | restore.
        model: AI model that produced the content, if any.
    """

    id: str
    number: str
    parent_id: str | None
    content: str
    prompt: str | None = None
    note: str | None = None
    timestamp: datetime = field(default_factory=utcnow)
    is_original: bool = False
    is_starred: bool = False
    is_archived: bool = False
    origin: str = "manual"
    model: str | None = None
    checkpoints: list[Checkpoint] = field(default_factory=list)

    @property
    def is_branch(self) -> bool:
        return "." in self.number

    @property
    def root_number(self) -> str:
        """The root-level number this node belongs to (``"2"`` for ``"2.3"``)."""
        return self.number.split(".")[0]

    @property
    def is_manual(self) -> bool:
        return self.origin == "manual"
