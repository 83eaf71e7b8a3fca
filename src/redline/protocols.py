"""Protocols for the collaborators the core consumes.

The core never talks to an editor surface, an AI provider, or a storage
backend directly; callers inject implementations of these protocols.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from redline.lineage.tracker import ParagraphLineage
    from redline.versions.graph import VersionGraph


@runtime_checkable
class TextExtractor(Protocol):
    """Strips presentation markup from a content fragment."""

    def to_text(self, fragment: str) -> str:
        """Return the plain text of *fragment*."""
        ...


@runtime_checkable
class EditFunction(Protocol):
    """Opaque AI edit: rewrite *content* according to *prompt*."""

    def __call__(self, prompt: str, content: str) -> str: ...


@runtime_checkable
class VersionStore(Protocol):
    """Load/save contract for the version list and paragraph lineage."""

    def save_graph(self, graph: VersionGraph) -> None:
        """Persist every node of *graph* plus the current/compare pointers."""
        ...

    def load_graph(self) -> VersionGraph | None:
        """Return the stored graph, or None if nothing has been saved yet."""
        ...

    def save_lineage(self, records: list[ParagraphLineage]) -> None:
        """Replace the stored lineage records with *records*."""
        ...

    def load_lineage(self) -> list[ParagraphLineage]:
        """Return all stored lineage records."""
        ...


@runtime_checkable
class SettingsStore(Protocol):
    """Key/value settings (review notes, rewrite templates)."""

    def load_setting(self, key: str, default: Any = None) -> Any:
        """Return the JSON-decoded value for *key*, or *default*."""
        ...

    def save_setting(self, key: str, value: Any) -> None:
        """Store *value* (JSON-serialisable) under *key*."""
        ...
