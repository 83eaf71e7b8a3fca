"""Paragraph lineage tracker.

Maps each paragraph position of a version to the version and prompt that
produced its text. Lock state lives here too; enforcing "the AI must not
rewrite locked paragraphs" is the job of the edit-applying caller
(see ``DocumentSession.apply_ai_edit``), which consults ``locked_indices``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from redline.diff.engine import diff
from redline.diff.models import PARAGRAPH, DiffThresholds
from redline.diff.text import block_payload, looks_like_markup, segment, splice, units
from redline.errors import StaleParagraphError
from redline.protocols import TextExtractor
from redline.versions.graph import VersionGraph
from redline.versions.models import utcnow


def paragraph_id(version_id: str, index: int) -> str:
    return f"{version_id}-p{index}"


@dataclass
class ParagraphLineage:
    """Provenance of one paragraph of one version."""

    paragraph_id: str
    paragraph_index: int
    version_id: str
    origin_version_id: str
    prompt: str | None
    original_content: str
    current_content: str
    is_locked: bool = False
    timestamp: datetime = field(default_factory=utcnow)


class LineageTracker:
    """In-memory lineage records keyed by paragraph id.

    Version contents are read through *graph*; the tracker never writes to
    the graph itself. ``revert_paragraph`` returns the new content, the
    caller stores it and then calls ``mark_reverted``.
    """

    def __init__(
        self,
        graph: VersionGraph,
        *,
        extractor: TextExtractor | None = None,
        thresholds: DiffThresholds | None = None,
    ) -> None:
        self._graph = graph
        self._extractor = extractor
        self._thresholds = thresholds
        self._records: dict[str, ParagraphLineage] = {}

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    def load(self, records: list[ParagraphLineage]) -> None:
        """Replace all records (e.g. after loading from storage)."""
        self._records = {r.paragraph_id: r for r in records}

    def records(self) -> list[ParagraphLineage]:
        return list(self._records.values())

    def get(self, pid: str) -> ParagraphLineage:
        """Return the record for *pid*.

        Raises:
            KeyError: If no lineage was recorded for that paragraph.
        """
        try:
            return self._records[pid]
        except KeyError:
            raise KeyError(f"No lineage recorded for paragraph '{pid}'") from None

    def get_paragraph_lineage(self, version_id: str) -> list[ParagraphLineage]:
        """Records of *version_id* ordered by paragraph index."""
        return sorted(
            (r for r in self._records.values() if r.version_id == version_id),
            key=lambda r: r.paragraph_index,
        )

    def record_lineage(
        self,
        version_id: str,
        paragraph_index: int,
        prompt: str | None,
        original_text: str,
        current_text: str,
        *,
        origin_version_id: str | None = None,
        is_locked: bool = False,
    ) -> ParagraphLineage:
        """Create (or replace) the record for one paragraph of *version_id*."""
        self._graph.get(version_id)
        record = ParagraphLineage(
            paragraph_id=paragraph_id(version_id, paragraph_index),
            paragraph_index=paragraph_index,
            version_id=version_id,
            origin_version_id=origin_version_id or version_id,
            prompt=prompt,
            original_content=original_text,
            current_content=current_text,
            is_locked=is_locked,
        )
        self._records[record.paragraph_id] = record
        return record

    def record_edit(self, parent_id: str, version_id: str, prompt: str | None) -> list[ParagraphLineage]:
        """Record lineage for every paragraph of *version_id* after an edit.

        Paragraphs whose text changed relative to *parent_id* get a new record
        originating in *version_id*; unchanged (or merely moved) paragraphs
        inherit the parent's record, including its lock state.
        """
        parent = self._graph.get(parent_id)
        node = self._graph.get(version_id)
        changes = diff(
            parent.content,
            node.content,
            PARAGRAPH,
            thresholds=self._thresholds,
            extractor=self._extractor,
        )
        by_right = {c.right_index: c for c in changes if c.right_index >= 0}

        recorded: list[ParagraphLineage] = []
        for index, text in enumerate(units(node.content, PARAGRAPH, self._extractor)):
            change = by_right.get(index)
            if change is None:
                source_index = index
            elif change.kind == "moved" and change.left_unit == change.right_unit:
                source_index = change.left_index
            else:
                recorded.append(
                    self.record_lineage(version_id, index, prompt, change.left_unit or "", text)
                )
                continue

            inherited = self._records.get(paragraph_id(parent.id, source_index))
            if inherited is None:
                recorded.append(
                    self.record_lineage(
                        version_id, index, parent.prompt, text, text, origin_version_id=parent.id
                    )
                )
            else:
                recorded.append(
                    self.record_lineage(
                        version_id,
                        index,
                        inherited.prompt,
                        inherited.original_content,
                        text,
                        origin_version_id=inherited.origin_version_id,
                        is_locked=inherited.is_locked,
                    )
                )
        return recorded

    def refresh(self, version_id: str) -> list[ParagraphLineage]:
        """Sync the records of *version_id* after its content was overwritten.

        Existing records keep their origin, prompt and lock and take the new
        paragraph text; paragraphs without a record get one; records past the
        last paragraph are dropped.
        """
        node = self._graph.get(version_id)
        texts = units(node.content, PARAGRAPH, self._extractor)
        for record in self.get_paragraph_lineage(version_id):
            if record.paragraph_index >= len(texts):
                del self._records[record.paragraph_id]
        for index, text in enumerate(texts):
            record = self._records.get(paragraph_id(version_id, index))
            if record is None:
                self.record_lineage(version_id, index, node.prompt, text, text)
            else:
                record.current_content = text
        return self.get_paragraph_lineage(version_id)

    # ------------------------------------------------------------------
    # Locking
    # ------------------------------------------------------------------

    def lock(self, pid: str) -> ParagraphLineage:
        record = self.get(pid)
        record.is_locked = True
        return record

    def unlock(self, pid: str) -> ParagraphLineage:
        record = self.get(pid)
        record.is_locked = False
        return record

    def is_locked(self, pid: str) -> bool:
        record = self._records.get(pid)
        return record.is_locked if record else False

    def locked_indices(self, version_id: str) -> set[int]:
        return {r.paragraph_index for r in self.get_paragraph_lineage(version_id) if r.is_locked}

    def restore_locked(self, version_id: str, edited: str) -> str:
        """Put the locked paragraphs of *version_id* back into *edited*.

        Each locked paragraph is followed through the diff: if the edit
        changed or moved it, its block replaces the edited block; if the edit
        removed it, it is reinserted at its old index (or appended).
        """
        locked = self.locked_indices(version_id)
        if not locked:
            return edited

        node = self._graph.get(version_id)
        _, original = segment(node.content, PARAGRAPH, self._extractor)
        _, target = segment(edited, PARAGRAPH, self._extractor)
        into_markup = looks_like_markup(edited) or looks_like_markup(node.content)
        changes = {
            c.left_index: c
            for c in diff(node.content, edited, PARAGRAPH, thresholds=self._thresholds, extractor=self._extractor)
            if c.left_index >= 0
        }

        edits: list[tuple[int, int, str]] = []
        for index in sorted(locked, reverse=True):
            change = changes.get(index)
            if index >= len(original) or change is None:
                continue
            seg = original[index]
            payload = block_payload(node.content[seg.start:seg.end], seg.text, into_markup=into_markup)
            if change.right_index >= 0:
                right = target[change.right_index]
                edits.append((right.start, right.end, payload))
            elif index < len(target):
                edits.append((target[index].start, target[index].start, payload + ("" if into_markup else "\n\n")))
            else:
                lead = "" if into_markup or not edited.strip() else "\n\n"
                edits.append((len(edited), len(edited), lead + payload))
        return splice(edited, edits)

    # ------------------------------------------------------------------
    # Revert
    # ------------------------------------------------------------------

    def revert_paragraph(self, pid: str, target_version_id: str) -> str:
        """Return the version's content with one paragraph taken from *target_version_id*.

        Only the paragraph's block is replaced; every other byte of the
        content is left as is. Nothing is modified here: once the caller has
        stored the content, ``mark_reverted`` moves the record's origin.

        Raises:
            KeyError: If *pid* has no lineage record.
            StaleParagraphError: If the paragraph index no longer exists in the
                version or in the target.
        """
        record = self.get(pid)
        node = self._graph.get(record.version_id)
        target = self._graph.get(target_version_id)

        _, current = segment(node.content, PARAGRAPH, self._extractor)
        target_source, target_segments = segment(target.content, PARAGRAPH, self._extractor)
        index = record.paragraph_index
        if index >= len(current) or index >= len(target_segments):
            raise StaleParagraphError(
                f"Paragraph {index + 1} no longer exists in "
                f"{'version ' + node.id if index >= len(current) else 'target ' + target.id}; "
                "nothing was reverted."
            )

        target_seg = target_segments[index]
        payload = block_payload(
            target_source[target_seg.start:target_seg.end],
            target_seg.text,
            into_markup=looks_like_markup(node.content),
        )
        return splice(node.content, [(current[index].start, current[index].end, payload)])

    def mark_reverted(self, pid: str, target_version_id: str) -> ParagraphLineage:
        """Point *pid*'s record at *target_version_id* after a stored revert.

        The record takes the target's prompt and origin and the paragraph's
        text as it now reads in its version.
        """
        record = self.get(pid)
        target = self._graph.get(target_version_id)
        texts = units(self._graph.get(record.version_id).content, PARAGRAPH, self._extractor)
        if record.paragraph_index < len(texts):
            record.current_content = texts[record.paragraph_index]
        record.origin_version_id = target.id
        record.prompt = target.prompt
        record.timestamp = utcnow()
        return record
