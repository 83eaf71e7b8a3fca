"""DocumentSession: the single entry point callers use for one document.

Owns the version graph and the lineage tracker and wires them to the diff
and merge engines. Storage and the AI edit function are injected; the
session never opens files or talks to a model on its own.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from datetime import datetime
from typing import Any

from redline.ai.templates import DEFAULT_REWRITE_TEMPLATES
from redline.config import AutosaveCfg
from redline.diff.engine import diff as diff_contents
from redline.diff.models import PARAGRAPH, Change, DiffThresholds
from redline.errors import RedlineError, UnknownVersionError
from redline.lineage.tracker import LineageTracker, ParagraphLineage
from redline.merge.engine import classify_and_merge as run_merge
from redline.merge.types import MergeResult, MergeRule, Preset
from redline.protocols import EditFunction, SettingsStore, TextExtractor, VersionStore
from redline.versions.graph import INITIAL_CONTENT, VersionGraph
from redline.versions.models import Checkpoint, VersionNode, utcnow

_REVIEW_NOTES_KEY = "review_notes"
_TEMPLATES_KEY = "rewrite_templates"


class DocumentSession:
    """Version history, lineage and merge operations for one document.

    Args:
        graph: Existing version graph. A fresh one holding *initial_content*
            is created when omitted.
        store: Where ``save()`` / ``open()`` persist the graph and lineage.
        settings: Key/value store for review notes and rewrite templates.
        extractor: Markup-to-text extractor used for segmentation.
        thresholds: Diff thresholds (defaults to ``DiffThresholds()``).
        preset: Default merge preset id.
        rules: Custom merge rules evaluated before the preset's.
        autosave_policy: When ``autosave`` takes a checkpoint (defaults to
            ``AutosaveCfg()``).
    """

    def __init__(
        self,
        graph: VersionGraph | None = None,
        *,
        store: VersionStore | None = None,
        settings: SettingsStore | None = None,
        extractor: TextExtractor | None = None,
        thresholds: DiffThresholds | None = None,
        preset: str | Preset = "balanced",
        rules: Sequence[MergeRule] = (),
        initial_content: str = INITIAL_CONTENT,
        autosave_policy: AutosaveCfg | None = None,
    ) -> None:
        self.graph = graph if graph is not None else VersionGraph(initial_content)
        self.store = store
        self.settings = settings
        self.extractor = extractor
        self.thresholds = thresholds or DiffThresholds()
        self.preset = preset
        self.rules = list(rules)
        self.autosave_policy = autosave_policy or AutosaveCfg()
        self.tracker = LineageTracker(self.graph, extractor=extractor, thresholds=self.thresholds)
        if not self.tracker.get_paragraph_lineage(self.graph.root.id):
            self.tracker.refresh(self.graph.root.id)

    @classmethod
    def open(cls, store: VersionStore, **kwargs: Any) -> DocumentSession:
        """Load a session from *store*, or start a new one if it is empty."""
        graph = store.load_graph()
        session = cls(graph, store=store, **kwargs)
        if graph is not None:
            session.tracker.load(store.load_lineage())
        return session

    def save(self) -> None:
        """Persist the graph and every lineage record to the version store."""
        if self.store is None:
            raise RedlineError("This session has no version store to save to.")
        self.store.save_graph(self.graph)
        self.store.save_lineage(self.tracker.records())

    # ------------------------------------------------------------------
    # Versions
    # ------------------------------------------------------------------

    def create_version(
        self,
        content: str,
        prompt: str | None = None,
        parent_id: str | None = None,
        note: str | None = None,
        *,
        origin: str | None = None,
        model: str | None = None,
    ) -> VersionNode:
        """Create a version, make it current and record its paragraph lineage."""
        node = self.graph.create_version(
            content, prompt, parent_id, note, origin=origin, model=model
        )
        self.tracker.record_edit(node.parent_id, node.id, prompt)
        return node

    def update_version(self, version_id: str, content: str) -> VersionNode:
        node = self.graph.update_version(version_id, content)
        self.tracker.refresh(node.id)
        return node

    def autosave(
        self,
        content: str,
        version_id: str | None = None,
        *,
        now: datetime | None = None,
    ) -> Checkpoint | None:
        """Overwrite a version's content and snapshot it when a checkpoint is due.

        Defaults to the current version. The content is always written; a
        checkpoint is due when autosave is enabled and the version has none
        yet, ``interval_seconds`` have passed since its latest one, or at
        least ``min_changed_lines`` lines differ from it. Returns None when no
        checkpoint was taken.
        """
        node = self.resolve(version_id) if version_id else self.graph.current_version
        self.update_version(node.id, content)
        if not self._checkpoint_due(node, content, now or utcnow()):
            return None
        return self.graph.add_checkpoint(node.id, content)

    def resolve(self, ref: str) -> VersionNode:
        """Look a version up by id or by number.

        Raises:
            UnknownVersionError: If nothing matches *ref*.
        """
        node = self.graph.resolve(ref)
        if node is None:
            raise UnknownVersionError(ref)
        return node

    def get_current_version(self) -> VersionNode:
        return self.graph.current_version

    def set_current_version(self, version_id: str) -> VersionNode:
        return self.graph.set_current(self.resolve(version_id).id)

    def get_compare_version(self) -> VersionNode | None:
        return self.graph.compare_version

    def set_compare_version(self, version_id: str | None) -> VersionNode | None:
        if version_id is None:
            return self.graph.set_compare(None)
        return self.graph.set_compare(self.resolve(version_id).id)

    def get_lineage(self, version_id: str) -> list[str]:
        """Version numbers from the root to *version_id*."""
        return self.graph.get_lineage(self.resolve(version_id).id)

    # ------------------------------------------------------------------
    # Diff and merge
    # ------------------------------------------------------------------

    def diff(self, base_id: str, target_id: str, granularity: str = PARAGRAPH) -> list[Change]:
        base = self.resolve(base_id)
        target = self.resolve(target_id)
        return diff_contents(
            base.content,
            target.content,
            granularity,
            thresholds=self.thresholds,
            extractor=self.extractor,
        )

    def classify_and_merge(
        self,
        base_id: str,
        compare_ids: Sequence[str],
        preset: str | Preset | None = None,
        custom_rules: Sequence[MergeRule] | None = None,
        *,
        granularity: str = PARAGRAPH,
    ) -> MergeResult:
        """Classify the changes from *base_id* to each compare version and auto-resolve them.

        *preset* and *custom_rules* default to the session's.
        """
        base = self.resolve(base_id)
        compares = [self.resolve(ref) for ref in compare_ids]
        return run_merge(
            base,
            compares,
            preset if preset is not None else self.preset,
            self.rules if custom_rules is None else custom_rules,
            granularity=granularity,
            thresholds=self.thresholds,
            extractor=self.extractor,
        )

    def commit_merge(self, result: MergeResult, base_id: str, note: str | None = None) -> VersionNode:
        """Store the merged content as a new version under *base_id*."""
        base = self.resolve(base_id)
        if note is None:
            note = f"Merged {len(result.outcome.applied)} change(s) into {base.number}"
        return self.create_version(result.outcome.content, None, base.id, note, origin="merge")

    # ------------------------------------------------------------------
    # Paragraph lineage
    # ------------------------------------------------------------------

    def get_paragraph_lineage(self, version_id: str) -> list[ParagraphLineage]:
        return self.tracker.get_paragraph_lineage(self.resolve(version_id).id)

    def lock_paragraph(self, pid: str) -> ParagraphLineage:
        return self.tracker.lock(pid)

    def unlock_paragraph(self, pid: str) -> ParagraphLineage:
        return self.tracker.unlock(pid)

    def revert_paragraph(self, pid: str, target_version_id: str) -> VersionNode:
        """Replace one paragraph with the target version's and save it in place.

        Raises:
            KeyError: If *pid* has no lineage record.
            StaleParagraphError: If the paragraph index is gone on either side.
        """
        target = self.resolve(target_version_id)
        record = self.tracker.get(pid)
        content = self.tracker.revert_paragraph(pid, target.id)
        node = self.update_version(record.version_id, content)
        self.tracker.mark_reverted(pid, target.id)
        return node

    # ------------------------------------------------------------------
    # AI edits
    # ------------------------------------------------------------------

    def apply_ai_edit(
        self,
        prompt: str,
        edit_fn: EditFunction,
        *,
        note: str | None = None,
        model: str | None = None,
    ) -> VersionNode:
        """Run *edit_fn* on the current version and store the result as its child.

        Locked paragraphs of the current version are put back into the edited
        content before the new version is created, so they carry over
        unchanged (and stay locked).
        """
        parent = self.graph.current_version
        edited = edit_fn(prompt, parent.content)
        edited = self.tracker.restore_locked(parent.id, edited)
        return self.create_version(edited, prompt, parent.id, note, origin="ai", model=model)

    # ------------------------------------------------------------------
    # Settings: review notes and rewrite templates
    # ------------------------------------------------------------------

    def review_notes(self, version_id: str) -> list[str]:
        notes = self._settings().load_setting(_REVIEW_NOTES_KEY, {}) or {}
        return list(notes.get(self.resolve(version_id).id, []))

    def add_review_note(self, version_id: str, text: str) -> list[str]:
        node = self.resolve(version_id)
        store = self._settings()
        notes = store.load_setting(_REVIEW_NOTES_KEY, {}) or {}
        notes.setdefault(node.id, []).append(text)
        store.save_setting(_REVIEW_NOTES_KEY, notes)
        return notes[node.id]

    def rewrite_templates(self) -> dict[str, str]:
        """Built-in templates overlaid with the ones saved in settings."""
        templates = dict(DEFAULT_REWRITE_TEMPLATES)
        if self.settings is not None:
            templates.update(self.settings.load_setting(_TEMPLATES_KEY, {}) or {})
        return templates

    def save_rewrite_template(self, name: str, prompt: str) -> None:
        store = self._settings()
        saved = store.load_setting(_TEMPLATES_KEY, {}) or {}
        saved[name] = prompt
        store.save_setting(_TEMPLATES_KEY, saved)

    def _settings(self) -> SettingsStore:
        if self.settings is None:
            raise RedlineError("This session has no settings store.")
        return self.settings

    def _checkpoint_due(self, node: VersionNode, content: str, now: datetime) -> bool:
        policy = self.autosave_policy
        if not policy.enabled:
            return False
        if not node.checkpoints:
            return True
        latest = node.checkpoints[-1]
        if (now - latest.timestamp).total_seconds() >= policy.interval_seconds:
            return True
        return _changed_lines(latest.content, content) >= policy.min_changed_lines


def _changed_lines(before: str, after: str) -> int:
    """Lines present in one text and not the other, counted with multiplicity."""
    old = Counter(before.splitlines())
    new = Counter(after.splitlines())
    return sum(((old - new) + (new - old)).values())
