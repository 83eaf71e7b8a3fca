"""Version graph: an arena of VersionNodes keyed by id.

Nodes are only ever appended (``create_version``); the only in-place
mutations are content overwrites (``update_version``), checkpoint appends and
metadata flags (note, star, archive). Nothing is deleted.

Numbering:
  - versions created from the root are root-level: "1", "2", "3" …
  - versions created from any other node are single-level branches of that
    node's root number: from "2" or "2.1" the next one is "2.<k+1>".
"""

from __future__ import annotations

import threading
import warnings
from collections.abc import Iterable, Iterator

from redline.errors import LineageCycleError, UnknownVersionError
from redline.versions.models import ORIGINS, Checkpoint, VersionNode, utcnow

ROOT_ID = "v0"
INITIAL_CONTENT = "<p>Start writing your document here...</p>"


def format_version_number(number: str) -> str:
    """Display form of a version number: ``"3"`` → ``"V3"``, ``"2.1"`` → ``"V2V1"``."""
    if not number:
        return "V0"
    if "." in number:
        root, branch = number.split(".", 1)
        return f"V{root.upper()}V{branch.upper()}"
    return f"V{number.upper()}"


class VersionGraph:
    """A single document's version tree.

    The graph always has exactly one root (``v0``, number ``"0"``, marked
    original). Parent/child links are stored as ids. Version creation is
    serialized by an internal lock so two concurrent callers can never be
    assigned the same number.
    """

    def __init__(self, initial_content: str = INITIAL_CONTENT, *, root: VersionNode | None = None) -> None:
        if root is None:
            root = VersionNode(
                id=ROOT_ID,
                number="0",
                parent_id=None,
                content=initial_content,
                note="Initial version",
                is_original=True,
                origin="initial",
            )
        self._root_id = root.id
        self._nodes: dict[str, VersionNode] = {root.id: root}
        self._current_id: str = root.id
        self._compare_id: str | None = None
        self._lock = threading.Lock()

    @classmethod
    def from_nodes(
        cls,
        nodes: Iterable[VersionNode],
        *,
        current_id: str | None = None,
        compare_id: str | None = None,
    ) -> VersionGraph:
        """Rebuild a graph from stored nodes (creation order).

        Raises:
            ValueError: If there is not exactly one root node, or a node
                references a parent that is not in *nodes*.
        """
        nodes = list(nodes)
        roots = [n for n in nodes if n.parent_id is None]
        if len(roots) != 1:
            raise ValueError(f"A version graph needs exactly one root, found {len(roots)}.")

        ids = {n.id for n in nodes}
        graph = cls(root=roots[0])
        for node in nodes:
            if node is roots[0]:
                continue
            if node.parent_id not in ids:
                raise ValueError(f"Version '{node.id}' references unknown parent '{node.parent_id}'.")
            graph._nodes[node.id] = node

        if current_id and current_id in graph._nodes:
            graph._current_id = current_id
        if compare_id and compare_id in graph._nodes:
            graph._compare_id = compare_id
        return graph

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[VersionNode]:
        return iter(list(self._nodes.values()))

    def __contains__(self, version_id: object) -> bool:
        return version_id in self._nodes

    @property
    def root(self) -> VersionNode:
        return self._nodes[self._root_id]

    def get(self, version_id: str) -> VersionNode:
        """Return the node with id *version_id*.

        Raises:
            UnknownVersionError: If there is no such node.
        """
        try:
            return self._nodes[version_id]
        except KeyError:
            raise UnknownVersionError(version_id) from None

    def resolve(self, ref: str) -> VersionNode | None:
        """Find a node by id, falling back to its version number."""
        if ref in self._nodes:
            return self._nodes[ref]
        for node in self._nodes.values():
            if node.number == ref:
                return node
        return None

    def versions(self, *, include_archived: bool = True) -> list[VersionNode]:
        """All nodes in creation order."""
        return [n for n in self._nodes.values() if include_archived or not n.is_archived]

    def latest(self) -> VersionNode:
        """The most recently created node."""
        return next(reversed(self._nodes.values()))

    def get_children(self, parent_id: str) -> list[VersionNode]:
        """Direct children of *parent_id* in creation order."""
        self.get(parent_id)
        return [n for n in self._nodes.values() if n.parent_id == parent_id]

    # ------------------------------------------------------------------
    # Creation and mutation
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
        """Append a new version and make it current.

        Args:
            content: Document content of the new version.
            prompt: Instruction that produced it (None for manual edits).
            parent_id: Parent node id or version number. Omitted or the root
                → next root-level number; any other node → next branch of
                that node's root number. Unknown ids fall back to the root
                with a ``UserWarning``.
            note: Optional description.
            origin: initial | ai | manual | merge | restore. Defaults to
                ``ai`` when a prompt is given, else ``manual``.
            model: AI model name, if any.

        Returns:
            The new VersionNode.
        """
        if origin is None:
            origin = "ai" if prompt else "manual"
        if origin not in ORIGINS:
            raise ValueError(f"Unknown origin '{origin}'. Expected one of: {', '.join(sorted(ORIGINS))}")

        with self._lock:
            parent = self._resolve_parent(parent_id)
            number = self._next_number(parent)
            node = VersionNode(
                id=f"v{number}",
                number=number,
                parent_id=parent.id,
                content=content,
                prompt=prompt,
                note=note,
                origin=origin,
                model=model,
            )
            self._nodes[node.id] = node
            self._current_id = node.id
        return node

    def update_version(self, version_id: str, content: str) -> VersionNode:
        """Overwrite a node's content in place (autosave / manual edit)."""
        node = self.get(version_id)
        node.content = content
        return node

    def add_checkpoint(self, version_id: str, content: str, kind: str = "auto-save") -> Checkpoint | None:
        """Append a checkpoint to *version_id*.

        Returns None (and appends nothing) when *content* equals the node's
        latest checkpoint.
        """
        node = self.get(version_id)
        if node.checkpoints and node.checkpoints[-1].content == content:
            return None
        checkpoint = Checkpoint(
            id=f"{node.id}-cp{len(node.checkpoints) + 1}",
            content=content,
            timestamp=utcnow(),
            kind=kind,
        )
        node.checkpoints.append(checkpoint)
        return checkpoint

    def set_note(self, version_id: str, note: str | None) -> VersionNode:
        node = self.get(version_id)
        node.note = note
        return node

    def toggle_star(self, version_id: str) -> VersionNode:
        node = self.get(version_id)
        node.is_starred = not node.is_starred
        return node

    def archive(self, version_id: str, archived: bool = True) -> VersionNode:
        """Flag a node as archived. Archived nodes stay in the graph."""
        node = self.get(version_id)
        node.is_archived = archived
        return node

    # ------------------------------------------------------------------
    # Current / compare selection
    # ------------------------------------------------------------------

    @property
    def current_version(self) -> VersionNode:
        return self._nodes[self._current_id]

    @property
    def compare_version(self) -> VersionNode | None:
        return self._nodes.get(self._compare_id) if self._compare_id else None

    def set_current(self, version_id: str) -> VersionNode:
        node = self.get(version_id)
        self._current_id = node.id
        return node

    def set_compare(self, version_id: str | None) -> VersionNode | None:
        if version_id is None:
            self._compare_id = None
            return None
        node = self.get(version_id)
        self._compare_id = node.id
        return node

    # ------------------------------------------------------------------
    # Lineage
    # ------------------------------------------------------------------

    def ancestors(self, version_id: str) -> list[VersionNode]:
        """Nodes from the root down to *version_id* (inclusive).

        Raises:
            UnknownVersionError: If *version_id* (or a parent) is missing.
            LineageCycleError: If the walk does not reach the root within
                ``len(self)`` steps.
        """
        path: list[VersionNode] = []
        node = self.get(version_id)
        for _ in range(len(self._nodes)):
            path.append(node)
            if node.parent_id is None:
                path.reverse()
                return path
            node = self.get(node.parent_id)
        raise LineageCycleError(f"Parent links from '{version_id}' do not reach the root.")

    def get_lineage(self, version_id: str) -> list[str]:
        """Version numbers from the root to *version_id*."""
        return [n.number for n in self.ancestors(version_id)]

    def is_locked(self, version_id: str) -> bool:
        """True when a later version exists in the same numbering group.

        Root-level ``r`` is locked once a higher root-level version or any
        branch ``r.k`` exists; branch ``r.k`` is locked once ``r.k'`` with
        ``k' > k`` exists. Edits from a locked view must create a new node.
        """
        node = self.get(version_id)
        if node.is_branch:
            branch = int(node.number.split(".")[1])
            return any(
                other.is_branch
                and other.root_number == node.root_number
                and int(other.number.split(".")[1]) > branch
                for other in self._nodes.values()
            )
        mine = int(node.number)
        return any(
            (not other.is_branch and int(other.number) > mine)
            or (other.is_branch and other.root_number == node.number)
            for other in self._nodes.values()
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _resolve_parent(self, parent_id: str | None) -> VersionNode:
        if parent_id is None:
            return self.root
        parent = self.resolve(parent_id)
        if parent is None:
            warnings.warn(
                f"Unknown parent version '{parent_id}'; attaching the new version under the root.",
                UserWarning,
                stacklevel=3,
            )
            return self.root
        return parent

    def _next_number(self, parent: VersionNode) -> str:
        if parent.is_original:
            highest = max(int(n.number) for n in self._nodes.values() if not n.is_branch)
            return str(highest + 1)
        root_number = parent.root_number
        highest_branch = max(
            (
                int(n.number.split(".")[1])
                for n in self._nodes.values()
                if n.is_branch and n.root_number == root_number
            ),
            default=0,
        )
        return f"{root_number}.{highest_branch + 1}"
