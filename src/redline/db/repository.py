"""Repository pattern for all redline database operations.

Single interface for: versions, checkpoints, paragraph lineage, settings.
Implements the ``VersionStore`` and ``SettingsStore`` protocols.
"""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime
from typing import Any

from redline.lineage.tracker import ParagraphLineage
from redline.versions.graph import VersionGraph
from redline.versions.models import Checkpoint, VersionNode

_CURRENT_KEY = "graph.current_version"
_COMPARE_KEY = "graph.compare_version"


class Repository:
    """Data access layer for all redline database entities.

    Wraps an open sqlite3.Connection. The connection is owned by the caller
    and must be closed after use.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        """Initialise with an open database connection.

        Args:
            conn: An open sqlite3.Connection with the schema initialised
                (see redline.db.schema.initialize).
        """
        self._conn = conn

    # ------------------------------------------------------------------
    # Versions
    # ------------------------------------------------------------------

    def save_graph(self, graph: VersionGraph) -> None:
        """Upsert every node and checkpoint of *graph* plus its current/compare pointers.

        Nodes are written in creation order so ``load_graph`` restores it.
        """
        with self._conn:
            for node in graph:
                self._conn.execute(
                    """
                    INSERT INTO versions (
                        id, number, parent_id, content, prompt, note, created_at,
                        is_original, is_starred, is_archived, origin, model
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT(id) DO UPDATE SET
                        content = excluded.content,
                        note = excluded.note,
                        is_starred = excluded.is_starred,
                        is_archived = excluded.is_archived
                    """,
                    (
                        node.id,
                        node.number,
                        node.parent_id,
                        node.content,
                        node.prompt,
                        node.note,
                        node.timestamp.isoformat(),
                        int(node.is_original),
                        int(node.is_starred),
                        int(node.is_archived),
                        node.origin,
                        node.model,
                    ),
                )
                for cp in node.checkpoints:
                    self._conn.execute(
                        """
                        INSERT OR IGNORE INTO checkpoints (id, version_id, content, kind, created_at)
                        VALUES (?, ?, ?, ?, ?)
                        """,
                        (cp.id, node.id, cp.content, cp.kind, cp.timestamp.isoformat()),
                    )
            compare = graph.compare_version
            self._put_setting(_CURRENT_KEY, graph.current_version.id)
            self._put_setting(_COMPARE_KEY, compare.id if compare else None)

    def load_graph(self) -> VersionGraph | None:
        """Return the stored graph, or None if no version was ever saved."""
        rows = self._conn.execute("SELECT * FROM versions ORDER BY seq").fetchall()
        if not rows:
            return None

        checkpoints: dict[str, list[Checkpoint]] = {}
        for row in self._conn.execute("SELECT * FROM checkpoints ORDER BY rowid").fetchall():
            checkpoints.setdefault(row["version_id"], []).append(
                Checkpoint(
                    id=row["id"],
                    content=row["content"],
                    timestamp=datetime.fromisoformat(row["created_at"]),
                    kind=row["kind"],
                )
            )

        nodes = [_row_to_node(r, checkpoints.get(r["id"], [])) for r in rows]
        return VersionGraph.from_nodes(
            nodes,
            current_id=self.load_setting(_CURRENT_KEY),
            compare_id=self.load_setting(_COMPARE_KEY),
        )

    # ------------------------------------------------------------------
    # Paragraph lineage
    # ------------------------------------------------------------------

    def save_lineage(self, records: list[ParagraphLineage]) -> None:
        """Replace all stored lineage records with *records*."""
        with self._conn:
            self._conn.execute("DELETE FROM paragraph_lineage")
            self._conn.executemany(
                """
                INSERT INTO paragraph_lineage (
                    paragraph_id, paragraph_index, version_id, origin_version_id, prompt,
                    original_content, current_content, is_locked, created_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        r.paragraph_id,
                        r.paragraph_index,
                        r.version_id,
                        r.origin_version_id,
                        r.prompt,
                        r.original_content,
                        r.current_content,
                        int(r.is_locked),
                        r.timestamp.isoformat(),
                    )
                    for r in records
                ],
            )

    def load_lineage(self) -> list[ParagraphLineage]:
        """Return all stored lineage records ordered by version and index."""
        rows = self._conn.execute(
            "SELECT * FROM paragraph_lineage ORDER BY version_id, paragraph_index"
        ).fetchall()
        return [
            ParagraphLineage(
                paragraph_id=r["paragraph_id"],
                paragraph_index=r["paragraph_index"],
                version_id=r["version_id"],
                origin_version_id=r["origin_version_id"],
                prompt=r["prompt"],
                original_content=r["original_content"],
                current_content=r["current_content"],
                is_locked=bool(r["is_locked"]),
                timestamp=datetime.fromisoformat(r["created_at"]),
            )
            for r in rows
        ]

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def load_setting(self, key: str, default: Any = None) -> Any:
        """Return the JSON-decoded value stored under *key*, or *default*."""
        row = self._conn.execute("SELECT value FROM settings WHERE key = ?", (key,)).fetchone()
        return json.loads(row["value"]) if row else default

    def save_setting(self, key: str, value: Any) -> None:
        """Upsert *value* (JSON-serialisable) under *key*."""
        with self._conn:
            self._put_setting(key, value)

    def _put_setting(self, key: str, value: Any) -> None:
        self._conn.execute(
            """
            INSERT INTO settings (key, value)
            VALUES (?, ?)
            ON CONFLICT(key) DO UPDATE SET
                value = excluded.value,
                updated_at = datetime('now')
            """,
            (key, json.dumps(value)),
        )


# ------------------------------------------------------------------
# Row → model helpers
# ------------------------------------------------------------------

def _row_to_node(row: sqlite3.Row, checkpoints: list[Checkpoint]) -> VersionNode:
    return VersionNode(
        id=row["id"],
        number=row["number"],
        parent_id=row["parent_id"],
        content=row["content"],
        prompt=row["prompt"],
        note=row["note"],
        timestamp=datetime.fromisoformat(row["created_at"]),
        is_original=bool(row["is_original"]),
        is_starred=bool(row["is_starred"]),
        is_archived=bool(row["is_archived"]),
        origin=row["origin"],
        model=row["model"],
        checkpoints=checkpoints,
    )
