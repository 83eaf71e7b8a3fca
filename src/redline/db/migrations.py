"""Forward-only migration runner for the redline database schema."""

from __future__ import annotations

import sqlite3

# schema_version is the bootstrap table, created before migrations run.
_CREATE_SCHEMA_VERSION = """
CREATE TABLE IF NOT EXISTS schema_version (
    version     INTEGER NOT NULL,
    applied_at  DATETIME NOT NULL DEFAULT (datetime('now'))
)
"""

_V1_SQL = """
CREATE TABLE IF NOT EXISTS versions (
    seq             INTEGER PRIMARY KEY AUTOINCREMENT,
    id              TEXT NOT NULL UNIQUE,
    number          TEXT NOT NULL,
    parent_id       TEXT,
    content         TEXT NOT NULL,
    prompt          TEXT,
    note            TEXT,
    created_at      TEXT NOT NULL,
    is_original     INTEGER NOT NULL DEFAULT 0,
    is_starred      INTEGER NOT NULL DEFAULT 0,
    is_archived     INTEGER NOT NULL DEFAULT 0,
    origin          TEXT NOT NULL DEFAULT 'manual',
    model           TEXT
);

CREATE TABLE IF NOT EXISTS checkpoints (
    id              TEXT PRIMARY KEY,
    version_id      TEXT NOT NULL REFERENCES versions(id) ON DELETE CASCADE,
    content         TEXT NOT NULL,
    kind            TEXT NOT NULL DEFAULT 'auto-save',
    created_at      TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS paragraph_lineage (
    paragraph_id        TEXT PRIMARY KEY,
    paragraph_index     INTEGER NOT NULL,
    version_id          TEXT NOT NULL REFERENCES versions(id) ON DELETE CASCADE,
    origin_version_id   TEXT NOT NULL,
    prompt              TEXT,
    original_content    TEXT NOT NULL,
    current_content     TEXT NOT NULL,
    is_locked           INTEGER NOT NULL DEFAULT 0,
    created_at          TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS settings (
    key             TEXT PRIMARY KEY,
    value           TEXT NOT NULL,
    updated_at      DATETIME NOT NULL DEFAULT (datetime('now'))
);
"""

# Append-only. Each entry: (version: int, sql: str).
# executescript() issues an implicit COMMIT before running.
MIGRATIONS: list[tuple[int, str]] = [
    (1, _V1_SQL),
]


def run_migrations(conn: sqlite3.Connection) -> None:
    """Apply all pending migrations in ascending version order.

    Idempotent: safe to call on a database at any version.
    """
    conn.execute(_CREATE_SCHEMA_VERSION)
    conn.commit()

    row = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()
    current = row[0] if row[0] is not None else 0

    for version, sql in MIGRATIONS:
        if version > current:
            conn.executescript(sql)
            conn.execute(
                "INSERT INTO schema_version (version) VALUES (?)", (version,)
            )
            conn.commit()
