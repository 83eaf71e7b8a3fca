"""Shared helpers for commands that open an existing redline project."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import typer
from rich.console import Console

from redline.cli.errors import err_config, err_no_db, err_unknown_version
from redline.config import ConfigError, RedlineConfig, load_config
from redline.db.connection import Database
from redline.db.repository import Repository
from redline.db.schema import initialize
from redline.errors import UnknownVersionError
from redline.session import DocumentSession
from redline.versions.models import VersionNode

console = Console()

DEFAULT_DB = Path(".redline.db")


def load_config_or_exit(project_dir: Path | None = None) -> RedlineConfig:
    try:
        return load_config(project_dir)
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1)


@contextmanager
def open_session(db: Path) -> Iterator[tuple[DocumentSession, RedlineConfig]]:
    """Open the project database and yield a loaded session plus config.

    Exits with status 1 when the database does not exist or the config is
    invalid. The connection is closed on exit; callers save explicitly.
    """
    if not db.exists():
        console.print(err_no_db(str(db)))
        raise typer.Exit(1)

    cfg = load_config_or_exit(db.resolve().parent)
    conn = Database(db).connect()
    try:
        initialize(conn)
        repo = Repository(conn)
        session = DocumentSession.open(
            repo,
            settings=repo,
            thresholds=cfg.diff,
            preset=cfg.merge.preset,
            rules=cfg.merge.rules,
            autosave_policy=cfg.autosave,
        )
        yield session, cfg
    finally:
        conn.close()


def resolve_or_exit(session: DocumentSession, ref: str) -> VersionNode:
    """Resolve a version id or number, exiting with a message if unknown."""
    try:
        return session.resolve(ref)
    except UnknownVersionError:
        console.print(err_unknown_version(ref))
        raise typer.Exit(1)
