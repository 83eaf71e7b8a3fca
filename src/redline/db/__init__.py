"""Redline database layer."""

from redline.db.connection import Database
from redline.db.migrations import MIGRATIONS, run_migrations
from redline.db.repository import Repository
from redline.db.schema import CURRENT_VERSION, initialize, schema_version

__all__ = [
    "CURRENT_VERSION",
    "Database",
    "MIGRATIONS",
    "Repository",
    "initialize",
    "run_migrations",
    "schema_version",
]
