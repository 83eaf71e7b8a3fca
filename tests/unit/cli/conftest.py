"""Fixtures for CLI tests: an initialized project in tmp_path."""

from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

from redline.cli.main import app
from redline.db.connection import Database
from redline.db.repository import Repository

ROOT_TEXT = "Intro para.\n\nBody para here."


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the real ~/.redline and REDLINE_* variables out of CLI tests."""
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.setattr("redline.config._GLOBAL_CONFIG_PATH", tmp_path / "home" / ".redline" / "config.yaml")
    monkeypatch.delenv("REDLINE_AI_MODEL", raising=False)
    monkeypatch.delenv("REDLINE_MERGE_PRESET", raising=False)
    # wide enough that rich does not wrap the lines asserted on
    monkeypatch.setenv("COLUMNS", "200")


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def project(tmp_path: Path, runner: CliRunner) -> Path:
    """Run ``redline init`` with ROOT_TEXT as the original version; return the db path."""
    doc = tmp_path / "draft.txt"
    doc.write_text(ROOT_TEXT, encoding="utf-8")
    result = runner.invoke(
        app,
        [
            "init", str(tmp_path / "proj"),
            "--content", str(doc),
            "--global-config", str(tmp_path / "home" / ".redline" / "config.yaml"),
        ],
    )
    assert result.exit_code == 0, result.output
    return tmp_path / "proj" / ".redline.db"


@pytest.fixture
def load_graph(project: Path):
    """Return a function that reads the stored version graph."""

    def _load():
        with Database(project) as conn:
            return Repository(conn).load_graph()

    return _load


@pytest.fixture
def load_lineage(project: Path):
    def _load():
        with Database(project) as conn:
            return {r.paragraph_id: r for r in Repository(conn).load_lineage()}

    return _load
