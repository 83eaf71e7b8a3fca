"""Tests for the redline diff command."""

from __future__ import annotations

from pathlib import Path

from typer.testing import CliRunner

from redline.cli.main import app


def _commit(runner: CliRunner, db: Path, content: str) -> None:
    doc = db.parent / "next.txt"
    doc.write_text(content, encoding="utf-8")
    result = runner.invoke(app, ["commit", str(doc), "--db", str(db)])
    assert result.exit_code == 0, result.output


def test_diff_reports_changes(runner, project) -> None:
    _commit(runner, project, "Intro para.\n\nBody para rewritten completely now.")
    result = runner.invoke(app, ["diff", "0", "1", "--db", str(project)])
    assert result.exit_code == 0, result.output
    assert "V0 → V1" in result.output
    assert "1 replacement" in result.output
    assert "similarity" in result.output


def test_diff_identical_versions(runner, project) -> None:
    _commit(runner, project, "Intro para.\n\nBody para here.")
    result = runner.invoke(app, ["diff", "0", "1", "--db", str(project)])
    assert result.exit_code == 0, result.output
    assert "no paragraph-level changes" in result.output


def test_diff_word_granularity(runner, project) -> None:
    _commit(runner, project, "Intro para.\n\nBody para here now.")
    result = runner.invoke(app, ["diff", "0", "1", "-g", "word", "--db", str(project)])
    assert result.exit_code == 0, result.output
    assert "1 insertion" in result.output


def test_diff_unknown_granularity(runner, project) -> None:
    result = runner.invoke(app, ["diff", "0", "0", "-g", "chapter", "--db", str(project)])
    assert result.exit_code == 1
    assert "Unknown granularity" in result.output


def test_diff_unknown_version(runner, project) -> None:
    result = runner.invoke(app, ["diff", "0", "5", "--db", str(project)])
    assert result.exit_code == 1
    assert "Unknown version" in result.output
