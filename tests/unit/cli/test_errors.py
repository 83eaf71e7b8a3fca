"""Tests for redline rich error messages."""

from __future__ import annotations

import pytest

from redline.cli.errors import (
    err_config,
    err_file_not_found,
    err_no_api_key,
    err_no_db,
    err_stale_paragraph,
    err_unknown_paragraph,
    err_unknown_preset,
    err_unknown_template,
    err_unknown_version,
    warn_locked_version,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _has_action(msg: str) -> bool:
    """Every error must contain an actionable instruction."""
    lower = msg.lower()
    return any(
        kw in lower
        for kw in ["run:", "set:", "export ", "redline ", "fix ", "check ", "pick ", "available"]
    )


# ---------------------------------------------------------------------------
# err_no_api_key
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "provider,expected_env",
    [
        ("openai", "OPENAI_API_KEY"),
        ("anthropic", "ANTHROPIC_API_KEY"),
        ("mistral", "MISTRAL_API_KEY"),
        ("myprovider", "MYPROVIDER_API_KEY"),
    ],
)
def test_err_no_api_key_env_var(provider: str, expected_env: str) -> None:
    msg = err_no_api_key(provider)
    assert provider in msg
    assert expected_env in msg


# ---------------------------------------------------------------------------
# Project and version errors
# ---------------------------------------------------------------------------


def test_err_no_db_points_to_init() -> None:
    msg = err_no_db("/work/.redline.db")
    assert "/work/.redline.db" in msg
    assert "redline init" in msg


def test_err_unknown_version_names_ref() -> None:
    assert "'v9'" in err_unknown_version("v9")
    assert "redline log" in err_unknown_version("v9")


def test_err_unknown_preset_lists_presets() -> None:
    msg = err_unknown_preset("yolo", ["balanced", "quick-review"])
    assert "'yolo'" in msg
    assert "balanced, quick-review" in msg


def test_err_unknown_template_without_saved_templates() -> None:
    msg = err_unknown_template("pirate", [])
    assert "(none)" in msg
    assert "--prompt" in msg


def test_err_stale_paragraph_includes_detail() -> None:
    msg = err_stale_paragraph("v2-p4", "Paragraph 5 no longer exists")
    assert "v2-p4" in msg
    assert "Paragraph 5 no longer exists" in msg


def test_warn_locked_version_mentions_branch() -> None:
    assert "branch" in warn_locked_version("2")


@pytest.mark.parametrize(
    "msg",
    [
        err_no_api_key("openai"),
        err_no_db(),
        err_unknown_version("3"),
        err_unknown_paragraph("v1-p0"),
        err_stale_paragraph("v1-p0", "gone"),
        err_unknown_preset("x", ["balanced"]),
        err_unknown_template("x", ["shorten"]),
        err_config("bad value"),
        err_file_not_found("draft.html"),
    ],
)
def test_every_error_has_action(msg: str) -> None:
    assert msg.startswith("[red]Error:[/]")
    assert _has_action(msg)
