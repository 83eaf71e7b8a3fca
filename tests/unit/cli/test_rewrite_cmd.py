"""Tests for the redline rewrite and templates commands."""

from __future__ import annotations

from unittest.mock import patch

from redline.ai.templates import DEFAULT_REWRITE_TEMPLATES
from redline.cli.main import app
from redline.config import AiCfg


class _FakeEdit:
    def __init__(self, reply: str) -> None:
        self.reply = reply
        self.prompts: list[str] = []

    def __call__(self, prompt: str, content: str) -> str:
        self.prompts.append(prompt)
        return self.reply


def test_rewrite_creates_ai_version(runner, project, load_graph) -> None:
    edit = _FakeEdit("Intro para.\n\nBody para, now tighter.")
    with patch("redline.cli.rewrite.make_edit_function", return_value=edit) as factory:
        result = runner.invoke(app, ["rewrite", "--prompt", "tighten", "-m", "tighter", "--db", str(project)])

    assert result.exit_code == 0, result.output
    assert "Created V1 from V0" in result.output
    assert edit.prompts == ["tighten"]
    assert factory.call_args.args == (AiCfg().model,)

    v1 = load_graph().get("v1")
    assert v1.content == "Intro para.\n\nBody para, now tighter."
    assert v1.origin == "ai"
    assert v1.prompt == "tighten"
    assert v1.note == "tighter"
    assert v1.model == AiCfg().model


def test_rewrite_keeps_locked_paragraphs(runner, project, load_graph, load_lineage) -> None:
    runner.invoke(app, ["lock", "v0-p0", "--db", str(project)])
    edit = _FakeEdit("Intro para. Reworded.\n\nBody para here.")
    with patch("redline.cli.rewrite.make_edit_function", return_value=edit):
        result = runner.invoke(app, ["rewrite", "-p", "reword", "--db", str(project)])

    assert result.exit_code == 0, result.output
    assert "1 locked paragraph(s) kept" in result.output
    assert load_graph().get("v1").content == "Intro para.\n\nBody para here."
    assert load_lineage()["v1-p0"].is_locked


def test_rewrite_model_override(runner, project, load_graph) -> None:
    with patch("redline.cli.rewrite.make_edit_function", return_value=_FakeEdit("New.")) as factory:
        runner.invoke(app, ["rewrite", "-p", "x", "--model", "ollama/llama3", "--db", str(project)])
    assert factory.call_args.args == ("ollama/llama3",)
    assert load_graph().get("v1").model == "ollama/llama3"


def test_rewrite_with_template(runner, project) -> None:
    edit = _FakeEdit("Short.")
    with patch("redline.cli.rewrite.make_edit_function", return_value=edit):
        result = runner.invoke(app, ["rewrite", "--template", "shorten", "--db", str(project)])
    assert result.exit_code == 0, result.output
    assert edit.prompts == [DEFAULT_REWRITE_TEMPLATES["shorten"]]


def test_rewrite_unknown_template(runner, project) -> None:
    result = runner.invoke(app, ["rewrite", "-t", "pirate", "--db", str(project)])
    assert result.exit_code == 1
    assert "Unknown rewrite template 'pirate'" in result.output


def test_rewrite_needs_exactly_one_instruction(runner, project) -> None:
    neither = runner.invoke(app, ["rewrite", "--db", str(project)])
    both = runner.invoke(app, ["rewrite", "-p", "x", "-t", "shorten", "--db", str(project)])
    assert neither.exit_code == 1
    assert both.exit_code == 1
    assert "exactly one of --prompt or --template" in both.output


def test_rewrite_missing_api_key(runner, project, load_graph) -> None:
    with patch("redline.cli.rewrite.make_edit_function", side_effect=EnvironmentError("no key")):
        result = runner.invoke(app, ["rewrite", "-p", "x", "--model", "openai/gpt-4o", "--db", str(project)])
    assert result.exit_code == 1
    assert "OPENAI_API_KEY" in result.output
    assert len(load_graph()) == 1


# ---------------------------------------------------------------------------
# templates
# ---------------------------------------------------------------------------


def test_templates_lists_defaults(runner, project) -> None:
    result = runner.invoke(app, ["templates", "--db", str(project)])
    assert result.exit_code == 0, result.output
    for name in DEFAULT_REWRITE_TEMPLATES:
        assert name in result.output


def test_templates_add_then_use(runner, project) -> None:
    added = runner.invoke(
        app, ["templates", "--add", "pirate", "--prompt", "Rewrite like a pirate.", "--db", str(project)]
    )
    assert added.exit_code == 0, added.output
    assert "Template 'pirate' saved" in added.output
    assert "pirate" in runner.invoke(app, ["templates", "--db", str(project)]).output

    edit = _FakeEdit("Arr.")
    with patch("redline.cli.rewrite.make_edit_function", return_value=edit):
        result = runner.invoke(app, ["rewrite", "-t", "pirate", "--db", str(project)])
    assert result.exit_code == 0, result.output
    assert edit.prompts == ["Rewrite like a pirate."]


def test_templates_add_needs_prompt(runner, project) -> None:
    result = runner.invoke(app, ["templates", "--add", "pirate", "--db", str(project)])
    assert result.exit_code == 1
