"""redline rewrite: AI edit of the current version.

Locked paragraphs are restored after the model replies, so they carry over
to the new version unchanged.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from redline.ai.rewrite import make_edit_function
from redline.cli.errors import err_no_api_key, err_unknown_template
from redline.cli.project import DEFAULT_DB, open_session
from redline.versions.graph import format_version_number

console = Console()


def rewrite_cmd(
    prompt: Annotated[
        str | None,
        typer.Option("--prompt", "-p", help="Instruction for the rewrite."),
    ] = None,
    template: Annotated[
        str | None,
        typer.Option("--template", "-t", help="Use a saved rewrite template instead of --prompt."),
    ] = None,
    model: Annotated[
        str | None,
        typer.Option("--model", help="LiteLLM model string (default from redline.yaml)."),
    ] = None,
    note: Annotated[str | None, typer.Option("--note", "-m", help="Note for the new version.")] = None,
    db: Annotated[Path, typer.Option("--db", help="Path to .redline.db.")] = DEFAULT_DB,
) -> None:
    """Rewrite the current version with an AI model and store the result as a new version."""
    if (prompt is None) == (template is None):
        console.print(
            "[red]Error:[/] Pass exactly one of --prompt or --template.\n"
            "  List templates:  redline templates"
        )
        raise typer.Exit(1)

    with open_session(db) as (session, cfg):
        if template is not None:
            templates = session.rewrite_templates()
            if template not in templates:
                console.print(err_unknown_template(template, sorted(templates)))
                raise typer.Exit(1)
            prompt = templates[template]

        model_name = model or cfg.ai.model
        try:
            edit_fn = make_edit_function(
                model_name, max_tokens=cfg.ai.max_tokens, temperature=cfg.ai.temperature
            )
        except EnvironmentError:
            provider = model_name.split("/")[0] if "/" in model_name else "openai"
            console.print(err_no_api_key(provider))
            raise typer.Exit(1)

        parent = session.get_current_version()
        locked = session.tracker.locked_indices(parent.id)
        with console.status(f"Rewriting {format_version_number(parent.number)} with {model_name}…"):
            node = session.apply_ai_edit(prompt, edit_fn, note=note, model=model_name)
        session.save()

    console.print(
        f"[green]✓[/] Created {format_version_number(node.number)} from "
        f"{format_version_number(parent.number)}"
        + (f" [dim]({len(locked)} locked paragraph(s) kept)[/]" if locked else "")
    )


def templates_cmd(
    add: Annotated[
        str | None,
        typer.Option("--add", help="Name of a template to save (requires --prompt)."),
    ] = None,
    prompt: Annotated[
        str | None,
        typer.Option("--prompt", "-p", help="Prompt text of the template to save."),
    ] = None,
    db: Annotated[Path, typer.Option("--db", help="Path to .redline.db.")] = DEFAULT_DB,
) -> None:
    """List rewrite templates, or save a new one."""
    if add is not None and not prompt:
        console.print("[red]Error:[/] --add needs the template text.\n  Run:  redline templates --add NAME --prompt \"...\"")
        raise typer.Exit(1)

    with open_session(db) as (session, _cfg):
        if add is not None:
            session.save_rewrite_template(add, prompt)
            console.print(f"[green]✓[/] Template '{add}' saved")
            return
        templates = session.rewrite_templates()

    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column("Name", style="bold")
    table.add_column("Prompt")
    for name, text in sorted(templates.items()):
        table.add_row(name, text)
    console.print(table)
