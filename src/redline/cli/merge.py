"""redline merge: classify alternatives against a base and fold in the safe ones."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from redline.cli.errors import err_unknown_preset
from redline.cli.project import DEFAULT_DB, open_session, resolve_or_exit
from redline.diff.models import GRANULARITIES, PARAGRAPH
from redline.merge.rules import PRESETS
from redline.merge.types import MergeResult
from redline.versions.graph import format_version_number

console = Console()

_IMPACT_STYLE: dict[str, str] = {
    "critical": "red",
    "important": "yellow",
    "normal": "dim",
}


def merge_cmd(
    base: Annotated[str, typer.Argument(help="Base version id or number.")],
    compares: Annotated[
        list[str],
        typer.Argument(help="One or more compare version ids or numbers."),
    ],
    preset: Annotated[
        str | None,
        typer.Option("--preset", help="Merge preset (default from redline.yaml)."),
    ] = None,
    granularity: Annotated[
        str,
        typer.Option("--granularity", "-g", help="paragraph | sentence | word."),
    ] = PARAGRAPH,
    write: Annotated[
        bool,
        typer.Option("--write", "-w", help="Store the merged content as a new version."),
    ] = False,
    note: Annotated[str | None, typer.Option("--note", "-m", help="Note for the merged version.")] = None,
    db: Annotated[Path, typer.Option("--db", help="Path to .redline.db.")] = DEFAULT_DB,
) -> None:
    """Classify the changes from BASE to each COMPARE version and auto-resolve them."""
    if preset is not None and preset not in PRESETS:
        console.print(err_unknown_preset(preset, list(PRESETS)))
        raise typer.Exit(1)
    if granularity not in GRANULARITIES:
        console.print(
            f"[red]Error:[/] Unknown granularity '{granularity}'.\n"
            "  Use one of: paragraph, sentence, word"
        )
        raise typer.Exit(1)

    with open_session(db) as (session, cfg):
        base_node = resolve_or_exit(session, base)
        compare_ids = [resolve_or_exit(session, ref).id for ref in compares]
        result = session.classify_and_merge(
            base_node.id, compare_ids, preset, granularity=granularity
        )
        _print_result(result, preset or cfg.merge.preset)

        if write:
            node = session.commit_merge(result, base_node.id, note)
            session.save()
            console.print(
                f"\n[green]✓[/] Merged content saved as {format_version_number(node.number)} "
                f"[dim]({len(result.outcome.applied)} applied, {len(result.outcome.skipped)} skipped)[/]"
            )


def _print_result(result: MergeResult, preset_id: str) -> None:
    if not result.changes:
        console.print("[dim]No differences to merge.[/]")
        return

    table = Table(show_header=True, header_style="bold", padding=(0, 1))
    table.add_column("#", style="dim")
    table.add_column("Type")
    table.add_column("Impact")
    table.add_column("Section", style="dim")
    table.add_column("Status")
    table.add_column("Alternatives")
    table.add_column("Rule", style="dim")

    for change in result.changes:
        style = _IMPACT_STYLE.get(change.impact, "")
        alternatives = ", ".join(
            format_version_number(a.version_number) + (" (manual)" if a.is_manual else "")
            for a in change.alternatives
        )
        status = change.status
        if change.status == "auto-handled":
            status = f"[green]{status}[/]"
        table.add_row(
            change.id,
            change.type,
            f"[{style}]{change.impact}[/]",
            change.section,
            status,
            alternatives,
            change.rule_applied or "",
        )
    console.print(table)

    stats = result.stats
    lines = [
        f"Preset:       [bold]{preset_id}[/]",
        f"Changes:      [bold]{stats.total}[/]",
        f"Critical:     [red]{stats.critical}[/]  Important: [yellow]{stats.important}[/]  "
        f"Normal: {stats.normal}",
        f"Auto-handled: [green]{stats.auto_handled}[/]",
    ]
    console.print(Panel("\n".join(lines), title="[bold]Merge review[/]", expand=False))
