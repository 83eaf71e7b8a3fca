"""redline diff: show the changes between two versions."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from redline.cli.project import DEFAULT_DB, open_session, resolve_or_exit
from redline.diff.engine import change_scale, overall_similarity, summarize
from redline.diff.models import GRANULARITIES, PARAGRAPH
from redline.versions.graph import format_version_number

console = Console()

_KIND_STYLE: dict[str, str] = {
    "insertion": "green",
    "deletion": "red",
    "modification": "yellow",
    "replacement": "magenta",
    "moved": "cyan",
}


def diff_cmd(
    base: Annotated[str, typer.Argument(help="Base version id or number.")],
    target: Annotated[str, typer.Argument(help="Target version id or number.")],
    granularity: Annotated[
        str,
        typer.Option("--granularity", "-g", help="paragraph | sentence | word."),
    ] = PARAGRAPH,
    db: Annotated[Path, typer.Option("--db", help="Path to .redline.db.")] = DEFAULT_DB,
) -> None:
    """List the changes from BASE to TARGET."""
    if granularity not in GRANULARITIES:
        console.print(
            f"[red]Error:[/] Unknown granularity '{granularity}'.\n"
            "  Use one of: paragraph, sentence, word"
        )
        raise typer.Exit(1)

    with open_session(db) as (session, _cfg):
        left = resolve_or_exit(session, base)
        right = resolve_or_exit(session, target)
        changes = session.diff(left.id, right.id, granularity)
        score = overall_similarity(left.content, right.content, session.extractor)

    title = f"{format_version_number(left.number)} → {format_version_number(right.number)}"
    if not changes:
        console.print(f"[dim]{title}: no {granularity}-level changes.[/]")
        return

    table = Table(title=title, show_header=True, header_style="bold", padding=(0, 1))
    table.add_column("#", style="dim")
    table.add_column("Kind")
    table.add_column("Pos", justify="right", style="dim")
    table.add_column("Before")
    table.add_column("After")

    for change in changes:
        style = _KIND_STYLE.get(change.kind, "")
        table.add_row(
            change.id,
            f"[{style}]{change.kind}[/]" if style else change.kind,
            f"{change.position:.0f}%",
            _clip(change.left_unit),
            _clip(change.right_unit),
        )
    console.print(table)

    counts = ", ".join(f"{n} {kind}" for kind, n in summarize(changes).items() if n)
    console.print(f"{counts}  [dim]|  similarity {score:.0%} ({change_scale(score)})[/]")


def _clip(text: str | None, width: int = 60) -> str:
    if not text:
        return ""
    return text if len(text) <= width else text[: width - 1] + "…"
