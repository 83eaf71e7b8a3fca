"""redline status command.

Shows project overview: config, database, current / compare versions and
locked paragraphs.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.panel import Panel

from redline.cli.project import DEFAULT_DB, load_config_or_exit, open_session
from redline.config import RedlineConfig
from redline.session import DocumentSession
from redline.versions.graph import format_version_number

console = Console()


def status_cmd(
    db: Annotated[
        Path,
        typer.Option("--db", help="Path to .redline.db."),
    ] = DEFAULT_DB,
) -> None:
    """Show project status: versions, selection and locked paragraphs."""
    cfg = load_config_or_exit(db.resolve().parent)
    _show_project_panel(db, cfg)

    if not db.exists():
        console.print(
            Panel(
                "[yellow]No database found.[/]\n"
                "  Run:  redline init",
                title="[bold]History[/]",
                expand=False,
            )
        )
        return

    with open_session(db) as (session, _cfg):
        _show_history_panel(session)


# ---------------------------------------------------------------------------
# Panel renderers
# ---------------------------------------------------------------------------


def _show_project_panel(db: Path, cfg: RedlineConfig) -> None:
    project_name = cfg.project.name or "(no config)"
    db_info = f"{db}"
    if db.exists():
        size_kb = db.stat().st_size / 1024
        db_info = f"{db} ({size_kb:.0f} KB)"

    lines = [
        f"Project:   [bold]{project_name}[/]",
        f"Database:  {db_info}",
        f"Preset:    {cfg.merge.preset}"
        + (f" [dim](+{len(cfg.merge.rules)} custom rule(s))[/]" if cfg.merge.rules else ""),
        f"AI model:  {cfg.ai.model}",
        f"Autosave:  {_autosave_summary(cfg)}",
    ]
    console.print(Panel("\n".join(lines), title="[bold]Project[/]", expand=False))


def _show_history_panel(session: DocumentSession) -> None:
    graph = session.graph
    current = session.get_current_version()
    compare = session.get_compare_version()
    versions = graph.versions()
    archived = sum(1 for v in versions if v.is_archived)
    branches = sum(1 for v in versions if v.is_branch)
    locked = session.tracker.locked_indices(current.id)

    lines = [
        f"Versions:  [bold]{len(versions)}[/]  |  Branches: [bold]{branches}[/]  |  "
        f"Archived: [bold]{archived}[/]",
        f"Current:   [bold]{format_version_number(current.number)}[/] "
        f"[dim]({' → '.join(graph.get_lineage(current.id))})[/]",
        f"Compare:   {format_version_number(compare.number) if compare else '[dim](none)[/]'}",
        f"Latest:    {format_version_number(graph.latest().number)}",
    ]
    if locked:
        ids = ", ".join(f"{current.id}-p{i}" for i in sorted(locked))
        lines.append(f"Locked:    {ids}")
    if graph.is_locked(current.id):
        lines.append("[yellow]⚠[/] Current version has later versions; new edits will branch.")

    console.print(Panel("\n".join(lines), title="[bold]History[/]", expand=False))


def _autosave_summary(cfg: RedlineConfig) -> str:
    autosave = cfg.autosave
    if not autosave.enabled:
        return "[dim]off[/]"
    return f"every {autosave.interval_seconds}s or {autosave.min_changed_lines} changed lines"
