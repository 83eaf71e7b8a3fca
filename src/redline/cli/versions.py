"""redline commit / save / log / show / note / star: version history commands."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from redline.cli.errors import err_file_not_found, warn_locked_version
from redline.cli.project import DEFAULT_DB, open_session, resolve_or_exit
from redline.versions.graph import format_version_number

console = Console()


def commit_cmd(
    file: Annotated[Path, typer.Argument(help="File holding the new version's content.")],
    parent: Annotated[
        str | None,
        typer.Option("--parent", "-p", help="Parent version id or number (default: current)."),
    ] = None,
    note: Annotated[str | None, typer.Option("--note", "-m", help="Version note.")] = None,
    prompt: Annotated[
        str | None,
        typer.Option("--prompt", help="Instruction that produced this content, if any."),
    ] = None,
    root: Annotated[
        bool,
        typer.Option("--root", help="Create a root-level version instead of a branch."),
    ] = False,
    db: Annotated[Path, typer.Option("--db", help="Path to .redline.db.")] = DEFAULT_DB,
) -> None:
    """Record FILE as a new version."""
    if not file.exists():
        console.print(err_file_not_found(str(file)))
        raise typer.Exit(1)
    content = file.read_text(encoding="utf-8")

    with open_session(db) as (session, _cfg):
        if root:
            parent_node = session.graph.root
        elif parent is not None:
            parent_node = resolve_or_exit(session, parent)
        else:
            parent_node = session.get_current_version()

        if not parent_node.is_original and session.graph.is_locked(parent_node.id):
            console.print(warn_locked_version(parent_node.number))

        node = session.create_version(content, prompt, parent_node.id, note)
        session.save()

    console.print(
        f"[green]✓[/] Created {format_version_number(node.number)} "
        f"[dim]({node.id}, parent {parent_node.number})[/]"
    )


def log_cmd(
    show_archived: Annotated[
        bool, typer.Option("--all", "-a", help="Include archived versions.")
    ] = False,
    db: Annotated[Path, typer.Option("--db", help="Path to .redline.db.")] = DEFAULT_DB,
) -> None:
    """List versions in creation order."""
    with open_session(db) as (session, _cfg):
        graph = session.graph
        current = graph.current_version.id
        compare = graph.compare_version.id if graph.compare_version else None

        table = Table(show_header=True, header_style="bold", box=None, padding=(0, 1))
        table.add_column("", width=2)
        table.add_column("Version")
        table.add_column("Parent", style="dim")
        table.add_column("Origin", style="dim")
        table.add_column("Note / prompt")
        table.add_column("Created", style="dim")

        for node in graph.versions(include_archived=show_archived):
            marker = "*" if node.id == current else ("~" if node.id == compare else "")
            parent = graph.get(node.parent_id).number if node.parent_id else ""
            label = format_version_number(node.number)
            if node.is_starred:
                label += " ★"
            if graph.is_locked(node.id):
                label += " [dim](locked)[/]"
            table.add_row(
                marker,
                label,
                parent,
                node.origin,
                node.note or node.prompt or "",
                node.timestamp.strftime("%Y-%m-%d %H:%M"),
            )

    console.print(table)


def show_cmd(
    version: Annotated[str, typer.Argument(help="Version id or number.")],
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write the content to this file instead of stdout."),
    ] = None,
    db: Annotated[Path, typer.Option("--db", help="Path to .redline.db.")] = DEFAULT_DB,
) -> None:
    """Print (or export) the content of a version."""
    with open_session(db) as (session, _cfg):
        node = resolve_or_exit(session, version)
        lineage = " → ".join(session.get_lineage(node.id))

    if output is not None:
        output.write_text(node.content, encoding="utf-8")
        console.print(f"[green]✓[/] Wrote {format_version_number(node.number)} to {output}")
        return

    console.print(f"[bold]{format_version_number(node.number)}[/] [dim]({lineage})[/]")
    if node.note:
        console.print(f"[dim]{node.note}[/]")
    console.print(node.content, markup=False, highlight=False)


def note_cmd(
    version: Annotated[str, typer.Argument(help="Version id or number.")],
    text: Annotated[str, typer.Argument(help="New note text.")],
    db: Annotated[Path, typer.Option("--db", help="Path to .redline.db.")] = DEFAULT_DB,
) -> None:
    """Set the note of a version."""
    with open_session(db) as (session, _cfg):
        node = resolve_or_exit(session, version)
        session.graph.set_note(node.id, text)
        session.save()
    console.print(f"[green]✓[/] Note updated on {format_version_number(node.number)}")


def star_cmd(
    version: Annotated[str, typer.Argument(help="Version id or number.")],
    db: Annotated[Path, typer.Option("--db", help="Path to .redline.db.")] = DEFAULT_DB,
) -> None:
    """Toggle the star on a version."""
    with open_session(db) as (session, _cfg):
        node = session.graph.toggle_star(resolve_or_exit(session, version).id)
        session.save()
    state = "starred" if node.is_starred else "unstarred"
    console.print(f"[green]✓[/] {format_version_number(node.number)} {state}")


def checkout_cmd(
    version: Annotated[str, typer.Argument(help="Version id or number.")],
    compare: Annotated[
        bool,
        typer.Option("--compare", help="Select as the compare version instead of the current one."),
    ] = False,
    db: Annotated[Path, typer.Option("--db", help="Path to .redline.db.")] = DEFAULT_DB,
) -> None:
    """Make a version current (or the compare version)."""
    with open_session(db) as (session, _cfg):
        node = resolve_or_exit(session, version)
        if compare:
            session.set_compare_version(node.id)
        else:
            session.set_current_version(node.id)
        session.save()
    role = "compare" if compare else "current"
    console.print(f"[green]✓[/] {format_version_number(node.number)} is now the {role} version")


def save_cmd(
    file: Annotated[Path, typer.Argument(help="File holding the edited content.")],
    version: Annotated[
        str | None,
        typer.Argument(help="Version id or number to overwrite (default: current)."),
    ] = None,
    db: Annotated[Path, typer.Option("--db", help="Path to .redline.db.")] = DEFAULT_DB,
) -> None:
    """Overwrite a version with FILE in place, checkpointing per autosave settings."""
    if not file.exists():
        console.print(err_file_not_found(str(file)))
        raise typer.Exit(1)
    content = file.read_text(encoding="utf-8")

    with open_session(db) as (session, _cfg):
        node = resolve_or_exit(session, version) if version else session.get_current_version()
        checkpoint = session.autosave(content, node.id)
        session.save()

    label = format_version_number(node.number)
    if checkpoint is None:
        console.print(f"[green]✓[/] Saved {label} [dim](no checkpoint due)[/]")
    else:
        console.print(f"[green]✓[/] Saved {label} [dim](checkpoint {checkpoint.id})[/]")
