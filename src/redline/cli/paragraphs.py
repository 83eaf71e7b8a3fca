"""redline lineage / lock / unlock / revert: paragraph-level provenance."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from redline.cli.errors import err_stale_paragraph, err_unknown_paragraph
from redline.cli.project import DEFAULT_DB, open_session, resolve_or_exit
from redline.errors import StaleParagraphError
from redline.session import DocumentSession
from redline.versions.graph import format_version_number

console = Console()


def lineage_cmd(
    version: Annotated[
        str | None,
        typer.Argument(help="Version id or number (default: current)."),
    ] = None,
    db: Annotated[Path, typer.Option("--db", help="Path to .redline.db.")] = DEFAULT_DB,
) -> None:
    """Show which version and prompt produced each paragraph."""
    with open_session(db) as (session, _cfg):
        node = resolve_or_exit(session, version) if version else session.get_current_version()
        records = session.get_paragraph_lineage(node.id)
        origins = {r.paragraph_id: _number_of(session, r.origin_version_id) for r in records}

    console.print(
        f"[bold]{format_version_number(node.number)}[/] "
        f"[dim]({' → '.join(session.graph.get_lineage(node.id))})[/]"
    )
    if not records:
        console.print("[dim]No paragraphs.[/]")
        return

    table = Table(show_header=True, header_style="bold", box=None, padding=(0, 1))
    table.add_column("Paragraph", style="dim")
    table.add_column("", width=2)
    table.add_column("From")
    table.add_column("Prompt", style="dim")
    table.add_column("Text")

    for record in records:
        text = record.current_content
        table.add_row(
            record.paragraph_id,
            "🔒" if record.is_locked else "",
            origins[record.paragraph_id],
            record.prompt or "",
            text if len(text) <= 60 else text[:59] + "…",
        )
    console.print(table)


def lock_cmd(
    paragraph: Annotated[str, typer.Argument(help="Paragraph id, e.g. v2-p0.")],
    db: Annotated[Path, typer.Option("--db", help="Path to .redline.db.")] = DEFAULT_DB,
) -> None:
    """Lock a paragraph so AI rewrites leave it untouched."""
    _set_lock(paragraph, db, locked=True)


def unlock_cmd(
    paragraph: Annotated[str, typer.Argument(help="Paragraph id, e.g. v2-p0.")],
    db: Annotated[Path, typer.Option("--db", help="Path to .redline.db.")] = DEFAULT_DB,
) -> None:
    """Unlock a paragraph."""
    _set_lock(paragraph, db, locked=False)


def revert_cmd(
    paragraph: Annotated[str, typer.Argument(help="Paragraph id, e.g. v2-p0.")],
    to: Annotated[str, typer.Option("--to", help="Version id or number to take the paragraph from.")],
    db: Annotated[Path, typer.Option("--db", help="Path to .redline.db.")] = DEFAULT_DB,
) -> None:
    """Replace one paragraph with its text from another version."""
    with open_session(db) as (session, _cfg):
        target = resolve_or_exit(session, to)
        try:
            node = session.revert_paragraph(paragraph, target.id)
        except StaleParagraphError as exc:
            console.print(err_stale_paragraph(paragraph, str(exc)))
            raise typer.Exit(1)
        except KeyError:
            console.print(err_unknown_paragraph(paragraph))
            raise typer.Exit(1)
        session.save()

    console.print(
        f"[green]✓[/] {paragraph} of {format_version_number(node.number)} "
        f"reverted to {format_version_number(target.number)}"
    )


def _set_lock(paragraph: str, db: Path, *, locked: bool) -> None:
    with open_session(db) as (session, _cfg):
        try:
            if locked:
                session.lock_paragraph(paragraph)
            else:
                session.unlock_paragraph(paragraph)
        except KeyError:
            console.print(err_unknown_paragraph(paragraph))
            raise typer.Exit(1)
        session.save()
    console.print(f"[green]✓[/] {paragraph} {'locked' if locked else 'unlocked'}")


def _number_of(session: DocumentSession, version_id: str) -> str:
    node = session.graph.resolve(version_id)
    return format_version_number(node.number) if node else version_id
