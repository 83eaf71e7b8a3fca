"""Redline CLI entry point."""

from __future__ import annotations

import importlib.metadata
from typing import Annotated

import typer

from redline.cli.diff import diff_cmd
from redline.cli.init import init_cmd
from redline.cli.merge import merge_cmd
from redline.cli.paragraphs import lineage_cmd, lock_cmd, revert_cmd, unlock_cmd
from redline.cli.rewrite import rewrite_cmd, templates_cmd
from redline.cli.status import status_cmd
from redline.cli.versions import checkout_cmd, commit_cmd, log_cmd, note_cmd, save_cmd, show_cmd, star_cmd


def _installed_version() -> str:
    try:
        return importlib.metadata.version("redline")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"redline {_installed_version()}")
        raise typer.Exit()


app = typer.Typer(
    name="redline",
    help=(
        "Redline: version history and change reconciliation for AI-assisted documents.\n\n"
        "  redline rewrite   AI edit of the current version (locked paragraphs kept).\n"
        "  redline merge     Classify alternatives against a base and fold in the safe ones."
    ),
    add_completion=False,
)


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
) -> None:
    """Redline: version history and change reconciliation for AI-assisted documents."""


app.command("init")(init_cmd)
app.command("commit")(commit_cmd)
app.command("save")(save_cmd)
app.command("log")(log_cmd)
app.command("show")(show_cmd)
app.command("note")(note_cmd)
app.command("star")(star_cmd)
app.command("checkout")(checkout_cmd)
app.command("diff")(diff_cmd)
app.command("merge")(merge_cmd)
app.command("lineage")(lineage_cmd)
app.command("lock")(lock_cmd)
app.command("unlock")(unlock_cmd)
app.command("revert")(revert_cmd)
app.command("rewrite")(rewrite_cmd)
app.command("templates")(templates_cmd)
app.command("status")(status_cmd)


@app.command("version")
def version_cmd() -> None:
    """Show the installed redline version."""
    typer.echo(f"redline {_installed_version()}")


if __name__ == "__main__":
    app()
