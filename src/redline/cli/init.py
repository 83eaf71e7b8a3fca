"""redline init: create the project database and config.

Creates:
  .redline.db              (version history with schema and the root version)
  redline.yaml             (project config: diff thresholds, merge preset, AI model)
  ~/.redline/config.yaml   (global defaults, created once, mode 0o600)
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from redline.cli.errors import err_file_not_found
from redline.config import ensure_global_config
from redline.db.connection import Database
from redline.db.repository import Repository
from redline.db.schema import initialize
from redline.session import DocumentSession
from redline.versions.graph import INITIAL_CONTENT

console = Console()

_DEFAULT_PROJECT_DIR = Path(".")


def init_cmd(
    project_dir: Annotated[
        Path,
        typer.Argument(help="Directory to initialize. Defaults to current directory."),
    ] = _DEFAULT_PROJECT_DIR,
    content: Annotated[
        Path | None,
        typer.Option("--content", "-c", help="File whose content becomes the original version."),
    ] = None,
    name: Annotated[
        str,
        typer.Option("--name", help="Project name written to redline.yaml."),
    ] = "",
    global_config: Annotated[
        Path | None,
        typer.Option("--global-config", hidden=True, help="Override ~/.redline/config.yaml (for testing)."),
    ] = None,
) -> None:
    """Initialize a redline project with an original (root) version."""
    project_dir = project_dir.resolve()
    project_dir.mkdir(parents=True, exist_ok=True)
    db_path = project_dir / ".redline.db"

    if db_path.exists():
        console.print(f"[yellow]⚠[/]  {db_path} already exists. Existing history is preserved.")
        raise typer.Exit(0)

    if content is not None and not content.exists():
        console.print(err_file_not_found(str(content)))
        raise typer.Exit(1)
    initial = content.read_text(encoding="utf-8") if content is not None else INITIAL_CONTENT

    _create_database(db_path, initial)
    _create_redline_yaml(project_dir, name or project_dir.name)

    cfg_path = ensure_global_config(global_config)
    console.print(f"  [green]✓[/] {cfg_path} (global config)")

    console.print(f"\n[bold green]✓ Project '{name or project_dir.name}' initialized.[/]")
    console.print("\nNext steps:")
    console.print("  1. redline commit <file> --note \"...\"   (record a new version)")
    console.print("  2. redline rewrite --prompt \"...\"       (AI edit of the current version)")
    console.print("  3. redline diff 1 2                     (compare two versions)")
    console.print("  4. redline merge 1 2 3 --write          (reconcile alternatives)")


def _create_database(db_path: Path, initial: str) -> None:
    conn = Database(db_path).connect()
    try:
        initialize(conn)
        repo = Repository(conn)
        session = DocumentSession(store=repo, settings=repo, initial_content=initial)
        session.save()
    finally:
        conn.close()
    console.print("  [green]✓[/] .redline.db")


def _create_redline_yaml(project_dir: Path, project_name: str) -> None:
    target = project_dir / "redline.yaml"
    if target.exists():
        console.print("  [dim]-[/] redline.yaml (kept)")
        return
    content = (
        f'project:\n'
        f'  name: "{project_name}"\n'
        f'\n'
        f'merge:\n'
        f'  preset: balanced\n'
        f'  # Custom rules run before the preset rules:\n'
        f'  # rules:\n'
        f'  #   - id: accept-typos\n'
        f'  #     name: Auto-accept spelling fixes\n'
        f'  #     when: {{change_types: [spelling]}}\n'
        f'  #     then: {{type: auto-accept, alternative: 0}}\n'
        f'\n'
        f'# diff:\n'
        f'#   move: 0.7\n'
        f'#   modification: 0.9\n'
        f'\n'
        f'autosave:\n'
        f'  enabled: true\n'
        f'  interval_seconds: 600\n'
        f'  min_changed_lines: 50\n'
    )
    target.write_text(content, encoding="utf-8")
    console.print("  [green]✓[/] redline.yaml")
