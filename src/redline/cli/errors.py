"""Redline rich error messages: actionable feedback.

Every error shown to the user must contain:
  1. What went wrong (clear cause)
  2. The exact action the user should take to fix it

Usage:
    from redline.cli.errors import err_no_db
    console.print(err_no_db(".redline.db"))
    raise typer.Exit(1)
"""

from __future__ import annotations


def err_no_api_key(provider: str) -> str:
    """No API key for *provider*.

    Example:
        No API key for 'anthropic'. Set:  export ANTHROPIC_API_KEY=sk-...
    """
    env_map = {
        "openai": "OPENAI_API_KEY",
        "anthropic": "ANTHROPIC_API_KEY",
        "cohere": "COHERE_API_KEY",
        "gemini": "GEMINI_API_KEY",
        "mistral": "MISTRAL_API_KEY",
        "azure": "AZURE_API_KEY",
    }
    env_var = env_map.get(provider.lower(), f"{provider.upper()}_API_KEY")
    return (
        f"[red]Error:[/] No API key for '{provider}'.\n"
        f"  Set:  export {env_var}=sk-..."
    )


def err_no_db(db_path: str = ".redline.db") -> str:
    """No .redline.db found."""
    return (
        f"[red]Error:[/] No database found at '{db_path}'.\n"
        "  Run:  redline init"
    )


def err_unknown_version(ref: str) -> str:
    return (
        f"[red]Error:[/] Unknown version '{ref}'.\n"
        "  Run:  redline log  to see all versions."
    )


def err_unknown_paragraph(pid: str) -> str:
    return (
        f"[red]Error:[/] No lineage recorded for paragraph '{pid}'.\n"
        "  Run:  redline lineage <version>  to list paragraph ids."
    )


def err_stale_paragraph(pid: str, detail: str) -> str:
    """Revert target no longer has the paragraph."""
    return (
        f"[red]Error:[/] Cannot revert '{pid}': {detail}\n"
        "  Pick a target version that still has this paragraph."
    )


def err_unknown_preset(preset: str, known: list[str]) -> str:
    return (
        f"[red]Error:[/] Unknown merge preset '{preset}'.\n"
        f"  Available presets: {', '.join(known)}"
    )


def err_unknown_template(name: str, known: list[str]) -> str:
    known_list = ", ".join(known) if known else "(none)"
    return (
        f"[red]Error:[/] Unknown rewrite template '{name}'.\n"
        f"  Available templates: {known_list}\n"
        "  Or pass your own instruction:  redline rewrite --prompt \"...\""
    )


def err_config(message: str, config_path: str = "redline.yaml") -> str:
    """Config file is invalid."""
    return (
        f"[red]Error:[/] Invalid configuration: {message}\n"
        f"  Fix {config_path} (or ~/.redline/config.yaml) and try again."
    )


def err_file_not_found(path: str) -> str:
    return (
        f"[red]Error:[/] File not found: '{path}'\n"
        "  Check the path and try again."
    )


def warn_locked_version(number: str) -> str:
    """Committing on top of a version that already has successors."""
    return (
        f"[yellow]⚠[/] Version {number} already has later versions.\n"
        "  The new version is created as a branch; the existing ones are unchanged."
    )
