"""redline: version history and change reconciliation for AI-assisted documents."""

__version__ = "0.1.0"
