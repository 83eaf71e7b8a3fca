"""Exception taxonomy for the redline core.

Diff and similarity functions never raise; everything else raises one of the
types below. Recoverable conditions (e.g. a dangling parent id) are reported
with ``warnings.warn`` instead.
"""

from __future__ import annotations


class RedlineError(Exception):
    """Base class for all redline core errors."""


class UnknownVersionError(RedlineError, KeyError):
    """Raised when a version id (or number) is not in the version graph."""

    def __str__(self) -> str:
        return f"Unknown version: {self.args[0]!r}" if self.args else "Unknown version"


class LineageCycleError(RedlineError):
    """Raised when walking parent links does not reach the root."""


class StaleParagraphError(RedlineError, LookupError):
    """Raised when a paragraph index no longer exists in a version's content.

    The operation that raised it has not modified anything.
    """


class UnknownPresetError(RedlineError, KeyError):
    """Raised when a merge preset id is not registered."""

    def __str__(self) -> str:
        return f"Unknown merge preset: {self.args[0]!r}" if self.args else "Unknown merge preset"


class RuleError(RedlineError, ValueError):
    """Raised when a merge rule definition is malformed."""
