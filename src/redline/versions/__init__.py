"""Version graph: immutable content snapshots in a branching tree."""

from redline.versions.graph import ROOT_ID, VersionGraph, format_version_number
from redline.versions.models import Checkpoint, VersionNode

__all__ = ["Checkpoint", "ROOT_ID", "VersionGraph", "VersionNode", "format_version_number"]
