"""Paragraph lineage: which version and prompt produced each paragraph."""

from redline.lineage.tracker import LineageTracker, ParagraphLineage, paragraph_id

__all__ = ["LineageTracker", "ParagraphLineage", "paragraph_id"]
