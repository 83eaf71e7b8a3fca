"""Diff engine: segmentation, similarity, and change detection."""

from redline.diff.engine import change_scale, diff, diff_units, overall_similarity, summarize
from redline.diff.models import Change, DiffThresholds
from redline.diff.similarity import similarity, similarity_matrix
from redline.diff.text import HtmlTextExtractor, Segment, segment, units

__all__ = [
    "Change",
    "DiffThresholds",
    "HtmlTextExtractor",
    "Segment",
    "change_scale",
    "diff",
    "diff_units",
    "overall_similarity",
    "segment",
    "similarity",
    "similarity_matrix",
    "summarize",
    "units",
]
