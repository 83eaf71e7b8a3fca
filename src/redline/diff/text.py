"""Content segmentation: markup stripping and unit tokenization.

Content is an opaque rich-text blob (editor HTML) or plain text. The diff
engine, the merge engine and the lineage tracker all work on *segments*:
units of text at a granularity, each carrying its span in a source string so
edits can be spliced back without touching neighbouring bytes.

- paragraph: block elements (p, h1–h6, li, blockquote, pre) found in the raw
  markup; plain text is split on blank lines. Spans index the raw content.
- sentence: the plain text split after ``[.!?]+`` terminators, tolerating
  common abbreviations and single-letter initials. Spans index the plain text.
- word: whitespace-delimited tokens of the plain text.
"""

from __future__ import annotations

import html
import re
from dataclasses import dataclass

from bs4 import BeautifulSoup

from redline.diff.models import GRANULARITIES, PARAGRAPH, SENTENCE
from redline.protocols import TextExtractor

_MARKUP_RE = re.compile(r"<[a-zA-Z!/][^>]*>")
_BLOCK_RE = re.compile(
    r"<(p|h[1-6]|li|blockquote|pre)\b[^>]*>.*?</\1\s*>",
    re.IGNORECASE | re.DOTALL,
)
_BLANK_LINE_RE = re.compile(r"\n[ \t]*\n\s*")
# A terminator run followed by whitespace/end, or a paragraph break.
_SENTENCE_BREAK_RE = re.compile(r"[.!?]+(?=\s|$)|\n[ \t]*\n")
_WORD_RE = re.compile(r"\S+")

_ABBREVIATIONS: frozenset[str] = frozenset(
    [
        "mr", "mrs", "ms", "dr", "prof", "sr", "jr", "st", "vs", "etc",
        "e.g", "i.e", "inc", "ltd", "co", "no", "fig", "approx", "dept", "cf",
    ]
)


@dataclass(frozen=True)
class Segment:
    """A unit of text and its ``[start, end)`` span in the source string."""

    start: int
    end: int
    text: str


class HtmlTextExtractor:
    """Default :class:`~redline.protocols.TextExtractor` built on BeautifulSoup.

    Fragments without markup are returned unchanged; otherwise script and
    style elements are dropped and the remaining text content returned.
    """

    def to_text(self, fragment: str) -> str:
        if not _MARKUP_RE.search(fragment):
            return fragment
        soup = BeautifulSoup(fragment, "html.parser")
        for tag in soup.find_all(["script", "style"]):
            tag.decompose()
        return soup.get_text()


_DEFAULT_EXTRACTOR = HtmlTextExtractor()


def looks_like_markup(content: str) -> bool:
    return bool(_MARKUP_RE.search(content))


def paragraph_segments(content: str, extractor: TextExtractor | None = None) -> list[Segment]:
    """Split *content* into paragraph segments with spans into *content*."""
    extractor = extractor or _DEFAULT_EXTRACTOR
    if not content.strip():
        return []

    if looks_like_markup(content):
        matches = list(_BLOCK_RE.finditer(content))
        if not matches:
            text = _collapse(extractor.to_text(content))
            return [Segment(0, len(content), text)] if text else []
        segments: list[Segment] = []
        for match in matches:
            text = _collapse(extractor.to_text(match.group(0)))
            if text:
                segments.append(Segment(match.start(), match.end(), text))
        return segments

    segments = []
    pos = 0
    for match in _BLANK_LINE_RE.finditer(content):
        _append_stripped(segments, content, pos, match.start())
        pos = match.end()
    _append_stripped(segments, content, pos, len(content))
    return segments


def plain_text(content: str, extractor: TextExtractor | None = None) -> str:
    """Return *content* without markup, paragraphs separated by blank lines."""
    if not looks_like_markup(content):
        return content
    return "\n\n".join(s.text for s in paragraph_segments(content, extractor))


def sentence_segments(text: str) -> list[Segment]:
    """Split plain *text* into sentences, terminators kept with the sentence."""
    segments: list[Segment] = []
    cursor = 0
    for match in _SENTENCE_BREAK_RE.finditer(text):
        if match.group(0).startswith("\n"):
            end = match.start()
        else:
            if _is_abbreviation(text[cursor:match.start()]):
                continue
            end = match.end()
        _append_stripped(segments, text, cursor, end)
        cursor = match.end()
    _append_stripped(segments, text, cursor, len(text))
    return segments


def word_segments(text: str) -> list[Segment]:
    """Split plain *text* into whitespace-delimited word segments."""
    return [Segment(m.start(), m.end(), m.group(0)) for m in _WORD_RE.finditer(text)]


def segment(
    content: object,
    granularity: str,
    extractor: TextExtractor | None = None,
) -> tuple[str, list[Segment]]:
    """Segment *content* at *granularity*.

    Returns ``(source, segments)`` where every segment span indexes *source*:
    the raw content for paragraphs, the extracted plain text otherwise.
    Non-string content is treated as empty.

    Raises:
        ValueError: If *granularity* is not word, sentence or paragraph.
    """
    if granularity not in GRANULARITIES:
        raise ValueError(
            f"Unknown granularity '{granularity}'. Expected one of: "
            f"{', '.join(sorted(GRANULARITIES))}"
        )
    raw = content if isinstance(content, str) else ""
    if granularity == PARAGRAPH:
        return raw, paragraph_segments(raw, extractor)

    text = plain_text(raw, extractor)
    if granularity == SENTENCE:
        return text, sentence_segments(text)
    return text, word_segments(text)


def units(content: object, granularity: str, extractor: TextExtractor | None = None) -> list[str]:
    """Return only the unit texts of :func:`segment`."""
    return [s.text for s in segment(content, granularity, extractor)[1]]


def block_payload(raw: str, text: str, *, into_markup: bool) -> str:
    """Return the form of a paragraph to splice into a document.

    Markup documents receive the raw block (plain blocks are wrapped in
    ``<p>``); plain-text documents receive the block's text.
    """
    if not into_markup:
        return text
    if looks_like_markup(raw):
        return raw
    return f"<p>{html.escape(text)}</p>"


def splice(source: str, edits: list[tuple[int, int, str]]) -> str:
    """Apply ``(start, end, replacement)`` edits to *source*.

    Edits are applied from the end of the string backwards so earlier spans
    stay valid. Overlapping edits are not supported.
    """
    result = source
    for start, end, replacement in sorted(edits, key=lambda e: (e[0], e[1]), reverse=True):
        result = result[:start] + replacement + result[end:]
    return result


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _collapse(text: str) -> str:
    return " ".join(text.split())


def _append_stripped(segments: list[Segment], source: str, start: int, end: int) -> None:
    chunk = source[start:end]
    stripped = chunk.strip()
    if not stripped:
        return
    lead = len(chunk) - len(chunk.lstrip())
    begin = start + lead
    segments.append(Segment(begin, begin + len(stripped), stripped))


def _is_abbreviation(preceding: str) -> bool:
    words = preceding.split()
    if not words:
        return False
    word = words[-1].lstrip("(\"'[").lower()
    if word in _ABBREVIATIONS:
        return True
    return len(word) == 1 and word.isalpha()
