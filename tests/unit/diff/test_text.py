"""Tests for content segmentation and splicing."""

from __future__ import annotations

import pytest

from redline.diff.text import (
    HtmlTextExtractor,
    block_payload,
    looks_like_markup,
    paragraph_segments,
    plain_text,
    segment,
    sentence_segments,
    splice,
    units,
    word_segments,
)


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------


def test_extractor_strips_markup():
    assert HtmlTextExtractor().to_text("<p>Hello <b>world</b></p>") == "Hello world"


def test_extractor_drops_script_and_style():
    text = HtmlTextExtractor().to_text("<p>Keep</p><script>drop()</script><style>p{}</style>")
    assert text == "Keep"


def test_extractor_returns_plain_text_unchanged():
    assert HtmlTextExtractor().to_text("a < b and c > d") == "a < b and c > d"


def test_looks_like_markup():
    assert looks_like_markup("<p>x</p>")
    assert not looks_like_markup("x < y")


# ---------------------------------------------------------------------------
# Paragraphs
# ---------------------------------------------------------------------------


def test_paragraph_segments_html_spans_index_raw_content():
    content = "<h1>Title</h1>\n<p>First <em>para</em>.</p>"
    segments = paragraph_segments(content)
    assert [s.text for s in segments] == ["Title", "First para."]
    assert content[segments[1].start:segments[1].end] == "<p>First <em>para</em>.</p>"


def test_paragraph_segments_drop_empty_blocks():
    assert [s.text for s in paragraph_segments("<p></p><p> </p><p>Body</p>")] == ["Body"]


def test_paragraph_segments_markup_without_blocks_is_one_block():
    segments = paragraph_segments("<div>Loose <b>text</b></div>")
    assert len(segments) == 1
    assert segments[0].text == "Loose text"


def test_paragraph_segments_plain_text_split_on_blank_lines():
    content = "First para\nstill first.\n\n  Second para.\n \nThird."
    segments = paragraph_segments(content)
    assert [s.text for s in segments] == ["First para\nstill first.", "Second para.", "Third."]
    assert content[segments[1].start:segments[1].end] == "Second para."


def test_paragraph_segments_empty_content():
    assert paragraph_segments("") == []
    assert paragraph_segments("   \n\n ") == []


def test_plain_text_joins_blocks_with_blank_lines():
    assert plain_text("<p>One</p><p>Two</p>") == "One\n\nTwo"


# ---------------------------------------------------------------------------
# Sentences and words
# ---------------------------------------------------------------------------


def test_sentence_segments_keep_terminators():
    assert [s.text for s in sentence_segments("Hello there. How are you? Fine!")] == [
        "Hello there.",
        "How are you?",
        "Fine!",
    ]


def test_sentence_segments_tolerate_abbreviations_and_initials():
    text = "Dr. Smith met J. Doe at noon. They talked, e.g. about work."
    assert [s.text for s in sentence_segments(text)] == [
        "Dr. Smith met J. Doe at noon.",
        "They talked, e.g. about work.",
    ]


def test_sentence_segments_break_on_paragraph_boundary():
    assert [s.text for s in sentence_segments("Heading\n\nBody text.")] == ["Heading", "Body text."]


def test_sentence_segments_trailing_text_without_terminator():
    assert [s.text for s in sentence_segments("Done. And then")] == ["Done.", "And then"]


def test_word_segments():
    segments = word_segments("two  words")
    assert [s.text for s in segments] == ["two", "words"]
    assert segments[1].start == 5


# ---------------------------------------------------------------------------
# segment() / units()
# ---------------------------------------------------------------------------


def test_segment_paragraph_returns_raw_source():
    content = "<p>A</p><p>B</p>"
    source, segments = segment(content, "paragraph")
    assert source == content
    assert len(segments) == 2


def test_segment_sentence_returns_plain_source():
    source, segments = segment("<p>One. Two.</p><p>Three.</p>", "sentence")
    assert source == "One. Two.\n\nThree."
    assert [s.text for s in segments] == ["One.", "Two.", "Three."]


def test_segment_non_string_is_empty():
    assert segment(None, "word") == ("", [])
    assert units(123, "paragraph") == []


def test_segment_unknown_granularity_raises():
    with pytest.raises(ValueError, match="granularity"):
        segment("text", "chapter")


# ---------------------------------------------------------------------------
# Payloads and splicing
# ---------------------------------------------------------------------------


def test_block_payload_keeps_raw_markup():
    assert block_payload("<h2>T</h2>", "T", into_markup=True) == "<h2>T</h2>"


def test_block_payload_wraps_plain_block_for_markup_documents():
    assert block_payload("a & b", "a & b", into_markup=True) == "<p>a &amp; b</p>"


def test_block_payload_plain_documents_get_text():
    assert block_payload("<p>Hi</p>", "Hi", into_markup=False) == "Hi"


def test_splice_applies_edits_back_to_front():
    assert splice("abcdef", [(0, 1, "X"), (4, 6, "YZW")]) == "XbcdYZW"


def test_splice_insert_before_replacement_at_same_start():
    assert splice("abc", [(1, 2, "B"), (1, 1, ">")]) == "a>Bc"
