"""Tests for the multi-granularity diff engine."""

from __future__ import annotations

import pytest

from redline.diff.engine import change_scale, diff, diff_units, overall_similarity, summarize
from redline.diff.models import DiffThresholds


def _kinds(changes):
    return [c.kind for c in changes]


# ---------------------------------------------------------------------------
# Basic kinds
# ---------------------------------------------------------------------------


def test_identical_content_has_no_changes():
    assert diff("One.\n\nTwo.", "One.\n\nTwo.") == []


def test_paragraph_insertion_at_end():
    changes = diff("Alpha one.\n\nBeta two.", "Alpha one.\n\nBeta two.\n\nGamma three.")
    assert len(changes) == 1
    change = changes[0]
    assert change.kind == "insertion"
    assert change.right_unit == "Gamma three."
    assert change.right_index == 2
    assert change.left_index == -1
    assert change.position == pytest.approx(200 / 3)
    assert change.id == "chg-0"


def test_paragraph_deletion_position_uses_base_side():
    changes = diff("Alpha one.\n\nBeta two.\n\nGamma three.", "Alpha one.\n\nBeta two.")
    assert _kinds(changes) == ["deletion"]
    assert changes[0].left_index == 2
    assert changes[0].position == pytest.approx(200 / 3)


def test_small_edit_is_modification(ten_words):
    edited = ten_words.replace("lazy", "very lazy")
    changes = diff(ten_words, edited)
    assert _kinds(changes) == ["modification"]
    assert changes[0].similarity == pytest.approx(10 / 11, abs=1e-4)
    assert changes[0].left_unit == ten_words
    assert changes[0].right_unit == edited


def test_same_index_partial_overlap_is_replacement():
    # 2 shared tokens of 6 → 0.33, above the replacement floor
    changes = diff("alpha beta gamma delta", "alpha beta epsilon zeta")
    assert _kinds(changes) == ["replacement"]
    assert changes[0].similarity == pytest.approx(1 / 3, abs=1e-4)


def test_unrelated_units_become_deletion_and_insertion():
    changes = diff("one two", "three four")
    assert _kinds(changes) == ["deletion", "insertion"]
    assert [c.id for c in changes] == ["chg-0", "chg-1"]


def test_swapped_paragraphs_are_moved():
    base = "alpha beta gamma\n\ndelta epsilon zeta"
    target = "delta epsilon zeta\n\nalpha beta gamma"
    changes = diff(base, target)
    assert _kinds(changes) == ["moved", "moved"]
    assert (changes[0].left_index, changes[0].right_index) == (1, 0)
    assert (changes[1].left_index, changes[1].right_index) == (0, 1)
    assert changes[0].position == 0.0
    assert changes[1].position == 50.0


def test_case_only_change_at_same_index_is_modification():
    changes = diff("Hello World", "hello world")
    assert _kinds(changes) == ["modification"]
    assert changes[0].similarity == 1.0


def test_insertion_shifts_following_units_into_moves():
    changes = diff("a b c", "a c", "word")
    assert sorted(_kinds(changes)) == ["deletion", "moved"]
    moved = next(c for c in changes if c.kind == "moved")
    assert (moved.left_index, moved.right_index) == (2, 1)


# ---------------------------------------------------------------------------
# Granularities and inputs
# ---------------------------------------------------------------------------


def test_sentence_granularity_detects_new_sentence():
    base = "First sentence here. Second one."
    target = "First sentence here. Second one. Third!"
    changes = diff(base, target, "sentence")
    assert _kinds(changes) == ["insertion"]
    assert changes[0].right_unit == "Third!"
    assert changes[0].granularity == "sentence"


def test_sentence_edit_of_one_word_sentence_is_delete_plus_insert():
    changes = diff("Intro. Body text.", "Intro changed. Body text. Conclusion.", "sentence")
    assert [(c.kind, c.left_unit, c.right_unit) for c in changes] == [
        ("deletion", "Intro.", None),
        ("insertion", None, "Intro changed."),
        ("insertion", None, "Conclusion."),
    ]


def test_html_paragraphs_compare_by_text():
    base = "<p>Hello <b>there</b></p><p>Second para</p>"
    target = "<p>Hello there</p><p>Second para</p><p>Third</p>"
    changes = diff(base, target)
    assert _kinds(changes) == ["insertion"]
    assert changes[0].right_unit == "Third"


def test_non_string_input_is_treated_as_empty():
    assert diff(None, None) == []
    changes = diff(123, "Only paragraph.")
    assert _kinds(changes) == ["insertion"]


def test_unknown_granularity_raises():
    with pytest.raises(ValueError):
        diff("a", "b", "chapter")
    with pytest.raises(ValueError):
        diff_units(["a"], ["b"], "chapter")


def test_custom_thresholds_change_classification(ten_words):
    edited = ten_words.replace("lazy", "very lazy")
    strict = DiffThresholds(paragraph_modification=0.95)
    assert _kinds(diff(ten_words, edited, thresholds=strict)) == ["replacement"]


def test_output_sorted_by_position_with_sequential_ids():
    base = "P one.\n\nP two.\n\nP three."
    target = "New first.\n\nP one.\n\nP two.\n\nP three."
    changes = diff(base, target)
    positions = [c.position for c in changes]
    assert positions == sorted(positions)
    assert [c.id for c in changes] == [f"chg-{n}" for n in range(len(changes))]


# ---------------------------------------------------------------------------
# Properties
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("a", "b", "granularity"),
    [
        ("one\n\ntwo\n\nthree", "one\n\nfour\n\nthree\n\nfive", "paragraph"),
        ("x y z", "z y x w", "word"),
        ("Alpha beta.\n\nGamma delta.", "Gamma delta.\n\nEpsilon.\n\nAlpha beta.", "paragraph"),
    ],
)
def test_insertions_one_way_equal_deletions_the_other(a, b, granularity):
    forward = summarize(diff(a, b, granularity))
    backward = summarize(diff(b, a, granularity))
    assert forward["insertion"] == backward["deletion"]
    assert forward["deletion"] == backward["insertion"]


def test_diff_is_deterministic():
    a = "one two\n\nthree four\n\nfive six"
    b = "three four\n\none two seven\n\neight"
    assert diff(a, b) == diff(a, b)


# ---------------------------------------------------------------------------
# Summaries
# ---------------------------------------------------------------------------


def test_summarize_counts_every_kind():
    counts = summarize(diff("one two", "three four"))
    assert counts["deletion"] == 1
    assert counts["insertion"] == 1
    assert counts["moved"] == 0
    assert "unchanged" not in counts


def test_overall_similarity_and_scale():
    assert overall_similarity("<p>a b c</p>", "a b c") == 1.0
    assert change_scale(1.0) == "minor"
    assert change_scale(0.8) == "moderate"
    assert change_scale(0.5) == "major"
    assert change_scale(0.1) == "rewrite"
