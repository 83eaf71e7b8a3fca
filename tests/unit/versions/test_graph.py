"""Tests for the version graph."""

from __future__ import annotations

import threading

import pytest

from redline.errors import LineageCycleError, UnknownVersionError
from redline.versions.graph import ROOT_ID, VersionGraph, format_version_number
from redline.versions.models import VersionNode


@pytest.fixture
def graph() -> VersionGraph:
    return VersionGraph("<p>Original</p>")


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


def test_new_graph_has_original_root(graph):
    root = graph.root
    assert root.id == ROOT_ID
    assert root.number == "0"
    assert root.is_original
    assert root.parent_id is None
    assert root.note == "Initial version"
    assert root.origin == "initial"
    assert graph.current_version is root
    assert len(graph) == 1


# ---------------------------------------------------------------------------
# Numbering
# ---------------------------------------------------------------------------


def test_versions_from_root_are_root_level(graph):
    v1 = graph.create_version("<p>One</p>", "prompt one")
    v2 = graph.create_version("<p>Two</p>", "prompt two")
    v3 = graph.create_version("<p>Three</p>", None, ROOT_ID)
    assert [v1.number, v2.number, v3.number] == ["1", "2", "3"]
    assert v1.parent_id == ROOT_ID


def test_versions_from_non_root_are_branches(graph):
    v1 = graph.create_version("a")
    graph.create_version("b")
    b1 = graph.create_version("a1", parent_id=v1.id)
    b2 = graph.create_version("a2", parent_id=v1.id)
    assert (b1.number, b2.number) == ("1.1", "1.2")
    assert b1.parent_id == v1.id


def test_branching_from_a_branch_stays_single_level(graph):
    graph.create_version("a")
    v2 = graph.create_version("b")
    b1 = graph.create_version("b1", parent_id=v2.id)
    b2 = graph.create_version("b2", parent_id=b1.id)
    assert b2.number == "2.2"
    assert b2.parent_id == b1.id


def test_parent_may_be_given_as_version_number(graph):
    graph.create_version("a")
    child = graph.create_version("a1", parent_id="1")
    assert child.number == "1.1"
    assert child.parent_id == "v1"


def test_ids_derive_from_numbers(graph):
    v1 = graph.create_version("a")
    b = graph.create_version("b", parent_id=v1.id)
    assert v1.id == "v1"
    assert b.id == "v1.1"


def test_unknown_parent_warns_and_attaches_to_root(graph):
    with pytest.warns(UserWarning, match="Unknown parent"):
        node = graph.create_version("x", parent_id="v99")
    assert node.parent_id == ROOT_ID
    assert node.number == "1"


def test_new_version_becomes_current(graph):
    node = graph.create_version("x")
    assert graph.current_version is node


def test_origin_defaults_from_prompt(graph):
    assert graph.create_version("x", "make it shorter").origin == "ai"
    assert graph.create_version("y").origin == "manual"
    assert graph.create_version("z", origin="merge").origin == "merge"


def test_unknown_origin_rejected(graph):
    with pytest.raises(ValueError, match="origin"):
        graph.create_version("x", origin="paste")


def test_concurrent_creation_never_reuses_a_number(graph):
    def worker():
        for _ in range(25):
            graph.create_version("x")

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    numbers = [n.number for n in graph]
    assert len(numbers) == 101
    assert len(set(numbers)) == 101


# ---------------------------------------------------------------------------
# Lookup and mutation
# ---------------------------------------------------------------------------


def test_get_unknown_raises(graph):
    with pytest.raises(UnknownVersionError):
        graph.get("v42")
    with pytest.raises(KeyError):
        graph.get("v42")


def test_get_children(graph):
    v1 = graph.create_version("a")
    graph.create_version("b")
    b = graph.create_version("a1", parent_id=v1.id)
    assert [n.id for n in graph.get_children(ROOT_ID)] == ["v1", "v2"]
    assert graph.get_children(v1.id) == [b]


def test_update_version_overwrites_in_place(graph):
    v1 = graph.create_version("a")
    graph.update_version(v1.id, "edited")
    assert graph.get(v1.id).content == "edited"
    assert len(graph) == 2


def test_add_checkpoint_skips_duplicate_content(graph):
    v1 = graph.create_version("a")
    first = graph.add_checkpoint(v1.id, "draft 1")
    assert first is not None
    assert first.id == "v1-cp1"
    assert graph.add_checkpoint(v1.id, "draft 1") is None
    second = graph.add_checkpoint(v1.id, "draft 2", kind="manual")
    assert second.kind == "manual"
    assert len(graph.get(v1.id).checkpoints) == 2


def test_note_star_archive(graph):
    v1 = graph.create_version("a")
    graph.set_note(v1.id, "first draft")
    graph.toggle_star(v1.id)
    graph.archive(v1.id)
    node = graph.get(v1.id)
    assert node.note == "first draft"
    assert node.is_starred
    assert node.is_archived
    assert v1.id in graph
    assert node not in graph.versions(include_archived=False)
    graph.archive(v1.id, False)
    assert node in graph.versions(include_archived=False)


def test_compare_selection(graph):
    v1 = graph.create_version("a")
    assert graph.compare_version is None
    graph.set_compare(v1.id)
    assert graph.compare_version is v1
    graph.set_compare(None)
    assert graph.compare_version is None


def test_set_current(graph):
    v1 = graph.create_version("a")
    graph.create_version("b")
    graph.set_current(v1.id)
    assert graph.current_version is v1


def test_latest_is_last_created(graph):
    graph.create_version("a")
    v2 = graph.create_version("b")
    assert graph.latest() is v2


# ---------------------------------------------------------------------------
# Lineage and locking
# ---------------------------------------------------------------------------


def test_get_lineage_root_to_node(graph):
    graph.create_version("a")
    v2 = graph.create_version("b")
    b1 = graph.create_version("b1", parent_id=v2.id)
    b2 = graph.create_version("b2", parent_id=b1.id)
    assert graph.get_lineage(b2.id) == ["0", "2", "2.1", "2.2"]
    assert graph.get_lineage(ROOT_ID) == ["0"]


def test_get_lineage_detects_cycles():
    root = VersionNode(id="v0", number="0", parent_id=None, content="", is_original=True)
    a = VersionNode(id="v1", number="1", parent_id="v2", content="")
    b = VersionNode(id="v2", number="2", parent_id="v1", content="")
    graph = VersionGraph.from_nodes([root, a, b])
    with pytest.raises(LineageCycleError):
        graph.get_lineage("v1")


def test_is_locked_within_numbering_group(graph):
    v1 = graph.create_version("a")
    assert not graph.is_locked(v1.id)
    v2 = graph.create_version("b")
    assert graph.is_locked(v1.id)
    assert not graph.is_locked(v2.id)

    b1 = graph.create_version("b1", parent_id=v2.id)
    assert graph.is_locked(v2.id)
    assert not graph.is_locked(b1.id)
    b2 = graph.create_version("b2", parent_id=v2.id)
    assert graph.is_locked(b1.id)
    assert not graph.is_locked(b2.id)


def test_from_nodes_restores_pointers(graph):
    v1 = graph.create_version("a")
    v2 = graph.create_version("b")
    rebuilt = VersionGraph.from_nodes(list(graph), current_id=v1.id, compare_id=v2.id)
    assert rebuilt.current_version.id == v1.id
    assert rebuilt.compare_version.id == v2.id
    assert rebuilt.create_version("c").number == "3"


def test_from_nodes_requires_single_root():
    a = VersionNode(id="v0", number="0", parent_id=None, content="", is_original=True)
    b = VersionNode(id="x", number="0", parent_id=None, content="", is_original=True)
    with pytest.raises(ValueError, match="exactly one root"):
        VersionGraph.from_nodes([a, b])


def test_from_nodes_rejects_dangling_parent():
    root = VersionNode(id="v0", number="0", parent_id=None, content="", is_original=True)
    orphan = VersionNode(id="v1", number="1", parent_id="v9", content="")
    with pytest.raises(ValueError, match="unknown parent"):
        VersionGraph.from_nodes([root, orphan])


# ---------------------------------------------------------------------------
# Display
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("number", "expected"),
    [("3", "V3"), ("2.1", "V2V1"), ("0", "V0"), ("", "V0")],
)
def test_format_version_number(number, expected):
    assert format_version_number(number) == expected
