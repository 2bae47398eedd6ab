"""Tests for store.py - GraphStore operations."""

from __future__ import annotations

import pytest

from waymark.engine.base import EngineResult
from waymark.engine.builtin import BuiltinEngine
from waymark.errors import (
    EncodingFailure,
    InvalidInput,
    InvariantViolation,
    NotFound,
    RootProtection,
)
from waymark.graph.codec import serialize
from waymark.graph.document import new_document
from waymark.store import GraphStore


class BrokenMutations(BuiltinEngine):
    """Answers queries, fails every mutation."""

    def run_mutation(self, document_path, mutation, output_path):
        return EngineResult(
            engine=self.name,
            kind="mutation",
            program=mutation.describe(),
            returncode=1,
            error="disk on fire",
        )


class TestLifecycle:
    """NewGraph / Open."""

    def test_new_graph_has_only_selected_root(self, store):
        """Scenario 1."""
        document = store.snapshot()

        assert document.labels() == ["root"]
        assert document.edge_count() == 0
        assert store.get_selected() == "root"
        assert document.find_node("root").attrs["style"] == "invis"

    def test_create_sets_current_and_rankdir(self, session):
        store = GraphStore.create(session, "notes")

        assert session.workspace.read_current() == "notes"
        assert store.path == session.workspace.directory / "notes.gv"
        assert store.snapshot().graph_attrs == {"rankdir": "LR"}

    def test_create_refuses_to_overwrite(self, store, session):
        store.add_node("A")
        with pytest.raises(FileExistsError):
            GraphStore.create(session, "g")
        assert store.exists("A")

    def test_create_overwrite(self, store, session):
        store.add_node("A")
        GraphStore.create(session, "g", overwrite=True)
        assert not store.exists("A")

    def test_open_missing(self, session):
        with pytest.raises(NotFound, match="nope"):
            GraphStore.open(session, "nope")

    def test_open_makes_current(self, session):
        GraphStore.create(session, "one")
        GraphStore.create(session, "two")

        GraphStore.open(session, "one")

        assert session.workspace.read_current() == "one"
        assert GraphStore.current(session).name == "one"

    def test_current_falls_back_to_default(self, session):
        GraphStore.create(session, "main")
        (session.workspace.directory / "CURRENT").unlink()

        assert GraphStore.current(session).name == "main"

    def test_custom_root_label(self, make_config):
        from waymark.session import Session

        session = Session.from_config(make_config(graph={"root_label": "anchor"}))
        store = GraphStore.create(session, "g")
        store.add_node("A")

        assert store.get_parent("A") == "anchor"
        assert store.snapshot().find_edge("anchor", "A").attrs["style"] == "invis"


class TestAddNode:
    """AddNode."""

    def test_under_root_is_invisible(self, store):
        """Scenario 2."""
        entry = store.add_node("A", {"shape": "rectangle"})

        document = store.snapshot()
        assert entry.applied
        assert document.find_edge("root", "A").attrs == {"label": "", "style": "invis"}
        assert document.find_node("A").attrs["shape"] == "rectangle"
        assert store.get_selected() == "A"

    def test_under_selection_is_visible(self, store):
        """Scenario 3."""
        store.add_node("A", {"shape": "rectangle"})
        store.add_node("B")

        document = store.snapshot()
        assert document.find_edge("A", "B").attrs == {"label": ""}
        assert store.get_selected() == "B"
        assert store.get_parent() == "A"

    def test_selection_emphasis(self, store):
        store.add_node("A")
        document = store.snapshot()
        assert document.find_node("A").attrs["penwidth"] == "3"
        assert document.find_node("root").attrs["penwidth"] == "1"
        assert document.find_node("root").attrs["selected"] == "false"

    def test_readd_merges_without_second_parent(self, store):
        store.add_node("A", {"shape": "box"})
        store.add_node("B")
        store.select("root")

        store.add_node("B", {"color": "red"})

        document = store.snapshot()
        assert document.parents("B") == ["A"]
        assert document.find_node("B").attrs["color"] == "red"
        assert store.get_selected() == "B"
        assert document.node_count() == 3

    def test_entry_recorded(self, store, session):
        entry = store.add_node("A")

        assert session.mutation_log.last() is entry
        assert entry.operation == "add_node"
        assert entry.before_state == {"selected": "root"}
        assert entry.after_state["parent"] == "root"

    def test_empty_label_rejected(self, store):
        with pytest.raises(InvalidInput):
            store.add_node("")
        assert store.snapshot().labels() == ["root"]

    def test_selected_attribute_rejected(self, store):
        with pytest.raises(InvalidInput):
            store.add_node("A", {"selected": "true"})

    def test_nul_label_rejected(self, store):
        with pytest.raises(EncodingFailure):
            store.add_node("bad\x00label")

    def test_awkward_labels(self, store):
        for label in ['say "hi"', "back\\slash", "two\nlines", "a | b", "ünï ☃", "node"]:
            store.select("root")
            store.add_node(label, {"note": label})
            assert store.get_selected() == label
            assert store.get_attribute(label, "note") == label
            assert store.get_parent(label) == "root"


class TestSelect:
    """Select."""

    def test_select_moves_emphasis(self, tree):
        tree.select("B")

        document = tree.snapshot()
        assert document.selected_labels() == ["B"]
        assert document.find_node("D").attrs["penwidth"] == "1"

    def test_select_missing(self, tree):
        before = tree.path.read_bytes()
        with pytest.raises(NotFound):
            tree.select("Z")
        assert tree.path.read_bytes() == before


class TestReads:
    """GetSelected / GetChildren / GetParent / attributes."""

    def test_children_in_insertion_order(self, tree):
        assert tree.get_children("A") == ["B", "C", "D"]
        assert tree.get_children("root") == ["A"]
        assert tree.get_children() == []

    def test_parent(self, tree):
        assert tree.get_parent() == "A"
        assert tree.get_parent("E") == "B"
        assert tree.get_parent("root") is None

    def test_missing_label(self, tree):
        with pytest.raises(NotFound):
            tree.get_children("Z")
        with pytest.raises(NotFound):
            tree.get_attribute("Z", "shape")

    def test_descendants(self, tree):
        assert tree.descendants("A") == ["B", "C", "D", "E"]
        assert tree.descendants("E") == []

    def test_unset_attribute_is_empty(self, tree):
        assert tree.get_attribute("A", "color") == ""

    def test_no_selection_is_an_invariant_violation(self, store):
        document = new_document("g")
        document.find_node("root").attrs["selected"] = "false"
        store.path.write_text(serialize(document))

        with pytest.raises(InvariantViolation, match="found 0"):
            store.get_selected()

    def test_two_selections_is_an_invariant_violation(self, store):
        document = new_document("g")
        document.upsert_node("x", {"selected": "true"})
        store.path.write_text(serialize(document))

        with pytest.raises(InvariantViolation) as excinfo:
            store.get_selected()
        assert excinfo.value.labels == ["root", "x"]

    def test_two_parents_is_an_invariant_violation(self, store):
        document = new_document("g")
        document.add_edge("root", "a")
        document.add_edge("root", "b")
        document.add_edge("a", "c")
        document.add_edge("b", "c")
        store.path.write_text(serialize(document))

        with pytest.raises(InvariantViolation):
            store.get_parent("c")


class TestSetAttributes:
    """SetAttributes."""

    def test_merge(self, tree):
        tree.set_attributes("C", {"shape": "box"})
        tree.set_attributes("C", {"color": "red"})

        attrs = tree.snapshot().find_node("C").attrs
        assert attrs["shape"] == "box"
        assert attrs["color"] == "red"

    def test_empty_is_noop(self, tree):
        before = tree.path.read_bytes()

        entry = tree.set_attributes("C", {})

        assert entry.status == "skipped"
        assert tree.path.read_bytes() == before

    def test_missing_node(self, tree):
        with pytest.raises(NotFound):
            tree.set_attributes("Z", {"shape": "box"})


class TestAddEdge:
    """AddEdge and the single-parent rule."""

    def test_second_parent_rejected(self, tree):
        before = tree.path.read_bytes()
        with pytest.raises(InvariantViolation, match="already has parent A"):
            tree.add_edge("C", "D")
        assert tree.path.read_bytes() == before

    def test_same_parent_updates_attributes(self, tree):
        entry = tree.add_edge("A", "C", {"color": "blue"})
        assert entry.applied
        assert tree.snapshot().find_edge("A", "C").attrs["color"] == "blue"

    def test_attach_parentless_node(self, store):
        document = new_document("g")
        document.add_edge("root", "a")
        document.add_edge("c", "x")
        store.path.write_text(serialize(document))

        store.add_edge("a", "c")

        assert store.get_parent("c") == "a"
        assert store.descendants("a") == ["c", "x"]

    def test_cycle_rejected(self, store):
        document = new_document("g")
        document.add_edge("c", "x")
        store.path.write_text(serialize(document))

        with pytest.raises(InvariantViolation, match="cycle"):
            store.add_edge("x", "c")

    def test_root_cannot_be_a_child(self, tree):
        with pytest.raises(InvariantViolation):
            tree.add_edge("A", "root")

    def test_missing_endpoint(self, tree):
        with pytest.raises(NotFound):
            tree.add_edge("A", "Z")


class TestDeleteSubtree:
    """DeleteSubtree."""

    def test_leaf(self, store):
        """Scenario 6."""
        store.add_node("A", {"shape": "rectangle"})
        store.add_node("B")

        entry = store.delete_subtree()

        document = store.snapshot()
        assert entry.applied
        assert document.labels() == ["root", "A"]
        assert document.find_edge("A", "B") is None
        assert store.get_selected() == "A"

    def test_subtree_and_reselect_parent(self, tree):
        tree.select("B")

        entry = tree.delete_subtree()

        document = tree.snapshot()
        assert entry.after_state == {"selected": "A", "removed": ["B", "E"]}
        assert document.labels() == ["root", "A", "C", "D"]
        assert [str(e) for e in document.iter_edges()] == ["root -> A", "A -> C", "A -> D"]
        assert document.selected_labels() == ["A"]

    def test_root_is_protected(self, tree):
        tree.select("root")
        before = tree.path.read_bytes()

        with pytest.raises(RootProtection):
            tree.delete_subtree()

        assert tree.path.read_bytes() == before

    def test_top_level_returns_to_root(self, tree):
        tree.select("A")
        tree.delete_subtree()

        assert tree.snapshot().labels() == ["root"]
        assert tree.get_selected() == "root"


class TestFailedMutations:
    """An engine failure leaves the document as it was."""

    def test_failed_entry_and_unchanged_document(self, store, session):
        store.add_node("A")
        before = store.path.read_bytes()
        session.engine = BrokenMutations()
        broken = GraphStore.open(session, "g")

        entry = broken.add_node("B")

        assert entry.status == "failed"
        assert entry.error == "disk on fire"
        assert store.path.read_bytes() == before
        assert session.mutation_log.failures() == [entry]
        log = session.diagnostics.path.read_text()
        assert "add_node not applied: disk on fire" in log


class TestMutationLog:
    def test_history_in_order(self, store, session):
        first = store.add_node("A")
        skipped = store.set_attributes("A", {})
        last = store.select("root")

        assert [e.operation for e in session.mutation_log.iter_entries()] == [
            "add_node",
            "set_attributes",
            "select",
        ]
        assert skipped.status == "skipped"
        assert session.mutation_log.find_by_id(first.id) is first
        assert session.mutation_log.find_by_id("missing") is None
        assert str(last).endswith("select(root) applied")
