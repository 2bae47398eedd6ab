"""Tests for navigation.py - ascend / descend / sibling."""

from waymark.navigation import ascend, descend, sibling


class TestAscend:
    def test_moves_to_parent(self, store):
        """Scenario 4."""
        store.add_node("A", {"shape": "rectangle"})
        store.add_node("B")

        assert ascend(store) == "A"
        assert store.get_selected() == "A"

    def test_noop_at_root(self, store, session):
        before = store.path.read_bytes()
        entries = len(session.mutation_log)

        assert ascend(store) == "root"

        assert store.path.read_bytes() == before
        assert len(session.mutation_log) == entries

    def test_top_level_goes_to_root(self, tree):
        tree.select("A")
        assert ascend(tree) == "root"


class TestDescend:
    def test_first_child(self, tree):
        tree.select("A")
        assert descend(tree) == "B"
        assert tree.get_selected() == "B"

    def test_noop_on_leaf(self, tree):
        before = tree.path.read_bytes()
        assert descend(tree) == "D"
        assert tree.path.read_bytes() == before

    def test_closure(self, tree):
        """Ascend then descend returns to a first child."""
        tree.select("B")
        ascend(tree)
        assert descend(tree) == "B"


class TestSibling:
    def test_next_in_insertion_order(self, tree):
        tree.select("B")
        assert sibling(tree) == "C"
        assert sibling(tree) == "D"

    def test_wraps(self, tree):
        assert tree.get_selected() == "D"
        assert sibling(tree) == "B"

    def test_cycle_returns_to_start(self, tree):
        tree.select("C")
        count = len(tree.get_children("A"))
        for _ in range(count):
            sibling(tree)
        assert tree.get_selected() == "C"

    def test_only_child_is_noop(self, tree, session):
        tree.select("E")
        entries = len(session.mutation_log)

        assert sibling(tree) == "E"
        assert len(session.mutation_log) == entries

    def test_noop_at_root(self, tree):
        tree.select("root")
        assert sibling(tree) == "root"
        assert tree.get_selected() == "root"
