"""Tests for chain.py - command chain storage and replay."""

import pytest

from waymark.chain import chain, decode_chain, encode_chain, execute, mark, pop_command, push_command
from waymark.collaborators import Editor
from waymark.errors import InvalidInput, NotFound


class RecordingEditor(Editor):
    """Keeps every instruction it is asked to run."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.instructions = []

    def run(self, instruction):
        self.instructions.append(instruction)


class TestEncoding:
    """Tests for encode_chain / decode_chain."""

    def test_empty(self):
        assert encode_chain([]) == ""
        assert decode_chain("") == []

    def test_plain_segments(self):
        assert encode_chain(["open x", "goto 10"]) == "open x|goto 10"
        assert decode_chain("open x|goto 10") == ["open x", "goto 10"]

    def test_delimiter_and_backslash_are_escaped(self):
        actions = ["a|b", "c\\d", "\\|", "end\\"]
        encoded = encode_chain(actions)

        assert encoded == "a\\|b|c\\\\d|\\\\\\||end\\\\"
        assert decode_chain(encoded) == actions

    def test_custom_delimiter(self):
        actions = ["x;y", "z"]
        assert encode_chain(actions, ";") == "x\\;y;z"
        assert decode_chain("x\\;y;z", ";") == actions

    def test_trailing_backslash_kept(self):
        assert decode_chain("abc\\") == ["abc\\"]


class TestPushPop:
    """Tests for push_command / pop_command / chain."""

    def test_push_in_order(self, tree):
        push_command(tree, "A", "open file X")
        push_command(tree, "A", "goto line 10")

        assert chain(tree, "A") == ["open file X", "goto line 10"]
        assert tree.get_attribute("A", "command") == "open file X|goto line 10"

    def test_pop_inverts_push(self, tree):
        push_command(tree, "C", 'say "a|b"')
        before = chain(tree, "C")

        push_command(tree, "C", "x\\|y | z")
        pop_command(tree, "C")

        assert chain(tree, "C") == before

    def test_pop_empty_chain(self, tree):
        entry = pop_command(tree, "C")
        assert entry.applied
        assert chain(tree, "C") == []

    def test_empty_action_rejected(self, tree):
        with pytest.raises(InvalidInput):
            push_command(tree, "A", "")

    def test_missing_node(self, tree):
        with pytest.raises(NotFound):
            push_command(tree, "Z", "open")

    def test_push_does_not_move_selection(self, tree):
        push_command(tree, "A", "open")
        assert tree.get_selected() == "D"

    def test_configured_delimiter(self, make_config):
        from waymark.session import Session
        from waymark.store import GraphStore

        session = Session.from_config(make_config(chain={"delimiter": ";"}))
        store = GraphStore.create(session, "g")
        store.add_node("A")
        push_command(store, "A", "a|b")
        push_command(store, "A", "c")

        assert store.get_attribute("A", "command") == "a|b;c"
        assert chain(store, "A") == ["a|b", "c"]


class TestExecute:
    """Tests for execute."""

    def test_joined_in_push_order(self, store):
        """Scenario 5."""
        store.add_node("A", {"shape": "rectangle"})
        store.add_node("B")
        store.select("A")
        push_command(store, "A", "open file X")
        push_command(store, "A", "goto line 10")
        editor = RecordingEditor()

        instruction = execute(store, "A", editor)

        assert instruction == "open file X | goto line 10"
        assert editor.instructions == ["open file X | goto line 10"]

    def test_editor_separator(self, tree):
        push_command(tree, "A", "one")
        push_command(tree, "A", "two")
        editor = RecordingEditor(separator="\n")

        execute(tree, "A", editor)

        assert editor.instructions == ["one\ntwo"]

    def test_empty_chain(self, tree):
        editor = RecordingEditor()
        assert execute(tree, "A", editor) is None
        assert editor.instructions == []


class TestMark:
    """Tests for mark."""

    def test_adds_node_with_location(self, tree):
        editor = RecordingEditor()
        action = editor.capture_location("/src/lex.c", 120, 4)

        entries = mark(tree, "lexer", action, {"shape": "note"})

        assert [e.operation for e in entries] == ["add_node", "set_attributes"]
        assert tree.get_selected() == "lexer"
        assert tree.get_parent("lexer") == "D"
        assert chain(tree, "lexer") == ["edit /src/lex.c | call cursor(120, 4)"]

    def test_remark_appends(self, tree):
        mark(tree, "spot", "edit a")
        tree.select("A")
        mark(tree, "spot", "edit b")

        assert chain(tree, "spot") == ["edit a", "edit b"]
        assert tree.get_parent("spot") == "D"

    def test_empty_action(self, tree):
        with pytest.raises(InvalidInput):
            mark(tree, "spot", "")
        assert not tree.exists("spot")
