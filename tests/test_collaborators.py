"""Tests for collaborators.py - editor and renderer."""

import io
import sys

import pytest

from waymark.collaborators import (
    CommandEditor,
    EchoEditor,
    Renderer,
    editor_from_config,
    format_location,
    renderer_from_config,
)
from waymark.errors import InvalidInput, InvocationFailure
from waymark.session import DiagnosticLog


class TestFormatLocation:
    def test_default_template(self):
        assert format_location("a.py", 3, 7) == "edit a.py | call cursor(3, 7)"

    def test_custom_template(self):
        assert format_location("a.py", 3, template="+{line} {path}") == "+3 a.py"

    def test_unknown_field(self):
        with pytest.raises(InvalidInput):
            format_location("a.py", 3, template="{file}:{line}")


class TestEchoEditor:
    def test_prints_instruction(self):
        stream = io.StringIO()
        EchoEditor(stream=stream).run("open x | goto 3")
        assert stream.getvalue() == "open x | goto 3\n"

    def test_capture_location(self):
        editor = EchoEditor(location_template="{path}:{line}:{column}")
        assert editor.capture_location("f.c", 10, 2) == "f.c:10:2"


class TestCommandEditor:
    def test_instruction_is_last_argument(self, tmp_path):
        out = tmp_path / "got.txt"
        script = "import sys; open(sys.argv[1], 'w').write(sys.argv[2])"
        editor = CommandEditor([sys.executable, "-c", script, str(out)])

        editor.run("edit a | goto 1")

        assert out.read_text() == "edit a | goto 1"

    def test_non_zero_exit(self):
        editor = CommandEditor([sys.executable, "-c", "import sys; sys.exit(3)"])
        with pytest.raises(InvocationFailure) as excinfo:
            editor.run("x")
        assert excinfo.value.returncode == 3

    def test_missing_program(self, tmp_path):
        editor = CommandEditor([str(tmp_path / "no-editor")])
        with pytest.raises(InvocationFailure):
            editor.run("x")

    def test_requires_command(self):
        with pytest.raises(ValueError):
            CommandEditor([])


class TestRenderer:
    def test_starts_viewer(self, tmp_path):
        document = tmp_path / "g.gv"
        document.write_text("digraph {}\n")
        renderer = Renderer([sys.executable, "-c", "pass"])

        assert renderer.show(document) is True

    def test_start_failure_is_logged(self, tmp_path):
        log = DiagnosticLog(tmp_path / "waymark.log")
        renderer = Renderer([str(tmp_path / "no-viewer")], log)

        assert renderer.show(tmp_path / "g.gv") is False
        assert "could not be started" in (tmp_path / "waymark.log").read_text()

    def test_no_command(self, tmp_path):
        assert Renderer([]).show(tmp_path / "g.gv") is False


class TestFromConfig:
    def test_echo_by_default(self):
        editor = editor_from_config({"editor": {"separator": " ; ", "command": []}})
        assert isinstance(editor, EchoEditor)
        assert editor.separator == " ; "

    def test_command_string_is_split(self):
        editor = editor_from_config({"editor": {"command": "nvim --server /tmp/s --remote-send"}})
        assert isinstance(editor, CommandEditor)
        assert editor.command == ["nvim", "--server", "/tmp/s", "--remote-send"]

    def test_renderer(self):
        renderer = renderer_from_config({"renderer": {"command": ["xdot", "--filter=dot"]}})
        assert renderer.command == ["xdot", "--filter=dot"]
