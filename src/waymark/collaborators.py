"""External collaborators: the text editor and the graph renderer.

The core only produces and stores action strings. The editor turns a
cursor position into a replayable action and interprets instructions;
the renderer displays the document. Neither is implemented here beyond
handing text or a path to an outside program.
"""

from __future__ import annotations

import logging
import shlex
import subprocess
import sys
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Any, TextIO

from waymark.errors import InvalidInput, InvocationFailure

if TYPE_CHECKING:
    from waymark.session import DiagnosticLog

logger = logging.getLogger(__name__)

DEFAULT_SEPARATOR = " | "
DEFAULT_LOCATION_TEMPLATE = "edit {path} | call cursor({line}, {column})"


def format_location(
    path: str | Path,
    line: int,
    column: int = 1,
    template: str = DEFAULT_LOCATION_TEMPLATE,
) -> str:
    """Render a replayable "go to this place" action.

    Raises:
        InvalidInput: If the template names an unknown field.
    """
    try:
        return template.format(path=path, line=line, column=column)
    except (KeyError, IndexError) as e:
        raise InvalidInput(f"Bad location template {template!r}: unknown field {e}") from e


class Editor(ABC):
    """Text editor collaborator.

    Args:
        separator: Joins chain segments into one instruction.
        location_template: Template used by ``capture_location``.
    """

    def __init__(
        self,
        separator: str = DEFAULT_SEPARATOR,
        location_template: str = DEFAULT_LOCATION_TEMPLATE,
    ):
        self.separator = separator
        self.location_template = location_template

    def capture_location(self, path: str | Path, line: int, column: int = 1) -> str:
        """Return the action string that reopens ``path`` at a position."""
        return format_location(path, line, column, self.location_template)

    @abstractmethod
    def run(self, instruction: str) -> None:
        """Interpret one instruction."""


class EchoEditor(Editor):
    """Writes instructions to a stream for an editor plugin to evaluate."""

    def __init__(self, stream: TextIO | None = None, **kwargs: Any):
        super().__init__(**kwargs)
        self.stream = stream

    def run(self, instruction: str) -> None:
        print(instruction, file=self.stream or sys.stdout)


class CommandEditor(Editor):
    """Runs a command with the instruction as its final argument.

    Args:
        command: Program and leading arguments.
        timeout: Seconds to wait for the command.
    """

    def __init__(self, command: list[str], timeout: float = 30.0, **kwargs: Any):
        super().__init__(**kwargs)
        if not command:
            raise ValueError("CommandEditor needs a command")
        self.command = list(command)
        self.timeout = timeout

    def run(self, instruction: str) -> None:
        argv = [*self.command, instruction]
        try:
            result = subprocess.run(argv, capture_output=True, text=True, timeout=self.timeout)
        except (OSError, subprocess.TimeoutExpired) as e:
            raise InvocationFailure(f"Editor command failed: {e}", program=self.command[0]) from e
        if result.returncode != 0:
            raise InvocationFailure(
                f"Editor command exited with status {result.returncode}",
                program=self.command[0],
                returncode=result.returncode,
                stderr=result.stderr,
            )


class Renderer:
    """Graph viewer started fire-and-forget.

    Args:
        command: Viewer program and leading arguments; the document path
            is appended.
        diagnostics: Log receiving start failures, or None.
    """

    def __init__(self, command: list[str], diagnostics: DiagnosticLog | None = None):
        self.command = list(command)
        self.diagnostics = diagnostics

    def show(self, path: Path) -> bool:
        """Start the viewer on ``path``.

        Returns:
            True if the viewer started, False otherwise (the failure is
            logged).
        """
        if not self.command:
            return self._failed(InvocationFailure("No renderer command configured"))
        argv = [*self.command, str(path)]
        try:
            subprocess.Popen(
                argv,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
            )
        except OSError as e:
            failure = InvocationFailure(
                f"Renderer {self.command[0]} could not be started: {e}",
                program=self.command[0],
            )
            return self._failed(failure)
        logger.debug("renderer started: %s", " ".join(argv))
        return True

    def _failed(self, failure: InvocationFailure) -> bool:
        logger.warning("%s", failure)
        if self.diagnostics is not None:
            self.diagnostics.note(str(failure))
        return False


def _command_list(value: Any) -> list[str]:
    if isinstance(value, str):
        return shlex.split(value)
    return [str(part) for part in value or []]


def editor_from_config(config: dict[str, Any], stream: TextIO | None = None) -> Editor:
    """Build the editor described by the ``[editor]`` section."""
    settings = config.get("editor", {})
    options = {
        "separator": settings.get("separator", DEFAULT_SEPARATOR),
        "location_template": settings.get("location_template", DEFAULT_LOCATION_TEMPLATE),
    }
    command = _command_list(settings.get("command"))
    if command:
        return CommandEditor(command, **options)
    return EchoEditor(stream=stream, **options)


def renderer_from_config(
    config: dict[str, Any],
    diagnostics: DiagnosticLog | None = None,
) -> Renderer:
    """Build the renderer described by the ``[renderer]`` section."""
    return Renderer(_command_list(config.get("renderer", {}).get("command")), diagnostics)


__all__ = [
    "Editor",
    "EchoEditor",
    "CommandEditor",
    "Renderer",
    "format_location",
    "editor_from_config",
    "renderer_from_config",
]
