"""Exception taxonomy for waymark.

Every failure the graph store can signal derives from ``WaymarkError`` so
the CLI can report it uniformly. Where a failure is also a natural
built-in category (a missing key, a bad value) the exception inherits
from that built-in too.
"""

from __future__ import annotations


class WaymarkError(Exception):
    """Base exception for all waymark errors."""


class InvocationFailure(WaymarkError):
    """An external program (query engine, renderer) failed or could not start."""

    def __init__(
        self,
        message: str,
        program: str | None = None,
        returncode: int | None = None,
        stderr: str = "",
    ):
        super().__init__(message)
        self.program = program
        self.returncode = returncode
        self.stderr = stderr


class InvariantViolation(WaymarkError):
    """The persisted graph breaks a structural invariant.

    Raised when the selection count is not exactly one, or when an edge
    would give a node a second parent.
    """

    def __init__(self, message: str, labels: list[str] | None = None):
        super().__init__(message)
        self.labels = labels or []


class NotFound(WaymarkError, KeyError):
    """A label or document does not exist."""

    def __init__(self, message: str, label: str | None = None):
        super().__init__(message)
        self.label = label

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message
        return str(self.args[0]) if self.args else ""


class RootProtection(WaymarkError):
    """The anchor root cannot be deleted."""


class EncodingFailure(WaymarkError, ValueError):
    """A literal cannot be embedded safely in DOT or a gvpr program."""

    def __init__(self, message: str, literal: str | None = None):
        super().__init__(message)
        self.literal = literal


class InvalidInput(WaymarkError, ValueError):
    """User input was rejected (empty label, empty action)."""


class DocumentFormatError(WaymarkError, ValueError):
    """Persisted text is not a graph document this codec understands."""

    def __init__(self, message: str, line: int | None = None):
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message)
        self.line = line


class ConfigError(WaymarkError):
    """Configuration could not be loaded or has an invalid value."""


__all__ = [
    "WaymarkError",
    "InvocationFailure",
    "InvariantViolation",
    "NotFound",
    "RootProtection",
    "EncodingFailure",
    "InvalidInput",
    "DocumentFormatError",
    "ConfigError",
]
