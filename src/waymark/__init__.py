"""
waymark - Navigation bookmark graph

waymark keeps a tree of labeled places of interest in a body of text,
a single selection cursor, and per-node chains of replayable editor
actions. The tree is stored as a Graphviz DOT document and queried or
rewritten either in process or through gvpr.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("waymark")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"  # Not installed

from waymark.errors import (
    EncodingFailure,
    InvalidInput,
    InvariantViolation,
    InvocationFailure,
    NotFound,
    RootProtection,
    WaymarkError,
)
from waymark.session import Session
from waymark.store import GraphStore

__all__ = [
    "__version__",
    "GraphStore",
    "Session",
    "WaymarkError",
    "InvocationFailure",
    "InvariantViolation",
    "NotFound",
    "RootProtection",
    "EncodingFailure",
    "InvalidInput",
]
