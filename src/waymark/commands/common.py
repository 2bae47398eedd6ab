"""
waymark.commands.common - Session and store helpers shared by commands.
"""

from __future__ import annotations

import argparse
import sys

from waymark.graph.mutations import MutationEntry
from waymark.session import Session
from waymark.store import GraphStore


def load_session(args: argparse.Namespace) -> Session:
    """Build the session for this invocation from ``--config``."""
    return Session.load(getattr(args, "config", None))


def open_store(args: argparse.Namespace, session: Session | None = None) -> GraphStore:
    """Open the graph named by ``--graph``, else the current graph."""
    session = session or load_session(args)
    return GraphStore.current(session, getattr(args, "graph", None))


def report(entries: list[MutationEntry] | MutationEntry) -> int:
    """Print failed mutations to stderr and return the exit code."""
    if isinstance(entries, MutationEntry):
        entries = [entries]
    failed = [entry for entry in entries if entry.status == "failed"]
    for entry in failed:
        print(f"Error: {entry.operation} not applied: {entry.error}", file=sys.stderr)
    return 1 if failed else 0
