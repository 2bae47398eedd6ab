"""
waymark.commands.nav - Move the selection.

- `waymark up` - Parent
- `waymark down` - First child
- `waymark next` - Next sibling, wrapping
"""

from __future__ import annotations

import argparse

from waymark.commands.common import open_store, report
from waymark.navigation import ascend, descend, sibling

_MOVES = {"up": ascend, "down": descend, "next": sibling}


def run(args: argparse.Namespace) -> int:
    """Run a navigation command."""
    store = open_store(args)
    before = len(store.session.mutation_log)
    label = _MOVES[args.command](store)

    entries = list(store.session.mutation_log.iter_entries())[before:]
    status = report(entries)
    if status == 0:
        print(f"Selected: {label}")
    return status
