"""
waymark.commands.node_cmd - Structural edits.

- `waymark add LABEL [--attr K=V]` - Add a node under the selection
- `waymark select LABEL` - Select a node
- `waymark delete` - Delete the selected subtree
"""

from __future__ import annotations

import argparse

from waymark.commands.common import open_store, report


def run(args: argparse.Namespace) -> int:
    """Run a structural edit command."""
    store = open_store(args)

    if args.command == "add":
        entry = store.add_node(args.label, dict(args.attr))
    elif args.command == "select":
        entry = store.select(args.label)
    else:
        entry = store.delete_subtree()
        if entry.applied:
            removed = entry.after_state.get("removed", [])
            print(f"Deleted {len(removed)} node(s): {', '.join(removed)}")

    if entry.applied:
        print(f"Selected: {entry.after_state['selected']}")
    return report(entry)
