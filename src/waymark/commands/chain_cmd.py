"""
waymark.commands.chain_cmd - Command chain commands.

- `waymark mark LABEL --file F --line N` - Bookmark a file position
- `waymark push ACTION [--label L]` - Append an action
- `waymark pop [--label L]` - Drop the last action
- `waymark exec [--label L]` - Send the chain to the editor
"""

from __future__ import annotations

import argparse
import sys

from waymark.chain import chain, execute, mark, pop_command, push_command
from waymark.collaborators import editor_from_config
from waymark.commands.common import open_store, report


def run(args: argparse.Namespace) -> int:
    """Run a command chain command."""
    store = open_store(args)
    editor = editor_from_config(store.session.config)

    if args.command == "mark":
        action = editor.capture_location(args.file.resolve(), args.line, args.column)
        status = report(mark(store, args.label, action, dict(args.attr)))
        if status == 0:
            print(f"Marked {args.label}: {action}")
        return status

    label = args.label or store.get_selected()

    if args.command == "push":
        status = report(push_command(store, label, args.action))
    elif args.command == "pop":
        status = report(pop_command(store, label))
    else:
        if execute(store, label, editor) is None:
            print(f"{label} has no command chain", file=sys.stderr)
            return 1
        return 0

    if status == 0:
        print(f"{label}: {len(chain(store, label))} action(s)")
    return status
