"""
waymark.commands.graph_cmd - Graph lifecycle commands.

- `waymark init NAME` - Create a graph and make it current
- `waymark open NAME` - Make an existing graph current
- `waymark show` - Print the graph as an indented tree
- `waymark render` - Start the viewer on the document
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any

from waymark.chain import decode_chain
from waymark.collaborators import renderer_from_config
from waymark.commands.common import load_session, open_store
from waymark.graph.document import COMMAND, GraphDocument
from waymark.store import GraphStore


def run(args: argparse.Namespace) -> int:
    """Run a graph lifecycle command."""
    if args.command == "init":
        return _init(args)
    if args.command == "open":
        return _open(args)
    if args.command == "show":
        return _show(args)
    return _render(args)


def _init(args: argparse.Namespace) -> int:
    session = load_session(args)
    store = GraphStore.create(session, args.name, overwrite=args.force)
    print(f"Created {store.path}")
    return 0


def _open(args: argparse.Namespace) -> int:
    session = load_session(args)
    store = GraphStore.open(session, args.name)
    print(f"Current graph: {store.name} ({store.path})")
    return 0


def _tree_lines(document: GraphDocument, root: str, delimiter: str) -> list[str]:
    lines: list[str] = []
    visited: set[str] = set()

    def visit(start: str) -> None:
        stack = [(start, 0)]
        while stack:
            label, depth = stack.pop()
            if label in visited:
                continue
            visited.add(label)
            node = document.find_node(label)
            text = "  " * depth + label
            if node is not None and node.is_selected:
                text += " *"
            actions = decode_chain(document.node_attr(label, COMMAND) or "", delimiter)
            if actions:
                text += f"  [{len(actions)} action{'s' if len(actions) != 1 else ''}]"
            lines.append(text)
            for child in reversed(document.children(label)):
                stack.append((child, depth + 1))

    visit(root)
    # Nodes not reachable from the root (hand-edited documents)
    for label in document.labels():
        visit(label)
    return lines


def _as_dict(document: GraphDocument, delimiter: str) -> dict[str, Any]:
    nodes = []
    for node in document.iter_nodes():
        parents = document.parents(node.label)
        nodes.append(
            {
                "label": node.label,
                "parent": parents[0] if parents else None,
                "children": document.children(node.label),
                "selected": node.is_selected,
                "commands": decode_chain(node.get(COMMAND) or "", delimiter),
                "attrs": dict(node.attrs),
            }
        )
    selected = document.selected_labels()
    return {
        "name": document.name,
        "selected": selected[0] if len(selected) == 1 else None,
        "nodes": nodes,
    }


def _show(args: argparse.Namespace) -> int:
    store = open_store(args)
    document = store.snapshot()
    delimiter = store.session.chain_delimiter
    if args.json:
        print(json.dumps(_as_dict(document, delimiter), indent=2))
        return 0
    print(f"{store.name} ({store.path})")
    for line in _tree_lines(document, store.root_label, delimiter):
        print(line)
    return 0


def _render(args: argparse.Namespace) -> int:
    store = open_store(args)
    renderer = renderer_from_config(store.session.config, store.session.diagnostics)
    if not renderer.show(store.path):
        viewer = " ".join(renderer.command) or "renderer"
        print(f"Error: could not start {viewer}", file=sys.stderr)
        return 1
    return 0
