"""Navigation Engine - move the selection through the tree.

Each move is a Select on the store, so it is one atomic mutation. Moves
that have nowhere to go leave the document untouched and invoke nothing
beyond the reads needed to find that out.
"""

from __future__ import annotations

from waymark.store import GraphStore


def ascend(store: GraphStore) -> str:
    """Select the parent of the selection.

    No-op at the root or on a parentless node.

    Returns:
        The label selected afterwards.
    """
    selected = store.get_selected()
    parent = store.get_parent(selected)
    if parent is None:
        return selected
    store.select(parent)
    return parent


def descend(store: GraphStore) -> str:
    """Select the first child of the selection; no-op without children."""
    selected = store.get_selected()
    children = store.get_children(selected)
    if not children:
        return selected
    store.select(children[0])
    return children[0]


def sibling(store: GraphStore) -> str:
    """Select the next sibling in insertion order, wrapping to the first.

    No-op at the root, on a parentless node, and for an only child.
    """
    selected = store.get_selected()
    if selected == store.root_label:
        return selected
    parent = store.get_parent(selected)
    if parent is None:
        return selected

    siblings = store.get_children(parent)
    index = siblings.index(selected)
    target = siblings[(index + 1) % len(siblings)]
    if target != selected:
        store.select(target)
    return target


__all__ = ["ascend", "descend", "sibling"]
