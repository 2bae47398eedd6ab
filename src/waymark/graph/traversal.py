"""Reachability over parent -> child edges.

The store computes subtree membership by asking its engine for the
children of one node at a time, so traversal here is written against a
neighbor callback rather than a concrete document.
"""

from __future__ import annotations

from collections import deque
from typing import Callable, Iterable, Iterator


def iter_descendants(
    start: str,
    children_of: Callable[[str], Iterable[str]],
) -> Iterator[str]:
    """Iterate all nodes forward-reachable from ``start`` (BFS).

    Each node is visited at most once, so cycles terminate even though a
    well-formed bookmark graph is a tree.

    Args:
        start: Label to start from (not yielded).
        children_of: Returns the child labels of a node.

    Yields:
        Descendant labels in breadth-first order.
    """
    visited: set[str] = {start}
    queue: deque[str] = deque([start])
    while queue:
        label = queue.popleft()
        for child in children_of(label):
            if child not in visited:
                visited.add(child)
                yield child
                queue.append(child)


def subtree(start: str, children_of: Callable[[str], Iterable[str]]) -> list[str]:
    """Return ``start`` followed by its descendants in BFS order."""
    return [start, *iter_descendants(start, children_of)]


__all__ = ["iter_descendants", "subtree"]
