"""Graph document model.

This module provides the in-memory form of a persisted bookmark graph:
- Node: a labeled node with a string attribute map
- Edge: a directed parent -> child relation with its own attributes
- GraphDocument: ordered nodes and edges plus global display attributes

Node order and edge order are insertion order. Child order (used for
"first child" and sibling rotation) is the order of a node's outgoing
edges in the document.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Iterator, Mapping

ROOT_LABEL = "root"

SELECTED = "selected"
PENWIDTH = "penwidth"
STYLE = "style"
COMMAND = "command"
INVISIBLE = "invis"


@dataclass
class Node:
    """A node in the bookmark graph.

    Attributes:
        label: Unique identifier, written as the DOT node ID.
        attrs: Attribute name -> string value.
    """

    label: str
    attrs: dict[str, str] = field(default_factory=dict)

    def get(self, key: str, default: str | None = None) -> str | None:
        """Get an attribute value."""
        return self.attrs.get(key, default)

    def merge(self, attrs: Mapping[str, str]) -> None:
        """Merge attributes into this node, last write wins per key."""
        self.attrs.update(attrs)

    @property
    def is_selected(self) -> bool:
        return self.attrs.get(SELECTED) == "true"


@dataclass
class Edge:
    """A directed parent -> child edge.

    Attributes:
        tail: Label of the parent node.
        head: Label of the child node.
        attrs: Display attributes (label, style).
    """

    tail: str
    head: str
    attrs: dict[str, str] = field(default_factory=dict)

    @property
    def key(self) -> tuple[str, str]:
        return (self.tail, self.head)

    def __str__(self) -> str:
        return f"{self.tail} -> {self.head}"


@dataclass(eq=False)
class GraphDocument:
    """Container for one persisted graph.

    Provides indexed access to nodes and ordered access to edges. Uses an
    iterator API for traversal, like the rest of the graph package.

    Attributes:
        name: Graph name written in the ``digraph`` header.
        strict: Whether the document was declared ``strict``.
        graph_attrs: Global graph attributes (``graph [...]``).
        node_defaults: Default node attributes (``node [...]``).
        edge_defaults: Default edge attributes (``edge [...]``).
    """

    name: str = "waymark"
    strict: bool = False
    graph_attrs: dict[str, str] = field(default_factory=dict)
    node_defaults: dict[str, str] = field(default_factory=dict)
    edge_defaults: dict[str, str] = field(default_factory=dict)

    # Internal storage (prefixed) - excluded from constructor
    _nodes: dict[str, Node] = field(default_factory=dict, init=False, repr=False)
    _edges: list[Edge] = field(default_factory=list, init=False, repr=False)

    def __eq__(self, other: object) -> bool:
        """Documents are equal when their ordered content is equal."""
        if not isinstance(other, GraphDocument):
            return NotImplemented
        return (
            self.name == other.name
            and self.strict == other.strict
            and self.graph_attrs == other.graph_attrs
            and self.node_defaults == other.node_defaults
            and self.edge_defaults == other.edge_defaults
            and list(self._nodes.values()) == list(other._nodes.values())
            and self._edges == other._edges
        )

    # Node access
    def iter_nodes(self) -> Iterator[Node]:
        """Iterate nodes in insertion order."""
        yield from self._nodes.values()

    def labels(self) -> list[str]:
        """Return all node labels in insertion order."""
        return list(self._nodes)

    def node_count(self) -> int:
        return len(self._nodes)

    def has_node(self, label: str) -> bool:
        return label in self._nodes

    def find_node(self, label: str) -> Node | None:
        """Find a node by label.

        Args:
            label: The node label to find.

        Returns:
            The matching Node, or None if not found.
        """
        return self._nodes.get(label)

    def node_attr(self, label: str, key: str) -> str | None:
        """Read a node attribute, falling back to the node defaults.

        Returns:
            The value, or None if the node is absent or the attribute is
            set neither on the node nor in the defaults.
        """
        node = self._nodes.get(label)
        if node is None:
            return None
        if key in node.attrs:
            return node.attrs[key]
        return self.node_defaults.get(key)

    def upsert_node(self, label: str, attrs: Mapping[str, str] | None = None) -> Node:
        """Create a node, or merge attributes into an existing one.

        Args:
            label: Node label.
            attrs: Attributes to merge.

        Returns:
            The created or updated Node.
        """
        node = self._nodes.get(label)
        if node is None:
            node = Node(label=label)
            self._nodes[label] = node
        if attrs:
            node.merge(attrs)
        return node

    def remove_nodes(self, labels: set[str] | list[str]) -> list[str]:
        """Remove nodes and every edge touching any of them.

        Args:
            labels: Labels to remove; unknown labels are ignored.

        Returns:
            Labels that were actually removed, in document order.
        """
        doomed = set(labels)
        removed = [label for label in self._nodes if label in doomed]
        for label in removed:
            del self._nodes[label]
        self._edges = [e for e in self._edges if e.tail not in doomed and e.head not in doomed]
        return removed

    # Edge access
    def iter_edges(self) -> Iterator[Edge]:
        """Iterate edges in insertion order."""
        yield from self._edges

    def edge_count(self) -> int:
        return len(self._edges)

    def find_edge(self, tail: str, head: str) -> Edge | None:
        for edge in self._edges:
            if edge.tail == tail and edge.head == head:
                return edge
        return None

    def add_edge(self, tail: str, head: str, attrs: Mapping[str, str] | None = None) -> Edge:
        """Add an edge, merging attributes if the same edge already exists.

        Missing endpoints are created implicitly, as in DOT.

        Args:
            tail: Parent label.
            head: Child label.
            attrs: Edge attributes.

        Returns:
            The created or updated Edge.
        """
        self.upsert_node(tail)
        self.upsert_node(head)
        edge = self.find_edge(tail, head)
        if edge is None:
            edge = Edge(tail=tail, head=head)
            self._edges.append(edge)
        if attrs:
            edge.attrs.update(attrs)
        return edge

    def iter_out_edges(self, label: str) -> Iterator[Edge]:
        for edge in self._edges:
            if edge.tail == label:
                yield edge

    def iter_in_edges(self, label: str) -> Iterator[Edge]:
        for edge in self._edges:
            if edge.head == label:
                yield edge

    def children(self, label: str) -> list[str]:
        """Return child labels in insertion order."""
        return [edge.head for edge in self.iter_out_edges(label)]

    def parents(self, label: str) -> list[str]:
        """Return parent labels in insertion order."""
        return [edge.tail for edge in self.iter_in_edges(label)]

    def selected_labels(self) -> list[str]:
        """Return labels of every node marked selected."""
        return [node.label for node in self._nodes.values() if node.is_selected]

    def clone(self) -> GraphDocument:
        """Create a deep copy of this document."""
        return copy.deepcopy(self)


def new_document(
    name: str,
    root_label: str = ROOT_LABEL,
    emphasis: str = "3",
    graph_attrs: Mapping[str, str] | None = None,
) -> GraphDocument:
    """Build a fresh document containing only the invisible, selected root.

    Args:
        name: Graph name.
        root_label: Label of the anchor root.
        emphasis: Pen width marking the selection.
        graph_attrs: Optional global graph attributes.

    Returns:
        The new GraphDocument.
    """
    document = GraphDocument(name=name, graph_attrs=dict(graph_attrs or {}))
    document.upsert_node(
        root_label,
        {STYLE: INVISIBLE, SELECTED: "true", PENWIDTH: emphasis},
    )
    return document


__all__ = [
    "ROOT_LABEL",
    "SELECTED",
    "PENWIDTH",
    "STYLE",
    "COMMAND",
    "INVISIBLE",
    "Node",
    "Edge",
    "GraphDocument",
    "new_document",
]
