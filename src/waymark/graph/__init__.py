"""Graph module - Bookmark graph data structures.

Exports:
- GraphDocument: Ordered nodes and edges of one persisted graph
- Node: Labeled node with string attributes
- Edge: Directed parent -> child relation
- new_document: Fresh document holding only the anchor root
- serialize / deserialize: DOT codec
- escape_literal / unescape_literal: Literal escaping boundary
- MutationEntry / MutationLog: Mutation history

Note: the persisted store is waymark.store.GraphStore
"""

from waymark.graph.codec import deserialize, escape_literal, serialize, unescape_literal
from waymark.graph.document import ROOT_LABEL, Edge, GraphDocument, Node, new_document
from waymark.graph.mutations import MutationEntry, MutationLog
from waymark.graph.traversal import iter_descendants, subtree

__all__ = [
    "ROOT_LABEL",
    "GraphDocument",
    "Node",
    "Edge",
    "new_document",
    "serialize",
    "deserialize",
    "escape_literal",
    "unescape_literal",
    "MutationEntry",
    "MutationLog",
    "iter_descendants",
    "subtree",
]
