"""GraphStore - structural operations on a persisted bookmark graph.

Every read goes through ``Adapter.query`` and every write through one
``Adapter.mutate`` call, so each operation is a single atomic document
replacement. Mutations return the MutationEntry they recorded in the
session's MutationLog; an entry with status "failed" means the engine
failed and the document was left as it was.

Structural rules enforced here:
- the anchor root always exists and cannot be deleted
- exactly one node is selected
- every non-root node has exactly one parent
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Mapping

from waymark.engine.adapter import Adapter
from waymark.engine.requests import (
    AddEdge,
    FindNodes,
    Mutation,
    Neighbors,
    NodeAttribute,
    NodeExists,
    RemoveNodes,
    SetSelection,
    Step,
    UpsertNode,
)
from waymark.errors import InvalidInput, InvariantViolation, NotFound, RootProtection
from waymark.graph.codec import deserialize, serialize
from waymark.graph.document import INVISIBLE, SELECTED, STYLE, GraphDocument, new_document
from waymark.graph.mutations import MutationEntry
from waymark.graph.traversal import iter_descendants
from waymark.session import Session

logger = logging.getLogger(__name__)

EDGE_LABEL = "label"


def _require_label(label: str) -> str:
    if not label:
        raise InvalidInput("Label must not be empty")
    return label


def _check_user_attrs(attrs: Mapping[str, str]) -> dict[str, str]:
    if SELECTED in attrs:
        raise InvalidInput(f"'{SELECTED}' is managed by select, not set directly")
    return {str(k): str(v) for k, v in attrs.items()}


def write_document(path: Path, document: GraphDocument) -> None:
    """Write a document by replacing ``path`` atomically."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, name = tempfile.mkstemp(prefix=f".{path.stem}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(serialize(document))
        os.replace(name, path)
    except BaseException:
        if os.path.exists(name):
            os.unlink(name)
        raise


class GraphStore:
    """One persisted graph document and its operations.

    Use ``GraphStore.create`` or ``GraphStore.open`` rather than the
    constructor.

    Args:
        session: Session context.
        name: Graph name.
        path: Document path.
    """

    def __init__(self, session: Session, name: str, path: Path):
        self.session = session
        self.name = name
        self.path = path
        self.adapter = Adapter(session.engine, path, session.diagnostics)

    def __repr__(self) -> str:
        return f"GraphStore({self.name!r}, {str(self.path)!r})"

    # ─────────────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────────────

    @classmethod
    def create(cls, session: Session, name: str, overwrite: bool = False) -> GraphStore:
        """Create a fresh graph holding only the invisible, selected root.

        The new graph becomes the current graph of the workspace.

        Raises:
            FileExistsError: If the document exists and ``overwrite`` is False.
        """
        path = session.workspace.document_path(name)
        if path.exists() and not overwrite:
            raise FileExistsError(f"Graph already exists: {path}")

        graph_attrs = {}
        rankdir = session.config["graph"].get("rankdir")
        if rankdir:
            graph_attrs["rankdir"] = str(rankdir)
        document = new_document(
            name,
            root_label=session.root_label,
            emphasis=session.emphasis,
            graph_attrs=graph_attrs,
        )
        write_document(path, document)
        session.workspace.write_current(name)
        session.diagnostics.note(f"created graph {name} at {path}")
        logger.debug("created %s", path)
        return cls(session, name, path)

    @classmethod
    def open(cls, session: Session, name: str, make_current: bool = True) -> GraphStore:
        """Open an existing graph.

        Raises:
            NotFound: If the document does not exist.
        """
        path = session.workspace.document_path(name)
        if not path.is_file():
            raise NotFound(f"Graph not found: {name} ({path})", label=name)
        if make_current:
            session.workspace.write_current(name)
        return cls(session, name, path)

    @classmethod
    def current(cls, session: Session, name: str | None = None) -> GraphStore:
        """Open ``name``, else the workspace's current graph, else the default.

        Does not change the current-graph pointer.
        """
        name = name or session.workspace.read_current() or str(session.config["graph"]["default"])
        return cls.open(session, name, make_current=False)

    # ─────────────────────────────────────────────────────────────────────
    # Reads
    # ─────────────────────────────────────────────────────────────────────

    @property
    def root_label(self) -> str:
        return self.session.root_label

    def exists(self, label: str) -> bool:
        return bool(self.adapter.query(NodeExists(label)))

    def _require_node(self, label: str) -> str:
        _require_label(label)
        if not self.exists(label):
            raise NotFound(f"No such node: {label}", label=label)
        return label

    def get_selected(self) -> str:
        """Return the label of the unique selected node.

        Raises:
            InvariantViolation: If zero or several nodes are selected.
        """
        labels = self.adapter.query(FindNodes({SELECTED: "true"}))
        if len(labels) != 1:
            raise InvariantViolation(
                f"Expected exactly one selected node, found {len(labels)}",
                labels=labels,
            )
        return labels[0]

    def _children(self, label: str) -> list[str]:
        return self.adapter.query(Neighbors(label, "out"))

    def get_children(self, label: str | None = None) -> list[str]:
        """Return child labels in insertion order.

        Args:
            label: Node to inspect (default: the selection).
        """
        if label is None:
            label = self.get_selected()
        else:
            self._require_node(label)
        return self._children(label)

    def get_parent(self, label: str | None = None) -> str | None:
        """Return the parent label, or None for the root or a parentless node.

        Raises:
            InvariantViolation: If the node has more than one parent.
        """
        if label is None:
            label = self.get_selected()
        else:
            self._require_node(label)
        parents = self.adapter.query(Neighbors(label, "in"))
        if len(parents) > 1:
            raise InvariantViolation(f"Node {label} has {len(parents)} parents", labels=parents)
        return parents[0] if parents else None

    def get_attribute(self, label: str, key: str) -> str:
        """Return an attribute value ("" when unset).

        Raises:
            NotFound: If the node does not exist.
        """
        _require_label(label)
        values = self.adapter.query(NodeAttribute(label, key))
        if not values:
            raise NotFound(f"No such node: {label}", label=label)
        if len(values) > 1:
            raise InvariantViolation(f"Attribute {key} of {label} returned {len(values)} values")
        return values[0]

    def descendants(self, label: str | None = None) -> list[str]:
        """Return every label forward-reachable from ``label`` in BFS order."""
        if label is None:
            label = self.get_selected()
        else:
            self._require_node(label)
        return list(iter_descendants(label, self._children))

    def snapshot(self) -> GraphDocument:
        """Parse the persisted document (read-only copy)."""
        return deserialize(self.path.read_text(encoding="utf-8"))

    # ─────────────────────────────────────────────────────────────────────
    # Mutations
    # ─────────────────────────────────────────────────────────────────────

    def _selection_step(self, label: str) -> SetSelection:
        return SetSelection(label, emphasis=self.session.emphasis, normal=self.session.normal)

    def _apply(
        self,
        operation: str,
        target: str,
        steps: list[Step],
        before: dict[str, Any] | None = None,
        after: dict[str, Any] | None = None,
    ) -> MutationEntry:
        outcome = self.adapter.mutate(Mutation(tuple(steps), operation))
        entry = MutationEntry(
            operation=operation,
            target_id=target,
            status="applied" if outcome.applied else "failed",
            before_state=before or {},
            after_state=after or {},
            error=outcome.error,
        )
        self.session.mutation_log.append(entry)
        logger.debug("%s", entry)
        return entry

    def _skip(self, operation: str, target: str) -> MutationEntry:
        entry = MutationEntry(operation=operation, target_id=target, status="skipped")
        self.session.mutation_log.append(entry)
        return entry

    def set_attributes(self, label: str, attrs: Mapping[str, str]) -> MutationEntry:
        """Merge attributes into an existing node.

        An empty mapping records a skipped entry without invoking the engine.

        Raises:
            NotFound: If the node does not exist.
            InvalidInput: If ``attrs`` tries to set the selection flag.
        """
        _require_label(label)
        values = _check_user_attrs(attrs)
        if not values:
            return self._skip("set_attributes", label)
        self._require_node(label)
        return self._apply(
            "set_attributes",
            label,
            [UpsertNode(label, values)],
            after=dict(values),
        )

    def add_node(self, label: str, attrs: Mapping[str, str] | None = None) -> MutationEntry:
        """Add a node under the selection and select it.

        Under the root the connecting edge is invisible. Re-adding an
        existing label merges its attributes and selects it without adding
        a second parent edge.
        """
        _require_label(label)
        values = _check_user_attrs(attrs or {})
        selected = self.get_selected()

        steps: list[Step] = [UpsertNode(label, values)]
        if self.exists(label):
            parent = self.get_parent(label)
        else:
            parent = selected
            edge_attrs = {EDGE_LABEL: ""}
            if parent == self.root_label:
                edge_attrs[STYLE] = INVISIBLE
            steps.append(AddEdge(parent, label, edge_attrs))
        steps.append(self._selection_step(label))

        return self._apply(
            "add_node",
            label,
            steps,
            before={"selected": selected},
            after={"selected": label, "parent": parent, "attrs": dict(values)},
        )

    def add_edge(
        self,
        tail: str,
        head: str,
        attrs: Mapping[str, str] | None = None,
    ) -> MutationEntry:
        """Add (or update) the edge tail -> head.

        Raises:
            NotFound: If either endpoint does not exist.
            InvariantViolation: If head would get a second parent, head is the
                root, or the edge would close a cycle.
        """
        self._require_node(tail)
        self._require_node(head)
        if head == self.root_label:
            raise InvariantViolation(f"The root {head} cannot have a parent", labels=[tail, head])
        if tail == head:
            raise InvariantViolation(f"Node {head} cannot be its own parent", labels=[head])

        parent = self.get_parent(head)
        if parent is not None and parent != tail:
            raise InvariantViolation(
                f"Node {head} already has parent {parent}",
                labels=[parent, tail, head],
            )
        if parent is None and tail in iter_descendants(head, self._children):
            raise InvariantViolation(
                f"Edge {tail} -> {head} would create a cycle",
                labels=[tail, head],
            )

        values = {str(k): str(v) for k, v in (attrs or {}).items()}
        return self._apply(
            "add_edge",
            head,
            [AddEdge(tail, head, values)],
            before={"parent": parent},
            after={"parent": tail, "attrs": values},
        )

    def select(self, label: str) -> MutationEntry:
        """Select a node; every other node is deselected.

        Raises:
            NotFound: If the node does not exist.
        """
        self._require_node(label)
        before = self.get_selected()
        return self._apply(
            "select",
            label,
            [self._selection_step(label)],
            before={"selected": before},
            after={"selected": label},
        )

    def delete_subtree(self) -> MutationEntry:
        """Delete the selection and its descendants, then select the former parent.

        Raises:
            RootProtection: If the root is selected. Nothing is changed.
        """
        selected = self.get_selected()
        if selected == self.root_label:
            raise RootProtection(f"The root {selected} cannot be deleted")

        parent = self.get_parent(selected) or self.root_label
        removed = [
            label
            for label in (selected, *iter_descendants(selected, self._children))
            if label != self.root_label
        ]
        if parent in removed:
            parent = self.root_label

        return self._apply(
            "delete_subtree",
            selected,
            [RemoveNodes(tuple(removed)), self._selection_step(parent)],
            before={"selected": selected},
            after={"selected": parent, "removed": removed},
        )


__all__ = ["GraphStore", "write_document"]
