"""In-process engine.

Evaluates requests directly on a deserialized GraphDocument. Behaves like
the gvpr engine, including the escaped one-literal-per-line query output,
so the store cannot tell the two apart.
"""

from __future__ import annotations

from pathlib import Path

from waymark.engine.base import EngineResult, QueryEngine
from waymark.engine.requests import (
    AddEdge,
    FindNodes,
    Mutation,
    Neighbors,
    NodeAttribute,
    NodeExists,
    Query,
    RemoveNodes,
    SetSelection,
    Step,
    UpsertNode,
)
from waymark.errors import WaymarkError
from waymark.graph.codec import deserialize, escape_literal, serialize
from waymark.graph.document import PENWIDTH, SELECTED, GraphDocument


def evaluate_query(document: GraphDocument, query: Query) -> list[str]:
    """Evaluate a query against a document.

    Returns:
        Unescaped result values.
    """
    if isinstance(query, FindNodes):
        return [
            node.label
            for node in document.iter_nodes()
            if all(document.node_attr(node.label, k) == v for k, v in query.where.items())
        ]
    if isinstance(query, Neighbors):
        if query.direction == "out":
            return document.children(query.label)
        return document.parents(query.label)
    if isinstance(query, NodeAttribute):
        if not document.has_node(query.label):
            return []
        return [document.node_attr(query.label, query.key) or ""]
    if isinstance(query, NodeExists):
        return [query.label] if document.has_node(query.label) else []
    raise TypeError(f"Unsupported query: {query!r}")


def apply_step(document: GraphDocument, step: Step) -> None:
    """Apply one mutation step in place."""
    if isinstance(step, UpsertNode):
        document.upsert_node(step.label, step.attrs)
    elif isinstance(step, AddEdge):
        document.add_edge(step.tail, step.head, step.attrs)
    elif isinstance(step, SetSelection):
        for node in document.iter_nodes():
            if node.label == step.label:
                node.merge({SELECTED: "true", PENWIDTH: step.emphasis})
            else:
                node.merge({SELECTED: "false", PENWIDTH: step.normal})
    elif isinstance(step, RemoveNodes):
        document.remove_nodes(list(step.labels))
    else:
        raise TypeError(f"Unsupported mutation step: {step!r}")


class BuiltinEngine(QueryEngine):
    """Engine that runs requests in process."""

    name = "builtin"

    def _load(self, document_path: Path) -> GraphDocument:
        return deserialize(document_path.read_text(encoding="utf-8"))

    def run_query(self, document_path: Path, query: Query) -> EngineResult:
        result = EngineResult(engine=self.name, kind="query", program=repr(query))
        try:
            values = evaluate_query(self._load(document_path), query)
            result.lines = [escape_literal(v, quote=False) for v in values]
        except (OSError, WaymarkError) as e:
            result.returncode = 1
            result.error = str(e)
        return result

    def run_mutation(
        self,
        document_path: Path,
        mutation: Mutation,
        output_path: Path,
    ) -> EngineResult:
        result = EngineResult(engine=self.name, kind="mutation", program=mutation.describe())
        try:
            document = self._load(document_path)
            for step in mutation.steps:
                apply_step(document, step)
            output_path.write_text(serialize(document), encoding="utf-8")
        except (OSError, WaymarkError) as e:
            result.returncode = 1
            result.error = str(e)
        return result


__all__ = ["BuiltinEngine", "evaluate_query", "apply_step"]
