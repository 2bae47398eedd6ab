"""Structured query and mutation requests.

A request names an operation and carries its literal fields as typed
values. Requests never contain program text: engines compile them, and
every literal is escaped at that point by waymark.graph.codec.

Literals are validated on construction, so an unrepresentable label or
attribute fails with EncodingFailure before any engine is invoked.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Union

from waymark.graph.codec import check_attribute_key, escape_literal


def _check_literal(value: str) -> str:
    escape_literal(value)
    return value


def _check_attrs(attrs: dict[str, str]) -> None:
    for key, value in attrs.items():
        check_attribute_key(key)
        _check_literal(value)


# ─────────────────────────────────────────────────────────────────────────────
# Queries (read-only; results are one literal per line)
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class FindNodes:
    """Labels of nodes whose attributes equal every ``where`` entry."""

    where: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        _check_attrs(self.where)


@dataclass(frozen=True)
class Neighbors:
    """Children (``out``) or parents (``in``) of a node, in edge order."""

    label: str
    direction: Literal["out", "in"] = "out"

    def __post_init__(self) -> None:
        _check_literal(self.label)
        if self.direction not in ("out", "in"):
            raise ValueError(f"Unknown direction: {self.direction}")


@dataclass(frozen=True)
class NodeAttribute:
    """One attribute value of a node; no result line if the node is absent."""

    label: str
    key: str

    def __post_init__(self) -> None:
        _check_literal(self.label)
        check_attribute_key(self.key)


@dataclass(frozen=True)
class NodeExists:
    """The node's own label if it exists, else no result line."""

    label: str

    def __post_init__(self) -> None:
        _check_literal(self.label)


Query = Union[FindNodes, Neighbors, NodeAttribute, NodeExists]


# ─────────────────────────────────────────────────────────────────────────────
# Mutation steps (applied in order, as one unit)
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class UpsertNode:
    """Create a node if absent and merge ``attrs`` into it."""

    label: str
    attrs: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        _check_literal(self.label)
        _check_attrs(self.attrs)


@dataclass(frozen=True)
class AddEdge:
    """Create the edge tail -> head if absent and merge ``attrs`` into it."""

    tail: str
    head: str
    attrs: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        _check_literal(self.tail)
        _check_literal(self.head)
        _check_attrs(self.attrs)


@dataclass(frozen=True)
class SetSelection:
    """Broadcast selection: mark ``label`` selected, every other node not.

    Attributes:
        label: Node to select.
        emphasis: Pen width of the selected node.
        normal: Pen width of every other node.
    """

    label: str
    emphasis: str = "3"
    normal: str = "1"

    def __post_init__(self) -> None:
        _check_literal(self.label)
        _check_literal(self.emphasis)
        _check_literal(self.normal)


@dataclass(frozen=True)
class RemoveNodes:
    """Delete nodes and every edge touching them."""

    labels: tuple[str, ...]

    def __post_init__(self) -> None:
        for label in self.labels:
            _check_literal(label)


Step = Union[UpsertNode, AddEdge, SetSelection, RemoveNodes]


@dataclass(frozen=True)
class Mutation:
    """An ordered group of steps applied atomically.

    Attributes:
        steps: Steps in application order.
        operation: Short operation name used in logs.
    """

    steps: tuple[Step, ...]
    operation: str = "mutate"

    def describe(self) -> str:
        return "\n".join(repr(step) for step in self.steps)


__all__ = [
    "FindNodes",
    "Neighbors",
    "NodeAttribute",
    "NodeExists",
    "Query",
    "UpsertNode",
    "AddEdge",
    "SetSelection",
    "RemoveNodes",
    "Step",
    "Mutation",
]
