"""Command Chain Manager - replayable editor actions stored on nodes.

A node's chain lives in its ``command`` attribute as segments joined by a
reserved delimiter (``|`` by default). Inside a segment ``\\`` is written
as ``\\\\`` and the delimiter as ``\\|``, so any action text survives.

The chain is stored and composed here; action semantics belong to the
editor.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Mapping

from waymark.errors import InvalidInput
from waymark.graph.document import COMMAND
from waymark.graph.mutations import MutationEntry
from waymark.store import GraphStore

if TYPE_CHECKING:
    from waymark.collaborators import Editor

logger = logging.getLogger(__name__)

DEFAULT_DELIMITER = "|"


def encode_chain(actions: list[str], delimiter: str = DEFAULT_DELIMITER) -> str:
    """Join actions into one attribute value, escaping each segment."""
    return delimiter.join(
        action.replace("\\", "\\\\").replace(delimiter, "\\" + delimiter) for action in actions
    )


def decode_chain(text: str, delimiter: str = DEFAULT_DELIMITER) -> list[str]:
    """Split an attribute value into actions.

    An empty value is an empty chain. A backslash makes the next character
    literal; a trailing backslash is kept.
    """
    if not text:
        return []

    actions: list[str] = []
    current: list[str] = []
    i = 0
    while i < len(text):
        ch = text[i]
        if ch == "\\" and i + 1 < len(text):
            current.append(text[i + 1])
            i += 2
            continue
        if ch == delimiter:
            actions.append("".join(current))
            current = []
        else:
            current.append(ch)
        i += 1
    actions.append("".join(current))
    return actions


def chain(store: GraphStore, label: str) -> list[str]:
    """Return the decoded chain of a node."""
    return decode_chain(store.get_attribute(label, COMMAND), store.session.chain_delimiter)


def _store_chain(store: GraphStore, label: str, actions: list[str]) -> MutationEntry:
    value = encode_chain(actions, store.session.chain_delimiter)
    return store.set_attributes(label, {COMMAND: value})


def push_command(store: GraphStore, label: str, action: str) -> MutationEntry:
    """Append an action to a node's chain.

    Raises:
        InvalidInput: If the action is empty.
        NotFound: If the node does not exist.
    """
    if not action:
        raise InvalidInput("Action must not be empty")
    return _store_chain(store, label, [*chain(store, label), action])


def pop_command(store: GraphStore, label: str) -> MutationEntry:
    """Drop the last action of a node's chain; an empty chain stays empty."""
    return _store_chain(store, label, chain(store, label)[:-1])


def execute(store: GraphStore, label: str, editor: Editor) -> str | None:
    """Hand a node's whole chain to the editor as one instruction.

    Segments are joined with the editor's own separator.

    Returns:
        The instruction sent, or None for an empty chain.
    """
    actions = chain(store, label)
    if not actions:
        logger.debug("%s has no command chain", label)
        return None
    instruction = editor.separator.join(actions)
    editor.run(instruction)
    return instruction


def mark(
    store: GraphStore,
    label: str,
    location_action: str,
    attrs: Mapping[str, str] | None = None,
) -> list[MutationEntry]:
    """Add a bookmark node under the selection and push a location action onto it.

    Returns:
        The recorded entries; the push is not attempted if the add failed.
    """
    if not location_action:
        raise InvalidInput("Action must not be empty")
    entries = [store.add_node(label, attrs)]
    if entries[0].applied:
        entries.append(push_command(store, label, location_action))
    return entries


__all__ = [
    "encode_chain",
    "decode_chain",
    "chain",
    "push_command",
    "pop_command",
    "execute",
    "mark",
]
