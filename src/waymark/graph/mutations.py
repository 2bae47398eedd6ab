"""Mutation records for GraphStore operations.

Every store mutation produces a MutationEntry, whether the engine applied
it, refused it, or failed. Entries are kept in an append-only MutationLog
owned by the session.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal
from uuid import uuid4

MutationStatus = Literal["applied", "failed", "skipped"]


@dataclass
class MutationEntry:
    """Single mutation operation record.

    Attributes:
        operation: Operation type (e.g., "add_node", "select", "delete_subtree").
        target_id: Primary target label of the mutation.
        status: "applied" when the document was replaced, "failed" when the
            engine invocation failed (document untouched), "skipped" when
            there was nothing to do.
        before_state: Relevant state before the mutation.
        after_state: Requested state after the mutation.
        error: Failure description for "failed" entries.
        id: Unique mutation ID (UUID4).
        timestamp: When the mutation was recorded.
    """

    operation: str
    target_id: str
    status: MutationStatus = "applied"
    before_state: dict[str, Any] = field(default_factory=dict)
    after_state: dict[str, Any] = field(default_factory=dict)
    error: str | None = None
    id: str = field(default_factory=lambda: uuid4().hex)
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def applied(self) -> bool:
        return self.status == "applied"

    def __str__(self) -> str:
        """Human-readable representation."""
        text = f"[{self.id[:8]}] {self.operation}({self.target_id}) {self.status}"
        if self.error:
            text += f": {self.error}"
        return text


class MutationLog:
    """Append-only mutation history.

    Example:
        >>> log = MutationLog()
        >>> log.append(MutationEntry(operation="select", target_id="A"))
        >>> len(log)
        1
    """

    def __init__(self) -> None:
        self._entries: list[MutationEntry] = []

    def append(self, entry: MutationEntry) -> None:
        self._entries.append(entry)

    def iter_entries(self) -> Iterator[MutationEntry]:
        """Iterate over all entries in chronological order."""
        yield from self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def last(self) -> MutationEntry | None:
        """Return the most recent entry, or None if empty."""
        return self._entries[-1] if self._entries else None

    def find_by_id(self, mutation_id: str) -> MutationEntry | None:
        for entry in self._entries:
            if entry.id == mutation_id:
                return entry
        return None

    def failures(self) -> list[MutationEntry]:
        """Return entries whose engine invocation failed."""
        return [entry for entry in self._entries if entry.status == "failed"]


__all__ = ["MutationEntry", "MutationLog", "MutationStatus"]
