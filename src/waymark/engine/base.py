"""Base query engine.

An engine executes structured requests against a persisted document. It
never replaces the document itself: mutations write the complete new
document to ``output_path`` and the Adapter decides whether to swap it in.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path

from waymark.engine.requests import Mutation, Query


@dataclass
class EngineResult:
    """Outcome of one engine invocation.

    Attributes:
        engine: Engine name ("builtin", "gvpr").
        kind: "query" or "mutation".
        program: Program text (gvpr) or request description (builtin).
        lines: Raw stdout lines; for queries, one escaped literal per line.
        returncode: Process exit status, or None if the process never ran
            to completion.
        stderr: Captured error output.
        error: Failure description; None on success.
        argv: Command line, for subprocess engines.
    """

    engine: str
    kind: str
    program: str
    lines: list[str] = field(default_factory=list)
    returncode: int | None = 0
    stderr: str = ""
    error: str | None = None
    argv: list[str] | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.returncode == 0


@dataclass
class MutationOutcome:
    """Result of Adapter.mutate.

    Attributes:
        applied: True if the document was atomically replaced.
        error: Failure description when not applied.
    """

    applied: bool
    error: str | None = None


class QueryEngine(ABC):
    """Base class for query/transform engines."""

    name: str = "engine"

    @abstractmethod
    def run_query(self, document_path: Path, query: Query) -> EngineResult:
        """Run a read-only query.

        Args:
            document_path: Persisted document to read.
            query: Structured query.

        Returns:
            EngineResult whose lines are escaped literals.
        """

    @abstractmethod
    def run_mutation(
        self,
        document_path: Path,
        mutation: Mutation,
        output_path: Path,
    ) -> EngineResult:
        """Apply a mutation, writing the full resulting document.

        Args:
            document_path: Persisted document to read; never written.
            mutation: Structured mutation.
            output_path: File that receives the resulting document.

        Returns:
            EngineResult describing the invocation.
        """


__all__ = ["EngineResult", "MutationOutcome", "QueryEngine"]
