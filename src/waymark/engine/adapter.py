"""Adapter - the single boundary between the store and an engine.

Queries return decoded values; any failure raises InvocationFailure.
Mutations are atomic: the engine writes the whole new document to a
temporary file beside the original, the result is checked by parsing it,
and only then does ``os.replace`` swap it in. A failed mutation leaves the
persisted document byte-identical.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

from waymark.engine.base import EngineResult, MutationOutcome, QueryEngine
from waymark.engine.requests import Mutation, Query
from waymark.errors import DocumentFormatError, InvocationFailure
from waymark.graph.codec import deserialize, unescape_literal

if TYPE_CHECKING:
    from waymark.session import DiagnosticLog

logger = logging.getLogger(__name__)


class Adapter:
    """Run requests against one persisted document.

    Args:
        engine: Engine that executes the requests.
        document_path: The persisted document.
        diagnostics: Log receiving every invocation, or None.
    """

    def __init__(
        self,
        engine: QueryEngine,
        document_path: Path,
        diagnostics: DiagnosticLog | None = None,
    ):
        self.engine = engine
        self.document_path = document_path
        self.diagnostics = diagnostics

    def _record(self, result: EngineResult, output: list[str] | None = None) -> None:
        if self.diagnostics is not None:
            self.diagnostics.record(result, output)

    def query(self, query: Query) -> list[str]:
        """Run a read-only query.

        Returns:
            Result values, one per output line, unescaped.

        Raises:
            InvocationFailure: If the engine fails or the document is missing.
        """
        if not self.document_path.is_file():
            raise InvocationFailure(f"Document not found: {self.document_path}")

        result = self.engine.run_query(self.document_path, query)
        self._record(result)
        if not result.ok:
            logger.debug("query failed: %s", result.error)
            raise InvocationFailure(
                f"Query {type(query).__name__} failed: {result.error}",
                program=result.program,
                returncode=result.returncode,
                stderr=result.stderr,
            )
        return [unescape_literal(line) for line in result.lines]

    def mutate(self, mutation: Mutation) -> MutationOutcome:
        """Apply a mutation atomically.

        Engine failures are logged and reported in the outcome; they do not
        raise. The document is replaced only after the engine succeeds and
        its output parses.
        """
        if not self.document_path.is_file():
            message = f"Document not found: {self.document_path}"
            if self.diagnostics is not None:
                self.diagnostics.note(f"{mutation.operation}: {message}")
            return MutationOutcome(applied=False, error=message)

        fd, name = tempfile.mkstemp(
            prefix=f".{self.document_path.stem}.",
            suffix=".tmp",
            dir=self.document_path.parent,
        )
        os.close(fd)
        temp_path = Path(name)
        try:
            result = self.engine.run_mutation(self.document_path, mutation, temp_path)
            try:
                output = temp_path.read_text(encoding="utf-8") if result.ok else ""
            except UnicodeDecodeError as e:
                self._record(result)
                return self._failed(mutation, f"engine output is not UTF-8: {e}")
            self._record(result, output.splitlines())
            if not result.ok:
                return self._failed(mutation, str(result.error))

            try:
                deserialize(output)
            except DocumentFormatError as e:
                return self._failed(mutation, f"engine produced an unreadable document: {e}")

            os.replace(temp_path, self.document_path)
            logger.debug("mutation %s applied to %s", mutation.operation, self.document_path)
            return MutationOutcome(applied=True)
        finally:
            if temp_path.exists():
                temp_path.unlink()

    def _failed(self, mutation: Mutation, error: str) -> MutationOutcome:
        logger.warning("mutation %s failed: %s", mutation.operation, error)
        if self.diagnostics is not None:
            self.diagnostics.note(f"{mutation.operation} not applied: {error}")
        return MutationOutcome(applied=False, error=error)


__all__ = ["Adapter"]
