"""Session context and diagnostic log.

A Session bundles everything a store operation needs: the loaded
configuration, the workspace holding the graph documents, the query
engine, the diagnostic log and the mutation history. It is created once
per invocation and passed explicitly; nothing here is module-level state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from waymark.config import load_config
from waymark.engine import create_engine
from waymark.engine.base import EngineResult, QueryEngine
from waymark.errors import ConfigError
from waymark.graph.mutations import MutationLog

logger = logging.getLogger(__name__)

DOCUMENT_SUFFIX = ".gv"
CURRENT_POINTER = "CURRENT"
LOG_FILENAME = "waymark.log"


class DiagnosticLog:
    """Append-only record of every engine invocation.

    Each session starts with a timestamp line; each invocation appends one
    block with the program text, exit status and every output line.

    Args:
        path: Log file, or None to disable the log.
    """

    def __init__(self, path: Path | None):
        self.path = path
        self._started = False

    def _append(self, lines: list[str]) -> None:
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "a", encoding="utf-8") as f:
            if not self._started:
                f.write(f"# session started {datetime.now().isoformat(timespec='seconds')}\n")
                self._started = True
            f.write("\n".join(lines) + "\n")

    def record(self, result: EngineResult, output: list[str] | None = None) -> None:
        """Append one invocation block.

        Args:
            result: The engine invocation.
            output: Output lines to record instead of ``result.lines``
                (mutations record the replacement document).
        """
        status = "?" if result.returncode is None else str(result.returncode)
        lines = [f"== {result.kind} [{result.engine}] exit={status}"]
        if result.argv:
            lines.append("-- argv: " + " ".join(result.argv[:-2] + ["<program>", result.argv[-1]]))
        lines.append("-- program")
        lines.extend(result.program.rstrip("\n").splitlines())
        lines.append("-- output")
        lines.extend(result.lines if output is None else output)
        if result.stderr.strip():
            lines.append("-- stderr")
            lines.extend(result.stderr.rstrip("\n").splitlines())
        if result.error:
            lines.append(f"-- error: {result.error}")
        self._append(lines)

    def note(self, message: str) -> None:
        """Append a free-form line (failures outside the engine)."""
        self._append([f"-- {message}"])


@dataclass
class Workspace:
    """Directory holding graph documents and the current-graph pointer.

    Attributes:
        directory: Directory of ``<name>.gv`` documents.
    """

    directory: Path

    def document_path(self, name: str) -> Path:
        """Return the document path for a graph name.

        Raises:
            ConfigError: If the name would escape the workspace.
        """
        if not name or name in (".", "..") or "/" in name or "\\" in name:
            raise ConfigError(f"Invalid graph name: {name!r}")
        return self.directory / f"{name}{DOCUMENT_SUFFIX}"

    def list_graphs(self) -> list[str]:
        if not self.directory.is_dir():
            return []
        return sorted(p.stem for p in self.directory.glob(f"*{DOCUMENT_SUFFIX}"))

    def read_current(self) -> str | None:
        """Return the name recorded by the last init/open, if any."""
        pointer = self.directory / CURRENT_POINTER
        if not pointer.is_file():
            return None
        name = pointer.read_text(encoding="utf-8").strip()
        return name or None

    def write_current(self, name: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        (self.directory / CURRENT_POINTER).write_text(name + "\n", encoding="utf-8")


@dataclass
class Session:
    """Explicit context passed to every store operation.

    Attributes:
        config: Merged configuration.
        workspace: Where documents live.
        engine: Query/transform engine.
        diagnostics: Diagnostic log.
        mutation_log: Mutations issued during this session.
    """

    config: dict[str, Any]
    workspace: Workspace
    engine: QueryEngine
    diagnostics: DiagnosticLog
    mutation_log: MutationLog = field(default_factory=MutationLog)

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> Session:
        """Build a session from a loaded configuration.

        Relative paths are resolved against ``config["_base_dir"]``
        (the config file's directory, or the working directory).
        """
        base_dir = Path(config.get("_base_dir") or Path.cwd())
        directory = Path(config["graph"]["directory"])
        if not directory.is_absolute():
            directory = base_dir / directory

        log_setting = config["log"].get("path", "")
        if log_setting:
            log_path = Path(log_setting)
            if not log_path.is_absolute():
                log_path = base_dir / log_path
        else:
            log_path = directory / LOG_FILENAME

        engine = create_engine(config)
        logger.debug("session: directory=%s engine=%s log=%s", directory, engine.name, log_path)
        return cls(
            config=config,
            workspace=Workspace(directory=directory),
            engine=engine,
            diagnostics=DiagnosticLog(log_path),
        )

    @classmethod
    def load(cls, config_path: Path | None = None, start: Path | None = None) -> Session:
        """Load configuration from disk and build a session."""
        return cls.from_config(load_config(config_path, start))

    # Convenience accessors
    @property
    def root_label(self) -> str:
        return str(self.config["graph"]["root_label"])

    @property
    def emphasis(self) -> str:
        return str(self.config["selection"]["emphasis"])

    @property
    def normal(self) -> str:
        return str(self.config["selection"]["normal"])

    @property
    def chain_delimiter(self) -> str:
        delimiter = str(self.config["chain"]["delimiter"])
        if len(delimiter) != 1 or delimiter == "\\":
            raise ConfigError(f"chain.delimiter must be one character other than '\\': {delimiter!r}")
        return delimiter


__all__ = ["DiagnosticLog", "Workspace", "Session"]
