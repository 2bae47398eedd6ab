"""Engine module - Query/transform engines and the Adapter boundary.

Exports:
- QueryEngine: Engine interface
- BuiltinEngine: In-process engine
- GvprEngine: Graphviz gvpr engine
- Adapter: Query/mutate boundary used by the store
- create_engine: Pick an engine from configuration
"""

from __future__ import annotations

import shutil
from typing import Any

from waymark.engine.adapter import Adapter
from waymark.engine.base import EngineResult, MutationOutcome, QueryEngine
from waymark.engine.builtin import BuiltinEngine
from waymark.engine.gvpr import DEFAULT_TIMEOUT, GvprEngine
from waymark.errors import ConfigError

ENGINE_KINDS = ("auto", "builtin", "gvpr")


def create_engine(config: dict[str, Any]) -> QueryEngine:
    """Create the engine selected by ``engine.kind``.

    ``auto`` uses gvpr when the configured executable is on PATH and the
    builtin engine otherwise.

    Raises:
        ConfigError: If the kind is unknown.
    """
    settings = config.get("engine", {})
    kind = settings.get("kind", "auto")
    executable = settings.get("gvpr", "gvpr")
    timeout = float(settings.get("timeout", DEFAULT_TIMEOUT))

    if kind not in ENGINE_KINDS:
        raise ConfigError(f"Unknown engine kind: {kind!r} (expected one of {', '.join(ENGINE_KINDS)})")
    if kind == "auto":
        kind = "gvpr" if shutil.which(executable) else "builtin"
    if kind == "gvpr":
        return GvprEngine(executable=executable, timeout=timeout)
    return BuiltinEngine()


__all__ = [
    "Adapter",
    "BuiltinEngine",
    "EngineResult",
    "GvprEngine",
    "MutationOutcome",
    "QueryEngine",
    "create_engine",
]
