"""
waymark.config.loader - Find, parse and merge .waymark.toml files.
"""

from __future__ import annotations

import copy
import json
import os
from pathlib import Path
from typing import Any

import tomlkit
from tomlkit.exceptions import TOMLKitError
from tomlkit.toml_document import TOMLDocument

from waymark.config.defaults import DEFAULT_CONFIG
from waymark.errors import ConfigError

CONFIG_FILENAME = ".waymark.toml"
ENV_PREFIX = "WAYMARK_"


def find_config_file(start: Path | None = None) -> Path | None:
    """Find .waymark.toml in ``start`` or any parent directory.

    Args:
        start: Directory to start searching from (default: cwd).

    Returns:
        Path to the config file, or None if not found.
    """
    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def parse_toml_document(text: str) -> TOMLDocument:
    """Parse TOML text, keeping formatting for round-trip edits.

    Raises:
        ConfigError: If the text is not valid TOML.
    """
    try:
        return tomlkit.parse(text)
    except TOMLKitError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


def merge_configs(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep-merge ``override`` into a copy of ``base``.

    Nested tables are merged key by key; any other value replaces the
    base value.
    """
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def _try_parse_env_value(value: str) -> Any:
    """Parse an environment value into a typed Python value.

    JSON arrays and objects become lists and dicts, ``true``/``false``
    (any case) become booleans, anything else is returned unchanged.
    """
    lowered = value.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    if value.startswith(("[", "{")):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return value
    return value


def _apply_env_overrides(config: dict[str, Any]) -> dict[str, Any]:
    """Apply WAYMARK_<SECTION>_<KEY> environment overrides.

    Only sections that exist in the configuration are considered, so
    ``WAYMARK_GRAPH_ROOT_LABEL`` sets ``graph.root_label``.
    """
    for name, raw in os.environ.items():
        if not name.startswith(ENV_PREFIX):
            continue
        rest = name[len(ENV_PREFIX) :].lower()
        section, sep, key = rest.partition("_")
        if not sep or not key or not isinstance(config.get(section), dict):
            continue
        config[section][key] = _try_parse_env_value(raw)
    return config


def load_config(config_path: Path | None = None, start: Path | None = None) -> dict[str, Any]:
    """Load configuration merged over the defaults.

    Args:
        config_path: Explicit config file; searched for when None.
        start: Directory to search from when ``config_path`` is None.

    Returns:
        Plain configuration dict. ``_config_path`` holds the file used (or
        None) and ``_base_dir`` the directory relative paths resolve from.

    Raises:
        ConfigError: If an explicit file is missing or a file is invalid.
    """
    if config_path is not None and not config_path.is_file():
        raise ConfigError(f"Configuration file not found: {config_path}")

    path = config_path or find_config_file(start)
    user: dict[str, Any] = {}
    if path is not None:
        document = parse_toml_document(path.read_text(encoding="utf-8"))
        user = document.unwrap()

    config = _apply_env_overrides(merge_configs(DEFAULT_CONFIG, user))
    config["_config_path"] = path
    if path is not None:
        config["_base_dir"] = path.resolve().parent
    else:
        config["_base_dir"] = (start or Path.cwd()).resolve()
    return config


def get_value(config: dict[str, Any], dotted: str) -> Any:
    """Read ``section.key`` from a config dict.

    Raises:
        KeyError: If the key is absent.
    """
    node: Any = config
    for part in dotted.split("."):
        if not isinstance(node, dict) or part not in node:
            raise KeyError(dotted)
        node = node[part]
    return node


def set_value_in_file(path: Path, dotted: str, value: Any) -> None:
    """Set ``section.key`` in a TOML file, preserving its formatting.

    The file is created if it does not exist.
    """
    text = path.read_text(encoding="utf-8") if path.exists() else ""
    document = parse_toml_document(text)

    parts = dotted.split(".")
    table: Any = document
    for part in parts[:-1]:
        if part not in table:
            table.add(part, tomlkit.table())
        table = table[part]
    table[parts[-1]] = value

    path.write_text(tomlkit.dumps(document), encoding="utf-8")
