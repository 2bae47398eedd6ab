"""
waymark.commands.config_cmd - Configuration commands.

- `waymark config show [--section S] [--json]`
- `waymark config get KEY [--json]`
- `waymark config set KEY VALUE`
- `waymark config path`
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

import tomlkit

from waymark.config import CONFIG_FILENAME, find_config_file, get_value, load_config, set_value_in_file


def run(args: argparse.Namespace) -> int:
    """Run the config command."""
    action = getattr(args, "config_action", None)
    if action == "show":
        return _show(args)
    if action == "get":
        return _get(args)
    if action == "set":
        return _set(args)
    if action == "path":
        return _path(args)
    print("Usage: waymark config {show,get,set,path}", file=sys.stderr)
    return 1


def _public(config: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in config.items() if not k.startswith("_")}


def _show(args: argparse.Namespace) -> int:
    config = _public(load_config(args.config))
    if args.section:
        try:
            config = {args.section: get_value(config, args.section)}
        except KeyError:
            print(f"Error: unknown section: {args.section}", file=sys.stderr)
            return 1
    if args.json:
        print(json.dumps(config, indent=2))
    else:
        print(tomlkit.dumps(config), end="")
    return 0


def _get(args: argparse.Namespace) -> int:
    config = _public(load_config(args.config))
    try:
        value = get_value(config, args.key)
    except KeyError:
        print(f"Error: unknown key: {args.key}", file=sys.stderr)
        return 1
    if args.json or isinstance(value, (dict, list)):
        print(json.dumps(value))
    else:
        print(value)
    return 0


def _parse_value(text: str) -> Any:
    """Interpret a command-line value: bool, number, JSON array/object, else string."""
    lowered = text.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    for parse in (int, float):
        try:
            return parse(text)
        except ValueError:
            pass
    if text.startswith(("[", "{")):
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            return text
    return text


def _config_file(args: argparse.Namespace) -> Path:
    return args.config or find_config_file() or Path.cwd() / CONFIG_FILENAME


def _set(args: argparse.Namespace) -> int:
    if "." not in args.key:
        print("Error: key must be SECTION.KEY", file=sys.stderr)
        return 1
    path = _config_file(args)
    set_value_in_file(path, args.key, _parse_value(args.value))
    print(f"Set {args.key} in {path}")
    return 0


def _path(args: argparse.Namespace) -> int:
    path = args.config or find_config_file()
    if path is None:
        print(f"No {CONFIG_FILENAME} found (defaults in use)")
        return 1
    print(path)
    return 0
