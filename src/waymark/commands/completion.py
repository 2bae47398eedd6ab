"""
waymark.commands.completion - Shell tab-completion setup.

Prints the line that activates argcomplete completion for waymark.
"""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

_SNIPPETS = {
    "bash": 'eval "$(register-python-argcomplete waymark)"',
    "zsh": 'eval "$(register-python-argcomplete waymark)"',
    "fish": "register-python-argcomplete --shell fish waymark | source",
    "tcsh": "eval `register-python-argcomplete --shell tcsh waymark`",
}


def _detect_shell() -> str:
    """Detect the current shell from environment."""
    name = Path(os.environ.get("SHELL", "")).name
    return name if name in _SNIPPETS else "bash"


def run(args: argparse.Namespace) -> int:
    """Run the completion command."""
    try:
        import argcomplete  # noqa: F401
    except ImportError:
        print("Error: argcomplete not installed.", file=sys.stderr)
        print("Install with: pip install waymark[completion]", file=sys.stderr)
        return 1

    shell = args.shell or _detect_shell()
    print(f"# Add to your {shell} startup file:")
    print(_SNIPPETS[shell])
    return 0
