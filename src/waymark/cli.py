"""
waymark.cli - Command-line interface.

Main entry point for the waymark CLI tool.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from waymark import __version__
from waymark.commands import chain_cmd, completion, config_cmd, graph_cmd, nav, node_cmd
from waymark.errors import WaymarkError


def _attr(text: str) -> tuple:
    key, sep, value = text.partition("=")
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"expected KEY=VALUE, got {text!r}")
    return key, value


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="waymark",
        description="Navigation bookmark graph for places in your text",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  waymark init notes                 # Create .waymark/notes.gv and make it current
  waymark add parser --attr shape=box
  waymark mark lexer --file src/lex.c --line 120
  waymark up / down / next           # Move the selection
  waymark exec                       # Replay the selection's command chain
  waymark show                       # Print the tree
  waymark render                     # Open the graph in the viewer

Configuration:
  waymark config path                # Show config file location
  waymark config show                # View all settings

For detailed command help: waymark <command> --help
        """,
    )

    # Global options
    parser.add_argument(
        "--version",
        action="version",
        version=f"waymark {__version__}",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to configuration file",
        metavar="PATH",
    )
    parser.add_argument(
        "--graph",
        help="Graph to operate on (default: the current graph)",
        metavar="NAME",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Debug logging on stderr; re-raise errors",
    )

    # Subcommands
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # graph lifecycle
    init_parser = subparsers.add_parser("init", help="Create a new graph and make it current")
    init_parser.add_argument("name", help="Graph name")
    init_parser.add_argument(
        "--force",
        action="store_true",
        help="Replace an existing graph of the same name",
    )

    open_parser = subparsers.add_parser("open", help="Make an existing graph current")
    open_parser.add_argument("name", help="Graph name")

    show_parser = subparsers.add_parser("show", help="Print the graph as a tree")
    show_parser.add_argument(
        "-j",
        "--json",
        action="store_true",
        help="Output as JSON",
    )

    subparsers.add_parser("render", help="Open the graph in the configured viewer")

    # structure
    add_parser = subparsers.add_parser(
        "add",
        help="Add a node under the selection and select it",
    )
    add_parser.add_argument("label", help="Node label")
    add_parser.add_argument(
        "--attr",
        type=_attr,
        action="append",
        default=[],
        help="Node attribute (repeatable)",
        metavar="KEY=VALUE",
    )

    select_parser = subparsers.add_parser("select", help="Select a node")
    select_parser.add_argument("label", help="Node label")

    subparsers.add_parser(
        "delete",
        help="Delete the selection and its descendants, then select the parent",
    )

    # navigation
    subparsers.add_parser("up", help="Select the parent")
    subparsers.add_parser("down", help="Select the first child")
    subparsers.add_parser("next", help="Select the next sibling (wraps)")

    # command chains
    mark_parser = subparsers.add_parser(
        "mark",
        help="Add a bookmark node holding a jump to a file position",
    )
    mark_parser.add_argument("label", help="Node label")
    mark_parser.add_argument("--file", required=True, type=Path, help="File to return to")
    mark_parser.add_argument("--line", required=True, type=int, help="Line number")
    mark_parser.add_argument("--column", type=int, default=1, help="Column number (default: 1)")
    mark_parser.add_argument(
        "--attr",
        type=_attr,
        action="append",
        default=[],
        help="Node attribute (repeatable)",
        metavar="KEY=VALUE",
    )

    push_parser = subparsers.add_parser("push", help="Append an action to a command chain")
    push_parser.add_argument("action", help="Editor action")
    push_parser.add_argument("--label", help="Node (default: the selection)")

    pop_parser = subparsers.add_parser("pop", help="Drop the last action of a command chain")
    pop_parser.add_argument("--label", help="Node (default: the selection)")

    exec_parser = subparsers.add_parser("exec", help="Send a command chain to the editor")
    exec_parser.add_argument("--label", help="Node (default: the selection)")

    # config command
    config_parser = subparsers.add_parser(
        "config",
        help="View and modify configuration",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Common Commands:
  waymark config show            # View current config
  waymark config get engine.kind
  waymark config set editor.separator " ; "
  waymark config path            # Show config file location
""",
    )
    config_subparsers = config_parser.add_subparsers(dest="config_action")

    config_show = config_subparsers.add_parser("show", help="Show current configuration")
    config_show.add_argument(
        "--section",
        help="Show only one section (e.g., 'engine')",
        metavar="SECTION",
    )
    config_show.add_argument(
        "-j",
        "--json",
        action="store_true",
        help="Output as JSON",
    )

    config_get = config_subparsers.add_parser("get", help="Get a configuration value")
    config_get.add_argument("key", help="Configuration key (dot-notation, e.g., 'engine.kind')")
    config_get.add_argument(
        "-j",
        "--json",
        action="store_true",
        help="Output as JSON",
    )

    config_set = config_subparsers.add_parser("set", help="Set a configuration value")
    config_set.add_argument("key", help="Configuration key (dot-notation)")
    config_set.add_argument(
        "value",
        help="Value to set (auto-detected: bool, number, JSON array/object, string)",
    )

    config_subparsers.add_parser("path", help="Show config file location")

    # completion / version
    completion_parser = subparsers.add_parser(
        "completion",
        help="Print the shell line that enables tab completion",
    )
    completion_parser.add_argument(
        "--shell",
        choices=["bash", "zsh", "fish", "tcsh"],
        help="Target shell (default: from $SHELL)",
    )

    subparsers.add_parser("version", help="Show version")

    return parser


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    parser = create_parser()

    # Enable shell tab-completion if argcomplete is installed
    # Install with: pip install waymark[completion]
    try:
        import argcomplete

        argcomplete.autocomplete(parser)
    except ImportError:
        pass

    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    # Handle no command
    if not args.command:
        parser.print_help()
        return 0

    try:
        # Dispatch to command handlers
        if args.command in ("init", "open", "show", "render"):
            return graph_cmd.run(args)
        elif args.command in ("add", "select", "delete"):
            return node_cmd.run(args)
        elif args.command in ("up", "down", "next"):
            return nav.run(args)
        elif args.command in ("mark", "push", "pop", "exec"):
            return chain_cmd.run(args)
        elif args.command == "config":
            return config_cmd.run(args)
        elif args.command == "completion":
            return completion.run(args)
        elif args.command == "version":
            return version_command(args)
        else:
            parser.print_help()
            return 1

    except KeyboardInterrupt:
        print("\nOperation cancelled.", file=sys.stderr)
        return 130
    except (WaymarkError, OSError) as e:
        if args.verbose:
            raise
        print(f"Error: {e}", file=sys.stderr)
        return 1


def version_command(args: argparse.Namespace) -> int:
    """Handle version command."""
    print(f"waymark {__version__}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
