"""
brainmap.cli - Command-line interface.

Main entry point for the brainmap CLI tool.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from brainmap import __version__
from brainmap.commands import config_cmd, convert_cmd, export_cmd, maps_cmd, serve
from brainmap.config import CONFIG_FILENAME


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="brainmap",
        description="Mind-map editor server and tools",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  brainmap serve                    # Start the editor API on 127.0.0.1:5050
  brainmap convert notes.txt        # Preview the tree built from a text file
  brainmap convert notes.txt --json # Same, as stored-map JSON
  brainmap maps list                # List your saved maps
  brainmap export <id> --format markdown

Configuration:
  brainmap config path              # Show config file location
  brainmap config show              # View all settings
  brainmap config init              # Create .brainmap.toml here

For detailed command help: brainmap <command> --help
        """,
    )

    # Global options
    parser.add_argument(
        "--version",
        action="version",
        version=f"brainmap {__version__}",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to configuration file",
        metavar="PATH",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Verbose output",
    )

    # Subcommands
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # serve command
    serve_parser = subparsers.add_parser(
        "serve",
        help="Start the mind-map REST API server",
    )
    serve_parser.add_argument(
        "--host",
        help="Interface to bind (default: [server] host)",
    )
    serve_parser.add_argument(
        "--port",
        type=int,
        help="Port to listen on (default: [server] port)",
    )
    serve_parser.add_argument(
        "--data-dir",
        type=Path,
        help="Directory where maps are stored (default: [storage] data_dir)",
        metavar="PATH",
    )

    # convert command
    convert_parser = subparsers.add_parser(
        "convert",
        help="Convert a plain-text outline into a mind map",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Input rules:
  A line ending with '.' starts a new idea (the title).
  Following lines become that idea's description.
  The first idea becomes the root; every other idea is its child.
""",
    )
    convert_parser.add_argument(
        "file",
        help="Text file to convert ('-' reads stdin)",
    )
    convert_format = convert_parser.add_mutually_exclusive_group()
    convert_format.add_argument(
        "--json",
        action="store_true",
        help="Output nodes and edges as JSON",
    )
    convert_format.add_argument(
        "--markdown",
        action="store_true",
        help="Output a Markdown outline",
    )

    # maps command
    maps_parser = subparsers.add_parser(
        "maps",
        help="Manage saved mind maps (list, show, delete, rename)",
    )
    maps_parser.add_argument(
        "--user",
        help="Act as this user (default: [auth] user)",
    )
    maps_parser.add_argument(
        "--data-dir",
        type=Path,
        help="Directory where maps are stored",
        metavar="PATH",
    )
    maps_subparsers = maps_parser.add_subparsers(dest="maps_action")

    maps_list = maps_subparsers.add_parser(
        "list",
        help="List your maps, most recently updated first",
    )
    maps_list.add_argument(
        "-j",
        "--json",
        action="store_true",
        help="Output as JSON",
    )

    maps_show = maps_subparsers.add_parser(
        "show",
        help="Show a map's outline",
    )
    maps_show.add_argument("map_id", help="Map id")

    maps_delete = maps_subparsers.add_parser(
        "delete",
        help="Delete a map",
    )
    maps_delete.add_argument("map_id", help="Map id")
    maps_delete.add_argument(
        "-y",
        "--yes",
        action="store_true",
        help="Confirm deletion without prompting",
    )

    maps_rename = maps_subparsers.add_parser(
        "rename",
        help="Rename a map",
    )
    maps_rename.add_argument("map_id", help="Map id")
    maps_rename.add_argument("title", help="New title")

    # export command
    export_parser = subparsers.add_parser(
        "export",
        help="Export a saved map",
    )
    export_parser.add_argument("map_id", help="Map id")
    export_parser.add_argument(
        "--format",
        choices=["json", "markdown"],
        default="json",
        help="Output format (default: json)",
    )
    export_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        help="Write to file instead of stdout",
        metavar="PATH",
    )
    export_parser.add_argument(
        "--user",
        help="Act as this user (default: [auth] user)",
    )
    export_parser.add_argument(
        "--data-dir",
        type=Path,
        help="Directory where maps are stored",
        metavar="PATH",
    )

    # config command
    config_parser = subparsers.add_parser(
        "config",
        help="View and create configuration (show, path, init)",
    )
    config_subparsers = config_parser.add_subparsers(dest="config_action")

    config_show = config_subparsers.add_parser(
        "show",
        help="Show the merged configuration",
    )
    config_show.add_argument(
        "-j",
        "--json",
        action="store_true",
        help="Output as JSON",
    )
    config_subparsers.add_parser(
        "path",
        help="Show path to configuration file",
    )
    config_init = config_subparsers.add_parser(
        "init",
        help=f"Create {CONFIG_FILENAME} in the current directory",
    )
    config_init.add_argument(
        "--force",
        action="store_true",
        help="Overwrite an existing file",
    )

    # version command
    subparsers.add_parser(
        "version",
        help="Show version",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    # Handle no command
    if not args.command:
        parser.print_help()
        return 0

    try:
        # Dispatch to command handlers
        if args.command == "serve":
            return serve.run(args)
        elif args.command == "convert":
            return convert_cmd.run(args)
        elif args.command == "maps":
            return maps_cmd.run(args)
        elif args.command == "export":
            return export_cmd.run(args)
        elif args.command == "config":
            return config_cmd.run(args)
        elif args.command == "version":
            return version_command(args)
        else:
            parser.print_help()
            return 1

    except KeyboardInterrupt:
        print("\nOperation cancelled.", file=sys.stderr)
        return 130
    except Exception as e:
        if args.verbose:
            raise
        print(f"Error: {e}", file=sys.stderr)
        return 1


def version_command(args: argparse.Namespace) -> int:
    """Handle version command."""
    print(f"brainmap {__version__}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
