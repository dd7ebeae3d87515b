"""
brainmap.commands.config_cmd - View and create configuration.

Subcommands:
- show: the merged configuration (defaults, file, environment)
- path: location of the configuration file in effect
- init: write a commented .brainmap.toml in the current directory
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

import tomlkit

from brainmap.config import CONFIG_FILENAME, CONFIG_TEMPLATE, find_config_file, load_config


def run(args: argparse.Namespace) -> int:
    """Run the config command."""
    action = getattr(args, "config_action", None)
    if action == "show":
        return _show(args)
    elif action == "path":
        return _path(args)
    elif action == "init":
        return _init(args)
    print("Usage: brainmap config <show|path|init>", file=sys.stderr)
    return 1


def _resolve_path(args: argparse.Namespace) -> Path | None:
    if args.config:
        return args.config
    return find_config_file(Path.cwd())


def _show(args: argparse.Namespace) -> int:
    config = load_config(_resolve_path(args))
    if args.json:
        print(json.dumps(config, indent=2))
    else:
        print(tomlkit.dumps(config), end="")
    return 0


def _path(args: argparse.Namespace) -> int:
    path = _resolve_path(args)
    if path is None:
        print(f"No {CONFIG_FILENAME} found (using defaults)")
        return 0
    print(path)
    return 0


def _init(args: argparse.Namespace) -> int:
    path = Path.cwd() / CONFIG_FILENAME
    if path.exists() and not args.force:
        print(f"Error: {path} already exists (use --force to overwrite)", file=sys.stderr)
        return 1
    path.write_text(CONFIG_TEMPLATE, encoding="utf-8")
    print(f"Created {path}")
    return 0
