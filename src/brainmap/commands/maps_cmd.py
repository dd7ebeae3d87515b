"""
brainmap.commands.maps_cmd - Manage saved mind maps.

Subcommands:
- list: maps of the current user, most recently updated first
- show: outline of one map
- delete: remove a map (requires --yes)
- rename: change a map's title
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from brainmap.config import find_config_file, load_config, resolve_data_dir
from brainmap.errors import BrainmapError
from brainmap.graph.serialize import to_markdown
from brainmap.server.persistence import MapStore
from brainmap.workspace import Workspace


def open_workspace(args: argparse.Namespace) -> Workspace:
    """Build a Workspace from config, honoring --user and --data-dir."""
    config_path = args.config or find_config_file(Path.cwd())
    config = load_config(config_path)
    if getattr(args, "user", None):
        config.setdefault("auth", {})["user"] = args.user
    data_dir = getattr(args, "data_dir", None) or resolve_data_dir(
        config, config_path.parent if config_path else None
    )
    return Workspace(MapStore(data_dir), config)


def run(args: argparse.Namespace) -> int:
    """Run the maps command."""
    action = getattr(args, "maps_action", None)
    if action is None:
        print("Usage: brainmap maps <list|show|delete|rename>", file=sys.stderr)
        return 1

    ws = open_workspace(args)
    try:
        if action == "list":
            return _list(ws, args)
        elif action == "show":
            return _show(ws, args)
        elif action == "delete":
            return _delete(ws, args)
        elif action == "rename":
            return _rename(ws, args)
    except (BrainmapError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Unknown maps action: {action}", file=sys.stderr)
    return 1


def _list(ws: Workspace, args: argparse.Namespace) -> int:
    summaries = ws.list_maps()
    if args.json:
        print(json.dumps([s.to_dict() for s in summaries], indent=2))
        return 0
    if not summaries:
        print("No maps saved yet.")
        return 0
    for s in summaries:
        print(f"{s.id}  {s.updated_at[:19]}  {s.title}")
    return 0


def _show(ws: Workspace, args: argparse.Namespace) -> int:
    ws.load(args.map_id)
    print(to_markdown(ws.graph, title=ws.title), end="")
    return 0


def _delete(ws: Workspace, args: argparse.Namespace) -> int:
    if not args.yes:
        print(
            f"Refusing to delete map '{args.map_id}' without --yes",
            file=sys.stderr,
        )
        return 1
    ws.delete_map(args.map_id)
    print(f"Deleted map {args.map_id}")
    return 0


def _rename(ws: Workspace, args: argparse.Namespace) -> int:
    mind_map = ws.rename_map(args.map_id, args.title)
    print(f"Renamed map {mind_map.id} to '{mind_map.title}'")
    return 0
