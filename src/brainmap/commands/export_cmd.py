"""
brainmap.commands.export_cmd - Export a saved map as JSON or Markdown.
"""

from __future__ import annotations

import argparse
import json
import sys

from brainmap.commands.maps_cmd import open_workspace
from brainmap.errors import BrainmapError
from brainmap.graph.serialize import serialize_map, to_markdown


def run(args: argparse.Namespace) -> int:
    """Run the export command."""
    ws = open_workspace(args)
    try:
        mind_map = ws.load(args.map_id)
    except BrainmapError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.format == "markdown":
        output = to_markdown(ws.graph, title=ws.title)
    else:
        output = json.dumps(serialize_map(mind_map), indent=2, ensure_ascii=False) + "\n"

    if args.output:
        args.output.write_text(output, encoding="utf-8")
        print(f"Wrote {args.output}", file=sys.stderr)
    else:
        print(output, end="")
    return 0
