"""
brainmap.commands.convert_cmd - Convert a text outline into a mind map.

Prints the resulting tree without saving it, so a text file can be
checked before pasting it into the editor.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from brainmap.config import find_config_file, load_config
from brainmap.errors import EmptyInputError
from brainmap.graph import MindMapGraph
from brainmap.graph.serialize import serialize_graph, to_markdown


def _read_input(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


def run(args: argparse.Namespace) -> int:
    """Run the convert command."""
    config_path = args.config or find_config_file(Path.cwd())
    config = load_config(config_path)

    try:
        text = _read_input(args.file)
    except FileNotFoundError:
        print(f"Error: File not found: {args.file}", file=sys.stderr)
        return 1

    graph = MindMapGraph.from_config(config)
    try:
        graph.convert_text(text)
    except EmptyInputError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(serialize_graph(graph), indent=2, ensure_ascii=False))
    elif args.markdown:
        print(to_markdown(graph), end="")
    else:
        _print_tree(graph)
    return 0


def _print_tree(graph: MindMapGraph) -> None:
    for root in graph.roots():
        print(root.label)
        children = graph.children(root.id)
        for i, child in enumerate(children):
            branch = "└──" if i == len(children) - 1 else "├──"
            print(f"{branch} {child.label}")
    print(f"\n{graph.node_count()} node(s), {graph.edge_count()} edge(s)")
