"""Text-to-graph conversion.

Turns a block of freeform notes into a one-level tree. A line ending in a
period starts a new idea (its text, minus that period, becomes the label);
the lines after it describe that idea:

    Shop.                      -> idea "Shop"
    Description of the shop.   -> description of "Shop"
    Colour palette.            -> idea "Colour palette"
    White and green.           -> description of "Colour palette"

A period-terminated line that directly follows a title which has no
description yet is read as that description, so prose sentences under a
heading do not each become an idea. The first idea becomes the root and
every later idea hangs off it.
"""

from __future__ import annotations

from dataclasses import dataclass

from brainmap.errors import EmptyInputError
from brainmap.graph.GraphNode import GraphNode, NodeData, Position
from brainmap.graph.relations import Edge, new_edge_id, new_node_id


@dataclass
class ConverterSettings:
    """Where converted nodes are placed: one column at x, stepping down."""

    x: float = 250.0
    y_start: float = 50.0
    y_step: float = 100.0


def split_ideas(text: str) -> list[tuple[str, str]]:
    """Split text into (label, description) pairs.

    Blank lines are dropped first. Description lines that appear before
    the first title line have nothing to attach to and are discarded.

    Args:
        text: Freeform input.

    Returns:
        (label, description) pairs in encounter order.
    """
    lines = [line.strip() for line in text.splitlines() if line.strip()]

    ideas: list[tuple[str, str]] = []
    current_title = ""
    current_description = ""
    for line in lines:
        is_title = line.endswith(".") and (not current_title or current_description)
        if is_title:
            if current_title:
                ideas.append((current_title, current_description.strip()))
            current_title = line[:-1]
            current_description = ""
        elif current_description:
            current_description += "\n" + line
        else:
            current_description = line
    if current_title:
        ideas.append((current_title, current_description.strip()))
    return ideas


def parse_text(
    text: str,
    settings: ConverterSettings | None = None,
) -> tuple[list[GraphNode], list[Edge]]:
    """Build the nodes and edges of a one-level tree from text.

    Args:
        text: Freeform input.
        settings: Placement settings; defaults to ConverterSettings().

    Returns:
        (nodes, edges). With two or more nodes, every node after the first
        is the target of an edge from the first.

    Raises:
        EmptyInputError: If the text yields no node.
    """
    settings = settings or ConverterSettings()
    ideas = split_ideas(text)
    if not ideas:
        raise EmptyInputError("No ideas found: end each title line with a period")

    nodes = [
        GraphNode(
            id=new_node_id(),
            position=Position(settings.x, settings.y_start + i * settings.y_step),
            data=NodeData(label=label, description=description),
        )
        for i, (label, description) in enumerate(ideas)
    ]

    root = nodes[0]
    edges = [Edge(id=new_edge_id(), source=root.id, target=child.id) for child in nodes[1:]]
    root.data.has_children = bool(edges)
    return nodes, edges
