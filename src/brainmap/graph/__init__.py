"""Graph module - Core mind-map graph structures.

Exports:
- GraphNode, NodeData, Position, FontSize: node representation
- Edge: directed parent->child edge
- GraphStore: raw node/edge storage
- MindMapGraph: mutation engine over a GraphStore
- descendants: cycle-safe subtree traversal
- parse_text: text-to-graph converter
- MutationEntry, MutationLog: mutation history

Note: serialization lives in brainmap.graph.serialize (it depends on
brainmap.models and is not re-exported here).
"""

from brainmap.graph.converter import ConverterSettings, parse_text
from brainmap.graph.engine import (
    VISIBILITY_GLOBAL,
    VISIBILITY_LAST_TOGGLE,
    LayoutSettings,
    MindMapGraph,
)
from brainmap.graph.GraphNode import FontSize, GraphNode, NodeData, Position
from brainmap.graph.mutations import MutationEntry, MutationLog
from brainmap.graph.relations import Edge
from brainmap.graph.store import GraphStore
from brainmap.graph.traversal import descendants

__all__ = [
    "ConverterSettings",
    "Edge",
    "FontSize",
    "GraphNode",
    "GraphStore",
    "LayoutSettings",
    "MindMapGraph",
    "MutationEntry",
    "MutationLog",
    "NodeData",
    "Position",
    "VISIBILITY_GLOBAL",
    "VISIBILITY_LAST_TOGGLE",
    "descendants",
    "parse_text",
]
