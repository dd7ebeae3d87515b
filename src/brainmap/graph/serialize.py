"""Graph Serialization - Convert maps to and from their stored JSON shape.

Stored shape::

    {id, title,
     nodes: [{id, position: {x, y},
              data: {label, description, isBold, isItalic, isTitle,
                     fontSize, collapsed, hasChildren}}],
     edges: [{id, source, target}],
     userId, createdAt, updatedAt}

Only the keys above are written. On read, unknown keys inside ``data``
are ignored, which drops any UI-only values an older client stored.
Also provides a markdown outline export.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from brainmap.graph.GraphNode import DEFAULT_FONT_SIZE, FontSize, GraphNode, NodeData, Position
from brainmap.graph.relations import Edge
from brainmap.models import DEFAULT_TITLE, MindMap

if TYPE_CHECKING:
    from brainmap.graph.engine import MindMapGraph


def serialize_node(node: GraphNode, include_view_state: bool = False) -> dict[str, Any]:
    """Serialize a GraphNode to a JSON-compatible dict.

    Args:
        node: The node to serialize.
        include_view_state: Also emit the derived ``hidden`` flag. Used for
            API responses, never for storage.

    Returns:
        Dict suitable for JSON serialization.
    """
    d = node.data
    data: dict[str, Any] = {
        "label": d.label,
        "description": d.description,
        "isBold": d.is_bold,
        "isItalic": d.is_italic,
        "isTitle": d.is_title,
        "fontSize": d.font_size.value,
        "collapsed": d.collapsed,
        "hasChildren": d.has_children,
    }
    if include_view_state:
        data["hidden"] = d.hidden
    return {
        "id": node.id,
        "position": {"x": node.position.x, "y": node.position.y},
        "data": data,
    }


def serialize_edge(edge: Edge) -> dict[str, Any]:
    return {"id": edge.id, "source": edge.source, "target": edge.target}


def serialize_map(mind_map: MindMap) -> dict[str, Any]:
    """Serialize a MindMap to its stored JSON shape."""
    return {
        "id": mind_map.id,
        "title": mind_map.title,
        "nodes": [serialize_node(n) for n in mind_map.nodes],
        "edges": [serialize_edge(e) for e in mind_map.edges],
        "userId": mind_map.user_id,
        "createdAt": mind_map.created_at,
        "updatedAt": mind_map.updated_at,
    }


def serialize_graph(graph: MindMapGraph) -> dict[str, Any]:
    """Serialize the live graph for the rendering layer (includes ``hidden``)."""
    return {
        "nodes": [serialize_node(n, include_view_state=True) for n in graph.nodes()],
        "edges": [serialize_edge(e) for e in graph.edges()],
    }


def _font_size(value: Any) -> FontSize:
    if value is None:
        return DEFAULT_FONT_SIZE
    try:
        return FontSize.coerce(value)
    except ValueError:
        return DEFAULT_FONT_SIZE


def _flag(data: dict[str, Any], key: str) -> bool:
    # JSON booleans only; the string "false" is not a flag
    value = data.get(key, False)
    return value if isinstance(value, bool) else False


def _optional_str(raw: dict[str, Any], key: str) -> str | None:
    value = raw.get(key)
    if value is not None and not isinstance(value, str):
        raise ValueError(f"Map field '{key}' must be a string, got {value!r}")
    return value


def _list_field(raw: dict[str, Any], key: str) -> list[Any]:
    value = raw.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"Map field '{key}' must be a list, got {type(value).__name__}")
    return value


def deserialize_node(raw: dict[str, Any]) -> GraphNode:
    """Build a GraphNode from its stored dict.

    Raises:
        ValueError: If the entry is not an object, the id is missing, or
            the position or data is malformed.
    """
    if not isinstance(raw, dict):
        raise ValueError(f"Node entry must be an object: {raw!r}")
    node_id = raw.get("id")
    if not isinstance(node_id, str) or not node_id:
        raise ValueError(f"Node without a valid id: {raw!r}")
    data = raw.get("data") or {}
    if not isinstance(data, dict):
        raise ValueError(f"Node '{node_id}' has invalid data: {data!r}")
    try:
        position = Position.coerce(raw.get("position") or {})
    except (TypeError, ValueError) as e:
        raise ValueError(f"Node '{node_id}' has an invalid position: {e}") from e
    return GraphNode(
        id=node_id,
        position=position,
        data=NodeData(
            label=str(data.get("label", "")),
            description=str(data.get("description") or ""),
            is_bold=_flag(data, "isBold"),
            is_italic=_flag(data, "isItalic"),
            is_title=_flag(data, "isTitle"),
            font_size=_font_size(data.get("fontSize")),
            collapsed=_flag(data, "collapsed"),
            has_children=_flag(data, "hasChildren"),
        ),
    )


def deserialize_edge(raw: dict[str, Any]) -> Edge:
    """Build an Edge from its stored dict.

    Raises:
        ValueError: If the entry is not an object or id, source or target
            is missing.
    """
    if not isinstance(raw, dict):
        raise ValueError(f"Edge entry must be an object: {raw!r}")
    try:
        return Edge(id=str(raw["id"]), source=str(raw["source"]), target=str(raw["target"]))
    except KeyError as e:
        raise ValueError(f"Edge is missing {e.args[0]!r}: {raw!r}") from None


def deserialize_map(raw: dict[str, Any]) -> MindMap:
    """Build a MindMap from its stored JSON shape.

    Raises:
        ValueError: If the document is malformed.
    """
    if not isinstance(raw, dict):
        raise ValueError("Map document must be a JSON object")
    return MindMap(
        id=_optional_str(raw, "id"),
        title=_optional_str(raw, "title") or DEFAULT_TITLE,
        nodes=[deserialize_node(n) for n in _list_field(raw, "nodes")],
        edges=[deserialize_edge(e) for e in _list_field(raw, "edges")],
        user_id=_optional_str(raw, "userId"),
        created_at=_optional_str(raw, "createdAt"),
        updated_at=_optional_str(raw, "updatedAt"),
    )


def to_markdown(graph: MindMapGraph, title: str | None = None) -> str:
    """Render the map as a nested markdown outline.

    Each root becomes a top-level bullet; descriptions follow their label
    as indented text. Nodes reachable twice are written once.

    Args:
        graph: The graph to render.
        title: Optional heading.

    Returns:
        Markdown text.
    """
    lines: list[str] = []
    if title:
        lines.extend([f"# {title}", ""])

    seen: set[str] = set()

    def _emit(node: GraphNode, depth: int) -> None:
        if node.id in seen:
            return
        seen.add(node.id)
        indent = "  " * depth
        label = f"**{node.label}**" if node.data.is_bold else node.label
        lines.append(f"{indent}- {label}")
        for desc_line in node.data.description.splitlines():
            lines.append(f"{indent}  {desc_line}")
        for child in graph.children(node.id):
            _emit(child, depth + 1)

    for root in graph.roots():
        _emit(root, 0)
    # Nodes only reachable through a cycle have no root
    for node in graph.nodes():
        _emit(node, 0)

    return "\n".join(lines) + "\n"
