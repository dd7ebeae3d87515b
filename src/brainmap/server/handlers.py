"""brainmap.server.handlers - Operation functions behind the REST API.

Each function takes the Workspace plus plain arguments, delegates to the
engine or the store, and returns a JSON-compatible dict:

    {"success": True, ...payload}
    {"success": False, "error": "<message>", "error_type": "<ExceptionName>"}

The Flask routes in brainmap.server.app are thin wrappers over these, so
the functions can be exercised without an HTTP client.
"""

from __future__ import annotations

from typing import Any

from brainmap.errors import BrainmapError, ConfirmationRequiredError
from brainmap.graph.mutations import MutationEntry
from brainmap.graph.serialize import serialize_graph, serialize_node, to_markdown
from brainmap.workspace import Workspace

# Wire (camelCase) attribute names accepted by update requests
_WIRE_ATTRIBUTES = {
    "label": "label",
    "description": "description",
    "isBold": "is_bold",
    "isItalic": "is_italic",
    "isTitle": "is_title",
    "fontSize": "font_size",
    "collapsed": "collapsed",
    "position": "position",
}


def _failure(e: Exception) -> dict[str, Any]:
    return {"success": False, "error": str(e), "error_type": type(e).__name__}


def _serialize_mutation_entry(entry: MutationEntry) -> dict[str, Any]:
    return {
        "id": entry.id,
        "operation": entry.operation,
        "target_id": entry.target_id,
        "timestamp": entry.timestamp.isoformat(),
    }


def _require_confirmation(action: str, confirm: bool) -> None:
    if not confirm:
        raise ConfirmationRequiredError(action)


def _wire_to_attributes(data: dict[str, Any]) -> dict[str, Any]:
    unknown = sorted(set(data) - set(_WIRE_ATTRIBUTES))
    if unknown:
        raise ValueError(f"Unknown node attribute(s): {', '.join(unknown)}")
    return {_WIRE_ATTRIBUTES[k]: v for k, v in data.items()}


# ─────────────────────────────────────────────────────────────────────────────
# Read functions
# ─────────────────────────────────────────────────────────────────────────────


def _get_map_state(ws: Workspace) -> dict[str, Any]:
    """Full state of the open map for the rendering layer."""
    graph = serialize_graph(ws.graph)
    return {
        "success": True,
        "id": ws.map_id,
        "title": ws.title,
        "userId": ws.user_id,
        "createdAt": ws.created_at,
        "updatedAt": ws.updated_at,
        "nodes": graph["nodes"],
        "edges": graph["edges"],
        "dirty": ws.is_dirty,
    }


def _get_dirty(ws: Workspace) -> dict[str, Any]:
    """Unsaved-change indicator."""
    return {
        "success": True,
        "dirty": ws.is_dirty,
        "mutation_count": len(ws.graph.mutation_log),
    }


def _get_mutation_log(ws: Workspace, limit: int = 50) -> dict[str, Any]:
    """Most recent mutations, newest last. A limit of zero or less returns none."""
    entries = list(ws.graph.mutation_log.iter_entries())
    entries = entries[-limit:] if limit > 0 else []
    return {
        "success": True,
        "mutations": [_serialize_mutation_entry(e) for e in entries],
        "count": len(entries),
    }


def _export_markdown(ws: Workspace) -> dict[str, Any]:
    return {"success": True, "markdown": to_markdown(ws.graph, title=ws.title)}


# ─────────────────────────────────────────────────────────────────────────────
# Node mutations
# ─────────────────────────────────────────────────────────────────────────────


def _mutate_add_root(
    ws: Workspace,
    label: str | None = None,
    description: str | None = None,
    position: Any = None,
) -> dict[str, Any]:
    """Add a node with no parent."""
    try:
        node_id = ws.graph.add_root_node(label, description, position)
        return {
            "success": True,
            "node": serialize_node(ws.graph.get_node(node_id), include_view_state=True),
            "mutation": _serialize_mutation_entry(ws.graph.mutation_log.last()),
        }
    except (BrainmapError, ValueError, TypeError) as e:
        return _failure(e)


def _mutate_add_child(ws: Workspace, parent_id: str) -> dict[str, Any]:
    """Add a child under parent_id."""
    try:
        node_id = ws.graph.add_child_node(parent_id)
        return {
            "success": True,
            "node": serialize_node(ws.graph.get_node(node_id), include_view_state=True),
            "parent": serialize_node(ws.graph.get_node(parent_id), include_view_state=True),
            "mutation": _serialize_mutation_entry(ws.graph.mutation_log.last()),
        }
    except BrainmapError as e:
        return _failure(e)


def _mutate_update_node(ws: Workspace, node_id: str, data: dict[str, Any]) -> dict[str, Any]:
    """Merge wire-named attributes (isBold, fontSize, ...) into a node."""
    try:
        if not data:
            raise ValueError("No attributes to update")
        entry = ws.graph.update_node(node_id, **_wire_to_attributes(data))
        return {
            "success": True,
            "node": serialize_node(ws.graph.get_node(node_id), include_view_state=True),
            "mutation": _serialize_mutation_entry(entry),
        }
    except (BrainmapError, ValueError) as e:
        return _failure(e)


def _mutate_delete_node(ws: Workspace, node_id: str, confirm: bool = False) -> dict[str, Any]:
    """Delete a node and its subtree. Requires confirm=True."""
    try:
        _require_confirmation("delete node", confirm)
        removed = ws.graph.delete_node(node_id)
        return {
            "success": True,
            "removed_ids": sorted(removed),
            "mutation": _serialize_mutation_entry(ws.graph.mutation_log.last()),
        }
    except BrainmapError as e:
        return _failure(e)


def _mutate_toggle_collapse(ws: Workspace, node_id: str) -> dict[str, Any]:
    """Collapse or expand a node."""
    try:
        collapsed = ws.graph.toggle_collapse(node_id)
        hidden = sorted(n for n in ws.graph.descendants(node_id) if ws.graph.get_node(n).hidden)
        return {
            "success": True,
            "node_id": node_id,
            "collapsed": collapsed,
            "hidden_ids": hidden,
            "mutation": _serialize_mutation_entry(ws.graph.mutation_log.last()),
        }
    except BrainmapError as e:
        return _failure(e)


def _mutate_connect(ws: Workspace, source_id: str, target_id: str) -> dict[str, Any]:
    """Free-form connect of two existing nodes."""
    try:
        edge_id = ws.graph.connect_nodes(source_id, target_id)
        return {
            "success": True,
            "edge": {"id": edge_id, "source": source_id, "target": target_id},
            "mutation": _serialize_mutation_entry(ws.graph.mutation_log.last()),
        }
    except BrainmapError as e:
        return _failure(e)


def _mutate_convert_text(ws: Workspace, text: str, confirm: bool = False) -> dict[str, Any]:
    """Replace the map with a tree parsed from text.

    Confirmation is only needed when the open map has content to lose.
    """
    try:
        if ws.graph.node_count() > 0:
            _require_confirmation("convert text (replaces the current map)", confirm)
        node_ids = ws.graph.convert_text(text)
        return {
            "success": True,
            "node_ids": node_ids,
            "node_count": ws.graph.node_count(),
            "edge_count": ws.graph.edge_count(),
            "message": f"Created {len(node_ids)} node(s)",
        }
    except BrainmapError as e:
        return _failure(e)


def _mutate_clear(ws: Workspace, confirm: bool = False) -> dict[str, Any]:
    """Remove every node and edge of the open map. Requires confirm=True."""
    try:
        _require_confirmation("clear map", confirm)
        ws.graph.clear()
        return {"success": True, "message": "Map cleared"}
    except BrainmapError as e:
        return _failure(e)


def _undo_last_mutation(ws: Workspace) -> dict[str, Any]:
    entry = ws.graph.undo_last()
    if entry is None:
        return {"success": False, "error": "Nothing to undo", "error_type": "NothingToUndo"}
    return {
        "success": True,
        "mutation": _serialize_mutation_entry(entry),
        "message": f"Undid {entry.operation}",
    }


# ─────────────────────────────────────────────────────────────────────────────
# Map lifecycle
# ─────────────────────────────────────────────────────────────────────────────


def _set_title(ws: Workspace, title: str) -> dict[str, Any]:
    try:
        ws.set_title(title)
        return {"success": True, "title": ws.title}
    except ValueError as e:
        return _failure(e)


def _new_map(ws: Workspace) -> dict[str, Any]:
    ws.new_map()
    return {"success": True, "title": ws.title, "message": "Started a new map"}


def _save_map(ws: Workspace) -> dict[str, Any]:
    try:
        map_id = ws.save()
        return {
            "success": True,
            "id": map_id,
            "title": ws.title,
            "updatedAt": ws.updated_at,
            "message": "Map saved",
        }
    except BrainmapError as e:
        return _failure(e)


def _load_map(ws: Workspace, map_id: str) -> dict[str, Any]:
    try:
        ws.load(map_id)
        return _get_map_state(ws)
    except BrainmapError as e:
        return _failure(e)


def _load_most_recent(ws: Workspace) -> dict[str, Any]:
    try:
        if ws.load_most_recent() is None:
            return {"success": True, "loaded": False}
        return {**_get_map_state(ws), "loaded": True}
    except BrainmapError as e:
        return _failure(e)


def _list_maps(ws: Workspace) -> dict[str, Any]:
    try:
        maps = [s.to_dict() for s in ws.list_maps()]
        return {"success": True, "maps": maps, "count": len(maps), "currentId": ws.map_id}
    except BrainmapError as e:
        return _failure(e)


def _rename_map(ws: Workspace, map_id: str, title: str) -> dict[str, Any]:
    try:
        mind_map = ws.rename_map(map_id, title)
        return {"success": True, "map": mind_map.summary().to_dict()}
    except (BrainmapError, ValueError) as e:
        return _failure(e)


def _delete_map(ws: Workspace, map_id: str, confirm: bool = False) -> dict[str, Any]:
    try:
        _require_confirmation("delete map", confirm)
        was_open = map_id == ws.map_id
        ws.delete_map(map_id)
        return {"success": True, "id": map_id, "was_open": was_open}
    except BrainmapError as e:
        return _failure(e)
