"""MindMapGraph - Mutation engine for the open mind map.

MindMapGraph owns a GraphStore and is the single writer of it. Every
public mutation runs to completion synchronously, keeps the derived
``has_children`` and ``hidden`` flags consistent, and appends a
MutationEntry so the change can be undone and the map reported dirty.

Missing ids raise NotFoundError before anything is touched, so a failed
call never leaves a partial mutation behind.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any

from brainmap.errors import InvalidEdgeError
from brainmap.graph import traversal
from brainmap.graph.converter import ConverterSettings, parse_text
from brainmap.graph.GraphNode import (
    BOOL_FIELDS,
    EDITABLE_FIELDS,
    TEXT_FIELDS,
    FontSize,
    GraphNode,
    NodeData,
    Position,
)
from brainmap.graph.mutations import MutationEntry, MutationLog
from brainmap.graph.relations import Edge, new_edge_id, new_node_id
from brainmap.graph.store import GraphStore

logger = logging.getLogger(__name__)

VISIBILITY_GLOBAL = "global"
VISIBILITY_LAST_TOGGLE = "last-toggle"
VISIBILITY_MODES = (VISIBILITY_GLOBAL, VISIBILITY_LAST_TOGGLE)


@dataclass
class LayoutSettings:
    """Placement defaults for new nodes.

    Attributes:
        default_label: Label given to nodes created without one.
        root_position: Where add_root_node puts a node with no position.
        child_offset: (dx, dy) of a first child relative to its parent.
        sibling_spacing: Extra vertical gap per existing sibling.
    """

    default_label: str = "New Idea"
    root_position: Position = field(default_factory=lambda: Position(250.0, 250.0))
    child_offset: tuple[float, float] = (200.0, 50.0)
    sibling_spacing: float = 80.0


@dataclass
class MindMapGraph:
    """The node/edge graph of one mind map plus its mutation history.

    Attributes:
        visibility: "global" recomputes every hidden flag from all collapse
            states after each mutation; "last-toggle" only rewrites the
            descendants of the node just toggled.
        layout: Placement defaults for new nodes.
        converter: Placement settings for text conversion.
    """

    visibility: str = VISIBILITY_GLOBAL
    layout: LayoutSettings = field(default_factory=LayoutSettings)
    converter: ConverterSettings = field(default_factory=ConverterSettings)

    _store: GraphStore = field(default_factory=GraphStore, init=False, repr=False)
    _mutation_log: MutationLog = field(default_factory=MutationLog, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.visibility not in VISIBILITY_MODES:
            raise ValueError(
                f"Unknown visibility mode '{self.visibility}'; "
                f"expected one of {', '.join(VISIBILITY_MODES)}"
            )

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> MindMapGraph:
        """Build an engine from the ``[mindmap]`` and ``[converter]`` config sections."""
        mm = config.get("mindmap", {})
        conv = config.get("converter", {})
        layout = LayoutSettings(
            default_label=mm.get("default_label", "New Idea"),
            root_position=Position.coerce(mm.get("root_position", (250.0, 250.0))),
            child_offset=tuple(float(v) for v in mm.get("child_offset", (200.0, 50.0))),
            sibling_spacing=float(mm.get("sibling_spacing", 80.0)),
        )
        converter = ConverterSettings(
            x=float(conv.get("x", 250.0)),
            y_start=float(conv.get("y_start", 50.0)),
            y_step=float(conv.get("y_step", 100.0)),
        )
        return cls(
            visibility=mm.get("visibility", VISIBILITY_GLOBAL),
            layout=layout,
            converter=converter,
        )

    # ─────────────────────────────────────────────────────────────────────────
    # Read-only accessors
    # ─────────────────────────────────────────────────────────────────────────

    def find_node(self, node_id: str) -> GraphNode | None:
        return self._store.find_node(node_id)

    def get_node(self, node_id: str) -> GraphNode:
        """Return a node.

        Raises:
            NotFoundError: If node_id does not exist.
        """
        return self._store.get_node(node_id)

    def nodes(self) -> Iterator[GraphNode]:
        """Iterate all nodes in insertion order."""
        yield from self._store.iter_nodes()

    def edges(self) -> Iterator[Edge]:
        """Iterate all edges in insertion order."""
        yield from self._store.iter_edges()

    def visible_nodes(self) -> Iterator[GraphNode]:
        """Iterate nodes that are not hidden by a collapsed ancestor."""
        for node in self._store.iter_nodes():
            if not node.data.hidden:
                yield node

    def roots(self) -> Iterator[GraphNode]:
        """Iterate nodes with no incoming edge."""
        for node in self._store.iter_nodes():
            if next(self._store.edges_to(node.id), None) is None:
                yield node

    def children(self, node_id: str) -> list[GraphNode]:
        """Direct children of a node, in edge order."""
        return [
            self._store.get_node(child_id)
            for child_id in traversal.children_of(node_id, self._store.iter_edges())
        ]

    def descendants(self, node_id: str) -> set[str]:
        """Descendant ids of a node (see traversal.descendants)."""
        return traversal.descendants(node_id, self._store.iter_edges())

    def node_count(self) -> int:
        return self._store.node_count()

    def edge_count(self) -> int:
        return self._store.edge_count()

    @property
    def mutation_log(self) -> MutationLog:
        return self._mutation_log

    @property
    def is_dirty(self) -> bool:
        """True when there are mutations not yet saved."""
        return len(self._mutation_log) > 0

    def mark_saved(self) -> None:
        """Forget the mutation history after a successful save."""
        self._mutation_log.clear()

    # ─────────────────────────────────────────────────────────────────────────
    # Mutation API
    # ─────────────────────────────────────────────────────────────────────────

    def add_root_node(
        self,
        label: str | None = None,
        description: str | None = None,
        position: Position | dict | tuple | None = None,
    ) -> str:
        """Create a node with no incoming edge.

        Args:
            label: Display label; defaults to the configured default label.
            description: Optional description.
            position: Canvas position; defaults to the configured root position.

        Returns:
            The new node id.

        Raises:
            ValueError: If label or description is not a string.
        """
        for name, value in (("label", label), ("description", description)):
            if value is not None and not isinstance(value, str):
                raise ValueError(f"'{name}' must be a string")
        pos = (
            Position.coerce(position)
            if position is not None
            else Position.coerce(self.layout.root_position)
        )
        node = GraphNode(
            id=new_node_id(),
            position=pos,
            data=NodeData(
                label=self.layout.default_label if label is None else label,
                description=description or "",
            ),
        )
        self._store.add_node(node)
        self._log("add_root_node", node.id, {}, {"node_id": node.id})
        return node.id

    def add_child_node(self, parent_id: str) -> str:
        """Create a child of parent_id linked by one parent->child edge.

        Returns:
            The new node id.

        Raises:
            NotFoundError: If parent_id does not exist. Nothing is changed.
        """
        parent = self._store.get_node(parent_id)
        sibling_count = sum(1 for _ in self._store.edges_from(parent_id))
        dx, dy = self.layout.child_offset
        child = GraphNode(
            id=new_node_id(),
            position=parent.position.offset(dx, dy + self.layout.sibling_spacing * sibling_count),
            data=NodeData(label=self.layout.default_label),
        )
        edge = Edge(id=new_edge_id(), source=parent_id, target=child.id)
        had_children = parent.data.has_children

        self._store.add_node(child)
        self._store.add_edge(edge)
        parent.data.has_children = True
        if self.visibility == VISIBILITY_GLOBAL:
            self._refresh_visibility()

        self._log(
            "add_child_node",
            child.id,
            {"parent_id": parent_id, "had_children": had_children},
            {"node_id": child.id, "edge_id": edge.id, "parent_id": parent_id},
        )
        return child.id

    def update_node(self, node_id: str, **attributes: Any) -> MutationEntry:
        """Merge a subset of editable attributes into a node.

        Accepted keys: label, description, is_bold, is_italic, is_title,
        font_size, collapsed, position.

        Raises:
            NotFoundError: If node_id does not exist.
            ValueError: On unknown keys or invalid values. Nothing is changed.
        """
        node = self._store.get_node(node_id)
        changes = self._validate_attributes(attributes)

        before: dict[str, Any] = {}
        for key in changes:
            if key == "position":
                before[key] = Position(node.position.x, node.position.y)
            else:
                before[key] = getattr(node.data, key)

        old_hidden = self._hidden_of(self.descendants(node_id)) if "collapsed" in changes else {}
        self._apply_attributes(node, changes)

        if "collapsed" in changes and changes["collapsed"] != before["collapsed"]:
            self._apply_collapse(node_id, changes["collapsed"])

        return self._log(
            "update_node",
            node_id,
            {"attributes": before, "hidden": old_hidden},
            {"attributes": dict(changes)},
        )

    def delete_node(self, node_id: str) -> set[str]:
        """Delete a node, its whole subtree and every incident edge.

        Callers are expected to have confirmed the deletion with the user.

        Returns:
            The ids of all removed nodes (node_id included).

        Raises:
            NotFoundError: If node_id does not exist. Nothing is changed.
        """
        self._store.get_node(node_id)
        removed = self.descendants(node_id) | {node_id}
        removed_edges = [e for e in self._store.iter_edges() if e.touches(removed)]
        parent_ids = {e.source for e in removed_edges if e.source not in removed}

        before_nodes = [self._store.get_node(n).clone() for n in self._ordered(removed)]
        for edge in removed_edges:
            self._store.remove_edge(edge.id)
        for nid in removed:
            self._store.remove_node(nid)

        for parent_id in parent_ids:
            parent = self._store.get_node(parent_id)
            parent.data.has_children = any(True for _ in self._store.edges_from(parent_id))
        if self.visibility == VISIBILITY_GLOBAL:
            self._refresh_visibility()

        self._log(
            "delete_node",
            node_id,
            {"nodes": before_nodes, "edges": removed_edges},
            {"removed_ids": sorted(removed)},
        )
        logger.debug("Deleted %s and %d descendant(s)", node_id, len(removed) - 1)
        return removed

    def toggle_collapse(self, node_id: str) -> bool:
        """Flip a node's collapsed flag and update its subtree's visibility.

        The toggled node's own hidden flag is never changed by its collapse.

        Returns:
            The new collapsed value.

        Raises:
            NotFoundError: If node_id does not exist.
        """
        node = self._store.get_node(node_id)
        old_hidden = self._hidden_of(self.descendants(node_id))
        old = node.data.collapsed
        node.data.collapsed = not old
        self._apply_collapse(node_id, node.data.collapsed)
        self._log(
            "toggle_collapse",
            node_id,
            {"collapsed": old, "hidden": old_hidden},
            {"collapsed": node.data.collapsed},
        )
        return node.data.collapsed

    def connect_nodes(self, source_id: str, target_id: str) -> str:
        """Add a free-form parent->child edge between two existing nodes.

        The edge is rejected when it would loop, close a cycle, or give the
        target a second parent, so the map stays a forest.

        Returns:
            The new edge id.

        Raises:
            NotFoundError: If either node does not exist.
            InvalidEdgeError: If the edge would break the forest shape.
        """
        self._store.get_node(source_id)
        target = self._store.get_node(target_id)
        if source_id == target_id:
            raise InvalidEdgeError(f"Cannot connect '{source_id}' to itself")
        existing_parents = traversal.parents_of(target_id, self._store.iter_edges())
        if existing_parents:
            raise InvalidEdgeError(
                f"'{target.id}' already has parent '{existing_parents[0]}'"
            )
        if traversal.would_create_cycle(source_id, target_id, self._store.iter_edges()):
            raise InvalidEdgeError(f"Connecting '{source_id}' -> '{target_id}' creates a cycle")

        source = self._store.get_node(source_id)
        had_children = source.data.has_children
        edge = Edge(id=new_edge_id(), source=source_id, target=target_id)
        self._store.add_edge(edge)
        source.data.has_children = True
        if self.visibility == VISIBILITY_GLOBAL:
            self._refresh_visibility()
        self._log(
            "connect_nodes",
            source_id,
            {"had_children": had_children, "hidden": {}},
            {"edge_id": edge.id, "source_id": source_id, "target_id": target_id},
        )
        return edge.id

    def convert_text(self, text: str) -> list[str]:
        """Replace the whole map with a tree parsed from freeform text.

        Returns:
            Ids of the created nodes, first node (the root) first.

        Raises:
            EmptyInputError: If no node can be produced. The map is unchanged.
        """
        nodes, edges = parse_text(text, self.converter)
        self._replace("convert_text", nodes, edges)
        return [n.id for n in nodes]

    def clear(self) -> None:
        """Remove every node and edge (logged, undoable)."""
        self._replace("clear", [], [])

    def load(self, nodes: Iterable[GraphNode], edges: Iterable[Edge]) -> None:
        """Install content read from storage and start a fresh history.

        Edges whose endpoints are missing, and self-loops, are dropped.
        Derived flags are recomputed from the edge set.
        """
        nodes = list(nodes)
        node_ids = {n.id for n in nodes}
        kept: list[Edge] = []
        for edge in edges:
            if edge.source == edge.target or not {edge.source, edge.target} <= node_ids:
                logger.warning("Dropping invalid edge %s (%s)", edge.id, edge)
                continue
            kept.append(edge)
        self._store.replace_all(nodes, kept)
        self._refresh_has_children()
        self._refresh_visibility()
        self._mutation_log.clear()

    # ─────────────────────────────────────────────────────────────────────────
    # Undo
    # ─────────────────────────────────────────────────────────────────────────

    def undo_last(self) -> MutationEntry | None:
        """Undo the most recent mutation.

        Returns:
            The undone MutationEntry, or None if the log is empty.
        """
        entry = self._mutation_log.pop()
        if entry:
            self._apply_undo(entry)
        return entry

    def _apply_undo(self, entry: MutationEntry) -> None:
        op = entry.operation
        before, after = entry.before_state, entry.after_state

        if op == "add_root_node":
            self._store.remove_node(after["node_id"])
        elif op == "add_child_node":
            self._store.remove_edge(after["edge_id"])
            self._store.remove_node(after["node_id"])
            self._store.get_node(before["parent_id"]).data.has_children = before["had_children"]
        elif op == "connect_nodes":
            self._store.remove_edge(after["edge_id"])
            self._store.get_node(after["source_id"]).data.has_children = before["had_children"]
        elif op == "update_node":
            node = self._store.get_node(entry.target_id)
            self._apply_attributes(node, before["attributes"])
            self._restore_hidden(before["hidden"])
        elif op == "toggle_collapse":
            self._store.get_node(entry.target_id).data.collapsed = before["collapsed"]
            self._restore_hidden(before["hidden"])
        elif op == "delete_node":
            for node in before["nodes"]:
                self._store.add_node(node.clone())
            for edge in before["edges"]:
                self._store.add_edge(edge)
            self._refresh_has_children()
        elif op in ("convert_text", "clear"):
            self._store.replace_all([n.clone() for n in before["nodes"]], before["edges"])
        # Unknown operations are ignored (forward compatibility)

        if self.visibility == VISIBILITY_GLOBAL:
            self._refresh_visibility()

    # ─────────────────────────────────────────────────────────────────────────
    # Internals
    # ─────────────────────────────────────────────────────────────────────────

    def _log(
        self,
        operation: str,
        target_id: str,
        before: dict[str, Any],
        after: dict[str, Any],
    ) -> MutationEntry:
        entry = MutationEntry(
            operation=operation,
            target_id=target_id,
            before_state=before,
            after_state=after,
        )
        self._mutation_log.append(entry)
        return entry

    def _replace(self, operation: str, nodes: list[GraphNode], edges: list[Edge]) -> None:
        before_nodes, before_edges = self._store.snapshot()
        self._store.replace_all(nodes, edges)
        self._refresh_has_children()
        self._refresh_visibility()
        self._log(
            operation,
            "",
            {"nodes": before_nodes, "edges": before_edges},
            {"node_count": len(nodes), "edge_count": len(edges)},
        )

    def _ordered(self, node_ids: set[str]) -> list[str]:
        return [n.id for n in self._store.iter_nodes() if n.id in node_ids]

    def _hidden_of(self, node_ids: Iterable[str]) -> dict[str, bool]:
        return {nid: self._store.get_node(nid).data.hidden for nid in node_ids}

    def _restore_hidden(self, hidden: dict[str, bool]) -> None:
        for nid, value in hidden.items():
            node = self._store.find_node(nid)
            if node is not None:
                node.data.hidden = value

    def _apply_collapse(self, node_id: str, collapsed: bool) -> None:
        if self.visibility == VISIBILITY_GLOBAL:
            self._refresh_visibility()
            return
        for nid in self.descendants(node_id):
            self._store.get_node(nid).data.hidden = collapsed

    def _refresh_has_children(self) -> None:
        sources = {e.source for e in self._store.iter_edges()}
        for node in self._store.iter_nodes():
            node.data.has_children = node.id in sources

    def _refresh_visibility(self) -> None:
        collapsed = [n.id for n in self._store.iter_nodes() if n.data.collapsed]
        hidden = traversal.hidden_nodes(collapsed, self._store.iter_edges())
        for node in self._store.iter_nodes():
            node.data.hidden = node.id in hidden

    @staticmethod
    def _validate_attributes(attributes: dict[str, Any]) -> dict[str, Any]:
        unknown = set(attributes) - EDITABLE_FIELDS - {"position"}
        if unknown:
            raise ValueError(f"Unknown node attribute(s): {', '.join(sorted(unknown))}")

        changes: dict[str, Any] = {}
        for key, value in attributes.items():
            if key in TEXT_FIELDS:
                if not isinstance(value, str):
                    raise ValueError(f"'{key}' must be a string")
                changes[key] = value
            elif key in BOOL_FIELDS:
                if not isinstance(value, bool):
                    raise ValueError(f"'{key}' must be a boolean")
                changes[key] = value
            elif key == "font_size":
                changes[key] = FontSize.coerce(value)
            elif key == "position":
                try:
                    changes[key] = Position.coerce(value)
                except (TypeError, ValueError, KeyError):
                    raise ValueError(f"Invalid position {value!r}") from None
        return changes

    @staticmethod
    def _apply_attributes(node: GraphNode, changes: dict[str, Any]) -> None:
        for key, value in changes.items():
            if key == "position":
                node.position = Position(value.x, value.y)
            else:
                setattr(node.data, key, value)


__all__ = [
    "LayoutSettings",
    "MindMapGraph",
    "VISIBILITY_GLOBAL",
    "VISIBILITY_LAST_TOGGLE",
    "VISIBILITY_MODES",
]
