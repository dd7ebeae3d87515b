"""Graph Store - Canonical node and edge collections of the open map.

The store is deliberately dumb: it enforces id uniqueness and nothing
else. Derived flags (has_children, hidden) are maintained by
MindMapGraph, which is the only writer in normal operation.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from brainmap.errors import DuplicateIdError, NotFoundError
from brainmap.graph.GraphNode import GraphNode
from brainmap.graph.relations import Edge


@dataclass
class GraphStore:
    """Indexed node and edge storage.

    Nodes and edges are kept in insertion order, which is also the order
    they are serialized in.
    """

    _nodes: dict[str, GraphNode] = field(default_factory=dict, init=False)
    _edges: dict[str, Edge] = field(default_factory=dict, init=False)

    # Lookup
    def get_node(self, node_id: str) -> GraphNode:
        """Return the node with node_id.

        Raises:
            NotFoundError: If no such node exists.
        """
        try:
            return self._nodes[node_id]
        except KeyError:
            raise NotFoundError("node", node_id) from None

    def find_node(self, node_id: str) -> GraphNode | None:
        """Return the node with node_id, or None."""
        return self._nodes.get(node_id)

    def get_edge(self, edge_id: str) -> Edge:
        """Return the edge with edge_id.

        Raises:
            NotFoundError: If no such edge exists.
        """
        try:
            return self._edges[edge_id]
        except KeyError:
            raise NotFoundError("edge", edge_id) from None

    def has_node(self, node_id: str) -> bool:
        return node_id in self._nodes

    def has_edge(self, edge_id: str) -> bool:
        return edge_id in self._edges

    # Enumeration
    def iter_nodes(self) -> Iterator[GraphNode]:
        yield from self._nodes.values()

    def iter_edges(self) -> Iterator[Edge]:
        yield from self._edges.values()

    def node_count(self) -> int:
        return len(self._nodes)

    def edge_count(self) -> int:
        return len(self._edges)

    def edges_from(self, node_id: str) -> Iterator[Edge]:
        """Iterate edges whose source is node_id."""
        for edge in self._edges.values():
            if edge.source == node_id:
                yield edge

    def edges_to(self, node_id: str) -> Iterator[Edge]:
        """Iterate edges whose target is node_id."""
        for edge in self._edges.values():
            if edge.target == node_id:
                yield edge

    # Raw primitives
    def add_node(self, node: GraphNode) -> None:
        """Insert a new node.

        Raises:
            DuplicateIdError: If the id is already taken.
        """
        if self.has_node(node.id):
            raise DuplicateIdError(f"Node id '{node.id}' already exists")
        self._nodes[node.id] = node

    def replace_node(self, node: GraphNode) -> None:
        """Replace an existing node, keeping its slot in insertion order.

        Raises:
            NotFoundError: If no node with that id exists.
        """
        if node.id not in self._nodes:
            raise NotFoundError("node", node.id)
        self._nodes[node.id] = node

    def remove_node(self, node_id: str) -> GraphNode:
        """Remove and return a node. Incident edges are left in place.

        Raises:
            NotFoundError: If no such node exists.
        """
        try:
            return self._nodes.pop(node_id)
        except KeyError:
            raise NotFoundError("node", node_id) from None

    def add_edge(self, edge: Edge) -> None:
        """Insert a new edge.

        Raises:
            DuplicateIdError: If the id is already taken.
        """
        if self.has_edge(edge.id):
            raise DuplicateIdError(f"Edge id '{edge.id}' already exists")
        self._edges[edge.id] = edge

    def remove_edge(self, edge_id: str) -> Edge:
        """Remove and return an edge.

        Raises:
            NotFoundError: If no such edge exists.
        """
        try:
            return self._edges.pop(edge_id)
        except KeyError:
            raise NotFoundError("edge", edge_id) from None

    def replace_all(self, nodes: Iterable[GraphNode], edges: Iterable[Edge]) -> None:
        """Discard all content and load the given nodes and edges.

        The new content is validated for duplicate ids before anything is
        discarded, so a failed call leaves the store untouched.

        Raises:
            DuplicateIdError: If the new content repeats an id.
        """
        new_nodes: dict[str, GraphNode] = {}
        for node in nodes:
            if node.id in new_nodes:
                raise DuplicateIdError(f"Node id '{node.id}' already exists")
            new_nodes[node.id] = node
        new_edges: dict[str, Edge] = {}
        for edge in edges:
            if edge.id in new_edges:
                raise DuplicateIdError(f"Edge id '{edge.id}' already exists")
            new_edges[edge.id] = edge
        self._nodes = new_nodes
        self._edges = new_edges

    def clear(self) -> None:
        """Remove every node and edge."""
        self._nodes = {}
        self._edges = {}

    def snapshot(self) -> tuple[list[GraphNode], list[Edge]]:
        """Return deep copies of all nodes and the (immutable) edges."""
        return [n.clone() for n in self._nodes.values()], list(self._edges.values())
