"""Relations - Directed parent/child edges.

Edges point from parent (source) to child (target). They reference nodes
by id so the store can be serialized without walking object links.
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import uuid4


def new_node_id() -> str:
    """Generate a fresh node id."""
    return f"node-{uuid4().hex}"


def new_edge_id() -> str:
    """Generate a fresh edge id."""
    return f"edge-{uuid4().hex}"


@dataclass(frozen=True)
class Edge:
    """A directed edge between two graph nodes.

    Attributes:
        id: Unique, stable identifier.
        source: Parent node id.
        target: Child node id.
    """

    id: str
    source: str
    target: str

    def touches(self, node_ids: set[str] | frozenset[str]) -> bool:
        """Check if either endpoint is in node_ids."""
        return self.source in node_ids or self.target in node_ids

    def __str__(self) -> str:
        return f"{self.source} -> {self.target}"
