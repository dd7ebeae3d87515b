"""Subtree traversal over an edge set.

All walks keep a visited set, so they terminate even when free-connect
edges loaded from an older map form a cycle.
"""

from __future__ import annotations

from collections import defaultdict, deque
from collections.abc import Iterable

from brainmap.graph.relations import Edge


def _adjacency(edges: Iterable[Edge], reverse: bool = False) -> dict[str, list[str]]:
    adj: dict[str, list[str]] = defaultdict(list)
    for edge in edges:
        if reverse:
            adj[edge.target].append(edge.source)
        else:
            adj[edge.source].append(edge.target)
    return adj


def _reachable(start: str, adj: dict[str, list[str]]) -> set[str]:
    visited: set[str] = set()
    queue: deque[str] = deque(adj.get(start, ()))
    while queue:
        node_id = queue.popleft()
        if node_id in visited or node_id == start:
            continue
        visited.add(node_id)
        queue.extend(adj.get(node_id, ()))
    return visited


def descendants(node_id: str, edges: Iterable[Edge]) -> set[str]:
    """Return every node reachable from node_id by following source->target.

    The start node is never part of the result, even if a cycle leads
    back to it.

    Args:
        node_id: Start node.
        edges: The current edge set.

    Returns:
        Set of descendant node ids.
    """
    return _reachable(node_id, _adjacency(edges))


def ancestors(node_id: str, edges: Iterable[Edge]) -> set[str]:
    """Return every node from which node_id is reachable (start excluded)."""
    return _reachable(node_id, _adjacency(edges, reverse=True))


def children_of(node_id: str, edges: Iterable[Edge]) -> list[str]:
    """Direct children of node_id, in edge order."""
    return [e.target for e in edges if e.source == node_id]


def parents_of(node_id: str, edges: Iterable[Edge]) -> list[str]:
    """Direct parents of node_id, in edge order."""
    return [e.source for e in edges if e.target == node_id]


def would_create_cycle(source_id: str, target_id: str, edges: Iterable[Edge]) -> bool:
    """Check whether adding source->target would close a cycle."""
    if source_id == target_id:
        return True
    return target_id in ancestors(source_id, edges)


def hidden_nodes(collapsed_ids: Iterable[str], edges: Iterable[Edge]) -> set[str]:
    """Return ids that sit strictly below at least one collapsed node."""
    adj = _adjacency(edges)
    hidden: set[str] = set()
    for node_id in collapsed_ids:
        hidden |= _reachable(node_id, adj)
    return hidden
