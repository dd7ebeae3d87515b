"""Map-level data models.

A MindMap is the persisted aggregate: title, owner, timestamps and the
node/edge content. The live, editable graph is MindMapGraph; a MindMap is
what goes to and comes back from the store.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from brainmap.graph.GraphNode import GraphNode
from brainmap.graph.relations import Edge

DEFAULT_TITLE = "New Mind Map"


def utc_now() -> str:
    """Current time as an ISO-8601 UTC string."""
    return datetime.now(timezone.utc).isoformat()


@dataclass
class MindMap:
    """One persisted mind-map document.

    Attributes:
        id: Store-assigned id; None until first saved.
        title: Display title.
        nodes: Node set.
        edges: Edge set.
        user_id: Owner.
        created_at: ISO-8601 UTC creation time (set by the store).
        updated_at: ISO-8601 UTC time of the last save (set by the store).
    """

    id: str | None = None
    title: str = DEFAULT_TITLE
    nodes: list[GraphNode] = field(default_factory=list)
    edges: list[Edge] = field(default_factory=list)
    user_id: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    def summary(self) -> MapSummary:
        return MapSummary(
            id=self.id or "",
            title=self.title,
            created_at=self.created_at or "",
            updated_at=self.updated_at or "",
        )


@dataclass(frozen=True)
class MapSummary:
    """Listing entry for a stored map."""

    id: str
    title: str
    created_at: str
    updated_at: str

    def to_dict(self) -> dict[str, str]:
        return {
            "id": self.id,
            "title": self.title,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
