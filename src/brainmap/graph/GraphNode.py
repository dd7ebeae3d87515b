"""GraphNode - Node representation for the mind-map graph.

This module provides the core data structures for map nodes:
- FontSize: Enum of the selectable label sizes
- Position: Free-form canvas coordinates
- NodeData: Pure, serializable display state of a node
- GraphNode: A node with its id, position and data
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any


class FontSize(Enum):
    """Label sizes offered by the node toolbar."""

    SMALL = 12
    MEDIUM = 14
    LARGE = 16
    XLARGE = 18

    @classmethod
    def coerce(cls, value: Any) -> FontSize:
        """Convert an int (or numeric string) or FontSize to a FontSize.

        Raises:
            ValueError: If the value is not one of the allowed sizes.
        """
        if isinstance(value, FontSize):
            return value
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            allowed = ", ".join(str(s.value) for s in cls)
            raise ValueError(f"Invalid font size {value!r}; expected one of {allowed}") from None


DEFAULT_FONT_SIZE = FontSize.MEDIUM


@dataclass
class Position:
    """Canvas coordinates. Unbounded, may be negative."""

    x: float = 0.0
    y: float = 0.0

    @classmethod
    def coerce(cls, value: Any) -> Position:
        """Build a Position from a Position, an ``{x, y}`` dict or an ``(x, y)`` pair."""
        if isinstance(value, Position):
            return Position(value.x, value.y)
        if isinstance(value, dict):
            return cls(float(value.get("x", 0.0)), float(value.get("y", 0.0)))
        x, y = value
        return cls(float(x), float(y))

    def offset(self, dx: float, dy: float) -> Position:
        """Return a new position shifted by (dx, dy)."""
        return Position(self.x + dx, self.y + dy)


@dataclass
class NodeData:
    """Display state of a node.

    Holds only plain values: the rendering layer dispatches gestures back
    to the engine by node id, so no behaviour lives here.

    Attributes:
        label: Text shown on the node.
        description: Optional longer text.
        is_bold: Bold emphasis.
        is_italic: Italic emphasis.
        is_title: Title styling.
        font_size: One of the FontSize values.
        collapsed: Whether the subtree below this node is folded away.
        has_children: Derived; True iff an edge leaves this node.
        hidden: Derived; True iff a collapsed ancestor hides this node.
    """

    label: str = ""
    description: str = ""
    is_bold: bool = False
    is_italic: bool = False
    is_title: bool = False
    font_size: FontSize = DEFAULT_FONT_SIZE
    collapsed: bool = False
    has_children: bool = False
    hidden: bool = False


# Attributes callers may set through update_node (derived flags excluded)
EDITABLE_FIELDS = frozenset(
    f.name for f in fields(NodeData) if f.name not in ("has_children", "hidden")
)
BOOL_FIELDS = frozenset({"is_bold", "is_italic", "is_title", "collapsed"})
TEXT_FIELDS = frozenset({"label", "description"})


@dataclass
class GraphNode:
    """A node in the mind-map graph.

    Attributes:
        id: Unique, stable identifier.
        position: Canvas position.
        data: Display state.
    """

    id: str
    position: Position = field(default_factory=Position)
    data: NodeData = field(default_factory=NodeData)

    @property
    def label(self) -> str:
        return self.data.label

    @property
    def collapsed(self) -> bool:
        return self.data.collapsed

    @property
    def has_children(self) -> bool:
        return self.data.has_children

    @property
    def hidden(self) -> bool:
        return self.data.hidden

    def clone(self) -> GraphNode:
        """Return an independent copy of this node."""
        return copy.deepcopy(self)
