"""Mutation records for MindMapGraph operations.

Every engine operation appends a MutationEntry. The log drives undo and
the "unsaved changes" indicator; it is cleared after a successful save.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import uuid4


@dataclass
class MutationEntry:
    """Single mutation operation record.

    The before_state contains enough information to reverse the
    operation.

    Attributes:
        operation: Operation type (e.g., "add_child_node", "delete_node").
        target_id: Primary target of the mutation (node id, or "" for
            whole-map operations).
        before_state: State before mutation (for undo).
        after_state: State after mutation.
        id: Unique mutation ID (UUID4).
        timestamp: When the mutation occurred.
    """

    operation: str
    target_id: str
    before_state: dict[str, Any]
    after_state: dict[str, Any]
    id: str = field(default_factory=lambda: uuid4().hex)
    timestamp: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        return f"[{self.id[:8]}] {self.operation}({self.target_id})"


class MutationLog:
    """Append-only mutation history.

    Example:
        >>> log = MutationLog()
        >>> log.append(MutationEntry("toggle_collapse", "node-1", {}, {}))
        >>> len(log)
        1
    """

    def __init__(self) -> None:
        self._entries: list[MutationEntry] = []

    def append(self, entry: MutationEntry) -> None:
        self._entries.append(entry)

    def iter_entries(self) -> Iterator[MutationEntry]:
        """Iterate over all entries in chronological order."""
        yield from self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def last(self) -> MutationEntry | None:
        """Return the most recent entry, or None if empty."""
        return self._entries[-1] if self._entries else None

    def pop(self) -> MutationEntry | None:
        """Remove and return the most recent entry.

        Used internally for undo operations. Does not log the removal.
        """
        return self._entries.pop() if self._entries else None

    def clear(self) -> None:
        """Clear all entries from the log."""
        self._entries.clear()


__all__ = ["MutationEntry", "MutationLog"]
