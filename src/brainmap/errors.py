"""Exception types shared by the graph engine, the store and the server.

Graph errors also derive from the builtin they refine (``KeyError`` for
missing ids, ``ValueError`` for rejected input) so callers that only know
the builtins keep working.
"""

from __future__ import annotations


class BrainmapError(Exception):
    """Base class for all brainmap errors."""


class NotFoundError(BrainmapError, KeyError):
    """A node, edge or map id does not exist."""

    def __init__(self, kind: str, item_id: str) -> None:
        self.kind = kind
        self.item_id = item_id
        super().__init__(f"{kind.capitalize()} '{item_id}' not found")

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message
        return str(self.args[0])


class DuplicateIdError(BrainmapError, ValueError):
    """An id is already present in the graph store."""


class EmptyInputError(BrainmapError, ValueError):
    """The text converter found no usable lines."""


class InvalidEdgeError(BrainmapError, ValueError):
    """A connect gesture would break the tree shape of the map."""


class AuthRequiredError(BrainmapError):
    """A persistence operation was attempted without a current user."""

    def __init__(self, message: str = "You must be signed in to do this") -> None:
        super().__init__(message)


class PersistenceError(BrainmapError):
    """The map store failed to read or write a document."""


class ConfirmationRequiredError(BrainmapError):
    """A destructive action was requested without explicit confirmation."""

    def __init__(self, action: str) -> None:
        self.action = action
        super().__init__(f"'{action}' is destructive and requires confirm=true")


__all__ = [
    "BrainmapError",
    "NotFoundError",
    "DuplicateIdError",
    "EmptyInputError",
    "InvalidEdgeError",
    "AuthRequiredError",
    "PersistenceError",
    "ConfirmationRequiredError",
]
