"""Workspace - The mind map currently open for editing.

A Workspace pairs one MindMapGraph with the metadata of the document it
came from (id, title, owner, timestamps) and moves it to and from a
MapStore. It is the explicit owner of the open map's state; the HTTP
layer and the CLI go through it instead of holding graph state
themselves.

Saving serializes a snapshot of the graph at call time. A failed save
leaves the graph and its dirty state untouched, so the next save simply
retries from the current state. There is no conflict detection: the
last save wins.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from brainmap.config import DEFAULT_CONFIG
from brainmap.errors import AuthRequiredError, NotFoundError
from brainmap.graph.engine import MindMapGraph
from brainmap.models import DEFAULT_TITLE, MapSummary, MindMap

if TYPE_CHECKING:
    from brainmap.server.persistence import MapStore

logger = logging.getLogger(__name__)

UserProvider = Callable[[], "str | None"]


def config_user_provider(config: dict[str, Any]) -> UserProvider:
    """Current user taken from ``[auth] user``; empty means signed out."""

    def _provider() -> str | None:
        user = config.get("auth", {}).get("user")
        return str(user) if user not in (None, "") else None

    return _provider


class Workspace:
    """The open map plus its persistence operations.

    Args:
        store: Where maps are saved and loaded.
        config: Merged configuration (defaults used when None).
        current_user: Returns the signed-in user id, or None.
    """

    def __init__(
        self,
        store: MapStore,
        config: dict[str, Any] | None = None,
        current_user: UserProvider | None = None,
    ) -> None:
        self.store = store
        self.config = config if config is not None else copy.deepcopy(DEFAULT_CONFIG)
        self._current_user = current_user or config_user_provider(self.config)
        self._reset()

    def _reset(self) -> None:
        self.map_id: str | None = None
        self.title: str = self.default_title
        self.user_id: str | None = None
        self.created_at: str | None = None
        self.updated_at: str | None = None
        self._title_dirty = False
        self.graph = MindMapGraph.from_config(self.config)

    @property
    def default_title(self) -> str:
        return self.config.get("mindmap", {}).get("default_title", DEFAULT_TITLE)

    @property
    def is_dirty(self) -> bool:
        """True when the graph or title has changes not yet saved."""
        return self.graph.is_dirty or self._title_dirty

    # ─────────────────────────────────────────────────────────────────
    # Auth
    # ─────────────────────────────────────────────────────────────────

    def current_user(self) -> str | None:
        return self._current_user()

    def require_user(self) -> str:
        """Return the current user id.

        Raises:
            AuthRequiredError: If nobody is signed in.
        """
        user = self.current_user()
        if not user:
            raise AuthRequiredError()
        return user

    def _load_owned(self, map_id: str, user_id: str) -> MindMap:
        mind_map = self.store.load_map(map_id)
        if mind_map.user_id != user_id:
            # Other users' maps are indistinguishable from missing ones
            raise NotFoundError("map", map_id)
        return mind_map

    # ─────────────────────────────────────────────────────────────────
    # Open map
    # ─────────────────────────────────────────────────────────────────

    def new_map(self) -> None:
        """Start an empty, unsaved map. Nothing is persisted until save()."""
        self._reset()

    def set_title(self, title: str) -> None:
        """Edit the open map's title locally (persisted on the next save).

        Raises:
            ValueError: If the title is blank.
        """
        if not title or not title.strip():
            raise ValueError("Title cannot be empty")
        if title != self.title:
            self.title = title
            self._title_dirty = True

    def snapshot(self, user_id: str | None = None) -> MindMap:
        """Return an independent MindMap copy of the open map as it is now."""
        return MindMap(
            id=self.map_id,
            title=self.title,
            nodes=[n.clone() for n in self.graph.nodes()],
            edges=list(self.graph.edges()),
            user_id=user_id or self.user_id,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    def save(self) -> str:
        """Persist the open map (insert on first save, update afterwards).

        Returns:
            The map id.

        Raises:
            AuthRequiredError: If nobody is signed in.
            PersistenceError: If the store fails; local state is unchanged.
        """
        user_id = self.require_user()
        mind_map = self.snapshot(user_id)
        if self.user_id is not None and self.user_id != user_id:
            # Saving someone else's map creates a copy owned by the current user
            mind_map.id = None
            mind_map.created_at = None
        map_id = self.store.save_map(mind_map)

        self.map_id = map_id
        self.user_id = user_id
        self.created_at = mind_map.created_at
        self.updated_at = mind_map.updated_at
        self._title_dirty = False
        self.graph.mark_saved()
        logger.info("Saved map %s (%d nodes)", map_id, len(mind_map.nodes))
        return map_id

    def load(self, map_id: str) -> MindMap:
        """Replace the open map with a stored one.

        Raises:
            AuthRequiredError: If nobody is signed in.
            NotFoundError: If the map does not exist or belongs to another user.
            PersistenceError: If the store fails; the open map is unchanged.
        """
        user_id = self.require_user()
        mind_map = self._load_owned(map_id, user_id)
        self._install(mind_map)
        return mind_map

    def load_most_recent(self) -> MindMap | None:
        """Open the current user's most recently updated map, if any.

        Raises:
            AuthRequiredError: If nobody is signed in.
        """
        user_id = self.require_user()
        mind_map = self.store.load_most_recent_map(user_id)
        if mind_map is not None:
            self._install(mind_map)
        return mind_map

    def _install(self, mind_map: MindMap) -> None:
        graph = MindMapGraph.from_config(self.config)
        graph.load(mind_map.nodes, mind_map.edges)
        self.graph = graph
        self.map_id = mind_map.id
        self.title = mind_map.title
        self.user_id = mind_map.user_id
        self.created_at = mind_map.created_at
        self.updated_at = mind_map.updated_at
        self._title_dirty = False
        logger.info("Loaded map %s (%d nodes)", mind_map.id, graph.node_count())

    # ─────────────────────────────────────────────────────────────────
    # Stored maps
    # ─────────────────────────────────────────────────────────────────

    def list_maps(self) -> list[MapSummary]:
        """List the current user's maps, most recently updated first.

        Raises:
            AuthRequiredError: If nobody is signed in.
        """
        return self.store.list_maps(self.require_user())

    def delete_map(self, map_id: str) -> None:
        """Delete a stored map; if it is the open one, start a new map.

        Callers are expected to have confirmed the deletion with the user.

        Raises:
            AuthRequiredError: If nobody is signed in.
            NotFoundError: If the map does not exist or belongs to another user.
        """
        user_id = self.require_user()
        self._load_owned(map_id, user_id)
        self.store.delete_map(map_id)
        if map_id == self.map_id:
            self.new_map()

    def rename_map(self, map_id: str, new_title: str) -> MindMap:
        """Rename a stored map; the open map's title follows if it is the one.

        Raises:
            AuthRequiredError: If nobody is signed in.
            NotFoundError: If the map does not exist or belongs to another user.
            ValueError: If new_title is blank.
        """
        user_id = self.require_user()
        self._load_owned(map_id, user_id)
        mind_map = self.store.rename_map(map_id, new_title)
        if map_id == self.map_id:
            self.title = mind_map.title
            self.updated_at = mind_map.updated_at
        return mind_map
