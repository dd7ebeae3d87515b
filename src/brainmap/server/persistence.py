"""Persistence layer - JSON document store for mind maps.

Each map is one JSON file, ``<data_dir>/maps/<id>.json``, in the stored
shape produced by brainmap.graph.serialize. Writes go to a temporary
file in the same directory and are moved into place with os.replace, so
a failed write never leaves a half-written document behind.

Public API
----------
- ``MapStore.save_map`` - insert (assigns an id) or update in place
- ``MapStore.load_map`` / ``load_most_recent_map`` / ``list_maps``
- ``MapStore.delete_map`` / ``rename_map``
"""

from __future__ import annotations

import json
import logging
import os
import re
import tempfile
from pathlib import Path
from uuid import uuid4

from brainmap.errors import NotFoundError, PersistenceError
from brainmap.graph.serialize import deserialize_map, serialize_map
from brainmap.models import MapSummary, MindMap, utc_now

logger = logging.getLogger(__name__)

_SAFE_ID = re.compile(r"^[A-Za-z0-9_-]+$")


class MapStore:
    """File-backed store of MindMap documents.

    Args:
        data_dir: Root storage directory; maps live in ``data_dir/maps``.
    """

    def __init__(self, data_dir: Path) -> None:
        self.data_dir = Path(data_dir)
        self.maps_dir = self.data_dir / "maps"

    # ─────────────────────────────────────────────────────────────────
    # Paths and raw I/O
    # ─────────────────────────────────────────────────────────────────

    def _path_for(self, map_id: str) -> Path:
        # Ids become file names; reject anything that could escape maps_dir
        if not map_id or not _SAFE_ID.match(map_id):
            raise NotFoundError("map", map_id)
        return self.maps_dir / f"{map_id}.json"

    def _read(self, path: Path) -> MindMap:
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
            return deserialize_map(raw)
        except FileNotFoundError:
            raise NotFoundError("map", path.stem) from None
        except (OSError, json.JSONDecodeError, ValueError) as e:
            raise PersistenceError(f"Cannot read map '{path.stem}': {e}") from e

    def _write(self, path: Path, mind_map: MindMap) -> None:
        payload = json.dumps(serialize_map(mind_map), ensure_ascii=False, indent=2)
        try:
            self.maps_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.maps_dir, prefix=".tmp-", suffix=".json")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(payload)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise PersistenceError(f"Cannot write map '{path.stem}': {e}") from e

    def _iter_maps(self) -> list[MindMap]:
        if not self.maps_dir.is_dir():
            return []
        maps: list[MindMap] = []
        for path in sorted(self.maps_dir.glob("*.json")):
            if path.name.startswith(".tmp-"):
                continue
            try:
                maps.append(self._read(path))
            except PersistenceError as e:
                # One corrupt document must not hide the others
                logger.warning("Skipping unreadable map file %s: %s", path.name, e)
        return maps

    # ─────────────────────────────────────────────────────────────────
    # Collaborator API
    # ─────────────────────────────────────────────────────────────────

    def save_map(self, mind_map: MindMap) -> str:
        """Insert a new map or update an existing one in place.

        Inserting assigns ``id`` and ``created_at``; every save sets
        ``updated_at``. The passed object is updated to match what was
        written.

        Returns:
            The map id.

        Raises:
            PersistenceError: If the document cannot be written.
        """
        now = utc_now()
        is_new = mind_map.id is None
        if is_new:
            mind_map.id = uuid4().hex
            mind_map.created_at = now
        elif mind_map.created_at is None:
            path = self._path_for(mind_map.id)
            if path.exists():
                mind_map.created_at = self._read(path).created_at
            else:
                mind_map.created_at = now
        previous_updated_at = mind_map.updated_at
        mind_map.updated_at = now
        try:
            self._write(self._path_for(mind_map.id), mind_map)
        except PersistenceError:
            mind_map.updated_at = previous_updated_at
            if is_new:
                mind_map.id = None
                mind_map.created_at = None
            raise
        logger.info("%s map %s (%s)", "Inserted" if is_new else "Updated", mind_map.id, mind_map.title)
        return mind_map.id

    def load_map(self, map_id: str) -> MindMap:
        """Load a map by id.

        Raises:
            NotFoundError: If there is no such map.
            PersistenceError: If the document cannot be read or decoded.
        """
        return self._read(self._path_for(map_id))

    def list_maps(self, user_id: str) -> list[MapSummary]:
        """List a user's maps, most recently updated first."""
        owned = [m for m in self._iter_maps() if m.user_id == user_id]
        owned.sort(key=lambda m: m.updated_at or "", reverse=True)
        return [m.summary() for m in owned]

    def load_most_recent_map(self, user_id: str) -> MindMap | None:
        """Load the user's most recently updated map, or None if they have none."""
        summaries = self.list_maps(user_id)
        if not summaries:
            return None
        return self.load_map(summaries[0].id)

    def delete_map(self, map_id: str) -> None:
        """Delete a stored map.

        Raises:
            NotFoundError: If there is no such map.
            PersistenceError: If the file cannot be removed.
        """
        path = self._path_for(map_id)
        try:
            path.unlink()
        except FileNotFoundError:
            raise NotFoundError("map", map_id) from None
        except OSError as e:
            raise PersistenceError(f"Cannot delete map '{map_id}': {e}") from e
        logger.info("Deleted map %s", map_id)

    def rename_map(self, map_id: str, new_title: str) -> MindMap:
        """Change a stored map's title.

        Returns:
            The updated map.

        Raises:
            ValueError: If new_title is blank.
            NotFoundError: If there is no such map.
        """
        if not new_title or not new_title.strip():
            raise ValueError("Title cannot be empty")
        mind_map = self.load_map(map_id)
        mind_map.title = new_title.strip()
        self.save_map(mind_map)
        return mind_map
