"""brainmap.server.app - Flask app factory and REST API routes.

This is a THIN REST wrapper: all logic delegates to the functions in
``brainmap.server.handlers``. No graph logic is duplicated here.

The rendering layer in the browser holds no graph state of its own. It
draws what ``GET /api/map`` returns and sends every gesture back by node
id (add child, rename, toggle, delete, connect).

State pattern:
    _state = {"workspace": Workspace, "config": config}
"""

from __future__ import annotations

import copy
import logging
import threading
from pathlib import Path
from typing import Any

from flask import Flask, has_request_context, jsonify, request
from flask_cors import CORS

from brainmap.config import DEFAULT_CONFIG, resolve_data_dir
from brainmap.server import handlers
from brainmap.server.persistence import MapStore
from brainmap.workspace import Workspace, config_user_provider

logger = logging.getLogger(__name__)

USER_HEADER = "X-User-Id"

# error_type -> HTTP status
_STATUS_BY_ERROR = {
    "NotFoundError": 404,
    "AuthRequiredError": 401,
    "InvalidEdgeError": 409,
    "PersistenceError": 500,
    "NothingToUndo": 409,
}


def _status_for(result: dict[str, Any]) -> int:
    if result.get("success"):
        return 200
    return _STATUS_BY_ERROR.get(result.get("error_type", ""), 400)


def _respond(result: dict[str, Any]):
    return jsonify(result), _status_for(result)


def _json_object() -> dict[str, Any] | None:
    """The request body as a dict; {} when absent, None when it is not a JSON object."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    return data if isinstance(data, dict) else None


def _invalid_body():
    return _respond(
        {
            "success": False,
            "error": "Request body must be a JSON object",
            "error_type": "ValidationError",
        }
    )


def _confirmed() -> bool:
    """True if the request carries confirm=true (query string or JSON body)."""
    if request.args.get("confirm", "").lower() in ("1", "true", "yes"):
        return True
    data = _json_object() or {}
    return data.get("confirm") is True


def create_app(
    config: dict[str, Any] | None = None,
    workspace: Workspace | None = None,
    data_dir: Path | None = None,
) -> Flask:
    """Create the Flask application with REST API routes.

    Args:
        config: brainmap configuration dict (defaults when None).
        workspace: Pre-built Workspace; built from config when None.
        data_dir: Storage directory override for the built Workspace.

    Returns:
        Configured Flask application.
    """
    config = config if config is not None else copy.deepcopy(DEFAULT_CONFIG)
    app = Flask(__name__)
    CORS(app)

    config_user = config_user_provider(config)

    def _current_user() -> str | None:
        """Signed-in user: request header first, then ``[auth] user``."""
        header = request.headers.get(USER_HEADER, "").strip() if has_request_context() else ""
        return header or config_user()

    if workspace is None:
        store = MapStore(data_dir or resolve_data_dir(config))
        workspace = Workspace(store, config, current_user=_current_user)

    _state: dict[str, Any] = {"workspace": workspace, "config": config}
    # One request mutates the workspace at a time
    _lock = threading.Lock()

    def ws() -> Workspace:
        return _state["workspace"]

    @app.after_request
    def _no_cache(response):
        response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, max-age=0"
        return response

    # ─────────────────────────────────────────────────────────────────
    # Read-only GET endpoints
    # ─────────────────────────────────────────────────────────────────

    @app.route("/api/map")
    def api_map():
        """GET /api/map - The open map with per-node hidden flags."""
        with _lock:
            return _respond(handlers._get_map_state(ws()))

    @app.route("/api/dirty")
    def api_dirty():
        """GET /api/dirty - Check if the open map has unsaved changes."""
        with _lock:
            return _respond(handlers._get_dirty(ws()))

    @app.route("/api/mutations")
    def api_mutations():
        """GET /api/mutations?limit=N - Recent mutation history."""
        limit = request.args.get("limit", 50, type=int)
        with _lock:
            return _respond(handlers._get_mutation_log(ws(), limit=limit))

    @app.route("/api/export/markdown")
    def api_export_markdown():
        """GET /api/export/markdown - Outline of the open map."""
        with _lock:
            return _respond(handlers._export_markdown(ws()))

    # ─────────────────────────────────────────────────────────────────
    # Node mutation endpoints
    # ─────────────────────────────────────────────────────────────────

    @app.route("/api/nodes", methods=["POST"])
    def api_add_root():
        """POST /api/nodes - Add a root node ({label?, description?, position?})."""
        data = _json_object()
        if data is None:
            return _invalid_body()
        with _lock:
            result = handlers._mutate_add_root(
                ws(), data.get("label"), data.get("description"), data.get("position")
            )
        return _respond(result)

    @app.route("/api/nodes/<node_id>/children", methods=["POST"])
    def api_add_child(node_id: str):
        """POST /api/nodes/<id>/children - Add a child node."""
        with _lock:
            return _respond(handlers._mutate_add_child(ws(), node_id))

    @app.route("/api/nodes/<node_id>", methods=["PATCH"])
    def api_update_node(node_id: str):
        """PATCH /api/nodes/<id> - Merge attributes ({label, isBold, fontSize, ...})."""
        data = _json_object()
        if data is None:
            return _invalid_body()
        with _lock:
            return _respond(handlers._mutate_update_node(ws(), node_id, data))

    @app.route("/api/nodes/<node_id>", methods=["DELETE"])
    def api_delete_node(node_id: str):
        """DELETE /api/nodes/<id>?confirm=true - Delete a node and its subtree."""
        confirm = _confirmed()
        with _lock:
            return _respond(handlers._mutate_delete_node(ws(), node_id, confirm=confirm))

    @app.route("/api/nodes/<node_id>/toggle", methods=["POST"])
    def api_toggle(node_id: str):
        """POST /api/nodes/<id>/toggle - Collapse or expand."""
        with _lock:
            return _respond(handlers._mutate_toggle_collapse(ws(), node_id))

    @app.route("/api/edges", methods=["POST"])
    def api_connect():
        """POST /api/edges - Connect two nodes ({source, target})."""
        data = _json_object()
        if data is None:
            return _invalid_body()
        source = data.get("source", "")
        target = data.get("target", "")
        if not (isinstance(source, str) and isinstance(target, str)) or not source or not target:
            return jsonify({"success": False, "error": "source and target required"}), 400
        with _lock:
            return _respond(handlers._mutate_connect(ws(), source, target))

    @app.route("/api/convert", methods=["POST"])
    def api_convert():
        """POST /api/convert - Replace the map with a tree parsed from {text}."""
        data = _json_object()
        if data is None:
            return _invalid_body()
        text = data.get("text")
        if not isinstance(text, str):
            return jsonify({"success": False, "error": "text required"}), 400
        confirm = _confirmed()
        with _lock:
            return _respond(handlers._mutate_convert_text(ws(), text, confirm=confirm))

    @app.route("/api/clear", methods=["POST"])
    def api_clear():
        """POST /api/clear?confirm=true - Remove every node of the open map."""
        confirm = _confirmed()
        with _lock:
            return _respond(handlers._mutate_clear(ws(), confirm=confirm))

    @app.route("/api/undo", methods=["POST"])
    def api_undo():
        """POST /api/undo - Undo the most recent mutation."""
        with _lock:
            return _respond(handlers._undo_last_mutation(ws()))

    # ─────────────────────────────────────────────────────────────────
    # Map lifecycle endpoints
    # ─────────────────────────────────────────────────────────────────

    @app.route("/api/title", methods=["PUT"])
    def api_title():
        """PUT /api/title - Edit the open map's title ({title})."""
        data = _json_object()
        if data is None:
            return _invalid_body()
        with _lock:
            return _respond(handlers._set_title(ws(), str(data.get("title", ""))))

    @app.route("/api/new", methods=["POST"])
    def api_new():
        """POST /api/new - Start an empty, unsaved map."""
        with _lock:
            return _respond(handlers._new_map(ws()))

    @app.route("/api/save", methods=["POST"])
    def api_save():
        """POST /api/save - Persist the open map."""
        with _lock:
            result = handlers._save_map(ws())
        if not result.get("success"):
            logger.warning("Save failed: %s", result.get("error"))
        return _respond(result)

    @app.route("/api/maps")
    def api_list_maps():
        """GET /api/maps - The current user's maps, newest first."""
        with _lock:
            return _respond(handlers._list_maps(ws()))

    @app.route("/api/maps/recent/load", methods=["POST"])
    def api_load_recent():
        """POST /api/maps/recent/load - Open the most recently updated map."""
        with _lock:
            return _respond(handlers._load_most_recent(ws()))

    @app.route("/api/maps/<map_id>/load", methods=["POST"])
    def api_load_map(map_id: str):
        """POST /api/maps/<id>/load - Open a stored map."""
        with _lock:
            return _respond(handlers._load_map(ws(), map_id))

    @app.route("/api/maps/<map_id>", methods=["PATCH"])
    def api_rename_map(map_id: str):
        """PATCH /api/maps/<id> - Rename a stored map ({title})."""
        data = _json_object()
        if data is None:
            return _invalid_body()
        with _lock:
            return _respond(handlers._rename_map(ws(), map_id, str(data.get("title", ""))))

    @app.route("/api/maps/<map_id>", methods=["DELETE"])
    def api_delete_map(map_id: str):
        """DELETE /api/maps/<id>?confirm=true - Delete a stored map."""
        confirm = _confirmed()
        with _lock:
            return _respond(handlers._delete_map(ws(), map_id, confirm=confirm))

    return app
