"""brainmap.server - Flask REST API server for the mind-map editor.

Provides a thin REST wrapper over the handler functions, exposing the
open map and the map store via HTTP endpoints for the browser UI.
"""

from brainmap.server.app import create_app

__all__ = ["create_app"]
