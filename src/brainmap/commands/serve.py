"""
brainmap.commands.serve - Run the REST API server.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from brainmap.config import find_config_file, load_config, resolve_data_dir

logger = logging.getLogger(__name__)


def run(args: argparse.Namespace) -> int:
    """Start the Flask server for the mind-map editor."""
    from brainmap.server import create_app

    config_path = args.config or find_config_file(Path.cwd())
    config = load_config(config_path)

    server_config = config.get("server", {})
    host = args.host or server_config.get("host", "127.0.0.1")
    port = args.port or int(server_config.get("port", 5050))
    data_dir = args.data_dir or resolve_data_dir(
        config, config_path.parent if config_path else None
    )

    app = create_app(config, data_dir=data_dir)
    user = config.get("auth", {}).get("user") or "(none; send X-User-Id)"

    print(
        f"""
======================================
  brainmap server
======================================

Storage: {data_dir}
User:    {user}
Server:  http://{host}:{port}

Press Ctrl+C to stop
"""
    )
    logger.info("Serving on %s:%d with data dir %s", host, port, data_dir)

    try:
        app.run(host=host, port=port, debug=False)
    except KeyboardInterrupt:
        print("\nServer stopped.")

    return 0
