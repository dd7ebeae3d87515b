"""
brainmap.config.loader - Find, parse and merge configuration.

Configuration comes from three layers, later ones winning:

1. DEFAULT_CONFIG
2. the nearest ``.brainmap.toml`` (searched from the working directory up)
3. ``BRAINMAP_<SECTION>_<KEY>`` environment variables
"""

from __future__ import annotations

import copy
import json
import os
from pathlib import Path
from typing import Any

import tomlkit
from tomlkit.exceptions import ParseError

from brainmap.config.defaults import CONFIG_FILENAME, DEFAULT_CONFIG

ENV_PREFIX = "BRAINMAP_"


def find_config_file(start_dir: Path) -> Path | None:
    """Find .brainmap.toml in start_dir or any parent directory.

    Args:
        start_dir: Directory to start searching from.

    Returns:
        Path to the config file, or None if not found.
    """
    current = Path(start_dir).resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        if current.parent == current:
            return None
        current = current.parent


def merge_configs(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep-merge override into a copy of base.

    Nested dicts are merged key by key; any other value in override
    replaces the one in base.
    """
    result = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def _try_parse_env_value(value: str) -> Any:
    """Parse an environment variable value into a typed Python value.

    JSON arrays/objects, booleans and numbers are converted; anything else
    (including malformed JSON) is returned as the original string.
    """
    stripped = value.strip()
    if stripped[:1] in ("[", "{"):
        try:
            return json.loads(stripped)
        except json.JSONDecodeError:
            return value
    lowered = stripped.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    try:
        return int(stripped)
    except ValueError:
        pass
    try:
        return float(stripped)
    except ValueError:
        return value


def _apply_env_overrides(config: dict[str, Any]) -> dict[str, Any]:
    """Apply BRAINMAP_<SECTION>_<KEY> environment variables to config.

    ``BRAINMAP_STORAGE_DATA_DIR=/srv/maps`` sets ``config["storage"]["data_dir"]``.
    Sections are created when missing.
    """
    for name, raw in os.environ.items():
        if not name.startswith(ENV_PREFIX):
            continue
        parts = name[len(ENV_PREFIX) :].lower().split("_", 1)
        if len(parts) != 2 or not parts[0] or not parts[1]:
            continue
        section, key = parts
        target = config.setdefault(section, {})
        if isinstance(target, dict):
            target[key] = _try_parse_env_value(raw)
    return config


def parse_toml(text: str) -> dict[str, Any]:
    """Parse TOML text into plain Python containers.

    Raises:
        ValueError: If the text is not valid TOML.
    """
    try:
        return tomlkit.parse(text).unwrap()
    except ParseError as e:
        raise ValueError(f"Invalid TOML: {e}") from e


def load_config(config_path: Path | None = None) -> dict[str, Any]:
    """Load configuration, merged over defaults with env overrides applied.

    Args:
        config_path: Explicit config file; when None only defaults and
            environment overrides are used.

    Returns:
        The merged configuration dict.

    Raises:
        FileNotFoundError: If config_path is given but does not exist.
        ValueError: If the file is not valid TOML.
    """
    config = copy.deepcopy(DEFAULT_CONFIG)
    if config_path is not None:
        path = Path(config_path)
        if not path.is_file():
            raise FileNotFoundError(f"Config file not found: {path}")
        config = merge_configs(config, parse_toml(path.read_text(encoding="utf-8")))
    return _apply_env_overrides(config)


def resolve_data_dir(config: dict[str, Any], base_dir: Path | None = None) -> Path:
    """Return the absolute storage directory named by ``[storage] data_dir``.

    Relative paths are resolved against base_dir (default: cwd).
    """
    data_dir = Path(str(config.get("storage", {}).get("data_dir", ".brainmap"))).expanduser()
    if not data_dir.is_absolute():
        data_dir = (base_dir or Path.cwd()) / data_dir
    return data_dir
