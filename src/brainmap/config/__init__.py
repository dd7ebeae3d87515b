"""
brainmap.config - Configuration loading and defaults
"""

from brainmap.config.defaults import CONFIG_FILENAME, CONFIG_TEMPLATE, DEFAULT_CONFIG
from brainmap.config.loader import (
    _apply_env_overrides,
    _try_parse_env_value,
    find_config_file,
    load_config,
    merge_configs,
    resolve_data_dir,
)

__all__ = [
    "load_config",
    "find_config_file",
    "merge_configs",
    "resolve_data_dir",
    "CONFIG_FILENAME",
    "CONFIG_TEMPLATE",
    "DEFAULT_CONFIG",
]
