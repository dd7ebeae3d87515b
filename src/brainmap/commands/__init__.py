"""
brainmap.commands - CLI command implementations
"""

__all__ = [
    "config_cmd",
    "convert_cmd",
    "export_cmd",
    "maps_cmd",
    "serve",
]
