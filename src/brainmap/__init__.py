"""
brainmap - Mind-map editor core

A mind map is a graph of idea nodes joined by parent-to-child edges.
brainmap keeps that graph consistent under editing (add, rename, style,
collapse, cascade delete, undo), builds maps from plain-text outlines,
and stores them per user as JSON documents behind a small REST API.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("brainmap")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"  # Not installed

from brainmap.errors import (
    AuthRequiredError,
    BrainmapError,
    EmptyInputError,
    InvalidEdgeError,
    NotFoundError,
    PersistenceError,
)
from brainmap.graph import MindMapGraph, parse_text
from brainmap.models import MapSummary, MindMap

__all__ = [
    "__version__",
    "AuthRequiredError",
    "BrainmapError",
    "EmptyInputError",
    "InvalidEdgeError",
    "MapSummary",
    "MindMap",
    "MindMapGraph",
    "NotFoundError",
    "PersistenceError",
    "parse_text",
]
