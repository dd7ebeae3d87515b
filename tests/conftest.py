"""Shared fixtures for storage, workspace and server tests."""

import copy

import pytest


@pytest.fixture
def config():
    """Default configuration with a signed-in user."""
    from brainmap.config import DEFAULT_CONFIG

    cfg = copy.deepcopy(DEFAULT_CONFIG)
    cfg["auth"]["user"] = "alice"
    return cfg


@pytest.fixture
def store(tmp_path):
    """MapStore rooted in a temporary directory."""
    from brainmap.server.persistence import MapStore

    return MapStore(tmp_path / "data")


@pytest.fixture
def workspace(store, config):
    """Workspace signed in as 'alice'."""
    from brainmap.workspace import Workspace

    return Workspace(store, config)
