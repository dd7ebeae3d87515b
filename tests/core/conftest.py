"""Pytest fixtures for core tests."""

import pytest


@pytest.fixture
def graph():
    """Empty MindMapGraph with default settings."""
    from brainmap.graph import MindMapGraph

    return MindMapGraph()


@pytest.fixture
def tree_graph():
    """Graph with root -> (a, b) and a -> a1, plus the ids by name.

    The mutation log is cleared so tests start from a clean history.
    """
    from brainmap.graph import MindMapGraph

    g = MindMapGraph()
    root = g.add_root_node("Root")
    a = g.add_child_node(root)
    b = g.add_child_node(root)
    a1 = g.add_child_node(a)
    g.mark_saved()
    return g, {"root": root, "a": a, "b": b, "a1": a1}


@pytest.fixture
def last_toggle_graph():
    """Same shape as tree_graph, using last-toggle visibility."""
    from brainmap.graph import VISIBILITY_LAST_TOGGLE, MindMapGraph

    g = MindMapGraph(visibility=VISIBILITY_LAST_TOGGLE)
    root = g.add_root_node("Root")
    a = g.add_child_node(root)
    b = g.add_child_node(root)
    a1 = g.add_child_node(a)
    g.mark_saved()
    return g, {"root": root, "a": a, "b": b, "a1": a1}
