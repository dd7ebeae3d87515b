"""Tests for MindMapGraph - the mutation engine.

Covers node creation and layout, attribute updates, cascading delete,
collapse visibility in both modes, free-form connect, loading and undo.
"""

import pytest

from brainmap.errors import EmptyInputError, InvalidEdgeError, NotFoundError
from brainmap.graph import (
    VISIBILITY_LAST_TOGGLE,
    FontSize,
    MindMapGraph,
    Position,
)
from tests.core.graph_test_helpers import edge_pairs, make_edge, make_node


def graph_state(g: MindMapGraph):
    """Comparable view of all node and edge content."""
    nodes = {
        n.id: (n.position.x, n.position.y, n.data.label, n.data.collapsed,
               n.data.has_children, n.data.hidden)
        for n in g.nodes()
    }
    return nodes, edge_pairs(g)


def assert_has_children_consistent(g: MindMapGraph):
    sources = {e.source for e in g.edges()}
    for node in g.nodes():
        assert node.has_children == (node.id in sources), node.id


# ─────────────────────────────────────────────────────────────────────────────
# Construction
# ─────────────────────────────────────────────────────────────────────────────


class TestConstruction:
    """Tests for engine settings."""

    def test_unknown_visibility_mode_rejected(self):
        with pytest.raises(ValueError, match="visibility"):
            MindMapGraph(visibility="sometimes")

    def test_from_config_reads_sections(self):
        g = MindMapGraph.from_config(
            {
                "mindmap": {
                    "visibility": "last-toggle",
                    "default_label": "Idea",
                    "root_position": [0, 0],
                },
                "converter": {"x": 10, "y_start": 0, "y_step": 5},
            }
        )
        assert g.visibility == VISIBILITY_LAST_TOGGLE
        assert g.layout.default_label == "Idea"
        assert g.layout.root_position == Position(0.0, 0.0)
        assert g.converter.y_step == 5.0

    def test_from_empty_config_uses_defaults(self):
        g = MindMapGraph.from_config({})
        assert g.visibility == "global"
        assert g.layout.default_label == "New Idea"


# ─────────────────────────────────────────────────────────────────────────────
# add_root_node / add_child_node
# ─────────────────────────────────────────────────────────────────────────────


class TestAddRootNode:
    """Tests for MindMapGraph.add_root_node()."""

    def test_defaults(self, graph):
        node_id = graph.add_root_node()
        node = graph.get_node(node_id)
        assert node.label == "New Idea"
        assert node.data.description == ""
        assert node.position == Position(250.0, 250.0)
        assert node.data.font_size is FontSize.MEDIUM
        assert not node.collapsed
        assert not node.has_children
        assert graph.edge_count() == 0

    def test_label_description_and_position(self, graph):
        node_id = graph.add_root_node("Shop", "Corner shop", {"x": -10, "y": 5})
        node = graph.get_node(node_id)
        assert node.label == "Shop"
        assert node.data.description == "Corner shop"
        assert node.position == Position(-10.0, 5.0)

    def test_ids_are_unique(self, graph):
        ids = {graph.add_root_node() for _ in range(20)}
        assert len(ids) == 20

    def test_non_string_label_rejected(self, graph):
        with pytest.raises(ValueError):
            graph.add_root_node(42)
        assert graph.node_count() == 0
        assert not graph.is_dirty

    def test_logged(self, graph):
        node_id = graph.add_root_node()
        assert graph.mutation_log.last().operation == "add_root_node"
        assert graph.mutation_log.last().target_id == node_id
        assert graph.is_dirty


class TestAddChildNode:
    """Tests for MindMapGraph.add_child_node()."""

    def test_creates_child_and_edge(self, graph):
        parent = graph.add_root_node("Parent")
        child = graph.add_child_node(parent)

        assert graph.node_count() == 2
        assert edge_pairs(graph) == {(parent, child)}
        assert graph.get_node(parent).has_children
        assert not graph.get_node(child).has_children
        assert graph.get_node(child).label == "New Idea"

    def test_child_layout_steps_down_per_sibling(self, graph):
        parent = graph.add_root_node(position=(100, 100))
        first = graph.add_child_node(parent)
        second = graph.add_child_node(parent)

        assert graph.get_node(first).position == Position(300.0, 150.0)
        assert graph.get_node(second).position == Position(300.0, 230.0)

    def test_missing_parent_raises_and_leaves_graph_unchanged(self, tree_graph):
        g, _ = tree_graph
        before = graph_state(g)

        with pytest.raises(NotFoundError):
            g.add_child_node("node-missing")

        assert graph_state(g) == before
        assert g.node_count() == 4
        assert g.edge_count() == 3
        assert not g.is_dirty

    def test_child_of_collapsed_parent_is_hidden(self, tree_graph):
        g, ids = tree_graph
        g.toggle_collapse(ids["root"])
        child = g.add_child_node(ids["root"])
        assert g.get_node(child).hidden


# ─────────────────────────────────────────────────────────────────────────────
# update_node
# ─────────────────────────────────────────────────────────────────────────────


class TestUpdateNode:
    """Tests for MindMapGraph.update_node()."""

    def test_merges_only_given_attributes(self, tree_graph):
        g, ids = tree_graph
        g.update_node(ids["a"], description="Notes")
        g.update_node(ids["a"], label="Renamed", is_bold=True)

        data = g.get_node(ids["a"]).data
        assert data.label == "Renamed"
        assert data.is_bold is True
        assert data.description == "Notes"
        assert data.is_italic is False

    def test_font_size_coerced(self, tree_graph):
        g, ids = tree_graph
        g.update_node(ids["a"], font_size=18)
        assert g.get_node(ids["a"]).data.font_size is FontSize.XLARGE

    def test_invalid_font_size_rejected(self, tree_graph):
        g, ids = tree_graph
        with pytest.raises(ValueError, match="font size"):
            g.update_node(ids["a"], font_size=13)
        assert g.get_node(ids["a"]).data.font_size is FontSize.MEDIUM

    def test_unknown_attribute_rejected_without_change(self, tree_graph):
        g, ids = tree_graph
        with pytest.raises(ValueError, match="Unknown"):
            g.update_node(ids["a"], label="x", has_children=False)
        assert g.get_node(ids["a"]).label == "New Idea"
        assert g.get_node(ids["a"]).has_children
        assert not g.is_dirty

    def test_wrong_type_rejected(self, tree_graph):
        g, ids = tree_graph
        with pytest.raises(ValueError, match="boolean"):
            g.update_node(ids["a"], is_bold="yes")

    def test_position_update(self, tree_graph):
        g, ids = tree_graph
        g.update_node(ids["b"], position={"x": 1, "y": 2})
        assert g.get_node(ids["b"]).position == Position(1.0, 2.0)

    def test_missing_node_raises(self, graph):
        with pytest.raises(NotFoundError):
            graph.update_node("node-missing", label="x")

    def test_collapsed_attribute_applies_visibility(self, tree_graph):
        g, ids = tree_graph
        g.update_node(ids["a"], collapsed=True)
        assert g.get_node(ids["a1"]).hidden
        assert not g.get_node(ids["a"]).hidden

    def test_returns_entry_with_before_state(self, tree_graph):
        g, ids = tree_graph
        entry = g.update_node(ids["a"], label="New")
        assert entry.operation == "update_node"
        assert entry.before_state["attributes"] == {"label": "New Idea"}
        assert entry.after_state["attributes"] == {"label": "New"}


# ─────────────────────────────────────────────────────────────────────────────
# delete_node
# ─────────────────────────────────────────────────────────────────────────────


class TestDeleteNode:
    """Tests for MindMapGraph.delete_node() cascading behaviour."""

    def test_removes_subtree_and_incident_edges(self, tree_graph):
        g, ids = tree_graph
        removed = g.delete_node(ids["a"])

        assert removed == {ids["a"], ids["a1"]}
        assert {n.id for n in g.nodes()} == {ids["root"], ids["b"]}
        assert edge_pairs(g) == {(ids["root"], ids["b"])}
        for edge in g.edges():
            assert g.find_node(edge.source) and g.find_node(edge.target)

    def test_deleting_root_empties_tree(self, tree_graph):
        g, ids = tree_graph
        g.delete_node(ids["root"])
        assert g.node_count() == 0
        assert g.edge_count() == 0

    def test_deleting_only_child_resets_parent_has_children(self, tree_graph):
        g, ids = tree_graph
        g.delete_node(ids["a1"])
        assert not g.get_node(ids["a"]).has_children
        assert g.get_node(ids["root"]).has_children

    def test_has_children_stays_consistent(self, tree_graph):
        g, ids = tree_graph
        g.delete_node(ids["b"])
        assert_has_children_consistent(g)
        g.delete_node(ids["a"])
        assert_has_children_consistent(g)
        assert not g.get_node(ids["root"]).has_children

    def test_missing_node_raises_and_changes_nothing(self, tree_graph):
        g, _ = tree_graph
        before = graph_state(g)
        with pytest.raises(NotFoundError):
            g.delete_node("node-missing")
        assert graph_state(g) == before

    def test_deleting_last_hidden_child_leaves_nothing_hidden(self, tree_graph):
        g, ids = tree_graph
        g.toggle_collapse(ids["a"])
        assert g.get_node(ids["a1"]).hidden
        g.delete_node(ids["a1"])
        assert all(not n.hidden for n in g.nodes())

    def test_delete_with_cycle_terminates(self, graph):
        graph.load(
            [make_node("x"), make_node("y"), make_node("z")],
            [make_edge("x", "y"), make_edge("y", "z"), make_edge("z", "x")],
        )
        removed = graph.delete_node("x")
        assert removed == {"x", "y", "z"}
        assert graph.node_count() == 0
        assert graph.edge_count() == 0


# ─────────────────────────────────────────────────────────────────────────────
# toggle_collapse
# ─────────────────────────────────────────────────────────────────────────────


class TestToggleCollapseGlobal:
    """Tests for toggle_collapse() with global visibility."""

    def test_collapse_hides_descendants_not_self(self, tree_graph):
        g, ids = tree_graph
        assert g.toggle_collapse(ids["root"]) is True

        assert g.get_node(ids["root"]).collapsed
        assert not g.get_node(ids["root"]).hidden
        for key in ("a", "b", "a1"):
            assert g.get_node(ids[key]).hidden

    def test_toggle_twice_restores_state(self, tree_graph):
        g, ids = tree_graph
        before = graph_state(g)
        g.toggle_collapse(ids["a"])
        g.toggle_collapse(ids["a"])
        assert graph_state(g) == before

    def test_expanding_outer_keeps_inner_collapsed_subtree_hidden(self, tree_graph):
        g, ids = tree_graph
        g.toggle_collapse(ids["a"])
        g.toggle_collapse(ids["root"])
        g.toggle_collapse(ids["root"])

        assert not g.get_node(ids["a"]).hidden
        assert g.get_node(ids["a1"]).hidden

    def test_leaf_toggle_changes_only_flag(self, tree_graph):
        g, ids = tree_graph
        g.toggle_collapse(ids["b"])
        assert g.get_node(ids["b"]).collapsed
        assert all(not n.hidden for n in g.nodes())

    def test_visible_nodes(self, tree_graph):
        g, ids = tree_graph
        g.toggle_collapse(ids["a"])
        assert {n.id for n in g.visible_nodes()} == {ids["root"], ids["a"], ids["b"]}

    def test_missing_node_raises(self, graph):
        with pytest.raises(NotFoundError):
            graph.toggle_collapse("node-missing")


class TestToggleCollapseLastToggle:
    """Tests for toggle_collapse() with last-toggle visibility."""

    def test_expanding_outer_reveals_inner_collapsed_subtree(self, last_toggle_graph):
        g, ids = last_toggle_graph
        g.toggle_collapse(ids["a"])
        g.toggle_collapse(ids["root"])
        g.toggle_collapse(ids["root"])

        assert g.get_node(ids["a"]).collapsed
        assert not g.get_node(ids["a1"]).hidden

    def test_new_child_of_collapsed_parent_stays_visible(self, last_toggle_graph):
        g, ids = last_toggle_graph
        g.toggle_collapse(ids["root"])
        child = g.add_child_node(ids["root"])
        assert not g.get_node(child).hidden

    def test_collapse_hides_descendants(self, last_toggle_graph):
        g, ids = last_toggle_graph
        g.toggle_collapse(ids["a"])
        assert g.get_node(ids["a1"]).hidden
        assert not g.get_node(ids["b"]).hidden


# ─────────────────────────────────────────────────────────────────────────────
# connect_nodes
# ─────────────────────────────────────────────────────────────────────────────


class TestConnectNodes:
    """Tests for free-form connect."""

    def test_connects_separate_root(self, tree_graph):
        g, ids = tree_graph
        other = g.add_root_node("Other")
        edge_id = g.connect_nodes(ids["b"], other)

        assert edge_id.startswith("edge-")
        assert (ids["b"], other) in edge_pairs(g)
        assert g.get_node(ids["b"]).has_children

    def test_rejects_self_loop(self, tree_graph):
        g, ids = tree_graph
        with pytest.raises(InvalidEdgeError, match="itself"):
            g.connect_nodes(ids["a"], ids["a"])

    def test_rejects_cycle(self, tree_graph):
        g, ids = tree_graph
        with pytest.raises(InvalidEdgeError, match="cycle"):
            g.connect_nodes(ids["a1"], ids["root"])
        assert g.edge_count() == 3

    def test_rejects_second_parent(self, tree_graph):
        g, ids = tree_graph
        with pytest.raises(InvalidEdgeError, match="already has parent"):
            g.connect_nodes(ids["b"], ids["a1"])

    def test_missing_endpoint_raises(self, tree_graph):
        g, ids = tree_graph
        with pytest.raises(NotFoundError):
            g.connect_nodes(ids["a"], "node-missing")

    def test_connect_under_collapsed_node_hides_target(self, tree_graph):
        g, ids = tree_graph
        other = g.add_root_node("Other")
        g.toggle_collapse(ids["b"])
        g.connect_nodes(ids["b"], other)
        assert g.get_node(other).hidden


# ─────────────────────────────────────────────────────────────────────────────
# convert_text / clear / load
# ─────────────────────────────────────────────────────────────────────────────


class TestWholeMapOperations:
    """Tests for convert_text(), clear() and load()."""

    def test_convert_replaces_content(self, tree_graph):
        g, ids = tree_graph
        created = g.convert_text("Alpha.\nBeta.\nGamma.\nDelta.")

        assert g.node_count() == 2
        assert ids["root"] not in {n.id for n in g.nodes()}
        assert [g.get_node(n).label for n in created] == ["Alpha", "Gamma"]
        assert g.get_node(created[0]).has_children

    def test_convert_empty_input_leaves_graph_unchanged(self, tree_graph):
        g, _ = tree_graph
        before = graph_state(g)
        with pytest.raises(EmptyInputError):
            g.convert_text("  \n\n ")
        assert graph_state(g) == before
        assert not g.is_dirty

    def test_clear(self, tree_graph):
        g, _ = tree_graph
        g.clear()
        assert g.node_count() == 0
        assert g.is_dirty

    def test_load_drops_dangling_edges_and_recomputes_flags(self, graph):
        graph.load(
            [make_node("p", has_children=False), make_node("c", has_children=True)],
            [make_edge("p", "c"), make_edge("p", "gone"), make_edge("c", "c")],
        )
        assert edge_pairs(graph) == {("p", "c")}
        assert graph.get_node("p").has_children
        assert not graph.get_node("c").has_children
        assert not graph.is_dirty

    def test_load_computes_hidden_from_collapsed(self, graph):
        graph.load(
            [make_node("p", collapsed=True), make_node("c")],
            [make_edge("p", "c")],
        )
        assert graph.get_node("c").hidden
        assert not graph.get_node("p").hidden

    def test_roots(self, tree_graph):
        g, ids = tree_graph
        extra = g.add_root_node()
        assert [n.id for n in g.roots()] == [ids["root"], extra]


# ─────────────────────────────────────────────────────────────────────────────
# Undo
# ─────────────────────────────────────────────────────────────────────────────


class TestUndo:
    """Tests for MindMapGraph.undo_last()."""

    def test_undo_empty_log_returns_none(self, graph):
        assert graph.undo_last() is None

    def test_undo_add_child(self, tree_graph):
        g, ids = tree_graph
        before = graph_state(g)
        g.add_child_node(ids["b"])
        entry = g.undo_last()

        assert entry.operation == "add_child_node"
        assert graph_state(g) == before
        assert not g.is_dirty

    def test_undo_delete_restores_subtree(self, tree_graph):
        g, ids = tree_graph
        before = graph_state(g)
        g.delete_node(ids["a"])
        g.undo_last()
        assert graph_state(g) == before

    def test_undo_update(self, tree_graph):
        g, ids = tree_graph
        g.update_node(ids["a"], label="Changed", font_size=12)
        g.undo_last()
        node = g.get_node(ids["a"])
        assert node.label == "New Idea"
        assert node.data.font_size is FontSize.MEDIUM

    def test_undo_toggle(self, last_toggle_graph):
        g, ids = last_toggle_graph
        before = graph_state(g)
        g.toggle_collapse(ids["root"])
        g.undo_last()
        assert graph_state(g) == before

    def test_undo_convert(self, tree_graph):
        g, _ = tree_graph
        before = graph_state(g)
        g.convert_text("One.\nTwo.")
        g.undo_last()
        assert graph_state(g) == before

    def test_undo_connect(self, tree_graph):
        g, ids = tree_graph
        other = g.add_root_node()
        g.connect_nodes(ids["b"], other)
        g.undo_last()
        assert (ids["b"], other) not in edge_pairs(g)
        assert not g.get_node(ids["b"]).has_children

    def test_mark_saved_clears_history(self, tree_graph):
        g, ids = tree_graph
        g.toggle_collapse(ids["a"])
        assert g.is_dirty
        g.mark_saved()
        assert not g.is_dirty
        assert g.undo_last() is None
