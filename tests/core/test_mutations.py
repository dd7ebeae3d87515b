"""Tests for mutation records (MutationEntry, MutationLog)."""

from datetime import datetime

from brainmap.graph import MutationEntry, MutationLog


class TestMutationEntry:
    """Tests for MutationEntry."""

    def test_generates_id_and_timestamp(self):
        entry = MutationEntry("toggle_collapse", "node-1", {}, {})
        assert len(entry.id) == 32
        assert isinstance(entry.timestamp, datetime)

    def test_str(self):
        entry = MutationEntry("delete_node", "node-1", {}, {}, id="abcdef0123456789")
        assert str(entry) == "[abcdef01] delete_node(node-1)"


class TestMutationLog:
    """Tests for MutationLog."""

    def test_append_and_iterate_in_order(self):
        log = MutationLog()
        first = MutationEntry("a", "1", {}, {})
        second = MutationEntry("b", "2", {}, {})
        log.append(first)
        log.append(second)
        assert list(log.iter_entries()) == [first, second]
        assert len(log) == 2
        assert log.last() is second

    def test_pop_returns_latest(self):
        log = MutationLog()
        entry = MutationEntry("a", "1", {}, {})
        log.append(entry)
        assert log.pop() is entry
        assert log.pop() is None
        assert log.last() is None

    def test_clear(self):
        log = MutationLog()
        log.append(MutationEntry("a", "1", {}, {}))
        log.clear()
        assert len(log) == 0
