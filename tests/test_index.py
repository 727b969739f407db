"""Tests for the staging index."""

from tinygit import StagingIndex
from tinygit.kv.memory import Memory


class TestStagingIndex:
    def test_starts_empty(self):
        index = StagingIndex(Memory())
        assert index.is_empty()
        assert index.entries() == []

    def test_stage_preserves_insertion_order(self):
        index = StagingIndex(Memory())
        index.stage("b", "2" * 40)
        index.stage("a", "1" * 40)
        assert index.entries() == [("b", "2" * 40), ("a", "1" * 40)]

    def test_last_stage_wins(self):
        index = StagingIndex(Memory())
        index.stage("f", "1" * 40)
        index.stage("g", "3" * 40)
        index.stage("f", "2" * 40)
        assert dict(index.entries()) == {"f": "2" * 40, "g": "3" * 40}
        assert len(index) == 2

    def test_stage_removal(self):
        index = StagingIndex(Memory())
        index.stage("f", "1" * 40)
        index.stage_removal("f")
        assert index.entries() == [("f", None)]
        assert "f" in index

    def test_unstage(self):
        index = StagingIndex(Memory())
        index.stage("f", "1" * 40)
        assert index.unstage("f")
        assert not index.unstage("f")
        assert index.is_empty()

    def test_clear(self):
        index = StagingIndex(Memory())
        index.stage("f", "1" * 40)
        index.clear()
        assert index.is_empty()

    def test_persists_across_instances(self):
        store = Memory()
        StagingIndex(store).stage("f", "1" * 40)
        assert StagingIndex(store).paths() == ["f"]

    def test_encode_cleared_matches_clear(self):
        store = Memory()
        index = StagingIndex(store)
        index.stage("f", "1" * 40)
        store.set_many(StagingIndex.encode_cleared())
        assert index.is_empty()
