"""Tests for ancestry, merge-base, and history walks."""

import pytest

from tinygit import Commit, CommitGraph, ObjectStore, Unrelated
from tinygit.kv.memory import Memory


class Builder:
    """Writes commits directly into an object store."""

    def __init__(self):
        self.objects = ObjectStore(Memory())
        self.graph = CommitGraph(self.objects)

    def commit(self, message, *parents, manifest=None):
        return self.objects.put_commit(
            Commit(
                parents=tuple(parents),
                author="a",
                committer="a",
                timestamp=0,
                message=message,
                manifest=manifest or {},
            )
        )


@pytest.fixture
def b():
    return Builder()


class TestAncestry:
    def test_ancestors_include_self(self, b):
        root = b.commit("root")
        assert b.graph.ancestors(root) == {root}

    def test_ancestors_follow_both_parents(self, b):
        root = b.commit("root")
        left = b.commit("left", root)
        right = b.commit("right", root)
        merged = b.commit("merge", left, right)
        assert b.graph.ancestors(merged) == {root, left, right, merged}

    def test_walk_order_is_breadth_first(self, b):
        root = b.commit("root")
        left = b.commit("left", root)
        right = b.commit("right", root)
        merged = b.commit("merge", left, right)
        assert list(b.graph.walk(merged)) == [merged, left, right, root]

    def test_ancestors_exclude_descendants(self, b):
        root = b.commit("root")
        child = b.commit("child", root)
        assert root in b.graph.ancestors(child)
        assert child not in b.graph.ancestors(root)

    def test_manifest_of_none_is_empty(self, b):
        assert b.graph.manifest(None) == {}


class TestMergeBase:
    def test_same_commit(self, b):
        root = b.commit("root")
        assert b.graph.merge_base(root, root) == root

    def test_linear(self, b):
        root = b.commit("root")
        c1 = b.commit("c1", root)
        c2 = b.commit("c2", c1)
        assert b.graph.merge_base(c2, c1) == c1
        assert b.graph.merge_base(c1, c2) == c1

    def test_diverged(self, b):
        root = b.commit("root")
        base = b.commit("base", root)
        left = b.commit("left", base)
        right = b.commit("right", b.commit("right0", base))
        assert b.graph.merge_base(left, right) == base

    def test_is_ancestor_of_both(self, b):
        root = b.commit("root")
        left = b.commit("left", b.commit("l0", root))
        right = b.commit("right", root)
        base = b.graph.merge_base(left, right)
        assert base in b.graph.ancestors(left)
        assert base in b.graph.ancestors(right)

    def test_uses_second_parent(self, b):
        root = b.commit("root")
        side = b.commit("side", root)
        main = b.commit("main", root)
        merged = b.commit("merge", main, side)
        side2 = b.commit("side2", side)
        assert b.graph.merge_base(merged, side2) == side

    def test_criss_cross_is_deterministic(self, b):
        root = b.commit("root")
        x = b.commit("x", root)
        y = b.commit("y", root)
        m1 = b.commit("m1", x, y)
        m2 = b.commit("m2", y, x)
        first = b.graph.merge_base(m1, m2)
        assert first in {x, y}
        assert b.graph.merge_base(m1, m2) == first
        # From m2's side, its first parent y is reached first
        assert first == y

    def test_unrelated(self, b):
        one = b.commit("one")
        two = b.commit("two")
        with pytest.raises(Unrelated) as info:
            b.graph.merge_base(one, two)
        assert one in str(info.value) and two in str(info.value)


class TestHistory:
    def test_first_parent_only(self, b):
        root = b.commit("root")
        side = b.commit("side", root)
        main = b.commit("main", root)
        merged = b.commit("merge", main, side)
        digests = [d for d, _ in b.graph.history(merged)]
        assert digests == [merged, main, root]

    def test_restartable(self, b):
        root = b.commit("root")
        child = b.commit("child", root)
        history = b.graph.history(child)
        assert list(history) == list(history)
        assert [c.message for _, c in history] == ["child", "root"]

    def test_empty_start(self, b):
        assert list(b.graph.history(None)) == []
