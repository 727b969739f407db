"""Commit graph: parents, ancestry, merge-base, and history walks."""

from __future__ import annotations

from collections import deque
from typing import Iterator

from .errors import Unrelated
from .objects import Commit, ObjectStore


class History:
    """Lazy, restartable first-parent walk from a starting commit.

    Yields ``(digest, Commit)`` pairs from newest to oldest, ending at
    a root commit. Each ``iter()`` starts over from ``start``.
    """

    def __init__(self, graph: CommitGraph, start: str | None) -> None:
        self._graph = graph
        self.start = start

    def __iter__(self) -> Iterator[tuple[str, Commit]]:
        current = self.start
        while current is not None:
            commit = self._graph.commit(current)
            yield current, commit
            current = commit.first_parent


class CommitGraph:
    """Read-only view of the commit DAG stored in an ObjectStore."""

    def __init__(self, objects: ObjectStore) -> None:
        self.objects = objects

    def commit(self, digest: str) -> Commit:
        return self.objects.get_commit(digest)

    def parents(self, digest: str) -> tuple[str, ...]:
        return self.commit(digest).parents

    def manifest(self, digest: str | None) -> dict[str, str]:
        """The file manifest of a commit; empty for ``None``."""
        if digest is None:
            return {}
        return dict(self.commit(digest).manifest)

    def walk(self, start: str) -> Iterator[str]:
        """Breadth-first over all parent edges, each commit once.

        Parents are enqueued first-parent before second-parent, so the
        visiting order is fixed for a given graph.
        """
        visited: set[str] = {start}
        queue: deque[str] = deque([start])
        while queue:
            current = queue.popleft()
            yield current
            for parent in self.parents(current):
                if parent not in visited:
                    visited.add(parent)
                    queue.append(parent)

    def ancestors(self, digest: str) -> set[str]:
        """All commits reachable from ``digest``, including itself."""
        return set(self.walk(digest))

    def merge_base(self, commit_a: str, commit_b: str) -> str:
        """Find the common ancestor of two commits nearest to ``commit_b``.

        Collects every ancestor of ``commit_a``, then walks breadth-first
        from ``commit_b`` and returns the first commit in that set.

        Raises:
            Unrelated: If the two histories share no commit.
        """
        if commit_a == commit_b:
            return commit_a
        seen_a = self.ancestors(commit_a)
        for current in self.walk(commit_b):
            if current in seen_a:
                return current
        raise Unrelated(commit_a, commit_b)

    def history(self, start: str | None) -> History:
        return History(self, start)
