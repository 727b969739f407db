"""Staging index: the path -> blob mapping for the next commit."""

from __future__ import annotations

import json
import logging
from typing import Iterator

from .kv.base import KVStore

logger = logging.getLogger(__name__)

INDEX_KEY = "index"
EMPTY_INDEX = b"[]"


class StagingIndex:
    """Persistent, insertion-ordered mapping of staged paths.

    A value of ``None`` stages the removal of that path. The mapping is
    written back to the KV store on every mutation; ``encode_cleared()``
    gives the bytes for an empty index so a commit can clear it in the
    same write that moves the branch.
    """

    def __init__(self, store: KVStore) -> None:
        self.store = store

    def _load(self) -> dict[str, str | None]:
        raw = self.store.get(INDEX_KEY)
        if raw is None:
            return {}
        return {path: digest for path, digest in json.loads(raw.decode("utf-8"))}

    def _save(self, entries: dict[str, str | None]) -> None:
        self.store.set(INDEX_KEY, self.encode(entries))

    @staticmethod
    def encode(entries: dict[str, str | None]) -> bytes:
        return json.dumps(
            [[path, digest] for path, digest in entries.items()],
            ensure_ascii=False,
        ).encode("utf-8")

    @staticmethod
    def encode_cleared() -> dict[str, bytes]:
        return {INDEX_KEY: EMPTY_INDEX}

    def stage(self, path: str, digest: str) -> None:
        """Stage ``path`` at ``digest``; a later stage of the same path wins."""
        entries = self._load()
        entries.pop(path, None)
        entries[path] = digest
        self._save(entries)
        logger.debug("Staged %s (%s)", path, digest[:8])

    def stage_removal(self, path: str) -> None:
        entries = self._load()
        entries.pop(path, None)
        entries[path] = None
        self._save(entries)
        logger.debug("Staged removal of %s", path)

    def unstage(self, path: str) -> bool:
        entries = self._load()
        if path not in entries:
            return False
        del entries[path]
        self._save(entries)
        return True

    def entries(self) -> list[tuple[str, str | None]]:
        """Snapshot of staged ``(path, digest)`` pairs in staging order."""
        return list(self._load().items())

    def paths(self) -> list[str]:
        return list(self._load())

    def is_empty(self) -> bool:
        return not self._load()

    def clear(self) -> None:
        self.store.set_many(self.encode_cleared())

    def __contains__(self, path: object) -> bool:
        return isinstance(path, str) and path in self._load()

    def __iter__(self) -> Iterator[str]:
        return iter(self.paths())

    def __len__(self) -> int:
        return len(self._load())
