"""Branch references and the HEAD pointer."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator

from .errors import AlreadyExists, DanglingRef, NotFound
from .kv.base import KVStore
from .objects import ObjectStore

logger = logging.getLogger(__name__)

HEAD_KEY = "HEAD"
BRANCH_KEY = "refs/heads/%s"
SYMBOLIC_PREFIX = "ref: "


def validate_branch_name(name: str) -> None:
    """Reject names that cannot be stored or would be ambiguous."""
    if (
        not name
        or name != name.strip()
        or any(ch.isspace() for ch in name)
        or ".." in name
        or name.startswith(("-", "/"))
        or name.endswith("/")
    ):
        raise ValueError(f"Invalid branch name: {name!r}")


@dataclass(frozen=True)
class BranchEntry:
    name: str
    current: bool


class BranchListing:
    """Lazy, restartable view of branch names.

    Every iteration re-reads the store, so a listing created before a
    branch was added will include it on the next pass.
    """

    def __init__(self, refs: RefStore) -> None:
        self._refs = refs

    def __iter__(self) -> Iterator[BranchEntry]:
        current = self._refs.head_branch()
        for name in self._refs.branch_names():
            yield BranchEntry(name=name, current=name == current)


class RefStore:
    """Maps branch names to commit digests and holds HEAD.

    HEAD is either symbolic (``ref: <branch>``) or detached (a bare
    commit digest).
    """

    def __init__(
        self, store: KVStore, objects: ObjectStore, *, default_branch: str = "main"
    ) -> None:
        self.store = store
        self.objects = objects
        self.default_branch = default_branch

    # -- HEAD --

    def _head_value(self) -> str:
        raw = self.store.get(HEAD_KEY)
        if raw is None:
            return SYMBOLIC_PREFIX + self.default_branch
        return raw.decode()

    def head_branch(self) -> str | None:
        """Branch name HEAD points at, or None when detached."""
        value = self._head_value()
        if value.startswith(SYMBOLIC_PREFIX):
            return value[len(SYMBOLIC_PREFIX):]
        return None

    def head_commit(self) -> str | None:
        """Resolve HEAD, returning None while its branch is still unborn."""
        branch = self.head_branch()
        if branch is not None and (BRANCH_KEY % branch) not in self.store:
            return None
        return self.resolve_head()

    def resolve_head(self) -> str:
        """Follow HEAD to a commit digest.

        Raises:
            DanglingRef: If the branch HEAD names has no tip, or the
                resolved digest is not a stored commit.
        """
        value = self._head_value()
        if value.startswith(SYMBOLIC_PREFIX):
            branch = value[len(SYMBOLIC_PREFIX):]
            raw = self.store.get(BRANCH_KEY % branch)
            if raw is None:
                raise DanglingRef(branch)
            digest = raw.decode()
            if not self.objects.is_commit(digest):
                raise DanglingRef(branch, digest)
            return digest
        if not self.objects.is_commit(value):
            raise DanglingRef(HEAD_KEY, value)
        return value

    def point_head_at_branch(self, name: str) -> None:
        validate_branch_name(name)
        self.store.set(HEAD_KEY, (SYMBOLIC_PREFIX + name).encode())
        logger.debug("HEAD -> %s", name)

    def detach_head(self, digest: str) -> None:
        if not self.objects.is_commit(digest):
            raise NotFound("commit", digest)
        self.store.set(HEAD_KEY, digest.encode())
        logger.debug("HEAD detached at %s", digest[:8])

    def head_update(self, digest: str) -> dict[str, bytes]:
        """KV writes that advance whatever HEAD currently designates.

        Returned rather than applied so callers can fold the move into
        one atomic ``set_many`` together with other state.
        """
        branch = self.head_branch()
        if branch is None:
            return {HEAD_KEY: digest.encode()}
        return {BRANCH_KEY % branch: digest.encode()}

    # -- Branches --

    def branch_exists(self, name: str) -> bool:
        return (BRANCH_KEY % name) in self.store

    def branch_tip(self, name: str) -> str:
        raw = self.store.get(BRANCH_KEY % name)
        if raw is None:
            raise NotFound("branch", name)
        return raw.decode()

    def create_branch(self, name: str, at_digest: str) -> None:
        validate_branch_name(name)
        if not self.objects.is_commit(at_digest):
            raise NotFound("commit", at_digest)
        if not self.store.add(BRANCH_KEY % name, at_digest.encode()):
            raise AlreadyExists(name)
        logger.debug("Created branch %s at %s", name, at_digest[:8])

    def set_branch_tip(self, name: str, digest: str) -> None:
        validate_branch_name(name)
        self.store.set(BRANCH_KEY % name, digest.encode())
        logger.debug("Branch %s -> %s", name, digest[:8])

    def branch_names(self) -> list[str]:
        prefix = BRANCH_KEY % ""
        return sorted(key[len(prefix):] for key in self.store.keys(prefix))

    def list_branches(self) -> BranchListing:
        return BranchListing(self)
