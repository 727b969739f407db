"""Repository handle: the operations a front end calls."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Mapping

from .config import Config, load_config, save_config
from .diff import DiffLine, ManifestDiff, diff_manifests, diff_text
from .errors import (
    DetachedHead,
    NotFound,
    NothingToCommit,
    UncommittedChanges,
    Unrelated,
)
from .graph import CommitGraph, History
from .hasher import Hasher
from .index import INDEX_KEY, EMPTY_INDEX, StagingIndex
from .kv.base import KVStore
from .kv.memory import Memory
from .merge import MergeOutcome, three_way
from .objects import Commit, ObjectStore
from .refs import HEAD_KEY, SYMBOLIC_PREFIX, BranchListing, RefStore
from .worktree import DirectoryWorktree, MemoryWorktree, Worktree, normalize_path

logger = logging.getLogger(__name__)

STORE_DIR = "store"

StagedChange = Literal["added", "modified", "deleted"]


@dataclass(frozen=True)
class Status:
    """Where HEAD points and what is staged.

    Exactly one of ``branch`` / ``detached_at`` is set. ``head`` is None
    before the first commit on the branch.
    """

    branch: str | None
    detached_at: str | None
    head: str | None
    staged: tuple[tuple[str, StagedChange], ...]

    @property
    def clean(self) -> bool:
        return not self.staged


class Repository:
    """A single repository: object store, refs, index, and working tree.

    All state lives in one ``KVStore``; several repositories can be
    open in the same process. Operations run to completion or raise;
    the ref update is always the last write of a commit or merge.
    """

    def __init__(
        self,
        store: KVStore | None = None,
        worktree: Worktree | None = None,
        *,
        config: Config | None = None,
    ) -> None:
        self.config = config or Config()
        self.store = store if store is not None else Memory()
        self.worktree = worktree if worktree is not None else MemoryWorktree()
        self.hasher = Hasher(self.config.hash_algorithm)
        self.objects = ObjectStore(self.store, self.hasher)
        self.refs = RefStore(
            self.store, self.objects, default_branch=self.config.default_branch
        )
        self.index = StagingIndex(self.store)
        self.graph = CommitGraph(self.objects)

        # Fresh store: unborn default branch and an empty index
        self.store.add(
            HEAD_KEY, (SYMBOLIC_PREFIX + self.config.default_branch).encode()
        )
        self.store.add(INDEX_KEY, EMPTY_INDEX)

    @classmethod
    def init(cls, path: str | Path, config: Config | None = None) -> Repository:
        """Create (or reopen) an on-disk repository rooted at ``path``."""
        root = Path(path)
        config = config or Config()
        meta = root / config.meta_dir
        if (meta / STORE_DIR).exists():
            logger.info("Reinitialized existing repository in %s", meta)
            return cls.open(root, meta_dir=config.meta_dir)
        save_config(root, config)
        logger.info("Initialized empty repository in %s", meta)
        return cls._open_disk(root, config)

    @classmethod
    def open(cls, path: str | Path, *, meta_dir: str = ".tinygit") -> Repository:
        """Open the repository at ``path``.

        Raises:
            NotFound: If ``path`` holds no repository.
        """
        root = Path(path)
        if not (root / meta_dir / STORE_DIR).exists():
            raise NotFound("repository", str(root))
        return cls._open_disk(root, load_config(root, meta_dir))

    @classmethod
    def _open_disk(cls, root: Path, config: Config) -> Repository:
        from .kv.disk import Disk

        store = Disk(str(root / config.meta_dir / STORE_DIR), config.size_limit)
        worktree = DirectoryWorktree(root, meta_dir=config.meta_dir)
        return cls(store, worktree, config=config)

    def close(self) -> None:
        self.store.close()

    def __enter__(self) -> Repository:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"Repository(branch={self.refs.head_branch()!r}, hash={self.config.hash_algorithm!r})"

    # -- Staging --

    def stage(self, path: str) -> str:
        """Store the working file at ``path`` as a blob and stage it."""
        path = normalize_path(path)
        data = self.worktree.read(path)
        digest = self.objects.put(data)
        self.index.stage(path, digest)
        logger.info("Added %s (%s)", path, digest)
        return digest

    def remove(self, path: str) -> None:
        """Stage the removal of a tracked path and delete the working file."""
        path = normalize_path(path)
        if path not in self.graph.manifest(self.refs.head_commit()):
            raise NotFound("tracked path", path)
        self.index.stage_removal(path)
        self.worktree.remove(path)
        logger.info("Removed %s", path)

    def unstage(self, path: str) -> None:
        """Drop a staged change; the working file is left as it is."""
        path = normalize_path(path)
        if not self.index.unstage(path):
            raise NotFound("staged path", path)
        logger.info("Unstaged %s", path)

    # -- Commits --

    def seal_commit(
        self,
        message: str,
        *,
        author: str | None = None,
        timestamp: int | None = None,
    ) -> str:
        """Seal the index into a commit on top of HEAD.

        The new manifest is the parent's manifest with staged entries
        applied. The commit object is written first; the branch (or
        detached HEAD) move and the index clear then land in a single
        write.

        Raises:
            NothingToCommit: If nothing is staged.
            DanglingRef: If HEAD points at a missing commit.
        """
        staged = self.index.entries()
        if not staged:
            raise NothingToCommit()

        parent = self.refs.head_commit()
        manifest = self.graph.manifest(parent)
        for path, digest in staged:
            if digest is None:
                manifest.pop(path, None)
            else:
                manifest[path] = digest

        return self._write_commit(
            parents=(parent,) if parent else (),
            manifest=manifest,
            message=message,
            author=author,
            timestamp=timestamp,
        )

    def _write_commit(
        self,
        *,
        parents: tuple[str, ...],
        manifest: Mapping[str, str],
        message: str,
        author: str | None,
        timestamp: int | None,
    ) -> str:
        identity = author or self.config.author
        commit = Commit(
            parents=parents,
            author=identity,
            committer=identity,
            timestamp=int(time.time()) if timestamp is None else timestamp,
            message=message,
            manifest=dict(manifest),
        )
        digest = self.objects.put_commit(commit)

        writes = self.refs.head_update(digest)
        writes.update(StagingIndex.encode_cleared())
        self.store.set_many(writes)

        where = self.refs.head_branch() or "detached HEAD"
        logger.info("[%s %s] %s", where, digest[:7], message)
        return digest

    # -- Branches --

    def create_branch(self, name: str, at: str | None = None) -> str:
        """Create a branch at ``at`` (default: the commit HEAD resolves to)."""
        digest = self.resolve(at) if at is not None else self.refs.resolve_head()
        self.refs.create_branch(name, digest)
        logger.info("Branch '%s' created at %s", name, digest[:7])
        return digest

    def list_branches(self) -> BranchListing:
        return self.refs.list_branches()

    def resolve(self, target: str) -> str:
        """Resolve a branch name or (abbreviated) commit digest.

        Raises:
            NotFound: If ``target`` names neither.
        """
        if self.refs.branch_exists(target):
            return self.refs.branch_tip(target)
        try:
            digest = self.objects.resolve_prefix(target)
        except NotFound:
            raise NotFound("branch or commit", target) from None
        if not self.objects.is_commit(digest):
            raise NotFound("branch or commit", target)
        return digest

    def switch_to(self, target: str) -> dict[str, str]:
        """Check out a branch or commit and return its manifest.

        Only paths that differ between the working tree and the target
        manifest are touched; untracked files are left alone.

        Raises:
            UncommittedChanges: If the index is not empty.
            NotFound: If ``target`` is neither a branch nor a commit.
        """
        if not self.index.is_empty():
            raise UncommittedChanges(self.index.paths())

        is_branch = self.refs.branch_exists(target)
        digest = self.resolve(target)
        previous = self.graph.manifest(self.refs.head_commit())
        manifest = self.graph.manifest(digest)

        self._materialize(previous, manifest)
        if is_branch:
            self.refs.point_head_at_branch(target)
        else:
            self.refs.detach_head(digest)
        logger.info("Switched to %s", target)
        return manifest

    def _materialize(
        self, previous: Mapping[str, str], target: Mapping[str, str]
    ) -> None:
        for path in previous:
            if path not in target:
                self.worktree.remove(path)
        for path, digest in target.items():
            if self.worktree.exists(path):
                current = self.objects.digest_of(self.worktree.read(path))
                if current == digest:
                    continue
            self.worktree.write(path, self.objects.get(digest))

    # -- Merge --

    def begin_merge(
        self,
        branch_name: str,
        *,
        allow_unrelated: bool = False,
        message: str | None = None,
        author: str | None = None,
        timestamp: int | None = None,
    ) -> MergeOutcome:
        """Merge ``branch_name`` into the checked-out branch.

        Conflicts are returned, not raised. On conflict no commit is
        created and no ref moves, but paths that merged cleanly have
        already been written to the working tree and staged; this is
        a partial success, not a rollback.

        The commit that records a resolution is an ordinary commit with
        one parent, so ``branch_name`` is not yet an ancestor of the
        current branch. Merging the same branch again starts from the
        old merge base and reports the same paths as conflicts.

        Args:
            branch_name: The branch to merge in.
            allow_unrelated: Merge histories with no common ancestor
                against an empty base instead of raising ``Unrelated``.
            message: Merge commit message (default
                ``Merge branch '<name>'``).

        Raises:
            DetachedHead: If HEAD does not name a branch.
            NotFound: If ``branch_name`` does not exist.
            DanglingRef: If the current branch has no commit yet.
            UncommittedChanges: If the index is not empty.
            Unrelated: If the histories are unrelated and
                ``allow_unrelated`` is False.
        """
        branch = self.refs.head_branch()
        if branch is None:
            raise DetachedHead(self.refs.resolve_head())
        incoming = self.refs.branch_tip(branch_name)
        current = self.refs.resolve_head()
        if not self.index.is_empty():
            raise UncommittedChanges(self.index.paths())

        if current == incoming:
            logger.info("Already up to date.")
            return MergeOutcome(status="up_to_date", commit=current, base=current)

        try:
            base: str | None = self.graph.merge_base(current, incoming)
        except Unrelated:
            if not allow_unrelated:
                raise
            base = None

        if base == incoming:
            logger.info("Already up to date.")
            return MergeOutcome(status="up_to_date", commit=current, base=base)

        current_manifest = self.graph.manifest(current)
        incoming_manifest = self.graph.manifest(incoming)

        if base == current:
            self._materialize(current_manifest, incoming_manifest)
            self.refs.set_branch_tip(branch, incoming)
            changes = diff_manifests(current_manifest, incoming_manifest)
            logger.info("Fast-forward %s to %s", branch, incoming[:7])
            return MergeOutcome(
                status="fast_forward",
                commit=incoming,
                base=base,
                taken=tuple(sorted(changes.added | changes.modified)),
                deleted=tuple(sorted(changes.removed)),
            )

        plan = three_way(
            current_manifest, incoming_manifest, self.graph.manifest(base)
        )
        for path, digest in plan.taken.items():
            self.worktree.write(path, self.objects.get(digest))
        for path in plan.deleted:
            self.worktree.remove(path)

        if not plan.clean:
            for path, digest in plan.taken.items():
                self.index.stage(path, digest)
            for path in plan.deleted:
                self.index.stage_removal(path)
            for conflict in plan.conflicts:
                logger.warning("Conflict in file: %s", conflict.path)
            return MergeOutcome(
                status="conflicts",
                commit=None,
                base=base,
                taken=tuple(plan.taken),
                deleted=plan.deleted,
                conflicts=plan.conflicts,
            )

        digest = self._write_commit(
            parents=(current, incoming),
            manifest=plan.manifest,
            message=message or f"Merge branch '{branch_name}'",
            author=author,
            timestamp=timestamp,
        )
        logger.info("Merged branch '%s' into %s", branch_name, branch)
        return MergeOutcome(
            status="committed",
            commit=digest,
            base=base,
            taken=tuple(plan.taken),
            deleted=plan.deleted,
        )

    # -- Inspection --

    def log(self, start: str | None = None) -> History:
        """First-parent history from ``start`` (default: HEAD)."""
        head = self.resolve(start) if start is not None else self.refs.head_commit()
        return self.graph.history(head)

    def diff_files(self, path_a: str, path_b: str) -> list[DiffLine]:
        """Line diff between two working files."""
        text_a = self.worktree.read(path_a).decode("utf-8", errors="replace")
        text_b = self.worktree.read(path_b).decode("utf-8", errors="replace")
        return diff_text(text_a, text_b)

    def diff_commits(self, commit_a: str, commit_b: str) -> ManifestDiff:
        return diff_manifests(
            self.graph.manifest(self.resolve(commit_a)),
            self.graph.manifest(self.resolve(commit_b)),
        )

    def current_status(self) -> Status:
        branch = self.refs.head_branch()
        head = self.refs.head_commit()
        manifest = self.graph.manifest(head)
        staged: list[tuple[str, StagedChange]] = []
        for path, digest in self.index.entries():
            if digest is None:
                staged.append((path, "deleted"))
            elif path in manifest:
                staged.append((path, "modified"))
            else:
                staged.append((path, "added"))
        return Status(
            branch=branch,
            detached_at=None if branch is not None else head,
            head=head,
            staged=tuple(staged),
        )


def repository(
    storage: str = "memory",
    *,
    path: str | Path | None = None,
    worktree: Worktree | None = None,
    default_branch: str | None = None,
    hash_algorithm: str | None = None,
) -> Repository:
    """Create a Repository with sensible defaults.

    Args:
        storage: ``"memory"`` (default) or ``"disk"``.
        path: Required when ``storage="disk"``. Working directory root;
            metadata lives under ``<path>/.tinygit``.
        worktree: Working tree for memory repositories (default: an
            empty ``MemoryWorktree``).
        default_branch: Branch HEAD names before the first commit.
        hash_algorithm: ``"sha1"`` (default) or ``"sha256"``.

    Returns:
        A ``Repository``.
    """
    if storage == "memory":
        if path is not None:
            raise ValueError("path is only valid for storage='disk'")
        config = Config()
    elif storage == "disk":
        if path is None:
            raise ValueError("path is required when storage='disk'")
        if worktree is not None:
            raise ValueError("worktree is only valid for storage='memory'")
        config = load_config(path)
    else:
        raise ValueError(f"Unknown storage: {storage!r}")

    if default_branch is not None:
        config.default_branch = default_branch
    if hash_algorithm is not None:
        config = Config(
            meta_dir=config.meta_dir,
            default_branch=config.default_branch,
            hash_algorithm=hash_algorithm,
            author=config.author,
            size_limit=config.size_limit,
        )

    if storage == "disk":
        return Repository.init(path, config)  # type: ignore[arg-type]
    return Repository(Memory(), worktree, config=config)
