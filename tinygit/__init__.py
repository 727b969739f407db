"""tinygit: a small content-addressed version-control engine."""

from .config import Config, load_config, save_config
from .diff import DiffLine, ManifestDiff, diff_lines, diff_manifests, format_diff
from .errors import (
    AlreadyExists,
    DanglingRef,
    DetachedHead,
    IOFailure,
    NotFound,
    NothingToCommit,
    TinygitError,
    UncommittedChanges,
    Unrelated,
)
from .graph import CommitGraph, History
from .hasher import Hasher
from .index import StagingIndex
from .kv.base import KVStore
from .merge import ConflictEntry, MergeOutcome, MergePlan, three_way
from .objects import Commit, ObjectStore
from .refs import BranchEntry, BranchListing, RefStore
from .repository import Repository, Status, repository
from .worktree import DirectoryWorktree, MemoryWorktree, Worktree

__all__ = [
    "AlreadyExists",
    "BranchEntry",
    "BranchListing",
    "Commit",
    "CommitGraph",
    "Config",
    "ConflictEntry",
    "DanglingRef",
    "DetachedHead",
    "DiffLine",
    "DirectoryWorktree",
    "Hasher",
    "History",
    "IOFailure",
    "KVStore",
    "ManifestDiff",
    "MemoryWorktree",
    "MergeOutcome",
    "MergePlan",
    "NotFound",
    "NothingToCommit",
    "ObjectStore",
    "RefStore",
    "Repository",
    "StagingIndex",
    "Status",
    "TinygitError",
    "UncommittedChanges",
    "Unrelated",
    "Worktree",
    "diff_lines",
    "diff_manifests",
    "format_diff",
    "load_config",
    "repository",
    "save_config",
    "three_way",
]
