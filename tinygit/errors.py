"""tinygit error types."""

from __future__ import annotations


class TinygitError(Exception):
    """Base class for all repository errors."""


class NotFound(TinygitError):
    """Raised when a digest, path, or branch is absent.

    Attributes:
        kind: What was looked up (``"object"``, ``"commit"``, ``"branch"``,
            ``"path"``, ...).
        name: The digest, path, or name that could not be found.
    """

    def __init__(self, kind: str, name: str) -> None:
        self.kind = kind
        self.name = name
        super().__init__(f"{kind} not found: {name}")


class AlreadyExists(TinygitError):
    """Raised when creating a branch whose name is already bound."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"A branch named '{name}' already exists")


class DanglingRef(TinygitError):
    """Raised when HEAD or a branch points at nothing stored."""

    def __init__(self, ref: str, target: str | None = None) -> None:
        self.ref = ref
        self.target = target
        if target is None:
            super().__init__(f"Reference '{ref}' does not resolve to a commit")
        else:
            super().__init__(
                f"Reference '{ref}' points at missing commit {target}"
            )


class Unrelated(TinygitError):
    """Raised when two commits share no common ancestor."""

    def __init__(self, commit_a: str, commit_b: str) -> None:
        self.commit_a = commit_a
        self.commit_b = commit_b
        super().__init__(
            f"No common ancestor between {commit_a} and {commit_b}"
        )


class IOFailure(TinygitError):
    """Raised when underlying storage cannot be read or written."""

    def __init__(self, path: str, reason: str = "") -> None:
        self.path = path
        self.reason = reason
        msg = f"I/O failure on {path}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class DetachedHead(TinygitError):
    """Raised when an operation needs HEAD to name a branch."""

    def __init__(self, commit: str) -> None:
        self.commit = commit
        super().__init__(f"HEAD is detached at {commit}; check out a branch first")


class UncommittedChanges(TinygitError):
    """Raised when the index holds staged changes that would be lost."""

    def __init__(self, paths: list[str]) -> None:
        self.paths = paths
        super().__init__(
            "Staged changes would be overwritten: " + ", ".join(paths)
        )


class NothingToCommit(TinygitError):
    """Raised when sealing a commit with an empty index."""

    def __init__(self) -> None:
        super().__init__("Nothing to commit (index is empty)")
