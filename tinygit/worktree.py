"""Working-directory access."""

from __future__ import annotations

import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path, PurePosixPath
from typing import Iterable

from .errors import IOFailure, NotFound

logger = logging.getLogger(__name__)


def normalize_path(path: str) -> str:
    """Canonical repository-relative form of a working path.

    Uses forward slashes and rejects absolute paths or paths that
    escape the working directory.
    """
    pure = PurePosixPath(path.replace(os.sep, "/"))
    if pure.is_absolute() or ".." in pure.parts or str(pure) in ("", "."):
        raise ValueError(f"Invalid working path: {path!r}")
    return str(pure)


class Worktree(ABC):
    """Read/write access to tracked files by repository-relative path."""

    @abstractmethod
    def read(self, path: str) -> bytes:
        """Return file contents. Raises NotFound if absent."""

    @abstractmethod
    def write(self, path: str, data: bytes) -> None:
        """Create or overwrite a file."""

    @abstractmethod
    def remove(self, path: str) -> None:
        """Remove a file if present."""

    @abstractmethod
    def exists(self, path: str) -> bool:
        """Whether a file exists at path."""

    @abstractmethod
    def entries(self) -> Iterable[str]:
        """Top-level entry names, excluding repository metadata."""


class MemoryWorktree(Worktree):
    """A dict-backed working directory."""

    def __init__(self, files: dict[str, bytes] | None = None) -> None:
        self.files: dict[str, bytes] = dict(files or {})

    def read(self, path: str) -> bytes:
        path = normalize_path(path)
        if path not in self.files:
            raise NotFound("path", path)
        return self.files[path]

    def write(self, path: str, data: bytes) -> None:
        self.files[normalize_path(path)] = data

    def remove(self, path: str) -> None:
        self.files.pop(normalize_path(path), None)

    def exists(self, path: str) -> bool:
        return normalize_path(path) in self.files

    def entries(self) -> Iterable[str]:
        return sorted({p.split("/", 1)[0] for p in self.files})


class DirectoryWorktree(Worktree):
    """Files under a directory on disk, ignoring the metadata directory."""

    def __init__(self, root: str | Path, *, meta_dir: str = ".tinygit") -> None:
        self.root = Path(root)
        self.meta_dir = meta_dir

    def _resolve(self, path: str) -> Path:
        rel = normalize_path(path)
        if rel.split("/", 1)[0] == self.meta_dir:
            raise ValueError(f"Path inside repository metadata: {path!r}")
        return self.root / rel

    def read(self, path: str) -> bytes:
        target = self._resolve(path)
        if not target.is_file():
            raise NotFound("path", path)
        try:
            return target.read_bytes()
        except OSError as exc:
            raise IOFailure(path, exc.strerror or str(exc)) from exc

    def write(self, path: str, data: bytes) -> None:
        target = self._resolve(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as exc:
            raise IOFailure(path, exc.strerror or str(exc)) from exc
        logger.debug("Wrote %s (%d bytes)", path, len(data))

    def remove(self, path: str) -> None:
        target = self._resolve(path)
        try:
            target.unlink(missing_ok=True)
        except OSError as exc:
            raise IOFailure(path, exc.strerror or str(exc)) from exc
        parent = target.parent
        while parent != self.root and parent.is_dir() and not any(parent.iterdir()):
            parent.rmdir()
            parent = parent.parent
        logger.debug("Removed %s", path)

    def exists(self, path: str) -> bool:
        return self._resolve(path).is_file()

    def entries(self) -> Iterable[str]:
        try:
            names = sorted(p.name for p in self.root.iterdir())
        except OSError as exc:
            raise IOFailure(str(self.root), exc.strerror or str(exc)) from exc
        return [name for name in names if name != self.meta_dir]
