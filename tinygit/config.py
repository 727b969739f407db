"""Repository configuration."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path

from .errors import IOFailure
from .hasher import ALGORITHMS

logger = logging.getLogger(__name__)

CONFIG_FILE = "config.json"
AUTHOR_ENV = "TINYGIT_AUTHOR"
ONE_GB = 1024 * 1024 * 1024


@dataclass
class Config:
    """Settings fixed when a repository is initialized.

    ``hash_algorithm`` must not change after the first object is
    written; it is saved alongside the repository by ``save_config``.
    """

    meta_dir: str = ".tinygit"
    default_branch: str = "main"
    hash_algorithm: str = "sha1"
    author: str = "tinygit <tinygit@localhost>"
    size_limit: int = ONE_GB

    def __post_init__(self) -> None:
        if self.hash_algorithm not in ALGORITHMS:
            raise ValueError(f"Unknown hash algorithm: {self.hash_algorithm!r}")


def config_path(root: str | Path, meta_dir: str = ".tinygit") -> Path:
    return Path(root) / meta_dir / CONFIG_FILE


def load_config(root: str | Path, meta_dir: str = ".tinygit") -> Config:
    """Load ``<root>/<meta_dir>/config.json`` if present.

    Unknown keys are ignored. ``TINYGIT_AUTHOR`` in the environment
    overrides the stored author.
    """
    path = config_path(root, meta_dir)
    values: dict = {"meta_dir": meta_dir}
    if path.exists():
        try:
            stored = json.loads(path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise IOFailure(str(path), exc.strerror or str(exc)) from exc
        except json.JSONDecodeError as exc:
            raise IOFailure(str(path), f"invalid JSON: {exc}") from exc
        known = {f.name for f in fields(Config)}
        values.update({k: v for k, v in stored.items() if k in known})
    if os.environ.get(AUTHOR_ENV):
        values["author"] = os.environ[AUTHOR_ENV]
    return Config(**values)


def save_config(root: str | Path, config: Config) -> Path:
    path = config_path(root, config.meta_dir)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(asdict(config), indent=2), encoding="utf-8")
    except OSError as exc:
        raise IOFailure(str(path), exc.strerror or str(exc)) from exc
    logger.debug("Wrote config to %s", path)
    return path
