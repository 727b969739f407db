"""Content-addressed object store: blobs and commit records."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Literal, Mapping

from .errors import NotFound
from .hasher import Hasher
from .kv.base import KVStore

logger = logging.getLogger(__name__)

OBJECT_KEY = "objects/%s"
MIN_PREFIX = 4

ObjectKind = Literal["blob", "commit"]
KINDS: tuple[str, ...] = ("blob", "commit")


@dataclass(frozen=True)
class Commit:
    """An immutable commit record.

    ``parents`` holds zero, one, or two hex digests in a fixed order
    (first parent before second parent). ``manifest`` maps working
    paths to blob digests and is read-only; it does not take part in
    hashing.
    """

    parents: tuple[str, ...]
    author: str
    committer: str
    timestamp: int
    message: str
    manifest: Mapping[str, str] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "manifest", MappingProxyType(dict(self.manifest)))

    @property
    def is_merge(self) -> bool:
        return len(self.parents) > 1

    @property
    def first_parent(self) -> str | None:
        return self.parents[0] if self.parents else None

    def serialize(self) -> bytes:
        """Encode as canonical JSON.

        Keys are sorted and separators fixed so that equal field values
        always produce identical bytes (and therefore the same digest).
        """
        record = {
            "parents": list(self.parents),
            "author": self.author,
            "committer": self.committer,
            "timestamp": self.timestamp,
            "message": self.message,
            "manifest": dict(self.manifest),
        }
        return json.dumps(
            record, sort_keys=True, separators=(",", ":"), ensure_ascii=False
        ).encode("utf-8")

    @classmethod
    def deserialize(cls, data: bytes) -> Commit:
        record = json.loads(data.decode("utf-8"))
        return cls(
            parents=tuple(record["parents"]),
            author=record["author"],
            committer=record["committer"],
            timestamp=int(record["timestamp"]),
            message=record["message"],
            manifest=dict(record["manifest"]),
        )


def _frame(kind: str, body: bytes) -> bytes:
    return f"{kind} {len(body)}\0".encode() + body


def _unframe(digest: str, payload: bytes) -> tuple[str, bytes]:
    header, sep, body = payload.partition(b"\0")
    kind, _, size = header.decode().partition(" ")
    if not sep or kind not in KINDS or int(size) != len(body):
        raise ValueError(f"Corrupt object {digest}")
    return kind, body


class ObjectStore:
    """Immutable, digest-keyed storage for blobs and commits.

    Each object is stored as ``<kind> <len>\\0<body>`` and named by the
    digest of that framed payload. Writes are append-only: storing an
    object that already exists is a no-op.
    """

    def __init__(self, store: KVStore, hasher: Hasher | None = None) -> None:
        self.store = store
        self.hasher = hasher or Hasher()

    def digest_of(self, data: bytes, kind: ObjectKind = "blob") -> str:
        """Compute the digest ``data`` would be stored under, without writing."""
        return self.hasher.hex_digest(_frame(kind, data))

    def put(self, data: bytes, kind: ObjectKind = "blob") -> str:
        """Store ``data`` if absent and return its hex digest."""
        if kind not in KINDS:
            raise ValueError(f"Unknown object kind: {kind!r}")
        payload = _frame(kind, data)
        digest = self.hasher.hex_digest(payload)
        if self.store.add(OBJECT_KEY % digest, payload):
            logger.debug("Stored %s %s (%d bytes)", kind, digest[:8], len(data))
        else:
            logger.debug("Object %s already in store, skipped", digest[:8])
        return digest

    def read(self, digest: str) -> tuple[str, bytes]:
        """Return ``(kind, body)`` for a stored object."""
        payload = self.store.get(OBJECT_KEY % digest)
        if payload is None:
            raise NotFound("object", digest)
        return _unframe(digest, payload)

    def get(self, digest: str) -> bytes:
        """Return the body of a stored object."""
        return self.read(digest)[1]

    def exists(self, digest: str) -> bool:
        return (OBJECT_KEY % digest) in self.store

    def put_commit(self, commit: Commit) -> str:
        return self.put(commit.serialize(), kind="commit")

    def get_commit(self, digest: str) -> Commit:
        try:
            kind, body = self.read(digest)
        except NotFound:
            raise NotFound("commit", digest) from None
        if kind != "commit":
            raise NotFound("commit", digest)
        return Commit.deserialize(body)

    def is_commit(self, digest: str) -> bool:
        payload = self.store.get(OBJECT_KEY % digest)
        return payload is not None and payload.startswith(b"commit ")

    def digests(self) -> Iterable[str]:
        """Iterate over every stored digest."""
        prefix = OBJECT_KEY % ""
        for key in self.store.keys(prefix):
            yield key[len(prefix):]

    def resolve_prefix(self, prefix: str) -> str:
        """Expand an abbreviated hex digest to the unique full digest.

        Raises:
            NotFound: If the prefix is too short, matches nothing, or
                matches more than one object.
        """
        prefix = prefix.lower()
        if self.exists(prefix):
            return prefix
        if len(prefix) < MIN_PREFIX:
            raise NotFound("object", prefix)
        matches = [d for d in self.digests() if d.startswith(prefix)]
        if len(matches) != 1:
            raise NotFound("object", prefix)
        return matches[0]
