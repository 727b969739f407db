"""Abstract KV store interface."""

from abc import ABC, abstractmethod
from typing import Iterable, Mapping


class KVStore(ABC):
    """Key-value store operating on bytes only.

    Every piece of repository state (objects, refs, HEAD, the index)
    is kept as bytes under a string key. Encoding is handled by the
    layers above.
    """

    @abstractmethod
    def get(self, key: str) -> bytes | None:
        """Get bytes value for key, or None if not found."""

    @abstractmethod
    def set(self, key: str, value: bytes) -> None:
        """Set bytes value for key."""

    @abstractmethod
    def set_many(self, values: Mapping[str, bytes]) -> None:
        """Set multiple key-value pairs as one all-or-nothing write."""

    @abstractmethod
    def keys(self, prefix: str = "") -> Iterable[str]:
        """Iterate over keys, optionally restricted to a prefix."""

    @abstractmethod
    def __contains__(self, key: str) -> bool:
        """Check if key exists in store."""

    @abstractmethod
    def remove(self, key: str) -> None:
        """Remove a key if present."""

    @abstractmethod
    def add(self, key: str, value: bytes) -> bool:
        """Set value only if key is absent.

        Returns True if the value was written, False if the key
        already existed (the existing value is left untouched).
        """

    def close(self) -> None:
        """Release any resources held by the backend."""
