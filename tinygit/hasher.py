"""Content hashing for object names."""

import hashlib

ALGORITHMS = ("sha1", "sha256")


class Hasher:
    """Produces fixed-length digests from byte sequences.

    Any algorithm known to ``hashlib`` with a fixed digest size can be
    used; ``sha1`` (160-bit) and ``sha256`` (256-bit) are the two a
    repository may be initialized with.
    """

    def __init__(self, algorithm: str = "sha1") -> None:
        if algorithm not in ALGORITHMS:
            raise ValueError(f"Unknown hash algorithm: {algorithm!r}")
        self.algorithm = algorithm
        self.digest_size = hashlib.new(algorithm).digest_size

    def hash(self, data: bytes) -> bytes:
        return hashlib.new(self.algorithm, data).digest()

    @staticmethod
    def to_hex(digest: bytes) -> str:
        return digest.hex()

    def hex_digest(self, data: bytes) -> str:
        """Hash ``data`` and return the lowercase hex form."""
        return self.to_hex(self.hash(data))

    def __repr__(self) -> str:
        return f"Hasher({self.algorithm!r})"
