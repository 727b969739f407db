"""Line-level and manifest-level diffs."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Iterator, Literal, Mapping, Sequence

logger = logging.getLogger(__name__)

DiffOp = Literal["equal", "added", "removed"]

PREFIXES: dict[str, str] = {"equal": "  ", "added": "+ ", "removed": "- "}

# Largest LCS table (in cells) built for the changed middle of two inputs.
MAX_TABLE_CELLS = 4_000_000


@dataclass(frozen=True)
class DiffLine:
    """One line of an alignment between two sequences."""

    op: DiffOp
    text: str


@dataclass(frozen=True)
class ManifestDiff:
    """Path-level differences between two manifests."""

    added: frozenset[str]
    removed: frozenset[str]
    modified: frozenset[str]

    def __bool__(self) -> bool:
        return bool(self.added or self.removed or self.modified)


def _lcs_table(a: Sequence[str], b: Sequence[str]) -> list[list[int]]:
    """Suffix LCS lengths: ``table[i][j]`` is the LCS of ``a[i:]`` and ``b[j:]``."""
    table = [[0] * (len(b) + 1) for _ in range(len(a) + 1)]
    for i in range(len(a) - 1, -1, -1):
        row, below = table[i], table[i + 1]
        for j in range(len(b) - 1, -1, -1):
            if a[i] == b[j]:
                row[j] = below[j + 1] + 1
            else:
                row[j] = max(below[j], row[j + 1])
    return table


def _align(a: Sequence[str], b: Sequence[str]) -> Iterator[DiffLine]:
    table = _lcs_table(a, b)
    i = j = 0
    while i < len(a) and j < len(b):
        if a[i] == b[j]:
            yield DiffLine("equal", a[i])
            i += 1
            j += 1
        elif table[i + 1][j] >= table[i][j + 1]:
            yield DiffLine("removed", a[i])
            i += 1
        else:
            yield DiffLine("added", b[j])
            j += 1
    for line in a[i:]:
        yield DiffLine("removed", line)
    for line in b[j:]:
        yield DiffLine("added", line)


def diff_lines(a: Sequence[str], b: Sequence[str]) -> list[DiffLine]:
    """Align two line sequences using a longest common subsequence.

    The ``equal`` and ``removed`` records, read in order, rebuild ``a``;
    the ``equal`` and ``added`` records rebuild ``b``. Where two
    alignments are equally long, removals are emitted before additions.

    When the changed middle is larger than ``MAX_TABLE_CELLS``, it is
    reported as a block of removals followed by a block of additions
    instead of being aligned line by line.
    """
    start = 0
    while start < len(a) and start < len(b) and a[start] == b[start]:
        start += 1
    end_a, end_b = len(a), len(b)
    while end_a > start and end_b > start and a[end_a - 1] == b[end_b - 1]:
        end_a -= 1
        end_b -= 1

    records = [DiffLine("equal", line) for line in a[:start]]

    mid_a, mid_b = a[start:end_a], b[start:end_b]
    if len(mid_a) * len(mid_b) > MAX_TABLE_CELLS:
        logger.warning(
            "Diff of %d x %d lines is too large to align; showing a block replace",
            len(mid_a),
            len(mid_b),
        )
        records.extend(DiffLine("removed", line) for line in mid_a)
        records.extend(DiffLine("added", line) for line in mid_b)
    else:
        records.extend(_align(mid_a, mid_b))

    records.extend(DiffLine("equal", line) for line in a[end_a:])
    return records


def diff_text(text_a: str, text_b: str) -> list[DiffLine]:
    return diff_lines(text_a.splitlines(), text_b.splitlines())


def format_diff(records: Iterable[DiffLine]) -> str:
    """Render records as ``"  "``/``"+ "``/``"- "`` prefixed lines."""
    return "\n".join(PREFIXES[r.op] + r.text for r in records)


def diff_manifests(old: Mapping[str, str], new: Mapping[str, str]) -> ManifestDiff:
    """Which paths were added, removed, or changed going from old to new."""
    old_paths = set(old)
    new_paths = set(new)
    return ManifestDiff(
        added=frozenset(new_paths - old_paths),
        removed=frozenset(old_paths - new_paths),
        modified=frozenset(
            p for p in old_paths & new_paths if old[p] != new[p]
        ),
    )
