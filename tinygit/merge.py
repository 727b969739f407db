"""Three-way merge of commit manifests."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Mapping

MergeStatus = Literal["up_to_date", "fast_forward", "committed", "conflicts"]


@dataclass(frozen=True)
class ConflictEntry:
    """A path changed differently on both sides of a merge.

    A digest of ``None`` means the path is absent on that side.
    """

    path: str
    current: str | None
    incoming: str | None
    base: str | None


@dataclass(frozen=True)
class MergePlan:
    """Per-path reconciliation of current, incoming, and base manifests.

    ``manifest`` is the merged manifest: reconciled paths plus any
    conflicting paths left at their current content.
    """

    manifest: dict[str, str]
    taken: dict[str, str] = field(default_factory=dict)
    deleted: tuple[str, ...] = ()
    conflicts: tuple[ConflictEntry, ...] = ()

    @property
    def clean(self) -> bool:
        return not self.conflicts


@dataclass(frozen=True)
class MergeOutcome:
    """Result of merging a branch into the checked-out branch.

    ``status`` is one of ``"up_to_date"``, ``"fast_forward"``,
    ``"committed"`` or ``"conflicts"``. A conflicted outcome is falsy;
    it created no commit and moved no ref.
    """

    status: MergeStatus
    commit: str | None
    base: str | None = None
    taken: tuple[str, ...] = ()
    deleted: tuple[str, ...] = ()
    conflicts: tuple[ConflictEntry, ...] = ()

    def __bool__(self) -> bool:
        return self.status != "conflicts"


def three_way(
    current: Mapping[str, str],
    incoming: Mapping[str, str],
    base: Mapping[str, str],
) -> MergePlan:
    """Classify every path in ``current | incoming | base``.

    - Same digest on both sides: kept.
    - Changed only on the incoming side: incoming wins (a deletion there
      removes the path).
    - Changed only on the current side: current wins.
    - Changed on both sides to different results: conflict, left at the
      current content. This covers modify/delete and add/add.
    """
    manifest: dict[str, str] = dict(current)
    taken: dict[str, str] = {}
    deleted: list[str] = []
    conflicts: list[ConflictEntry] = []

    for path in sorted(set(current) | set(incoming) | set(base)):
        ours = current.get(path)
        theirs = incoming.get(path)
        old = base.get(path)

        if ours == theirs or theirs == old:
            continue
        if ours == old:
            if theirs is None:
                manifest.pop(path, None)
                deleted.append(path)
            else:
                manifest[path] = theirs
                taken[path] = theirs
            continue
        conflicts.append(ConflictEntry(path, ours, theirs, old))

    return MergePlan(
        manifest=manifest,
        taken=taken,
        deleted=tuple(deleted),
        conflicts=tuple(conflicts),
    )
