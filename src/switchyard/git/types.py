"""Value types returned by the git backend."""

from __future__ import annotations

import enum

from pydantic import BaseModel, ConfigDict


class Commit(BaseModel):
    """An immutable commit as read back from the object store."""

    id: str
    tree: str
    parents: list[str]
    message: str

    model_config = ConfigDict(frozen=True)

    @property
    def parent_count(self) -> int:
        return len(self.parents)


class IndexEntry(BaseModel):
    """One staged blob: file mode plus object id."""

    mode: str
    id: str

    model_config = ConfigDict(frozen=True)


class Conflict(BaseModel):
    """Competing index entries recorded for a single path.

    Any side may be missing, e.g. `ancestor` when both branches
    added the file, or `theirs` when their side deleted it.
    """

    path: str
    ancestor: IndexEntry | None = None
    ours: IndexEntry | None = None
    theirs: IndexEntry | None = None

    model_config = ConfigDict(frozen=True)

    def stages(self) -> list[tuple[int, IndexEntry]]:
        """Present entries as (stage number, entry), lowest stage first."""
        sides = [(1, self.ancestor), (2, self.ours), (3, self.theirs)]
        return [(stage, entry) for stage, entry in sides if entry]


class MergeAnalysis(enum.Flag):
    """How a candidate commit relates to head.

    A target that head could fast-forward to reports
    FASTFORWARD | NORMAL, since a real merge commit is also possible.
    """

    NONE = 0
    NORMAL = enum.auto()
    UP_TO_DATE = enum.auto()
    FASTFORWARD = enum.auto()
    UNBORN = enum.auto()
