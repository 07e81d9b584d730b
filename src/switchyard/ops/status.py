"""Summary of where the repository stands."""

from __future__ import annotations

from pydantic import BaseModel, Field

from switchyard.git.repository import GitRepository
from switchyard.ops.branches import is_wip_branch
from switchyard.ops.merge_state import MergeState, read_merge_state


class RepoStatus(BaseModel):
    """Snapshot of head, merge state and branches."""

    branch: str | None = Field(
        description="Current branch, None when head is detached"
    )
    head: str | None = Field(description="Head commit id")
    dirty: bool = Field(description="Uncommitted changes present")
    merge: MergeState | None = Field(
        default=None, description="Absorb in progress, if any"
    )
    conflicts: list[str] = Field(
        default_factory=list, description="Conflicted paths"
    )
    branches: list[str] = Field(
        default_factory=list, description="Ordinary branches"
    )
    wip_branches: list[str] = Field(
        default_factory=list, description="WIP branches still present"
    )

    @property
    def merging(self) -> bool:
        return self.merge is not None

    def summary(self) -> str:
        lines = [f"On branch {self.branch or '(detached)'}"]
        if self.merge:
            lines.append(f"Absorbing: {self.merge.merge_message}")
            lines.extend(f"  conflict: {path}" for path in self.conflicts)
        if self.dirty:
            lines.append("Uncommitted changes present")
        if self.wip_branches:
            lines.append("Stashed: " + ", ".join(self.wip_branches))
        return "\n".join(lines)


def repo_status(repo: GitRepository) -> RepoStatus:
    all_branches = repo.list_branches()
    return RepoStatus(
        branch=repo.current_branch(),
        head=repo.resolve("HEAD"),
        dirty=repo.is_dirty(),
        merge=read_merge_state(repo),
        conflicts=[conflict.path for conflict in repo.conflicts()],
        branches=[b for b in all_branches if not is_wip_branch(b)],
        wip_branches=[b for b in all_branches if is_wip_branch(b)],
    )
