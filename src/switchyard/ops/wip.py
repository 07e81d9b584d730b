"""Stash uncommitted work, including a paused absorb, on a WIP branch.

A WIP commit sits on `<branch>#wip`. Its shape records what was
stashed:

- one parent: plain uncommitted changes, message "WIP"
- two parents: an absorb was in progress; the second parent is the
  commit being absorbed and the message is "WIP\\n" followed by the
  merge message

Conflict entries are not part of a tree. They are recomputed by
re-running the merge on restore.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from switchyard.core.log import logger
from switchyard.git.repository import GitRepository
from switchyard.git.types import Commit
from switchyard.ops.branches import (
    WIP_SUFFIX,
    base_branch_name,
    current_branch_name,
    is_wip_branch,
    wip_branch_name,
)
from switchyard.ops.history import commit
from switchyard.ops.merge_state import (
    MergeState,
    get_merge_message,
    merge_ongoing,
    set_merge_message,
)
from switchyard.ops.merging import start_merge

WIP_MESSAGE = "WIP"


class WipSnapshot(BaseModel):
    """A WIP commit decoded into what it stashed."""

    commit: Commit
    paused_merge: MergeState | None = None

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_commit(cls, wip_commit: Commit) -> WipSnapshot:
        if wip_commit.parent_count < 2:
            return cls(commit=wip_commit)

        # The merge message follows the first line, and may be empty.
        # A single-line message has been edited by hand; the default
        # message applies then.
        _, newline, tail = wip_commit.message.partition("\n")
        return cls(
            commit=wip_commit,
            paused_merge=MergeState(
                merge_head_id=wip_commit.parents[1],
                merge_message=tail if newline else None,
            ),
        )


def save_wip(repo: GitRepository) -> Commit | None:
    """Move uncommitted work and any ongoing absorb onto `<branch>#wip`.

    Leaves head on the WIP branch with a clean merge state.

    Returns:
        The WIP commit, or None when there was nothing to save
    """
    merging = merge_ongoing(repo)
    if not (merging or repo.is_dirty()):
        return None

    name = current_branch_name(repo)
    wip_name = wip_branch_name(name)
    if repo.try_delete_branch(wip_name):
        logger.warn("Replaced stale WIP branch", branch=wip_name)

    repo.create_branch(wip_name)
    repo.set_head(wip_name)

    if merging:
        wip_commit = commit(
            repo,
            f"{WIP_MESSAGE}\n{get_merge_message(repo)}",
            ["HEAD", "MERGE_HEAD"],
        )
        repo.cleanup_state()
    else:
        wip_commit = commit(repo, WIP_MESSAGE, ["HEAD"])

    logger.info(
        "Saved work in progress",
        branch=wip_name,
        commit=wip_commit.id,
        paused_merge=merging,
    )
    return wip_commit


def restore_wip(repo: GitRepository) -> bool:
    """Bring back the work stashed for the current branch.

    If head is itself on a WIP branch (save_wip without a switch),
    head returns to the base branch first.

    Returns:
        True if a WIP branch was restored and deleted
    """
    name = current_branch_name(repo)
    if is_wip_branch(name):
        name = base_branch_name(name)
        repo.checkout_tree(name)
        repo.set_head(name)

    wip_name = wip_branch_name(name)
    if not repo.branch_exists(wip_name):
        return False

    snapshot = WipSnapshot.from_commit(repo.get_commit(wip_name))

    conflicts = []
    if snapshot.paused_merge:
        paused = snapshot.paused_merge
        start_merge(repo, paused.merge_head_id)
        if paused.merge_message is not None:
            set_merge_message(repo, paused.merge_message)

        # The checkout below needs a conflict-free index; the
        # conflicts go back in afterwards
        conflicts = repo.conflicts()
        repo.cleanup_conflicts()

    repo.checkout_tree(wip_name)
    repo.delete_branch(wip_name)

    repo.add_conflicts(conflicts)
    repo.write_index()

    logger.info(
        "Restored work in progress",
        branch=name,
        commit=snapshot.commit.id,
        conflicts=len(conflicts),
    )
    return True


__all__ = [
    "WIP_SUFFIX",
    "WipSnapshot",
    "is_wip_branch",
    "restore_wip",
    "save_wip",
    "wip_branch_name",
]
