"""Absorb: the restartable three-way merge state machine.

    NotMerging --absorb--> Merging --(conflicts)--> Conflicted
                              |                         |
                              +------resolve------------+--> NotMerging

A merge that applies cleanly is resolved straight away, so callers
only ever observe Conflicted or NotMerging.
"""

from __future__ import annotations

from switchyard.core.errors import (
    NotMergingError,
    UnnecessaryMergeError,
    UnsupportedOperationError,
)
from switchyard.core.log import logger
from switchyard.git.repository import GitRepository
from switchyard.git.types import Commit, MergeAnalysis
from switchyard.ops.branches import is_wip_branch
from switchyard.ops.history import commit
from switchyard.ops.merge_state import (
    MergeState,
    default_merge_message,
    ensure_not_merging,
    get_merge_message,
    merge_head_id,
    merge_ongoing,
    read_merge_state,
    set_merge_message,
)


def start_merge(repo: GitRepository, name: str):
    """Merge the commit `name` into head, leaving the repo merging.

    The index may hold conflicts afterwards.

    Raises:
        UnnecessaryMergeError: `name` is already contained in head
        UnsupportedOperationError: Head cannot take a normal merge
        BackendError: git refused to merge, e.g. because local changes
            or untracked files would be overwritten. The repository is
            left as it was, not merging.
    """
    other = repo.get_commit(name)
    analysis = repo.merge_analysis(other.id)
    if MergeAnalysis.UP_TO_DATE in analysis:
        raise UnnecessaryMergeError()
    if MergeAnalysis.NORMAL not in analysis:
        raise UnsupportedOperationError("Non-normal absorb not supported.")

    repo.merge(other.id)
    set_merge_message(repo, default_merge_message(name))
    logger.info("Started merge", target=name, commit=other.id)


def resolve(repo: GitRepository) -> Commit:
    """Commit the ongoing merge and clear merge state and conflicts.

    Raises:
        NotMergingError: No absorb is in progress
    """
    state = read_merge_state(repo)
    if state is None:
        raise NotMergingError()

    repo.cleanup_state()
    repo.cleanup_conflicts()
    merge_commit = commit(
        repo, state.merge_message, ["HEAD", state.merge_head_id]
    )
    logger.info(
        "Resolved merge",
        commit=merge_commit.id,
        absorbed=state.merge_head_id,
    )
    return merge_commit


def absorb(repo: GitRepository, name: str) -> bool:
    """Merge branch `name` into the current branch.

    Returns:
        True if the merge stopped on conflicts, which must be fixed
        in the working directory before calling resolve(). False if
        the merge commit was created.

    Raises:
        UnsupportedOperationError: `name` is a WIP branch
        CurrentlyMergingError: An absorb is already in progress
        BackendError: git refused the merge because it would overwrite
            local changes or untracked files
    """
    if is_wip_branch(name):
        raise UnsupportedOperationError("Can't absorb WIP branch.")
    ensure_not_merging(repo)

    with logger.span("absorb {name}", name=name):
        start_merge(repo, name)
        if repo.has_conflicts():
            logger.warn(
                "Absorb stopped on conflicts",
                paths=[c.path for c in repo.conflicts()],
            )
            return True

        resolve(repo)
        return False


__all__ = [
    "MergeState",
    "absorb",
    "default_merge_message",
    "ensure_not_merging",
    "get_merge_message",
    "merge_head_id",
    "merge_ongoing",
    "read_merge_state",
    "resolve",
    "set_merge_message",
    "start_merge",
]
