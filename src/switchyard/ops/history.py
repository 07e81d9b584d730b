"""Commit creation and history rewriting."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from switchyard.core.errors import AlreadyExistsError, UnsupportedOperationError
from switchyard.core.log import logger
from switchyard.git.repository import GitRepository
from switchyard.git.types import Commit
from switchyard.ops.merge_state import ensure_not_merging

INITIAL_COMMIT_MESSAGE = "Create repository"


def commit(
    repo: GitRepository, message: str, parents: Sequence[str]
) -> Commit:
    """Commit everything in the working directory onto head's branch.

    Ignored files are left out; deleted files are removed from the
    new tree.

    Args:
        repo: The repository
        message: The commit message
        parents: Revisions of the commit's parents, in order. Empty
            for the very first commit.

    Returns:
        The new commit
    """
    parent_ids = [repo.get_commit(rev).id for rev in parents]

    repo.stage_all()
    tree = repo.write_tree()
    # Keep the on-disk index in step with the working directory,
    # otherwise every file would show as changed afterwards
    repo.write_index()

    commit_id = repo.create_commit(message, tree, parent_ids)
    logger.info(
        "Created commit",
        commit=commit_id,
        parents=parent_ids,
        subject=message.splitlines()[0] if message else "",
    )
    return repo.get_commit(commit_id)


def commit_changes(repo: GitRepository, message: str) -> Commit:
    """Commit working changes on top of head.

    Raises:
        CurrentlyMergingError: An absorb is in progress; finish it
            with resolve instead
    """
    ensure_not_merging(repo)
    return commit(repo, message, ["HEAD"])


def create_repository(
    path: Path, identity: dict[str, str] | None = None
) -> GitRepository:
    """Initialize a repository with an initial parentless commit.

    Raises:
        AlreadyExistsError: A repository already exists at path
    """
    path = Path(path)
    if GitRepository.exists(path):
        raise AlreadyExistsError(f"Repository already exists at {path}")

    repo = GitRepository.init(path, identity)
    commit(repo, INITIAL_COMMIT_MESSAGE, [])
    logger.info("Created repository", path=str(path))
    return repo


def delete_last_commit(repo: GitRepository, reset_hard: bool = False):
    """Move head back to the first parent of the head commit.

    With reset_hard the working directory is overwritten to match the
    parent; otherwise it is left alone and only the index follows.

    Raises:
        UnsupportedOperationError: Head is the initial commit
    """
    last = repo.get_commit("HEAD")
    if not last.parents:
        raise UnsupportedOperationError("Can't delete initial commit.")

    repo.reset(last.parents[0], hard=reset_hard)
    logger.info(
        "Deleted last commit",
        commit=last.id,
        head=last.parents[0],
        hard=reset_hard,
    )


def patch(repo: GitRepository, message: str) -> Commit:
    """Replace the head commit with the current working state.

    The replacement keeps the old commit's parents and takes the new
    message.

    Raises:
        CurrentlyMergingError: An absorb is in progress
    """
    ensure_not_merging(repo)
    parents = repo.get_commit("HEAD").parents
    delete_last_commit(repo, reset_hard=False)
    return commit(repo, message, parents)
