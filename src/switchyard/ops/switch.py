"""Moving between branches without losing uncommitted work."""

from __future__ import annotations

from switchyard.core.errors import (
    AlreadyExistsError,
    BranchNotFoundError,
    UnsupportedOperationError,
)
from switchyard.core.log import logger
from switchyard.git.repository import GitRepository
from switchyard.ops.branches import is_wip_branch
from switchyard.ops.wip import restore_wip, save_wip


def switch_branch(repo: GitRepository, name: str):
    """Switch to branch `name`, stashing and restoring WIP on the way.

    Dirty files and any paused absorb on the current branch go to its
    WIP branch; whatever was stashed for `name` comes back.

    Raises:
        UnsupportedOperationError: `name` is a WIP branch
        BranchNotFoundError: `name` does not exist
    """
    if is_wip_branch(name):
        raise UnsupportedOperationError("Can't switch to WIP branch.")
    if not repo.branch_exists(name):
        raise BranchNotFoundError(name)

    with logger.span("switch to {name}", name=name):
        save_wip(repo)
        repo.checkout_tree(name)
        repo.set_head(name)
        restore_wip(repo)


def create_branch(repo: GitRepository, name: str):
    """Start a new branch at head and move onto it.

    The working directory, and any absorb in progress, carry over to
    the new branch untouched.

    Raises:
        UnsupportedOperationError: `name` is a WIP branch name
        AlreadyExistsError: A branch called `name` exists
    """
    if is_wip_branch(name):
        raise UnsupportedOperationError("Can't create a WIP branch.")
    if repo.branch_exists(name):
        raise AlreadyExistsError(f"Branch already exists: {name}")

    repo.create_branch(name)
    repo.set_head(name)
    logger.info("Created branch", branch=name)
