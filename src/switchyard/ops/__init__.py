"""Repository operations: history, absorb, WIP stashing and switching."""

from switchyard.ops.history import (
    commit,
    commit_changes,
    create_repository,
    delete_last_commit,
    patch,
)
from switchyard.ops.merging import absorb, resolve, start_merge
from switchyard.ops.status import RepoStatus, repo_status
from switchyard.ops.switch import create_branch, switch_branch
from switchyard.ops.wip import restore_wip, save_wip

__all__ = [
    "RepoStatus",
    "absorb",
    "commit",
    "commit_changes",
    "create_branch",
    "create_repository",
    "delete_last_commit",
    "patch",
    "repo_status",
    "resolve",
    "restore_wip",
    "save_wip",
    "start_merge",
    "switch_branch",
]
