"""Branch namespaces: ordinary branches and transient WIP branches."""

from __future__ import annotations

from switchyard.core.errors import BranchNotFoundError
from switchyard.git.repository import GitRepository

WIP_SUFFIX = "#wip"


def wip_branch_name(branch: str) -> str:
    return branch + WIP_SUFFIX


def is_wip_branch(name: str) -> bool:
    return name.endswith(WIP_SUFFIX)


def base_branch_name(name: str) -> str:
    """Ordinary branch a WIP branch belongs to (name if not WIP)."""
    if is_wip_branch(name):
        return name[: -len(WIP_SUFFIX)]
    return name


def current_branch_name(repo: GitRepository) -> str:
    """Name of the branch head is on.

    Raises:
        BranchNotFoundError: Head is detached
    """
    name = repo.current_branch()
    if name is None:
        raise BranchNotFoundError()
    return name
