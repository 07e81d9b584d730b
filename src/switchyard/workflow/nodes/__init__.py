"""Workflow nodes, one per repository operation."""

from switchyard.workflow.nodes.absorb import Absorb, Resolve
from switchyard.workflow.nodes.branch import CreateBranch, Status, Switch
from switchyard.workflow.nodes.history import (
    CommitChanges,
    CreateRepository,
    DeleteLastCommit,
    Patch,
)

__all__ = [
    "Absorb",
    "CommitChanges",
    "CreateBranch",
    "CreateRepository",
    "DeleteLastCommit",
    "Patch",
    "Resolve",
    "Status",
    "Switch",
]
