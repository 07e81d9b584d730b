"""CLI command modules for switchyard."""

from switchyard.command.absorb import AbsorbCommand, ResolveCommand
from switchyard.command.branch import BranchCommand, StatusCommand, SwitchCommand
from switchyard.command.history import (
    CommitCommand,
    CreateCommand,
    DeleteCommand,
    PatchCommand,
)

__all__ = [
    "AbsorbCommand",
    "BranchCommand",
    "CommitCommand",
    "CreateCommand",
    "DeleteCommand",
    "PatchCommand",
    "ResolveCommand",
    "StatusCommand",
    "SwitchCommand",
]
