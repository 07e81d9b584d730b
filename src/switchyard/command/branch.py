"""Branch commands - switch, branch, status."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, Field
from pydantic_settings import CliPositionalArg

from switchyard.workflow import graph

if TYPE_CHECKING:
    from switchyard.core.config import State


class SwitchCommand(BaseModel):
    """Switch to another branch.

    Uncommitted changes and any paused absorb stay behind with the
    current branch and come back when you switch to it again.
    """

    branch: CliPositionalArg[str] = Field(description="Branch to switch to")

    async def run_workflow(self, state: State) -> int:
        from switchyard.workflow.nodes.branch import Switch

        await graph.run_workflow(Switch(branch=self.branch), state)
        return 0


class BranchCommand(BaseModel):
    """Create a branch at the current commit and switch to it.

    Uncommitted changes come along to the new branch.
    """

    name: CliPositionalArg[str] = Field(description="Name of the new branch")

    async def run_workflow(self, state: State) -> int:
        from switchyard.workflow.nodes.branch import CreateBranch

        await graph.run_workflow(CreateBranch(branch=self.name), state)
        return 0


class StatusCommand(BaseModel):
    """Show the current branch, absorb progress and stashed work."""

    async def run_workflow(self, state: State) -> int:
        from switchyard.workflow.nodes.branch import Status

        status = await graph.run_workflow(Status(), state)
        print(status.summary())
        return 0
