"""Absorb commands - merge a branch in and finish the merge."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, Field
from pydantic_settings import CliPositionalArg

from switchyard.workflow import graph

if TYPE_CHECKING:
    from switchyard.core.config import State


class AbsorbCommand(BaseModel):
    """Merge another branch into the current branch.

    If the merge applies cleanly the merge commit is made at once.
    Otherwise the conflicts are left in the working directory; fix
    them and run `resolve`. Switching branches in between keeps the
    merge paused on this branch.
    """

    branch: CliPositionalArg[str] = Field(description="Branch to absorb")

    async def run_workflow(self, state: State) -> int:
        from switchyard.workflow.nodes.absorb import Absorb

        await graph.run_workflow(Absorb(branch=self.branch), state)
        return 0


class ResolveCommand(BaseModel):
    """Commit the absorb in progress once conflicts are fixed."""

    async def run_workflow(self, state: State) -> int:
        from switchyard.workflow.nodes.absorb import Resolve

        await graph.run_workflow(Resolve(), state)
        return 0
