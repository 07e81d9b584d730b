"""History commands - create, commit, patch, delete."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field
from pydantic_settings import CliPositionalArg

from switchyard.workflow import graph

if TYPE_CHECKING:
    from switchyard.core.config import State


class CreateCommand(BaseModel):
    """Create a repository with an initial "Create repository" commit."""

    path: Path | None = Field(
        default=None,
        description="Directory to create (defaults to config.git.workdir)",
    )

    async def run_workflow(self, state: State) -> int:
        from switchyard.workflow.nodes.history import CreateRepository

        await graph.run_workflow(CreateRepository(path=self.path), state)
        return 0


class CommitCommand(BaseModel):
    """Commit every change in the working directory."""

    message: CliPositionalArg[str] = Field(description="Commit message")

    async def run_workflow(self, state: State) -> int:
        from switchyard.workflow.nodes.history import CommitChanges

        await graph.run_workflow(CommitChanges(message=self.message), state)
        return 0


class PatchCommand(BaseModel):
    """Fold the working directory into the last commit, with a new message."""

    message: CliPositionalArg[str] = Field(description="New commit message")

    async def run_workflow(self, state: State) -> int:
        from switchyard.workflow.nodes.history import Patch

        await graph.run_workflow(Patch(message=self.message), state)
        return 0


class DeleteCommand(BaseModel):
    """Delete the last commit.

    By default the commit's changes stay in the working directory.
    """

    hard: bool = Field(
        default=False,
        description="Also discard the commit's changes from disk",
    )

    async def run_workflow(self, state: State) -> int:
        from switchyard.workflow.nodes.history import DeleteLastCommit

        await graph.run_workflow(DeleteLastCommit(hard=self.hard), state)
        return 0
