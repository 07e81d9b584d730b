"""Branch nodes - switch, create and report."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_graph import BaseNode, End, GraphRunContext

from switchyard.core.config import State
from switchyard.core.log import logger
from switchyard.git.repository import GitRepository
from switchyard.ops.status import RepoStatus, repo_status
from switchyard.ops.switch import create_branch, switch_branch


@dataclass
class Switch(BaseNode[State, None, str]):
    """Switch branches, carrying work in progress per branch."""

    branch: str

    async def run(self, ctx: GraphRunContext[State]) -> End[str]:
        repo = GitRepository.from_config(ctx.state.config.git)
        switch_branch(repo, self.branch)

        ctx.state.runtime.head = repo.resolve("HEAD")
        logger.info(f"Switched to {self.branch}")
        return End(self.branch)


@dataclass
class CreateBranch(BaseNode[State, None, str]):
    """Create a branch at head and move onto it."""

    branch: str

    async def run(self, ctx: GraphRunContext[State]) -> End[str]:
        repo = GitRepository.from_config(ctx.state.config.git)
        create_branch(repo, self.branch)

        ctx.state.runtime.head = repo.resolve("HEAD")
        return End(self.branch)


@dataclass
class Status(BaseNode[State, None, RepoStatus]):
    """Collect the repository status."""

    async def run(self, ctx: GraphRunContext[State]) -> End[RepoStatus]:
        repo = GitRepository.from_config(ctx.state.config.git)
        status = repo_status(repo)

        ctx.state.runtime.status = status
        ctx.state.runtime.head = status.head
        return End(status)
