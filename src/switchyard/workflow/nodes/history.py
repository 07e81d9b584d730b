"""History nodes - create, commit, patch and delete commits."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from pydantic_graph import BaseNode, End, GraphRunContext

from switchyard.core.config import State
from switchyard.core.log import logger
from switchyard.git.repository import GitRepository
from switchyard.ops.history import (
    commit_changes,
    create_repository,
    delete_last_commit,
    patch,
)


@dataclass
class CreateRepository(BaseNode[State, None, str]):
    """Initialize a repository with its first commit."""

    path: Path | None = None

    async def run(self, ctx: GraphRunContext[State]) -> End[str]:
        git = ctx.state.config.git
        path = self.path or git.workdir
        repo = create_repository(path, identity=git.identity())

        ctx.state.runtime.head = repo.resolve("HEAD")
        logger.info(f"Created repository in {path}")
        return End(ctx.state.runtime.head)


@dataclass
class CommitChanges(BaseNode[State, None, str]):
    """Commit the working directory on top of head."""

    message: str

    async def run(self, ctx: GraphRunContext[State]) -> End[str]:
        repo = GitRepository.from_config(ctx.state.config.git)
        new_commit = commit_changes(repo, self.message)

        ctx.state.runtime.head = new_commit.id
        return End(new_commit.id)


@dataclass
class Patch(BaseNode[State, None, str]):
    """Replace the head commit with the working directory."""

    message: str

    async def run(self, ctx: GraphRunContext[State]) -> End[str]:
        repo = GitRepository.from_config(ctx.state.config.git)
        new_commit = patch(repo, self.message)

        ctx.state.runtime.head = new_commit.id
        logger.info(f"Patched last commit: {new_commit.id}")
        return End(new_commit.id)


@dataclass
class DeleteLastCommit(BaseNode[State, None, str]):
    """Drop the head commit, optionally discarding its changes."""

    hard: bool = False

    async def run(self, ctx: GraphRunContext[State]) -> End[str]:
        repo = GitRepository.from_config(ctx.state.config.git)
        delete_last_commit(repo, reset_hard=self.hard)

        ctx.state.runtime.head = repo.resolve("HEAD")
        return End(ctx.state.runtime.head)
