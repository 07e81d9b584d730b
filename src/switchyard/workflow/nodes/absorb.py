"""Absorb nodes - start and resolve merges."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_graph import BaseNode, End, GraphRunContext

from switchyard.core.config import State
from switchyard.core.log import logger
from switchyard.git.repository import GitRepository
from switchyard.ops.merging import absorb, resolve


@dataclass
class Absorb(BaseNode[State, None, bool]):
    """Merge a branch into the current one.

    Ends with True when the merge is waiting on conflicts.
    """

    branch: str

    async def run(self, ctx: GraphRunContext[State]) -> End[bool]:
        repo = GitRepository.from_config(ctx.state.config.git)
        has_conflicts = absorb(repo, self.branch)

        ctx.state.runtime.has_conflicts = has_conflicts
        ctx.state.runtime.head = repo.resolve("HEAD")
        if has_conflicts:
            logger.warn(
                f"Absorb of {self.branch} has conflicts. Fix them, "
                f"then run 'switchyard resolve'."
            )
        else:
            logger.info(f"Absorbed {self.branch}")
        return End(has_conflicts)


@dataclass
class Resolve(BaseNode[State, None, str]):
    """Commit the absorb in progress."""

    async def run(self, ctx: GraphRunContext[State]) -> End[str]:
        repo = GitRepository.from_config(ctx.state.config.git)
        merge_commit = resolve(repo)

        ctx.state.runtime.has_conflicts = False
        ctx.state.runtime.head = merge_commit.id
        return End(merge_commit.id)
