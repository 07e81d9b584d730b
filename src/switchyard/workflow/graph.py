"""Graph workflow definition."""

from typing import Any

from pydantic_graph import BaseNode, End, Graph

from switchyard.core.config import State
from switchyard.core.log import logger


def create_workflow(*node_types: type[BaseNode]) -> Graph:
    """Build a graph over the given node types with State as state."""
    logger.debug(
        "Building workflow graph",
        nodes=[node.__name__ for node in node_types],
    )
    return Graph(nodes=node_types, state_type=State)


async def run_workflow(start: BaseNode, state: State) -> Any:
    """Run a workflow from `start` and return its End data.

    Args:
        start: First node to run
        state: State shared by every node

    Returns:
        The data carried by the End node
    """
    state.runtime.command = type(start).__name__
    workflow = create_workflow(type(start))

    async with workflow.iter(start, state=state) as run:
        async for node in run:
            if isinstance(node, End):
                return node.data

    # Every node ends in End; reaching here means the graph is broken
    raise RuntimeError(f"Workflow {type(start).__name__} ended without result")
