"""Flow orchestrator for walking a graph of nodes.

A Flow starts at its start node and keeps following the successor chosen by
each node's action label until no successor resolves. Cycles are legal, so
termination is up to the nodes (or an optional step budget).
"""

import copy
from typing import Any, Mapping, Optional
import logging

from flow.exceptions import FlowError, FlowStepLimitError
from flow.node import BaseNode

logger = logging.getLogger(__name__)


class Flow(BaseNode):
    """Orchestrates a graph of nodes over one shared context.

    A Flow is itself a node: its exec phase is the orchestration of the inner
    graph, so flows can be nested inside larger graphs.
    """

    def __init__(
        self,
        start: Optional[BaseNode] = None,
        max_steps: Optional[int] = None,
        node_id: Optional[str] = None,
    ):
        """Initialize the flow.

        Args:
            start: The node the orchestration starts from
            max_steps: Optional budget of node executions per orchestration
            node_id: Optional identifier for the flow
        """
        super().__init__(node_id=node_id)
        if max_steps is not None and max_steps < 1:
            raise ValueError(f"max_steps must be at least 1, got {max_steps}")
        self.start_node = start
        self.max_steps = max_steps

    def start(self, node: BaseNode) -> BaseNode:
        """Set the start node.

        Returns:
            The start node, so successors can be chained from it
        """
        self.start_node = node
        return node

    def _next_node(self, current: BaseNode, action: Optional[str]) -> Optional[BaseNode]:
        successor = current.get_successor(action)
        if successor is None and action and current.successors:
            logger.warning(
                f"Flow ends: '{action}' not found in {list(current.successors)}"
            )
        return successor

    async def _orchestrate(
        self, shared: Any, params: Optional[Mapping[str, Any]] = None
    ) -> Optional[str]:
        """Run the graph to completion.

        Args:
            shared: The shared context passed to every node
            params: Params injected into every node (defaults to the flow's own)

        Returns:
            The action label returned by the last node
        """
        if self.start_node is None:
            raise FlowError(f"Flow '{self.node_id}' has no start node")

        run_params = dict(params) if params is not None else dict(self._params)
        current: Optional[BaseNode] = copy.copy(self.start_node)
        last_action: Optional[str] = None
        steps = 0

        while current is not None:
            if self.max_steps is not None and steps >= self.max_steps:
                raise FlowStepLimitError(self.node_id, self.max_steps)
            steps += 1

            current.set_params(run_params)
            logger.debug(f"Flow '{self.node_id}' step {steps}: running '{current.node_id}'")
            last_action = await current._run(shared)

            successor = self._next_node(current, last_action)
            current = copy.copy(successor) if successor is not None else None

        logger.debug(
            f"Flow '{self.node_id}' finished after {steps} steps "
            f"(last action: {last_action!r})"
        )
        return last_action

    async def exec(self, prep_res: Any) -> Any:
        raise FlowError("Flow.exec is not callable; run the flow instead")

    async def post(self, shared: Any, prep_res: Any, exec_res: Any) -> Optional[str]:
        return exec_res

    async def _run(self, shared: Any) -> Optional[str]:
        prep_res = await self.prep(shared)
        last_action = await self._orchestrate(shared)
        return await self.post(shared, prep_res, last_action)

    async def run(self, shared: Any) -> Optional[str]:
        """Run the flow over ``shared`` until no successor resolves.

        Args:
            shared: The shared context for this run

        Returns:
            The action label returned by ``post`` (the last node's action by default)
        """
        return await self._run(shared)
