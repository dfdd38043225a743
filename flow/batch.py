"""Batch variants of nodes and flows.

Batch nodes run ``exec`` once per prepared item; batch flows re-run a whole
graph once per prepared param set. Each comes in a sequential and a parallel
flavour. Parallel variants start every item, wait for all of them, and fail
if any item failed; results always follow input order.

Parallel execution is race-free only if ``exec`` (and, for batch flows, each
inner run) leaves the shared context alone or writes to its own disjoint
slice of it.
"""

import asyncio
from typing import Any, Awaitable, Callable, List, Optional, Sequence
import logging

from flow.exceptions import ParallelExecutionError
from flow.flow import Flow
from flow.node import Node

logger = logging.getLogger(__name__)


def _check_concurrency(max_concurrency: Optional[int]) -> Optional[int]:
    if max_concurrency is not None and max_concurrency < 1:
        raise ValueError(f"max_concurrency must be at least 1, got {max_concurrency}")
    return max_concurrency


async def gather_all(
    jobs: Sequence[Callable[[], Awaitable[Any]]],
    max_concurrency: Optional[int] = None,
    label: str = "batch",
) -> List[Any]:
    """Run jobs concurrently and wait for every one of them.

    Args:
        jobs: Zero-argument callables returning awaitables, in input order
        max_concurrency: Optional cap on simultaneously running jobs
        label: Name used in log and error messages

    Returns:
        Job results in input order

    Raises:
        ParallelExecutionError: If any job failed, after all jobs finished
    """
    semaphore = asyncio.Semaphore(max_concurrency) if max_concurrency else None

    async def run_job(job: Callable[[], Awaitable[Any]]) -> Any:
        if semaphore is None:
            return await job()
        async with semaphore:
            return await job()

    results = await asyncio.gather(*(run_job(job) for job in jobs), return_exceptions=True)

    errors = [r for r in results if isinstance(r, BaseException)]
    if errors:
        logger.error(f"{label}: {len(errors)} of {len(results)} items failed")
        raise ParallelExecutionError(
            f"{label}: {len(errors)} of {len(results)} items failed", errors
        )
    return list(results)


class BatchNode(Node):
    """Node whose exec runs once per item returned by prep, one at a time.

    Each item gets the full retry policy. The first item that still fails
    aborts the batch and ``post`` is not reached.
    """

    async def _exec(self, items: Any) -> List[Any]:
        results = []
        for item in items or []:
            results.append(await super()._exec(item))
        return results


class ParallelBatchNode(Node):
    """Node whose exec runs concurrently for every item returned by prep."""

    def __init__(
        self,
        max_retries: int = 1,
        wait: float = 0.0,
        timeout: Optional[float] = None,
        max_concurrency: Optional[int] = None,
        node_id: Optional[str] = None,
    ):
        """Initialize the node.

        Args:
            max_retries: Maximum number of exec attempts per item
            wait: Seconds to sleep between attempts
            timeout: Optional timeout in seconds for each exec attempt
            max_concurrency: Optional cap on items in flight (unbounded if None)
            node_id: Optional identifier for the node
        """
        super().__init__(max_retries=max_retries, wait=wait, timeout=timeout, node_id=node_id)
        self.max_concurrency = _check_concurrency(max_concurrency)

    async def _exec(self, items: Any) -> List[Any]:
        item_exec = super()._exec
        jobs = [lambda item=item: item_exec(item) for item in items or []]
        return await gather_all(jobs, self.max_concurrency, label=f"Node '{self.node_id}'")


class BatchFlow(Flow):
    """Flow that runs its graph once per param set returned by prep.

    Every run shares the same context; each run's params are the flow's own
    params overlaid with the param set.
    """

    async def _run(self, shared: Any) -> Optional[str]:
        param_sets = await self.prep(shared) or []
        for param_set in param_sets:
            await self._orchestrate(shared, {**self._params, **param_set})
        return await self.post(shared, param_sets, None)


class ParallelBatchFlow(BatchFlow):
    """BatchFlow whose graph runs execute concurrently."""

    def __init__(
        self,
        start=None,
        max_steps: Optional[int] = None,
        max_concurrency: Optional[int] = None,
        node_id: Optional[str] = None,
    ):
        """Initialize the flow.

        Args:
            start: The node each run starts from
            max_steps: Optional budget of node executions per run
            max_concurrency: Optional cap on runs in flight (unbounded if None)
            node_id: Optional identifier for the flow
        """
        super().__init__(start=start, max_steps=max_steps, node_id=node_id)
        self.max_concurrency = _check_concurrency(max_concurrency)

    async def _run(self, shared: Any) -> Optional[str]:
        param_sets = await self.prep(shared) or []
        jobs = [
            lambda param_set=param_set: self._orchestrate(
                shared, {**self._params, **param_set}
            )
            for param_set in param_sets
        ]
        await gather_all(jobs, self.max_concurrency, label=f"Flow '{self.node_id}'")
        return await self.post(shared, param_sets, None)
