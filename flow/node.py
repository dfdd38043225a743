"""Units of work for the flow engine.

A node runs a three-phase lifecycle against a shared context:

1. ``prep(shared)`` reads the shared context and prepares input.
2. ``exec(prep_res)`` does the work; this is the only phase that is retried.
3. ``post(shared, prep_res, exec_res)`` writes results back to the shared
   context and returns an action label used to pick the next node.

Successors are kept per node as a mapping from action label to node, so
self-loops and back-edges are plain entries in that mapping.
"""

import asyncio
import contextvars
import uuid
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional
import logging

from flow.exceptions import NodeTimeoutError

logger = logging.getLogger(__name__)

DEFAULT_ACTION = "default"

# Attempt index per node instance, scoped to the running task so concurrent
# items of a parallel batch each see their own attempt.
_current_attempts: contextvars.ContextVar[Dict[int, int]] = contextvars.ContextVar(
    "current_attempts", default={}
)


class _ExecTimeout(Exception):
    """Carries a TimeoutError raised by exec itself past ``wait_for``."""

    def __init__(self, error: BaseException):
        super().__init__(str(error))
        self.error = error


class BaseNode:
    """Base class for every unit of work.

    Subclasses override ``prep``, ``exec`` and ``post``. The base class holds
    the injected params and the successor map, and drives a single run.
    """

    def __init__(self, node_id: Optional[str] = None):
        """Initialize the node.

        Args:
            node_id: Optional identifier, generated from the class name if omitted
        """
        self.node_id = node_id or f"{type(self).__name__}-{uuid.uuid4().hex[:8]}"
        self._params: Dict[str, Any] = {}
        self.successors: Dict[str, "BaseNode"] = {}

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.node_id}>"

    @property
    def params(self) -> Mapping[str, Any]:
        """Read-only view of the params injected by the parent orchestrator."""
        return MappingProxyType(self._params)

    def set_params(self, params: Optional[Mapping[str, Any]]) -> None:
        """Replace the params of this node with a copy of ``params``."""
        self._params = dict(params or {})

    def on(self, action: str, node: "BaseNode") -> "BaseNode":
        """Register ``node`` as the successor for ``action``.

        Args:
            action: The action label returned by ``post``
            node: The node to run next when ``action`` is returned

        Returns:
            The successor node, so chains can be built fluently
        """
        if action in self.successors:
            logger.warning(
                f"Overwriting successor for action '{action}' on node '{self.node_id}'"
            )
        self.successors[action] = node
        return node

    def next(self, node: "BaseNode", action: str = DEFAULT_ACTION) -> "BaseNode":
        """Register ``node`` as the successor for ``action`` (default label)."""
        return self.on(action, node)

    def get_successor(self, action: Optional[str]) -> Optional["BaseNode"]:
        """Resolve the successor for an action label.

        An empty or missing label resolves to the ``default`` successor.
        """
        return self.successors.get(action or DEFAULT_ACTION)

    async def prep(self, shared: Any) -> Any:
        return None

    async def exec(self, prep_res: Any) -> Any:
        return None

    async def post(self, shared: Any, prep_res: Any, exec_res: Any) -> Optional[str]:
        return None

    async def _exec(self, prep_res: Any) -> Any:
        return await self.exec(prep_res)

    async def _run(self, shared: Any) -> Optional[str]:
        prep_res = await self.prep(shared)
        exec_res = await self._exec(prep_res)
        return await self.post(shared, prep_res, exec_res)

    async def run(self, shared: Any) -> Optional[str]:
        """Run this node once, without following successors.

        Args:
            shared: The shared context for this run

        Returns:
            The action label returned by ``post``
        """
        if self.successors:
            logger.warning(
                f"Node '{self.node_id}' has successors that are not followed "
                f"when run directly; use a Flow"
            )
        return await self._run(shared)


class Node(BaseNode):
    """Unit of work with a retry policy around ``exec``.

    ``exec`` is attempted up to ``max_retries`` times with ``wait`` seconds
    between attempts. When every attempt fails, ``exec_fallback`` decides the
    outcome; by default it re-raises the last error.
    """

    def __init__(
        self,
        max_retries: int = 1,
        wait: float = 0.0,
        timeout: Optional[float] = None,
        node_id: Optional[str] = None,
    ):
        """Initialize the node.

        Args:
            max_retries: Maximum number of exec attempts (at least 1)
            wait: Seconds to sleep between attempts
            timeout: Optional timeout in seconds for each exec attempt
            node_id: Optional identifier for the node
        """
        super().__init__(node_id=node_id)
        if max_retries < 1:
            raise ValueError(f"max_retries must be at least 1, got {max_retries}")
        if wait < 0:
            raise ValueError(f"wait must not be negative, got {wait}")
        self.max_retries = max_retries
        self.wait = wait
        self.timeout = timeout

    @property
    def cur_retry(self) -> int:
        """Zero-based index of the exec attempt in progress for the current item."""
        return _current_attempts.get().get(id(self), 0)

    def _set_attempt(self, attempt: int) -> contextvars.Token:
        return _current_attempts.set({**_current_attempts.get(), id(self): attempt})

    async def exec_fallback(self, prep_res: Any, exc: Exception) -> Any:
        """Produce a result after every exec attempt failed.

        Override to return a fallback value instead of failing the run.
        """
        raise exc

    async def _guarded_exec(self, prep_res: Any) -> Any:
        try:
            return await self.exec(prep_res)
        except (asyncio.TimeoutError, TimeoutError) as e:
            raise _ExecTimeout(e) from e

    async def _attempt(self, prep_res: Any) -> Any:
        if self.timeout is None:
            return await self.exec(prep_res)
        try:
            return await asyncio.wait_for(self._guarded_exec(prep_res), timeout=self.timeout)
        except _ExecTimeout as e:
            # exec raised its own TimeoutError; the attempt did not expire
            raise e.error from None
        except asyncio.TimeoutError:
            raise NodeTimeoutError(self.node_id, self.timeout) from None

    async def _exec(self, prep_res: Any) -> Any:
        token = self._set_attempt(0)
        try:
            for attempt in range(self.max_retries):
                self._set_attempt(attempt)
                try:
                    return await self._attempt(prep_res)
                except Exception as e:
                    if attempt == self.max_retries - 1:
                        if self.max_retries > 1:
                            logger.warning(
                                f"Node '{self.node_id}' failed after "
                                f"{self.max_retries} attempts: {e}"
                            )
                        return await self.exec_fallback(prep_res, e)

                    logger.warning(
                        f"Node '{self.node_id}' attempt {attempt + 1}/"
                        f"{self.max_retries} failed: {e}"
                    )
                    if self.wait > 0:
                        await asyncio.sleep(self.wait)
        finally:
            _current_attempts.reset(token)
