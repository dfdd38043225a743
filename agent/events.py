"""Event channel for observing agent runs.

Events are published by name to any number of subscribers. The channel is a
side channel only: a failing subscriber is logged and skipped, it never
changes the course of a run.
"""

import asyncio
from contextlib import asynccontextmanager
from datetime import datetime
from enum import Enum
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Set, Union
import logging
import uuid

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

ALL_EVENTS = "*"


class EventType(str, Enum):
    """Types of events emitted during an agent run."""

    # Controller phases
    PLAN_STEP = "plan:step"
    EXECUTION_STEP = "execution:step"
    TOOL_EXECUTION = "tool:execution"
    REPLAN_STEP = "replan:step"
    FINAL_RESPONSE = "final:response"

    # Raw model calls
    LLM_START = "llm:start"
    LLM_TOKEN = "llm:token"
    LLM_END = "llm:end"
    LLM_ERROR = "llm:error"


class AgentEvent(BaseModel):
    """A single event emitted during a run."""

    model_config = ConfigDict(use_enum_values=True)

    event_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    event_type: EventType
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    run_id: Optional[str] = None
    payload: Dict[str, Any] = Field(default_factory=dict)


EventHandler = Callable[[AgentEvent], Any]


class EventBus:
    """Publish/subscribe channel keyed by event type."""

    def __init__(self):
        self._handlers: Dict[str, List[EventHandler]] = {}
        self._pending: Set["asyncio.Task[Any]"] = set()

    def subscribe(
        self, event_type: Union[EventType, str], handler: EventHandler
    ) -> Callable[[], None]:
        """Subscribe ``handler`` to one event type, or to all with ``"*"``.

        Returns:
            A callable that removes the subscription
        """
        key = EventType(event_type).value if event_type != ALL_EVENTS else ALL_EVENTS
        self._handlers.setdefault(key, []).append(handler)

        def unsubscribe() -> None:
            handlers = self._handlers.get(key, [])
            if handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    def emit(
        self,
        event_type: Union[EventType, str],
        payload: Optional[Dict[str, Any]] = None,
        run_id: Optional[str] = None,
    ) -> AgentEvent:
        """Publish an event to its subscribers and to catch-all subscribers."""
        event = AgentEvent(event_type=event_type, payload=payload or {}, run_id=run_id)
        handlers = self._handlers.get(event.event_type, []) + self._handlers.get(
            ALL_EVENTS, []
        )
        for handler in handlers:
            try:
                result = handler(event)
                if asyncio.iscoroutine(result):
                    self._schedule(result, event.event_type)
            except Exception as e:
                logger.warning(f"Event handler for '{event.event_type}' failed: {e}")
        logger.debug(f"Event: {event.event_type}")
        return event

    def _schedule(self, coro: Any, event_type: str) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._pending.add(task)

        def done(finished: "asyncio.Task[Any]") -> None:
            self._pending.discard(finished)
            if not finished.cancelled() and finished.exception() is not None:
                logger.warning(
                    f"Async event handler for '{event_type}' failed: {finished.exception()}"
                )

        task.add_done_callback(done)

    @property
    def pending(self) -> int:
        """Number of async handlers still running."""
        return len(self._pending)

    async def drain(self, timeout: Optional[float] = None) -> int:
        """Wait for async handlers that are still running.

        Args:
            timeout: Optional bound in seconds; handlers still running after
                it are left running in the background

        Returns:
            The number of handlers still running when the wait ended
        """
        if not self._pending:
            return 0
        if timeout is not None and timeout <= 0:
            still_running = len(self._pending)
        else:
            _, not_done = await asyncio.wait(set(self._pending), timeout=timeout)
            still_running = len(not_done)
        if still_running:
            logger.warning(
                f"{still_running} async event handler(s) still running after {timeout}s"
            )
        return still_running

    @asynccontextmanager
    async def listen(self, *event_types: Union[EventType, str]) -> AsyncIterator["asyncio.Queue[AgentEvent]"]:
        """Collect events into a queue for the duration of the block.

        Args:
            *event_types: Event types to collect (all events if none given)

        Yields:
            An ``asyncio.Queue`` receiving the events
        """
        queue: "asyncio.Queue[AgentEvent]" = asyncio.Queue()
        wanted = {EventType(t).value for t in event_types}

        def enqueue(event: AgentEvent) -> None:
            if not wanted or event.event_type in wanted:
                queue.put_nowait(event)

        unsubscribe = self.subscribe(ALL_EVENTS, enqueue)
        try:
            yield queue
        finally:
            unsubscribe()
