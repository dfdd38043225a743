"""Model-call adapter for the planning agent.

The agent only needs ``messages -> text``. ModelClient accepts either a
plain callable (sync or async) taking role/content dictionaries, or a
LangChain chat model / runnable, and reports every call on the event bus.
"""

import asyncio
import inspect
import json
import os
from datetime import datetime
from typing import Any, Dict, List, Optional
import logging

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_core.runnables import Runnable
from langchain_openai import ChatOpenAI

from agent.config import AgentConfig
from agent.events import EventBus, EventType
from agent.exceptions import ConfigurationError, ModelCallError, ModelTimeoutError

logger = logging.getLogger(__name__)


def content_to_text(content: Any) -> str:
    """Flatten LangChain message content (string or content parts) to text."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and part.get("type") == "text":
                parts.append(part.get("text", ""))
        return "".join(parts)
    return json.dumps(content, default=str)


def to_langchain_messages(messages: List[Dict[str, Any]]) -> List[BaseMessage]:
    """Convert role/content dictionaries to LangChain messages.

    Tool results are plain text in this agent, so they are sent as human
    turns rather than as tool messages bound to a provider call id.
    """
    converted: List[BaseMessage] = []
    for message in messages:
        role = message.get("role")
        content = message.get("content", "")
        if role == "system":
            converted.append(SystemMessage(content=content))
        elif role == "assistant":
            converted.append(AIMessage(content=content))
        else:
            converted.append(HumanMessage(content=content))
    return converted


def create_chat_model(config: AgentConfig) -> ChatOpenAI:
    """Create the default chat model from configuration.

    Raises:
        ConfigurationError: If OPENAI_API_KEY is not set
    """
    if not os.getenv("OPENAI_API_KEY"):
        raise ConfigurationError(
            "No model supplied and OPENAI_API_KEY is not set; "
            "pass a model or configure the API key"
        )
    return ChatOpenAI(
        model=config.default_model,
        temperature=config.temperature,
        timeout=config.model_timeout,
    )


class ModelClient:
    """Uniform async ``messages -> text`` wrapper around a model."""

    def __init__(
        self,
        model: Any,
        events: Optional[EventBus] = None,
        timeout: Optional[float] = None,
        stream: bool = False,
    ):
        """Initialize the model client.

        Args:
            model: A callable ``messages -> str`` or a LangChain runnable
            events: Optional event bus receiving llm:* events
            timeout: Optional timeout in seconds for each call
            stream: Stream LangChain output and emit llm:token events
        """
        if model is None or not (isinstance(model, Runnable) or callable(model)):
            raise ConfigurationError(
                f"Unsupported model type: {type(model).__name__}"
            )
        self.model = model
        self.events = events
        self.timeout = timeout
        self.stream = stream

    def _emit(self, event_type: EventType, payload: Dict[str, Any], run_id: Optional[str]) -> None:
        if self.events is not None:
            self.events.emit(event_type, payload, run_id=run_id)

    async def __call__(
        self, messages: List[Dict[str, Any]], run_id: Optional[str] = None
    ) -> str:
        """Call the model.

        Args:
            messages: Role/content dictionaries
            run_id: Optional run identifier attached to emitted events

        Returns:
            The response text

        Raises:
            ModelTimeoutError: If the call exceeds the timeout
            ModelCallError: If the call fails
        """
        self._emit(
            EventType.LLM_START,
            {"prompts": [content_to_text(m.get("content", "")) for m in messages]},
            run_id,
        )
        start_time = datetime.utcnow()

        try:
            if self.timeout:
                text = await asyncio.wait_for(self._call(messages, run_id), self.timeout)
            else:
                text = await self._call(messages, run_id)
        except asyncio.TimeoutError:
            error = ModelTimeoutError(f"Model call timed out after {self.timeout}s")
            self._emit(EventType.LLM_ERROR, {"message": str(error)}, run_id)
            raise error from None
        except Exception as e:
            self._emit(
                EventType.LLM_ERROR,
                {"message": str(e), "error_type": type(e).__name__},
                run_id,
            )
            if isinstance(e, ModelCallError):
                raise
            raise ModelCallError(f"Model call failed: {e}") from e

        latency_ms = int((datetime.utcnow() - start_time).total_seconds() * 1000)
        self._emit(EventType.LLM_END, {"response": text, "latency_ms": latency_ms}, run_id)
        return text

    async def _call(self, messages: List[Dict[str, Any]], run_id: Optional[str]) -> str:
        if isinstance(self.model, Runnable):
            lc_messages = to_langchain_messages(messages)
            if self.stream:
                chunks = []
                async for chunk in self.model.astream(lc_messages):
                    token = content_to_text(getattr(chunk, "content", chunk))
                    if token:
                        chunks.append(token)
                        self._emit(EventType.LLM_TOKEN, {"token": token}, run_id)
                return "".join(chunks)
            response = await self.model.ainvoke(lc_messages)
            return content_to_text(getattr(response, "content", response))

        if inspect.iscoroutinefunction(self.model) or inspect.iscoroutinefunction(
            getattr(self.model, "__call__", None)
        ):
            response = await self.model(messages)
        else:
            loop = asyncio.get_running_loop()
            response = await loop.run_in_executor(None, self.model, messages)
            if inspect.isawaitable(response):
                response = await response

        if isinstance(response, str):
            return response
        if hasattr(response, "content"):
            return content_to_text(response.content)
        return json.dumps(response, default=str)
