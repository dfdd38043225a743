"""API entry point for the planning agent.

This module provides a one-call helper for running the agent.
"""

from typing import Any, Dict, Optional
import logging

from tooling.registry import tool_registry as global_tool_registry

from agent.config import AgentConfig
from agent.controller import PlanningAgent, ToolsInput
from agent.events import EventBus
from agent.models import AgentResponse, InvokeOptions
from agent.normalize import InvokeInput

logger = logging.getLogger(__name__)


async def run_agent(
    query: InvokeInput,
    model: Any = None,
    tools: ToolsInput = None,
    system_prompt: Optional[str] = None,
    config: Optional[AgentConfig] = None,
    events: Optional[EventBus] = None,
    max_iterations: Optional[int] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> AgentResponse:
    """Run the planning agent once.

    Args:
        query: Text, a list of messages, or ``{"messages": [...]}``
        model: Callable ``messages -> str`` or LangChain chat model
            (ChatOpenAI from config if not provided)
        tools: Tools to offer the model (uses the global registry if not provided)
        system_prompt: Optional system prompt
        config: Agent configuration (global config if not provided)
        events: Optional event bus to observe the run
        max_iterations: Optional override of the iteration cap
        metadata: Extra metadata merged into the response

    Returns:
        AgentResponse with the final answer and run metadata

    Example:
        ```python
        import asyncio
        from agent import run_agent
        from tooling import tool

        @tool(description="Look up the weather for a city")
        def get_weather(city: str) -> str:
            return f"Sunny in {city}"

        async def main():
            response = await run_agent("What's the weather in Paris?")
            print(response.output)
            print(response.metadata["tools_used"])

        asyncio.run(main())
        ```
    """
    agent = PlanningAgent(
        model=model,
        tools=tools if tools is not None else global_tool_registry,
        system_prompt=system_prompt,
        config=config,
        events=events,
    )
    try:
        return await agent.invoke(
            query,
            InvokeOptions(max_iterations=max_iterations, metadata=metadata or {}),
        )
    finally:
        await agent.dispose()
