"""Planning agent controller.

This module wires the agent nodes into a flow and runs the
Plan -> Execute -> Replan -> Respond loop for one input at a time.
"""

from datetime import datetime
from typing import Any, AsyncIterator, Dict, Iterable, List, Optional, Union
import logging
import uuid

from flow.flow import Flow
from tooling.exceptions import ToolConfigurationError
from tooling.executor import ToolExecutor
from tooling.registry import ToolRegistry
from tooling.tool import Tool

from agent.config import AgentConfig, get_config
from agent.events import EventBus
from agent.exceptions import AgentInvocationError, ConfigurationError
from agent.model import ModelClient, create_chat_model
from agent.models import AgentContext, AgentResponse, InvokeOptions
from agent.nodes import (
    END,
    EXECUTE,
    EXECUTE_TOOLS,
    REPLAN,
    RESPOND,
    EndNode,
    ExecutionNode,
    PlanningNode,
    ReplanningNode,
    ResponseNode,
    ToolExecutionNode,
)
from agent.normalize import InvokeInput, extract_user_query, normalize_input

logger = logging.getLogger(__name__)

FRAMEWORK = "planflow"

ToolsInput = Union[ToolRegistry, Iterable[Any], None]


def _to_tools(tools: ToolsInput) -> List[Tool]:
    """Accept Tool objects, @tool-decorated functions or a registry."""
    if tools is None:
        return []
    if isinstance(tools, ToolRegistry):
        return tools.list_tools()

    result = []
    for item in tools:
        if isinstance(item, Tool):
            result.append(item)
        elif isinstance(getattr(item, "__tool__", None), Tool):
            result.append(item.__tool__)
        else:
            raise ConfigurationError(f"Not a tool: {item!r}")
    return result


def build_agent_flow(
    model: ModelClient,
    executor: ToolExecutor,
    system_prompt: str,
    events: Optional[EventBus] = None,
    config: Optional[AgentConfig] = None,
) -> Flow:
    """Build the planning agent graph.

    Args:
        model: Model client used by the model-calling nodes
        executor: Tool executor holding the agent's tools
        system_prompt: System prompt for the planning and response phases
        events: Optional event bus for phase events
        config: Agent configuration (retry policy and step budget)

    Returns:
        A Flow starting at the planning node
    """
    config = config or AgentConfig()
    retry = {"max_retries": config.node_max_retries, "wait": config.node_retry_wait}

    plan = PlanningNode(model, system_prompt=system_prompt, events=events, node_id="plan", **retry)
    execute = ExecutionNode(model, tools=executor.registry, events=events, node_id="execute", **retry)
    tool_execute = ToolExecutionNode(executor, events=events, node_id="tool_execute")
    replan = ReplanningNode(model, events=events, node_id="replan", **retry)
    respond = ResponseNode(model, system_prompt=system_prompt, events=events, node_id="respond", **retry)
    end = EndNode(node_id="end")

    plan.on(EXECUTE, execute)
    plan.on(RESPOND, respond)

    execute.on(EXECUTE_TOOLS, tool_execute)
    execute.on(RESPOND, respond)

    tool_execute.on(REPLAN, replan)
    tool_execute.on(RESPOND, respond)

    replan.on(EXECUTE, execute)
    replan.on(RESPOND, respond)

    respond.on(END, end)

    return Flow(start=plan, max_steps=config.flow_max_steps, node_id="planning-agent")


class PlanningAgent:
    """Plan-and-execute agent over a model and a set of tools.

    The model plans, picks tool calls, reviews their results and finally
    answers. Every run is bounded by the iteration cap.
    """

    def __init__(
        self,
        model: Any = None,
        tools: ToolsInput = None,
        system_prompt: Optional[str] = None,
        config: Optional[AgentConfig] = None,
        events: Optional[EventBus] = None,
    ):
        """Initialize the agent.

        Args:
            model: Callable ``messages -> str`` or LangChain chat model;
                a ChatOpenAI model is created from config when omitted
            tools: Tools, @tool-decorated functions or a ToolRegistry
            system_prompt: System prompt (config value if omitted)
            config: Agent configuration (global config if omitted)
            events: Event bus receiving run events (a new bus if omitted)
        """
        self._config = config or get_config()
        self._model = model
        self._tools = ToolRegistry(_to_tools(tools))
        self._system_prompt = system_prompt or self._config.system_prompt
        self.events = events or EventBus()

        self._client: Optional[ModelClient] = None
        self._flow: Optional[Flow] = None

    @property
    def initialized(self) -> bool:
        return self._flow is not None

    @property
    def config(self) -> AgentConfig:
        return self._config

    def initialize(self) -> None:
        """Validate configuration and build the agent graph.

        Raises:
            ConfigurationError: If no model is available or a tool is missing
                required environment variables
        """
        if self._flow is not None:
            return

        try:
            self._tools.check_configuration()
        except ToolConfigurationError as e:
            raise ConfigurationError(str(e)) from e

        model = self._model if self._model is not None else create_chat_model(self._config)
        self._client = ModelClient(
            model,
            events=self.events,
            timeout=self._config.model_timeout,
            stream=self._config.stream_tokens,
        )
        executor = ToolExecutor(self._tools, default_timeout=self._config.tool_timeout)
        self._flow = build_agent_flow(
            self._client,
            executor,
            self._system_prompt,
            events=self.events,
            config=self._config,
        )
        logger.debug(f"Planning agent initialized with tools: {self._tools.names()}")

    async def invoke(
        self, input: InvokeInput, options: Optional[InvokeOptions] = None
    ) -> AgentResponse:
        """Run the agent on one input.

        Args:
            input: Text, a list of messages, or ``{"messages": [...]}``
            options: Per-call options (iteration cap, extra metadata)

        Returns:
            AgentResponse with the final answer and run metadata

        Raises:
            ConfigurationError: If the agent can not be initialized
            AgentInvocationError: If the run fails
        """
        self.initialize()
        options = options or InvokeOptions()
        start_time = datetime.utcnow()
        run_id = str(uuid.uuid4())

        try:
            messages = normalize_input(input)
            context = AgentContext(
                run_id=run_id,
                messages=messages,
                user_query=extract_user_query(messages),
                max_iterations=options.max_iterations or self._config.max_iterations,
            )
            logger.info(f"Agent run {run_id} started (max iterations: {context.max_iterations})")
            await self._flow.run(context)
        except Exception as e:
            logger.error(f"Agent run {run_id} failed: {e}")
            raise AgentInvocationError(f"Planning agent invocation failed: {e}") from e
        finally:
            await self.events.drain(timeout=self._config.event_drain_timeout)

        execution_time_ms = int((datetime.utcnow() - start_time).total_seconds() * 1000)
        logger.info(
            f"Agent run {run_id} finished in {execution_time_ms}ms "
            f"after {context.current_iteration} iterations"
        )

        metadata: Dict[str, Any] = {
            "framework": FRAMEWORK,
            "run_id": run_id,
            "execution_time_ms": execution_time_ms,
            "iterations": context.current_iteration,
            "plan": context.plan,
            "tools_used": list(context.tools_used),
            **options.metadata,
        }
        return AgentResponse(output=context.final_response, metadata=metadata)

    async def stream(
        self, input: InvokeInput, options: Optional[InvokeOptions] = None
    ) -> AsyncIterator[Dict[str, Any]]:
        """Run the agent and yield the answer as a single final chunk."""
        response = await self.invoke(input, options)
        yield {"content": response.output, "done": True}

    def get_tools(self) -> List[Tool]:
        return self._tools.list_tools()

    def set_tools(self, tools: ToolsInput) -> None:
        """Replace the agent's tools; the graph is rebuilt on the next run."""
        self._tools = ToolRegistry(_to_tools(tools))
        self._flow = None

    async def dispose(self) -> None:
        """Release the graph and give pending event handlers a bounded wait."""
        await self.events.drain(timeout=self._config.event_drain_timeout)
        self._flow = None
        self._client = None
