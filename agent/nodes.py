"""Nodes of the planning agent graph.

The agent is a plain flow graph::

    Plan        --execute-->       Execute
    Execute     --execute_tools--> ToolExecute
    ToolExecute --replan-->        Replan
    Replan      --execute-->       Execute
    Respond     --end-->           End

Plan, Execute, ToolExecute and Replan also route to Respond with the
``respond`` label.

Nodes only read the AgentContext in ``prep`` and only write it in ``post``.
Plan and Replan each count as one iteration; ToolExecute and Replan route
to Respond once the iteration cap is reached, so every run terminates.
"""

from typing import Any, Dict, List, Optional
import logging

from flow.node import Node
from flow.registry import register_node
from tooling.executor import ToolExecutor
from tooling.registry import ToolRegistry

from agent.config import DEFAULT_SYSTEM_PROMPT
from agent.events import EventBus, EventType
from agent.model import ModelClient
from agent.models import AgentContext, Message, Role, ToolCall, ToolResult
from agent.parsing import PlanDecision, ReplanDecision, parse_plan, parse_replan, parse_tool_calls
from agent import prompts

logger = logging.getLogger(__name__)

# Action labels
EXECUTE = "execute"
RESPOND = "respond"
EXECUTE_TOOLS = "execute_tools"
REPLAN = "replan"
END = "end"


class AgentNode(Node):
    """Base for agent nodes: holds the event bus and emits run-scoped events."""

    def __init__(
        self,
        events: Optional[EventBus] = None,
        max_retries: int = 1,
        wait: float = 0.0,
        timeout: Optional[float] = None,
        node_id: Optional[str] = None,
    ):
        super().__init__(max_retries=max_retries, wait=wait, timeout=timeout, node_id=node_id)
        self.events = events

    def emit(self, event_type: EventType, payload: Dict[str, Any], run_id: Optional[str]) -> None:
        if self.events is not None:
            self.events.emit(event_type, payload, run_id=run_id)


@register_node("agent.plan", description="Drafts a plan and decides whether tools are needed")
class PlanningNode(AgentNode):
    """Asks the model for a plan for the user query."""

    def __init__(
        self,
        model: ModelClient,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
        events: Optional[EventBus] = None,
        max_retries: int = 1,
        wait: float = 0.0,
        timeout: Optional[float] = None,
        node_id: Optional[str] = None,
    ):
        super().__init__(events=events, max_retries=max_retries, wait=wait, timeout=timeout, node_id=node_id)
        self.model = model
        self.system_prompt = system_prompt

    async def prep(self, shared: AgentContext) -> Dict[str, Any]:
        return {
            "user_query": shared.user_query,
            # The last message is always dropped, whatever its role: it is taken
            # to be the query, which the planning prompt already carries
            "history": [m.to_dict() for m in shared.messages[:-1]],
            "run_id": shared.run_id,
        }

    async def exec(self, prep_res: Dict[str, Any]) -> PlanDecision:
        messages = [
            {
                "role": Role.SYSTEM.value,
                "content": prompts.planning_prompt(self.system_prompt, prep_res["user_query"]),
            },
            *prep_res["history"],
        ]
        response = await self.model(messages, run_id=prep_res["run_id"])
        decision = parse_plan(response)

        self.emit(
            EventType.PLAN_STEP,
            {
                "plan": decision.plan,
                "needs_tools": decision.needs_tools,
                "raw_response": response,
            },
            prep_res["run_id"],
        )
        logger.debug(f"Plan (needs tools: {decision.needs_tools}): {decision.plan}")
        return decision

    async def post(self, shared: AgentContext, prep_res: Any, exec_res: PlanDecision) -> str:
        shared.plan = exec_res.plan
        shared.current_iteration += 1
        return EXECUTE if exec_res.needs_tools else RESPOND


@register_node("agent.execute", description="Turns the plan into concrete tool calls")
class ExecutionNode(AgentNode):
    """Asks the model which tools to call for the current plan.

    Malformed tool-call output degrades to "no tool calls", which routes the
    run to the final response instead of failing it.
    """

    def __init__(
        self,
        model: ModelClient,
        tools: Optional[ToolRegistry] = None,
        events: Optional[EventBus] = None,
        max_retries: int = 1,
        wait: float = 0.0,
        timeout: Optional[float] = None,
        node_id: Optional[str] = None,
    ):
        super().__init__(events=events, max_retries=max_retries, wait=wait, timeout=timeout, node_id=node_id)
        self.model = model
        self.tools = tools if tools is not None else ToolRegistry()

    async def prep(self, shared: AgentContext) -> Dict[str, Any]:
        return {
            "plan": shared.plan,
            "tool_schemas": prompts.format_tool_schemas(self.tools.schemas()),
            "run_id": shared.run_id,
        }

    async def exec(self, prep_res: Dict[str, Any]) -> List[ToolCall]:
        prompt = prompts.execution_prompt(prep_res["plan"], prep_res["tool_schemas"])
        response = await self.model(
            [{"role": Role.USER.value, "content": prompt}], run_id=prep_res["run_id"]
        )

        parsed = parse_tool_calls(response)
        if not parsed.success:
            logger.warning(f"Could not parse tool calls, continuing without tools: {parsed.reason}")
            self.emit(
                EventType.EXECUTION_STEP,
                {"error": parsed.reason, "raw_response": response},
                prep_res["run_id"],
            )
            return []

        self.emit(
            EventType.EXECUTION_STEP,
            {
                "tool_calls": [call.model_dump() for call in parsed.value],
                "plan": prep_res["plan"],
            },
            prep_res["run_id"],
        )
        return parsed.value

    async def post(self, shared: AgentContext, prep_res: Any, exec_res: List[ToolCall]) -> str:
        shared.tool_calls = exec_res
        return EXECUTE_TOOLS if exec_res else RESPOND


@register_node("agent.tool_execute", description="Runs the requested tool calls")
class ToolExecutionNode(AgentNode):
    """Runs each pending tool call in order.

    A failing or unknown tool never fails the node; its result is the error
    text, which is fed back to the model on the next phase.
    """

    def __init__(
        self,
        executor: ToolExecutor,
        events: Optional[EventBus] = None,
        max_retries: int = 1,
        wait: float = 0.0,
        timeout: Optional[float] = None,
        node_id: Optional[str] = None,
    ):
        super().__init__(events=events, max_retries=max_retries, wait=wait, timeout=timeout, node_id=node_id)
        self.executor = executor

    async def prep(self, shared: AgentContext) -> Dict[str, Any]:
        return {"tool_calls": list(shared.tool_calls), "run_id": shared.run_id}

    async def exec(self, prep_res: Dict[str, Any]) -> List[ToolResult]:
        calls: List[ToolCall] = prep_res["tool_calls"]
        results = []
        for call in calls:
            record = await self.executor.execute_with_record(
                call.name, call.args, tool_call_id=call.id
            )
            results.append(
                ToolResult(
                    tool_call_id=call.id,
                    name=call.name,
                    result=record.result,
                    success=record.success,
                )
            )

        success_count = sum(1 for r in results if r.success)
        self.emit(
            EventType.TOOL_EXECUTION,
            {
                "tool_calls": [{"name": c.name, "args": c.args} for c in calls],
                "results": [
                    {"name": r.name, "result": r.result, "success": r.success}
                    for r in results
                ],
                "success_count": success_count,
                "error_count": len(results) - success_count,
                "total_count": len(results),
            },
            prep_res["run_id"],
        )
        return results

    async def post(self, shared: AgentContext, prep_res: Any, exec_res: List[ToolResult]) -> str:
        shared.tool_results = exec_res
        for result in exec_res:
            shared.tools_used.append(result.name)
            shared.messages.append(
                Message(
                    role=Role.TOOL.value,
                    content=f"Tool: {result.name}\nResult: {result.result}",
                )
            )

        if shared.at_iteration_cap:
            logger.info(f"Iteration cap {shared.max_iterations} reached, responding")
            return RESPOND

        # Replan after every tool round, whether or not a call failed
        return REPLAN


@register_node("agent.replan", description="Decides whether more tool calls are needed")
class ReplanningNode(AgentNode):
    """Asks the model to continue with a new plan or to respond."""

    def __init__(
        self,
        model: ModelClient,
        events: Optional[EventBus] = None,
        max_retries: int = 1,
        wait: float = 0.0,
        timeout: Optional[float] = None,
        node_id: Optional[str] = None,
    ):
        super().__init__(events=events, max_retries=max_retries, wait=wait, timeout=timeout, node_id=node_id)
        self.model = model

    async def prep(self, shared: AgentContext) -> Dict[str, Any]:
        return {
            "plan": shared.plan,
            "tool_results": list(shared.tool_results),
            "run_id": shared.run_id,
        }

    async def exec(self, prep_res: Dict[str, Any]) -> ReplanDecision:
        prompt = prompts.replanning_prompt(prep_res["plan"], prep_res["tool_results"])
        response = await self.model(
            [{"role": Role.USER.value, "content": prompt}], run_id=prep_res["run_id"]
        )
        decision = parse_replan(response)

        self.emit(
            EventType.REPLAN_STEP,
            {
                "decision": "CONTINUE" if decision.should_continue else "RESPOND",
                "new_plan": decision.new_plan,
                "original_plan": prep_res["plan"],
                "tool_results": [r.model_dump() for r in prep_res["tool_results"]],
            },
            prep_res["run_id"],
        )
        return decision

    async def post(self, shared: AgentContext, prep_res: Any, exec_res: ReplanDecision) -> str:
        shared.plan = exec_res.new_plan
        shared.current_iteration += 1
        if not exec_res.should_continue or shared.at_iteration_cap:
            return RESPOND
        return EXECUTE


@register_node("agent.respond", description="Produces the final answer")
class ResponseNode(AgentNode):
    """Asks the model for the final answer to the user query."""

    def __init__(
        self,
        model: ModelClient,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
        events: Optional[EventBus] = None,
        max_retries: int = 1,
        wait: float = 0.0,
        timeout: Optional[float] = None,
        node_id: Optional[str] = None,
    ):
        super().__init__(events=events, max_retries=max_retries, wait=wait, timeout=timeout, node_id=node_id)
        self.model = model
        self.system_prompt = system_prompt

    async def prep(self, shared: AgentContext) -> Dict[str, Any]:
        return {
            "user_query": shared.user_query,
            "plan": shared.plan,
            "tool_results": list(shared.tool_results),
            "history": [
                m.to_dict() for m in shared.messages if m.role != Role.TOOL.value
            ],
            "run_id": shared.run_id,
        }

    async def exec(self, prep_res: Dict[str, Any]) -> str:
        prompt = prompts.response_prompt(
            self.system_prompt,
            prep_res["user_query"],
            prep_res["plan"],
            prep_res["tool_results"],
        )
        messages = [{"role": Role.SYSTEM.value, "content": prompt}, *prep_res["history"]]
        response = await self.model(messages, run_id=prep_res["run_id"])

        self.emit(
            EventType.FINAL_RESPONSE,
            {
                "response": response,
                "user_query": prep_res["user_query"],
                "plan": prep_res["plan"],
                "tool_results": [r.model_dump() for r in prep_res["tool_results"]],
            },
            prep_res["run_id"],
        )
        return response

    async def post(self, shared: AgentContext, prep_res: Any, exec_res: str) -> str:
        shared.final_response = exec_res
        shared.finished = True
        return END


@register_node("agent.end", description="Terminal node of the agent graph")
class EndNode(Node):
    """Terminal node; hands back the final response."""

    async def prep(self, shared: AgentContext) -> str:
        return shared.final_response

    async def exec(self, prep_res: str) -> str:
        return prep_res
