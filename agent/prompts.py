"""Prompt builders for the planning agent phases."""

import json
from typing import Any, Dict, List

from agent.models import ToolResult


def format_tool_schemas(schemas: List[Dict[str, Any]]) -> str:
    """Render tool descriptors as indented JSON blocks."""
    if not schemas:
        return "(No tools available)"
    return "\n\n".join(json.dumps(schema, indent=2) for schema in schemas)


def format_tool_results(results: List[ToolResult], empty: str = "") -> str:
    if not results:
        return empty
    return "\n".join(f"- {r.name}: {r.result}" for r in results)


def planning_prompt(system_prompt: str, user_query: str) -> str:
    return f"""{system_prompt}

You are in the PLANNING phase. Analyze the user's query and create a step-by-step plan.

User query: {user_query}

Think through:
1. What information do you need?
2. Which tools (if any) should you use?
3. What's the logical sequence of steps?

Create a clear, actionable plan.

Respond in this exact format:
PLAN:
[Your step-by-step plan here]

NEEDS_TOOLS: [YES or NO]"""


def execution_prompt(plan: str, tool_schemas: str) -> str:
    return f"""Based on this plan:
{plan}

Available tool schemas:
{tool_schemas}

Determine which tool(s) to call with what parameters to execute the plan.

Respond with ONLY valid JSON in this format (no markdown, no explanation):
{{
  "toolCalls": [
    {{
      "name": "toolName",
      "args": {{ "param": "value" }}
    }}
  ]
}}"""


def replanning_prompt(plan: str, results: List[ToolResult]) -> str:
    return f"""You are in the REPLANNING phase.

Original plan:
{plan}

Tool execution results so far:
{format_tool_results(results, empty="(No tool results)")}

Analyze these results carefully. Ask yourself:
- Has the ENTIRE original plan been completed?
- Are there still steps remaining that need tool execution?
- Do we have all the information needed to give a final answer?

Decide:
1. CONTINUE - More tool calls needed (there are unfinished steps in the plan)
2. RESPOND - Plan fully executed (we can now provide the final answer)

Respond in this exact format:
DECISION: [CONTINUE or RESPOND]

NEW_PLAN:
[If CONTINUE: Clearly state the NEXT steps that still need to be done]
[If RESPOND: Confirm all steps completed and summarize what was accomplished]"""


def response_prompt(
    system_prompt: str, user_query: str, plan: str, results: List[ToolResult]
) -> str:
    return f"""{system_prompt}

You are in the FINAL RESPONSE phase.

Original user query: {user_query}

Plan executed:
{plan}

Information gathered from tools:
{format_tool_results(results, empty="(No tools were used)")}

Provide a complete, natural, helpful response to the user's original query. Use the information gathered to give them exactly what they asked for. If a tool failed, say which information you could not retrieve."""
