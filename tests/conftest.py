"""Pytest configuration and fixtures."""

import pytest
import sys
from pathlib import Path

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))


@pytest.fixture(autouse=True)
def reset_registries():
    """Reset global registries and config around each test."""
    from tooling.registry import tool_registry
    from flow.registry import node_registry
    from agent.config import set_config

    # Store original state
    original_tools = tool_registry._tools.copy()
    original_types = node_registry._types.copy()

    # Clear tools for test; node types registered at import stay available
    tool_registry._tools = {}
    set_config(None)

    yield

    # Restore original state
    tool_registry._tools = original_tools
    node_registry._types = original_types
    set_config(None)


class ScriptedModel:
    """Fake model returning canned responses by phase.

    Each phase (plan, execute, replan, respond) has a list of responses; the
    last one repeats once the list is used up. Every call is recorded.
    """

    def __init__(self, plan=None, execute=None, replan=None, respond=None):
        self.responses = {
            "plan": list(plan or ["PLAN:\nAnswer directly.\n\nNEEDS_TOOLS: NO"]),
            "execute": list(execute or ['{"toolCalls": []}']),
            "replan": list(replan or ["DECISION: RESPOND\n\nNEW_PLAN:\nDone."]),
            "respond": list(respond or ["Final answer."]),
        }
        self.calls = []

    @staticmethod
    def phase_of(messages):
        text = messages[0]["content"]
        if "REPLANNING phase" in text:
            return "replan"
        if "PLANNING phase" in text:
            return "plan"
        if "FINAL RESPONSE phase" in text:
            return "respond"
        return "execute"

    async def __call__(self, messages):
        phase = self.phase_of(messages)
        self.calls.append((phase, messages))
        queue = self.responses[phase]
        return queue.pop(0) if len(queue) > 1 else queue[0]

    def phases(self):
        return [phase for phase, _ in self.calls]


@pytest.fixture
def scripted_model():
    """Factory for scripted fake models."""
    return ScriptedModel
