"""Normalize agent input into a list of conversation messages.

Input may be a single text message, a list of messages (strings, dicts or
Message objects), or an object with a ``messages`` list.
"""

import json
from typing import Any, Dict, List, Union

from agent.models import Message, Role

InvokeInput = Union[str, List[Any], Dict[str, Any]]


def _to_message(item: Any) -> Message:
    if isinstance(item, Message):
        return item
    if isinstance(item, str):
        return Message(role=Role.USER.value, content=item)
    if isinstance(item, dict) and "role" in item and "content" in item:
        return Message(**item)
    raise ValueError(f"Invalid message format: {item!r}")


def normalize_input(input: InvokeInput) -> List[Message]:
    """Normalize the accepted input shapes to a list of messages.

    Raises:
        ValueError: If the input has none of the accepted shapes
    """
    if isinstance(input, str):
        return [Message(role=Role.USER.value, content=input)]

    if isinstance(input, list):
        return [_to_message(item) for item in input]

    if isinstance(input, dict) and "messages" in input:
        messages = input["messages"]
        if not isinstance(messages, list):
            raise ValueError("messages property must be a list")
        return [_to_message(item) for item in messages]

    raise ValueError(f"Invalid input format: {input!r}")


def extract_text(content: Any) -> str:
    """Text of a message content; multimodal lists keep only their text parts."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = [
            part.get("text", "")
            for part in content
            if isinstance(part, dict) and part.get("type") == "text"
        ]
        return " ".join(parts)
    return json.dumps(content, default=str)


def extract_user_query(messages: List[Message]) -> str:
    """The user query of a run: the text of the last message."""
    if not messages:
        return ""
    return extract_text(messages[-1].content)
