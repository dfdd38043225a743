"""Parsing of structured model output.

Model output is untrusted text. Parsers here return explicit results
instead of raising, so callers decide how to degrade: a tool-call payload
that fails to parse becomes "no tools requested".
"""

from dataclasses import dataclass
import json
import re
from typing import Any, Generic, List, Optional, TypeVar

from agent.models import ToolCall

T = TypeVar("T")

_FENCE_RE = re.compile(r"```[a-zA-Z]*\n?")
_PLAN_RE = re.compile(r"PLAN:\s*(.*?)(?=\n\s*NEEDS_TOOLS:|\Z)", re.IGNORECASE | re.DOTALL)
_NEEDS_TOOLS_RE = re.compile(r"NEEDS_TOOLS:\s*\**\s*YES", re.IGNORECASE)
_DECISION_RE = re.compile(r"DECISION:\s*\**\s*CONTINUE", re.IGNORECASE)
_NEW_PLAN_RE = re.compile(r"NEW_PLAN:\s*(.*)\Z", re.IGNORECASE | re.DOTALL)


@dataclass(frozen=True)
class ParseResult(Generic[T]):
    """Outcome of parsing: a value on success, a reason on failure."""

    success: bool
    value: Optional[T] = None
    reason: str = ""

    @classmethod
    def ok(cls, value: T) -> "ParseResult[T]":
        return cls(success=True, value=value)

    @classmethod
    def fail(cls, reason: str) -> "ParseResult[T]":
        return cls(success=False, reason=reason)


@dataclass(frozen=True)
class PlanDecision:
    plan: str
    needs_tools: bool


@dataclass(frozen=True)
class ReplanDecision:
    new_plan: str
    should_continue: bool


def _strip_comments(text: str) -> str:
    """Remove // and /* */ comments that are outside JSON strings."""
    out = []
    i, n = 0, len(text)
    in_string = False
    while i < n:
        ch = text[i]
        if in_string:
            out.append(ch)
            if ch == "\\" and i + 1 < n:
                out.append(text[i + 1])
                i += 2
                continue
            if ch == '"':
                in_string = False
            i += 1
        elif ch == '"':
            in_string = True
            out.append(ch)
            i += 1
        elif text.startswith("//", i):
            end = text.find("\n", i)
            i = n if end == -1 else end
        elif text.startswith("/*", i):
            end = text.find("*/", i + 2)
            i = n if end == -1 else end + 2
        else:
            out.append(ch)
            i += 1
    return "".join(out)


def _strip_trailing_commas(text: str) -> str:
    """Remove commas directly followed by a closing brace or bracket."""
    out = []
    in_string = False
    escaped = False
    for i, ch in enumerate(text):
        if in_string:
            out.append(ch)
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == ",":
            rest = text[i + 1 :].lstrip()
            if rest[:1] in ("}", "]"):
                continue
        out.append(ch)
    return "".join(out)


def clean_json_text(text: str) -> str:
    """Strip code fences, comments and trailing commas from model JSON."""
    cleaned = _FENCE_RE.sub("", text).replace("```", "").strip()
    cleaned = _strip_comments(cleaned)
    return _strip_trailing_commas(cleaned).strip()


def parse_json_object(text: str) -> ParseResult[dict]:
    """Parse a JSON object out of model output."""
    cleaned = clean_json_text(text)
    candidates = [cleaned]
    start, end = cleaned.find("{"), cleaned.rfind("}")
    if start != -1 and end > start and cleaned[start : end + 1] != cleaned:
        # Prose around the object
        candidates.append(cleaned[start : end + 1])

    reason = "empty response"
    for candidate in candidates:
        if not candidate:
            continue
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError as e:
            reason = f"invalid JSON: {e}"
            continue
        if not isinstance(parsed, dict):
            return ParseResult.fail(f"expected a JSON object, got {type(parsed).__name__}")
        return ParseResult.ok(parsed)
    return ParseResult.fail(reason)


def _coerce_args(raw: Any) -> Any:
    if isinstance(raw, str):
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            return raw
    return {} if raw is None else raw


def parse_tool_calls(text: str) -> ParseResult[List[ToolCall]]:
    """Parse a ``{"toolCalls": [...]}`` payload into tool calls.

    Entries without a name are skipped. A missing ``toolCalls`` key means no
    calls were requested.
    """
    parsed = parse_json_object(text)
    if not parsed.success:
        return ParseResult.fail(parsed.reason)

    payload = parsed.value
    raw_calls = payload.get("toolCalls", payload.get("tool_calls", []))
    if raw_calls is None:
        raw_calls = []
    if not isinstance(raw_calls, list):
        return ParseResult.fail("toolCalls must be a list")

    calls = []
    for entry in raw_calls:
        if not isinstance(entry, dict) or not isinstance(entry.get("name"), str):
            continue
        if not entry["name"].strip():
            continue
        raw_args = entry.get("args", entry.get("arguments"))
        call_id = entry.get("id")
        calls.append(
            ToolCall(
                name=entry["name"].strip(),
                args=_coerce_args(raw_args),
                id=str(call_id) if call_id is not None else None,
            )
        )
    return ParseResult.ok(calls)


def parse_plan(text: str) -> PlanDecision:
    """Parse a planning response (``PLAN:`` ... ``NEEDS_TOOLS: YES|NO``)."""
    match = _PLAN_RE.search(text)
    plan = match.group(1).strip() if match else text.strip()
    return PlanDecision(plan=plan, needs_tools=bool(_NEEDS_TOOLS_RE.search(text)))


def parse_replan(text: str) -> ReplanDecision:
    """Parse a replanning response (``DECISION:`` ... ``NEW_PLAN:``)."""
    match = _NEW_PLAN_RE.search(text)
    new_plan = match.group(1).strip() if match else text.strip()
    return ReplanDecision(
        new_plan=new_plan, should_continue=bool(_DECISION_RE.search(text))
    )
