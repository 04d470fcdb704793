from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from openai import OpenAI

from minimalprompt.llm.driver import ToolCallingDriver
from minimalprompt.llm.types import END_TURN, Candidate, GenerationResult, ToolCall, ToolDefinition
from minimalprompt.runtime.conversation_state import (
    Role,
    TextPart,
    ToolCallPart,
    ToolResultPart,
    Turn,
)

_CHAT_ROLES = {
    Role.SYSTEM: "system",
    Role.HUMAN: "user",
    Role.ASSISTANT: "assistant",
}

# Chat-completions finish reasons mapped onto the stop reasons the loop understands.
_STOP_REASONS = {
    "stop": END_TURN,
    "tool_calls": "tool_use",
    "length": "max_tokens",
}


def history_to_chat_messages(history: Sequence[Turn]) -> list[dict]:
    messages: list[dict] = []
    pending_tool_calls: list[dict] = []

    def flush_tool_calls() -> None:
        nonlocal pending_tool_calls
        if pending_tool_calls:
            messages.append({"role": "assistant", "content": None, "tool_calls": pending_tool_calls})
            pending_tool_calls = []

    for turn in history:
        for part in turn.parts:
            if isinstance(part, ToolCallPart):
                pending_tool_calls.append({
                    "id": part.call_id,
                    "type": "function",
                    "function": {"name": part.name, "arguments": part.arguments},
                })
            elif isinstance(part, ToolResultPart):
                flush_tool_calls()
                messages.append({
                    "role": "tool",
                    "tool_call_id": part.call_id,
                    "content": part.content,
                })
            elif isinstance(part, TextPart):
                flush_tool_calls()
                messages.append({"role": _CHAT_ROLES.get(turn.role, "user"), "content": part.text})
    flush_tool_calls()
    return messages


def tools_to_chat_tools(tools: Sequence[ToolDefinition]) -> list[dict]:
    return [
        {
            "type": "function",
            "function": {
                "name": tool.name,
                "description": tool.description,
                "parameters": tool.parameters,
            },
        }
        for tool in tools
    ]


def _extract_chat_content(content: Any) -> str:
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts: list[str] = []
        for block in content:
            if isinstance(block, dict) and block.get("text"):
                parts.append(block.get("text") or "")
        return "".join(parts)
    return str(content) if content is not None else ""


def candidate_from_choice(choice: Any) -> Candidate:
    message = getattr(choice, "message", None)
    tool_calls: list[ToolCall] = []
    for call in getattr(message, "tool_calls", None) or []:
        func = getattr(call, "function", None)
        tool_calls.append(ToolCall(
            name=getattr(func, "name", "") if func is not None else "",
            call_id=getattr(call, "id", "") or "",
            arguments=getattr(func, "arguments", "") if func is not None else "",
        ))
    finish_reason = getattr(choice, "finish_reason", None)
    return Candidate(
        text=_extract_chat_content(getattr(message, "content", None)),
        tool_calls=tuple(tool_calls),
        stop_reason=_STOP_REASONS.get(finish_reason, finish_reason),
    )


class OpenAIChatCompletionsDriver(ToolCallingDriver):
    def __init__(
        self,
        *,
        model: str,
        api_key: str = "",
        base_url: Optional[str] = None,
        default_headers: Optional[Dict[str, str]] = None,
        client: Any | None = None,
        n: int = 1,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        timeout_s: Optional[float] = None,
    ) -> None:
        if client is not None:
            self.client = client
        else:
            kwargs: dict[str, Any] = {"api_key": api_key, "max_retries": 0}
            if base_url:
                kwargs["base_url"] = base_url
            if default_headers:
                kwargs["default_headers"] = default_headers
            if timeout_s is not None:
                kwargs["timeout"] = timeout_s
            self.client = OpenAI(**kwargs)
        self.model = model
        self.n = n
        self.temperature = temperature
        self.max_tokens = max_tokens

    def generate(
        self,
        *,
        history: Sequence[Turn],
        tools: Sequence[ToolDefinition],
    ) -> GenerationResult:
        payload: dict[str, Any] = {
            "model": self.model,
            "messages": history_to_chat_messages(history),
        }
        chat_tools = tools_to_chat_tools(tools)
        if chat_tools:
            payload["tools"] = chat_tools
            payload["tool_choice"] = "auto"
        if self.n != 1:
            payload["n"] = self.n
        if self.temperature is not None:
            payload["temperature"] = self.temperature
        if self.max_tokens is not None:
            payload["max_tokens"] = self.max_tokens

        resp = self.client.chat.completions.create(**payload)
        return GenerationResult(
            candidates=tuple(candidate_from_choice(choice) for choice in resp.choices or []),
        )


__all__ = [
    "OpenAIChatCompletionsDriver",
    "history_to_chat_messages",
    "tools_to_chat_tools",
    "candidate_from_choice",
]
