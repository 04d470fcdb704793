from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union

from minimalprompt.llm.types import ToolCall


class Role(str, Enum):
    SYSTEM = "system"
    HUMAN = "human"
    ASSISTANT = "assistant"
    TOOL = "tool"


@dataclass(frozen=True)
class TextPart:
    text: str


@dataclass(frozen=True)
class ToolCallPart:
    call_id: str
    name: str
    arguments: str


@dataclass(frozen=True)
class ToolResultPart:
    call_id: str
    name: str
    content: str


ContentPart = Union[TextPart, ToolCallPart, ToolResultPart]


@dataclass(frozen=True)
class Turn:
    role: Role
    parts: tuple[ContentPart, ...]

    @property
    def text(self) -> str:
        return "".join(part.text for part in self.parts if isinstance(part, TextPart))


def text_turn(role: Role, text: str) -> Turn:
    return Turn(role=role, parts=(TextPart(text),))


class ConversationHistory:
    """Append-only log of turns for a single run.

    There is no API to remove or replace a turn, so anything already sent to
    the model stays exactly as it was sent.
    """

    def __init__(self) -> None:
        self._turns: list[Turn] = []

    def __len__(self) -> int:
        return len(self._turns)

    def append(self, turn: Turn) -> None:
        self._turns.append(turn)

    def snapshot(self) -> tuple[Turn, ...]:
        return tuple(self._turns)

    def append_text(self, role: Role, text: str) -> None:
        self.append(text_turn(role, text))

    def append_tool_call(self, call: ToolCall) -> None:
        # Arguments are echoed as the model sent them, never re-encoded.
        self.append(Turn(
            role=Role.ASSISTANT,
            parts=(ToolCallPart(call_id=call.call_id, name=call.name, arguments=call.arguments),),
        ))

    def append_tool_result(self, result: ToolResultPart) -> None:
        self.append(Turn(role=Role.TOOL, parts=(result,)))


__all__ = [
    "Role",
    "TextPart",
    "ToolCallPart",
    "ToolResultPart",
    "ContentPart",
    "Turn",
    "text_turn",
    "ConversationHistory",
]
