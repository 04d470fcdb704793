from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

END_TURN = "end_turn"


@dataclass(frozen=True)
class ToolCall:
    name: str
    call_id: str
    arguments: str


@dataclass(frozen=True)
class Candidate:
    text: str = ""
    tool_calls: tuple[ToolCall, ...] = ()
    stop_reason: Optional[str] = None

    @property
    def ends_turn(self) -> bool:
        return self.stop_reason == END_TURN


@dataclass(frozen=True)
class GenerationResult:
    candidates: tuple[Candidate, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ToolDefinition:
    name: str
    description: str
    parameters: dict
