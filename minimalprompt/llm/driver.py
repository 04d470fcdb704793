from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, Sequence

from minimalprompt.llm.types import GenerationResult, ToolDefinition

if TYPE_CHECKING:
    from minimalprompt.runtime.conversation_state import Turn


class ToolCallingDriver(Protocol):
    def generate(
        self,
        *,
        history: Sequence["Turn"],
        tools: Sequence[ToolDefinition],
    ) -> GenerationResult:
        ...
