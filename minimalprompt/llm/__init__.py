"""LLM driver abstractions and tool-calling utilities."""

from .types import END_TURN, Candidate, GenerationResult, ToolCall, ToolDefinition
from .driver import ToolCallingDriver

__all__ = [
    "END_TURN",
    "Candidate",
    "GenerationResult",
    "ToolCall",
    "ToolDefinition",
    "ToolCallingDriver",
]
