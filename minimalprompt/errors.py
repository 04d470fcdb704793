"""
Fatal errors raised by the agent loop. Each one terminates a run.
"""
from __future__ import annotations

from typing import Optional


class AgentError(Exception):
    """Base class for errors that end an agent run."""

    def __init__(self, message: str, *, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.cause = cause


class GatewayError(AgentError):
    """Raised when the model call fails."""

    def __init__(self, cause: BaseException) -> None:
        super().__init__(f"model call failed: {cause}", cause=cause)


class UnknownToolError(AgentError):
    """Raised when the model invokes a tool it was never offered."""

    def __init__(self, tool_name: str) -> None:
        super().__init__(f"unrecognised tool call from model: {tool_name!r}")
        self.tool_name = tool_name


class ArgumentDecodeError(AgentError):
    def __init__(self, tool_name: str, cause: BaseException) -> None:
        super().__init__(
            f"could not parse tool call arguments: {tool_name!r}: {cause}",
            cause=cause,
        )
        self.tool_name = tool_name


class ToolExecutionError(AgentError):
    def __init__(self, tool_name: str, cause: BaseException) -> None:
        super().__init__(f"tool call failed: {tool_name!r}: {cause}", cause=cause)
        self.tool_name = tool_name


class EscalationError(AgentError):
    """Raised when the human transport fails to deliver a reply."""

    def __init__(self, cause: BaseException) -> None:
        super().__init__(f"prompting the user failed: {cause}", cause=cause)


__all__ = [
    "AgentError",
    "GatewayError",
    "UnknownToolError",
    "ArgumentDecodeError",
    "ToolExecutionError",
    "EscalationError",
]
