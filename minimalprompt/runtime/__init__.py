"""Runtime pieces: conversation history, collaborators and tracing."""

from .conversation_state import (
    ConversationHistory,
    ContentPart,
    Role,
    TextPart,
    ToolCallPart,
    ToolResultPart,
    Turn,
    text_turn,
)
from .tool_backend import CommandExecutor, CommandOutcome, FileWriter
from .bash_executor import BashExecutor
from .workspace import WorkspaceFileWriter
from .trace_store import TraceStore

__all__ = [
    "ConversationHistory",
    "ContentPart",
    "Role",
    "TextPart",
    "ToolCallPart",
    "ToolResultPart",
    "Turn",
    "text_turn",
    "CommandExecutor",
    "CommandOutcome",
    "FileWriter",
    "BashExecutor",
    "WorkspaceFileWriter",
    "TraceStore",
]
