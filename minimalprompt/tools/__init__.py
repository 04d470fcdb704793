"""
Tools offered to the model and the registry that dispatches them.
"""
from __future__ import annotations

from minimalprompt.runtime.tool_backend import CommandExecutor, FileWriter

from .registry import ToolRegistry, ToolSpec, parameters_schema
from .command import EXECUTE_COMMAND, ExecuteCommandInput, execute_command_spec
from .file_manager import WRITE_FILE, WriteFileInput, write_file_spec


def build_default_registry(executor: CommandExecutor, writer: FileWriter) -> ToolRegistry:
    """Registry with the two standard tools: executeCommand and writeFile."""
    return ToolRegistry([
        execute_command_spec(executor),
        write_file_spec(writer),
    ])


__all__ = [
    "ToolRegistry",
    "ToolSpec",
    "parameters_schema",
    "EXECUTE_COMMAND",
    "ExecuteCommandInput",
    "execute_command_spec",
    "WRITE_FILE",
    "WriteFileInput",
    "write_file_spec",
    "build_default_registry",
]
