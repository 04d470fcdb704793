from __future__ import annotations

import logging

from pydantic import BaseModel, Field

from minimalprompt.runtime.tool_backend import CommandExecutor, CommandOutcome
from minimalprompt.tools.registry import ToolSpec

logger = logging.getLogger(__name__)

EXECUTE_COMMAND = "executeCommand"

SUCCESS_PREFIX = "The command ran successfully with the output"
FAILURE_PREFIX = "The command failed with the output"


class ExecuteCommandInput(BaseModel):
    command: str = Field(..., description="The command to execute")


class ExecuteCommandTool:
    """Runs a command and reports the outcome to the model.

    A failing command is not an error for the loop: the output goes back to
    the model so it can decide what to do next.
    """

    def __init__(self, executor: CommandExecutor) -> None:
        self.executor = executor

    def __call__(self, params: ExecuteCommandInput) -> str:
        try:
            outcome = self.executor.execute(params.command)
        except Exception as exc:
            logger.warning("command executor raised: %s", exc)
            outcome = CommandOutcome(output=str(exc), success=False)
        prefix = SUCCESS_PREFIX if outcome.success else FAILURE_PREFIX
        return f"{prefix}:\n{outcome.output}"


def execute_command_spec(executor: CommandExecutor) -> ToolSpec:
    return ToolSpec(
        name=EXECUTE_COMMAND,
        description="Execute an operating system bash command",
        input_model=ExecuteCommandInput,
        handler=ExecuteCommandTool(executor),
    )


__all__ = [
    "EXECUTE_COMMAND",
    "ExecuteCommandInput",
    "ExecuteCommandTool",
    "execute_command_spec",
]
