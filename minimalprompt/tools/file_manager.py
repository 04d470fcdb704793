from __future__ import annotations

from pydantic import BaseModel, Field

from minimalprompt.errors import ToolExecutionError
from minimalprompt.runtime.tool_backend import FileWriter
from minimalprompt.tools.registry import ToolSpec

WRITE_FILE = "writeFile"


class WriteFileInput(BaseModel):
    content: str = Field(..., description="The content of the file as a string")
    path: str = Field(..., description="The relative path of the file within the project")


class WriteFileTool:
    def __init__(self, writer: FileWriter) -> None:
        self.writer = writer

    def __call__(self, params: WriteFileInput) -> str:
        # A failed write is an infrastructure fault, not something the model can act on.
        try:
            self.writer.write_file(params.path, params.content)
        except Exception as exc:
            raise ToolExecutionError(WRITE_FILE, exc) from exc
        return "ok"


def write_file_spec(writer: FileWriter) -> ToolSpec:
    return ToolSpec(
        name=WRITE_FILE,
        description="Write a file to the filesystem",
        input_model=WriteFileInput,
        handler=WriteFileTool(writer),
    )


__all__ = ["WRITE_FILE", "WriteFileInput", "WriteFileTool", "write_file_spec"]
