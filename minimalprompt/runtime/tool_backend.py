from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class CommandOutcome:
    output: str
    success: bool


class CommandExecutor(Protocol):
    def execute(self, command: str) -> CommandOutcome:
        ...


class FileWriter(Protocol):
    def write_file(self, path: str, content: str) -> None:
        ...
