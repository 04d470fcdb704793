from __future__ import annotations

from typing import Any, Iterable, Sequence

from minimalprompt.llm.driver import ToolCallingDriver
from minimalprompt.llm.types import Candidate, GenerationResult, ToolDefinition


def _as_result(item: Any) -> GenerationResult:
    if isinstance(item, GenerationResult):
        return item
    if isinstance(item, Candidate):
        return GenerationResult(candidates=(item,))
    if isinstance(item, (list, tuple)):
        for entry in item:
            if not isinstance(entry, Candidate):
                raise TypeError(f"Unsupported FakeDriver candidate: {type(entry).__name__}")
        return GenerationResult(candidates=tuple(item))
    raise TypeError(f"Unsupported FakeDriver script item: {type(item).__name__}")


class FakeDriver(ToolCallingDriver):
    """Scripted driver for tests.

    Each script item is returned by one ``generate`` call. Exception instances
    in the script are raised instead. Every call's history and tools are kept
    in ``calls``.
    """

    def __init__(self, script: Iterable[Any]):
        self._script = list(script)
        self._cursor = 0
        self.calls: list[dict] = []

    def generate(
        self,
        *,
        history: Sequence[Any],
        tools: Sequence[ToolDefinition],
    ) -> GenerationResult:
        self.calls.append({"history": tuple(history), "tools": tuple(tools)})
        if self._cursor >= len(self._script):
            raise RuntimeError("FakeDriver script exhausted")
        item = self._script[self._cursor]
        self._cursor += 1
        if isinstance(item, BaseException):
            raise item
        return _as_result(item)
