"""
Tool registry that maps tool names to handlers and their Pydantic input models.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Optional

from pydantic import BaseModel, ValidationError

from minimalprompt.errors import ArgumentDecodeError, UnknownToolError
from minimalprompt.llm.types import ToolDefinition
from minimalprompt.runtime.conversation_state import ToolResultPart

ToolHandler = Callable[[Any], str]


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    input_model: type[BaseModel]
    handler: ToolHandler


def _strip_titles(schema: Any) -> Any:
    if isinstance(schema, dict):
        return {
            key: _strip_titles(val)
            for key, val in schema.items()
            if not (key == "title" and isinstance(val, str))
        }
    if isinstance(schema, list):
        return [_strip_titles(item) for item in schema]
    return schema


def parameters_schema(input_model: type[BaseModel]) -> dict:
    """JSON schema for a tool input model, without Pydantic's generated titles."""
    schema = _strip_titles(input_model.model_json_schema())
    schema.pop("description", None)
    return schema


class ToolRegistry:
    """Fixed catalogue of tools; the set cannot change once constructed."""

    def __init__(self, tools: Iterable[ToolSpec] = ()) -> None:
        self.tools: Dict[str, Dict[str, Any]] = {}
        self._frozen = False
        for spec in tools:
            self.register_tool(spec)
        self._frozen = True
        self._definitions = tuple(
            ToolDefinition(
                name=name,
                description=info["description"],
                parameters=info["parameters"],
            )
            for name, info in self.tools.items()
        )
        self.logger = logging.getLogger(__name__)

    def register_tool(self, spec: ToolSpec) -> None:
        if self._frozen:
            raise RuntimeError("tool registry is fixed after construction")
        if spec.name in self.tools:
            raise ValueError(f"duplicate tool name: {spec.name}")
        self.tools[spec.name] = {
            "handler": spec.handler,
            "input_model": spec.input_model,
            "description": spec.description,
            "parameters": parameters_schema(spec.input_model),
        }

    def schemas(self) -> tuple[ToolDefinition, ...]:
        return self._definitions

    def dispatch(self, call_id: str, tool_name: str, raw_arguments: str) -> ToolResultPart:
        """Decode the arguments, run the handler and wrap its output.

        Raises UnknownToolError for an unregistered name and ArgumentDecodeError
        for arguments that are not a JSON object matching the input model.
        Handler errors propagate unchanged.
        """
        info = self.tools.get(tool_name)
        if info is None:
            raise UnknownToolError(tool_name)
        params = self._decode_arguments(tool_name, info["input_model"], raw_arguments)
        self.logger.debug("dispatching %s (call_id=%s)", tool_name, call_id)
        content = info["handler"](params)
        return ToolResultPart(call_id=call_id, name=tool_name, content=content)

    @staticmethod
    def _decode_arguments(tool_name: str, input_model: type[BaseModel], raw_arguments: Optional[str]) -> BaseModel:
        try:
            payload = json.loads(raw_arguments if raw_arguments is not None else "")
        except (TypeError, ValueError) as exc:
            raise ArgumentDecodeError(tool_name, exc) from exc
        if not isinstance(payload, dict):
            exc = TypeError(f"arguments must be a JSON object, got {type(payload).__name__}")
            raise ArgumentDecodeError(tool_name, exc) from exc
        try:
            return input_model.model_validate(payload)
        except ValidationError as exc:
            raise ArgumentDecodeError(tool_name, exc) from exc


__all__ = ["ToolRegistry", "ToolSpec", "ToolHandler", "parameters_schema"]
