from __future__ import annotations

import logging
import threading
import time
from enum import Enum
from typing import Any, Dict, Optional

from minimalprompt.agents.escalation import HumanEscalation, Prompter
from minimalprompt.errors import AgentError, GatewayError
from minimalprompt.llm.driver import ToolCallingDriver
from minimalprompt.llm.types import GenerationResult, ToolCall
from minimalprompt.runtime.conversation_state import ConversationHistory, Role
from minimalprompt.runtime.trace_store import TraceStore
from minimalprompt.tools.registry import ToolRegistry
from minimalprompt.ui import NullReporter, Reporter, make_event

DEFAULT_CYCLE_DELAY_S = 0.005


class LoopState(str, Enum):
    RUNNING = "running"
    TERMINATED_CLEAN = "terminated_clean"
    TERMINATED_ERROR = "terminated_error"


class AgentLoop:
    """Drives the conversation between the model, the tools and the user.

    Each cycle sends the whole history to the model and acts on the returned
    candidates in order. The first candidate that calls tools is the one that
    gets executed; any candidates after it are dropped. A candidate that stops
    with end_turn and calls no tools hands over to the user, after which the
    remaining candidates are still examined.

    The loop runs until the cancel event is set (checked between cycles only),
    ``max_cycles`` is reached, or a fatal ``AgentError`` is raised.
    """

    def __init__(
        self,
        *,
        persona: str,
        prompt: str,
        driver: ToolCallingDriver,
        registry: ToolRegistry,
        prompter: Prompter,
        reporter: Optional[Reporter] = None,
        trace_store: Optional[TraceStore] = None,
        cycle_delay_s: float = DEFAULT_CYCLE_DELAY_S,
        max_cycles: Optional[int] = None,
        model_name: str = "",
    ) -> None:
        self.persona = persona
        self.prompt = prompt
        self.driver = driver
        self.registry = registry
        self.prompter = prompter
        self.reporter = reporter or NullReporter()
        self.trace_store = trace_store
        self.cycle_delay_s = cycle_delay_s
        self.max_cycles = max_cycles
        self.model_name = model_name
        self.history = ConversationHistory()
        self.escalation = HumanEscalation(prompter, self.history)
        self.state = LoopState.RUNNING
        self.logger = logging.getLogger(__name__)

    def _emit(
        self,
        name: str,
        *,
        level: str = "info",
        cycle: Optional[int] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.reporter.emit(make_event(name, level=level, cycle=cycle, payload=payload or {}))

    def run(self, cancel_event: Optional[threading.Event] = None) -> LoopState:
        """Run until cancelled. Fatal errors are raised to the caller."""
        cancel_event = cancel_event or threading.Event()
        self.history = ConversationHistory()
        self.escalation = HumanEscalation(self.prompter, self.history)
        self.history.append_text(Role.SYSTEM, self.persona)
        self.history.append_text(Role.HUMAN, self.prompt)
        self.state = LoopState.RUNNING
        self._emit("RUN_START", payload={
            "model_name": self.model_name,
            "n_tools": len(self.registry.schemas()),
        })

        cycle = 0
        status = "cancelled"
        try:
            while True:
                if cancel_event.is_set():
                    self.logger.info("cancellation requested; stopping")
                    break
                if self.max_cycles is not None and cycle >= self.max_cycles:
                    self.logger.info("reached max cycles (%d); stopping", self.max_cycles)
                    status = "max_cycles"
                    break
                result = self._generate(cycle)
                self._process_response(result, cycle)
                cycle += 1
                time.sleep(self.cycle_delay_s)
        except AgentError as exc:
            self.state = LoopState.TERMINATED_ERROR
            self.logger.error("agent run failed: %s", exc)
            self._finish(cycle, status="error", error=str(exc))
            raise
        except Exception as exc:
            self.state = LoopState.TERMINATED_ERROR
            self.logger.exception("unexpected error in agent loop")
            self._finish(cycle, status="error", error=f"{type(exc).__name__}: {exc}")
            raise
        except BaseException as exc:
            # A second Ctrl-C arrives as KeyboardInterrupt while a cycle is running.
            self.state = LoopState.TERMINATED_ERROR
            self.logger.warning("agent run interrupted")
            self._finish(cycle, status="interrupted", error=type(exc).__name__)
            raise

        self.state = LoopState.TERMINATED_CLEAN
        self._finish(cycle, status=status)
        return self.state

    def _finish(self, cycle: int, *, status: str, error: Optional[str] = None) -> None:
        payload: Dict[str, Any] = {"status": status, "cycles": cycle, "turns": len(self.history)}
        if error:
            payload["error"] = error
        self._emit("RUN_END", level="error" if error else "info", cycle=cycle, payload=payload)
        if self.trace_store is not None:
            self.trace_store.append_event({"event": "RUN_END", "payload": payload})

    def _generate(self, cycle: int) -> GenerationResult:
        self._emit("LLM_CALL_START", cycle=cycle)
        try:
            result = self.driver.generate(
                history=self.history.snapshot(),
                tools=self.registry.schemas(),
            )
        except Exception as exc:
            raise GatewayError(exc) from exc
        self._emit("LLM_CALL_END", cycle=cycle, payload={"n_candidates": len(result.candidates)})
        return result

    def _process_response(self, result: GenerationResult, cycle: int) -> None:
        for candidate in result.candidates:
            if candidate.text:
                self.logger.info("assistant says: %s", candidate.text)
                self._emit("ASSISTANT_TEXT", cycle=cycle, payload={"text": candidate.text})
            for call in candidate.tool_calls:
                self._perform_tool_call(call, cycle)
            if candidate.tool_calls:
                break
            if candidate.ends_turn:
                self._emit("ESCALATION", cycle=cycle, payload={"question": candidate.text})
                self.escalation.escalate(candidate.text)

    def _perform_tool_call(self, call: ToolCall, cycle: int) -> None:
        self.history.append_tool_call(call)
        self._emit("TOOL_CALL_START", cycle=cycle, payload={
            "tool": call.name,
            "call_id": call.call_id,
            "arguments": call.arguments,
        })
        try:
            result = self.registry.dispatch(call.call_id, call.name, call.arguments)
        except Exception as exc:
            self._record_toolcall(call, status="error", error=str(exc) or type(exc).__name__)
            self._emit("TOOL_CALL_END", level="error", cycle=cycle, payload={
                "tool": call.name,
                "status": "error",
            })
            raise
        self.history.append_tool_result(result)
        self._record_toolcall(call, status="ok")
        self._emit("TOOL_CALL_END", cycle=cycle, payload={"tool": call.name, "status": "ok"})

    def _record_toolcall(self, call: ToolCall, *, status: str, error: Optional[str] = None) -> None:
        if self.trace_store is None:
            return
        self.trace_store.append_toolcall({
            "tool_name": call.name,
            "call_id": call.call_id,
            "arguments": call.arguments,
            "status": status,
            "error": error,
        })


__all__ = ["AgentLoop", "LoopState", "DEFAULT_CYCLE_DELAY_S"]
