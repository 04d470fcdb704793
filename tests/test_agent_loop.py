from __future__ import annotations

import json
import shutil
import threading

import pytest
from pydantic import BaseModel

from minimalprompt.agents import AgentLoop, LoopState
from minimalprompt.errors import (
    ArgumentDecodeError,
    EscalationError,
    GatewayError,
    ToolExecutionError,
    UnknownToolError,
)
from minimalprompt.llm.fake_driver import FakeDriver
from minimalprompt.llm.types import END_TURN, Candidate, GenerationResult, ToolCall
from minimalprompt.runtime.bash_executor import BashExecutor
from minimalprompt.runtime.conversation_state import Role, ToolCallPart, ToolResultPart
from minimalprompt.runtime.tool_backend import CommandOutcome
from minimalprompt.runtime.trace_store import TraceStore
from minimalprompt.tools import build_default_registry
from minimalprompt.tools.registry import ToolRegistry, ToolSpec


class RecordingExecutor:
    def __init__(self, outcome: CommandOutcome | None = None) -> None:
        self.outcome = outcome or CommandOutcome("", True)
        self.commands: list[str] = []

    def execute(self, command: str) -> CommandOutcome:
        self.commands.append(command)
        return self.outcome


class RecordingWriter:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.writes: list[tuple[str, str]] = []

    def write_file(self, path: str, content: str) -> None:
        self.writes.append((path, content))
        if self.error is not None:
            raise self.error


class ScriptedPrompter:
    def __init__(self, replies: list[str] | None = None, error: Exception | None = None) -> None:
        self.replies = list(replies or [])
        self.error = error
        self.questions: list[str] = []

    def prompt(self, question: str) -> str:
        self.questions.append(question)
        if self.error is not None:
            raise self.error
        return self.replies.pop(0) if self.replies else ""


def _call(name: str, call_id: str, **arguments) -> ToolCall:
    return ToolCall(name=name, call_id=call_id, arguments=json.dumps(arguments))


def _agent(script, *, executor=None, writer=None, prompter=None, **kwargs) -> AgentLoop:
    executor = executor or RecordingExecutor()
    writer = writer or RecordingWriter()
    return AgentLoop(
        persona="You are a helpful agent.",
        prompt="Build the project.",
        driver=FakeDriver(script),
        registry=build_default_registry(executor, writer),
        prompter=prompter or ScriptedPrompter(),
        cycle_delay_s=0,
        **kwargs,
    )


def _tool_calls_paired(agent: AgentLoop) -> bool:
    calls = [p.call_id for t in agent.history.snapshot() for p in t.parts if isinstance(p, ToolCallPart)]
    results = [p.call_id for t in agent.history.snapshot() for p in t.parts if isinstance(p, ToolResultPart)]
    return calls == results


def test_run_seeds_history_with_system_and_prompt() -> None:
    agent = _agent([], max_cycles=0)

    assert agent.run() == LoopState.TERMINATED_CLEAN

    turns = agent.history.snapshot()
    assert [turn.role for turn in turns] == [Role.SYSTEM, Role.HUMAN]
    assert turns[0].text == "You are a helpful agent."
    assert turns[1].text == "Build the project."


def test_text_only_cycles_do_not_escalate_or_grow_history() -> None:
    prompter = ScriptedPrompter()
    script = [Candidate(text=f"thinking {i}") for i in range(3)]
    agent = _agent(script, prompter=prompter, max_cycles=3)

    agent.run()

    assert prompter.questions == []
    assert len(agent.history) == 2
    assert len(agent.driver.calls) == 3


def test_tools_are_advertised_on_every_call() -> None:
    agent = _agent([GenerationResult(), GenerationResult()], max_cycles=2)

    agent.run()

    for call in agent.driver.calls:
        assert {tool.name for tool in call["tools"]} == {"executeCommand", "writeFile"}


def test_write_file_call_is_dispatched_once() -> None:
    writer = RecordingWriter()
    call = _call("writeFile", "call-1", path="main.py", content="print('hi')")
    agent = _agent([Candidate(tool_calls=(call,))], writer=writer, max_cycles=1)

    agent.run()

    assert writer.writes == [("main.py", "print('hi')")]
    last = agent.history.snapshot()[-1]
    assert last.role == Role.TOOL
    assert last.parts == (ToolResultPart(call_id="call-1", name="writeFile", content="ok"),)


def test_failed_command_is_reported_to_model() -> None:
    executor = RecordingExecutor(CommandOutcome("boom", False))
    call = _call("executeCommand", "call-1", command="make")
    agent = _agent([Candidate(tool_calls=(call,)), GenerationResult()], executor=executor, max_cycles=2)

    assert agent.run() == LoopState.TERMINATED_CLEAN

    results = [p for t in agent.history.snapshot() for p in t.parts if isinstance(p, ToolResultPart)]
    assert [r.content for r in results] == ["The command failed with the output:\nboom"]
    # The failure is visible to the model on the next call.
    assert agent.driver.calls[1]["history"][-1].parts == tuple(results)


def test_end_turn_then_tool_call_escalates_then_dispatches() -> None:
    executor = RecordingExecutor(CommandOutcome("done", True))
    prompter = ScriptedPrompter(replies=["please continue\n"])
    response = GenerationResult(candidates=(
        Candidate(text="Should I continue?", stop_reason=END_TURN),
        Candidate(tool_calls=(_call("executeCommand", "call-1", command="ls"),)),
    ))
    agent = _agent([response], executor=executor, prompter=prompter, max_cycles=1)

    agent.run()

    assert prompter.questions == ["Should I continue?"]
    assert executor.commands == ["ls"]
    roles = [turn.role for turn in agent.history.snapshot()]
    assert roles == [Role.SYSTEM, Role.HUMAN, Role.ASSISTANT, Role.HUMAN, Role.ASSISTANT, Role.TOOL]
    assert agent.history.snapshot()[2].text == "Should I continue?"
    assert agent.history.snapshot()[3].text == "please continue\n"


def test_only_first_tool_calling_candidate_is_dispatched() -> None:
    executor = RecordingExecutor()
    response = GenerationResult(candidates=(
        Candidate(tool_calls=(_call("executeCommand", "call-1", command="first"),)),
        Candidate(tool_calls=(_call("executeCommand", "call-2", command="second"),)),
        Candidate(text="Done?", stop_reason=END_TURN),
    ))
    prompter = ScriptedPrompter()
    agent = _agent([response], executor=executor, prompter=prompter, max_cycles=1)

    agent.run()

    assert executor.commands == ["first"]
    assert prompter.questions == []
    assert _tool_calls_paired(agent)


def test_all_tool_calls_of_first_candidate_run_in_order() -> None:
    executor = RecordingExecutor()
    candidate = Candidate(tool_calls=(
        _call("executeCommand", "call-1", command="one"),
        _call("executeCommand", "call-2", command="two"),
    ))
    agent = _agent([candidate], executor=executor, max_cycles=1)

    agent.run()

    assert executor.commands == ["one", "two"]
    roles = [turn.role for turn in agent.history.snapshot()[2:]]
    assert roles == [Role.ASSISTANT, Role.TOOL, Role.ASSISTANT, Role.TOOL]


def test_two_end_turn_candidates_both_escalate() -> None:
    prompter = ScriptedPrompter(replies=["a", "b"])
    response = GenerationResult(candidates=(
        Candidate(text="first?", stop_reason=END_TURN),
        Candidate(text="second?", stop_reason=END_TURN),
    ))
    agent = _agent([response], prompter=prompter, max_cycles=1)

    agent.run()

    assert prompter.questions == ["first?", "second?"]


def test_unknown_tool_terminates_with_error() -> None:
    call = ToolCall(name="deleteEverything", call_id="call-1", arguments="{}")
    agent = _agent([Candidate(tool_calls=(call,))])

    with pytest.raises(UnknownToolError) as excinfo:
        agent.run()

    assert excinfo.value.tool_name == "deleteEverything"
    assert agent.state == LoopState.TERMINATED_ERROR
    assert not any(
        isinstance(part, ToolResultPart) for turn in agent.history.snapshot() for part in turn.parts
    )


def test_malformed_arguments_terminate_with_error() -> None:
    call = ToolCall(name="executeCommand", call_id="call-1", arguments="{bad json")
    executor = RecordingExecutor()
    agent = _agent([Candidate(tool_calls=(call,))], executor=executor)

    with pytest.raises(ArgumentDecodeError):
        agent.run()

    assert executor.commands == []
    assert agent.state == LoopState.TERMINATED_ERROR


def test_failed_write_terminates_with_error() -> None:
    writer = RecordingWriter(error=ValueError("path is not a local path: '../x'"))
    call = _call("writeFile", "call-1", path="../x", content="")
    agent = _agent([Candidate(tool_calls=(call,))], writer=writer)

    with pytest.raises(ToolExecutionError) as excinfo:
        agent.run()

    assert isinstance(excinfo.value.cause, ValueError)
    assert agent.state == LoopState.TERMINATED_ERROR


def test_gateway_failure_is_not_retried() -> None:
    agent = _agent([ConnectionError("unreachable"), Candidate(text="never seen")])

    with pytest.raises(GatewayError) as excinfo:
        agent.run()

    assert isinstance(excinfo.value.cause, ConnectionError)
    assert len(agent.driver.calls) == 1
    assert agent.state == LoopState.TERMINATED_ERROR


def test_escalation_failure_terminates_with_error() -> None:
    prompter = ScriptedPrompter(error=EOFError("stream closed"))
    agent = _agent([Candidate(text="Anything else?", stop_reason=END_TURN)], prompter=prompter)

    with pytest.raises(EscalationError):
        agent.run()

    assert agent.state == LoopState.TERMINATED_ERROR
    # The question was recorded before the transport failed.
    assert agent.history.snapshot()[-1].text == "Anything else?"


def test_empty_response_is_a_silent_cycle() -> None:
    prompter = ScriptedPrompter()
    script = [GenerationResult(), Candidate(), Candidate(text="", stop_reason="max_tokens")]
    agent = _agent(script, prompter=prompter, max_cycles=3)

    assert agent.run() == LoopState.TERMINATED_CLEAN
    assert prompter.questions == []
    assert len(agent.history) == 2


def test_cancel_before_start_does_not_call_model() -> None:
    cancel = threading.Event()
    cancel.set()
    agent = _agent([Candidate(text="unused")])

    assert agent.run(cancel) == LoopState.TERMINATED_CLEAN
    assert agent.driver.calls == []


def test_cancel_is_observed_between_cycles() -> None:
    cancel = threading.Event()

    class CancellingExecutor(RecordingExecutor):
        def execute(self, command: str) -> CommandOutcome:
            # Cancelling mid-dispatch must not interrupt the dispatch itself.
            cancel.set()
            return super().execute(command)

    executor = CancellingExecutor()
    script = [
        Candidate(tool_calls=(
            _call("executeCommand", "call-1", command="one"),
            _call("executeCommand", "call-2", command="two"),
        )),
        Candidate(tool_calls=(_call("executeCommand", "call-3", command="three"),)),
    ]
    agent = _agent(script, executor=executor)

    assert agent.run(cancel) == LoopState.TERMINATED_CLEAN
    assert executor.commands == ["one", "two"]
    assert len(agent.driver.calls) == 1
    assert _tool_calls_paired(agent)


def test_raw_arguments_are_echoed_byte_identical() -> None:
    raw = '{"command":  "echo \\u00e9",   "extra": [1,2]}'
    call = ToolCall(name="executeCommand", call_id="call-1", arguments=raw)
    agent = _agent([Candidate(tool_calls=(call,))], max_cycles=1)

    agent.run()

    recorded = agent.history.snapshot()[2].parts[0]
    assert isinstance(recorded, ToolCallPart)
    assert recorded.arguments == raw


def test_assistant_text_is_logged(caplog) -> None:
    agent = _agent([Candidate(text="I will start now")], max_cycles=1)

    with caplog.at_level("INFO", logger="minimalprompt.agents.agent_loop"):
        agent.run()

    assert "assistant says: I will start now" in caplog.text


def test_trace_store_records_tool_calls(tmp_path) -> None:
    trace_store = TraceStore(tmp_path)
    call = _call("executeCommand", "call-1", command="ls")
    agent = _agent([Candidate(tool_calls=(call,))], trace_store=trace_store, max_cycles=1)

    agent.run()

    records = [json.loads(line) for line in trace_store.tool_path.read_text().splitlines() if line.strip()]
    assert len(records) == 1
    assert records[0]["tool_name"] == "executeCommand"
    assert records[0]["call_id"] == "call-1"
    assert records[0]["status"] == "ok"
    events = [json.loads(line) for line in trace_store.event_path.read_text().splitlines() if line.strip()]
    assert events[-1]["payload"]["status"] == "max_cycles"


def test_trace_store_records_handler_crash(tmp_path) -> None:
    class EchoInput(BaseModel):
        text: str

    def crash(params: EchoInput) -> str:
        raise RuntimeError("handler bug")

    events = []

    class CollectingReporter:
        def emit(self, event) -> None:
            events.append(event)

    trace_store = TraceStore(tmp_path)
    registry = ToolRegistry(tools=[ToolSpec("echo", "Echo text", EchoInput, crash)])
    agent = AgentLoop(
        persona="You are a helpful agent.",
        prompt="Build the project.",
        driver=FakeDriver([Candidate(tool_calls=(_call("echo", "call-1", text="hi"),))]),
        registry=registry,
        prompter=ScriptedPrompter(),
        reporter=CollectingReporter(),
        trace_store=trace_store,
        cycle_delay_s=0,
    )

    with pytest.raises(RuntimeError):
        agent.run()

    records = [json.loads(line) for line in trace_store.tool_path.read_text().splitlines() if line.strip()]
    assert records[0]["status"] == "error"
    assert records[0]["error"] == "handler bug"
    ends = [event for event in events if event.name == "TOOL_CALL_END"]
    assert ends[0].payload["status"] == "error"
    assert agent.state == LoopState.TERMINATED_ERROR


def test_keyboard_interrupt_leaves_loop_terminated(tmp_path) -> None:
    trace_store = TraceStore(tmp_path)
    agent = _agent([KeyboardInterrupt()], trace_store=trace_store)

    with pytest.raises(KeyboardInterrupt):
        agent.run()

    assert agent.state == LoopState.TERMINATED_ERROR
    events = [json.loads(line) for line in trace_store.event_path.read_text().splitlines() if line.strip()]
    assert events[-1]["payload"]["status"] == "interrupted"


@pytest.mark.skipif(shutil.which("bash") is None, reason="bash is not installed")
def test_unlaunchable_command_is_reported_to_model(tmp_path) -> None:
    call = ToolCall(name="executeCommand", call_id="call-1", arguments=json.dumps({"command": "echo a\x00b"}))
    agent = AgentLoop(
        persona="You are a helpful agent.",
        prompt="Build the project.",
        driver=FakeDriver([Candidate(tool_calls=(call,))]),
        registry=build_default_registry(BashExecutor(tmp_path, shell=shutil.which("bash")), RecordingWriter()),
        prompter=ScriptedPrompter(),
        cycle_delay_s=0,
        max_cycles=1,
    )

    assert agent.run() == LoopState.TERMINATED_CLEAN
    result = agent.history.snapshot()[-1].parts[0]
    assert isinstance(result, ToolResultPart)
    assert result.content.startswith("The command failed with the output:\n")
