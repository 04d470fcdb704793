from __future__ import annotations

import sys
from datetime import datetime
from typing import Any, Optional

from rich.console import Console
from rich.markup import escape

from .events import UIEvent


def _clean_text(value: Any) -> str:
    if value is None:
        return ""
    return " ".join(str(value).split())


def _truncate(value: Any, max_len: int = 160) -> str:
    text = _clean_text(value)
    if len(text) <= max_len:
        return text
    return text[: max(0, max_len - 3)] + "..."


def _summarize_event(event: UIEvent) -> str:
    name = event.name
    payload = event.payload or {}
    if name == "RUN_START":
        return f"model={payload.get('model_name', '')} tools={payload.get('n_tools', '')}".strip()
    if name == "LLM_CALL_END":
        n_candidates = payload.get("n_candidates")
        return f"{n_candidates} candidates" if n_candidates is not None else ""
    if name == "ASSISTANT_TEXT":
        return _truncate(payload.get("text", ""), 200)
    if name == "TOOL_CALL_START":
        tool = payload.get("tool", "")
        args = payload.get("arguments", "")
        return f"{tool} {_truncate(args, 140)}".strip()
    if name == "TOOL_CALL_END":
        tool = payload.get("tool", "")
        status = payload.get("status", "")
        return f"{tool} status={status}".strip()
    if name == "ESCALATION":
        return _truncate(payload.get("question", ""), 120)
    if name == "RUN_END":
        status = payload.get("status", "")
        error = payload.get("error")
        return f"status={status} error={_truncate(error, 120)}" if error else f"status={status}"
    return ""


def _format_plain_line(event: UIEvent) -> str:
    ts = datetime.fromtimestamp(event.ts).strftime("%H:%M:%S")
    summary = _summarize_event(event)
    return f"{ts} {event.name} {summary}".rstrip()


class Reporter:
    def start(self) -> None:
        pass

    def emit(self, event: UIEvent) -> None:
        pass

    def close(self) -> None:
        pass


class NullReporter(Reporter):
    def emit(self, event: UIEvent) -> None:
        return


class PlainConsoleReporter(Reporter):
    def __init__(self, *, stream=None, ui_debug: bool = False) -> None:
        self.stream = stream if stream is not None else sys.stdout
        self.ui_debug = ui_debug

    def emit(self, event: UIEvent) -> None:
        if event.name.startswith("LLM_CALL") and not self.ui_debug:
            return
        print(_format_plain_line(event), file=self.stream, flush=True)


_LEVEL_STYLES = {
    "warning": "yellow",
    "error": "bold red",
}

_NAME_STYLES = {
    "ASSISTANT_TEXT": "cyan",
    "TOOL_CALL_START": "magenta",
    "TOOL_CALL_END": "magenta",
    "ESCALATION": "bold green",
}


class RichConsoleReporter(Reporter):
    def __init__(self, *, console: Optional[Console] = None, ui_debug: bool = False) -> None:
        self.console = console or Console()
        self.ui_debug = ui_debug

    def emit(self, event: UIEvent) -> None:
        if event.name.startswith("LLM_CALL") and not self.ui_debug:
            return
        style = _LEVEL_STYLES.get(event.level) or _NAME_STYLES.get(event.name, "white")
        ts = datetime.fromtimestamp(event.ts).strftime("%H:%M:%S")
        summary = escape(_summarize_event(event))
        self.console.print(f"[dim]{ts}[/dim] [{style}]{event.name}[/] {summary}".rstrip())


def create_reporter(
    ui_mode: str,
    *,
    ui_debug: bool = False,
    is_tty: Optional[bool] = None,
) -> Reporter:
    if is_tty is None:
        is_tty = sys.stdout.isatty()
    mode = ui_mode
    if mode == "rich" and not is_tty:
        print("stdout is not a TTY; falling back to plain UI", file=sys.stderr)
        mode = "plain"
    if mode == "off":
        return NullReporter()
    if mode == "plain":
        return PlainConsoleReporter(ui_debug=ui_debug)
    if mode == "rich":
        return RichConsoleReporter(ui_debug=ui_debug)
    raise ValueError(f"Unknown ui mode: {ui_mode}")


__all__ = [
    "Reporter",
    "NullReporter",
    "PlainConsoleReporter",
    "RichConsoleReporter",
    "create_reporter",
]
