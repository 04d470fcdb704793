#!/usr/bin/env python3
"""
minimalprompt invokes a LLM to manipulate an output directory.

It requires the system prompt file, an initial prompt file and the output
directory.

WARNING: it gives the LLM access to write files and run commands in the output
directory. Any usage is at your own risk.

The user is prompted whenever the LLM will not proceed on its own. Send EOF
(Ctrl-D) to end a reply. Ctrl-C stops the run after the current cycle; a second
Ctrl-C interrupts immediately.
"""
from __future__ import annotations

import argparse
import logging
import signal
import sys
import threading
from pathlib import Path

from minimalprompt.agents import AgentLoop
from minimalprompt.errors import AgentError
from minimalprompt.llm.config import LLMConfig
from minimalprompt.llm.factory import build_driver
from minimalprompt.runtime import BashExecutor, TraceStore, WorkspaceFileWriter
from minimalprompt.tools import build_default_registry
from minimalprompt.ui import TerminalPrompter, create_reporter

USAGE = "minimalprompt [SYSTEM PROMPT] [INITIAL PROMPT] [OUTPUT DIR]"

logger = logging.getLogger("minimalprompt")


def _print_usage_and_exit() -> None:
    print(USAGE, file=sys.stderr)
    raise SystemExit(1)


def _read_prompt(path: str) -> str:
    try:
        return Path(path).read_text(encoding="utf-8")
    except OSError:
        _print_usage_and_exit()
    return ""


def _install_cancel_handler(cancel_event: threading.Event) -> None:
    def handler(signum, frame) -> None:
        if cancel_event.is_set():
            raise KeyboardInterrupt
        logger.warning("stop requested; finishing the current cycle")
        cancel_event.set()

    signal.signal(signal.SIGINT, handler)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Run a LLM agent against an output directory", usage=USAGE)
    parser.add_argument("system_prompt", help="File containing the system prompt")
    parser.add_argument("initial_prompt", help="File containing the initial prompt")
    parser.add_argument("output_dir", help="Directory the agent works in")

    # LLM API calls
    parser.add_argument("--config", default=None, help="LLM config YAML (or set MINIMALPROMPT_LLM_CONFIG)")
    parser.add_argument("--model", default=None, help="Override the configured model name")

    # Logging
    parser.add_argument("--log-level", default="INFO")
    parser.add_argument("--log-dir", default=None, help="Write log.log and JSONL traces here")

    # UI and loop
    parser.add_argument("--ui", choices=["rich", "plain", "off"], default="off")
    parser.add_argument("--ui-debug", action="store_true")
    parser.add_argument("--max-cycles", type=int, default=None)

    args = parser.parse_args(argv)

    persona = _read_prompt(args.system_prompt)
    prompt = _read_prompt(args.initial_prompt)
    output_dir = Path(args.output_dir).expanduser().resolve()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    trace_store = None
    if args.log_dir:
        log_dir = Path(args.log_dir).expanduser().resolve()
        log_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_dir / "log.log"))
        trace_store = TraceStore(log_dir)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=handlers,
    )

    try:
        llm_config = LLMConfig.from_env_or_file(args.config)
        if args.model:
            llm_config.model = args.model
        driver = build_driver(llm_config)
    except (OSError, ValueError) as exc:
        logger.error("initializing model: %s", exc)
        raise SystemExit(1)

    output_dir.mkdir(parents=True, exist_ok=True)
    registry = build_default_registry(
        BashExecutor(output_dir),
        WorkspaceFileWriter(output_dir),
    )
    reporter = create_reporter(args.ui, ui_debug=args.ui_debug)

    agent = AgentLoop(
        persona=persona,
        prompt=prompt,
        driver=driver,
        registry=registry,
        prompter=TerminalPrompter(sys.stdin, sys.stdout),
        reporter=reporter,
        trace_store=trace_store,
        max_cycles=args.max_cycles,
        model_name=llm_config.model,
    )

    cancel_event = threading.Event()
    _install_cancel_handler(cancel_event)

    reporter.start()
    try:
        agent.run(cancel_event)
    except AgentError as exc:
        logger.error("running agent: %s", exc)
        raise SystemExit(1)
    finally:
        reporter.close()


if __name__ == "__main__":
    main()
