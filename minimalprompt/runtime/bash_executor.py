from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path
from typing import Optional

from minimalprompt.runtime.tool_backend import CommandExecutor, CommandOutcome

DEFAULT_SHELL = "/usr/bin/bash"


class BashExecutor(CommandExecutor):
    """Run bash commands inside a working directory.

    stdout and stderr are captured into a single stream, so the output reads the
    way it would in a terminal. A shell that cannot be launched is reported as a
    failed command rather than raised, and so is a command string the OS
    refuses to pass on.
    """

    def __init__(self, workdir: str | Path, *, shell: str = DEFAULT_SHELL, env: Optional[dict] = None) -> None:
        self.workdir = Path(workdir)
        self.shell = shell
        self.env = env
        self.logger = logging.getLogger(__name__)

    def execute(self, command: str) -> CommandOutcome:
        self.logger.info("executing command: %s", command)
        env = os.environ.copy()
        if self.env:
            env.update(self.env)
        try:
            proc = subprocess.run(
                [self.shell, "-c", command],
                cwd=str(self.workdir),
                env=env,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except (OSError, ValueError) as exc:
            # ValueError covers NUL bytes and unencodable characters in the command.
            self.logger.warning("could not launch %s: %s", self.shell, exc)
            return CommandOutcome(output=str(exc), success=False)
        return CommandOutcome(output=proc.stdout or "", success=proc.returncode == 0)


__all__ = ["BashExecutor", "DEFAULT_SHELL"]
