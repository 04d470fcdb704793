"""
Workspace-scoped file writing for the agent.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path

from minimalprompt.runtime.tool_backend import FileWriter


def is_local_path(path: str) -> bool:
    """True if path is relative and stays inside its root once normalised."""
    if not path:
        return False
    if os.path.isabs(path) or Path(path).anchor:
        return False
    normalised = os.path.normpath(path)
    return normalised != ".." and not normalised.startswith(".." + os.sep)


def resolve_workspace_path(root: Path, path: str) -> Path:
    if not is_local_path(path):
        raise ValueError(f"path is not a local path: {path!r}")
    return root / os.path.normpath(path)


class WorkspaceFileWriter(FileWriter):
    def __init__(self, workdir: str | Path) -> None:
        self.workdir = Path(workdir)
        self.logger = logging.getLogger(__name__)

    def write_file(self, path: str, content: str) -> None:
        """Write content to path under the workspace, creating parent directories."""
        self.logger.info("writing file: %s", path)
        target = resolve_workspace_path(self.workdir, path)
        target.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
        fd = os.open(target, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(content)


__all__ = ["WorkspaceFileWriter", "is_local_path", "resolve_workspace_path"]
