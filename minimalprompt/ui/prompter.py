from __future__ import annotations

import sys
from typing import Optional, TextIO


class TerminalPrompter:
    """Shows a question and reads the reply until the end of the stream.

    End the reply with EOF (Ctrl-D on a terminal).
    """

    def __init__(self, reader: Optional[TextIO] = None, writer: Optional[TextIO] = None) -> None:
        self.reader = reader if reader is not None else sys.stdin
        self.writer = writer if writer is not None else sys.stdout

    def prompt(self, question: str) -> str:
        self.writer.write(f"{question}\n\nreply>")
        self.writer.flush()
        return self.reader.read()


__all__ = ["TerminalPrompter"]
