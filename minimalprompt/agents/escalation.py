from __future__ import annotations

import logging
from typing import Protocol

from minimalprompt.errors import EscalationError
from minimalprompt.runtime.conversation_state import ConversationHistory, Role


class Prompter(Protocol):
    def prompt(self, question: str) -> str:
        ...


class HumanEscalation:
    """Hands control to the operator when the model stops on its own.

    The question is recorded as an assistant turn and the reply, exactly as
    typed, as a human turn.
    """

    def __init__(self, prompter: Prompter, history: ConversationHistory) -> None:
        self.prompter = prompter
        self.history = history
        self.logger = logging.getLogger(__name__)

    def escalate(self, question: str) -> str:
        self.history.append_text(Role.ASSISTANT, question)
        self.logger.info("waiting for user reply")
        try:
            reply = self.prompter.prompt(question)
        except Exception as exc:
            raise EscalationError(exc) from exc
        self.history.append_text(Role.HUMAN, reply)
        return reply


__all__ = ["HumanEscalation", "Prompter"]
