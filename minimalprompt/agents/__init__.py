from .agent_loop import AgentLoop, LoopState, DEFAULT_CYCLE_DELAY_S
from .escalation import HumanEscalation, Prompter

__all__ = [
    "AgentLoop",
    "LoopState",
    "DEFAULT_CYCLE_DELAY_S",
    "HumanEscalation",
    "Prompter",
]
