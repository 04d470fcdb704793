from .events import UIEvent, make_event
from .reporters import Reporter, NullReporter, PlainConsoleReporter, RichConsoleReporter, create_reporter
from .prompter import TerminalPrompter

__all__ = [
    "UIEvent",
    "make_event",
    "Reporter",
    "NullReporter",
    "PlainConsoleReporter",
    "RichConsoleReporter",
    "create_reporter",
    "TerminalPrompter",
]
