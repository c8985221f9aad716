"""
User-facing message sinks for sort outcomes.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum

from rich.console import Console


class MessageLevel(Enum):
    INFO = "info"
    ERROR = "error"


@dataclass
class Message:
    level: MessageLevel
    text: str


class Reporter(ABC):
    """Base sink; accepts short informational or error messages."""

    @abstractmethod
    def info(self, text: str) -> None:
        pass

    @abstractmethod
    def error(self, text: str) -> None:
        pass


class ConsoleReporter(Reporter):
    """Print messages to the terminal"""

    def __init__(self, console: Console | None = None, quiet: bool = False):
        self.console = console or Console()
        self.quiet = quiet

    def info(self, text: str) -> None:
        if not self.quiet:
            self.console.print(text, markup=False, highlight=False)

    def error(self, text: str) -> None:
        self.console.print(text, style="red", markup=False, highlight=False)


@dataclass
class CollectingReporter(Reporter):
    """Keep messages in memory, for library callers and tests"""

    messages: list[Message] = field(default_factory=list)

    def info(self, text: str) -> None:
        self.messages.append(Message(MessageLevel.INFO, text))

    def error(self, text: str) -> None:
        self.messages.append(Message(MessageLevel.ERROR, text))

    @property
    def last(self) -> Message | None:
        return self.messages[-1] if self.messages else None

    def texts(self, level: MessageLevel | None = None) -> list[str]:
        return [m.text for m in self.messages if level is None or m.level == level]
