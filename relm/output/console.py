"""Console output abstraction.

Release and verify code report progress through ``ConsoleProtocol`` so that
they never depend on rich directly and tests can capture every line.

Long waits (polling the registry for a freshly published version) report
through a ``ProgressReporter``: an animated rich spinner on a terminal, or
plain log lines in CI where spinners only garble the log.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from rich.status import Status

__all__ = [
    "Style",
    "ConsoleProtocol",
    "ProgressReporter",
    "RichConsole",
    "MockConsole",
    "LineProgress",
    "SpinnerProgress",
    "progress_for",
]


class Style(Enum):
    """Text styles for console output."""

    DEFAULT = auto()
    SUCCESS = auto()
    ERROR = auto()
    WARNING = auto()
    INFO = auto()
    DIM = auto()  # echoed commands
    BOLD = auto()
    HEADER = auto()  # stage banners

    def __str__(self) -> str:
        return self.name.lower()


class ConsoleProtocol(Protocol):
    """Protocol for console output."""

    def print(self, message: str, style: Style = Style.DEFAULT) -> None: ...

    def success(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def info(self, message: str) -> None: ...

    def header(self, message: str) -> None: ...

    def newline(self) -> None: ...


class ProgressReporter(Protocol):
    """Start/update/stop reporting for a bounded wait."""

    def start(self, message: str) -> None: ...

    def update(self, message: str) -> None: ...

    def stop(self, message: str) -> None: ...


class RichConsole:
    """Console implementation using Rich library."""

    def __init__(self) -> None:
        # Import Rich lazily to avoid import-time dependency
        from rich.console import Console
        from rich.markup import escape

        self._console = Console(highlight=False)
        self._escape = escape
        self._style_map = {
            Style.DEFAULT: "",
            Style.SUCCESS: "green",
            Style.ERROR: "red bold",
            Style.WARNING: "yellow",
            Style.INFO: "cyan",
            Style.DIM: "dim",
            Style.BOLD: "bold",
            Style.HEADER: "cyan bold",
        }

    @property
    def rich(self) -> Any:
        """Underlying rich Console (used by SpinnerProgress)."""
        return self._console

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        rich_style = self._style_map.get(style, "")
        if rich_style:
            self._console.print(message, style=rich_style, markup=False)
        else:
            self._console.print(message, markup=False)

    def _labelled(self, label: str, message: str) -> None:
        # message is external text (tool stderr, paths), never markup
        self._console.print(f"{label} {self._escape(message)}")

    def success(self, message: str) -> None:
        self._labelled("[green]OK[/green]", message)

    def error(self, message: str) -> None:
        self._labelled("[red bold]error:[/red bold]", message)

    def warning(self, message: str) -> None:
        self._labelled("[yellow]warning:[/yellow]", message)

    def info(self, message: str) -> None:
        self._labelled("[cyan]info:[/cyan]", message)

    def header(self, message: str) -> None:
        self._console.print(message, style="cyan bold", markup=False)

    def newline(self) -> None:
        self._console.print()


@dataclass
class OutputRecord:
    """A single output record for MockConsole."""

    message: str
    style: Style


def _empty_outputs() -> list[OutputRecord]:
    return []


@dataclass
class MockConsole:
    """Console implementation that captures output for testing."""

    outputs: list[OutputRecord] = field(default_factory=_empty_outputs)

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        self.outputs.append(OutputRecord(message, style))

    def success(self, message: str) -> None:
        self.outputs.append(OutputRecord(f"OK {message}", Style.SUCCESS))

    def error(self, message: str) -> None:
        self.outputs.append(OutputRecord(f"error: {message}", Style.ERROR))

    def warning(self, message: str) -> None:
        self.outputs.append(OutputRecord(f"warning: {message}", Style.WARNING))

    def info(self, message: str) -> None:
        self.outputs.append(OutputRecord(f"info: {message}", Style.INFO))

    def header(self, message: str) -> None:
        self.outputs.append(OutputRecord(message, Style.HEADER))

    def newline(self) -> None:
        self.outputs.append(OutputRecord("", Style.DEFAULT))

    @property
    def messages(self) -> list[str]:
        return [o.message for o in self.outputs]

    @property
    def text(self) -> str:
        return "\n".join(self.messages)

    def has_error(self) -> bool:
        return any(o.style == Style.ERROR for o in self.outputs)

    def has_warning(self) -> bool:
        return any(o.style == Style.WARNING for o in self.outputs)

    def find(self, substring: str) -> list[OutputRecord]:
        return [o for o in self.outputs if substring in o.message]


class LineProgress:
    """Progress as plain console lines (CI logs)."""

    def __init__(self, console: ConsoleProtocol) -> None:
        self._console = console

    def start(self, message: str) -> None:
        self._console.print(message)

    def update(self, message: str) -> None:
        self._console.print(message, Style.DIM)

    def stop(self, message: str) -> None:
        self._console.print(message)


class SpinnerProgress:
    """Progress as a rich status spinner (interactive terminals)."""

    def __init__(self, console: RichConsole) -> None:
        self._console = console
        self._title = ""
        self._status: Status | None = None

    def start(self, message: str) -> None:
        self._title = message
        self._status = self._console.rich.status(message)
        self._status.start()

    def update(self, message: str) -> None:
        if self._status is not None:
            self._status.update(f"{self._title}... {message}")

    def stop(self, message: str) -> None:
        if self._status is not None:
            self._status.stop()
            self._status = None
        self._console.print(f"{self._title}... {message}")


def progress_for(console: ConsoleProtocol, *, ci: bool) -> ProgressReporter:
    """Pick a spinner for terminals and plain lines for CI or captured consoles."""
    if not ci and isinstance(console, RichConsole):
        return SpinnerProgress(console)
    return LineProgress(console)
