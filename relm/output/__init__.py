"""Output abstraction layer."""

from .console import (
    ConsoleProtocol,
    LineProgress,
    MockConsole,
    ProgressReporter,
    RichConsole,
    SpinnerProgress,
    Style,
    progress_for,
)

__all__ = [
    "ConsoleProtocol",
    "LineProgress",
    "MockConsole",
    "ProgressReporter",
    "RichConsole",
    "SpinnerProgress",
    "Style",
    "progress_for",
]
