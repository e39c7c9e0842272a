"""Bounded polling for a freshly published version."""

from __future__ import annotations

from collections.abc import Callable
from time import sleep

from relm.output.console import ProgressReporter

__all__ = ["MAX_ATTEMPTS", "DELAY_SECONDS", "poll"]

MAX_ATTEMPTS = 300
DELAY_SECONDS = 1.0


def poll(
    check: Callable[[], bool],
    *,
    progress: ProgressReporter,
    max_attempts: int = MAX_ATTEMPTS,
    delay: float = DELAY_SECONDS,
) -> bool:
    """Call ``check`` until it returns True or attempts run out.

    Returns whether the check succeeded. Exhaustion is not an error; the
    caller decides how to report it.
    """
    found = False
    attempts = 0

    progress.start("Polling for new version(s) to become available on npm")
    try:
        while attempts < max_attempts and not found:
            attempts += 1
            progress.update(f"attempt: {attempts} of {max_attempts}")
            found = check()
            if not found:
                sleep(delay)
    finally:
        progress.stop("done" if found else "failed")
    return found
