"""Platform abstraction layer."""

from .files import atomic_write_text, write_json
from .process import (
    ProcessError,
    run,
    run_shell,
)

__all__ = [
    # files
    "atomic_write_text",
    "write_json",
    # process
    "ProcessError",
    "run",
    "run_shell",
]
