"""Target package managers (npm, yarn) as shell command builders."""

from .base import Access, CommandBuilder
from .detection import PackageManager, detect, detect_kind
from .npm import NpmCommands
from .yarn import YarnCommands

__all__ = [
    "Access",
    "CommandBuilder",
    "NpmCommands",
    "PackageManager",
    "YarnCommands",
    "detect",
    "detect_kind",
]
