from __future__ import annotations

from typing import ClassVar

from relm.package_manager.base import CommandBuilder

__all__ = ["YarnCommands"]


class YarnCommands(CommandBuilder):
    """yarn: ``yarn <op> --cwd <dir>``, scripts invoked directly (``yarn test``)."""

    name: ClassVar[str] = "yarn"
    dir_flag: ClassVar[str] = "--cwd"
    script_keyword: ClassVar[str] = ""
