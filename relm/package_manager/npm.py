from __future__ import annotations

from typing import ClassVar

from relm.package_manager.base import CommandBuilder

__all__ = ["NpmCommands"]


class NpmCommands(CommandBuilder):
    """npm: ``npm <op> --prefix <dir>``, scripts via ``npm run <script>``."""

    name: ClassVar[str] = "npm"
    dir_flag: ClassVar[str] = "--prefix"
    script_keyword: ClassVar[str] = "run"
