"""Command builders for the target project's package manager.

A command builder turns an abstract operation (install, dedupe, build, run a
script, publish) into the literal shell command for one package manager,
scoped to the project directory. npm and yarn differ only in:
- the executable name
- the working-directory flag (``--prefix <dir>`` vs ``--cwd <dir>``)
- whether running a script needs the ``run`` keyword

Builders are pure: the same inputs always give the same string. Optional
parameters that are absent are simply left out.
"""

from __future__ import annotations

from abc import ABC
from pathlib import Path
from typing import ClassVar, Literal

__all__ = ["Access", "CommandBuilder"]

Access = Literal["public", "restricted"]


class CommandBuilder(ABC):
    """Base class for npm/yarn command builders.

    Subclasses define:
    - name: executable name ("npm", "yarn")
    - dir_flag: flag that scopes a command to a directory
    - script_keyword: keyword placed before a script name ("run" or "")
    """

    name: ClassVar[str]
    dir_flag: ClassVar[str]
    script_keyword: ClassVar[str]

    def __init__(self, project_root: Path | str) -> None:
        self.project_root = str(project_root)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.project_root!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CommandBuilder):
            return NotImplemented
        return type(self) is type(other) and self.project_root == other.project_root

    def __hash__(self) -> int:
        return hash((type(self), self.project_root))

    @property
    def _scope(self) -> str:
        return f"{self.dir_flag} {self.project_root}"

    def install_command(self, registry_param: str | None = None) -> str:
        """Install dependencies, e.g. ``npm install --prefix <dir> --registry <url>``."""
        cmd = f"{self.name} install {self._scope}"
        if registry_param:
            cmd += f" {registry_param}"
        return cmd

    def dedupe_command(self) -> str:
        return f"{self.name} dedupe {self._scope}"

    def build_command(self) -> str:
        return f"{self.name} run build {self._scope}"

    def script_command(self, script: str) -> str:
        """Run a manifest script (or any trailing command text)."""
        keyword = f"{self.script_keyword} " if self.script_keyword else ""
        return f"{self.name} {keyword}{script} {self._scope}"

    def publish_command(
        self,
        registry_param: str | None = None,
        access: Access | str | None = None,
        tag: str | None = None,
        dry_run: bool = False,
        tarball: str | None = None,
    ) -> str:
        """Publish the package.

        Options are appended in a fixed order: registry, access, tag,
        dry-run, tarball. Downstream tooling matches on argument position.
        """
        cmd = f"{self.name} publish {self._scope}"
        if registry_param:
            cmd += f" {registry_param}"
        if access:
            cmd += f" --access {access}"
        if tag:
            cmd += f" --tag {tag}"
        if dry_run:
            cmd += " --dry-run"
        if tarball:
            cmd += f" {tarball}"
        return cmd
