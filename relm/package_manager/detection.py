"""Package manager detection for a target project.

Signals are checked in priority order:
1. ``yarn.lock`` -> yarn
2. ``package-lock.json`` -> npm
3. ``packageManager`` field in package.json (``yarn@4.1.0``, ``npm@10.2.0``)
4. npm

Detection never fails: unreadable or malformed manifests count as no signal.
"""

from __future__ import annotations

import json
from enum import Enum
from pathlib import Path

from relm.core.structured import as_str_dict, get_str
from relm.package_manager.base import CommandBuilder
from relm.package_manager.npm import NpmCommands
from relm.package_manager.yarn import YarnCommands

__all__ = ["PackageManager", "detect", "detect_kind"]

YARN_LOCKFILE = "yarn.lock"
NPM_LOCKFILE = "package-lock.json"
MANIFEST = "package.json"


class PackageManager(Enum):
    """Supported target package managers."""

    NPM = "npm"
    YARN = "yarn"

    def __str__(self) -> str:
        return self.value

    def builder(self, project_root: Path | str) -> CommandBuilder:
        if self is PackageManager.YARN:
            return YarnCommands(project_root)
        return NpmCommands(project_root)


def _read_package_manager_field(manifest: Path) -> str | None:
    try:
        data: object = json.loads(manifest.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError):
        return None
    table = as_str_dict(data)
    if table is None:
        return None
    return get_str(table, "packageManager")


def detect_kind(project_root: Path) -> PackageManager:
    """Detect which package manager the project uses."""
    if (project_root / YARN_LOCKFILE).exists():
        return PackageManager.YARN

    if (project_root / NPM_LOCKFILE).exists():
        return PackageManager.NPM

    field = _read_package_manager_field(project_root / MANIFEST)
    if field:
        manager = field.split("@", 1)[0]
        if manager == "yarn":
            return PackageManager.YARN
        if manager == "npm":
            return PackageManager.NPM

    return PackageManager.NPM


def detect(project_root: Path | str) -> CommandBuilder:
    """Return the command builder matching the project's package manager."""
    root = Path(project_root)
    return detect_kind(root).builder(project_root)
