from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

PackageErrorKind = Literal[
    "manifest_error",
    "registry_error",
    "dependency_missing",
    "invalid_input",
    "invalid_version",
]


@dataclass(frozen=True, slots=True)
class PackageError:
    """Failure reading a manifest, querying the registry or editing dependencies."""

    kind: PackageErrorKind
    message: str
    hint: str | None = None

    def pretty(self) -> str:
        if self.hint:
            return f"{self.message} (hint: {self.hint})"
        return self.message
