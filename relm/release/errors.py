from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from relm.package.errors import PackageError
from relm.signing.errors import SigningError

ReleaseErrorKind = Literal[
    "invalid_input",
    "missing_token",
    "command_failed",
    "registry_error",
    "manifest_error",
    "signing_failed",
    "config_error",
]


@dataclass(frozen=True, slots=True)
class ReleaseError:
    kind: ReleaseErrorKind
    message: str
    hint: str | None = None

    def pretty(self) -> str:
        if self.hint:
            return f"{self.message} (hint: {self.hint})"
        return self.message


def from_package_error(error: PackageError) -> ReleaseError:
    match error.kind:
        case "registry_error":
            kind: ReleaseErrorKind = "registry_error"
        case "invalid_input":
            kind = "invalid_input"
        case _:
            kind = "manifest_error"
    return ReleaseError(kind=kind, message=error.message, hint=error.hint)


def from_signing_error(error: SigningError) -> ReleaseError:
    kind: ReleaseErrorKind = "config_error" if error.kind == "config_error" else "signing_failed"
    return ReleaseError(kind=kind, message=error.message, hint=error.hint)
