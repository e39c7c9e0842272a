from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

VerifyErrorKind = Literal[
    "invalid_input",
    "not_found",
    "auth_failed",
    "fetch_failed",
    "verification_failed",
]


@dataclass(frozen=True, slots=True)
class VerifyError:
    """Fatal failure while verifying a published package.

    A package that is simply not signed is not an error.
    """

    kind: VerifyErrorKind
    message: str
    hint: str | None = None
    status: int | None = None
