from __future__ import annotations

from dataclasses import dataclass
from typing import Literal


@dataclass(frozen=True, slots=True)
class SigningError:
    """Failure while packing, signing or uploading a package."""

    kind: Literal["config_error", "pack_failed", "signing_failed", "upload_failed", "manifest_error"]
    message: str
    hint: str | None = None
