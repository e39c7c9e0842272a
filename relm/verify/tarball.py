"""Read files out of an in-memory npm tarball."""

from __future__ import annotations

import io
import json
import tarfile
from dataclasses import dataclass

from relm.core.result import Err, Ok, Result
from relm.core.structured import StrDict, as_str_dict

__all__ = ["MANIFEST_MEMBER", "TarballError", "read_manifest_from_tarball"]

MANIFEST_MEMBER = "package/package.json"


@dataclass(frozen=True, slots=True)
class TarballError:
    message: str


def _read_member(data: bytes, name: str) -> Result[bytes, TarballError]:
    try:
        with tarfile.open(fileobj=io.BytesIO(data), mode="r:*") as archive:
            try:
                member = archive.getmember(name)
            except KeyError:
                return Err(TarballError(f"{name} not found in tarball"))
            handle = archive.extractfile(member)
            if handle is None:
                return Err(TarballError(f"{name} is not a regular file"))
            with handle:
                return Ok(handle.read())
    except (tarfile.TarError, OSError, EOFError) as e:
        return Err(TarballError(f"cannot read tarball: {e}"))


def read_manifest_from_tarball(data: bytes) -> Result[StrDict, TarballError]:
    """Parse ``package/package.json`` from a gzipped npm tarball."""
    raw = _read_member(data, MANIFEST_MEMBER)
    if isinstance(raw, Err):
        return raw

    try:
        parsed: object = json.loads(raw.value.decode("utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        return Err(TarballError(f"invalid {MANIFEST_MEMBER}: {e}"))

    manifest = as_str_dict(parsed)
    if manifest is None:
        return Err(TarballError(f"{MANIFEST_MEMBER} is not a JSON object"))
    return Ok(manifest)
