"""package.json access.

The manifest is kept as the raw JSON object so that fields relm does not know
about survive a read/modify/write cycle untouched, in their original order.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

from relm.core.result import Err, Ok, Result
from relm.core.structured import StrDict, as_str_dict, get_str, get_str_list, get_str_map, get_table
from relm.package.errors import PackageError
from relm.package.versions import parse_version
from relm.platform.files import write_json

__all__ = [
    "LEGACY_SIGNATURES_KEY",
    "MANIFEST_FILE",
    "SIGNATURES_KEY",
    "Manifest",
    "SignatureUrls",
    "read_manifest",
    "signature_urls",
]

MANIFEST_FILE = "package.json"

SIGNATURES_KEY = "signatures"
LEGACY_SIGNATURES_KEY = "sfdx"


@dataclass(frozen=True, slots=True)
class SignatureUrls:
    """Where a package's detached signature and public key are published."""

    signature_url: str
    public_key_url: str

    def to_json(self) -> dict[str, str]:
        return {"signatureUrl": self.signature_url, "publicKeyUrl": self.public_key_url}


def signature_urls(block: object) -> SignatureUrls | None:
    """Read a ``{signatureUrl, publicKeyUrl}`` block; None unless both are strings."""
    table = as_str_dict(block)
    if table is None:
        return None
    sig = table.get("signatureUrl")
    key = table.get("publicKeyUrl")
    if isinstance(sig, str) and isinstance(key, str):
        return SignatureUrls(signature_url=sig, public_key_url=key)
    return None


class Manifest:
    """A project's package.json.

    Attributes:
        path: Location of the file
        data: Raw JSON object (mutated in place by the setters)
    """

    def __init__(self, path: Path, data: StrDict) -> None:
        self.path = path
        self.data = data

    @property
    def name(self) -> str:
        return get_str(self.data, "name") or ""

    @property
    def version(self) -> str:
        return get_str(self.data, "version") or ""

    @property
    def dependencies(self) -> dict[str, str]:
        return get_str_map(self.data, "dependencies")

    @property
    def dev_dependencies(self) -> dict[str, str]:
        return get_str_map(self.data, "devDependencies")

    @property
    def scripts(self) -> dict[str, str]:
        return get_str_map(self.data, "scripts")

    @property
    def pinned_dependencies(self) -> list[str] | None:
        return get_str_list(self.data, "pinnedDependencies")

    @property
    def resolutions(self) -> dict[str, str] | None:
        if get_table(self.data, "resolutions") is None:
            return None
        return get_str_map(self.data, "resolutions")

    @property
    def package_manager(self) -> str | None:
        return get_str(self.data, "packageManager")

    @property
    def signatures(self) -> SignatureUrls | None:
        return signature_urls(self.data.get(SIGNATURES_KEY))

    @property
    def legacy_signatures(self) -> SignatureUrls | None:
        return signature_urls(self.data.get(LEGACY_SIGNATURES_KEY))

    def has_script(self, name: str) -> bool:
        return bool(self.scripts.get(name))

    def _section(self, key: str) -> StrDict:
        section = get_table(self.data, key)
        if section is None:
            section = {}
            self.data[key] = section
        return section

    def set_dependency(self, name: str, spec: str) -> None:
        self._section("dependencies")[name] = spec

    def set_resolution(self, name: str, spec: str) -> None:
        self._section("resolutions")[name] = spec

    def set_signatures(self, urls: SignatureUrls) -> None:
        self.data[SIGNATURES_KEY] = urls.to_json()

    def write(self, path: Path | None = None) -> None:
        """Write back (to ``path`` or the original location)."""
        write_json(path or self.path, self.data)


def read_manifest(location: Path) -> Result[Manifest, PackageError]:
    """Load ``<location>/package.json``.

    Requires a string ``name`` and a valid semantic ``version``.
    """
    path = location / MANIFEST_FILE
    try:
        raw: object = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return Err(
            PackageError(
                kind="manifest_error",
                message=f"{MANIFEST_FILE} not found in {location}",
                hint="run relm from the package root",
            )
        )
    except (OSError, UnicodeDecodeError) as e:
        return Err(PackageError(kind="manifest_error", message=f"cannot read {path}: {e}"))
    except json.JSONDecodeError as e:
        return Err(PackageError(kind="manifest_error", message=f"invalid JSON in {path}: {e}"))

    data = as_str_dict(raw)
    if data is None:
        return Err(PackageError(kind="manifest_error", message=f"{path} is not a JSON object"))

    manifest = Manifest(path, data)
    if not manifest.name:
        return Err(PackageError(kind="manifest_error", message=f"{path} has no name"))
    if parse_version(manifest.version) is None:
        return Err(
            PackageError(
                kind="invalid_version",
                message=f"{path} has an invalid version: {manifest.version or '(missing)'}",
            )
        )

    return Ok(manifest)
