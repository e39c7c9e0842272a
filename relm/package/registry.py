"""npm registry queries and local registry auth.

Queries go through ``npm view ... --json`` rather than HTTP so that the
user's npm configuration (proxies, scoped registries) applies.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import urlparse

from relm.core.config import DEFAULT_REGISTRY, is_github_packages
from relm.core.result import Err, Ok, Result
from relm.core.structured import StrDict, as_obj_list, as_str_dict, get_str, get_str_map
from relm.package.errors import PackageError
from relm.platform.files import atomic_write_text
from relm.platform.process import run as run_process

__all__ = ["NPMRC_FILE", "Registry", "RegistryRecord", "record_from_json"]

NPMRC_FILE = ".npmrc"

_VIEW_TIMEOUT_SECONDS = 120.0


@dataclass(frozen=True, slots=True)
class RegistryRecord:
    """What the registry knows about a package.

    Attributes:
        name: Package name
        version: Version of the matched document (None when unpublished)
        versions: Every published version
        dist_tags: Distribution tag -> version
    """

    name: str
    version: str | None = None
    versions: tuple[str, ...] = ()
    dist_tags: dict[str, str] = field(default_factory=dict)

    @property
    def published(self) -> bool:
        return bool(self.versions)

    def has_version(self, version: str) -> bool:
        return version in self.versions


def _versions_of(data: StrDict) -> tuple[str, ...]:
    raw = data.get("versions")
    if isinstance(raw, str):
        return (raw,)
    items = as_obj_list(raw)
    if items is None:
        return ()
    return tuple(v for v in items if isinstance(v, str))


def record_from_json(name: str, payload: object) -> RegistryRecord | None:
    """Build a record from ``npm view --json`` output.

    A list payload (several versions matched the query) resolves to its last
    element. Error documents and non-objects yield None.
    """
    items = as_obj_list(payload)
    if items is not None:
        if not items:
            return None
        payload = items[-1]

    data = as_str_dict(payload)
    if data is None or "error" in data:
        return None

    return RegistryRecord(
        name=get_str(data, "name") or name,
        version=get_str(data, "version"),
        versions=_versions_of(data),
        dist_tags=get_str_map(data, "dist-tags"),
    )


class Registry:
    """An npm-compatible registry (public npm or GitHub Packages)."""

    def __init__(self, url: str = DEFAULT_REGISTRY, *, cwd: Path | None = None) -> None:
        self.url = url if url.endswith("/") else url + "/"
        self.cwd = cwd or Path.cwd()

    def __repr__(self) -> str:
        return f"Registry({self.url!r})"

    @property
    def param(self) -> str:
        """Registry argument appended to npm/yarn commands."""
        return f"--registry {self.url}"

    @property
    def is_github_packages(self) -> bool:
        return is_github_packages(self.url)

    def auth_line(self, token: str) -> str:
        """``.npmrc`` line granting ``token`` access to this registry."""
        parsed = urlparse(self.url)
        return f"//{parsed.netloc}{parsed.path}:_authToken={token}"

    def write_auth(self, directory: Path, token: str) -> Result[Path, PackageError]:
        """Write the auth token into ``<directory>/.npmrc``.

        An existing auth line for this registry is replaced; other lines are
        kept.
        """
        npmrc = directory / NPMRC_FILE
        prefix = self.auth_line("")
        lines: list[str] = []
        try:
            if npmrc.exists():
                lines = [
                    line
                    for line in npmrc.read_text(encoding="utf-8").splitlines()
                    if not line.startswith(prefix)
                ]
            lines.append(self.auth_line(token))
            atomic_write_text(npmrc, "\n".join(lines) + "\n")
        except OSError as e:
            return Err(PackageError(kind="registry_error", message=f"cannot write {npmrc}: {e}"))
        return Ok(npmrc)

    def view(self, spec: str, *fields: str) -> object | None:
        """Run ``npm view <spec> [fields] --json`` and return the parsed JSON.

        A failed command, empty output or unparsable output all mean the
        registry has nothing to report.
        """
        cmd = ["npm", "view", spec, *fields, "--registry", self.url, "--json"]
        result = run_process(cmd, self.cwd, timeout=_VIEW_TIMEOUT_SECONDS)
        if isinstance(result, Err):
            return None
        stdout = result.value.strip()
        if not stdout:
            return None
        try:
            return json.loads(stdout)
        except json.JSONDecodeError:
            return None

    def fetch_record(self, name: str, version: str | None = None) -> RegistryRecord | None:
        """Record for ``name@version``, falling back to the unqualified name."""
        if version:
            record = record_from_json(name, self.view(f"{name}@{version}"))
            if record is not None:
                return record
        return record_from_json(name, self.view(name))

    def dist_tags(self, name: str) -> dict[str, str]:
        """Distribution tags of ``name`` ({} when unpublished)."""
        data = as_str_dict(self.view(name, "dist-tags"))
        if data is None or "error" in data:
            return {}
        return {k: v for k, v in data.items() if isinstance(v, str)}
