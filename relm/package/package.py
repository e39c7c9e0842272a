"""The package being released: manifest plus what the registry knows about it."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

from relm.core.result import Err, Ok, Result
from relm.output.console import ConsoleProtocol
from relm.package.errors import PackageError
from relm.package.manifest import Manifest, read_manifest
from relm.package.registry import Registry, RegistryRecord
from relm.package.versions import (
    clean_range,
    is_greater,
    next_rc_version,
    parse_aliased_package_name,
    parse_package_version,
)

__all__ = ["DependencyInfo", "Package", "PinnedPackage"]

# "name" or "name@version", with an optional scope
_DEPENDENCY_SPEC_RE = re.compile(r"^((?:@[^/]+/)?[^@/]+)(?:@([^@/]+))?$")
# "name" or "name@tag"
_PINNED_ENTRY_RE = re.compile(r"^((?:@[^/]+/)?[^@]+)(?:@(.+))?$")

ALIAS_PREFIX = "npm:"
LATEST_TAG = "latest"


@dataclass(frozen=True, slots=True)
class DependencyInfo:
    """A manifest dependency, resolved through npm aliases.

    Attributes:
        dependency_name: Key in ``dependencies``
        package_name: Real package name (differs from the key for aliases)
        alias: Full alias spec (``npm:real@1.2.3``), None for plain deps
        current_version: Version text currently in the manifest
        final_version: Value written back by a bump, when one happened
    """

    dependency_name: str
    package_name: str
    alias: str | None
    current_version: str
    final_version: str | None = None


@dataclass(frozen=True, slots=True)
class PinnedPackage:
    """Outcome of pinning one dependency.

    ``tag`` is None when a higher pin was kept and no dist-tag points at it.
    """

    name: str
    version: str
    tag: str | None
    alias: str | None


@dataclass(frozen=True, slots=True)
class _PinRequest:
    name: str
    version: str
    alias: str | None
    tag: str


class Package:
    """Manifest accessor with registry lookups for one package directory.

    Attributes:
        location: Package directory
        manifest: Parsed package.json
        registry: Registry used for lookups
        record: Registry record for this package (default record when unpublished)
    """

    def __init__(
        self,
        location: Path,
        manifest: Manifest,
        registry: Registry,
        console: ConsoleProtocol,
        record: RegistryRecord | None = None,
    ) -> None:
        self.location = location
        self.manifest = manifest
        self.registry = registry
        self._console = console
        self.record = record or self.retrieve_record()

    @classmethod
    def create(
        cls, location: Path, registry: Registry, console: ConsoleProtocol
    ) -> Result[Package, PackageError]:
        manifest = read_manifest(location)
        if isinstance(manifest, Err):
            return manifest
        return Ok(cls(location, manifest.value, registry, console))

    @property
    def name(self) -> str:
        return self.manifest.name

    @property
    def version(self) -> str:
        return self.manifest.version

    def retrieve_record(self) -> RegistryRecord:
        """Registry record for the manifest version, else the latest one.

        Packages that were never published get a default record with no
        versions.
        """
        record = self.registry.fetch_record(self.name, self.version)
        if record is None:
            return RegistryRecord(name=self.name, version=self.version)
        return record

    def next_version_is_hardcoded(self) -> bool:
        """True when the manifest version has not been published yet."""
        return not self.record.has_version(self.version)

    def next_version_is_available(self, version: str) -> bool:
        """Re-query the registry and check whether ``version`` is published."""
        record = self.registry.fetch_record(self.name, version)
        return record is not None and record.has_version(version)

    def has_script(self, name: str) -> bool:
        return self.manifest.has_script(name)

    def write_manifest(self, location: Path | None = None) -> None:
        target = None if location is None else location / self.manifest.path.name
        self.manifest.write(target)

    def dist_tags(self, name: str) -> dict[str, str]:
        return self.registry.dist_tags(name)

    def next_rc_version(self, tag: str, is_patch: bool = False) -> Result[str, PackageError]:
        """Next release candidate, based on the version ``tag`` points at."""
        tagged = self.dist_tags(self.name).get(tag)
        if tagged is None:
            return Err(
                PackageError(
                    kind="registry_error",
                    message=f"{self.name} has no dist-tag {tag}",
                )
            )
        version = next_rc_version(tagged, is_patch)
        if version is None:
            return Err(
                PackageError(
                    kind="invalid_version",
                    message=f"{self.name}@{tag} points at an invalid version: {tagged}",
                )
            )
        return Ok(version)

    def bump_resolutions(self, tag: str) -> Result[dict[str, str], PackageError]:
        """Point every resolution at the version ``tag`` has for that package."""
        resolutions = self.manifest.resolutions
        if resolutions is None:
            return Err(
                PackageError(
                    kind="manifest_error",
                    message='bumping resolutions requires property "resolutions" in package.json',
                )
            )

        bumped: dict[str, str] = {}
        for name in resolutions:
            version = self.dist_tags(name).get(tag)
            if version is None:
                return Err(
                    PackageError(
                        kind="registry_error",
                        message=f"{name} has no dist-tag {tag}",
                    )
                )
            self.manifest.set_resolution(name, version)
            bumped[name] = version
        return Ok(bumped)

    def dependency_info(self, name: str) -> Result[DependencyInfo, PackageError]:
        """Look a dependency up by key, or by the package an alias points at.

        ``@acme/plugin-info`` finds both ``"@acme/plugin-info": "1.0.0"``
        and ``"@a/info": "npm:@acme/plugin-info@1.0.0"``.
        """
        for key, value in self.manifest.dependencies.items():
            if key == name:
                if value.startswith(ALIAS_PREFIX):
                    return Ok(
                        DependencyInfo(
                            dependency_name=key,
                            package_name=parse_aliased_package_name(value),
                            alias=value,
                            current_version=parse_package_version(value),
                        )
                    )
                return Ok(
                    DependencyInfo(
                        dependency_name=key,
                        package_name=key,
                        alias=None,
                        current_version=value,
                    )
                )
            if value.startswith(ALIAS_PREFIX) and parse_aliased_package_name(value) == name:
                return Ok(
                    DependencyInfo(
                        dependency_name=key,
                        package_name=name,
                        alias=value,
                        current_version=parse_package_version(value),
                    )
                )

        return Err(
            PackageError(
                kind="dependency_missing",
                message=f"{name} was not found in the dependencies section of package.json",
            )
        )

    def bump_dependency_versions(
        self, specs: list[str]
    ) -> Result[list[DependencyInfo], PackageError]:
        """Set each ``name[@version]`` dependency, defaulting to its latest tag."""
        bumped: list[DependencyInfo] = []
        for spec in specs:
            match = _DEPENDENCY_SPEC_RE.match(spec)
            if match is None:
                return Err(
                    PackageError(
                        kind="invalid_input",
                        message=f"invalid dependency: {spec}",
                        hint="expected <name> or <name>@<version>",
                    )
                )
            name, version = match.group(1), match.group(2)

            info = self.dependency_info(name)
            if isinstance(info, Err):
                return info
            dep = info.value

            final = version or self.dist_tags(dep.package_name).get(LATEST_TAG)
            if final is None:
                return Err(
                    PackageError(
                        kind="registry_error",
                        message=f"{dep.package_name} has no {LATEST_TAG} version",
                    )
                )
            if dep.alias:
                final = f"{ALIAS_PREFIX}{dep.package_name}@{final}"

            self.manifest.set_dependency(dep.dependency_name, final)
            bumped.append(
                DependencyInfo(
                    dependency_name=dep.dependency_name,
                    package_name=dep.package_name,
                    alias=dep.alias,
                    current_version=dep.current_version,
                    final_version=final,
                )
            )
        return Ok(bumped)

    def _pin_requests(self, entries: list[str], target_tag: str) -> list[_PinRequest]:
        dependencies = self.manifest.dependencies
        requests: list[_PinRequest] = []
        for entry in entries:
            match = _PINNED_ENTRY_RE.match(entry)
            if match is None:
                self._console.warning(f"invalid pinnedDependencies entry: {entry}. Skipping...")
                continue
            name, tag = match.group(1), match.group(2)

            spec = dependencies.get(name)
            if not spec:
                self._console.warning(
                    f"{name} was not found in the dependencies section of your package.json. "
                    "Skipping..."
                )
                continue

            if spec.startswith(ALIAS_PREFIX):
                requests.append(
                    _PinRequest(
                        name=parse_aliased_package_name(spec),
                        version=clean_range(spec),
                        alias=name,
                        tag=tag or target_tag,
                    )
                )
            else:
                requests.append(
                    _PinRequest(name=name, version=clean_range(spec), alias=None, tag=tag or target_tag)
                )
        return requests

    def pin_dependency_versions(self, target_tag: str) -> Result[list[PinnedPackage], PackageError]:
        """Hardcode every ``pinnedDependencies`` entry to a tagged version.

        Entries are ``name`` (uses ``target_tag``) or ``name@tag``. A tag the
        package does not have falls back to ``latest``. A current pin higher
        than the tagged version is kept as intentional.
        """
        entries = self.manifest.pinned_dependencies
        if entries is None:
            return Err(
                PackageError(
                    kind="manifest_error",
                    message=(
                        "pinning package dependencies requires property "
                        '"pinnedDependencies" in package.json'
                    ),
                )
            )

        pinned: list[PinnedPackage] = []
        for req in self._pin_requests(entries, target_tag):
            tags = self.dist_tags(req.name)
            resolved = req.tag if req.tag in tags else LATEST_TAG
            tagged = tags.get(resolved)
            if tagged is None:
                return Err(
                    PackageError(
                        kind="registry_error",
                        message=f"{req.name} has neither dist-tag {req.tag} nor {LATEST_TAG}",
                    )
                )

            if is_greater(req.version, tagged):
                self._console.warning(
                    f"{req.name} is currently pinned at {req.version} which is higher than "
                    f"{resolved} ({tagged}). Assuming that this is intentional..."
                )
                version = req.version
                tag: str | None = next((t for t, v in tags.items() if v == version), None)
            else:
                version = tagged
                tag = resolved

            if req.alias:
                self.manifest.set_dependency(req.alias, f"{ALIAS_PREFIX}{req.name}@{version}")
            else:
                self.manifest.set_dependency(req.name, version)
            pinned.append(PinnedPackage(name=req.name, version=version, tag=tag, alias=req.alias))

        return Ok(pinned)
