"""Release operations on a single npm package.

``PackageRepo`` owns the collaborators of one release run (command builder,
package accessor, registry, signer) and exposes each stage as a method
returning a Result. The resolved name and next version live in an immutable
``ReleaseState`` created once by ``PackageRepo.create``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path

from relm.core.config import Config
from relm.core.result import Err, Ok, Result
from relm.output.console import ConsoleProtocol, ProgressReporter, Style
from relm.package.package import Package
from relm.package.registry import Registry
from relm.package.versions import increment_version, parse_bump_output
from relm.package_manager.base import Access, CommandBuilder
from relm.package_manager.detection import detect
from relm.platform.process import run_shell
from relm.release.errors import ReleaseError, from_package_error, from_signing_error
from relm.release.poll import poll
from relm.signing.signer import Signer, SigningResponse

__all__ = [
    "PackageInfo",
    "PackageRepo",
    "ReleaseState",
    "Stage",
    "bump_command",
]

BUILD_SCRIPT = "build"


class Stage(StrEnum):
    INITIALIZED = "initialized"
    INSTALLED = "installed"
    BUILT = "built"
    SIGNED = "signed"
    PUBLISHED = "published"
    VERIFIED_AVAILABLE = "verified_available"
    SIGNATURE_VERIFIED = "signature_verified"
    DONE = "done"


@dataclass(frozen=True, slots=True)
class ReleaseState:
    """Where one release run stands.

    Attributes:
        name: Package name
        next_version: Version being released (resolved once)
        builder: npm or yarn command builder for the package
        package: Manifest and registry accessor
        stage: Last completed stage
        steps: Planned step names, in order
        position: Index of the next step in ``steps``
        signature: Signing result, once signed
        available: Whether polling saw the version, once polled
    """

    name: str
    next_version: str
    builder: CommandBuilder
    package: Package
    stage: Stage = Stage.INITIALIZED
    steps: tuple[str, ...] = ()
    position: int = 0
    signature: SigningResponse | None = None
    available: bool | None = None


@dataclass(frozen=True, slots=True)
class PackageInfo:
    name: str
    next_version: str
    registry_param: str


def bump_command(prerelease: str | None = None) -> str:
    """standard-version invocation computing the next version without side effects."""
    cmd = "standard-version --dryrun --skip.tag --skip.changelog --skip.commit"
    if prerelease is not None:
        cmd += f" --prerelease {prerelease}" if prerelease else " --prerelease"
    return cmd


class PackageRepo:
    """One package being released.

    Attributes:
        location: Package directory
        config: Resolved runtime configuration
        registry: Registry the package is published to
        state: Name, next version and collaborators for this run
    """

    def __init__(
        self,
        location: Path,
        config: Config,
        console: ConsoleProtocol,
        registry: Registry,
        *,
        signer: Signer | None = None,
    ) -> None:
        self.location = location
        self.config = config
        self.registry = registry
        self._console = console
        self._signer = signer
        self._stage_counter = 0
        self.total_stages = 0
        self.state: ReleaseState

    @classmethod
    def create(
        cls,
        location: Path,
        config: Config,
        console: ConsoleProtocol,
        *,
        prerelease: str | None = None,
        signer: Signer | None = None,
    ) -> Result[PackageRepo, ReleaseError]:
        """Read the package, detect its package manager and resolve the next version."""
        registry = Registry(config.registry_url, cwd=location)
        repo = cls(location, config, console, registry, signer=signer)

        package = Package.create(location, registry, console)
        if isinstance(package, Err):
            return Err(from_package_error(package.error))

        builder = detect(location)
        version = repo.resolve_next_version(package.value, builder, prerelease)
        if isinstance(version, Err):
            return version

        repo.state = ReleaseState(
            name=package.value.name,
            next_version=version.value,
            builder=builder,
            package=package.value,
        )
        return Ok(repo)

    @property
    def name(self) -> str:
        return self.state.name

    @property
    def next_version(self) -> str:
        return self.state.next_version

    @property
    def package(self) -> Package:
        return self.state.package

    @property
    def builder(self) -> CommandBuilder:
        return self.state.builder

    def resolve_next_version(
        self, package: Package, builder: CommandBuilder, prerelease: str | None = None
    ) -> Result[str, ReleaseError]:
        """Pick the version to release.

        1. The manifest version, when it has not been published yet
        2. The version standard-version would bump to
        3. A local increment when standard-version's output is unrecognised
        """
        if package.next_version_is_hardcoded():
            return Ok(package.version)

        output = self.exec_command(builder.script_command(bump_command(prerelease)), silent=True)
        if isinstance(output, Err):
            return output

        parsed = parse_bump_output(output.value)
        if parsed is not None:
            return Ok(parsed)

        fallback = increment_version(package.version, prerelease)
        if fallback is None:
            return Err(
                ReleaseError(
                    kind="manifest_error",
                    message=f"cannot compute the next version of {package.name}@{package.version}",
                )
            )
        self._console.warning(f"could not parse standard-version output, using {fallback}")
        return Ok(fallback)

    def print_stage(self, stage: str) -> None:
        self._stage_counter += 1
        total = max(self.total_stages, self._stage_counter)
        self._console.header(f"[{self._stage_counter}/{total}] {stage}")

    def exec_command(self, cmd: str, silent: bool = False) -> Result[str, ReleaseError]:
        """Run a shell command in the package directory.

        Non-silent commands are echoed and stream their output; silent ones are
        captured and their stdout returned.
        """
        if not silent:
            self._console.print(cmd, Style.DIM)
            self._console.newline()

        result = run_shell(cmd, cwd=self.location, capture=silent)
        if isinstance(result, Err):
            error = result.error
            return Err(
                ReleaseError(
                    kind="command_failed",
                    message=error.stderr or str(error),
                    hint=f"command: {cmd}",
                )
            )
        return Ok(result.value)

    def install(self, silent: bool = False) -> Result[str, ReleaseError]:
        return self.exec_command(self.builder.install_command(self.registry.param), silent)

    def deduplicate(self, silent: bool = False) -> Result[str, ReleaseError]:
        return self.exec_command(self.builder.dedupe_command(), silent)

    def run(self, script: str, location: Path | str | None = None, silent: bool = False) -> Result[str, ReleaseError]:
        """Run a package script, optionally from another directory."""
        cmd = self.builder.script_command(script)
        if location:
            cmd = f"(cd {location} && {cmd})"
        return self.exec_command(cmd, silent)

    def test(self) -> Result[str, ReleaseError]:
        return self.exec_command(self.builder.script_command("test"))

    def build(self, silent: bool = False) -> Result[str, ReleaseError]:
        if not self.package.has_script(BUILD_SCRIPT):
            self._console.info("No build script found in package.json, skipping build step")
            return Ok("")
        return self.exec_command(self.builder.build_command(), silent)

    def write_npm_token(self) -> Result[Path, ReleaseError]:
        """Write the registry auth token into the package's .npmrc."""
        token = self.config.npm_token
        if not token:
            return Err(
                ReleaseError(
                    kind="missing_token",
                    message="NPM_TOKEN environment variable is not set",
                    hint="export NPM_TOKEN with publish rights on the registry",
                )
            )
        written = self.registry.write_auth(self.package.location, token)
        if isinstance(written, Err):
            return Err(from_package_error(written.error))
        return written

    def publish(
        self,
        *,
        dry_run: bool = False,
        signature: SigningResponse | None = None,
        access: Access | None = None,
        tag: str | None = None,
    ) -> Result[str, ReleaseError]:
        if not dry_run:
            written = self.write_npm_token()
            if isinstance(written, Err):
                return written

        tarball = str(signature.tarball) if signature is not None else None
        cmd = self.builder.publish_command(
            self.registry.param,
            access=access,
            tag=tag,
            dry_run=dry_run,
            tarball=tarball,
        )
        return self.exec_command(cmd)

    def sign(self) -> Result[SigningResponse, ReleaseError]:
        if self._signer is None:
            return Err(
                ReleaseError(
                    kind="config_error",
                    message="signing is not configured",
                    hint="set RELM_SIGNING_BUCKET and RELM_SIGNING_BASE_URL",
                )
            )
        signed = self._signer.sign(self.package.location)
        if isinstance(signed, Err):
            return Err(from_signing_error(signed.error))
        return signed

    def revert_changes(self) -> bool:
        """Restore package.json after signing rewrote it."""
        if self._signer is None:
            return False
        return self._signer.revert_changes()

    def wait_for_availability(self, progress: ProgressReporter) -> bool:
        version = self.next_version
        return poll(lambda: self.package.next_version_is_available(version), progress=progress)

    def pkg_info(self) -> PackageInfo:
        return PackageInfo(
            name=self.name,
            next_version=self.next_version,
            registry_param=self.registry.param,
        )

    def success_message(self) -> str:
        return f"Successfully released {self.name}@{self.next_version}"
