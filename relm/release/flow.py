"""End-to-end release: install, build, sign, publish, wait, verify.

Stages are planned up front from the options and executed by the step
state machine, each handler returning the next ``ReleaseState``.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path

from relm.core.config import Config
from relm.core.result import Err, Ok, Result
from relm.net.http import HttpClient
from relm.output.console import ConsoleProtocol, ProgressReporter, Style
from relm.package_manager.base import Access
from relm.release.errors import ReleaseError
from relm.release.fsm import FINISH, StepHandler, StepOutcome, advance, run_state_machine
from relm.release.repository import PackageRepo, ReleaseState, Stage
from relm.signing.signer import Signer
from relm.verify.protocol import Verifier

__all__ = [
    "ReleaseOptions",
    "ReleaseResult",
    "STEP_TITLES",
    "check_prerequisites",
    "plan_steps",
    "release",
]

STEP_TITLES: dict[str, str] = {
    "install": "Install",
    "build": "Build",
    "sign": "Sign and Upload Security Files",
    "publish": "Publish",
    "wait": "Waiting For Availability",
    "verify": "Verify Signed Package",
}

DONE_STEP = "done"


@dataclass(frozen=True, slots=True)
class ReleaseOptions:
    """Release flags.

    Attributes:
        dry_run: Publish with ``--dry-run``; no signing, token or polling
        sign: Sign the tarball and upload signature artifacts
        install: Install dependencies and build before publishing
        verify: Wait for the version and verify its signature after publishing
        tag: Distribution tag to publish under
        access: Package access level
        prerelease: Prerelease identifier for version bumps ("" for unnamed)
    """

    dry_run: bool = False
    sign: bool = False
    install: bool = True
    verify: bool = True
    tag: str = "latest"
    access: Access = "public"
    prerelease: str | None = None


@dataclass(frozen=True, slots=True)
class ReleaseResult:
    name: str
    version: str

    def to_json(self) -> dict[str, str]:
        return {"name": self.name, "version": self.version}


def plan_steps(options: ReleaseOptions) -> tuple[str, ...]:
    steps: list[str] = []
    if options.install:
        steps += ["install", "build"]
    if options.sign and not options.dry_run:
        steps.append("sign")
    steps.append("publish")
    if options.verify and not options.dry_run:
        steps.append("wait")
    if options.sign and options.verify and not options.dry_run:
        steps.append("verify")
    return tuple(steps)


def check_prerequisites(options: ReleaseOptions, config: Config) -> Result[None, ReleaseError]:
    """Fail fast on missing configuration before anything runs."""
    if options.dry_run:
        return Ok(None)
    if not config.npm_token:
        return Err(
            ReleaseError(
                kind="missing_token",
                message="NPM_TOKEN environment variable is not set",
                hint="export NPM_TOKEN with publish rights on the registry",
            )
        )
    if options.sign and not config.signing.is_complete:
        return Err(
            ReleaseError(
                kind="config_error",
                message="signing requires an artifact bucket and a public base URL",
                hint="set RELM_SIGNING_BUCKET and RELM_SIGNING_BASE_URL",
            )
        )
    return Ok(None)


def _next(state: ReleaseState, stage: Stage) -> StepOutcome[ReleaseState]:
    return advance(replace(state, stage=stage, position=state.position + 1))


def _handlers(
    repo: PackageRepo,
    options: ReleaseOptions,
    *,
    console: ConsoleProtocol,
    progress: ProgressReporter,
    verifier: Verifier,
) -> dict[str, StepHandler[ReleaseState]]:
    def install(state: ReleaseState) -> Result[StepOutcome[ReleaseState], ReleaseError]:
        repo.print_stage(STEP_TITLES["install"])
        done = repo.install()
        if isinstance(done, Err):
            return done
        return Ok(_next(state, Stage.INSTALLED))

    def build(state: ReleaseState) -> Result[StepOutcome[ReleaseState], ReleaseError]:
        repo.print_stage(STEP_TITLES["build"])
        done = repo.build()
        if isinstance(done, Err):
            return done
        return Ok(_next(state, Stage.BUILT))

    def sign(state: ReleaseState) -> Result[StepOutcome[ReleaseState], ReleaseError]:
        repo.print_stage(STEP_TITLES["sign"])
        signed = repo.sign()
        if isinstance(signed, Err):
            repo.revert_changes()
            return signed
        return Ok(_next(replace(state, signature=signed.value), Stage.SIGNED))

    def publish(state: ReleaseState) -> Result[StepOutcome[ReleaseState], ReleaseError]:
        repo.print_stage(STEP_TITLES["publish"])
        try:
            done = repo.publish(
                dry_run=options.dry_run,
                signature=state.signature,
                access=options.access,
                tag=options.tag,
            )
        finally:
            if state.signature is not None:
                repo.revert_changes()
        if isinstance(done, Err):
            return done
        return Ok(_next(state, Stage.PUBLISHED))

    def wait(state: ReleaseState) -> Result[StepOutcome[ReleaseState], ReleaseError]:
        repo.print_stage(STEP_TITLES["wait"])
        found = repo.wait_for_availability(progress)
        if not found:
            console.warning(
                f"Exceeded timeout waiting for {state.name}@{state.next_version} to become available"
            )
        return Ok(_next(replace(state, available=found), Stage.VERIFIED_AVAILABLE))

    def verify(state: ReleaseState) -> Result[StepOutcome[ReleaseState], ReleaseError]:
        repo.print_stage(STEP_TITLES["verify"])
        identifier = f"{state.name}@{state.next_version}"
        console.print(f"relm verify --npm {identifier} {repo.registry.param}", Style.DIM)
        verified = verifier.verify(identifier, repo.registry.url)
        if isinstance(verified, Err):
            return Err(ReleaseError(kind="signing_failed", message=verified.error.message))
        if not verified.value.verified:
            console.warning(f"{identifier}: {verified.value.message}")
        return Ok(_next(state, Stage.SIGNATURE_VERIFIED))

    def done(state: ReleaseState) -> Result[StepOutcome[ReleaseState], ReleaseError]:
        return Ok(FINISH)

    return {
        "install": install,
        "build": build,
        "sign": sign,
        "publish": publish,
        "wait": wait,
        "verify": verify,
        DONE_STEP: done,
    }


def _get_step(state: ReleaseState) -> str:
    if state.position >= len(state.steps):
        return DONE_STEP
    return state.steps[state.position]


def release(
    location: Path,
    options: ReleaseOptions,
    config: Config,
    console: ConsoleProtocol,
    *,
    http: HttpClient,
    progress: ProgressReporter,
    signer: Signer | None = None,
) -> Result[ReleaseResult, ReleaseError]:
    """Release the package in ``location``.

    Returns the released name and version. Polling exhaustion and an
    unsigned package after signing are reported as warnings.
    """
    ready = check_prerequisites(options, config)
    if isinstance(ready, Err):
        return ready

    created = PackageRepo.create(
        location,
        config,
        console,
        prerelease=options.prerelease,
        signer=signer,
    )
    if isinstance(created, Err):
        return created
    repo = created.value

    steps = plan_steps(options)
    repo.total_stages = len(steps)
    console.info(f"releasing {repo.name}@{repo.next_version}")

    handlers = _handlers(
        repo,
        options,
        console=console,
        progress=progress,
        verifier=Verifier(http, console, config.npm_token),
    )
    final = run_state_machine(
        initial_state=replace(repo.state, steps=steps),
        get_step=_get_step,
        handlers=handlers,
    )
    if isinstance(final, Err):
        return final

    repo.state = replace(final.value, stage=Stage.DONE)
    console.success(repo.success_message())
    return Ok(ReleaseResult(name=repo.name, version=repo.next_version))
