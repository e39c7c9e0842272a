"""Release command - version, build, sign, publish and verify an npm package."""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path

import typer

from relm.cli.commands._helpers import echo_json, exit_on_error
from relm.cli.context import CLIContext, build_context
from relm.release.flow import ReleaseOptions, release as run_release
from relm.signing.signer import Signer
from relm.signing.store import S3ArtifactStore


class AccessLevel(StrEnum):
    public = "public"
    restricted = "restricted"


def _signer(ctx: CLIContext) -> Signer | None:
    if not ctx.config.signing.is_complete:
        return None
    return Signer(ctx.config.signing, S3ArtifactStore(), ctx.console)


def release(
    dry_run: bool = typer.Option(
        False, "--dry-run", "--dryrun", "-d", help="Run npm publish with --dry-run"
    ),
    sign: bool = typer.Option(False, "--sign", "-s", help="Sign the package tarball"),
    npm_tag: str = typer.Option("latest", "--npm-tag", "--npmtag", "-t", help="Distribution tag"),
    npm_access: AccessLevel = typer.Option(
        AccessLevel.public, "--npm-access", "--npmaccess", "-a", help="Package access level"
    ),
    install: bool = typer.Option(
        True, "--install/--no-install", help="Install dependencies and build before publishing"
    ),
    prerelease: str | None = typer.Option(
        None,
        "--prerelease",
        help="Prerelease identifier passed to standard-version (e.g. beta)",
        show_default=False,
    ),
    verify: bool = typer.Option(
        True, "--verify/--no-verify", help="Wait for availability and verify the signature"
    ),
    github_tag: str | None = typer.Option(
        None,
        "--github-tag",
        "--githubtag",
        help="GitHub release tag being published (prints the resolved version)",
        show_default=False,
    ),
    path: Path = typer.Option(Path("."), "--path", help="Package directory"),
    json_output: bool = typer.Option(False, "--json", help="Print the result as JSON"),
) -> None:
    """Publish the package in the current directory to npm."""
    ctx = build_context()

    options = ReleaseOptions(
        dry_run=dry_run,
        sign=sign,
        install=install,
        verify=verify,
        tag=npm_tag,
        access="restricted" if npm_access is AccessLevel.restricted else "public",
        prerelease=prerelease,
    )

    location = path.expanduser().resolve()
    result = exit_on_error(
        run_release(
            location,
            options,
            ctx.config,
            ctx.console,
            http=ctx.http,
            progress=ctx.progress(),
            signer=_signer(ctx) if sign else None,
        ),
        ctx,
    )

    if github_tag:
        ctx.console.print(f"Using Version: {result.version}")
    if json_output:
        echo_json(result.to_json())
