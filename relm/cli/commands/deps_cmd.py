"""Dependency commands - pin, bump and resolve versions in package.json."""

from __future__ import annotations

from pathlib import Path

import typer

from relm.cli.commands._helpers import echo_json, exit_on_error
from relm.cli.context import CLIContext, build_context
from relm.output.console import Style
from relm.package.package import Package
from relm.package.registry import Registry

deps_app = typer.Typer(add_completion=False, no_args_is_help=True)

_PATH_OPTION = typer.Option(Path("."), "--path", help="Package directory")
_DRY_RUN_OPTION = typer.Option(False, "--dry-run", help="Print changes without writing package.json")


def _load(ctx: CLIContext, path: Path) -> Package:
    location = path.expanduser().resolve()
    registry = Registry(ctx.config.registry_url, cwd=location)
    return exit_on_error(Package.create(location, registry, ctx.console), ctx)


def _save(ctx: CLIContext, package: Package, dry_run: bool) -> None:
    if dry_run:
        ctx.console.print("dry run: package.json not written", Style.DIM)
        return
    package.write_manifest()
    ctx.console.success(f"updated {package.manifest.path}")


@deps_app.command("pin")
def pin(
    tag: str = typer.Option("latest", "--tag", "-t", help="Tag to pin dependencies to"),
    path: Path = _PATH_OPTION,
    dry_run: bool = _DRY_RUN_OPTION,
    json_output: bool = typer.Option(False, "--json", help="Print pinned packages as JSON"),
) -> None:
    """Hardcode every pinnedDependencies entry to a tagged version."""
    ctx = build_context()
    package = _load(ctx, path)

    pinned = exit_on_error(package.pin_dependency_versions(tag), ctx)
    for p in pinned:
        target = p.alias or p.name
        ctx.console.print(f"{target} -> {p.version} ({p.tag or 'untagged'})")
    _save(ctx, package, dry_run)

    if json_output:
        echo_json(
            [{"name": p.name, "version": p.version, "tag": p.tag, "alias": p.alias} for p in pinned]
        )


@deps_app.command("bump")
def bump(
    dependencies: list[str] = typer.Argument(..., help="Dependencies as name or name@version"),
    path: Path = _PATH_OPTION,
    dry_run: bool = _DRY_RUN_OPTION,
) -> None:
    """Set dependency versions (default: the dependency's latest tag)."""
    ctx = build_context()
    package = _load(ctx, path)

    bumped = exit_on_error(package.bump_dependency_versions(dependencies), ctx)
    for info in bumped:
        ctx.console.print(f"{info.dependency_name}: {info.current_version} -> {info.final_version}")
    _save(ctx, package, dry_run)


@deps_app.command("resolutions")
def resolutions(
    tag: str = typer.Option("latest", "--tag", "-t", help="Tag to resolve to"),
    path: Path = _PATH_OPTION,
    dry_run: bool = _DRY_RUN_OPTION,
) -> None:
    """Point every resolutions entry at a tagged version."""
    ctx = build_context()
    package = _load(ctx, path)

    bumped = exit_on_error(package.bump_resolutions(tag), ctx)
    for name, version in bumped.items():
        ctx.console.print(f"{name} -> {version}")
    _save(ctx, package, dry_run)


@deps_app.command("next-rc")
def next_rc(
    tag: str = typer.Option("latest", "--tag", "-t", help="Tag the candidate is based on"),
    patch: bool = typer.Option(False, "--patch", help="Bump the patch instead of the minor"),
    path: Path = _PATH_OPTION,
) -> None:
    """Print the next release candidate version."""
    ctx = build_context()
    package = _load(ctx, path)

    version = exit_on_error(package.next_rc_version(tag, is_patch=patch), ctx)
    typer.echo(version)
