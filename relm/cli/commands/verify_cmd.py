"""Verify command - check the digital signature of a published package."""

from __future__ import annotations

import typer

from relm.cli.commands._helpers import echo_json, exit_on_error
from relm.cli.context import build_context
from relm.verify.protocol import Verifier


def verify(
    npm: str = typer.Option(
        ..., "--npm", "-n", help="Package and version to verify (name@version)"
    ),
    registry: str | None = typer.Option(
        None,
        "--registry",
        "-r",
        help="Registry URL (defaults to NPM_REGISTRY or the public npm registry)",
        show_default=False,
    ),
    json_output: bool = typer.Option(False, "--json", help="Print the result as JSON"),
) -> None:
    """Verify the signature of a published npm package."""
    ctx = build_context()

    verifier = Verifier(ctx.http, ctx.console, ctx.config.npm_token)
    response = exit_on_error(verifier.verify(npm, registry or ctx.config.registry_url), ctx)

    if json_output:
        echo_json({"verified": response.verified, "message": response.message})
