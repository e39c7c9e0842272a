"""Shared helpers for CLI commands."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, TypeVar

import typer

from relm.core.errors import ErrorCode
from relm.core.result import Err, Result
from relm.output.console import Style

if TYPE_CHECKING:
    from relm.cli.context import CLIContext


T = TypeVar("T")
E = TypeVar("E")

# Error kinds (release, package, verify, signing) -> exit code
_KIND_CODES: dict[str, ErrorCode] = {
    "invalid_input": ErrorCode.USER_ERROR,
    "dependency_missing": ErrorCode.USER_ERROR,
    "invalid_version": ErrorCode.USER_ERROR,
    "manifest_error": ErrorCode.USER_ERROR,
    "missing_token": ErrorCode.ENV_ERROR,
    "config_error": ErrorCode.ENV_ERROR,
    "command_failed": ErrorCode.COMMAND_ERROR,
    "pack_failed": ErrorCode.COMMAND_ERROR,
    "registry_error": ErrorCode.NETWORK_ERROR,
    "not_found": ErrorCode.NETWORK_ERROR,
    "auth_failed": ErrorCode.NETWORK_ERROR,
    "fetch_failed": ErrorCode.NETWORK_ERROR,
    "upload_failed": ErrorCode.NETWORK_ERROR,
    "verification_failed": ErrorCode.VERIFY_ERROR,
    "signing_failed": ErrorCode.VERIFY_ERROR,
}


def code_for_kind(kind: str | None) -> ErrorCode:
    if kind is None:
        return ErrorCode.USER_ERROR
    return _KIND_CODES.get(kind, ErrorCode.USER_ERROR)


def exit_on_error(result: Result[T, E], ctx: CLIContext) -> T:
    """Return the Ok value, or report the error and exit.

    Expects error objects to have ``kind``, ``message`` and optional ``hint``
    attributes; the exit code follows the kind.
    """
    if isinstance(result, Err):
        error = result.error
        message: str = getattr(error, "message", str(error))
        hint: str | None = getattr(error, "hint", None)
        ctx.console.error(message)
        if hint:
            ctx.console.print(f"hint: {hint}", Style.DIM)
        raise typer.Exit(code=int(code_for_kind(getattr(error, "kind", None))))
    return result.value


def echo_json(data: object) -> None:
    typer.echo(json.dumps(data, indent=2))
