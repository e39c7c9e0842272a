from __future__ import annotations

from dataclasses import dataclass

import typer

from relm.core.config import Config, load_config
from relm.core.errors import ErrorCode
from relm.core.result import Err
from relm.net.http import HttpClient, RealHttpClient
from relm.output.console import ConsoleProtocol, ProgressReporter, RichConsole, progress_for


@dataclass(frozen=True, slots=True)
class CLIContext:
    config: Config
    console: ConsoleProtocol
    http: HttpClient

    def progress(self) -> ProgressReporter:
        return progress_for(self.console, ci=self.config.ci)


def build_context() -> CLIContext:
    config_result = load_config()
    if isinstance(config_result, Err):
        error = config_result.error
        typer.echo(f"error: {error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

    return CLIContext(
        config=config_result.value,
        console=RichConsole(),
        http=RealHttpClient(),
    )
