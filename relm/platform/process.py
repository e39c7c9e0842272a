"""Subprocess execution with Result-based error handling.

Two entry points:
- ``run`` executes an argv list (used for `npm view` / `npm pack` queries)
- ``run_shell`` executes a shell command string, as produced by the command
  builders (`npm install --prefix ...`), optionally wrapped in `(cd x && ...)`

Usage:
    result = run_shell("npm run build --prefix /work/pkg", cwd=Path("/work/pkg"))
    match result:
        case Ok(stdout):
            print(stdout)
        case Err(error):
            print(error.stderr)
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path

from relm.core.result import Err, Ok, Result

__all__ = ["ProcessError", "run", "run_shell"]


@dataclass(frozen=True, slots=True)
class ProcessError:
    """Error from a failed subprocess execution.

    Attributes:
        command: The command that was executed.
        returncode: The exit code of the process (-1 if it never started).
        stdout: Standard output (may be empty).
        stderr: Standard error, surfaced verbatim to the user.
    """

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    def __str__(self) -> str:
        cmd_str = " ".join(self.command[:3])
        if len(self.command) > 3:
            cmd_str += " ..."
        return f"{cmd_str} failed (exit {self.returncode})"


def _aborted(command: tuple[str, ...], reason: str) -> Err[ProcessError]:
    return Err(ProcessError(command=command, returncode=-1, stdout="", stderr=reason))


def _outcome(
    command: tuple[str, ...], proc: subprocess.CompletedProcess[str]
) -> Result[str, ProcessError]:
    stdout = proc.stdout or ""
    if proc.returncode == 0:
        return Ok(stdout)
    return Err(
        ProcessError(
            command=command,
            returncode=proc.returncode,
            stdout=stdout,
            stderr=proc.stderr or "",
        )
    )


def run(
    cmd: list[str],
    cwd: Path,
    env: dict[str, str] | None = None,
    *,
    timeout: float | None = None,
) -> Result[str, ProcessError]:
    """Execute an argv command and return captured stdout or error."""
    command = tuple(cmd)
    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd),
            env=env,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired:
        return _aborted(command, f"Command timed out after {timeout}s")
    except OSError as e:
        return _aborted(command, str(e))
    return _outcome(command, proc)


def run_shell(
    command: str,
    cwd: Path,
    env: dict[str, str] | None = None,
    *,
    capture: bool = True,
) -> Result[str, ProcessError]:
    """Execute a shell command string.

    Args:
        command: Full command line, interpreted by the shell.
        cwd: Working directory for the command.
        env: Environment variables (uses current env if None).
        capture: Capture stdout and return it. When False, stdout streams to
            the terminal and Ok("") is returned. stderr is always captured so
            failures can be reported verbatim.

    Returns:
        Ok(stdout) on success, Err(ProcessError) on non-zero exit.
    """
    try:
        proc = subprocess.run(
            command,
            shell=True,
            cwd=str(cwd),
            env=env,
            stdout=subprocess.PIPE if capture else None,
            stderr=subprocess.PIPE,
            text=True,
            check=False,
        )
    except OSError as e:
        return _aborted((command,), str(e))
    return _outcome((command,), proc)
