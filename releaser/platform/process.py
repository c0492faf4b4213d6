"""Subprocess execution with Result-based error handling.

Two entry points:
- `run` for commands whose failure is an error: Ok(stdout) or Err(ProcessError).
- `run_status` for commands whose exit code is information (for example
  "does this tag already exist?"): always returns a CommandResult.

Usage:
    match run(["git", "rev-parse", "HEAD"], cwd=repo_root):
        case Ok(stdout):
            sha = stdout.strip()
        case Err(error):
            console.error(str(error))
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path

from releaser.core.result import Err, Ok, Result

__all__ = ["CommandResult", "ProcessError", "run", "run_status"]


@dataclass(frozen=True, slots=True)
class ProcessError:
    """Error from a failed subprocess execution.

    Attributes:
        command: The command that was executed.
        returncode: The exit code of the process (-1 if it never ran).
        stdout: Standard output (may be empty).
        stderr: Standard error (contains error details).
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


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Outcome of a command, successful or not."""

    command: tuple[str, ...]
    exit_code: int
    stdout: str
    stderr: str

    @property
    def success(self) -> bool:
        return self.exit_code == 0

    def to_error(self) -> ProcessError:
        return ProcessError(
            command=self.command,
            returncode=self.exit_code,
            stdout=self.stdout,
            stderr=self.stderr,
        )


def run_status(
    cmd: list[str],
    cwd: Path,
    env: dict[str, str] | None = None,
    *,
    timeout: float | None = None,
    input_text: str | None = None,
) -> CommandResult:
    """Execute a command and report its exit code and captured output.

    A command that cannot be started or times out is reported with
    exit code -1 and the reason in stderr.
    """
    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd),
            env=env,
            input=input_text,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        stdout = e.stdout if isinstance(e.stdout, str) else ""
        return CommandResult(
            command=tuple(cmd),
            exit_code=-1,
            stdout=stdout,
            stderr=f"Command timed out after {timeout}s",
        )
    except OSError as e:
        return CommandResult(command=tuple(cmd), exit_code=-1, stdout="", stderr=str(e))

    return CommandResult(
        command=tuple(cmd),
        exit_code=proc.returncode,
        stdout=proc.stdout,
        stderr=proc.stderr,
    )


def run(
    cmd: list[str],
    cwd: Path,
    env: dict[str, str] | None = None,
    *,
    timeout: float | None = None,
    input_text: str | None = None,
) -> Result[str, ProcessError]:
    """Execute a command and return stdout or error.

    Args:
        cmd: Command and arguments to execute.
        cwd: Working directory for the command.
        env: Environment variables (uses current env if None).
        timeout: Maximum seconds to wait (None for no limit).
        input_text: Text fed to the command's stdin.

    Returns:
        Ok(stdout) on exit code 0, Err(ProcessError) otherwise.
    """
    result = run_status(cmd, cwd, env, timeout=timeout, input_text=input_text)
    if not result.success:
        return Err(result.to_error())
    return Ok(result.stdout)
