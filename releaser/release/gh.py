"""GitHub access through the `gh` CLI.

Reads are retried on transient network failures; writes are not, because
publish steps check for existing work before writing and are safe to rerun.
"""

from __future__ import annotations

import json
import shutil
from pathlib import Path
from time import sleep

from releaser.core.result import Err, Ok, Result
from releaser.platform.process import CommandResult, run_status
from releaser.release.errors import ReleaseError

__all__ = [
    "create_release",
    "ensure_gh_available",
    "is_transient_gh_error",
    "release_exists",
    "run_gh_read",
]

GH_TIMEOUT_SECONDS = 60.0
GH_READ_RETRY_ATTEMPTS = 3
GH_READ_RETRY_DELAY_SECONDS = 2.0

_ACCEPT = "Accept: application/vnd.github.v3+json"


def is_transient_gh_error(result: CommandResult) -> bool:
    text = f"{result.stderr}\n{result.stdout}".lower()
    markers = (
        "timed out",
        "timeout",
        "connection reset",
        "connection refused",
        "temporarily unavailable",
        "service unavailable",
        "bad gateway",
        "gateway timeout",
        "tls handshake timeout",
        "network is unreachable",
        "remote end hung up unexpectedly",
        "http 429",
        "http 500",
        "http 502",
        "http 503",
        "http 504",
    )
    return any(marker in text for marker in markers)


def run_gh_read(
    cmd: list[str],
    *,
    cwd: Path,
    timeout: float = GH_TIMEOUT_SECONDS,
    retry_attempts: int = GH_READ_RETRY_ATTEMPTS,
) -> CommandResult:
    """Run a read-only gh command, retrying transient failures."""
    attempts = max(1, retry_attempts)
    result = run_status(cmd, cwd, timeout=timeout)
    for attempt in range(1, attempts):
        if result.success or not is_transient_gh_error(result):
            break
        sleep(GH_READ_RETRY_DELAY_SECONDS * attempt)
        result = run_status(cmd, cwd, timeout=timeout)
    return result


def ensure_gh_available() -> Result[None, ReleaseError]:
    if shutil.which("gh") is None:
        return Err(
            ReleaseError(
                kind="invalid_input",
                message="gh: missing",
                hint="Install GitHub CLI: https://cli.github.com/",
            )
        )
    return Ok(None)


def release_exists(*, repo_path: str, tag: str, cwd: Path) -> Result[bool, ReleaseError]:
    """Whether a GitHub release exists for tag."""
    cmd = ["gh", "api", f"repos/{repo_path}/releases/tags/{tag}", "-H", _ACCEPT]
    result = run_gh_read(cmd, cwd=cwd)
    if result.success:
        return Ok(True)
    if "http 404" in f"{result.stderr}\n{result.stdout}".lower():
        return Ok(False)
    return Err(
        ReleaseError(
            kind="git_failed",
            message=f"Unable to query GitHub release {tag}",
            hint=result.stderr.strip() or None,
        )
    )


def create_release(
    *,
    repo_path: str,
    tag: str,
    target_sha: str,
    name: str,
    body: str,
    cwd: Path,
) -> Result[None, ReleaseError]:
    """Create a tag and release on GitHub in one API call."""
    payload = json.dumps(
        {"tag_name": tag, "target_commitish": target_sha, "name": name, "body": body}
    )
    cmd = ["gh", "api", f"repos/{repo_path}/releases", "--input", "-", "-H", _ACCEPT]
    result = run_status(cmd, cwd, timeout=GH_TIMEOUT_SECONDS, input_text=payload)
    if not result.success:
        return Err(
            ReleaseError(
                kind="git_failed",
                message=f"Unable to create release {tag}",
                hint=result.stderr.strip() or None,
            )
        )
    return Ok(None)
