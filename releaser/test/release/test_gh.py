from __future__ import annotations

import json
from pathlib import Path

import pytest

from releaser.core.result import Err, Ok
from releaser.platform.process import CommandResult
from releaser.release import gh as gh_mod


def _result(*, exit_code: int = 0, stdout: str = "", stderr: str = "") -> CommandResult:
    return CommandResult(
        command=("gh", "api", "repos/example/project"),
        exit_code=exit_code,
        stdout=stdout,
        stderr=stderr,
    )


def _no_sleep(seconds: float) -> None:
    del seconds


def test_run_gh_read_retries_transient_error(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    calls: list[list[str]] = []
    responses = [
        _result(exit_code=1, stderr="HTTP 503 Service Unavailable"),
        _result(stdout="{}"),
    ]

    def fake_run(cmd: list[str], cwd: Path, env: object = None, *, timeout: float | None = None):
        del cwd, env, timeout
        calls.append(cmd)
        return responses.pop(0)

    monkeypatch.setattr(gh_mod, "run_status", fake_run)
    monkeypatch.setattr(gh_mod, "sleep", _no_sleep)

    result = gh_mod.run_gh_read(["gh", "api", "x"], cwd=tmp_path)
    assert result.success
    assert len(calls) == 2


def test_run_gh_read_does_not_retry_non_transient(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    calls: list[list[str]] = []

    def fake_run(cmd: list[str], cwd: Path, env: object = None, *, timeout: float | None = None):
        del cwd, env, timeout
        calls.append(cmd)
        return _result(exit_code=1, stderr="HTTP 404 Not Found")

    monkeypatch.setattr(gh_mod, "run_status", fake_run)
    monkeypatch.setattr(gh_mod, "sleep", _no_sleep)

    result = gh_mod.run_gh_read(["gh", "api", "x"], cwd=tmp_path)
    assert not result.success
    assert len(calls) == 1


def test_run_gh_read_gives_up_after_attempts(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    calls: list[list[str]] = []

    def fake_run(cmd: list[str], cwd: Path, env: object = None, *, timeout: float | None = None):
        del cwd, env, timeout
        calls.append(cmd)
        return _result(exit_code=1, stderr="connection reset by peer")

    monkeypatch.setattr(gh_mod, "run_status", fake_run)
    monkeypatch.setattr(gh_mod, "sleep", _no_sleep)

    result = gh_mod.run_gh_read(["gh", "api", "x"], cwd=tmp_path, retry_attempts=3)
    assert not result.success
    assert len(calls) == 3


@pytest.mark.parametrize(
    ("stderr", "expected"),
    [
        ("HTTP 502 Bad Gateway", True),
        ("dial tcp: i/o timeout", True),
        ("HTTP 404 Not Found", False),
        ("HTTP 422 Validation Failed", False),
    ],
)
def test_is_transient_gh_error(stderr: str, expected: bool) -> None:
    assert gh_mod.is_transient_gh_error(_result(exit_code=1, stderr=stderr)) is expected


def test_release_exists(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    seen: list[list[str]] = []

    def fake_run(cmd: list[str], cwd: Path, env: object = None, *, timeout: float | None = None):
        del cwd, env, timeout
        seen.append(cmd)
        return _result(stdout='{"id": 1}')

    monkeypatch.setattr(gh_mod, "run_status", fake_run)

    result = gh_mod.release_exists(repo_path="owner/repo", tag="lib/v1.0.0", cwd=tmp_path)
    assert result == Ok(True)
    assert "repos/owner/repo/releases/tags/lib/v1.0.0" in seen[0]


def test_release_exists_not_found(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    def fake_run(cmd: list[str], cwd: Path, env: object = None, *, timeout: float | None = None):
        del cmd, cwd, env, timeout
        return _result(exit_code=1, stderr="gh: Not Found (HTTP 404)")

    monkeypatch.setattr(gh_mod, "run_status", fake_run)

    assert gh_mod.release_exists(repo_path="o/r", tag="v1", cwd=tmp_path) == Ok(False)


def test_release_exists_other_failure(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    def fake_run(cmd: list[str], cwd: Path, env: object = None, *, timeout: float | None = None):
        del cmd, cwd, env, timeout
        return _result(exit_code=1, stderr="gh: Bad credentials (HTTP 401)")

    monkeypatch.setattr(gh_mod, "run_status", fake_run)

    result = gh_mod.release_exists(repo_path="o/r", tag="v1", cwd=tmp_path)
    assert isinstance(result, Err)
    assert result.error.kind == "git_failed"
    assert result.error.hint == "gh: Bad credentials (HTTP 401)"


def test_create_release_sends_payload(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    captured: dict[str, object] = {}

    def fake_run(
        cmd: list[str],
        cwd: Path,
        env: object = None,
        *,
        timeout: float | None = None,
        input_text: str | None = None,
    ):
        del cwd, env, timeout
        captured["cmd"] = cmd
        captured["input"] = input_text
        return _result(stdout="{}")

    monkeypatch.setattr(gh_mod, "run_status", fake_run)

    result = gh_mod.create_release(
        repo_path="o/r",
        tag="lib/v1.2.0",
        target_sha="abc123",
        name="lib 1.2.0",
        body="### v1.2.0 / 2024-01-01\n",
        cwd=tmp_path,
    )

    assert isinstance(result, Ok)
    assert captured["cmd"][:3] == ["gh", "api", "repos/o/r/releases"]  # type: ignore[index]
    payload = json.loads(str(captured["input"]))
    assert payload == {
        "tag_name": "lib/v1.2.0",
        "target_commitish": "abc123",
        "name": "lib 1.2.0",
        "body": "### v1.2.0 / 2024-01-01\n",
    }


def test_create_release_failure(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    def fake_run(cmd: list[str], cwd: Path, env: object = None, **kwargs: object):
        del cmd, cwd, env, kwargs
        return _result(exit_code=1, stderr="Validation Failed")

    monkeypatch.setattr(gh_mod, "run_status", fake_run)

    result = gh_mod.create_release(
        repo_path="o/r", tag="v1", target_sha="abc", name="n", body="b", cwd=tmp_path
    )
    assert isinstance(result, Err)
    assert result.error.message == "Unable to create release v1"


def test_ensure_gh_available(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(gh_mod.shutil, "which", lambda name: None)
    result = gh_mod.ensure_gh_available()
    assert isinstance(result, Err)
    assert result.error.hint is not None
