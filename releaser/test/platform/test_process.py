"""Tests for releaser.platform.process module."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from releaser.core.result import Err, Ok
from releaser.platform.process import CommandResult, ProcessError, run, run_status


class TestProcessError:
    """Test ProcessError dataclass."""

    def test_str_short_command(self) -> None:
        error = ProcessError(
            command=("git", "status"),
            returncode=1,
            stdout="",
            stderr="fatal: not a git repository",
        )
        assert str(error) == "git status failed (exit 1)"

    def test_str_long_command_truncated(self) -> None:
        error = ProcessError(
            command=("twine", "upload", "--non-interactive", "dist/a.whl"),
            returncode=1,
            stdout="",
            stderr="error",
        )
        assert str(error) == "twine upload --non-interactive ... failed (exit 1)"

    def test_frozen(self) -> None:
        error = ProcessError(("cmd",), 1, "", "")
        with pytest.raises(AttributeError):
            error.returncode = 2  # type: ignore[misc]


class TestCommandResult:
    def test_success_and_to_error(self) -> None:
        result = CommandResult(("gh", "api"), 1, "out", "HTTP 404")
        assert result.success is False
        error = result.to_error()
        assert error.returncode == 1
        assert error.stderr == "HTTP 404"


class TestRunStatus:
    def test_reports_exit_code(self, tmp_path: Path) -> None:
        result = run_status([sys.executable, "-c", "import sys; sys.exit(3)"], tmp_path)
        assert result.exit_code == 3
        assert not result.success

    def test_feeds_stdin(self, tmp_path: Path) -> None:
        code = "import sys; print(sys.stdin.read().upper())"
        result = run_status([sys.executable, "-c", code], tmp_path, input_text="body")
        assert result.success
        assert result.stdout.strip() == "BODY"

    def test_missing_executable(self, tmp_path: Path) -> None:
        result = run_status(["definitely-not-a-real-binary-xyz"], tmp_path)
        assert result.exit_code == -1
        assert result.stderr

    def test_timeout(self, tmp_path: Path) -> None:
        result = run_status(
            [sys.executable, "-c", "import time; time.sleep(5)"], tmp_path, timeout=0.2
        )
        assert result.exit_code == -1
        assert "timed out" in result.stderr


class TestRun:
    """Test run function."""

    def test_success_returns_stdout(self, tmp_path: Path) -> None:
        result = run([sys.executable, "-c", "print('hello')"], cwd=tmp_path)

        assert isinstance(result, Ok)
        assert "hello" in result.value

    def test_failure_returns_error(self, tmp_path: Path) -> None:
        code = "import sys; sys.stderr.write('bad'); sys.exit(2)"
        result = run([sys.executable, "-c", code], cwd=tmp_path)

        assert isinstance(result, Err)
        assert result.error.returncode == 2
        assert result.error.stderr == "bad"
