"""Tests for relmod.platform.process module."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from relmod.core.result import Err, Ok
from relmod.platform.process import ProcessError, run


class TestProcessError:
    def test_str_short_command(self) -> None:
        error = ProcessError(
            command=("git", "config"),
            returncode=1,
            stdout="",
            stderr="fatal: not a git repository",
        )
        assert str(error) == "git config failed (exit 1)"

    def test_str_long_command_truncated(self) -> None:
        error = ProcessError(
            command=("gh", "release", "create", "v1.0.0", "--repo", "o/r"),
            returncode=1,
            stdout="",
            stderr="error",
        )
        assert str(error) == "gh release create ... failed (exit 1)"

    def test_detail_prefers_last_stderr_line(self) -> None:
        error = ProcessError(("cmd",), 2, "out\n", "first\nsecond\n\n")
        assert error.detail == "second"

    def test_detail_falls_back_to_stdout(self) -> None:
        error = ProcessError(("cmd",), 2, "compiling\n[error] tests failed\n", "")
        assert error.detail == "[error] tests failed"

    def test_detail_none_when_silent(self) -> None:
        assert ProcessError(("cmd",), 2, "", "  \n").detail is None

    def test_frozen(self) -> None:
        error = ProcessError(("cmd",), 1, "", "")
        with pytest.raises(AttributeError):
            error.returncode = 2  # type: ignore[misc]


class TestRun:
    def test_success_returns_stdout(self, tmp_path: Path) -> None:
        result = run([sys.executable, "-c", "print('hello')"], cwd=tmp_path)

        assert isinstance(result, Ok)
        assert "hello" in result.value

    def test_failure_returns_error(self, tmp_path: Path) -> None:
        result = run(
            [sys.executable, "-c", "import sys; sys.stderr.write('bad\\n'); sys.exit(3)"],
            cwd=tmp_path,
        )

        assert isinstance(result, Err)
        assert result.error.returncode == 3
        assert "bad" in result.error.stderr

    def test_env_is_passed_to_child(self, tmp_path: Path) -> None:
        result = run(
            [sys.executable, "-c", "import os; print(os.environ['RELMOD_PROBE'])"],
            cwd=tmp_path,
            env={"RELMOD_PROBE": "present"},
        )

        assert isinstance(result, Ok)
        assert result.value.strip() == "present"

    def test_missing_executable(self, tmp_path: Path) -> None:
        result = run(["relmod-definitely-not-a-command"], cwd=tmp_path)

        assert isinstance(result, Err)
        assert result.error.returncode == -1

    def test_timeout(self, tmp_path: Path) -> None:
        result = run(
            [sys.executable, "-c", "import time; time.sleep(5)"], cwd=tmp_path, timeout=0.2
        )

        assert isinstance(result, Err)
        assert result.error.returncode == -1
        assert "timed out" in result.error.stderr
