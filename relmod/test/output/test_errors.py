"""Tests for relmod.output.errors module."""

from __future__ import annotations

import pytest

from relmod.core.errors import ErrorCode
from relmod.output.console import MockConsole, Style
from relmod.output.errors import print_release_error, release_error_exit_code
from relmod.release.errors import ReleaseError, ReleaseErrorKind


def test_print_with_step_and_hint() -> None:
    console = MockConsole()
    error = ReleaseError(kind="step_failed", message="test command failed (exit 1)", hint="boom")

    print_release_error(error, console, step="run tests")

    assert console.messages == ["error: run tests: test command failed (exit 1)", "hint: boom"]
    assert console.outputs[1].style == Style.DIM


def test_print_without_hint() -> None:
    console = MockConsole()
    print_release_error(ReleaseError(kind="io", message="disk full"), console)
    assert console.messages == ["error: disk full"]


@pytest.mark.parametrize(
    ("kind", "code"),
    [
        ("invalid_command", ErrorCode.USER_ERROR),
        ("invalid_version", ErrorCode.USER_ERROR),
        ("already_published", ErrorCode.USER_ERROR),
        ("configuration", ErrorCode.USER_ERROR),
        ("environment", ErrorCode.ENV_ERROR),
        ("step_failed", ErrorCode.BUILD_ERROR),
        ("connectivity", ErrorCode.NETWORK_ERROR),
        ("io", ErrorCode.IO_ERROR),
    ],
)
def test_exit_code_mapping(kind: ReleaseErrorKind, code: ErrorCode) -> None:
    assert release_error_exit_code(ReleaseError(kind=kind, message="x")) == int(code)
