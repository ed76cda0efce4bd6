"""Tests for relmod.release.host module."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from relmod.core.config import CommandsConfig, SigningConfig
from relmod.core.result import Err, Ok, Result
from relmod.output.console import MockConsole
from relmod.platform.process import ProcessError
from relmod.release import host as host_mod
from relmod.release.environment import Credentials, ReleaseEnvironment
from relmod.release.host import ShellBuildHost, render_command
from relmod.release.version import Version

from ._fakes import make_config


@dataclass
class RecordedRun:
    cmd: list[str]
    env: dict[str, str] = field(default_factory=dict)


@dataclass
class FakeRunner:
    runs: list[RecordedRun] = field(default_factory=list)
    fail_with: ProcessError | None = None

    def __call__(
        self,
        cmd: list[str],
        cwd: Path,
        env: Mapping[str, str] | None = None,
        *,
        timeout: float | None = None,
    ) -> Result[str, ProcessError]:
        self.runs.append(RecordedRun(cmd=cmd, env=dict(env or {})))
        if self.fail_with is not None:
            return Err(self.fail_with)
        return Ok("line 1\nline 2\n")


COMMANDS = CommandsConfig(
    test=("make", "test", "TARGET={target}"),
    compat=("make", "mima", "PREVIOUS={previous_version}"),
    publish=("make", "publish", "VERSION={version}", "TARGET={target}"),
    before_publish=("./hooks/pre.sh", "{version}"),
)

ENV = ReleaseEnvironment(
    credentials=Credentials(
        sonatype_username="bot", sonatype_password="s3cret", pgp_passphrase="pass"
    ),
    home=Path("/home/dev"),
    variables={"PATH": "/usr/bin"},
)


@pytest.fixture
def runner(monkeypatch: pytest.MonkeyPatch) -> FakeRunner:
    fake = FakeRunner()
    monkeypatch.setattr(host_mod, "run_process", fake)
    return fake


def _host(
    tmp_path: Path,
    *,
    commands: CommandsConfig = COMMANDS,
    signing: SigningConfig | None = None,
    env: ReleaseEnvironment = ENV,
) -> tuple[ShellBuildHost, MockConsole]:
    console = MockConsole()
    config = make_config(commands=commands, signing=signing or SigningConfig())
    return ShellBuildHost(root=tmp_path, config=config, env=env, console=console), console


def test_render_command() -> None:
    rendered = render_command(("echo", "{version}", "${HOME}", "{unknown}"), {"version": "1.0.0"})
    assert rendered == ["echo", "1.0.0", "${HOME}", "{unknown}"]


class TestCheckTask:
    def test_required_task_missing(self, tmp_path: Path) -> None:
        host, _ = _host(tmp_path, commands=CommandsConfig())
        result = host.check_task("test")
        assert isinstance(result, Err)
        assert result.error.kind == "configuration"

    def test_optional_task_missing(self, tmp_path: Path) -> None:
        host, _ = _host(tmp_path, commands=CommandsConfig())
        assert host.check_task("promote") == Ok(None)
        assert host.check_task("compat") == Ok(None)

    def test_publish_requires_passphrase(self, tmp_path: Path) -> None:
        host, _ = _host(tmp_path, env=ReleaseEnvironment(home=Path("/home/dev")))
        result = host.check_task("publish")
        assert isinstance(result, Err)
        assert "PLATFORM_PGP_PASSPHRASE" in result.error.message

    def test_publish_without_signing(self, tmp_path: Path) -> None:
        host, _ = _host(
            tmp_path, signing=SigningConfig(enabled=False), env=ReleaseEnvironment()
        )
        assert host.check_task("publish") == Ok(None)

    def test_check_never_runs_commands(self, tmp_path: Path, runner: FakeRunner) -> None:
        host, _ = _host(tmp_path)
        host.check_task("test")
        host.check_task("publish")
        assert runner.runs == []


class TestRun:
    def test_run_tests_with_target(self, tmp_path: Path, runner: FakeRunner) -> None:
        host, console = _host(tmp_path)

        assert host.run_tests(target="2.13") == Ok(None)

        assert runner.runs[0].cmd == ["make", "test", "TARGET=2.13"]
        assert runner.runs[0].env["PATH"] == "/usr/bin"
        assert "$ make test TARGET=2.13" in console.messages
        assert "line 2" in console.messages

    def test_failure_maps_to_step_failed(self, tmp_path: Path, runner: FakeRunner) -> None:
        runner.fail_with = ProcessError(("make",), 2, "", "[error] 3 tests failed\n")
        host, _ = _host(tmp_path)

        result = host.run_tests(target=None)

        assert isinstance(result, Err)
        assert result.error.kind == "step_failed"
        assert result.error.message == "test command failed (exit 2)"
        assert result.error.hint == "[error] 3 tests failed"

    def test_publish_injects_credentials_and_signing(
        self, tmp_path: Path, runner: FakeRunner
    ) -> None:
        host, _ = _host(tmp_path)

        assert host.publish_signed(version=Version((1, 2, 0)), target=None) == Ok(None)

        run = runner.runs[0]
        assert run.cmd == ["make", "publish", "VERSION=1.2.0", "TARGET="]
        assert run.env["SONATYPE_USERNAME"] == "bot"
        assert run.env["PGP_PASSPHRASE"] == "pass"
        assert run.env["PGP_SECRET_RING"] == "/home/dev/.gnupg/platform.secring.asc"

    def test_compat_strict_failure(self, tmp_path: Path, runner: FakeRunner) -> None:
        runner.fail_with = ProcessError(("make",), 1, "", "binary incompatible")
        host, _ = _host(tmp_path)

        result = host.check_compatibility(
            version=Version((1, 2, 0)),
            previous=Version((1, 1, 0)),
            fail_on_problem=True,
            target=None,
        )

        assert isinstance(result, Err)
        assert runner.runs[0].cmd == ["make", "mima", "PREVIOUS=1.1.0"]
        assert runner.runs[0].env["RELMOD_FAIL_ON_PROBLEM"] == "true"

    def test_compat_lax_failure_is_a_warning(self, tmp_path: Path, runner: FakeRunner) -> None:
        runner.fail_with = ProcessError(("make",), 1, "", "binary incompatible")
        host, console = _host(tmp_path)

        result = host.check_compatibility(
            version=Version((2, 0, 0)),
            previous=Version((1, 1, 0)),
            fail_on_problem=False,
            target=None,
        )

        assert result == Ok(None)
        assert console.has_warning()

    def test_missing_optional_commands(self, tmp_path: Path, runner: FakeRunner) -> None:
        host, _ = _host(tmp_path, commands=CommandsConfig(test=("t",), publish=("p",)))
        v = Version((1, 0, 0))

        assert host.promote(version=v) == Ok(None)
        assert host.run_hook("after_publish", version=v) == Ok(None)
        assert runner.runs == []

    def test_hook(self, tmp_path: Path, runner: FakeRunner) -> None:
        host, _ = _host(tmp_path)
        assert host.run_hook("before_publish", version=Version((1, 0, 0))) == Ok(None)
        assert runner.runs[0].cmd == ["./hooks/pre.sh", "1.0.0"]
