"""Tests for relmod.release.steps module."""

from __future__ import annotations

from pathlib import Path

import pytest

from relmod.core.config import CompatConfig
from relmod.core.result import Err, Ok, Result
from relmod.output.console import MockConsole
from relmod.platform.process import ProcessError
from relmod.release import github as github_mod
from relmod.release.environment import ReleaseEnvironment
from relmod.release.errors import ReleaseError
from relmod.release.pipeline import CrossBuildAction, SingleAction
from relmod.release.state import ReleaseState
from relmod.release.steps import (
    check_snapshot_dependencies_step,
    compatibility_required,
    compatibility_step,
    decide_version_step,
    nightly_process,
    release_process,
    snapshot_dependencies,
    stable_process,
    tag_as_nightly_step,
    validate_metadata_step,
    version_from_git_tag_step,
)
from relmod.release.version import Version

from ._fakes import FakeHost, FakeRegistry, ci_environment, make_config, make_context


def _run_single(step_action: object, state: ReleaseState) -> Result[None, ReleaseError]:
    assert isinstance(step_action, SingleAction)
    return step_action.run(state)


def _run_cross(
    step_action: object, state: ReleaseState, target: str | None = None
) -> Result[None, ReleaseError]:
    assert isinstance(step_action, CrossBuildAction)
    return step_action.run(state, target)


class TestProcessShape:
    def test_nightly_order(self, tmp_path: Path) -> None:
        names = [s.name for s in nightly_process(make_context(tmp_path))]
        assert names[:4] == [
            "decide version",
            "tag as nightly",
            "check version is not published",
            "set release version",
        ]

    def test_stable_order(self, tmp_path: Path) -> None:
        names = [s.name for s in stable_process(make_context(tmp_path))]
        assert names[:4] == [
            "read version from git tag",
            "decide version",
            "check version is not published",
            "set release version",
        ]

    def test_shared_publish_sequence(self, tmp_path: Path) -> None:
        ctx = make_context(tmp_path)
        nightly = [s.name for s in release_process("nightly", ctx)]
        stable = [s.name for s in release_process("stable", ctx)]
        assert nightly[4:] == stable[4:] == [
            "validate metadata",
            "check snapshot dependencies",
            "run tests",
            "check binary compatibility",
            "before publish hook",
            "publish artifacts",
            "after publish hook",
            "promote release",
        ]


class TestVersionSteps:
    def test_decide_version_logs_current_and_next(self, tmp_path: Path) -> None:
        ctx = make_context(tmp_path)
        state = ReleaseState(flavor="nightly")

        result = _run_single(decide_version_step(ctx, suffix_in_test_mode=False).action, state)

        assert result == Ok(None)
        assert state.current_version == Version((1, 2, 0))
        assert state.next_version == Version((1, 3, 0))
        assert isinstance(ctx.console, MockConsole)
        assert "Current version is 1.2.0." in ctx.console.messages
        assert "Next version is set to 1.3.0." in ctx.console.messages

    def test_decide_version_suffix_in_test_mode(self, tmp_path: Path) -> None:
        env = ReleaseEnvironment(testing=True)
        ctx = make_context(tmp_path, env=env, rng_value=99)
        state = ReleaseState(flavor="stable", version_override="2.0.0")

        _run_single(decide_version_step(ctx, suffix_in_test_mode=True).action, state)

        assert str(state.current_version) == "2.0.0-99"
        assert str(state.next_version) == "2.1.0"

    def test_decide_version_no_suffix_outside_test_mode(self, tmp_path: Path) -> None:
        ctx = make_context(tmp_path)
        state = ReleaseState(flavor="stable", version_override="2.0.0")

        _run_single(decide_version_step(ctx, suffix_in_test_mode=True).action, state)

        assert str(state.current_version) == "2.0.0"

    def test_tag_as_nightly(self, tmp_path: Path) -> None:
        ctx = make_context(tmp_path)
        state = ReleaseState(flavor="nightly", current_version=Version((1, 2, 0)))

        _run_single(tag_as_nightly_step(ctx).action, state)

        assert str(state.current_version) == "1.2.0-alpha-2026-3-7"

    def test_tag_as_nightly_test_mode_uses_build_number(self, tmp_path: Path) -> None:
        env = ci_environment(build_number=812)
        env = ReleaseEnvironment(inside_ci=True, ci=env.ci, testing=True)
        ctx = make_context(tmp_path, env=env)
        state = ReleaseState(flavor="nightly", current_version=Version((1, 2, 0)))

        _run_single(tag_as_nightly_step(ctx).action, state)

        assert str(state.current_version) == "1.2.0-alpha-2026-3-7-812"

    def test_tag_as_nightly_requires_decision(self, tmp_path: Path) -> None:
        result = _run_single(
            tag_as_nightly_step(make_context(tmp_path)).action, ReleaseState(flavor="nightly")
        )
        assert isinstance(result, Err)

    def test_version_from_git_tag(self, tmp_path: Path) -> None:
        ctx = make_context(tmp_path, env=ci_environment(tag="v2.0.0"))
        step = version_from_git_tag_step(ctx)
        state = ReleaseState(flavor="stable")

        assert step.check(state) == Ok(None)
        assert _run_single(step.action, state) == Ok(None)
        assert state.version_override == "2.0.0"

    def test_version_from_git_tag_check_outside_ci(self, tmp_path: Path) -> None:
        step = version_from_git_tag_step(make_context(tmp_path))
        result = step.check(ReleaseState(flavor="stable"))
        assert isinstance(result, Err)
        assert result.error.kind == "environment"


class TestMetadata:
    def test_valid(self, tmp_path: Path) -> None:
        ctx = make_context(tmp_path)
        assert _run_single(validate_metadata_step(ctx).action, ReleaseState("nightly")) == Ok(None)

    def test_missing_licenses(self, tmp_path: Path) -> None:
        ctx = make_context(tmp_path, config=make_config(licenses=()))
        result = _run_single(validate_metadata_step(ctx).action, ReleaseState("nightly"))
        assert isinstance(result, Err)
        assert result.error.message == "no license is defined for the module"

    def test_scm_falls_back_to_github_remote(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def fake_run(
            cmd: list[str], cwd: Path, env: object = None, *, timeout: float | None = None
        ) -> Result[str, ProcessError]:
            return Ok("git@github.com:example/scheduler.git\n")

        monkeypatch.setattr(github_mod, "run_process", fake_run)
        ctx = make_context(tmp_path, config=make_config(scm_url=None))

        result = _run_single(validate_metadata_step(ctx).action, ReleaseState("nightly"))

        assert result == Ok(None)
        assert isinstance(ctx.console, MockConsole)
        assert "scm: https://github.com/example/scheduler" in ctx.console.messages

    def test_missing_scm(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        def fake_run(
            cmd: list[str], cwd: Path, env: object = None, *, timeout: float | None = None
        ) -> Result[str, ProcessError]:
            return Err(ProcessError(tuple(cmd), 1, "", ""))

        monkeypatch.setattr(github_mod, "run_process", fake_run)
        ctx = make_context(tmp_path, config=make_config(scm_url=None))

        result = _run_single(validate_metadata_step(ctx).action, ReleaseState("nightly"))

        assert isinstance(result, Err)
        assert result.error.message == "SCM information is missing"

    def test_check_rejects_missing_licenses(self, tmp_path: Path) -> None:
        ctx = make_context(tmp_path, config=make_config(licenses=()))
        result = validate_metadata_step(ctx).check(ReleaseState("nightly"))
        assert isinstance(result, Err)
        assert result.error.kind == "configuration"
        assert result.error.message == "no license is defined for the module"

    def test_check_rejects_missing_scm(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def fake_run(
            cmd: list[str], cwd: Path, env: object = None, *, timeout: float | None = None
        ) -> Result[str, ProcessError]:
            return Err(ProcessError(tuple(cmd), 1, "", ""))

        monkeypatch.setattr(github_mod, "run_process", fake_run)
        ctx = make_context(tmp_path, config=make_config(scm_url=None))

        result = validate_metadata_step(ctx).check(ReleaseState("nightly"))

        assert isinstance(result, Err)
        assert result.error.message == "SCM information is missing"

    def test_check_passes(self, tmp_path: Path) -> None:
        ctx = make_context(tmp_path)
        assert validate_metadata_step(ctx).check(ReleaseState("nightly")) == Ok(None)


class TestSnapshotDependencies:
    def test_detects_snapshots(self) -> None:
        deps = ("com.example:core:1.0.0", "com.example:util:2.1.0-SNAPSHOT")
        assert snapshot_dependencies(deps) == ["com.example:util:2.1.0-SNAPSHOT"]

    def test_step_fails_on_snapshot(self, tmp_path: Path) -> None:
        config = make_config(dependencies=("com.example:util:2.1.0-SNAPSHOT",))
        ctx = make_context(tmp_path, config=config)

        result = _run_cross(check_snapshot_dependencies_step(ctx).action, ReleaseState("nightly"))

        assert isinstance(result, Err)
        assert result.error.kind == "step_failed"
        assert "com.example:util:2.1.0-SNAPSHOT" in result.error.message

    def test_step_passes_without_snapshots(self, tmp_path: Path) -> None:
        ctx = make_context(tmp_path, config=make_config(dependencies=("a:b:1.0.0",)))
        result = _run_cross(check_snapshot_dependencies_step(ctx).action, ReleaseState("nightly"))
        assert result == Ok(None)

    def test_check_rejects_snapshot(self, tmp_path: Path) -> None:
        config = make_config(dependencies=("com.example:util:2.1.0-SNAPSHOT",))
        ctx = make_context(tmp_path, config=config)

        result = check_snapshot_dependencies_step(ctx).check(ReleaseState("nightly"))

        assert isinstance(result, Err)
        assert result.error.kind == "step_failed"


class TestCompatibility:
    @pytest.mark.parametrize(
        ("current", "previous", "strict"),
        [
            ((1, 3, 0), (1, 2, 0), True),
            ((2, 0, 0), (1, 9, 0), False),
            ((0, 4, 0), (0, 3, 0), False),
        ],
    )
    def test_policy(
        self, current: tuple[int, ...], previous: tuple[int, ...], strict: bool
    ) -> None:
        assert compatibility_required(Version(current), Version(previous)) is strict

    def test_skipped_when_never_published(self, tmp_path: Path) -> None:
        host = FakeHost()
        ctx = make_context(tmp_path, host=host, registry=FakeRegistry(latest=None))
        state = ReleaseState("nightly", current_version=Version((1, 2, 0)))

        result = _run_single(compatibility_step(ctx).action, state)

        assert result == Ok(None)
        assert host.calls == []
        assert isinstance(ctx.console, MockConsole)
        assert ctx.console.has_warning()

    def test_strict_within_major(self, tmp_path: Path) -> None:
        host = FakeHost()
        ctx = make_context(tmp_path, host=host, registry=FakeRegistry(latest=Version((1, 1, 0))))
        state = ReleaseState("nightly", current_version=Version((1, 2, 0)))

        _run_single(compatibility_step(ctx).action, state)

        assert host.calls == ["compat:1.2.0:1.1.0:strict"]

    def test_registry_error_propagates(self, tmp_path: Path) -> None:
        error = ReleaseError(kind="connectivity", message="down")
        ctx = make_context(tmp_path, registry=FakeRegistry(error=error))
        state = ReleaseState("nightly", current_version=Version((1, 2, 0)))

        assert _run_single(compatibility_step(ctx).action, state) == Err(error)

    def test_configured_previous_version_skips_registry(self, tmp_path: Path) -> None:
        host = FakeHost()
        registry = FakeRegistry(latest=Version((1, 1, 0)))
        config = make_config(compat=CompatConfig(previous_version="v1.0.0"))
        ctx = make_context(tmp_path, config=config, host=host, registry=registry)
        state = ReleaseState("nightly", current_version=Version((1, 2, 0)))

        result = _run_single(compatibility_step(ctx).action, state)

        assert result == Ok(None)
        assert host.calls == ["compat:1.2.0:1.0.0:strict"]
        assert registry.calls == []

    def test_check_rejects_invalid_previous_version(self, tmp_path: Path) -> None:
        config = make_config(compat=CompatConfig(previous_version="1.0.0-RC1"))
        ctx = make_context(tmp_path, config=config)

        result = compatibility_step(ctx).check(ReleaseState("nightly"))

        assert isinstance(result, Err)
        assert result.error.kind == "configuration"
        assert result.error.message == "invalid [compat] previous_version: 1.0.0-RC1"

    def test_check_passes_without_configured_version(self, tmp_path: Path) -> None:
        registry = FakeRegistry()
        ctx = make_context(tmp_path, registry=registry)

        assert compatibility_step(ctx).check(ReleaseState("nightly")) == Ok(None)
        assert registry.calls == []
