"""Release steps and the nightly / stable processes built from them.

Both processes share one shape: a flavor-specific version decision, the
"already published" guard, then the same publish sequence.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
from pathlib import Path

from relmod.core.config import ProjectConfig
from relmod.core.result import Err, Ok, Result
from relmod.output.console import ConsoleProtocol, Style
from relmod.release.decision import (
    clean_tag,
    decide_version,
    ensure_not_published,
    nightly_version,
    stable_source_tag,
    unique_suffix,
)
from relmod.release.environment import ReleaseEnvironment
from relmod.release.errors import ReleaseError
from relmod.release.github import detect_github_repo
from relmod.release.host import BuildHost, HookName
from relmod.release.pipeline import (
    CrossBuildAction,
    ReleaseStep,
    SingleAction,
    StepResult,
)
from relmod.release.registry import ModuleCoordinates, ModuleRegistry
from relmod.release.state import Flavor, ReleaseState
from relmod.release.version import Version, validate_publish_version, with_suffix

SNAPSHOT_SUFFIX = "-SNAPSHOT"


@dataclass(frozen=True, slots=True)
class ReleaseContext:
    """Collaborators shared by every step of one invocation."""

    root: Path
    config: ProjectConfig
    env: ReleaseEnvironment
    host: BuildHost
    registry: ModuleRegistry
    console: ConsoleProtocol
    today: Callable[[], date] = date.today
    rng: Callable[[], int] | None = None

    @property
    def module(self) -> ModuleCoordinates:
        m = self.config.module
        return ModuleCoordinates(
            organization=m.organization, name=m.name, binary_version=m.binary_version
        )

    def unique_suffix(self) -> str | None:
        """Build-unique suffix in test mode, None otherwise."""
        if not self.env.testing:
            return None
        return unique_suffix(self.env, self.rng)


def _current(state: ReleaseState) -> Result[Version, ReleaseError]:
    if state.current_version is None:
        return Err(
            ReleaseError(
                kind="configuration",
                message="no release version has been decided yet",
                hint="The version decision step must run before this step.",
            )
        )
    return Ok(state.current_version)


def compatibility_required(current: Version, previous: Version) -> bool:
    """Binary compatibility is enforced within a stable major line."""
    return current.major != 0 and current.major == previous.major


def snapshot_dependencies(dependencies: tuple[str, ...]) -> list[str]:
    return [dep for dep in dependencies if dep.rsplit(":", 1)[-1].endswith(SNAPSHOT_SUFFIX)]


# -----------------------------------------------------------------------------
# Version decision
# -----------------------------------------------------------------------------


def decide_version_step(ctx: ReleaseContext, *, suffix_in_test_mode: bool) -> ReleaseStep:
    def action(state: ReleaseState) -> StepResult:
        decided = decide_version(
            override=state.version_override, declared=ctx.config.module.version
        )
        if isinstance(decided, Err):
            return decided

        current = decided.value.current
        unique = ctx.unique_suffix() if suffix_in_test_mode else None
        if unique is not None:
            current = with_suffix(current, unique)

        state.current_version = current
        state.next_version = decided.value.next
        ctx.console.print(f"Current version is {current}.")
        ctx.console.print(f"Next version is set to {decided.value.next}.")
        return Ok(None)

    return ReleaseStep(name="decide version", action=SingleAction(action))


def tag_as_nightly_step(ctx: ReleaseContext) -> ReleaseStep:
    def action(state: ReleaseState) -> StepResult:
        current = _current(state)
        if isinstance(current, Err):
            return current

        nightly = nightly_version(current.value, ctx.today(), ctx.unique_suffix())
        state.current_version = nightly
        ctx.console.print(f"Nightly version is set to {nightly}.")
        return Ok(None)

    return ReleaseStep(name="tag as nightly", action=SingleAction(action))


def version_from_git_tag_step(ctx: ReleaseContext) -> ReleaseStep:
    def check(state: ReleaseState) -> StepResult:
        tag = stable_source_tag(override=state.version_override, env=ctx.env)
        if isinstance(tag, Err):
            return tag
        return Ok(None)

    def action(state: ReleaseState) -> StepResult:
        tag = stable_source_tag(override=state.version_override, env=ctx.env)
        if isinstance(tag, Err):
            return tag
        state.version_override = clean_tag(tag.value)
        ctx.console.print(f"Version read from the git tag: {state.version_override}")
        return Ok(None)

    return ReleaseStep(name="read version from git tag", action=SingleAction(action), check=check)


def check_not_published_step(ctx: ReleaseContext) -> ReleaseStep:
    def action(state: ReleaseState) -> StepResult:
        current = _current(state)
        if isinstance(current, Err):
            return current
        guarded = ensure_not_published(ctx.registry, ctx.module, current.value)
        if isinstance(guarded, Err):
            return guarded
        ctx.console.print(f"{ctx.module} {current.value} is not published yet", Style.DIM)
        return Ok(None)

    return ReleaseStep(name="check version is not published", action=SingleAction(action))


def set_release_version_step(ctx: ReleaseContext) -> ReleaseStep:
    def action(state: ReleaseState) -> StepResult:
        current = _current(state)
        if isinstance(current, Err):
            return current
        ctx.console.success(f"releasing {ctx.module} {current.value}")
        return Ok(None)

    return ReleaseStep(name="set release version", action=SingleAction(action))


# -----------------------------------------------------------------------------
# Shared publish sequence
# -----------------------------------------------------------------------------


def _validate_metadata(ctx: ReleaseContext) -> Result[str, ReleaseError]:
    """Resolve the SCM url and require at least one license."""
    module = ctx.config.module

    scm_url = module.scm_url
    if scm_url is None:
        repo = detect_github_repo(root=ctx.root, remote=ctx.config.github.remote)
        if isinstance(repo, Err):
            return Err(
                ReleaseError(
                    kind="configuration",
                    message="SCM information is missing",
                    hint="Set [module] scm_url, or add a GitHub remote.",
                )
            )
        scm_url = repo.value.url

    if not module.licenses:
        return Err(
            ReleaseError(
                kind="configuration",
                message="no license is defined for the module",
                hint="Set [module] licenses in release.toml.",
            )
        )
    return Ok(scm_url)


def validate_metadata_step(ctx: ReleaseContext) -> ReleaseStep:
    def check(state: ReleaseState) -> StepResult:
        del state
        validated = _validate_metadata(ctx)
        if isinstance(validated, Err):
            return validated
        return Ok(None)

    def action(state: ReleaseState) -> StepResult:
        del state
        validated = _validate_metadata(ctx)
        if isinstance(validated, Err):
            return validated
        ctx.console.print(f"scm: {validated.value}", Style.DIM)
        ctx.console.print(f"licenses: {', '.join(ctx.config.module.licenses)}", Style.DIM)
        return Ok(None)

    return ReleaseStep(name="validate metadata", action=SingleAction(action), check=check)


def _reject_snapshots(ctx: ReleaseContext) -> StepResult:
    snapshots = snapshot_dependencies(ctx.config.module.dependencies)
    if snapshots:
        return Err(
            ReleaseError(
                kind="step_failed",
                message="snapshot dependencies cannot be released: " + ", ".join(snapshots),
                hint="Depend on released versions only.",
            )
        )
    return Ok(None)


def check_snapshot_dependencies_step(ctx: ReleaseContext) -> ReleaseStep:
    def check(state: ReleaseState) -> StepResult:
        del state
        return _reject_snapshots(ctx)

    def action(state: ReleaseState, target: str | None) -> StepResult:
        del state, target
        return _reject_snapshots(ctx)

    return ReleaseStep(
        name="check snapshot dependencies", action=CrossBuildAction(action), check=check
    )


def run_tests_step(ctx: ReleaseContext) -> ReleaseStep:
    def check(state: ReleaseState) -> StepResult:
        if state.skip_tests:
            return Ok(None)
        return ctx.host.check_task("test")

    def action(state: ReleaseState, target: str | None) -> StepResult:
        if state.skip_tests:
            ctx.console.warning("tests skipped")
            return Ok(None)
        return ctx.host.run_tests(target=target)

    return ReleaseStep(name="run tests", action=CrossBuildAction(action), check=check)


def _configured_previous(ctx: ReleaseContext) -> Result[Version | None, ReleaseError]:
    raw = ctx.config.compat.previous_version
    if raw is None:
        return Ok(None)
    parsed = validate_publish_version(clean_tag(raw))
    if isinstance(parsed, Err):
        return Err(
            ReleaseError(
                kind="configuration",
                message=f"invalid [compat] previous_version: {raw}",
                hint="Use a released version like 1.1.0.",
            )
        )
    return Ok(parsed.value)


def compatibility_step(ctx: ReleaseContext) -> ReleaseStep:
    def check(state: ReleaseState) -> StepResult:
        del state
        configured = _configured_previous(ctx)
        if isinstance(configured, Err):
            return configured
        return Ok(None)

    def action(state: ReleaseState) -> StepResult:
        current = _current(state)
        if isinstance(current, Err):
            return current

        configured = _configured_previous(ctx)
        if isinstance(configured, Err):
            return configured
        previous = configured.value
        if previous is None:
            latest = ctx.registry.latest_version(ctx.module)
            if isinstance(latest, Err):
                return latest
            if latest.value is None:
                ctx.console.warning(
                    f"{ctx.module} was never published; skipping compatibility check"
                )
                return Ok(None)
            previous = latest.value

        strict = compatibility_required(current.value, previous)
        ctx.console.print(
            f"comparing against {previous} ({'strict' if strict else 'report only'})", Style.DIM
        )
        return ctx.host.check_compatibility(
            version=current.value,
            previous=previous,
            fail_on_problem=strict,
            target=None,
        )

    return ReleaseStep(
        name="check binary compatibility", action=SingleAction(action), check=check
    )


def hook_step(ctx: ReleaseContext, hook: HookName) -> ReleaseStep:
    def action(state: ReleaseState) -> StepResult:
        current = _current(state)
        if isinstance(current, Err):
            return current
        return ctx.host.run_hook(hook, version=current.value)

    return ReleaseStep(name=hook.replace("_", " ") + " hook", action=SingleAction(action))


def publish_step(ctx: ReleaseContext) -> ReleaseStep:
    def check(state: ReleaseState) -> StepResult:
        del state
        return ctx.host.check_task("publish")

    def action(state: ReleaseState, target: str | None) -> StepResult:
        current = _current(state)
        if isinstance(current, Err):
            return current
        return ctx.host.publish_signed(version=current.value, target=target)

    return ReleaseStep(name="publish artifacts", action=CrossBuildAction(action), check=check)


def promote_step(ctx: ReleaseContext) -> ReleaseStep:
    def check(state: ReleaseState) -> StepResult:
        del state
        return ctx.host.check_task("promote")

    def action(state: ReleaseState) -> StepResult:
        current = _current(state)
        if isinstance(current, Err):
            return current
        return ctx.host.promote(version=current.value)

    return ReleaseStep(name="promote release", action=SingleAction(action), check=check)


def publish_sequence(ctx: ReleaseContext) -> tuple[ReleaseStep, ...]:
    return (
        validate_metadata_step(ctx),
        check_snapshot_dependencies_step(ctx),
        run_tests_step(ctx),
        compatibility_step(ctx),
        hook_step(ctx, "before_publish"),
        publish_step(ctx),
        hook_step(ctx, "after_publish"),
        promote_step(ctx),
    )


def nightly_process(ctx: ReleaseContext) -> tuple[ReleaseStep, ...]:
    return (
        decide_version_step(ctx, suffix_in_test_mode=False),
        tag_as_nightly_step(ctx),
        check_not_published_step(ctx),
        set_release_version_step(ctx),
        *publish_sequence(ctx),
    )


def stable_process(ctx: ReleaseContext) -> tuple[ReleaseStep, ...]:
    return (
        version_from_git_tag_step(ctx),
        decide_version_step(ctx, suffix_in_test_mode=True),
        check_not_published_step(ctx),
        set_release_version_step(ctx),
        *publish_sequence(ctx),
    )


def release_process(flavor: Flavor, ctx: ReleaseContext) -> tuple[ReleaseStep, ...]:
    match flavor:
        case "nightly":
            return nightly_process(ctx)
        case "stable":
            return stable_process(ctx)
