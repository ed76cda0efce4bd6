"""Host build tool boundary.

The release pipeline never builds, tests or uploads anything itself: it
asks a BuildHost. ShellBuildHost runs the argv templates configured under
[commands] in release.toml.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Literal, Protocol

from relmod.core.config import ProjectConfig
from relmod.core.result import Err, Ok, Result
from relmod.output.console import ConsoleProtocol, Style
from relmod.platform.process import run as run_process
from relmod.release.environment import ReleaseEnvironment
from relmod.release.errors import ReleaseError
from relmod.release.signing import resolve_signing
from relmod.release.version import Version

__all__ = ["BuildHost", "HookName", "ShellBuildHost", "TaskName"]

TaskName = Literal["test", "compat", "publish", "promote"]
HookName = Literal["before_publish", "after_publish"]

_REQUIRED_TASKS: frozenset[TaskName] = frozenset({"test", "publish"})


class BuildHost(Protocol):
    def check_task(self, task: TaskName) -> Result[None, ReleaseError]:
        """Side-effect-free probe: can this task run at all?"""
        ...

    def run_tests(self, *, target: str | None) -> Result[None, ReleaseError]: ...

    def check_compatibility(
        self,
        *,
        version: Version,
        previous: Version,
        fail_on_problem: bool,
        target: str | None,
    ) -> Result[None, ReleaseError]: ...

    def publish_signed(self, *, version: Version, target: str | None) -> Result[None, ReleaseError]: ...

    def promote(self, *, version: Version) -> Result[None, ReleaseError]: ...

    def run_hook(self, hook: HookName, *, version: Version) -> Result[None, ReleaseError]: ...


def render_command(template: tuple[str, ...], values: Mapping[str, str]) -> list[str]:
    """Substitute {placeholders} without touching other braces."""
    out: list[str] = []
    for arg in template:
        for key, value in values.items():
            arg = arg.replace("{" + key + "}", value)
        out.append(arg)
    return out


class ShellBuildHost:
    def __init__(
        self,
        *,
        root: Path,
        config: ProjectConfig,
        env: ReleaseEnvironment,
        console: ConsoleProtocol,
    ) -> None:
        self._root = root
        self._config = config
        self._env = env
        self._console = console

    def _template(self, task: TaskName | HookName) -> tuple[str, ...] | None:
        commands = self._config.commands
        match task:
            case "test":
                return commands.test
            case "compat":
                return commands.compat
            case "publish":
                return commands.publish
            case "promote":
                return commands.promote
            case "before_publish":
                return commands.before_publish
            case "after_publish":
                return commands.after_publish

    def _run(
        self,
        task: TaskName | HookName,
        template: tuple[str, ...],
        *,
        values: Mapping[str, str],
        extra_env: Mapping[str, str] | None = None,
    ) -> Result[None, ReleaseError]:
        cmd = render_command(template, values)
        self._console.print("$ " + " ".join(cmd), Style.DIM)

        child_env = dict(self._env.variables)
        if extra_env:
            child_env.update(extra_env)

        result = run_process(
            cmd,
            cwd=self._root,
            env=child_env or None,
            timeout=self._config.commands.timeout,
        )
        if isinstance(result, Err):
            e = result.error
            return Err(
                ReleaseError(
                    kind="step_failed",
                    message=f"{task} command failed (exit {e.returncode})",
                    hint=e.detail,
                )
            )

        for line in result.value.strip().splitlines()[-5:]:
            self._console.print(line, Style.DIM)
        return Ok(None)

    def check_task(self, task: TaskName) -> Result[None, ReleaseError]:
        if task in _REQUIRED_TASKS and self._template(task) is None:
            return Err(
                ReleaseError(
                    kind="configuration",
                    message=f"no '{task}' command configured",
                    hint=f"Add [commands] {task} = [...] to release.toml.",
                )
            )
        if task == "publish":
            signing = resolve_signing(self._config.signing, self._env)
            if isinstance(signing, Err):
                return signing
        return Ok(None)

    def run_tests(self, *, target: str | None) -> Result[None, ReleaseError]:
        template = self._template("test")
        if template is None:
            return Err(ReleaseError(kind="configuration", message="no 'test' command configured"))
        return self._run("test", template, values={"target": target or ""})

    def check_compatibility(
        self,
        *,
        version: Version,
        previous: Version,
        fail_on_problem: bool,
        target: str | None,
    ) -> Result[None, ReleaseError]:
        template = self._template("compat")
        if template is None:
            self._console.warning("no 'compat' command configured; skipping compatibility check")
            return Ok(None)

        result = self._run(
            "compat",
            template,
            values={
                "version": str(version),
                "previous_version": str(previous),
                "target": target or "",
            },
            extra_env={"RELMOD_FAIL_ON_PROBLEM": "true" if fail_on_problem else "false"},
        )
        if isinstance(result, Err) and not fail_on_problem:
            self._console.warning(
                f"compatibility problems against {previous} are allowed for {version}"
            )
            return Ok(None)
        return result

    def publish_signed(self, *, version: Version, target: str | None) -> Result[None, ReleaseError]:
        template = self._template("publish")
        if template is None:
            return Err(
                ReleaseError(kind="configuration", message="no 'publish' command configured")
            )

        signing = resolve_signing(self._config.signing, self._env)
        if isinstance(signing, Err):
            return signing

        extra_env = self._env.credentials.as_env()
        if signing.value is not None:
            extra_env.update(signing.value.as_env())

        return self._run(
            "publish",
            template,
            values={"version": str(version), "target": target or ""},
            extra_env=extra_env,
        )

    def promote(self, *, version: Version) -> Result[None, ReleaseError]:
        template = self._template("promote")
        if template is None:
            self._console.print("no 'promote' command configured; nothing to promote", Style.DIM)
            return Ok(None)
        return self._run(
            "promote",
            template,
            values={"version": str(version)},
            extra_env=self._env.credentials.as_env(),
        )

    def run_hook(self, hook: HookName, *, version: Version) -> Result[None, ReleaseError]:
        template = self._template(hook)
        if template is None:
            return Ok(None)
        return self._run(hook, template, values={"version": str(version)})
