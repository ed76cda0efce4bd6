"""Release command parsing and dispatch.

Grammar:

    releaseModule release-process <nightly|stable> [version <X.Y.Z>] [skip-tests] [cross-build]

Aliases: releaseNightly, releaseStable.

The dispatcher never mutates the host: a failed release returns a
PipelineFailure and the caller decides what to report.
"""

from __future__ import annotations

import shlex
from collections.abc import Sequence
from dataclasses import dataclass

from relmod.core.result import Err, Ok, Result
from relmod.release.decision import STABLE_COMMAND
from relmod.release.errors import ReleaseError
from relmod.release.pipeline import PipelineFailure, run_pipeline
from relmod.release.state import FLAVORS, Flavor, ReleaseState
from relmod.release.steps import ReleaseContext, release_process

__all__ = [
    "ALIASES",
    "NIGHTLY_ALIAS",
    "RELEASE_COMMAND",
    "ReleaseCommand",
    "STABLE_ALIAS",
    "dispatch",
    "expand_alias",
    "parse_command",
    "parse_command_line",
    "parse_release_command",
]

RELEASE_COMMAND = "releaseModule"
RELEASE_PROCESS = "release-process"
VERSION = "version"
SKIP_TESTS = "skip-tests"
CROSS_BUILD = "cross-build"
NIGHTLY_ALIAS = "releaseNightly"
STABLE_ALIAS = STABLE_COMMAND

ALIASES: dict[str, tuple[str, ...]] = {
    NIGHTLY_ALIAS: (RELEASE_COMMAND, RELEASE_PROCESS, "nightly"),
    STABLE_ALIAS: (RELEASE_COMMAND, RELEASE_PROCESS, "stable"),
}


@dataclass(frozen=True, slots=True)
class ReleaseCommand:
    flavor: Flavor
    version: str | None = None
    skip_tests: bool = False
    cross_build: bool = False


def _invalid(message: str, hint: str | None = None) -> Err[ReleaseError]:
    return Err(ReleaseError(kind="invalid_command", message=message, hint=hint))


def expand_alias(tokens: Sequence[str]) -> list[str]:
    if tokens and tokens[0] in ALIASES:
        return [*ALIASES[tokens[0]], *tokens[1:]]
    return list(tokens)


def _parse_flavor(raw: str) -> Result[Flavor, ReleaseError]:
    value = raw.strip().lower()
    for flavor in FLAVORS:
        if value == flavor:
            return Ok(flavor)
    return _invalid(
        f"unexpected release process: {raw}",
        hint="Expected 'nightly' or 'stable'.",
    )


def parse_release_command(args: Sequence[str]) -> Result[ReleaseCommand, ReleaseError]:
    """Parse the arguments that follow releaseModule."""
    tokens = list(args)
    if len(tokens) < 2 or tokens[0] != RELEASE_PROCESS:
        return _invalid(
            "missing release process",
            hint=f"Usage: {RELEASE_COMMAND} {RELEASE_PROCESS} <nightly | stable>",
        )

    flavor = _parse_flavor(tokens[1])
    if isinstance(flavor, Err):
        return flavor

    version: str | None = None
    skip_tests = False
    cross_build = False

    rest = tokens[2:]
    i = 0
    while i < len(rest):
        token = rest[i]
        if token == SKIP_TESTS:
            skip_tests = True
        elif token == CROSS_BUILD:
            cross_build = True
        elif token == VERSION:
            if i + 1 >= len(rest) or not rest[i + 1].strip():
                return _invalid("'version' expects a value", hint="e.g. version 1.2.0")
            if version is not None:
                return _invalid("'version' given more than once")
            version = rest[i + 1].strip()
            i += 1
        else:
            return _invalid(
                f"unexpected argument: {token}",
                hint=f"Accepted: {VERSION} <X.Y.Z>, {SKIP_TESTS}, {CROSS_BUILD}",
            )
        i += 1

    return Ok(
        ReleaseCommand(
            flavor=flavor.value,
            version=version,
            skip_tests=skip_tests,
            cross_build=cross_build,
        )
    )


def parse_command(tokens: Sequence[str]) -> Result[ReleaseCommand, ReleaseError]:
    """Parse a tokenized command, e.g. ["releaseNightly", "skip-tests"]."""
    expanded = expand_alias(tokens)
    if not expanded or expanded[0] != RELEASE_COMMAND:
        given = " ".join(tokens) or "(empty)"
        return _invalid(
            f"unknown command: {given}",
            hint=f"Expected {RELEASE_COMMAND}, " + " or ".join(ALIASES),
        )
    return parse_release_command(expanded[1:])


def parse_command_line(line: str) -> Result[ReleaseCommand, ReleaseError]:
    """Parse a full command line, e.g. "releaseNightly skip-tests"."""
    try:
        tokens = shlex.split(line)
    except ValueError as e:
        return _invalid(f"cannot parse command line: {e}")
    return parse_command(tokens)


def dispatch(
    command: ReleaseCommand, ctx: ReleaseContext
) -> Result[ReleaseState, PipelineFailure]:
    """Run the selected release process with a fresh state."""
    cross_enabled = ctx.config.cross.enabled or command.cross_build
    state = ReleaseState(
        flavor=command.flavor,
        skip_tests=command.skip_tests,
        cross_build=cross_enabled,
        version_override=command.version,
    )

    ctx.console.info(f"{command.flavor.capitalize()} release process has been selected.")
    steps = release_process(command.flavor, ctx)
    return run_pipeline(
        steps,
        state,
        targets=ctx.config.cross.targets,
        console=ctx.console,
    )
