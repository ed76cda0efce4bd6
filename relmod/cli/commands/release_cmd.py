from __future__ import annotations

from typing import NoReturn

import typer

from relmod.cli.context import CLIContext, build_context
from relmod.core.result import Err, Result
from relmod.output.console import ConsoleProtocol, Style
from relmod.output.errors import print_release_error, release_error_exit_code
from relmod.release.decision import clean_tag, parse_declared_version
from relmod.release.dispatcher import (
    NIGHTLY_ALIAS,
    RELEASE_COMMAND,
    STABLE_ALIAS,
    ReleaseCommand,
    dispatch,
    parse_command,
)
from relmod.release.errors import ReleaseError
from relmod.release.github import create_github_release, detect_github_repo
from relmod.release.notes import read_release_notes
from relmod.release.version import Version, bump_minor, validate_publish_version

_ARGS_HELP = "version <X.Y.Z>, skip-tests, cross-build"


def _fail(error: ReleaseError, console: ConsoleProtocol, *, step: str | None = None) -> NoReturn:
    print_release_error(error, console, step=step)
    raise typer.Exit(code=release_error_exit_code(error))


def _run_release(parsed: Result[ReleaseCommand, ReleaseError]) -> None:
    # Bad command lines are rejected before any project lookup.
    if isinstance(parsed, Err):
        typer.echo(f"error: {parsed.error.pretty()}", err=True)
        raise typer.Exit(code=release_error_exit_code(parsed.error))

    ctx = build_context()
    result = dispatch(parsed.value, ctx.release)
    if isinstance(result, Err):
        failure = result.error
        ctx.console.newline()
        _fail(failure.error, ctx.console, step=failure.step)

    state = result.value
    ctx.console.newline()
    ctx.console.success(f"released {ctx.release.module} {state.current_version}")
    if state.next_version is not None:
        ctx.console.print(f"next version: {state.next_version}", Style.DIM)


def release_module(
    args: list[str] = typer.Argument(
        ...,
        help="release-process <nightly|stable> [version <X.Y.Z>] [skip-tests] [cross-build]",
    ),
) -> None:
    """Run a release process."""
    _run_release(parse_command([RELEASE_COMMAND, *args]))


def release_nightly(
    args: list[str] | None = typer.Argument(None, help=_ARGS_HELP),
) -> None:
    """Publish a dated nightly build of the declared version."""
    _run_release(parse_command([NIGHTLY_ALIAS, *(args or [])]))


def release_stable(
    args: list[str] | None = typer.Argument(None, help=_ARGS_HELP),
) -> None:
    """Publish the version named by the CI git tag (CI only)."""
    _run_release(parse_command([STABLE_ALIAS, *(args or [])]))


def version_info() -> None:
    """Show the declared, latest published and next versions."""
    ctx = build_context()
    release = ctx.release

    declared = parse_declared_version(ctx.config.module.version)
    if isinstance(declared, Err):
        _fail(declared.error, ctx.console)

    latest = release.registry.latest_version(release.module)
    if isinstance(latest, Err):
        _fail(latest.error, ctx.console)

    ctx.console.header(str(release.module))
    ctx.console.print(f"declared:  {declared.value}")
    ctx.console.print(f"published: {latest.value if latest.value is not None else '(none)'}")
    ctx.console.print(f"next:      {bump_minor(declared.value)}")


def _github_release_version(ctx: CLIContext, version: str | None) -> Result[Version, ReleaseError]:
    if version is not None:
        return validate_publish_version(clean_tag(version))
    ci = ctx.env.ci
    if ci is not None and ci.tag is not None:
        return validate_publish_version(clean_tag(ci.tag))
    return parse_declared_version(ctx.config.module.version)


def github_release(
    version: str | None = typer.Argument(
        None, help="Version to release (default: CI tag, then the declared version)."
    ),
) -> None:
    """Create the GitHub release for a published version, with its notes."""
    ctx = build_context()
    root = ctx.project.root

    resolved = _github_release_version(ctx, version)
    if isinstance(resolved, Err):
        _fail(resolved.error, ctx.console)

    repo = detect_github_repo(root=root, remote=ctx.config.github.remote)
    if isinstance(repo, Err):
        _fail(repo.error, ctx.console)

    notes = read_release_notes(
        notes_dir=root / ctx.config.github.notes_dir,
        version=resolved.value,
        console=ctx.console,
    )
    if isinstance(notes, Err):
        _fail(notes.error, ctx.console)

    created = create_github_release(
        root=root,
        repo=repo.value,
        version=resolved.value,
        notes=notes.value,
        env=ctx.env,
        console=ctx.console,
    )
    if isinstance(created, Err):
        _fail(created.error, ctx.console)

    ctx.console.success(f"GitHub release v{resolved.value} created: {repo.value.url}")
