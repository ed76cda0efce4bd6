from __future__ import annotations

import os
from pathlib import Path

import typer

from relmod import __version__
from relmod.cli.commands.release_cmd import (
    github_release,
    release_module,
    release_nightly,
    release_stable,
    version_info,
)
from relmod.core.config import CONFIG_FILE_NAME
from relmod.core.errors import ErrorCode
from relmod.core.project import PROJECT_ENV_VAR


app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# Commands
app.command("release-module")(release_module)
app.command("release-nightly")(release_nightly)
app.command("release-stable")(release_stable)
app.command("version-info")(version_info)
app.command("github-release")(github_release)


@app.callback(invoke_without_command=True)
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
    project: Path | None = typer.Option(
        None,
        "--project",
        help=f"Project root holding {CONFIG_FILE_NAME} (overrides auto detection)",
    ),
) -> None:
    if version:
        typer.echo(__version__)
        raise typer.Exit(code=0)

    if project is not None:
        try:
            root = project.expanduser().resolve()
        except OSError as e:
            typer.echo(f"error: invalid --project: {e}", err=True)
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))

        if not (root / CONFIG_FILE_NAME).is_file():
            typer.echo(
                f"error: --project '{root}' is not a project (missing {CONFIG_FILE_NAME})",
                err=True,
            )
            raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

        os.environ[PROJECT_ENV_VAR] = str(root)


def main() -> None:
    app()
