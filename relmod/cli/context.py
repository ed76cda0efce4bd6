from __future__ import annotations

from dataclasses import dataclass

import typer

from relmod.core.config import ProjectConfig, load_config
from relmod.core.errors import ErrorCode
from relmod.core.project import Project, detect_project
from relmod.core.result import Err
from relmod.output.console import ConsoleProtocol, RichConsole
from relmod.output.errors import print_release_error, release_error_exit_code
from relmod.platform.http import RealHttpClient
from relmod.release.environment import ReleaseEnvironment, read_environment
from relmod.release.host import ShellBuildHost
from relmod.release.registry import IndexRegistry
from relmod.release.steps import ReleaseContext


@dataclass(frozen=True, slots=True)
class CLIContext:
    project: Project
    config: ProjectConfig
    env: ReleaseEnvironment
    console: ConsoleProtocol
    release: ReleaseContext


def build_context() -> CLIContext:
    console = RichConsole()

    project_result = detect_project()
    if isinstance(project_result, Err):
        typer.echo(f"error: {project_result.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))
    project = project_result.value

    config_result = load_config(project.config_path)
    if isinstance(config_result, Err):
        typer.echo(f"error: {config_result.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))
    config = config_result.value

    env_result = read_environment()
    if isinstance(env_result, Err):
        print_release_error(env_result.error, console)
        raise typer.Exit(code=release_error_exit_code(env_result.error))
    env = env_result.value

    release = ReleaseContext(
        root=project.root,
        config=config,
        env=env,
        host=ShellBuildHost(root=project.root, config=config, env=env, console=console),
        registry=IndexRegistry(
            url=config.registry.url,
            http=RealHttpClient(timeout=config.registry.timeout),
        ),
        console=console,
    )

    return CLIContext(
        project=project,
        config=config,
        env=env,
        console=console,
        release=release,
    )
