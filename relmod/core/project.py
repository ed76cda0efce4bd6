"""Project root detection.

A project is any directory holding a release.toml. The root is taken from
an explicit path, the RELMOD_PROJECT variable, or the nearest ancestor of
the current directory, in that order.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from .config import CONFIG_FILE_NAME
from .result import Err, Ok, Result

__all__ = ["Project", "ProjectError", "detect_project", "find_project_upward"]

PROJECT_ENV_VAR = "RELMOD_PROJECT"


@dataclass(frozen=True, slots=True)
class ProjectError:
    """Error when the project root cannot be detected."""

    message: str
    searched_from: Path | None = None


@dataclass(frozen=True, slots=True)
class Project:
    root: Path

    @property
    def config_path(self) -> Path:
        return self.root / CONFIG_FILE_NAME

    def __str__(self) -> str:
        return str(self.root)


def find_project_upward(start: Path) -> Path | None:
    current = start.resolve()
    for candidate in (current, *current.parents):
        if (candidate / CONFIG_FILE_NAME).is_file():
            return candidate
    return None


def detect_project(
    explicit: Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    cwd: Path | None = None,
) -> Result[Project, ProjectError]:
    env = os.environ if environ is None else environ

    if explicit is not None:
        root = explicit.expanduser().resolve()
        if not (root / CONFIG_FILE_NAME).is_file():
            return Err(ProjectError(f"no {CONFIG_FILE_NAME} in {root}", searched_from=root))
        return Ok(Project(root=root))

    from_env = env.get(PROJECT_ENV_VAR)
    if from_env:
        root = Path(from_env).expanduser().resolve()
        if (root / CONFIG_FILE_NAME).is_file():
            return Ok(Project(root=root))
        return Err(
            ProjectError(
                f"{PROJECT_ENV_VAR}={from_env} does not contain {CONFIG_FILE_NAME}",
                searched_from=root,
            )
        )

    start = cwd or Path.cwd()
    found = find_project_upward(start)
    if found is None:
        return Err(
            ProjectError(
                f"{CONFIG_FILE_NAME} not found in {start} or any parent directory",
                searched_from=start,
            )
        )
    return Ok(Project(root=found))
