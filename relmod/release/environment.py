"""Process environment snapshot.

Everything the release reads from environment variables is captured once,
at startup, into a ReleaseEnvironment and passed down explicitly.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from relmod.core.result import Err, Ok, Result
from relmod.release.errors import ReleaseError

__all__ = [
    "CIEnvironment",
    "Credentials",
    "ReleaseEnvironment",
    "read_environment",
]

# Drone mounts the workspace (and the signing rings) under this directory.
CI_ROOT_DIR = Path("/drone")

SONATYPE_USERNAME = "SONATYPE_USERNAME"
SONATYPE_PASSWORD = "SONATYPE_PASSWORD"
GITHUB_TOKEN = "PLATFORM_GITHUB_TOKEN"
PGP_PASSPHRASE = "PLATFORM_PGP_PASSPHRASE"
TESTING = "PLATFORM_TESTING"

_REQUIRED_CI_VARIABLES = (
    "CI_NAME",
    "CI_REPO",
    "CI_BRANCH",
    "CI_COMMIT",
    "CI_BUILD_DIR",
    "CI_BUILD_URL",
    "CI_BUILD_NUMBER",
    "CI_JOB_NUMBER",
)


@dataclass(frozen=True, slots=True)
class CIEnvironment:
    root_dir: Path
    name: str
    repo: str
    branch: str
    commit: str
    build_dir: str
    build_url: str
    build_number: int
    job_number: int
    pull_request: str | None = None
    tag: str | None = None


@dataclass(frozen=True, slots=True)
class Credentials:
    sonatype_username: str | None = None
    sonatype_password: str | None = None
    github_token: str | None = None
    pgp_passphrase: str | None = None

    def as_env(self) -> dict[str, str]:
        """Credentials under their canonical variable names, unset ones omitted."""
        pairs = (
            (SONATYPE_USERNAME, self.sonatype_username),
            (SONATYPE_PASSWORD, self.sonatype_password),
            (GITHUB_TOKEN, self.github_token),
            (PGP_PASSPHRASE, self.pgp_passphrase),
        )
        return {k: v for k, v in pairs if v}


@dataclass(frozen=True, slots=True)
class ReleaseEnvironment:
    inside_ci: bool = False
    ci: CIEnvironment | None = None
    credentials: Credentials = field(default_factory=Credentials)
    testing: bool = False
    home: Path | None = None
    variables: Mapping[str, str] = field(default_factory=dict)


def _flag(value: str | None) -> bool:
    return value is not None and value.strip().lower() == "true"


def _optional(environ: Mapping[str, str], key: str) -> str | None:
    value = environ.get(key, "").strip()
    return value or None


def _read_ci(environ: Mapping[str, str]) -> Result[CIEnvironment | None, ReleaseError]:
    values: dict[str, str] = {}
    for key in _REQUIRED_CI_VARIABLES:
        value = _optional(environ, key)
        if value is None:
            # A CI that does not expose the full metadata is treated as no CI.
            return Ok(None)
        values[key] = value

    numbers: dict[str, int] = {}
    for key in ("CI_BUILD_NUMBER", "CI_JOB_NUMBER"):
        try:
            numbers[key] = int(values[key])
        except ValueError:
            return Err(
                ReleaseError(
                    kind="environment",
                    message=f"{key} is not a number: {values[key]}",
                )
            )

    return Ok(
        CIEnvironment(
            root_dir=CI_ROOT_DIR,
            name=values["CI_NAME"],
            repo=values["CI_REPO"],
            branch=values["CI_BRANCH"],
            commit=values["CI_COMMIT"],
            build_dir=values["CI_BUILD_DIR"],
            build_url=values["CI_BUILD_URL"],
            build_number=numbers["CI_BUILD_NUMBER"],
            job_number=numbers["CI_JOB_NUMBER"],
            pull_request=_optional(environ, "CI_PULL_REQUEST"),
            tag=_optional(environ, "CI_TAG"),
        )
    )


def read_environment(
    environ: Mapping[str, str] | None = None,
) -> Result[ReleaseEnvironment, ReleaseError]:
    env = dict(os.environ if environ is None else environ)

    inside_ci = _flag(env.get("CI"))
    ci: CIEnvironment | None = None
    if inside_ci:
        ci_result = _read_ci(env)
        if isinstance(ci_result, Err):
            return ci_result
        ci = ci_result.value

    home = _optional(env, "HOME")

    return Ok(
        ReleaseEnvironment(
            inside_ci=inside_ci,
            ci=ci,
            credentials=Credentials(
                sonatype_username=_optional(env, SONATYPE_USERNAME),
                sonatype_password=_optional(env, SONATYPE_PASSWORD),
                github_token=_optional(env, GITHUB_TOKEN),
                pgp_passphrase=_optional(env, PGP_PASSPHRASE),
            ),
            testing=_flag(env.get(TESTING)),
            home=Path(home) if home else None,
            variables=env,
        )
    )
