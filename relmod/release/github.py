from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

from relmod.core.result import Err, Ok, Result
from relmod.output.console import ConsoleProtocol, Style
from relmod.platform.process import run as run_process
from relmod.release.environment import GITHUB_TOKEN, ReleaseEnvironment
from relmod.release.errors import ReleaseError, undefined_variable
from relmod.release.version import Version

GIT_TIMEOUT_SECONDS = 30.0
GH_TIMEOUT_SECONDS = 60.0

_SSH_URL_RE = re.compile(r"^git@github\.com:([^/]+)/(.+?)(?:\.git)?/?$")
_HTTPS_URL_RE = re.compile(r"^https?://(?:[^@/]+@)?github\.com/([^/]+)/(.+?)(?:\.git)?/?$")


@dataclass(frozen=True, slots=True)
class GitHubRepo:
    org: str
    name: str

    @property
    def slug(self) -> str:
        return f"{self.org}/{self.name}"

    @property
    def url(self) -> str:
        return f"https://github.com/{self.slug}"


def parse_github_remote(url: str) -> GitHubRepo | None:
    """Parse git@github.com:org/repo(.git) and https://github.com/org/repo(.git)."""
    text = url.strip()
    for pattern in (_SSH_URL_RE, _HTTPS_URL_RE):
        m = pattern.match(text)
        if m is not None:
            return GitHubRepo(org=m.group(1), name=m.group(2))
    return None


def detect_github_repo(*, root: Path, remote: str) -> Result[GitHubRepo, ReleaseError]:
    result = run_process(
        ["git", "config", "--get", f"remote.{remote}.url"],
        cwd=root,
        timeout=GIT_TIMEOUT_SECONDS,
    )
    if isinstance(result, Err):
        return Err(
            ReleaseError(
                kind="configuration",
                message=f"git remote '{remote}' is not defined",
                hint="Set [github] remote in release.toml, or [module] scm_url.",
            )
        )

    url = result.value.strip()
    repo = parse_github_remote(url)
    if repo is None:
        return Err(
            ReleaseError(
                kind="configuration",
                message=f"remote '{remote}' does not point to GitHub: {url}",
            )
        )
    return Ok(repo)


def create_github_release(
    *,
    root: Path,
    repo: GitHubRepo,
    version: Version,
    notes: str,
    env: ReleaseEnvironment,
    console: ConsoleProtocol,
) -> Result[None, ReleaseError]:
    token = env.credentials.github_token
    if token is None:
        return Err(undefined_variable(GITHUB_TOKEN))

    tag = f"v{version}"
    cmd = [
        "gh",
        "release",
        "create",
        tag,
        "--repo",
        repo.slug,
        "--title",
        tag,
        "--notes",
        notes,
    ]
    console.print(f"gh release create {tag} --repo {repo.slug}", Style.DIM)

    child_env = dict(env.variables)
    child_env["GH_TOKEN"] = token
    result = run_process(cmd, cwd=root, env=child_env, timeout=GH_TIMEOUT_SECONDS)
    if isinstance(result, Err):
        return Err(
            ReleaseError(
                kind="step_failed",
                message=f"failed to create GitHub release {tag} in {repo.slug}",
                hint=result.error.detail,
            )
        )
    return Ok(None)
