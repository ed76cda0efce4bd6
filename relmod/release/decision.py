"""Version decisions for the nightly and stable flavors.

Nightly: the base version (CLI override or declared version) is restamped
as "<base>-alpha-<year>-<month>-<day>".

Stable: the version comes from the git tag (CLI override or the CI tag),
with a leading "v" removed. Stable releases only run in CI.

In test mode both flavors append a build-unique suffix so that repeated
test releases never collide in the index.
"""

from __future__ import annotations

import random
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date

from relmod.core.result import Err, Ok, Result
from relmod.release.environment import ReleaseEnvironment
from relmod.release.errors import ReleaseError
from relmod.release.registry import ModuleCoordinates, ModuleRegistry
from relmod.release.version import (
    Version,
    bump_minor,
    parse_version,
    validate_publish_version,
    with_suffix,
)

NIGHTLY_MARKER = "alpha"
STABLE_COMMAND = "releaseStable"


@dataclass(frozen=True, slots=True)
class VersionDecision:
    current: Version
    next: Version


def parse_declared_version(raw: str) -> Result[Version, ReleaseError]:
    """Validate the version declared in release.toml.

    A trailing SNAPSHOT marker is the normal state between releases and is
    dropped; any other qualifier is rejected.
    """
    if not raw.strip():
        return Err(
            ReleaseError(
                kind="configuration",
                message="the module version is empty",
                hint="Set [module] version in release.toml.",
            )
        )

    parsed = parse_version(raw)
    if isinstance(parsed, Err):
        return parsed

    version = parsed.value
    if version.is_snapshot:
        return Ok(version.release())
    return validate_publish_version(raw)


def decide_version(
    *, override: str | None, declared: str
) -> Result[VersionDecision, ReleaseError]:
    """Pick the release version and the next development version.

    A command-line override always takes precedence over the declared one.
    """
    if override is not None and override.strip():
        current = validate_publish_version(override)
    else:
        current = parse_declared_version(declared)
    if isinstance(current, Err):
        return current
    return Ok(VersionDecision(current=current.value, next=bump_minor(current.value)))


def unique_suffix(env: ReleaseEnvironment, rng: Callable[[], int] | None = None) -> str:
    """CI build number, or a random non-negative integer outside CI."""
    if env.ci is not None:
        return str(env.ci.build_number)
    draw = rng or (lambda: random.randrange(0, 2**63))
    return str(abs(draw()))


def nightly_version(base: Version, today: date, unique: str | None = None) -> Version:
    stamp = f"{NIGHTLY_MARKER}-{today.year}-{today.month}-{today.day}"
    nightly = with_suffix(base, stamp)
    if unique is not None:
        nightly = with_suffix(nightly, unique)
    return nightly


def clean_tag(tag: str) -> str:
    tag = tag.strip()
    return tag[1:] if tag.startswith("v") else tag


def stable_source_tag(
    *, override: str | None, env: ReleaseEnvironment
) -> Result[str, ReleaseError]:
    if override is not None and override.strip():
        return Ok(override.strip())

    if env.ci is None:
        return Err(
            ReleaseError(
                kind="environment",
                message=f"{STABLE_COMMAND} is a CI-only command",
                hint="Run it from CI, or pass 'version <X.Y.Z>' explicitly.",
            )
        )
    if env.ci.tag is None:
        return Err(
            ReleaseError(
                kind="environment",
                message="expected a git tag for a stable release, but CI_TAG is undefined",
                hint="Stable releases are triggered by pushing a tag like v1.2.0.",
            )
        )
    return Ok(env.ci.tag)


def ensure_not_published(
    registry: ModuleRegistry, module: ModuleCoordinates, version: Version
) -> Result[None, ReleaseError]:
    exists = registry.exists(module, version)
    if isinstance(exists, Err):
        return exists
    if exists.value:
        return Err(
            ReleaseError(
                kind="already_published",
                message=f"version {version} of {module} is already published",
                hint="Bump the version or tag a new release.",
            )
        )
    return Ok(None)
