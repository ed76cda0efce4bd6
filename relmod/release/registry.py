"""Package index lookups.

The release pipeline needs two answers from the index: the latest stable
version of a module, and whether a given version is already published.
"""

from __future__ import annotations

from dataclasses import dataclass
from time import sleep
from typing import Any, Protocol
from urllib.parse import quote

from relmod.core.result import Err, Ok, Result
from relmod.core.structured import as_obj_list
from relmod.platform.http import HttpClient, HttpError
from relmod.release.errors import ReleaseError
from relmod.release.version import Version, parse_version

__all__ = ["IndexRegistry", "ModuleCoordinates", "ModuleRegistry"]

# An empty answer is usually the index still booting or reindexing.
_EMPTY_RETRY_DELAY_SECONDS = 1.0


@dataclass(frozen=True, slots=True)
class ModuleCoordinates:
    organization: str
    name: str
    binary_version: str | None = None

    @property
    def artifact(self) -> str:
        if self.binary_version:
            return f"{self.name}_{self.binary_version}"
        return self.name

    def __str__(self) -> str:
        return f"{self.organization}:{self.artifact}"


class ModuleRegistry(Protocol):
    def latest_version(self, module: ModuleCoordinates) -> Result[Version | None, ReleaseError]:
        """Most recent stable version, or None if the module was never published."""
        ...

    def exists(self, module: ModuleCoordinates, version: Version) -> Result[bool, ReleaseError]:
        """Whether this exact version is already published."""
        ...


class IndexRegistry:
    """ModuleRegistry backed by the package index JSON API.

    GET {url}/api/artifacts/{organization}/{artifact} -> {"versions": [...]}
    """

    def __init__(self, *, url: str, http: HttpClient) -> None:
        self._url = url.rstrip("/")
        self._http = http

    def artifact_url(self, module: ModuleCoordinates) -> str:
        org = quote(module.organization, safe="")
        artifact = quote(module.artifact, safe="")
        return f"{self._url}/api/artifacts/{org}/{artifact}"

    def _fetch_versions(self, module: ModuleCoordinates) -> Result[list[str], ReleaseError]:
        url = self.artifact_url(module)
        response = self._http.get_json(url)
        if isinstance(response, Err):
            if response.error.is_not_found:
                return Ok([])
            return Err(_connectivity_error(module, response.error))
        return _versions_from_payload(module, response.value)

    def published_versions(self, module: ModuleCoordinates) -> Result[list[Version], ReleaseError]:
        raw = self._fetch_versions(module)
        if isinstance(raw, Err):
            return raw

        out: list[Version] = []
        for item in raw.value:
            parsed = parse_version(item)
            if isinstance(parsed, Ok):
                out.append(parsed.value)
        return Ok(out)

    def latest_version(self, module: ModuleCoordinates) -> Result[Version | None, ReleaseError]:
        versions = self.published_versions(module)
        if isinstance(versions, Err):
            return versions

        if not versions.value:
            # Exactly one retry for an empty answer.
            sleep(_EMPTY_RETRY_DELAY_SECONDS)
            versions = self.published_versions(module)
            if isinstance(versions, Err):
                return versions

        stable = [v for v in versions.value if v.is_release]
        if not stable:
            return Ok(None)
        return Ok(max(stable))

    def exists(self, module: ModuleCoordinates, version: Version) -> Result[bool, ReleaseError]:
        raw = self._fetch_versions(module)
        if isinstance(raw, Err):
            return raw
        wanted = str(version)
        return Ok(any(item.strip() == wanted for item in raw.value))


def _connectivity_error(module: ModuleCoordinates, error: HttpError) -> ReleaseError:
    return ReleaseError(
        kind="connectivity",
        message=f"package index lookup failed for {module}",
        hint=str(error),
    )


def _versions_from_payload(
    module: ModuleCoordinates, payload: dict[str, Any]
) -> Result[list[str], ReleaseError]:
    raw = as_obj_list(payload.get("versions"))
    if raw is None:
        return Err(
            ReleaseError(
                kind="connectivity",
                message=f"unexpected package index payload for {module}",
                hint="missing 'versions' list",
            )
        )
    return Ok([item for item in raw if isinstance(item, str)])
