from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from relmod.release.version import Version

Flavor = Literal["nightly", "stable"]
FLAVORS: tuple[Flavor, ...] = ("nightly", "stable")


def _empty_steps() -> list[str]:
    return []


@dataclass(slots=True)
class ReleaseState:
    """Mutable state threaded through one pipeline run.

    Created by the dispatcher, owned by a single run, discarded at the end.
    """

    flavor: Flavor
    skip_tests: bool = False
    cross_build: bool = False
    version_override: str | None = None
    current_version: Version | None = None
    next_version: Version | None = None
    executed_steps: list[str] = field(default_factory=_empty_steps)
