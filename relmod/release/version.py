"""Version model.

A version is a run of dot-separated numbers optionally followed by a
qualifier introduced by '-', '+' or '.':

    1.2.0                      components (1, 2, 0)
    1.2.0-SNAPSHOT             components (1, 2, 0), qualifier "SNAPSHOT"
    1.2.0-alpha-2026-10-17     components (1, 2, 0), qualifier "alpha-2026-10-17"

Only unqualified versions can be published.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import IntEnum
from functools import total_ordering

from relmod.core.result import Err, Ok, Result
from relmod.release.errors import ReleaseError

__all__ = [
    "Ordering",
    "Version",
    "bump_minor",
    "compare",
    "parse_version",
    "validate_publish_version",
    "with_suffix",
]

_NUMERIC_RE = re.compile(r"\d+(?:\.\d+)*")
_QUALIFIER_RE = re.compile(r"^[-+.]([0-9A-Za-z_]+(?:[-+.][0-9A-Za-z_]+)*)$")
_QUALIFIER_TOKEN_RE = re.compile(r"[-+.]")

SNAPSHOT_QUALIFIER = "SNAPSHOT"


class Ordering(IntEnum):
    LT = -1
    EQ = 0
    GT = 1


def _qualifier_key(qualifier: str) -> tuple[tuple[int, int | str], ...]:
    # Numeric tokens sort before textual ones and compare numerically.
    key: list[tuple[int, int | str]] = []
    for token in _QUALIFIER_TOKEN_RE.split(qualifier):
        if token.isdigit():
            key.append((0, int(token)))
        else:
            key.append((1, token.lower()))
    return tuple(key)


def _normalized(components: tuple[int, ...]) -> tuple[int, ...]:
    end = len(components)
    while end > 1 and components[end - 1] == 0:
        end -= 1
    return components[:end]


@total_ordering
@dataclass(frozen=True, slots=True, eq=False)
class Version:
    components: tuple[int, ...]
    qualifier: str | None = None

    @property
    def major(self) -> int:
        return self.components[0]

    @property
    def minor(self) -> int:
        return self.components[1] if len(self.components) > 1 else 0

    @property
    def is_release(self) -> bool:
        """True when the version carries no qualifier."""
        return self.qualifier is None

    @property
    def is_snapshot(self) -> bool:
        return self.qualifier is not None and self.qualifier.upper() == SNAPSHOT_QUALIFIER

    def release(self) -> Version:
        return Version(self.components)

    def __str__(self) -> str:
        core = ".".join(str(c) for c in self.components)
        if self.qualifier is None:
            return core
        return f"{core}-{self.qualifier}"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return compare(self, other) is Ordering.EQ

    def __lt__(self, other: Version) -> bool:
        return compare(self, other) is Ordering.LT

    def __hash__(self) -> int:
        qualifier = None if self.qualifier is None else _qualifier_key(self.qualifier)
        return hash((_normalized(self.components), qualifier))


def compare(a: Version, b: Version) -> Ordering:
    """Compare numerically, zero-padding the shorter version.

    With equal components an unqualified version ranks above a qualified one.
    """
    width = max(len(a.components), len(b.components))
    left = a.components + (0,) * (width - len(a.components))
    right = b.components + (0,) * (width - len(b.components))
    if left != right:
        return Ordering.LT if left < right else Ordering.GT

    if a.qualifier is None and b.qualifier is None:
        return Ordering.EQ
    if a.qualifier is None:
        return Ordering.GT
    if b.qualifier is None:
        return Ordering.LT

    qa = _qualifier_key(a.qualifier)
    qb = _qualifier_key(b.qualifier)
    if qa == qb:
        return Ordering.EQ
    return Ordering.LT if qa < qb else Ordering.GT


def parse_version(raw: str) -> Result[Version, ReleaseError]:
    text = raw.strip()
    if not text:
        return Err(ReleaseError(kind="invalid_version", message="version is empty"))

    invalid = ReleaseError(
        kind="invalid_version",
        message=f"invalid version: {raw}",
        hint="Expected numeric components such as 1.2.0",
    )

    head = _NUMERIC_RE.match(text)
    if head is None:
        return Err(invalid)

    components = tuple(int(part) for part in head.group(0).split("."))
    rest = text[head.end() :]
    if not rest:
        return Ok(Version(components=components))

    tail = _QUALIFIER_RE.match(rest)
    if tail is None:
        return Err(invalid)
    return Ok(Version(components=components, qualifier=tail.group(1)))


def validate_publish_version(raw: str) -> Result[Version, ReleaseError]:
    """Parse a version that is about to be published.

    Rejects every qualifier: SNAPSHOT, pre-release literals, suffixes.
    """
    parsed = parse_version(raw)
    if isinstance(parsed, Err):
        return parsed

    if not parsed.value.is_release:
        return Err(
            ReleaseError(
                kind="invalid_version",
                message=f"invalid version: {raw}",
                hint="Pre-release and qualifier markers cannot be published.",
            )
        )
    return parsed


def bump_minor(v: Version) -> Version:
    """Next development version: 1.2.3 -> 1.3.0, 1.2.0-RC1 -> 1.3.0."""
    components = v.components + (0,) * max(0, 2 - len(v.components))
    bumped = (components[0], components[1] + 1) + (0,) * (len(components) - 2)
    return Version(bumped)


def with_suffix(v: Version, suffix: str) -> Version:
    """Return "<v>-<suffix>" as a new version."""
    cleaned = suffix.strip().lstrip("-")
    if not cleaned:
        return v
    qualifier = cleaned if v.qualifier is None else f"{v.qualifier}-{cleaned}"
    return Version(components=v.components, qualifier=qualifier)
