"""Error type for the release pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

ReleaseErrorKind = Literal[
    "invalid_command",
    "invalid_version",
    "configuration",
    "environment",
    "already_published",
    "connectivity",
    "step_failed",
    "io",
]


@dataclass(frozen=True, slots=True)
class ReleaseError:
    """Canonical release error payload.

    Produced by version parsing, registry lookups, host commands and the
    dispatcher, and rendered once by the CLI.
    """

    kind: ReleaseErrorKind
    message: str
    hint: str | None = None

    def pretty(self) -> str:
        if self.hint:
            return f"{self.message} (hint: {self.hint})"
        return self.message


def undefined_variable(name: str) -> ReleaseError:
    return ReleaseError(
        kind="environment",
        message=f"environment variable {name} is undefined",
        hint=f"Export {name} before running the release.",
    )
