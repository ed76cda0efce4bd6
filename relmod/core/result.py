"""Result type used for every fallible release operation.

Release steps, version parsing and registry lookups return a Result instead
of raising, so the pipeline can stop at the first failure and report it.

Usage:
    def parse_build_number(raw: str) -> Result[int, str]:
        if not raw.isdigit():
            return Err(f"not a build number: {raw}")
        return Ok(int(raw))

    match parse_build_number("42"):
        case Ok(value):
            print(f"build {value}")
        case Err(error):
            print(f"error: {error}")
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Ok[T]:
    """Successful result.

    Attributes:
        value: The success value.
    """

    value: T

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err[E]:
    """Failed result.

    Attributes:
        error: The error value.
    """

    error: E

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


type Result[T, E] = Ok[T] | Err[E]
