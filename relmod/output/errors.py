"""Error presentation utilities.

Centralized error formatting and exit code mapping for consistent UX.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from relmod.core.errors import ErrorCode
from relmod.output.console import Style

if TYPE_CHECKING:
    from relmod.output.console import ConsoleProtocol
    from relmod.release.errors import ReleaseError

__all__ = ["print_release_error", "release_error_exit_code"]


def print_release_error(
    error: ReleaseError, console: ConsoleProtocol, *, step: str | None = None
) -> None:
    """Print a release error to console with appropriate formatting."""
    if step is not None:
        console.error(f"{step}: {error.message}")
    else:
        console.error(error.message)
    if error.hint:
        console.print(f"hint: {error.hint}", Style.DIM)


def release_error_exit_code(error: ReleaseError) -> int:
    """Get exit code for a release error."""
    match error.kind:
        case "invalid_command" | "invalid_version" | "already_published" | "configuration":
            return int(ErrorCode.USER_ERROR)
        case "environment":
            return int(ErrorCode.ENV_ERROR)
        case "step_failed":
            return int(ErrorCode.BUILD_ERROR)
        case "connectivity":
            return int(ErrorCode.NETWORK_ERROR)
        case "io":
            return int(ErrorCode.IO_ERROR)
    return int(ErrorCode.USER_ERROR)
