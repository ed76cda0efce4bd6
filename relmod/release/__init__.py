"""Module release automation: version decisions, registry guard and the
two-phase step pipeline behind the nightly and stable processes."""

from relmod.release.dispatcher import (
    ReleaseCommand,
    dispatch,
    parse_command,
    parse_command_line,
    parse_release_command,
)
from relmod.release.errors import ReleaseError
from relmod.release.pipeline import PipelineFailure
from relmod.release.state import ReleaseState
from relmod.release.steps import ReleaseContext

__all__ = [
    "PipelineFailure",
    "ReleaseCommand",
    "ReleaseContext",
    "ReleaseError",
    "ReleaseState",
    "dispatch",
    "parse_command",
    "parse_command_line",
    "parse_release_command",
]
