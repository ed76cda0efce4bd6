"""Error codes for CLI exit status.

Every release invocation ends with one of these codes. They are the only
contract between relmod and the CI job that runs it.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands.

    - 0: Success
    - 1: User error (bad command, invalid version, already published)
    - 2: Environment error (not in CI, missing variable, missing tag)
    - 3: Build error (tests, compatibility check or publish failed)
    - 4: Network error (package index unreachable)
    - 5: I/O error (unreadable notes or config)
    """

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    BUILD_ERROR = 3
    NETWORK_ERROR = 4
    IO_ERROR = 5

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK
