"""Error codes for CLI exit status.

Every failure that reaches the CLI boundary is mapped to one of these codes so
that CI pipelines can tell a bad flag from a failed publish.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands.

    These values are used as process exit codes and should remain stable:
    - 0: Success
    - 1: User error (malformed package identifier, bad flags)
    - 2: Environment error (missing NPM_TOKEN, missing signing config)
    - 3: Command error (npm/yarn exited non-zero)
    - 4: Network error (registry unreachable, auth rejected)
    - 5: Verification error (signature did not match)
    """

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    COMMAND_ERROR = 3
    NETWORK_ERROR = 4
    VERIFY_ERROR = 5

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK
