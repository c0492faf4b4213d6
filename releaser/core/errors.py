"""Exit codes for the releaser CLI.

Each failure category surfaced by the engine maps to a stable process exit
code so that CI jobs can tell a bad config apart from a failed publish.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Process exit codes.

    - 0: Success
    - 1: User error (bad arguments, unknown component)
    - 2: Configuration error (releases.yml missing or invalid)
    - 3: Release error (version regression, dependency conflicts)
    - 4: Pipeline error (a step aborted the pipeline)
    - 5: Environment error (git or another required tool failed)
    """

    OK = 0
    USER_ERROR = 1
    CONFIG_ERROR = 2
    RELEASE_ERROR = 3
    PIPELINE_ERROR = 4
    ENV_ERROR = 5

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK
