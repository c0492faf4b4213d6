"""Error types for the release engine.

ReleaseError is the payload carried by Err results. StepExit and
PipelineExit are the two cooperative signals a step body raises to stop
itself or the whole pipeline; neither escapes Pipeline.run().
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

__all__ = [
    "InvalidStateError",
    "PipelineExit",
    "ReleaseError",
    "ReleaseErrorKind",
    "StepExit",
]

ReleaseErrorKind = Literal[
    "invalid_input",
    "unknown_component",
    "version_regression",
    "version_conflict",
    "invalid_dependencies",
    "inconsistent_state",
    "git_failed",
    "pipeline_aborted",
]


@dataclass(frozen=True, slots=True)
class ReleaseError:
    """Canonical release error payload.

    Attributes:
        kind: Machine-readable category.
        message: Summary for humans.
        hint: Optional suggestion for fixing the problem.
        details: Individual problems when several were accumulated.
    """

    kind: ReleaseErrorKind
    message: str
    hint: str | None = None
    details: tuple[str, ...] = field(default_factory=tuple)

    def pretty(self) -> str:
        head = f"{self.message} (hint: {self.hint})" if self.hint else self.message
        return "\n".join([head, *(f"  - {d}" for d in self.details)])


class InvalidStateError(RuntimeError):
    """An object was used out of its lifecycle order."""


class StepExit(Exception):
    """Ends the current step early. The pipeline continues."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or "")
        self.message = message


class PipelineExit(Exception):
    """Ends the current step and every remaining step, as a failure."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message
