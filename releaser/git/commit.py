"""Read-only view of a single commit.

CommitInfo carries a sha and fetches the rest (message, parent, modified
paths) from its source the first time each is needed. Tests build instances
with every field filled in and no source.
"""

from __future__ import annotations

import re
from typing import Protocol

from releaser.core.result import Err, Ok, Result

__all__ = ["CommitInfo", "CommitSource", "HistoryReadError"]


class HistoryReadError(RuntimeError):
    """Raised when a commit that was listed earlier can no longer be read."""


class CommitSource(Protocol):
    def commit_message(self, sha: str) -> Result[str, object]: ...

    def parent_sha(self, sha: str) -> Result[str | None, object]: ...

    def paths_modified_by_commit(self, sha: str) -> Result[list[str], object]: ...


def _control_line_re(tag: str) -> re.Pattern[str]:
    return re.compile(rf"^{re.escape(tag)}:\s+(\S+)", re.IGNORECASE | re.MULTILINE)


class CommitInfo:
    """A commit in repository history.

    Attributes:
        sha: Full commit sha.
    """

    __slots__ = ("sha", "_message", "_parent_sha", "_parent_loaded", "_paths", "_source")

    def __init__(
        self,
        sha: str,
        *,
        message: str | None = None,
        parent_sha: str | None = None,
        modified_paths: list[str] | None = None,
        source: CommitSource | None = None,
    ) -> None:
        self.sha = sha
        self._message = message
        self._parent_sha = parent_sha
        self._parent_loaded = parent_sha is not None or source is None
        self._paths = modified_paths
        self._source = source

    @property
    def short_sha(self) -> str:
        return self.sha[:8]

    @property
    def message(self) -> str:
        if self._message is None:
            self._message = self._load(self._require_source().commit_message(self.sha))
        return self._message

    @property
    def parent_sha(self) -> str | None:
        if not self._parent_loaded:
            self._parent_sha = self._load(self._require_source().parent_sha(self.sha))
            self._parent_loaded = True
        return self._parent_sha

    @property
    def modified_paths(self) -> list[str]:
        if self._paths is None:
            self._paths = self._load(self._require_source().paths_modified_by_commit(self.sha))
        return list(self._paths)

    def control_values(self, tag: str) -> list[str]:
        """Values of `tag: value` lines in the message, in order."""
        return _control_line_re(tag).findall(self.message)

    def _require_source(self) -> CommitSource:
        if self._source is None:
            raise HistoryReadError(f"commit {self.short_sha} has no history source")
        return self._source

    def _load[T](self, result: Result[T, object]) -> T:
        match result:
            case Ok(value):
                return value
            case Err(error):
                raise HistoryReadError(f"cannot read commit {self.short_sha}: {error}")

    def __eq__(self, other: object) -> bool:
        return isinstance(other, CommitInfo) and other.sha == self.sha

    def __hash__(self) -> int:
        return hash(self.sha)

    def __repr__(self) -> str:
        return f"CommitInfo({self.short_sha})"
