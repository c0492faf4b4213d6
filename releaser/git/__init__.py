"""Git operations module.

- CommitInfo: read view over one commit
- Repository: history, tags and working-tree operations on one clone
"""

from releaser.git.commit import CommitInfo, CommitSource, HistoryReadError
from releaser.git.repository import GitError, Repository

__all__ = [
    "CommitInfo",
    "CommitSource",
    "GitError",
    "HistoryReadError",
    "Repository",
]
