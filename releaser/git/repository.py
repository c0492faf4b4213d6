"""Git repository abstraction.

Repository wraps the git operations the release engine needs: reading
history between two refs, listing release tags, and restoring a clean
working tree between pipeline steps. Every operation returns a Result.

Usage:
    repo = Repository(Path("/path/to/repo"))

    match repo.commit_info_sequence("mygem/v1.2.0", "HEAD"):
        case Ok(commits):
            for commit in commits:
                print(commit.short_sha, commit.message.splitlines()[0])
        case Err(e):
            print(f"Error: {e.message}")
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from releaser.core.result import Err, Ok, Result
from releaser.git.commit import CommitInfo
from releaser.platform.process import ProcessError
from releaser.platform.process import run as run_process

_GIT_TIMEOUT_SECONDS = 30.0
_GIT_NETWORK_TIMEOUT_SECONDS = 3 * 60.0

__all__ = [
    "GitError",
    "Repository",
]


@dataclass(frozen=True, slots=True)
class GitError:
    """Error from a git operation.

    Attributes:
        command: The git subcommand that failed
        message: Error message
        returncode: Process return code
    """

    command: str
    message: str
    returncode: int = 1

    def __str__(self) -> str:
        return f"git {self.command}: {self.message}"


class Repository:
    """A local git clone.

    Attributes:
        path: Path to the repository root
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def exists(self) -> bool:
        """Check if this is a valid git repository."""
        return (self.path / ".git").exists()

    # -------------------------------------------------------------------------
    # History
    # -------------------------------------------------------------------------

    def current_sha(self, ref: str | None = None) -> Result[str, GitError]:
        """Resolve ref (default HEAD) to a full commit sha."""
        target = ref or "HEAD"
        return self._git(["rev-parse", "--verify", f"{target}^{{commit}}"], "rev-parse").map(
            str.strip
        )

    def parent_sha(self, sha: str) -> Result[str | None, GitError]:
        """First parent of sha, or None for a root commit."""
        result = self._git(["rev-list", "--parents", "-n", "1", sha], "rev-list")
        match result:
            case Err(e):
                return Err(e)
            case Ok(stdout):
                parts = stdout.split()
                return Ok(parts[1] if len(parts) > 1 else None)

    def commit_message(self, sha: str) -> Result[str, GitError]:
        return self._git(["log", "-1", "--format=%B", sha], "log")

    def paths_modified_by_commit(self, sha: str) -> Result[list[str], GitError]:
        """Paths changed by sha relative to its first parent.

        For a root commit, every path it adds.
        """
        result = self._git(
            ["diff-tree", "--no-commit-id", "--name-only", "-r", "--root", "-m", "--first-parent", sha],
            "diff-tree",
        )
        match result:
            case Err(e):
                return Err(e)
            case Ok(stdout):
                seen: dict[str, None] = {}
                for line in stdout.splitlines():
                    if line.strip():
                        seen.setdefault(line.strip(), None)
                return Ok(list(seen))

    def commit_info(self, sha: str) -> CommitInfo:
        """A lazily populated view of sha."""
        return CommitInfo(sha, source=self)

    def commit_info_sequence(
        self,
        from_ref: str | None,
        to_ref: str | None = None,
    ) -> Result[list[CommitInfo], GitError]:
        """Commits reachable from to_ref but not from from_ref, oldest first.

        With from_ref None, the whole history of to_ref.
        """
        to = to_ref or "HEAD"
        spec = f"{from_ref}..{to}" if from_ref else to
        result = self._git(["rev-list", "--reverse", "--topo-order", spec], "rev-list")
        match result:
            case Err(e):
                return Err(e)
            case Ok(stdout):
                return Ok([self.commit_info(sha) for sha in stdout.split()])

    # -------------------------------------------------------------------------
    # Tags and files
    # -------------------------------------------------------------------------

    def tags_merged(self, ref: str | None = None) -> Result[list[str], GitError]:
        """Tags reachable from ref (default HEAD)."""
        result = self._git(["tag", "--merged", ref or "HEAD"], "tag")
        return result.map(lambda stdout: [t.strip() for t in stdout.splitlines() if t.strip()])

    def file_at(self, ref: str, path: str) -> Result[str, GitError]:
        """Content of path (relative to the repo root) at ref."""
        return self._git(["show", f"{ref}:{path}"], "show")

    def remote_url(self, remote: str = "origin") -> Result[str, GitError]:
        return self._git(["remote", "get-url", remote], "remote").map(str.strip)

    # -------------------------------------------------------------------------
    # Working tree
    # -------------------------------------------------------------------------

    def is_clean(self) -> bool:
        """Check if the working tree has no changes.

        Returns False if status cannot be determined.
        """
        result = self._git(["status", "--porcelain"], "status")
        match result:
            case Ok(stdout):
                return stdout.strip() == ""
            case Err(_):
                return False

    def reset_clean(self, directory: str = ".") -> Result[None, GitError]:
        """Discard tracked changes and delete untracked files under directory."""
        reset = self._git(["reset", "--hard", "--quiet"], "reset")
        if isinstance(reset, Err):
            return reset
        clean = self._git(["clean", "-f", "-d", "-x", "--quiet", "--", directory], "clean")
        if isinstance(clean, Err):
            return clean
        return Ok(None)

    def fetch(self, remote: str, ref: str) -> Result[None, GitError]:
        return self._git(["fetch", remote, ref], "fetch").map(lambda _: None)

    def _git(self, args: list[str], command: str) -> Result[str, GitError]:
        result = self._run(args)
        match result:
            case Err(e):
                return Err(
                    GitError(
                        command=command,
                        message=e.stderr.strip() or e.stdout.strip() or f"{command} failed",
                        returncode=e.returncode,
                    )
                )
            case Ok(stdout):
                return Ok(stdout)

    def _run(self, args: list[str]) -> Result[str, ProcessError]:
        """Run a git command in this repository."""
        command = args[0] if args else ""
        timeout = (
            _GIT_NETWORK_TIMEOUT_SECONDS
            if command in {"fetch", "pull", "push", "clone"}
            else _GIT_TIMEOUT_SECONDS
        )
        return run_process(["git", "-C", str(self.path), *args], cwd=self.path, timeout=timeout)
