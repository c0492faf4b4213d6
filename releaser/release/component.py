"""A releasable component bound to a repository.

Component answers the history questions for one component: which commits
touch it, what its latest release tag is, and what changed since then.
"""

from __future__ import annotations

import fnmatch
import re
from collections.abc import Iterable
from pathlib import Path

from releaser.core.result import Err, Ok, Result
from releaser.git.commit import CommitInfo, HistoryReadError
from releaser.git.repository import GitError, Repository
from releaser.release.change_set import (
    NO_TOUCH_COMPONENT_TAG,
    TOUCH_COMPONENT_TAG,
    ChangeSet,
)
from releaser.release.changelog import ChangelogFile, VersionFile
from releaser.release.semver import Version
from releaser.release.settings import ComponentSettings, RepoSettings

__all__ = ["Component", "build_components"]


class Component:
    """One component from releases.yml.

    Attributes:
        settings: The component's validated settings.
        repo_settings: Settings for the whole repository.
        repository: Clone the component lives in.
        coordination_group: Components released together with this one,
            including itself, in declaration order.
    """

    def __init__(
        self,
        settings: ComponentSettings,
        repo_settings: RepoSettings,
        repository: Repository,
    ) -> None:
        self.settings = settings
        self.repo_settings = repo_settings
        self.repository = repository
        self.coordination_group: list[Component] = [self]
        self._tag_re = re.compile(rf"^{re.escape(settings.name)}/v(\d+(?:\.\d+)*)$")

    @property
    def name(self) -> str:
        return self.settings.name

    @property
    def directory(self) -> Path:
        """Absolute path of the component directory."""
        return (self.repository.path / self.settings.directory).resolve()

    @property
    def version_file_path(self) -> str:
        """Version file path relative to the component directory."""
        if self.settings.version_file_path:
            return self.settings.version_file_path
        return f"{self.name.replace('-', '_')}/__init__.py"

    @property
    def changelog_file(self) -> ChangelogFile:
        return ChangelogFile(
            self.directory / self.settings.changelog_path, bullet=self.settings.changelog_bullet
        )

    @property
    def version_file(self) -> VersionFile:
        return VersionFile(self.directory / self.version_file_path)

    # -------------------------------------------------------------------------
    # History
    # -------------------------------------------------------------------------

    def touched_by(self, commit: CommitInfo) -> bool:
        """Whether commit belongs in this component's change set.

        An explicit `no-touch-component` line wins over `touch-component`,
        which wins over the modified paths.
        """
        if self.name in commit.control_values(NO_TOUCH_COMPONENT_TAG):
            return False
        if self.name in commit.control_values(TOUCH_COMPONENT_TAG):
            return True
        return any(self._path_matches(path) for path in commit.modified_paths)

    def _path_matches(self, path: str) -> bool:
        if any(fnmatch.fnmatchcase(path, glob) for glob in self.settings.exclude_globs):
            return False
        directory = self.settings.directory.strip("/")
        if directory in ("", ".") or path == directory or path.startswith(directory + "/"):
            return True
        return any(fnmatch.fnmatchcase(path, glob) for glob in self.settings.include_globs)

    def version_tag(self, version: Version | str) -> str:
        return f"{self.name}/v{version}"

    def latest_tag_version(self, ref: str | None = None) -> Result[Version | None, GitError]:
        """Highest version among this component's tags reachable from ref."""
        match self.repository.tags_merged(ref):
            case Err(e):
                return Err(e)
            case Ok(tags):
                versions = [
                    Version.parse(m.group(1)) for tag in tags if (m := self._tag_re.match(tag))
                ]
                return Ok(max(versions) if versions else None)

    def make_change_set(
        self, from_ref: str | None, to_ref: str | None = None
    ) -> Result[ChangeSet, GitError]:
        """Finished change set over commits in (from_ref, to_ref]."""
        match self.repository.commit_info_sequence(from_ref, to_ref):
            case Err(e):
                return Err(e)
            case Ok(commits):
                pass
        try:
            return Ok(self.change_set_for(commits))
        except HistoryReadError as e:
            return Err(GitError(command="show", message=str(e)))

    def change_set_for(self, commits: Iterable[CommitInfo]) -> ChangeSet:
        """Finished change set over commits (oldest first) that touch this component."""
        change_set = ChangeSet.for_component(self.settings, self.repo_settings.repo_path)
        change_set.add_commits(c for c in commits if self.touched_by(c))
        return change_set.finish()

    def current_changelog_version(self, at: str | None = None) -> Result[Version | None, GitError]:
        if at is None:
            return Ok(self.changelog_file.current_version)
        path = self._repo_relative(self.settings.changelog_path)
        return self.repository.file_at(at, path).map(ChangelogFile.current_version_from_content)

    def current_constant_version(self, at: str | None = None) -> Result[Version | None, GitError]:
        if at is None:
            return Ok(self.version_file.current_version)
        path = self._repo_relative(self.version_file_path)
        return self.repository.file_at(at, path).map(VersionFile.current_version_from_content)

    def _repo_relative(self, path: str) -> str:
        directory = self.settings.directory.strip("/")
        if directory in ("", "."):
            return path
        return f"{directory}/{path}"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Component) and other.name == self.name

    def __hash__(self) -> int:
        return hash(self.name)

    def __repr__(self) -> str:
        return f"Component({self.name!r})"


def build_components(repo_settings: RepoSettings, repository: Repository) -> list[Component]:
    """All components in declaration order, with coordination groups wired up."""
    components = [Component(s, repo_settings, repository) for s in repo_settings.components]
    for group in repo_settings.coordination_groups:
        members = [c for c in components if c.name in group]
        for member in members:
            member.coordination_group = members
    return components
