"""Fold a component's commits into a bump level and changelog groups.

A ChangeSet is a builder: add commits oldest first, call finish(), then read
semver / change_groups / significant_shas. Entries are never deleted;
reverts are resolved in finish() by deciding which commit shas are nullified,
so reverting a revert restores the original entries in their original order.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field

from releaser.git.commit import CommitInfo
from releaser.release.errors import InvalidStateError
from releaser.release.semver import Semver, Version, suggest_version
from releaser.release.settings import (
    HIDDEN,
    CommitTagSettings,
    ComponentSettings,
    IssueSuffixHandling,
)

__all__ = ["ChangeGroup", "ChangeSet"]

_LINE_RE = re.compile(
    r"^(?P<tag>[\w-]+|BREAKING[ _-]CHANGE)(\((?P<scope>[^()]+)\))?(?P<bang>!?):\s+(?P<desc>.*)$"
)
_BREAKING_RE = re.compile(r"^BREAKING[ _-]CHANGE$")
_SUFFIX_RE = re.compile(r"^(.*\S)(\s*\(#(\d+)\))$")

SEMVER_CHANGE_TAG = "semver-change"
REVERT_COMMIT_TAG = "revert-commit"
TOUCH_COMPONENT_TAG = "touch-component"
NO_TOUCH_COMPONENT_TAG = "no-touch-component"

_CONTROL_TAGS = frozenset(
    {SEMVER_CHANGE_TAG, REVERT_COMMIT_TAG, TOUCH_COMPONENT_TAG, NO_TOUCH_COMPONENT_TAG}
)


@dataclass(slots=True)
class ChangeGroup:
    """Changelog lines sharing one header. A None header means no prefix."""

    header: str | None
    changes: list[str] = field(default_factory=list)

    @property
    def prefixed_changes(self) -> list[str]:
        if self.header is None:
            return list(self.changes)
        return [f"{self.header}: {change}" for change in self.changes]

    def __str__(self) -> str:
        return "\n".join(self.prefixed_changes)


@dataclass(frozen=True, slots=True)
class _Entry:
    sha: str
    header: str | None
    text: str
    semver: Semver
    breaking: bool = False


@dataclass(slots=True)
class _CommitRecord:
    sha: str
    semver: Semver = Semver.NONE
    override: Semver | None = None
    reverts: list[str] = field(default_factory=list)

    @property
    def effective_semver(self) -> Semver:
        return self.override if self.override is not None else self.semver

    def nullified_by(self, targets: Iterable[str]) -> bool:
        return any(self.sha.startswith(target) for target in targets)


class ChangeSet:
    """Accumulates changes for one component over a commit range.

    Attributes:
        repo_path: GitHub `owner/name`, used when linking issue numbers.
    """

    def __init__(
        self,
        commit_tags: Iterable[CommitTagSettings],
        *,
        breaking_change_header: str = "BREAKING CHANGE",
        update_dependency_header: str = "DEPENDENCY",
        no_significant_updates_notice: str = "No significant updates.",
        issue_number_suffix_handling: IssueSuffixHandling = "plain",
        repo_path: str = "",
    ) -> None:
        self._tags = {t.tag: t for t in commit_tags}
        self.breaking_change_header = breaking_change_header
        self.update_dependency_header = update_dependency_header
        self.no_significant_updates_notice = no_significant_updates_notice
        self.issue_number_suffix_handling = issue_number_suffix_handling
        self.repo_path = repo_path

        self._entries: list[_Entry] = []
        self._records: list[_CommitRecord] = []
        self._finished = False
        self._semver = Semver.NONE
        self._groups: list[ChangeGroup] = []
        self._significant_shas: list[str] = []

    @classmethod
    def for_component(cls, settings: ComponentSettings, repo_path: str) -> ChangeSet:
        return cls(
            settings.commit_tags,
            breaking_change_header=settings.breaking_change_header,
            update_dependency_header=settings.update_dependency_header,
            no_significant_updates_notice=settings.no_significant_updates_notice,
            issue_number_suffix_handling=settings.issue_number_suffix_handling,
            repo_path=repo_path,
        )

    # -------------------------------------------------------------------------
    # Building
    # -------------------------------------------------------------------------

    def add_commit(self, commit: CommitInfo) -> ChangeSet:
        """Record the tagged lines of one commit. Commits must arrive oldest first."""
        self._require_open()
        record = _CommitRecord(commit.sha)
        entries: list[_Entry] = []
        for line in commit.message.splitlines():
            m = _LINE_RE.match(line.strip())
            if m is None:
                continue
            tag = m.group("tag")
            desc = m.group("desc")
            lowered = tag.lower()
            if lowered in _CONTROL_TAGS:
                value = desc.split()[0] if desc.split() else ""
                if lowered == SEMVER_CHANGE_TAG and value.upper() in Semver.__members__:
                    record.override = Semver.for_name(value)
                elif lowered == REVERT_COMMIT_TAG and value:
                    record.reverts.append(value)
                continue
            text = self._normalize(desc)
            if _BREAKING_RE.match(tag):
                entries.append(self._breaking_entry(commit.sha, text))
                continue
            tag_settings = self._tags.get(tag)
            if tag_settings is not None:
                header, semver = tag_settings.resolve(m.group("scope"))
                visible = None if header is HIDDEN else str(header)
                entries.append(_Entry(commit.sha, visible, text, semver))
            if m.group("bang"):
                entries.append(self._breaking_entry(commit.sha, text))

        for entry in entries:
            record.semver = max(record.semver, entry.semver)
        if entries or record.reverts or record.override is not None:
            self._records.append(record)
            self._entries.extend(entries)
        return self

    def add_commits(self, commits: Iterable[CommitInfo]) -> ChangeSet:
        for commit in commits:
            self.add_commit(commit)
        return self

    def finish(self) -> ChangeSet:
        """Resolve reverts and compute semver and groups. May be called once."""
        self._require_open()
        self._finished = True

        nullified: list[str] = []
        surviving: list[_CommitRecord] = []
        for record in reversed(self._records):
            if record.nullified_by(nullified):
                continue
            nullified.extend(record.reverts)
            surviving.append(record)
        surviving.reverse()
        alive = {r.sha for r in surviving}

        self._semver = max((r.effective_semver for r in surviving), default=Semver.NONE)
        breaking = ChangeGroup(self.breaking_change_header)
        groups: dict[str | None, ChangeGroup] = {}
        for entry in self._entries:
            if entry.sha not in alive:
                continue
            if entry.breaking:
                breaking.changes.append(entry.text)
            elif entry.header is not None:
                groups.setdefault(entry.header, ChangeGroup(entry.header)).changes.append(entry.text)

        self._groups = ([breaking] if breaking.changes else []) + list(groups.values())
        if not self._groups and self._semver.significant:
            self._groups.append(ChangeGroup(None, [self.no_significant_updates_notice]))
        self._significant_shas = [r.sha for r in surviving]
        return self

    def force_release(self) -> ChangeSet:
        """Make a finished, empty change set releasable as a patch."""
        self._require_finished()
        if not self._groups:
            self._semver = max(self._semver, Semver.PATCH)
            self._groups.append(ChangeGroup(None, [self.no_significant_updates_notice]))
        return self

    def add_dependency_update(self, name: str, version: Version | str) -> ChangeSet:
        """Note that a dependency is being released alongside this component."""
        self._require_finished()
        text = f"Updated dependency on {name} to {version}"
        header = self.update_dependency_header
        self._groups = [
            g for g in self._groups if not (g.header is None and g.changes == [self.no_significant_updates_notice])
        ]
        for group in self._groups:
            if group.header == header:
                group.changes.append(text)
                break
        else:
            self._groups.append(ChangeGroup(header, [text]))
        self._semver = max(self._semver, Semver.PATCH)
        return self

    # -------------------------------------------------------------------------
    # Results
    # -------------------------------------------------------------------------

    @property
    def finished(self) -> bool:
        return self._finished

    @property
    def semver(self) -> Semver:
        self._require_finished()
        return self._semver

    @property
    def change_groups(self) -> list[ChangeGroup]:
        self._require_finished()
        return list(self._groups)

    @property
    def significant_shas(self) -> list[str]:
        self._require_finished()
        return list(self._significant_shas)

    @property
    def empty(self) -> bool:
        return not self.change_groups

    def suggested_version(self, current: Version | None) -> Version | None:
        """Next version for these changes, or None if no release is needed."""
        if not self.semver.significant:
            return None
        return suggest_version(current, self.semver)

    def __str__(self) -> str:
        if not self._finished:
            return "ChangeSet(unfinished)"
        return "\n".join([f"Semver: {self._semver}", *(str(g) for g in self._groups)])

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _breaking_entry(self, sha: str, text: str) -> _Entry:
        return _Entry(sha, self.breaking_change_header, text, Semver.MAJOR, breaking=True)

    def _normalize(self, description: str) -> str:
        text = description.strip()
        if text[:1].islower():
            text = text[0].upper() + text[1:]
        if self.issue_number_suffix_handling == "plain":
            return text
        suffixes: list[str] = []
        while (m := _SUFFIX_RE.match(text)) is not None:
            suffixes.append(m.group(2))
            text = m.group(1)
        if self.issue_number_suffix_handling == "link":
            base = f"https://github.com/{self.repo_path}/pull"
            for suffix in reversed(suffixes):
                text += re.sub(r"#(\d+)", rf"[#\1]({base}/\1)", suffix)
        return text

    def _require_open(self) -> None:
        if self._finished:
            raise InvalidStateError("change set is already finished")

    def _require_finished(self) -> None:
        if not self._finished:
            raise InvalidStateError("change set is not finished")
