"""Tests for releaser.release.change_set."""

from __future__ import annotations

import pytest

from releaser.git.commit import CommitInfo
from releaser.release.change_set import ChangeSet
from releaser.release.errors import InvalidStateError
from releaser.release.semver import Semver, Version
from releaser.release.settings import HIDDEN, CommitTagSettings, ScopeSettings

TAGS = (
    CommitTagSettings(tag="feat", header="ADDED", semver=Semver.MINOR),
    CommitTagSettings(
        tag="fix",
        header="FIXED",
        semver=Semver.PATCH,
        scopes={"deps": ScopeSettings(header="DEPS", semver=Semver.PATCH2)},
    ),
    CommitTagSettings(tag="chore", header=HIDDEN, semver=Semver.NONE),
    CommitTagSettings(tag="internal", header=HIDDEN, semver=Semver.PATCH),
)


def commit(sha: str, message: str) -> CommitInfo:
    return CommitInfo(sha, message=message, modified_paths=[])


def build(*commits: CommitInfo, **kwargs: object) -> ChangeSet:
    return ChangeSet(TAGS, **kwargs).add_commits(commits).finish()  # type: ignore[arg-type]


def groups(change_set: ChangeSet) -> list[tuple[str | None, list[str]]]:
    return [(g.header, g.changes) for g in change_set.change_groups]


# =============================================================================
# Folding commits
# =============================================================================


class TestFolding:
    def test_feature_and_fix(self) -> None:
        cs = build(commit("a1", "feat: Add A"), commit("b2", "fix: Fix B"))

        assert cs.semver is Semver.MINOR
        assert groups(cs) == [("ADDED", ["Add A"]), ("FIXED", ["Fix B"])]
        assert cs.significant_shas == ["a1", "b2"]

    def test_bang_marks_breaking_change(self) -> None:
        cs = build(commit("a1", "fix!: Change A"))

        assert cs.semver is Semver.MAJOR
        assert groups(cs) == [("BREAKING CHANGE", ["Change A"]), ("FIXED", ["Change A"])]

    def test_breaking_change_line(self) -> None:
        cs = build(commit("a1", "feat: Add A\n\nBREAKING CHANGE: Remove B"))

        assert cs.semver is Semver.MAJOR
        assert groups(cs) == [("BREAKING CHANGE", ["Remove B"]), ("ADDED", ["Add A"])]

    def test_multiple_lines_in_one_commit(self) -> None:
        cs = build(commit("a1", "fix: One\nfix: Two\nnot a change line"))
        assert groups(cs) == [("FIXED", ["One", "Two"])]

    def test_unknown_tags_ignored(self) -> None:
        cs = build(commit("a1", "wip: Something"))

        assert cs.semver is Semver.NONE
        assert cs.empty
        assert cs.significant_shas == []

    def test_description_capitalized(self) -> None:
        cs = build(commit("a1", "feat: add a thing"))
        assert groups(cs) == [("ADDED", ["Add a thing"])]

    def test_scope_override(self) -> None:
        cs = build(commit("a1", "fix(deps): Bump pins"))

        assert cs.semver is Semver.PATCH2
        assert groups(cs) == [("DEPS", ["Bump pins"])]

    def test_hidden_tag_without_bump(self) -> None:
        cs = build(commit("a1", "chore: Tidy"))

        assert cs.semver is Semver.NONE
        assert cs.empty

    def test_hidden_tag_with_bump_uses_notice(self) -> None:
        cs = build(commit("a1", "internal: Refactor"))

        assert cs.semver is Semver.PATCH
        assert groups(cs) == [(None, ["No significant updates."])]

    def test_semver_change_override(self) -> None:
        cs = build(commit("a1", "fix: Rework\n\nsemver-change: major"))

        assert cs.semver is Semver.MAJOR
        assert groups(cs) == [("FIXED", ["Rework"])]

    def test_semver_change_lowers_breaking_commit_but_keeps_group(self) -> None:
        cs = build(commit("a1", "fix!: Rework\n\nsemver-change: patch"))

        assert cs.semver is Semver.PATCH
        assert groups(cs) == [("BREAKING CHANGE", ["Rework"]), ("FIXED", ["Rework"])]

    def test_semver_change_with_unknown_level_ignored(self) -> None:
        cs = build(commit("a1", "fix: Rework\nsemver-change: enormous"))
        assert cs.semver is Semver.PATCH


class TestReverts:
    def test_revert_nullifies_commit(self) -> None:
        cs = build(
            commit("aaa111", "feat: Add A"),
            commit("bbb222", "revert-commit: aaa111"),
        )

        assert cs.semver is Semver.NONE
        assert cs.empty

    def test_revert_of_revert_restores_original(self) -> None:
        cs = build(
            commit("aaa111", "feat: Add A"),
            commit("bbb222", "fix: Fix B"),
            commit("ccc333", "revert-commit: aaa111"),
            commit("ddd444", "revert-commit: ccc333"),
        )

        assert cs.semver is Semver.MINOR
        assert groups(cs) == [("ADDED", ["Add A"]), ("FIXED", ["Fix B"])]

    def test_revert_only_affects_named_commit(self) -> None:
        cs = build(
            commit("aaa111", "feat: Add A"),
            commit("bbb222", "fix: Fix B"),
            commit("ccc333", "revert-commit: bbb"),
        )

        assert cs.semver is Semver.MINOR
        assert groups(cs) == [("ADDED", ["Add A"])]


class TestIssueSuffix:
    def test_plain_keeps_suffix(self) -> None:
        cs = build(commit("a1", "fix: Thing (#12)"))
        assert groups(cs) == [("FIXED", ["Thing (#12)"])]

    def test_delete_strips_suffixes(self) -> None:
        cs = build(
            commit("a1", "fix: Thing (#12) (#13)"),
            issue_number_suffix_handling="delete",
        )
        assert groups(cs) == [("FIXED", ["Thing"])]

    def test_link_rewrites_suffix(self) -> None:
        cs = build(
            commit("a1", "fix: Thing (#12)"),
            issue_number_suffix_handling="link",
            repo_path="owner/repo",
        )
        assert groups(cs) == [
            ("FIXED", ["Thing ([#12](https://github.com/owner/repo/pull/12))"])
        ]


# =============================================================================
# After finishing
# =============================================================================


class TestForceRelease:
    def test_empty_becomes_patch_with_notice(self) -> None:
        cs = build().force_release()

        assert cs.semver is Semver.PATCH
        assert groups(cs) == [(None, ["No significant updates."])]
        assert not cs.empty

    def test_non_empty_unchanged(self) -> None:
        cs = build(commit("a1", "feat: Add A")).force_release()

        assert cs.semver is Semver.MINOR
        assert groups(cs) == [("ADDED", ["Add A"])]


class TestDependencyUpdate:
    def test_replaces_notice(self) -> None:
        cs = build().force_release().add_dependency_update("core", Version.parse("1.1.0"))

        assert cs.semver is Semver.PATCH
        assert groups(cs) == [("DEPENDENCY", ["Updated dependency on core to 1.1.0"])]

    def test_appends_to_existing_changes(self) -> None:
        cs = build(commit("a1", "feat: Add A"))
        cs.add_dependency_update("core", "2.0.0")
        cs.add_dependency_update("util", "0.3.0")

        assert cs.semver is Semver.MINOR
        assert groups(cs) == [
            ("ADDED", ["Add A"]),
            ("DEPENDENCY", ["Updated dependency on core to 2.0.0", "Updated dependency on util to 0.3.0"]),
        ]

    def test_custom_header(self) -> None:
        cs = build(update_dependency_header="DEPS")
        cs.add_dependency_update("core", "1.0.0")
        assert groups(cs) == [("DEPS", ["Updated dependency on core to 1.0.0"])]


class TestSuggestedVersion:
    def test_no_release_needed(self) -> None:
        assert build().suggested_version(Version.parse("1.0.0")) is None

    def test_next_minor(self) -> None:
        cs = build(commit("a1", "feat: Add A"))
        assert cs.suggested_version(Version.parse("1.0.3")) == Version.parse("1.1.0")


class TestLifecycle:
    def test_results_require_finish(self) -> None:
        cs = ChangeSet(TAGS)
        with pytest.raises(InvalidStateError):
            _ = cs.semver
        with pytest.raises(InvalidStateError):
            cs.force_release()
        assert str(cs) == "ChangeSet(unfinished)"

    def test_cannot_add_after_finish(self) -> None:
        cs = build()
        with pytest.raises(InvalidStateError):
            cs.add_commit(commit("a1", "feat: Late"))
        with pytest.raises(InvalidStateError):
            cs.finish()

    def test_str(self) -> None:
        cs = build(commit("a1", "feat: Add A"))
        assert str(cs) == "Semver: minor\nADDED: Add A"
