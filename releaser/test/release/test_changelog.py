"""Tests for releaser.release.changelog."""

from __future__ import annotations

from datetime import date
from pathlib import Path

from releaser.core.result import Err, Ok
from releaser.git.commit import CommitInfo
from releaser.release.change_set import ChangeSet
from releaser.release.changelog import ChangelogFile, VersionFile
from releaser.release.semver import Semver, Version
from releaser.release.settings import CommitTagSettings

EXISTING = """# Release History

### v1.0.0 / 2024-01-01

* Initial release

### v0.9.0 / 2023-12-01

* FIXED: Older fix
"""


def change_set() -> ChangeSet:
    tags = [
        CommitTagSettings(tag="feat", header="ADDED", semver=Semver.MINOR),
        CommitTagSettings(tag="fix", header="FIXED", semver=Semver.PATCH),
    ]
    commits = [
        CommitInfo("a1", message="feat: Add A"),
        CommitInfo("b2", message="fix: Fix B"),
    ]
    return ChangeSet(tags).add_commits(commits).finish()


class TestChangelogFile:
    def test_current_version(self, tmp_path: Path) -> None:
        path = tmp_path / "CHANGELOG.md"
        path.write_text(EXISTING, encoding="utf-8")

        assert ChangelogFile(path).current_version == Version.parse("1.0.0")

    def test_missing_file_has_no_version(self, tmp_path: Path) -> None:
        changelog = ChangelogFile(tmp_path / "CHANGELOG.md")
        assert not changelog.exists()
        assert changelog.current_version is None

    def test_render_entry(self, tmp_path: Path) -> None:
        changelog = ChangelogFile(tmp_path / "CHANGELOG.md", bullet="-")
        entry = changelog.render_entry(change_set(), "1.1.0", date(2024, 2, 1))
        assert entry == "### v1.1.0 / 2024-02-01\n\n- ADDED: Add A\n- FIXED: Fix B\n"

    def test_append_above_latest(self, tmp_path: Path) -> None:
        path = tmp_path / "CHANGELOG.md"
        path.write_text(EXISTING, encoding="utf-8")

        ChangelogFile(path).append(change_set(), Version.parse("1.1.0"), "2024-02-01")

        content = path.read_text(encoding="utf-8")
        assert content.startswith(
            "# Release History\n\n### v1.1.0 / 2024-02-01\n\n* ADDED: Add A\n* FIXED: Fix B\n\n"
            "### v1.0.0 / 2024-01-01\n"
        )
        assert ChangelogFile(path).current_version == Version.parse("1.1.0")

    def test_append_creates_file(self, tmp_path: Path) -> None:
        path = tmp_path / "CHANGELOG.md"

        ChangelogFile(path).append(change_set(), "0.1.0", "2024-02-01")

        assert path.read_text(encoding="utf-8") == (
            "# Release History\n\n### v0.1.0 / 2024-02-01\n\n* ADDED: Add A\n* FIXED: Fix B\n"
        )

    def test_read_latest_entry(self, tmp_path: Path) -> None:
        path = tmp_path / "CHANGELOG.md"
        path.write_text(EXISTING, encoding="utf-8")

        result = ChangelogFile(path).read_latest_entry("1.0")

        assert result == Ok("### v1.0.0 / 2024-01-01\n\n* Initial release\n")

    def test_read_latest_entry_version_mismatch(self, tmp_path: Path) -> None:
        path = tmp_path / "CHANGELOG.md"
        path.write_text(EXISTING, encoding="utf-8")

        result = ChangelogFile(path).read_latest_entry("1.1.0")

        assert isinstance(result, Err)
        assert result.error.kind == "inconsistent_state"
        assert "expected v1.1.0" in result.error.message

    def test_read_latest_entry_without_entries(self, tmp_path: Path) -> None:
        path = tmp_path / "CHANGELOG.md"
        path.write_text("# Release History\n", encoding="utf-8")

        result = ChangelogFile(path).read_latest_entry("1.0.0")

        assert isinstance(result, Err)
        assert result.error.hint == "The first entry should start with: ### v1.0.0 / YYYY-MM-DD"


class TestVersionFile:
    def test_current_version(self, tmp_path: Path) -> None:
        path = tmp_path / "__init__.py"
        path.write_text('"""Pkg."""\n\n__version__ = "1.2.3"\n', encoding="utf-8")

        assert VersionFile(path).current_version == Version.parse("1.2.3")

    def test_update_version_keeps_quotes(self, tmp_path: Path) -> None:
        path = tmp_path / "version.py"
        path.write_text("VERSION = '0.1.0'\nOTHER = '0.1.0'\n", encoding="utf-8")

        assert VersionFile(path).update_version("0.2.0") == Ok(None)
        assert path.read_text(encoding="utf-8") == "VERSION = '0.2.0'\nOTHER = '0.1.0'\n"

    def test_update_without_assignment(self, tmp_path: Path) -> None:
        path = tmp_path / "__init__.py"
        path.write_text("x = 1\n", encoding="utf-8")

        result = VersionFile(path).update_version("1.0.0")

        assert isinstance(result, Err)
        assert path.read_text(encoding="utf-8") == "x = 1\n"
