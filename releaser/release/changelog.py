"""Reading and updating a component's CHANGELOG.md and version file."""

from __future__ import annotations

import re
from datetime import UTC, date, datetime
from pathlib import Path

from releaser.core.result import Err, Ok, Result
from releaser.platform.files import atomic_write_text
from releaser.release.change_set import ChangeSet
from releaser.release.errors import ReleaseError
from releaser.release.semver import Version

__all__ = ["ChangelogFile", "VersionFile"]

CHANGELOG_TITLE = "# Release History"

_ENTRY_HEADING_RE = re.compile(r"^### v(\d+(?:\.\d+)*) / \d{4}-\d{2}-\d{2}\s*$", re.MULTILINE)
_VERSION_ASSIGN_RE = re.compile(
    r"""^(?P<lhs>\s*(?:__version__|VERSION)\s*=\s*)(?P<q>["'])(?P<version>[^"']+)(?P=q)""",
    re.MULTILINE,
)


class ChangelogFile:
    """A markdown changelog with `### v1.2.3 / 2024-01-31` entry headings.

    The newest entry comes first, right below the title.
    """

    def __init__(self, path: Path, *, bullet: str = "*") -> None:
        self.path = path
        self.bullet = bullet

    def exists(self) -> bool:
        return self.path.is_file()

    def content(self) -> str:
        return self.path.read_text(encoding="utf-8")

    @property
    def current_version(self) -> Version | None:
        if not self.exists():
            return None
        return self.current_version_from_content(self.content())

    @staticmethod
    def current_version_from_content(content: str) -> Version | None:
        m = _ENTRY_HEADING_RE.search(content)
        return Version.parse(m.group(1)) if m else None

    def render_entry(
        self, change_set: ChangeSet, version: Version | str, on: date | str | None = None
    ) -> str:
        day = on or datetime.now(UTC).date()
        stamp = day if isinstance(day, str) else day.strftime("%Y-%m-%d")
        lines = [f"### v{version} / {stamp}", ""]
        for group in change_set.change_groups:
            lines.extend(f"{self.bullet} {line}" for line in group.prefixed_changes)
        return "\n".join(lines) + "\n"

    def append(
        self, change_set: ChangeSet, version: Version | str, on: date | str | None = None
    ) -> None:
        """Insert a new entry above the latest one (or below the title)."""
        entry = self.render_entry(change_set, version, on)
        content = self.content() if self.exists() else f"{CHANGELOG_TITLE}\n"
        m = _ENTRY_HEADING_RE.search(content)
        if m is not None:
            new_content = f"{content[: m.start()]}{entry}\n{content[m.start():]}"
        else:
            new_content = f"{content.rstrip()}\n\n{entry}"
        atomic_write_text(self.path, new_content)

    def read_latest_entry(self, version: Version | str) -> Result[str, ReleaseError]:
        """Text of the newest entry, which must be for version."""
        if not self.exists():
            return Err(
                ReleaseError(kind="inconsistent_state", message=f"changelog not found: {self.path}")
            )
        content = self.content()
        matches = list(_ENTRY_HEADING_RE.finditer(content))
        if not matches:
            return Err(
                ReleaseError(
                    kind="inconsistent_state",
                    message=f"changelog {self.path} has no entries",
                    hint=f"The first entry should start with: ### v{version} / YYYY-MM-DD",
                )
            )
        first = matches[0]
        if Version.parse(first.group(1)) != Version.parse(str(version)):
            return Err(
                ReleaseError(
                    kind="inconsistent_state",
                    message=(
                        f"latest changelog entry in {self.path} is v{first.group(1)}, "
                        f"expected v{version}"
                    ),
                )
            )
        end = matches[1].start() if len(matches) > 1 else len(content)
        return Ok(content[first.start() : end].rstrip() + "\n")


class VersionFile:
    """A Python source file assigning `__version__` (or `VERSION`)."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def exists(self) -> bool:
        return self.path.is_file()

    def content(self) -> str:
        return self.path.read_text(encoding="utf-8")

    @property
    def current_version(self) -> Version | None:
        if not self.exists():
            return None
        return self.current_version_from_content(self.content())

    @staticmethod
    def current_version_from_content(content: str) -> Version | None:
        m = _VERSION_ASSIGN_RE.search(content)
        return Version.try_parse(m.group("version")) if m else None

    def update_version(self, version: Version | str) -> Result[None, ReleaseError]:
        content = self.content() if self.exists() else ""
        new_content, count = _VERSION_ASSIGN_RE.subn(
            lambda m: f"{m.group('lhs')}{m.group('q')}{version}{m.group('q')}", content, count=1
        )
        if count == 0:
            return Err(
                ReleaseError(
                    kind="inconsistent_state",
                    message=f"no __version__ assignment found in {self.path}",
                )
            )
        atomic_write_text(self.path, new_content)
        return Ok(None)
