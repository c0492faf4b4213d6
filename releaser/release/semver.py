from __future__ import annotations

import re
from dataclasses import dataclass
from enum import IntEnum

__all__ = ["Semver", "Version", "suggest_version"]


_VERSION_RE = re.compile(r"^v?(0|[1-9]\d*)((?:\.(?:0|[1-9]\d*))*)$")


@dataclass(frozen=True, slots=True, eq=False)
class Version:
    """A release version made of numeric segments.

    Trailing zero segments are insignificant: `1.2` equals `1.2.0`.
    """

    segments: tuple[int, ...]

    @classmethod
    def parse(cls, text: str) -> Version:
        m = _VERSION_RE.match(text.strip())
        if m is None:
            raise ValueError(f"malformed version: {text!r}")
        rest = [int(part) for part in m.group(2).split(".") if part]
        return cls((int(m.group(1)), *rest))

    @classmethod
    def try_parse(cls, text: str) -> Version | None:
        try:
            return cls.parse(text)
        except ValueError:
            return None

    @property
    def major(self) -> int:
        return self.segments[0] if self.segments else 0

    def padded(self, length: int) -> tuple[int, ...]:
        return self.segments + (0,) * max(0, length - len(self.segments))

    def _key(self) -> tuple[int, ...]:
        segs = list(self.segments)
        while segs and segs[-1] == 0:
            segs.pop()
        return tuple(segs)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __lt__(self, other: Version) -> bool:
        return self._key() < other._key()

    def __le__(self, other: Version) -> bool:
        return self._key() <= other._key()

    def __gt__(self, other: Version) -> bool:
        return self._key() > other._key()

    def __ge__(self, other: Version) -> bool:
        return self._key() >= other._key()

    def __str__(self) -> str:
        return ".".join(str(s) for s in self.segments)


class Semver(IntEnum):
    """Magnitude of a version bump, ordered by severity."""

    NONE = 0
    PATCH2 = 1
    PATCH = 2
    MINOR = 3
    MAJOR = 4

    @classmethod
    def for_name(cls, name: str) -> Semver:
        """Look up a level by name, case-insensitively.

        Raises:
            ValueError: If the name is not a semver level.
        """
        try:
            return cls[name.strip().upper()]
        except KeyError:
            raise ValueError(f"unknown semver level: {name!r}") from None

    @property
    def segment(self) -> int | None:
        """Index of the version segment this level increments."""
        return _SEGMENTS.get(self)

    @property
    def significant(self) -> bool:
        return self is not Semver.NONE

    def bump(self, version: Version | None) -> Version | None:
        """Increment the matching segment of version and zero the lower ones.

        A missing version counts as 0.0.0. NONE returns version unchanged.
        """
        seg = self.segment
        if seg is None:
            return version
        segs = list(version.segments) if version is not None else [0, 0, 0]
        width = max(seg, 2) + 1
        segs = (segs + [0] * width)[:width]
        segs[seg] += 1
        for i in range(seg + 1, width):
            segs[i] = 0
        return Version(tuple(segs))

    @classmethod
    def for_diff(cls, old: Version | None, new: Version | None) -> Semver:
        """Smallest level whose bump explains going from old to new.

        Creating a version from nothing counts as at least a patch.
        """
        if new is None:
            return cls.NONE
        base = old if old is not None else Version((0,))
        width = max(len(base.segments), len(new.segments))
        level = cls.NONE
        for index, (a, b) in enumerate(zip(base.padded(width), new.padded(width))):
            if a != b:
                level = _BY_SEGMENT.get(index, cls.PATCH2)
                break
        if old is None and level < cls.PATCH:
            level = cls.PATCH
        return level

    def __str__(self) -> str:
        return self.name.lower()


_SEGMENTS = {Semver.MAJOR: 0, Semver.MINOR: 1, Semver.PATCH: 2, Semver.PATCH2: 3}
_BY_SEGMENT = {seg: level for level, seg in _SEGMENTS.items()}


def suggest_version(current: Version | None, level: Semver) -> Version | None:
    """Next version after current for a change of the given level.

    Before 1.0, breaking changes only bump the minor segment.
    """
    if level is Semver.MAJOR and (current is None or current.major == 0):
        level = Semver.MINOR
    return level.bump(current)
