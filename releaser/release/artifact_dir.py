"""Per-pipeline scratch area for step output and temp directories."""

from __future__ import annotations

import tempfile
import uuid
from pathlib import Path
from types import TracebackType

from releaser.platform.files import remove_tree

__all__ = ["ArtifactDir"]


class ArtifactDir:
    """Hands out named directories under one base directory.

    Every call to get() with the same name returns the same path; the
    directory is created (empty) on first request. Without an explicit
    base_dir, a temporary base is created lazily and removed by cleanup().

    Usage:
        with ArtifactDir() as artifacts:
            out = artifacts.output("build_dist")
    """

    def __init__(self, base_dir: Path | None = None) -> None:
        self._base_dir = base_dir
        self._owns_base = False
        self._random_id = uuid.uuid4().hex[:10]
        self._created: dict[str, Path] = {}

    @property
    def base_dir(self) -> Path:
        if self._base_dir is None:
            self._base_dir = Path(tempfile.mkdtemp(prefix="releaser-"))
            self._owns_base = True
        return self._base_dir

    def get(self, name: str | None = None) -> Path:
        key = name or ""
        path = self._created.get(key)
        if path is None:
            dir_name = f"{name}-{self._random_id}" if name else self._random_id
            path = self.base_dir / dir_name
            remove_tree(path)
            path.mkdir(parents=True)
            self._created[key] = path
        return path

    def output(self, step_name: str) -> Path:
        return self.get(f"out-{step_name}")

    def temp(self, step_name: str) -> Path:
        return self.get(f"temp-{step_name}")

    def created(self) -> list[Path]:
        """Directories handed out so far, in creation order."""
        return list(self._created.values())

    def cleanup(self) -> None:
        """Remove everything this object created."""
        if self._owns_base and self._base_dir is not None:
            remove_tree(self._base_dir)
            self._base_dir = None
            self._owns_base = False
        else:
            for path in self._created.values():
                remove_tree(path)
        self._created.clear()

    def __enter__(self) -> ArtifactDir:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.cleanup()
