"""Locating and parsing the releases.yml configuration file.

This module only turns the file into nested maps; the typed settings model
is built from those maps by `releaser.release.settings`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import yaml

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict

__all__ = [
    "ConfigError",
    "SETTINGS_FILE_NAMES",
    "find_settings_file",
    "load_yaml",
]

# Searched in order, relative to the repository root.
SETTINGS_FILE_NAMES = (
    "releases.yml",
    ".releases.yml",
    ".github/releases.yml",
)


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when the configuration cannot be loaded or is invalid.

    Attributes:
        message: Summary of the failure.
        path: The file involved, if any.
        details: Individual problems, when validation found several.
    """

    message: str
    path: Path | None = None
    details: tuple[str, ...] = field(default_factory=tuple)

    def pretty(self) -> str:
        lines = [self.message if self.path is None else f"{self.message} ({self.path})"]
        lines.extend(f"  - {detail}" for detail in self.details)
        return "\n".join(lines)


def find_settings_file(root: Path) -> Path | None:
    """Return the first settings file that exists under root, or None."""
    for name in SETTINGS_FILE_NAMES:
        candidate = root / name
        if candidate.is_file():
            return candidate
    return None


def load_yaml(path: Path) -> Result[StrDict, ConfigError]:
    """Parse a YAML file whose root must be a mapping.

    An empty file is treated as an empty mapping.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))

    try:
        data_obj: object = yaml.safe_load(text)
    except yaml.YAMLError as e:
        return Err(ConfigError(f"Invalid YAML syntax: {e}", path=path))

    if data_obj is None:
        return Ok({})
    data = as_str_dict(data_obj)
    if data is None:
        return Err(ConfigError("Config root must be a mapping", path=path))
    return Ok(data)
