"""Release engine.

- semver / change_set: how commits turn into a bump level and changelog groups
- settings / component: what releases.yml declares and how it maps onto history
- request_spec: which components release, at which versions
- pipeline / steps / performer: how a release is built and published
"""

from __future__ import annotations

from releaser.release.artifact_dir import ArtifactDir
from releaser.release.change_set import ChangeGroup, ChangeSet
from releaser.release.changelog import ChangelogFile, VersionFile
from releaser.release.component import Component, build_components
from releaser.release.errors import (
    InvalidStateError,
    PipelineExit,
    ReleaseError,
    ReleaseErrorKind,
    StepExit,
)
from releaser.release.performer import ComponentResult, Performer
from releaser.release.pipeline import Pipeline, PipelineReport, StepContext, copy_path
from releaser.release.request_spec import RequestSpec, ResolvedComponent
from releaser.release.semver import Semver, Version, suggest_version
from releaser.release.settings import RepoSettings, load_settings, parse_settings
from releaser.release.steps import STEP_TYPES, StepType, get_step_type

__all__ = [
    "ArtifactDir",
    "ChangeGroup",
    "ChangeSet",
    "ChangelogFile",
    "Component",
    "ComponentResult",
    "InvalidStateError",
    "Performer",
    "Pipeline",
    "PipelineExit",
    "PipelineReport",
    "ReleaseError",
    "ReleaseErrorKind",
    "RepoSettings",
    "RequestSpec",
    "ResolvedComponent",
    "STEP_TYPES",
    "Semver",
    "StepContext",
    "StepExit",
    "StepType",
    "Version",
    "VersionFile",
    "build_components",
    "copy_path",
    "get_step_type",
    "load_settings",
    "parse_settings",
    "suggest_version",
]
