"""Typed release settings built from releases.yml.

The loader walks the parsed YAML once, collecting every problem it finds, and
either returns a fully validated RepoSettings or a single ConfigError listing
all of them. Nothing downstream re-validates settings.

Step lists are assembled from raw mappings first (so that modify/prepend/
append/delete can operate on plain data) and frozen into StepSettings last.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Literal, cast

from releaser.core.config import ConfigError, load_yaml
from releaser.core.result import Err, Ok, Result
from releaser.core.structured import (
    StrDict,
    as_obj_list,
    as_str_dict,
    get_bool,
    get_list,
    get_str,
    get_str_list,
    get_table,
)
from releaser.release.semver import Semver
from releaser.release.steps import STEP_TYPES

__all__ = [
    "HIDDEN",
    "CollisionPolicy",
    "CommitTagSettings",
    "ComponentSettings",
    "Header",
    "Hidden",
    "InputDest",
    "InputSpec",
    "IssueSuffixHandling",
    "OutputSource",
    "OutputSpec",
    "RepoSettings",
    "ScopeSettings",
    "StepSettings",
    "UpdateDependencies",
    "load_settings",
    "parse_settings",
]


class Hidden(Enum):
    """Marker for a commit tag whose changes stay out of the changelog."""

    HIDDEN = "hidden"


HIDDEN = Hidden.HIDDEN

Header = str | Hidden
CollisionPolicy = Literal["error", "keep", "replace"]
InputDest = Literal["component", "repo_root", "output", "temp", "none"]
OutputSource = Literal["component", "repo_root", "temp"]
IssueSuffixHandling = Literal["plain", "delete", "link"]

_COLLISIONS: tuple[CollisionPolicy, ...] = ("error", "keep", "replace")
_INPUT_DESTS: tuple[InputDest, ...] = ("component", "repo_root", "output", "temp", "none")
_OUTPUT_SOURCES: tuple[OutputSource, ...] = ("component", "repo_root", "temp")
_SUFFIX_HANDLING: tuple[IssueSuffixHandling, ...] = ("plain", "delete", "link")
_BULLETS = ("*", "-")

DEFAULT_MAIN_BRANCH = "main"
DEFAULT_GIT_REMOTE = "origin"
DEFAULT_BREAKING_CHANGE_HEADER = "BREAKING CHANGE"
DEFAULT_UPDATE_DEPENDENCY_HEADER = "DEPENDENCY"
DEFAULT_NO_SIGNIFICANT_UPDATES_NOTICE = "No significant updates."
DEFAULT_RELEASE_BRANCH_PREFIX = "release"

DEFAULT_COMMIT_TAGS: tuple[object, ...] = (
    {"tag": "feat", "header": "ADDED", "semver": "minor"},
    {"tag": "fix", "header": "FIXED"},
    "docs",
)

DEFAULT_STEPS: tuple[StrDict, ...] = (
    {"name": "build_dist"},
    {"name": "release_pypi"},
    {"name": "release_github"},
)

_TOP_LEVEL_KEYS = frozenset(
    {
        "repo",
        "main_branch",
        "git_remote",
        "git_user_name",
        "git_user_email",
        "signoff_commits",
        "release_branch_prefix",
        "commit_tags",
        "breaking_change_header",
        "update_dependency_header",
        "no_significant_updates_notice",
        "issue_number_suffix_handling",
        "changelog_bullet",
        "components",
        "coordination_groups",
        "coordinate_versions",
        "steps",
        "modify_steps",
        "prepend_steps",
        "append_steps",
        "delete_steps",
    }
)

_COMPONENT_KEYS = frozenset(
    {
        "name",
        "directory",
        "changelog_path",
        "version_file_path",
        "include_globs",
        "exclude_globs",
        "commit_tags",
        "breaking_change_header",
        "update_dependency_header",
        "no_significant_updates_notice",
        "issue_number_suffix_handling",
        "update_dependencies",
        "steps",
        "modify_steps",
        "prepend_steps",
        "append_steps",
        "delete_steps",
    }
)

_TAG_KEYS = frozenset({"tag", "header", "semver", "scopes"})
_SCOPE_KEYS = frozenset({"scope", "header", "semver"})
_INPUT_KEYS = frozenset({"name", "source_path", "dest_path", "dest", "collisions"})
_OUTPUT_KEYS = frozenset({"source", "source_path", "dest_path", "collisions"})
_UPDATE_DEPS_KEYS = frozenset(
    {"dependencies", "dependency_semver_threshold", "pessimistic_constraint_level"}
)
_STEP_STRUCTURAL_KEYS = frozenset({"name", "type", "run", "inputs", "outputs"})


# -----------------------------------------------------------------------------
# Settings model
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ScopeSettings:
    """Per-scope override of a commit tag. None fields inherit from the tag."""

    header: Header | None = None
    semver: Semver | None = None


@dataclass(frozen=True, slots=True)
class CommitTagSettings:
    """How one conventional commit tag maps to a changelog header and bump."""

    tag: str
    header: Header
    semver: Semver
    scopes: Mapping[str, ScopeSettings] = field(default_factory=dict)

    def resolve(self, scope: str | None = None) -> tuple[Header, Semver]:
        """Effective (header, semver) for a commit with the given scope."""
        override = self.scopes.get(scope) if scope is not None else None
        if override is None:
            return self.header, self.semver
        header = override.header if override.header is not None else self.header
        semver = override.semver if override.semver is not None else self.semver
        return header, semver


@dataclass(frozen=True, slots=True)
class UpdateDependencies:
    dependencies: tuple[str, ...]
    semver_threshold: Semver = Semver.MINOR
    constraint_level: Semver = Semver.MINOR


@dataclass(frozen=True, slots=True)
class InputSpec:
    """Copy from an earlier step's output directory before a step runs.

    With dest "none" nothing is copied; the input only declares a dependency.
    """

    name: str
    source_path: str | None = None
    dest_path: str | None = None
    dest: InputDest = "component"
    collisions: CollisionPolicy = "error"

    def to_dict(self) -> StrDict:
        return {
            "name": self.name,
            "source_path": self.source_path,
            "dest_path": self.dest_path,
            "dest": self.dest,
            "collisions": self.collisions,
        }


@dataclass(frozen=True, slots=True)
class OutputSpec:
    """Copy into the step's own output directory after the step runs."""

    source_path: str | None = None
    dest_path: str | None = None
    source: OutputSource = "component"
    collisions: CollisionPolicy = "error"

    def to_dict(self) -> StrDict:
        return {
            "source": self.source,
            "source_path": self.source_path,
            "dest_path": self.dest_path,
            "collisions": self.collisions,
        }


@dataclass(frozen=True, slots=True)
class StepSettings:
    """One pipeline step as configured.

    Attributes:
        name: Unique name within the component's step list.
        type: Key into the step type registry.
        run: Whether the step is requested unconditionally.
        inputs: Artifacts pulled from earlier steps.
        outputs: Artifacts pushed to this step's output directory.
        options: Every other key, passed through to the step type.
    """

    name: str
    type: str
    run: bool = False
    inputs: tuple[InputSpec, ...] = ()
    outputs: tuple[OutputSpec, ...] = ()
    options: Mapping[str, object] = field(default_factory=dict)

    def to_dict(self) -> StrDict:
        data: StrDict = {
            "name": self.name,
            "type": self.type,
            "run": self.run,
            "inputs": [i.to_dict() for i in self.inputs],
            "outputs": [o.to_dict() for o in self.outputs],
        }
        data.update(copy.deepcopy(dict(self.options)))
        return data


@dataclass(frozen=True, slots=True)
class ComponentSettings:
    name: str
    directory: str = "."
    changelog_path: str = "CHANGELOG.md"
    version_file_path: str | None = None
    include_globs: tuple[str, ...] = ()
    exclude_globs: tuple[str, ...] = ()
    commit_tags: tuple[CommitTagSettings, ...] = ()
    issue_number_suffix_handling: IssueSuffixHandling = "plain"
    breaking_change_header: str = DEFAULT_BREAKING_CHANGE_HEADER
    update_dependency_header: str = DEFAULT_UPDATE_DEPENDENCY_HEADER
    no_significant_updates_notice: str = DEFAULT_NO_SIGNIFICANT_UPDATES_NOTICE
    changelog_bullet: str = "*"
    update_dependencies: UpdateDependencies | None = None
    steps: tuple[StepSettings, ...] = ()

    def commit_tag_named(self, tag: str) -> CommitTagSettings | None:
        for tag_settings in self.commit_tags:
            if tag_settings.tag == tag:
                return tag_settings
        return None

    def step_named(self, name: str) -> StepSettings | None:
        for step in self.steps:
            if step.name == name:
                return step
        return None


@dataclass(frozen=True, slots=True)
class RepoSettings:
    """Validated contents of releases.yml.

    Attributes:
        repo_path: GitHub `owner/name` of the repository.
        components: Component settings in declaration order.
        coordination_groups: Names of components that always release together.
    """

    repo_path: str
    components: tuple[ComponentSettings, ...]
    coordination_groups: tuple[tuple[str, ...], ...] = ()
    main_branch: str = DEFAULT_MAIN_BRANCH
    git_remote: str = DEFAULT_GIT_REMOTE
    git_user_name: str | None = None
    git_user_email: str | None = None
    signoff_commits: bool = False
    release_branch_prefix: str = DEFAULT_RELEASE_BRANCH_PREFIX
    commit_tags: tuple[CommitTagSettings, ...] = ()
    issue_number_suffix_handling: IssueSuffixHandling = "plain"
    breaking_change_header: str = DEFAULT_BREAKING_CHANGE_HEADER
    update_dependency_header: str = DEFAULT_UPDATE_DEPENDENCY_HEADER
    no_significant_updates_notice: str = DEFAULT_NO_SIGNIFICANT_UPDATES_NOTICE
    changelog_bullet: str = "*"

    @property
    def repo_owner(self) -> str:
        return self.repo_path.split("/")[0]

    @property
    def repo_name(self) -> str:
        return self.repo_path.split("/")[-1]

    @property
    def all_component_names(self) -> list[str]:
        return [c.name for c in self.components]

    def component_settings(self, name: str) -> ComponentSettings | None:
        for component in self.components:
            if component.name == name:
                return component
        return None

    def coordination_group_of(self, name: str) -> tuple[str, ...]:
        """The group containing name, or a one-member group."""
        for group in self.coordination_groups:
            if name in group:
                return group
        return (name,)


# -----------------------------------------------------------------------------
# Loading
# -----------------------------------------------------------------------------


def load_settings(path: Path) -> Result[RepoSettings, ConfigError]:
    """Load and validate releases.yml at path."""
    match load_yaml(path):
        case Err(e):
            return Err(e)
        case Ok(data):
            return parse_settings(data, path=path)


def parse_settings(data: StrDict, *, path: Path | None = None) -> Result[RepoSettings, ConfigError]:
    """Validate parsed YAML and build RepoSettings.

    Every problem is reported, not just the first.
    """
    loader = _Loader()
    settings = loader.load(data)
    if loader.errors or settings is None:
        return Err(
            ConfigError(
                "Errors while loading release settings",
                path=path,
                details=tuple(loader.errors),
            )
        )
    return Ok(settings)


class _Loader:
    def __init__(self) -> None:
        self.errors: list[str] = []

    def error(self, message: str) -> None:
        self.errors.append(message)

    def load(self, data: StrDict) -> RepoSettings | None:
        for key in data:
            if key not in _TOP_LEVEL_KEYS:
                self.error(f"Unknown top level key {key!r}")

        repo_path = get_str(data, "repo")
        if repo_path is None:
            self.error("Required key 'repo' missing")

        suffix = self.enum_value(
            data, "issue_number_suffix_handling", _SUFFIX_HANDLING, "plain", "top level"
        )
        bullet = get_str(data, "changelog_bullet") or "*"
        if bullet not in _BULLETS:
            self.error(f"changelog_bullet must be one of {', '.join(_BULLETS)}, got {bullet!r}")
            bullet = "*"

        tag_data = data["commit_tags"] if "commit_tags" in data else list(DEFAULT_COMMIT_TAGS)
        commit_tags = self.commit_tags(tag_data, "top level")

        breaking = get_str(data, "breaking_change_header") or DEFAULT_BREAKING_CHANGE_HEADER
        dep_header = get_str(data, "update_dependency_header") or DEFAULT_UPDATE_DEPENDENCY_HEADER
        notice = get_str(data, "no_significant_updates_notice") or DEFAULT_NO_SIGNIFICANT_UPDATES_NOTICE

        if "steps" in data:
            base_steps = self.raw_steps(data["steps"], "steps")
        else:
            base_steps = [dict(s) for s in DEFAULT_STEPS]
        base_steps = self.apply_step_modifications(base_steps, data, "top level")

        component_list = get_list(data, "components") or []
        multiple = len(component_list) > 1
        components: list[ComponentSettings] = []
        seen: set[str] = set()
        for item in component_list:
            info = as_str_dict(item)
            if info is None:
                self.error("Each component must be a mapping")
                continue
            component = self.component(
                info,
                multiple=multiple,
                commit_tags=commit_tags,
                suffix=suffix,
                breaking=breaking,
                dep_header=dep_header,
                notice=notice,
                bullet=bullet,
                base_steps=base_steps,
            )
            if component is None:
                continue
            if component.name in seen:
                self.error(f"Duplicate component {component.name!r}")
                continue
            seen.add(component.name)
            components.append(component)
        if not components:
            self.error("No components found")

        groups = self.coordination_groups(data, [c.name for c in components])

        if repo_path is None:
            return None
        return RepoSettings(
            repo_path=repo_path,
            components=tuple(components),
            coordination_groups=groups,
            main_branch=get_str(data, "main_branch") or DEFAULT_MAIN_BRANCH,
            git_remote=get_str(data, "git_remote") or DEFAULT_GIT_REMOTE,
            git_user_name=get_str(data, "git_user_name"),
            git_user_email=get_str(data, "git_user_email"),
            signoff_commits=get_bool(data, "signoff_commits"),
            release_branch_prefix=get_str(data, "release_branch_prefix")
            or DEFAULT_RELEASE_BRANCH_PREFIX,
            commit_tags=commit_tags,
            issue_number_suffix_handling=suffix,
            breaking_change_header=breaking,
            update_dependency_header=dep_header,
            no_significant_updates_notice=notice,
            changelog_bullet=bullet,
        )

    # -- scalar helpers --------------------------------------------------------

    def enum_value[T: str](
        self,
        table: Mapping[str, object],
        key: str,
        allowed: tuple[T, ...],
        default: T,
        where: str,
    ) -> T:
        value = table.get(key)
        if value is None:
            return default
        for candidate in allowed:
            if value == candidate:
                return candidate
        self.error(f"Unknown {key} {value!r} in {where} (expected one of {', '.join(allowed)})")
        return default

    def semver(self, value: object, where: str) -> Semver | None:
        if value is None:
            return Semver.NONE
        if not isinstance(value, str):
            self.error(f"Semver for {where} must be a string, got {value!r}")
            return None
        if value.lower() in ("all", "exact"):
            return Semver.NONE
        try:
            return Semver.for_name(value)
        except ValueError:
            self.error(f"Unknown semver {value!r} for {where}")
            return None

    def header(self, table: Mapping[str, object], default: Header) -> Header:
        if "header" not in table:
            return default
        value = table["header"]
        if value is None or value is False:
            return HIDDEN
        return str(value)

    # -- commit tags -----------------------------------------------------------

    def commit_tags(self, data: object, where: str) -> tuple[CommitTagSettings, ...]:
        items = as_obj_list(data)
        if items is None:
            self.error(f"commit_tags in {where} must be a list")
            return ()
        result: list[CommitTagSettings] = []
        for item in items:
            tag = self.commit_tag(item)
            if tag is not None:
                result.append(tag)
        return tuple(result)

    def commit_tag(self, item: object) -> CommitTagSettings | None:
        if isinstance(item, str):
            return CommitTagSettings(tag=item, header=item.upper(), semver=Semver.PATCH)
        info = as_str_dict(item)
        if info is None:
            self.error(f"Commit tag must be a string or mapping, got {item!r}")
            return None
        if "tag" not in info and len(info) == 1:
            tag, value = next(iter(info.items()))
            nested = as_str_dict(value)
            if nested is not None:
                info = {"tag": tag, **nested}
            else:
                info = {"tag": tag, "semver": value}
        tag = get_str(info, "tag")
        if tag is None:
            self.error(f"Commit tag missing in {info!r}")
            return None
        for key in info:
            if key not in _TAG_KEYS:
                self.error(f"Unknown key {key!r} in configuration of tag {tag!r}")
        header = self.header(info, tag.upper())
        default_semver = "none" if header is HIDDEN else "patch"
        semver = self.semver(info.get("semver", default_semver), f"tag {tag!r}")
        scopes = self.scopes(tag, info.get("scopes"))
        if semver is None:
            return None
        return CommitTagSettings(tag=tag, header=header, semver=semver, scopes=scopes)

    def scopes(self, tag: str, data: object) -> dict[str, ScopeSettings]:
        if data is None:
            return {}
        entries: list[tuple[str, object]] = []
        table = as_str_dict(data)
        items = as_obj_list(data)
        if table is not None:
            entries = list(table.items())
        elif items is not None:
            for item in items:
                info = as_str_dict(item)
                scope = get_str(info, "scope") if info is not None else None
                if info is None or scope is None:
                    self.error(f"Commit tag scope missing under tag {tag!r}")
                    continue
                entries.append((scope, {k: v for k, v in info.items() if k != "scope"}))
        else:
            self.error(f"scopes under tag {tag!r} must be a mapping or list")
            return {}

        scopes: dict[str, ScopeSettings] = {}
        for scope, value in entries:
            where = f"tag {tag}({scope})"
            if isinstance(value, str):
                semver = self.semver(value, where)
                if semver is not None:
                    scopes[scope] = ScopeSettings(semver=semver)
                continue
            info = as_str_dict(value)
            if info is None:
                self.error(f"Scope {where} must be a semver name or mapping")
                continue
            for key in info:
                if key not in _SCOPE_KEYS:
                    self.error(f"Unknown key {key!r} in configuration of tag {f'{tag}({scope})'!r}")
            semver = self.semver(info["semver"], where) if "semver" in info else None
            header = self.header(info, "") if "header" in info else None
            scopes[scope] = ScopeSettings(header=header, semver=semver)
        return scopes

    # -- steps -----------------------------------------------------------------

    def raw_steps(self, data: object, where: str) -> list[StrDict]:
        items = as_obj_list(data)
        if items is None:
            self.error(f"{where} must be a list of steps")
            return []
        result: list[StrDict] = []
        for item in items:
            if isinstance(item, str):
                result.append({"name": item})
                continue
            info = as_str_dict(item)
            if info is None:
                self.error(f"Step in {where} must be a name or mapping, got {item!r}")
                continue
            result.append(copy.deepcopy(info))
        return result

    def apply_step_modifications(
        self, steps: list[StrDict], info: Mapping[str, object], where: str
    ) -> list[StrDict]:
        if "modify_steps" in info:
            steps = self.modify_steps(steps, info["modify_steps"], where)
        if "prepend_steps" in info:
            steps = self.insert_steps(steps, info["prepend_steps"], "prepend_steps", where)
        if "append_steps" in info:
            steps = self.insert_steps(steps, info["append_steps"], "append_steps", where)
        if "delete_steps" in info:
            steps = self.delete_steps(steps, info["delete_steps"], where)
        return steps

    def modify_steps(self, steps: list[StrDict], data: object, where: str) -> list[StrDict]:
        mods = as_obj_list(data)
        if mods is None:
            self.error(f"modify_steps in {where} must be a list")
            return steps
        steps = copy.deepcopy(steps)
        for item in mods:
            mod = as_str_dict(item)
            if mod is None:
                self.error(f"Entry in modify_steps in {where} must be a mapping")
                continue
            name = get_str(mod, "name")
            step_type = get_str(mod, "type")
            count = 0
            for step in steps:
                if name is not None and step.get("name") != name:
                    continue
                if step_type is not None and _raw_step_type(step) != step_type:
                    continue
                count += 1
                for key, value in mod.items():
                    if key in ("name", "type"):
                        continue
                    if value is None:
                        step.pop(key, None)
                    else:
                        step[key] = copy.deepcopy(value)
            if count == 0:
                self.error(
                    f"Unable to find step to modify for name={name!r} and type={step_type!r} "
                    f"in {where}"
                )
        return steps

    def insert_steps(self, steps: list[StrDict], data: object, key: str, where: str) -> list[StrDict]:
        anchor_key = "before" if key == "prepend_steps" else "after"
        index = 0 if key == "prepend_steps" else len(steps)
        table = as_str_dict(data)
        if table is not None:
            anchor = get_str(table, anchor_key)
            if anchor is not None:
                found = next((i for i, s in enumerate(steps) if s.get("name") == anchor), None)
                if found is None:
                    self.error(f"Unable to find step named {anchor!r} in {key}.{anchor_key} ({where})")
                else:
                    index = found if anchor_key == "before" else found + 1
            if "steps" not in table:
                self.error(f"steps expected in {key} ({where})")
                return steps
            insert = self.raw_steps(table["steps"], key)
        elif as_obj_list(data) is not None:
            insert = self.raw_steps(data, key)
        else:
            self.error(f"{key} in {where} expected a mapping or list")
            return steps
        return steps[:index] + insert + steps[index:]

    def delete_steps(self, steps: list[StrDict], data: object, where: str) -> list[StrDict]:
        names = [data] if isinstance(data, str) else as_obj_list(data)
        if names is None:
            self.error(f"delete_steps in {where} must be a list of step names")
            return steps
        steps = list(steps)
        for name in names:
            index = next((i for i, s in enumerate(steps) if s.get("name") == name), None)
            if index is None:
                self.error(f"Unable to find step named {name!r} to delete ({where})")
            else:
                del steps[index]
        return steps

    def build_steps(self, raw: list[StrDict], component: str) -> tuple[StepSettings, ...]:
        steps: list[StepSettings] = []
        names: list[str] = []
        for info in raw:
            step_type = _raw_step_type(info)
            name = get_str(info, "name") or step_type
            if name is None or step_type is None:
                self.error(f"A step in component {component!r} has neither name nor type")
                continue
            where = f"step {name!r} of component {component!r}"
            if step_type not in STEP_TYPES:
                self.error(f"Unknown step type {step_type!r} for {where}")
            if name in names:
                self.error(f"Duplicate step name {name!r} in component {component!r}")

            inputs: list[InputSpec] = []
            for item in _as_list(info.get("inputs")):
                spec = self.input_spec(item, where)
                if spec is None:
                    continue
                if spec.name not in names:
                    self.error(
                        f"Input {spec.name!r} of {where} does not name an earlier step"
                    )
                inputs.append(spec)
            outputs = [
                spec
                for item in _as_list(info.get("outputs"))
                if (spec := self.output_spec(item, where)) is not None
            ]
            options = {k: v for k, v in info.items() if k not in _STEP_STRUCTURAL_KEYS}
            steps.append(
                StepSettings(
                    name=name,
                    type=step_type,
                    run=get_bool(info, "run"),
                    inputs=tuple(inputs),
                    outputs=tuple(outputs),
                    options=options,
                )
            )
            names.append(name)
        return tuple(steps)

    def input_spec(self, item: object, where: str) -> InputSpec | None:
        if isinstance(item, str):
            return InputSpec(name=item)
        info = as_str_dict(item)
        if info is None:
            self.error(f"Input for {where} must be a step name or mapping")
            return None
        for key in info:
            if key not in _INPUT_KEYS:
                self.error(f"Unknown key {key!r} in input for {where}")
        name = get_str(info, "name")
        if name is None:
            self.error(f"Missing required key 'name' in input for {where}")
            return None
        dest_value = info.get("dest")
        dest: InputDest = (
            "none"
            if dest_value is False
            else self.enum_value(info, "dest", _INPUT_DESTS, "component", f"input for {where}")
        )
        return InputSpec(
            name=name,
            source_path=get_str(info, "source_path"),
            dest_path=get_str(info, "dest_path"),
            dest=dest,
            collisions=self.enum_value(info, "collisions", _COLLISIONS, "error", f"input for {where}"),
        )

    def output_spec(self, item: object, where: str) -> OutputSpec | None:
        if isinstance(item, str):
            return OutputSpec(source_path=item)
        info = as_str_dict(item)
        if info is None:
            self.error(f"Output for {where} must be a path or mapping")
            return None
        for key in info:
            if key not in _OUTPUT_KEYS:
                self.error(f"Unknown key {key!r} in output for {where}")
        return OutputSpec(
            source_path=get_str(info, "source_path"),
            dest_path=get_str(info, "dest_path"),
            source=self.enum_value(info, "source", _OUTPUT_SOURCES, "component", f"output for {where}"),
            collisions=self.enum_value(info, "collisions", _COLLISIONS, "error", f"output for {where}"),
        )

    # -- components ------------------------------------------------------------

    def component(
        self,
        info: StrDict,
        *,
        multiple: bool,
        commit_tags: tuple[CommitTagSettings, ...],
        suffix: IssueSuffixHandling,
        breaking: str,
        dep_header: str,
        notice: str,
        bullet: str,
        base_steps: list[StrDict],
    ) -> ComponentSettings | None:
        name = get_str(info, "name")
        if name is None:
            self.error("A component is missing a name")
            return None
        for key in info:
            if key not in _COMPONENT_KEYS:
                self.error(f"Unknown key {key!r} in component {name!r}")
        where = f"component {name!r}"

        if "commit_tags" in info:
            commit_tags = self.commit_tags(info["commit_tags"], where)
        raw_steps = self.raw_steps(info["steps"], where) if "steps" in info else copy.deepcopy(base_steps)
        raw_steps = self.apply_step_modifications(raw_steps, info, where)

        return ComponentSettings(
            name=name,
            directory=get_str(info, "directory") or (name if multiple else "."),
            changelog_path=get_str(info, "changelog_path") or "CHANGELOG.md",
            version_file_path=get_str(info, "version_file_path"),
            include_globs=tuple(get_str_list(info, "include_globs")),
            exclude_globs=tuple(get_str_list(info, "exclude_globs")),
            commit_tags=commit_tags,
            issue_number_suffix_handling=self.enum_value(
                info, "issue_number_suffix_handling", _SUFFIX_HANDLING, suffix, where
            ),
            breaking_change_header=get_str(info, "breaking_change_header") or breaking,
            update_dependency_header=get_str(info, "update_dependency_header") or dep_header,
            no_significant_updates_notice=get_str(info, "no_significant_updates_notice") or notice,
            changelog_bullet=bullet,
            update_dependencies=self.update_dependencies(info, where),
            steps=self.build_steps(raw_steps, name),
        )

    def update_dependencies(self, info: StrDict, where: str) -> UpdateDependencies | None:
        if "update_dependencies" not in info:
            return None
        table = get_table(info, "update_dependencies")
        if table is None:
            self.error(f"update_dependencies in {where} must be a mapping")
            return None
        for key in table:
            if key not in _UPDATE_DEPS_KEYS:
                self.error(f"Unknown key {key!r} in update_dependencies of {where}")
        if "dependencies" not in table:
            self.error(f"update_dependencies is missing required key 'dependencies' in {where}")
            return None
        threshold = self.semver(
            table.get("dependency_semver_threshold", "minor"), f"dependency threshold of {where}"
        )
        constraint = self.semver(
            table.get("pessimistic_constraint_level", "minor"), f"constraint level of {where}"
        )
        return UpdateDependencies(
            dependencies=tuple(get_str_list(table, "dependencies")),
            semver_threshold=threshold if threshold is not None else Semver.MINOR,
            constraint_level=constraint if constraint is not None else Semver.MINOR,
        )

    def coordination_groups(self, data: StrDict, names: list[str]) -> tuple[tuple[str, ...], ...]:
        if get_bool(data, "coordinate_versions"):
            return (tuple(names),) if names else ()
        raw = get_list(data, "coordination_groups") or []
        if raw and all(isinstance(member, str) for member in raw):
            raw = [raw]
        groups: list[tuple[str, ...]] = []
        seen: set[str] = set()
        for item in raw:
            members = as_obj_list(item)
            if members is None:
                self.error("Each coordination group must be a list of component names")
                continue
            group: list[str] = []
            for member in members:
                if not isinstance(member, str) or member not in names:
                    self.error(f"Unrecognized component {member!r} listed in a coordination group")
                elif member in seen:
                    self.error(f"Component {member!r} is in multiple coordination groups")
                else:
                    seen.add(member)
                    group.append(member)
            if group:
                groups.append(tuple(group))
        return tuple(groups)


def _raw_step_type(info: Mapping[str, object]) -> str | None:
    return get_str(info, "type") or get_str(info, "name")


def _as_list(value: object) -> list[object]:
    if value is None:
        return []
    if isinstance(value, list):
        return cast(list[object], value)
    return [value]
