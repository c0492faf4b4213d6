"""Run a component's release steps against a clean checkout.

A Pipeline first decides which steps will run (resolve_run), then executes
them strictly in list order (run). Each running step gets a fresh working
tree, its declared inputs copied in from earlier steps' output directories,
and its declared outputs copied into its own output directory afterwards.

Step bodies talk to the pipeline only through StepContext. They stop early
with StepContext.exit_step() (the step still counts as done) or stop the
whole pipeline with StepContext.abort_pipeline().
"""

from __future__ import annotations

import shutil
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING, NoReturn

from releaser.core.result import Err, Ok, Result
from releaser.output.console import ConsoleProtocol
from releaser.platform.http import HttpClient, RealHttpClient
from releaser.platform.process import CommandResult, run_status
from releaser.release.artifact_dir import ArtifactDir
from releaser.release.errors import PipelineExit, ReleaseError, StepExit
from releaser.release.settings import (
    CollisionPolicy,
    InputDest,
    InputSpec,
    OutputSource,
    OutputSpec,
    StepSettings,
)
from releaser.release.steps import StepType, get_step_type

if TYPE_CHECKING:
    from releaser.git.repository import Repository
    from releaser.release.change_set import ChangeSet
    from releaser.release.component import Component
    from releaser.release.semver import Version

__all__ = ["Pipeline", "PipelineReport", "StepContext", "copy_path"]

_COMMAND_TIMEOUT_SECONDS = 30 * 60.0


@dataclass(slots=True)
class PipelineReport:
    """What happened during one pipeline run.

    Attributes:
        will_run: Steps chosen by resolve_run, in order.
        completed: Steps whose body finished or exited early.
        successes: Messages recorded by steps via record_success().
        errors: Messages from abort_pipeline() and failed setup.
    """

    will_run: list[str] = field(default_factory=list)
    completed: list[str] = field(default_factory=list)
    successes: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors


class StepContext:
    """Everything a step body may use."""

    def __init__(self, pipeline: Pipeline, settings: StepSettings) -> None:
        self._pipeline = pipeline
        self.settings = settings
        self.step_type: StepType = get_step_type(settings.type)

    @property
    def name(self) -> str:
        return self.settings.name

    @property
    def component(self) -> Component:
        return self._pipeline.component

    @property
    def version(self) -> Version:
        return self._pipeline.version

    @property
    def repository(self) -> Repository:
        return self._pipeline.repository

    @property
    def change_set(self) -> ChangeSet | None:
        return self._pipeline.change_set

    @property
    def console(self) -> ConsoleProtocol:
        return self._pipeline.console

    @property
    def http(self) -> HttpClient:
        return self._pipeline.http

    @property
    def git_remote(self) -> str:
        return self._pipeline.git_remote

    @property
    def dry_run(self) -> bool:
        return self._pipeline.dry_run

    @property
    def release_description(self) -> str:
        return f"{self.component.name} {self.version}"

    @property
    def tag_name(self) -> str:
        return self.component.version_tag(self.version)

    # -- options ---------------------------------------------------------------

    def option(self, key: str, *, required: bool = False, default: object = None) -> object:
        options: Mapping[str, object] = self.settings.options
        if key in options:
            return options[key]
        if required:
            self.abort_pipeline(f"Missing required option {key!r} for step {self.name!r}")
        return default

    # -- directories -----------------------------------------------------------

    def output_dir(self, step_name: str | None = None) -> Path:
        """This step's output directory, or that of step_name."""
        return self._pipeline.artifact_dir.output(step_name or self.name)

    def temp_dir(self) -> Path:
        return self._pipeline.artifact_dir.temp(self.name)

    def copy_from_input(
        self,
        source_step: str,
        *,
        source_path: str | None = None,
        dest: InputDest = "component",
        dest_path: str | None = None,
        collisions: CollisionPolicy = "error",
    ) -> None:
        """Copy part of an earlier step's output into dest."""
        spec = InputSpec(
            name=source_step,
            source_path=source_path,
            dest_path=dest_path,
            dest=dest,
            collisions=collisions,
        )
        self._pipeline.pull_input(self, spec)

    def copy_to_output(
        self,
        *,
        source: OutputSource = "component",
        source_path: str | None = None,
        dest_path: str | None = None,
        collisions: CollisionPolicy = "error",
    ) -> None:
        """Copy part of source into this step's output directory."""
        spec = OutputSpec(
            source_path=source_path,
            dest_path=dest_path,
            source=source,
            collisions=collisions,
        )
        self._pipeline.push_output(self, spec)

    # -- reporting and control -------------------------------------------------

    def log(self, message: str) -> None:
        self.console.log(message)

    def warning(self, message: str) -> None:
        self.console.warning(message)

    def record_success(self, message: str) -> None:
        self._pipeline.report.successes.append(message)
        self.console.success(message)

    def exit_step(self, message: str | None = None) -> NoReturn:
        """End this step now. The pipeline carries on with the next step."""
        raise StepExit(message)

    def abort_pipeline(self, message: str) -> NoReturn:
        """End this step and skip every remaining step."""
        raise PipelineExit(message)

    def run_command(
        self,
        cmd: Sequence[str],
        *,
        cwd: Path | None = None,
        env: dict[str, str] | None = None,
        input_text: str | None = None,
        check: bool = True,
    ) -> CommandResult:
        """Run cmd in the component directory (or cwd).

        With check=True a failure aborts the pipeline, unless the step sets
        `continue_on_error`, in which case it is only reported.
        """
        command = [str(part) for part in cmd]
        self.log(f"Running {' '.join(command)}")
        result = run_status(
            command,
            cwd or self.component.directory,
            env,
            timeout=_COMMAND_TIMEOUT_SECONDS,
            input_text=input_text,
        )
        if result.success or not check:
            return result
        detail = result.stderr.strip() or result.stdout.strip()
        message = f"Command failed in step {self.name}: {result.to_error()}"
        if detail:
            message = f"{message}\n{detail}"
        if self.option("continue_on_error") is True:
            self.warning(message)
            return result
        self.abort_pipeline(message)


class Pipeline:
    """The release steps for one component at one version.

    Usage:
        pipeline = Pipeline(repo, component, version, component.settings.steps,
                            ArtifactDir(), console, dry_run=True)
        match pipeline.run():
            case Ok(report):
                ...
            case Err(e):
                console.error(e.pretty())
    """

    def __init__(
        self,
        repository: Repository,
        component: Component,
        version: Version,
        step_settings: Sequence[StepSettings],
        artifact_dir: ArtifactDir,
        console: ConsoleProtocol,
        *,
        dry_run: bool = False,
        git_remote: str = "origin",
        change_set: ChangeSet | None = None,
        http: HttpClient | None = None,
    ) -> None:
        self.repository = repository
        self.component = component
        self.version = version
        self.artifact_dir = artifact_dir
        self.console = console
        self.dry_run = dry_run
        self.git_remote = git_remote
        self.change_set = change_set
        self.http: HttpClient = http if http is not None else RealHttpClient()
        self.report = PipelineReport()
        self.steps = [StepContext(self, settings) for settings in step_settings]
        self._requested: set[str] = set()
        self._will_run: list[str] | None = None

    def step(self, name: str) -> StepContext | None:
        for step in self.steps:
            if step.name == name:
                return step
        return None

    def request(self, name: str) -> Pipeline:
        """Force step name to run, as if it were configured with `run: true`."""
        if self.step(name) is None:
            raise ValueError(f"Unknown step {name!r} for component {self.component.name}")
        self._requested.add(name)
        self._will_run = None
        return self

    def resolve_run(self) -> Result[list[str], ReleaseError]:
        """Names of the steps that will run, in execution order.

        A step runs if it is configured with `run: true`, requested, or
        primary for its type, or if a running step names it as an input or
        an implicit dependency. Dependencies always point to earlier steps,
        so one pass from the last step backward marks everything.
        """
        self.console.log(f"Resolving which steps to run for {self.component.name}")
        marked = [
            step.settings.run or step.name in self._requested or step.step_type.primary(step)
            for step in self.steps
        ]
        problems: list[str] = []
        for index in range(len(self.steps) - 1, -1, -1):
            if not marked[index]:
                continue
            step = self.steps[index]
            earlier = [s.name for s in self.steps[:index]]
            needed = [spec.name for spec in step.settings.inputs]
            needed.extend(step.step_type.dependencies(step))
            for dep in needed:
                if dep not in earlier:
                    problems.append(f"Dependency {dep} not found before step {step.name}")
                    continue
                dep_index = earlier.index(dep)
                if not marked[dep_index]:
                    self.console.log(f"Step {dep} requested as a dependency of {step.name}")
                marked[dep_index] = True
        if problems:
            return Err(
                ReleaseError(
                    kind="invalid_input",
                    message=f"Unresolvable step dependencies for {self.component.name}",
                    details=tuple(problems),
                )
            )
        self._will_run = [step.name for step, run in zip(self.steps, marked, strict=True) if run]
        self.report.will_run = list(self._will_run)
        return Ok(list(self._will_run))

    def run(self) -> Result[PipelineReport, ReleaseError]:
        """Execute the resolved steps. The artifact directory is always cleaned up."""
        try:
            if self._will_run is None:
                resolved = self.resolve_run()
                if isinstance(resolved, Err):
                    self.report.errors.append(resolved.error.message)
                    return resolved
            will_run = set(self._will_run or [])
            for step in self.steps:
                if step.name not in will_run:
                    self.console.log(f"Skipping step {step.name}")
                    continue
                try:
                    self._run_step(step)
                except StepExit as e:
                    self.console.log(f"Exited step {step.name}{f': {e.message}' if e.message else ''}")
                    self.report.completed.append(step.name)
                except PipelineExit as e:
                    self.console.error(e.message)
                    self.report.errors.append(e.message)
                    return Err(
                        ReleaseError(
                            kind="pipeline_aborted",
                            message=f"Release pipeline for {self.component.name} aborted at step {step.name}",
                            hint=e.message,
                        )
                    )
            return Ok(self.report)
        finally:
            self.artifact_dir.cleanup()

    def _run_step(self, step: StepContext) -> None:
        self._clean(step)
        for spec in step.settings.inputs:
            self.pull_input(step, spec)
        self.console.log(f"Running step {step.name}")
        step.step_type.run(step)
        self.console.log(f"Completed step {step.name}")
        for output in step.settings.outputs:
            self.push_output(step, output)
        self.report.completed.append(step.name)

    def _clean(self, step: StepContext) -> None:
        if step.option("clean") is False:
            self.console.log(f"Pre-cleaning disabled by step {step.name}")
            return
        self.console.log(f"Pre-cleaning the repo for step {step.name}")
        result = self.repository.reset_clean()
        if isinstance(result, Err):
            step.abort_pipeline(f"Unable to clean the working tree: {result.error}")

    # -------------------------------------------------------------------------
    # Artifact copying
    # -------------------------------------------------------------------------

    def pull_input(self, step: StepContext, spec: InputSpec) -> None:
        if spec.dest == "none":
            return
        source_path = spec.source_path or "."
        dest_path = spec.dest_path or source_path
        match spec.dest:
            case "component":
                dest_dir = self.component.directory
            case "repo_root":
                dest_dir = self.repository.path
            case "output":
                dest_dir = step.output_dir()
            case "temp":
                dest_dir = step.temp_dir()
            case _:
                step.abort_pipeline(f"Unrecognized destination for input: {spec.dest!r}")
        source = self.artifact_dir.output(spec.name) / source_path
        self.console.log(f"Copying {source_path} from step {spec.name}")
        copy_path(source, dest_dir / dest_path, spec.collisions, name=source_path)

    def push_output(self, step: StepContext, spec: OutputSpec) -> None:
        source_path = spec.source_path or "."
        dest_path = spec.dest_path or source_path
        match spec.source:
            case "component":
                source_dir = self.component.directory
            case "repo_root":
                source_dir = self.repository.path
            case "temp":
                source_dir = step.temp_dir()
            case _:
                step.abort_pipeline(f"Unrecognized source for output: {spec.source!r}")
        self.console.log(f"Copying {source_path} to output of step {step.name}")
        copy_path(source_dir / source_path, step.output_dir() / dest_path, spec.collisions, name=source_path)


def copy_path(
    source: Path,
    dest: Path,
    collisions: CollisionPolicy = "error",
    *,
    name: str | None = None,
) -> None:
    """Copy a file or directory tree, merging into existing directories.

    File-over-file collisions follow the policy. A file meeting a directory
    (or the reverse), anywhere along the destination path, is always an
    error. Errors raise PipelineExit naming the relative path.
    """
    label = name or source.name
    if _file_blocks(dest):
        raise PipelineExit(f"Unable to copy {label}: a file exists where a directory is expected")
    if source.is_dir():
        if dest.exists() and not dest.is_dir():
            raise PipelineExit(f"Unable to copy {label}: a file exists where a directory is expected")
        _make_dir(dest, label)
        for child in sorted(source.iterdir()):
            copy_path(child, dest / child.name, collisions, name=_join(label, child.name))
        return
    if not source.exists():
        raise PipelineExit(f"Unable to copy {label} because it does not exist")
    if dest.is_dir():
        raise PipelineExit(f"Unable to copy {label}: a directory exists where a file is expected")
    if dest.exists():
        if collisions == "keep":
            return
        if collisions == "error":
            raise PipelineExit(f"Unable to copy {label} because it already exists at the destination")
    _make_dir(dest.parent, label)
    try:
        shutil.copy2(source, dest)
    except OSError as e:
        raise PipelineExit(f"Unable to copy {label}: {e}") from e


def _file_blocks(dest: Path) -> bool:
    """Whether an existing file sits where one of dest's parent directories should be."""
    for parent in dest.parents:
        if parent.is_dir():
            return False
        if parent.exists():
            return True
    return False


def _make_dir(path: Path, label: str) -> None:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise PipelineExit(f"Unable to copy {label}: {e}") from e


def _join(parent: str, child: str) -> str:
    if parent in ("", "."):
        return child
    return str(PurePosixPath(parent) / child)
