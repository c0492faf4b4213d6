"""Run release pipelines and collect a per-component report.

Each component gets its own Pipeline and ArtifactDir. A failure in one
component is recorded in its ComponentResult and does not stop the others.
"""

from __future__ import annotations

import os
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

from releaser.core.result import Err, Ok
from releaser.git.repository import Repository
from releaser.output.console import ConsoleProtocol
from releaser.platform.http import HttpClient
from releaser.release.artifact_dir import ArtifactDir
from releaser.release.change_set import ChangeSet
from releaser.release.component import Component
from releaser.release.pipeline import Pipeline
from releaser.release.request_spec import ResolvedComponent
from releaser.release.semver import Version

__all__ = ["ComponentResult", "Performer"]


@dataclass(slots=True)
class ComponentResult:
    """Outcome of releasing one component (or of setup, with no name)."""

    name: str | None
    version: Version | None
    successes: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return not self.errors

    @property
    def empty(self) -> bool:
        return not self.successes and not self.errors

    def formatted_lines(self) -> list[str]:
        return [f"* ERROR: {line}" for line in self.errors] + [f"* {line}" for line in self.successes]


class Performer:
    """Performs releases for components of one repository.

    Usage:
        performer = Performer(repo, components, console, dry_run=True)
        performer.perform_release("mylib", assert_version=Version.parse("1.2.0"))
        console.print(performer.build_report_text())
    """

    def __init__(
        self,
        repository: Repository,
        components: Iterable[Component],
        console: ConsoleProtocol,
        *,
        release_ref: str | None = None,
        git_remote: str = "origin",
        work_dir: Path | None = None,
        dry_run: bool = False,
        enable_prechecks: bool = True,
        http: HttpClient | None = None,
    ) -> None:
        self.repository = repository
        self.components = {c.name: c for c in components}
        self.console = console
        self.git_remote = git_remote
        self.work_dir = work_dir
        self.dry_run = dry_run
        self.enable_prechecks = enable_prechecks
        self.http = http
        self.init_result = ComponentResult(None, None)
        self.component_results: list[ComponentResult] = []
        self.start_time = datetime.now(UTC)
        self.release_sha: str | None = None

        match repository.current_sha(release_ref):
            case Ok(sha):
                self.release_sha = sha
                console.log(f"Release SHA set to {sha}")
            case Err(e):
                self.init_result.errors.append(f"Unable to resolve release ref: {e}")
        if enable_prechecks and not repository.is_clean():
            self.init_result.errors.append("The git working tree has uncommitted changes")

    @property
    def error(self) -> bool:
        return not self.init_result.succeeded or any(not r.succeeded for r in self.component_results)

    def perform_release(
        self,
        name: str,
        *,
        assert_version: Version | None = None,
        change_set: ChangeSet | None = None,
    ) -> ComponentResult:
        """Release name at the version found in its changelog."""
        result = ComponentResult(name, assert_version)
        self.component_results.append(result)
        if not self.init_result.succeeded:
            result.errors.append("Skipped because setup failed")
            return result

        component = self.components.get(name)
        if component is None:
            result.errors.append(f"Component {name!r} not found.")
            return result
        version = component.changelog_file.current_version
        if version is None:
            result.errors.append(f"No release entry found in the changelog for {name!r}.")
            return result
        if assert_version is not None and assert_version != version:
            result.errors.append(
                f"Asserted version {assert_version} does not match version {version} "
                f"found in the changelog for {name!r}."
            )
            return result
        result.version = version
        if self.enable_prechecks and not self._component_prechecks(component, version, result):
            return result
        self._run_pipeline(component, version, change_set, result)
        return result

    def perform_resolved(self, resolved: Iterable[ResolvedComponent]) -> list[ComponentResult]:
        """Release every resolved component in order."""
        return [
            self.perform_release(item.name, assert_version=item.version, change_set=item.change_set)
            for item in resolved
        ]

    def _component_prechecks(
        self, component: Component, version: Version, result: ComponentResult
    ) -> bool:
        self.console.log(f"Running prechecks for {component.name}")
        constant = component.version_file.current_version
        if constant is not None and constant != version:
            result.errors.append(
                f"Version constant {constant} in {component.version_file_path} does not match "
                f"changelog version {version} for {component.name!r}."
            )
            return False
        return True

    def _run_pipeline(
        self,
        component: Component,
        version: Version,
        change_set: ChangeSet | None,
        result: ComponentResult,
    ) -> None:
        self.console.header(f"Releasing {component.name} {version}")
        pipeline = Pipeline(
            self.repository,
            component,
            version,
            component.settings.steps,
            ArtifactDir(self.work_dir),
            self.console,
            dry_run=self.dry_run,
            git_remote=self.git_remote,
            change_set=change_set,
            http=self.http,
        )
        outcome = pipeline.run()
        result.successes.extend(pipeline.report.successes)
        if isinstance(outcome, Err):
            result.errors.append(outcome.error.hint or outcome.error.message)

    # -------------------------------------------------------------------------
    # Reporting
    # -------------------------------------------------------------------------

    def build_report_text(self) -> str:
        """Markdown summary of the whole job."""
        lines = ["## Release job results", "", *self._main_report_lines()]
        if not self.init_result.empty:
            lines.extend(["", "### Setup", "", *self.init_result.formatted_lines()])
        for result in self.component_results:
            if result.empty:
                continue
            lines.extend(["", f"### {result.name} {result.version}", "", *result.formatted_lines()])
        return "\n".join(lines)

    def _main_report_lines(self) -> list[str]:
        fmt = "%Y-%m-%d %H:%M:%S"
        lines = [
            f"* Job started {self.start_time.strftime(fmt)} UTC",
            f"* Job finished {datetime.now(UTC).strftime(fmt)} UTC",
        ]
        if self.release_sha:
            lines.append(f"* Release SHA: {self.release_sha}")
        if self.dry_run:
            lines.append("* DRY RUN: nothing was published.")
        if self.error:
            lines.append("* **Release job completed with errors.**")
        else:
            lines.append("* **All releases completed successfully.**")
        server = os.environ.get("GITHUB_SERVER_URL")
        repo = os.environ.get("GITHUB_REPOSITORY")
        run_id = os.environ.get("GITHUB_RUN_ID")
        if server and repo and run_id:
            lines.append(f"* Run logs: {server}/{repo}/actions/runs/{run_id}")
        return lines
