"""Built-in pipeline step types.

A step type decides whether it runs by default (primary), which earlier
steps it implicitly needs (dependencies), and what it does (run). Step
types are stateless singletons looked up by name from STEP_TYPES; all
per-run state lives in the StepContext they receive.

Publish steps follow one pattern so a failed release can simply be rerun:
check whether the artifact already exists remotely and exit the step if so,
otherwise record a DRY RUN success in dry-run mode, otherwise publish and
abort the pipeline on failure.
"""

from __future__ import annotations

import re
import shlex
import shutil
import sys
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING

from releaser.core.result import Err, Ok
from releaser.release import gh

if TYPE_CHECKING:
    from releaser.release.pipeline import StepContext

__all__ = [
    "STEP_TYPES",
    "BuildDistStep",
    "BuildDocsStep",
    "CommandStep",
    "NoopStep",
    "PushGhPagesStep",
    "ReleaseGithubStep",
    "ReleasePypiStep",
    "StepType",
    "ToolStep",
    "get_step_type",
]

PYPI_JSON_URL = "https://pypi.org/pypi/{package}/{version}/json"


class StepType(ABC):
    """Behavior of one kind of pipeline step."""

    name: str

    def primary(self, ctx: StepContext) -> bool:
        """Whether the step runs even if nothing requests it."""
        return False

    def dependencies(self, ctx: StepContext) -> list[str]:
        """Earlier steps that must run whenever this one does."""
        return []

    @abstractmethod
    def run(self, ctx: StepContext) -> None: ...


def _command_option(ctx: StepContext, key: str, default: list[str] | None = None) -> list[str]:
    value = ctx.option(key, required=default is None, default=default)
    if isinstance(value, str):
        return shlex.split(value)
    if isinstance(value, list) and value:
        return [str(part) for part in value]
    ctx.abort_pipeline(f"Option {key!r} of step {ctx.name} must be a command string or list")


def _pre_build(ctx: StepContext) -> None:
    """Runs the optional `pre_command` and `pre_tool` options ahead of a build."""
    if ctx.option("pre_command") is not None:
        ctx.log("Running pre-build command")
        ctx.run_command(_command_option(ctx, "pre_command"))
    if ctx.option("pre_tool") is not None:
        ctx.log("Running pre-build tool")
        ctx.run_command([sys.executable, "-m", *_command_option(ctx, "pre_tool")])


def _source_step(ctx: StepContext, default: str) -> str:
    value = ctx.option("source", default=default)
    return str(value)


class NoopStep(StepType):
    name = "noop"

    def run(self, ctx: StepContext) -> None:
        ctx.log(f"Nothing to do for step {ctx.name}")


class CommandStep(StepType):
    """Runs the `command` option in the component directory."""

    name = "command"

    def run(self, ctx: StepContext) -> None:
        command = _command_option(ctx, "command")
        ctx.run_command(command)
        ctx.log(f"Completed command for step {ctx.name}")


class ToolStep(StepType):
    """Runs the `tool` option as a Python module (`python -m <tool> ...`)."""

    name = "tool"

    def run(self, ctx: StepContext) -> None:
        tool = _command_option(ctx, "tool")
        ctx.run_command([sys.executable, "-m", *tool])
        ctx.log(f"Completed tool for step {ctx.name}")


class BuildDistStep(StepType):
    """Builds sdist and wheel into `<output>/dist`, after any `pre_command` or `pre_tool`."""

    name = "build_dist"

    def run(self, ctx: StepContext) -> None:
        ctx.log(f"Building distributions for {ctx.release_description}")
        _pre_build(ctx)
        dist_dir = ctx.output_dir() / "dist"
        dist_dir.mkdir(parents=True, exist_ok=True)
        ctx.run_command([sys.executable, "-m", "build", "--outdir", str(dist_dir)])
        built = dist_files(dist_dir, package_name(ctx), str(ctx.version))
        if not built:
            ctx.abort_pipeline(
                f"Build of {ctx.release_description} produced no distribution in {dist_dir}"
            )
        ctx.log(f"Built {', '.join(p.name for p in built)}")


class ReleasePypiStep(StepType):
    """Uploads the distributions built by the `source` step with twine."""

    name = "release_pypi"

    def primary(self, ctx: StepContext) -> bool:
        return (ctx.component.directory / "pyproject.toml").is_file()

    def dependencies(self, ctx: StepContext) -> list[str]:
        return [_source_step(ctx, "build_dist")]

    def run(self, ctx: StepContext) -> None:
        self._check_existence(ctx)
        files = self._find_dists(ctx)
        if ctx.dry_run:
            ctx.record_success(f"DRY RUN PyPI upload for {ctx.release_description}.")
            ctx.log("DRY RUN: distributions not actually uploaded to PyPI.")
            return
        ctx.log(f"Uploading {ctx.release_description} to PyPI")
        result = ctx.run_command(
            ["twine", "upload", "--non-interactive", *(str(f) for f in files)], check=False
        )
        if not result.success:
            ctx.abort_pipeline(f"PyPI upload failed for {ctx.release_description}: {result.stderr.strip()}")
        ctx.record_success(f"PyPI upload for {ctx.release_description}.")

    def _check_existence(self, ctx: StepContext) -> None:
        ctx.log(f"Checking whether {ctx.release_description} is already on PyPI")
        url = PYPI_JSON_URL.format(package=package_name(ctx), version=ctx.version)
        match ctx.http.get_json(url):
            case Ok(_):
                ctx.warning(f"{ctx.release_description} already on PyPI. Skipping.")
                ctx.record_success(f"Package already published for {ctx.release_description}")
                ctx.exit_step()
            case Err(e) if e.not_found:
                ctx.log("Package has not yet been published.")
            case Err(e):
                ctx.abort_pipeline(f"Unable to query PyPI for {ctx.release_description}: {e}")

    def _find_dists(self, ctx: StepContext) -> list[Path]:
        step_name = _source_step(ctx, "build_dist")
        dist_dir = ctx.output_dir(step_name) / "dist"
        files = dist_files(dist_dir, package_name(ctx), str(ctx.version))
        if not files:
            ctx.abort_pipeline(f"The output of step {step_name} did not include distributions in {dist_dir}")
        return files


class BuildDocsStep(StepType):
    """Builds documentation into `<output>/site`, after any `pre_command` or `pre_tool`."""

    name = "build_docs"

    def run(self, ctx: StepContext) -> None:
        site_dir = ctx.output_dir() / "site"
        default = ["mkdocs", "build", "--clean", "--site-dir", str(site_dir)]
        command = _command_option(ctx, "command", default)
        ctx.log(f"Building docs for {ctx.release_description}")
        _pre_build(ctx)
        ctx.run_command(command)
        if not site_dir.is_dir():
            ctx.abort_pipeline(f"Docs build for {ctx.release_description} did not produce {site_dir}")
        ctx.log(f"Docs built to {site_dir}")


class PushGhPagesStep(StepType):
    """Publishes built docs under `v<version>/` on the gh-pages branch."""

    name = "push_gh_pages"

    def dependencies(self, ctx: StepContext) -> list[str]:
        return [_source_step(ctx, "build_docs")]

    def run(self, ctx: StepContext) -> None:
        pages_dir = self._checkout(ctx)
        subdir = str(ctx.option("directory", default="."))
        dest_dir = (pages_dir / subdir / f"v{ctx.version}").resolve()
        if dest_dir.is_dir():
            ctx.warning(f"Docs already published for {ctx.release_description}. Skipping.")
            ctx.record_success(f"Docs already published for {ctx.release_description}")
            ctx.exit_step()

        step_name = _source_step(ctx, "build_docs")
        source_dir = ctx.output_dir(step_name) / "site"
        if not source_dir.is_dir():
            ctx.abort_pipeline(f"The output of step {step_name} did not include built docs at {source_dir}")
        dest_dir.parent.mkdir(parents=True, exist_ok=True)
        shutil.copytree(source_dir, dest_dir)

        message = f"Generated docs for {ctx.release_description}"
        commit = ["git", "commit", "--quiet", "-m", message]
        if ctx.component.repo_settings.signoff_commits:
            commit.append("--signoff")
        ctx.run_command(["git", "add", "--all"], cwd=pages_dir)
        ctx.run_command(commit, cwd=pages_dir)
        if ctx.dry_run:
            ctx.record_success(f"DRY RUN documentation published for {ctx.release_description}.")
            ctx.log("DRY RUN: documentation not actually pushed to gh-pages.")
            return
        result = ctx.run_command(["git", "push", "origin", "HEAD:gh-pages"], cwd=pages_dir, check=False)
        if not result.success:
            ctx.abort_pipeline(f"Docs publication failed for {ctx.release_description}.")
        ctx.record_success(f"Published documentation for {ctx.release_description}.")

    def _checkout(self, ctx: StepContext) -> Path:
        ctx.log("Checking out gh-pages")
        match ctx.repository.remote_url(ctx.git_remote):
            case Ok(url):
                pass
            case Err(e):
                ctx.abort_pipeline(f"Unable to access the gh-pages branch: {e}")
        pages_dir = ctx.temp_dir() / "gh-pages"
        result = ctx.run_command(
            ["git", "clone", "--quiet", "--depth", "1", "--branch", "gh-pages", url, str(pages_dir)],
            cwd=ctx.temp_dir(),
            check=False,
        )
        if not result.success:
            ctx.abort_pipeline("Unable to access the gh-pages branch.")
        return pages_dir


class ReleaseGithubStep(StepType):
    """Creates the `<component>/v<version>` tag and GitHub release."""

    name = "release_github"

    def primary(self, ctx: StepContext) -> bool:
        return True

    def run(self, ctx: StepContext) -> None:
        repo_path = ctx.component.repo_settings.repo_path
        tag = ctx.tag_name
        ctx.log(f"Checking whether {tag} already exists")
        match gh.release_exists(repo_path=repo_path, tag=tag, cwd=ctx.repository.path):
            case Ok(True):
                ctx.warning(f"GitHub release {tag} already exists. Skipping.")
                ctx.record_success(f"GitHub release {tag} already exists.")
                ctx.exit_step()
            case Ok(False):
                ctx.log(f"GitHub release {tag} has not yet been created.")
            case Err(e):
                ctx.abort_pipeline(e.pretty())

        match ctx.component.changelog_file.read_latest_entry(ctx.version):
            case Ok(body):
                pass
            case Err(e):
                ctx.abort_pipeline(e.pretty())
        match ctx.repository.current_sha():
            case Ok(sha):
                pass
            case Err(e):
                ctx.abort_pipeline(str(e))

        if ctx.dry_run:
            ctx.record_success(f"DRY RUN GitHub release {tag}.")
            ctx.log(f"DRY RUN: GitHub release {tag} not actually created.")
            return
        ctx.log(f"Creating GitHub release {tag}")
        created = gh.create_release(
            repo_path=repo_path,
            tag=tag,
            target_sha=sha,
            name=ctx.release_description,
            body=body,
            cwd=ctx.repository.path,
        )
        if isinstance(created, Err):
            ctx.abort_pipeline(created.error.pretty())
        ctx.record_success(f"Created release with tag {tag} on GitHub.")


# -----------------------------------------------------------------------------
# Registry
# -----------------------------------------------------------------------------

ALL_STEP_TYPES: tuple[StepType, ...] = (
    NoopStep(),
    CommandStep(),
    ToolStep(),
    BuildDistStep(),
    ReleasePypiStep(),
    BuildDocsStep(),
    PushGhPagesStep(),
    ReleaseGithubStep(),
)

STEP_TYPES: dict[str, StepType] = {step.name: step for step in ALL_STEP_TYPES}


def get_step_type(name: str) -> StepType:
    """Look up a step type by name.

    Raises:
        ValueError: If no step type has that name.
    """
    step_type = STEP_TYPES.get(name)
    if step_type is None:
        raise ValueError(f"Unknown step type: {name!r}")
    return step_type


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------


def package_name(ctx: StepContext) -> str:
    """Distribution name: the `package` option, else the component name."""
    return str(ctx.option("package", default=ctx.component.name))


def dist_files(dist_dir: Path, package: str, version: str) -> list[Path]:
    """Wheels and sdists in dist_dir for package at version."""
    if not dist_dir.is_dir():
        return []
    prefixes = (
        f"{re.sub(r'[-_.]+', '_', package).lower()}-{version}",
        f"{package.lower()}-{version}",
    )
    return [
        path
        for path in sorted(dist_dir.iterdir())
        if path.is_file()
        and path.name.endswith((".whl", ".tar.gz", ".zip"))
        and path.name.lower().startswith(prefixes)
    ]

