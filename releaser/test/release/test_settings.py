"""Tests for releaser.release.settings."""

from __future__ import annotations

from pathlib import Path

from releaser.core.result import Err, Ok
from releaser.release.semver import Semver
from releaser.release.settings import (
    HIDDEN,
    InputSpec,
    OutputSpec,
    RepoSettings,
    load_settings,
    parse_settings,
)


def parse_ok(data: dict[str, object]) -> RepoSettings:
    result = parse_settings(data)
    assert isinstance(result, Ok), result
    return result.value


def parse_errors(data: dict[str, object]) -> tuple[str, ...]:
    result = parse_settings(data)
    assert isinstance(result, Err)
    return result.error.details


# =============================================================================
# Defaults
# =============================================================================


class TestDefaults:
    def test_single_component(self) -> None:
        settings = parse_ok({"repo": "owner/repo", "components": [{"name": "lib"}]})

        assert settings.repo_owner == "owner"
        assert settings.repo_name == "repo"
        assert settings.main_branch == "main"
        lib = settings.components[0]
        assert lib.directory == "."
        assert lib.changelog_path == "CHANGELOG.md"
        assert [s.name for s in lib.steps] == ["build_dist", "release_pypi", "release_github"]
        assert [t.tag for t in lib.commit_tags] == ["feat", "fix", "docs"]

    def test_default_commit_tags(self) -> None:
        lib = parse_ok({"repo": "o/r", "components": [{"name": "lib"}]}).components[0]

        feat = lib.commit_tag_named("feat")
        docs = lib.commit_tag_named("docs")
        assert feat is not None and feat.resolve() == ("ADDED", Semver.MINOR)
        assert docs is not None and docs.resolve() == ("DOCS", Semver.PATCH)

    def test_multiple_components_default_directory_to_name(self) -> None:
        settings = parse_ok(
            {"repo": "o/r", "components": [{"name": "core"}, {"name": "cli", "directory": "tools/cli"}]}
        )

        assert settings.all_component_names == ["core", "cli"]
        assert settings.components[0].directory == "core"
        assert settings.components[1].directory == "tools/cli"


# =============================================================================
# Validation
# =============================================================================


class TestValidation:
    def test_collects_every_problem(self) -> None:
        errors = parse_errors({"bogus": 1, "components": []})

        assert "Unknown top level key 'bogus'" in errors
        assert "Required key 'repo' missing" in errors
        assert "No components found" in errors

    def test_duplicate_component(self) -> None:
        errors = parse_errors({"repo": "o/r", "components": [{"name": "a"}, {"name": "a"}]})
        assert "Duplicate component 'a'" in errors

    def test_unknown_component_key(self) -> None:
        errors = parse_errors({"repo": "o/r", "components": [{"name": "a", "colour": "red"}]})
        assert "Unknown key 'colour' in component 'a'" in errors

    def test_bad_bullet(self) -> None:
        errors = parse_errors(
            {"repo": "o/r", "changelog_bullet": "+", "components": [{"name": "a"}]}
        )
        assert any("changelog_bullet" in e for e in errors)

    def test_unknown_step_type(self) -> None:
        errors = parse_errors(
            {"repo": "o/r", "components": [{"name": "a", "steps": [{"name": "x", "type": "teleport"}]}]}
        )
        assert "Unknown step type 'teleport' for step 'x' of component 'a'" in errors

    def test_input_must_name_earlier_step(self) -> None:
        errors = parse_errors(
            {
                "repo": "o/r",
                "components": [
                    {
                        "name": "a",
                        "steps": [
                            {"name": "first", "type": "noop", "inputs": ["second"]},
                            {"name": "second", "type": "noop"},
                        ],
                    }
                ],
            }
        )
        assert "Input 'second' of step 'first' of component 'a' does not name an earlier step" in errors

    def test_config_error_pretty(self, tmp_path: Path) -> None:
        path = tmp_path / "releases.yml"
        path.write_text("components: []\n", encoding="utf-8")

        result = load_settings(path)

        assert isinstance(result, Err)
        assert str(path) in result.error.pretty()
        assert "  - Required key 'repo' missing" in result.error.pretty()


# =============================================================================
# Commit tags
# =============================================================================


class TestCommitTags:
    def test_shorthand_forms(self) -> None:
        settings = parse_ok(
            {
                "repo": "o/r",
                "commit_tags": ["perf", {"refactor": "minor"}, {"chore": {"header": None}}],
                "components": [{"name": "a"}],
            }
        )
        tags = {t.tag: t for t in settings.commit_tags}

        assert tags["perf"].resolve() == ("PERF", Semver.PATCH)
        assert tags["refactor"].resolve() == ("REFACTOR", Semver.MINOR)
        assert tags["chore"].resolve() == (HIDDEN, Semver.NONE)

    def test_scopes(self) -> None:
        settings = parse_ok(
            {
                "repo": "o/r",
                "commit_tags": [
                    {
                        "tag": "fix",
                        "header": "FIXED",
                        "scopes": {"deps": "patch2", "docs": {"header": "DOCS"}},
                    }
                ],
                "components": [{"name": "a"}],
            }
        )
        fix = settings.commit_tags[0]

        assert fix.resolve() == ("FIXED", Semver.PATCH)
        assert fix.resolve("deps") == ("FIXED", Semver.PATCH2)
        assert fix.resolve("docs") == ("DOCS", Semver.PATCH)
        assert fix.resolve("other") == ("FIXED", Semver.PATCH)

    def test_unknown_semver(self) -> None:
        errors = parse_errors(
            {"repo": "o/r", "commit_tags": [{"tag": "x", "semver": "huge"}], "components": [{"name": "a"}]}
        )
        assert "Unknown semver 'huge' for tag 'x'" in errors

    def test_component_override(self) -> None:
        settings = parse_ok(
            {"repo": "o/r", "components": [{"name": "a", "commit_tags": ["only"]}, {"name": "b"}]}
        )
        assert [t.tag for t in settings.components[0].commit_tags] == ["only"]
        assert [t.tag for t in settings.components[1].commit_tags] == ["feat", "fix", "docs"]


# =============================================================================
# Steps
# =============================================================================


class TestSteps:
    def test_structural_keys_and_options(self) -> None:
        settings = parse_ok(
            {
                "repo": "o/r",
                "components": [
                    {
                        "name": "a",
                        "steps": [
                            {"name": "build", "type": "command", "command": "make", "outputs": ["out"]},
                            {
                                "name": "pub",
                                "type": "command",
                                "command": ["echo", "hi"],
                                "run": True,
                                "inputs": [{"name": "build", "dest": "temp", "collisions": "replace"}],
                            },
                        ],
                    }
                ],
            }
        )
        build, pub = settings.components[0].steps

        assert build.options == {"command": "make"}
        assert build.outputs == (OutputSpec(source_path="out"),)
        assert pub.run is True
        assert pub.inputs == (InputSpec(name="build", dest="temp", collisions="replace"),)

    def test_input_dest_false_means_none(self) -> None:
        settings = parse_ok(
            {
                "repo": "o/r",
                "components": [
                    {
                        "name": "a",
                        "steps": ["noop", {"name": "x", "type": "noop", "inputs": [{"name": "noop", "dest": False}]}],
                    }
                ],
            }
        )
        assert settings.components[0].steps[1].inputs[0].dest == "none"

    def test_modify_prepend_append_delete(self) -> None:
        settings = parse_ok(
            {
                "repo": "o/r",
                "modify_steps": [{"name": "release_pypi", "package": "my-lib"}],
                "prepend_steps": {"before": "release_pypi", "steps": [{"name": "check", "type": "noop"}]},
                "append_steps": [{"name": "docs", "type": "build_docs"}],
                "delete_steps": ["release_github"],
                "components": [{"name": "a"}],
            }
        )
        steps = settings.components[0].steps

        assert [s.name for s in steps] == ["build_dist", "check", "release_pypi", "docs"]
        assert steps[2].options == {"package": "my-lib"}

    def test_modify_by_type_and_remove_key(self) -> None:
        settings = parse_ok(
            {
                "repo": "o/r",
                "steps": [{"name": "one", "type": "command", "command": "true", "extra": 1}],
                "modify_steps": [{"type": "command", "extra": None}],
                "components": [{"name": "a"}],
            }
        )
        assert settings.components[0].steps[0].options == {"command": "true"}

    def test_modify_without_match(self) -> None:
        errors = parse_errors(
            {"repo": "o/r", "modify_steps": [{"name": "nope"}], "components": [{"name": "a"}]}
        )
        assert any("Unable to find step to modify" in e for e in errors)

    def test_component_modifications_apply_after_top_level(self) -> None:
        settings = parse_ok(
            {
                "repo": "o/r",
                "append_steps": ["noop"],
                "components": [{"name": "a", "delete_steps": "noop"}, {"name": "b"}],
            }
        )
        assert settings.components[0].step_named("noop") is None
        assert settings.components[1].step_named("noop") is not None

    def test_delete_unknown(self) -> None:
        errors = parse_errors(
            {"repo": "o/r", "delete_steps": ["ghost"], "components": [{"name": "a"}]}
        )
        assert any("'ghost'" in e for e in errors)

    def test_to_dict_flattens_options(self) -> None:
        settings = parse_ok(
            {"repo": "o/r", "components": [{"name": "a", "steps": [{"name": "c", "type": "command", "command": "x"}]}]}
        )
        data = settings.components[0].steps[0].to_dict()
        assert data["command"] == "x"
        assert data["inputs"] == []


# =============================================================================
# Coordination and dependencies
# =============================================================================


class TestCoordination:
    def test_coordinate_versions(self) -> None:
        settings = parse_ok(
            {"repo": "o/r", "coordinate_versions": True, "components": [{"name": "a"}, {"name": "b"}]}
        )
        assert settings.coordination_groups == (("a", "b"),)
        assert settings.coordination_group_of("b") == ("a", "b")

    def test_flat_group_list(self) -> None:
        settings = parse_ok(
            {
                "repo": "o/r",
                "coordination_groups": ["a", "b"],
                "components": [{"name": "a"}, {"name": "b"}, {"name": "c"}],
            }
        )
        assert settings.coordination_groups == (("a", "b"),)
        assert settings.coordination_group_of("c") == ("c",)

    def test_bad_groups(self) -> None:
        errors = parse_errors(
            {
                "repo": "o/r",
                "coordination_groups": [["a", "x"], ["a", "b"]],
                "components": [{"name": "a"}, {"name": "b"}],
            }
        )
        assert "Unrecognized component 'x' listed in a coordination group" in errors
        assert "Component 'a' is in multiple coordination groups" in errors

    def test_update_dependencies(self) -> None:
        settings = parse_ok(
            {
                "repo": "o/r",
                "components": [
                    {"name": "core"},
                    {
                        "name": "cli",
                        "update_dependencies": {
                            "dependencies": ["core"],
                            "dependency_semver_threshold": "patch",
                        },
                    },
                ],
            }
        )
        deps = settings.components[1].update_dependencies

        assert deps is not None
        assert deps.dependencies == ("core",)
        assert deps.semver_threshold is Semver.PATCH
        assert deps.constraint_level is Semver.MINOR

    def test_update_dependencies_requires_list(self) -> None:
        errors = parse_errors(
            {"repo": "o/r", "components": [{"name": "a", "update_dependencies": {}}]}
        )
        assert any("missing required key 'dependencies'" in e for e in errors)


class TestLoadSettings:
    def test_loads_yaml_file(self, tmp_path: Path) -> None:
        path = tmp_path / "releases.yml"
        path.write_text(
            "repo: owner/repo\nsignoff_commits: true\ncomponents:\n  - name: lib\n",
            encoding="utf-8",
        )

        result = load_settings(path)

        assert isinstance(result, Ok)
        assert result.value.signoff_commits is True
        assert result.value.components[0].name == "lib"
