"""Integration tests for generation with the built-in templates.

These tests run the real catalog, renderer and manifest code end-to-end
and verify that the generated project contains valid, well-formed
configuration files.

No external tools (bun, git, Docker) are required.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml

from bakery.config import Config, ProjectConfig
from bakery.generator import ProjectGenerator
from bakery.scaffolder.catalog import TemplateCatalog
from bakery.sync.changes import ChangeType, detect_changes_from_disk
from bakery.sync.manifest import load_manifest

pytestmark = pytest.mark.integration


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _generate(tmp_path: Path, archetype: str, addons: list[str], **extra) -> Path:
    project = ProjectConfig(
        project_name="acme-tool",
        description='Acme "fast" tool',
        author="Acme Inc",
        github_username="acme",
        archetype=archetype,
        addons=addons,
        **extra,
    )
    out = tmp_path / "acme-tool"
    ProjectGenerator(project, Config(run_git_init=False)).generate(out)
    return out


@pytest.fixture
def cli_project(tmp_path: Path) -> Path:
    return _generate(tmp_path, "cli", ["docker", "ci"])


# ---------------------------------------------------------------------------
# Built-in catalog
# ---------------------------------------------------------------------------


class TestBuiltinCatalog:
    def test_snapshot_is_clean(self):
        snapshot = TemplateCatalog(Config().templates_dir).snapshot()
        assert snapshot.diagnostics == ()
        assert sorted(snapshot.archetypes) == ["cli", "library"]
        assert sorted(snapshot.addons) == ["ci", "docker"]
        assert snapshot.core.descriptor.tasks


# ---------------------------------------------------------------------------
# CLI archetype with every addon
# ---------------------------------------------------------------------------


class TestCliProject:
    def test_expected_files(self, cli_project: Path):
        for rel in (
            ".gitignore",
            ".editorconfig",
            "biome.json",
            "lefthook.yml",
            "Makefile",
            "LICENSE",
            "AGENTS.md",
            "README.md",
            "package.json",
            "tsconfig.json",
            "src/cli.ts",
            "tests/cli.test.ts",
            "Dockerfile",
            "docker-compose.yml",
            ".dockerignore",
            ".github/workflows/ci.yml",
        ):
            assert (cli_project / rel).is_file(), rel
        assert not list(cli_project.rglob("*.j2"))
        assert not list(cli_project.rglob("template.json"))

    def test_json_files_parse(self, cli_project: Path):
        pkg = json.loads((cli_project / "package.json").read_text(encoding="utf-8"))
        assert pkg["name"] == "acme-tool"
        assert pkg["description"] == 'Acme "fast" tool'
        assert pkg["author"] == "Acme Inc"
        assert pkg["bin"] == {"acme-tool": "./dist/cli.js"}
        for rel in ("tsconfig.json", "biome.json"):
            json.loads((cli_project / rel).read_text(encoding="utf-8"))

    def test_yaml_files_parse(self, cli_project: Path):
        compose = yaml.safe_load((cli_project / "docker-compose.yml").read_text(encoding="utf-8"))
        assert "acme-tool" in compose["services"]

        workflow = yaml.safe_load((cli_project / ".github/workflows/ci.yml").read_text(encoding="utf-8"))
        assert workflow["concurrency"]["group"] == "${{ github.workflow }}-${{ github.ref }}"
        steps = [step.get("run") for step in workflow["jobs"]["check"]["steps"]]
        assert "docker build -t acme-tool ." in steps

        hooks = yaml.safe_load((cli_project / "lefthook.yml").read_text(encoding="utf-8"))
        assert "pre-commit" in hooks

    def test_makefile_uses_tabs_and_addon_targets(self, cli_project: Path):
        makefile = (cli_project / "Makefile").read_text(encoding="utf-8")
        assert "\tbun install\n" in makefile
        assert "docker-build:" in makefile

    def test_license_and_readme(self, cli_project: Path):
        license_text = (cli_project / "LICENSE").read_text(encoding="utf-8")
        assert license_text.startswith("MIT License")
        assert "Acme Inc" in license_text

        readme = (cli_project / "README.md").read_text(encoding="utf-8")
        assert readme.startswith("# acme-tool\n")
        assert "https://github.com/acme/acme-tool" in readme
        assert readme.endswith("MIT (c) Acme Inc\n")

    def test_dockerfile_entrypoint_follows_archetype(self, cli_project: Path):
        dockerfile = (cli_project / "Dockerfile").read_text(encoding="utf-8")
        assert 'ENTRYPOINT ["bun", "dist/cli.js"]' in dockerfile
        assert "CMD" not in dockerfile

    def test_manifest_classification(self, cli_project: Path):
        manifest = load_manifest(cli_project)
        managed = {path for path, entry in manifest.files.items() if entry.managed}
        assert managed == {
            ".gitignore",
            ".editorconfig",
            "biome.json",
            "lefthook.yml",
            "Makefile",
            "LICENSE",
            "AGENTS.md",
            "tsconfig.json",
            ".github/workflows/ci.yml",
        }
        assert manifest.addons == ["docker", "ci"]

    def test_setup_tasks(self, cli_project: Path):
        setup = json.loads((cli_project / ".bakery" / "setup.json").read_text(encoding="utf-8"))
        names = [task["name"] for task in setup["tasks"]]
        assert names == ["install", "git-init", "hooks", "build", "docker-build"]

    def test_drift_after_edits(self, cli_project: Path):
        (cli_project / "biome.json").write_text("{}\n", encoding="utf-8")
        (cli_project / "src" / "cli.ts").unlink()
        (cli_project / "src" / "extra.ts").write_text("export {}\n", encoding="utf-8")
        (cli_project / "node_modules" / "dep").mkdir(parents=True)
        (cli_project / "node_modules" / "dep" / "index.js").write_text("", encoding="utf-8")

        records = {r.path: r for r in detect_changes_from_disk(cli_project)}

        assert records["biome.json"].type is ChangeType.MODIFIED
        assert records["biome.json"].managed is True
        assert records["src/cli.ts"].type is ChangeType.REMOVED
        assert records["src/extra.ts"].type is ChangeType.ADDED
        assert records["package.json"].type is ChangeType.UNCHANGED
        assert not any(path.startswith("node_modules/") for path in records)


# ---------------------------------------------------------------------------
# Library archetype
# ---------------------------------------------------------------------------


class TestLibraryProject:
    def test_generates_without_addons(self, tmp_path: Path):
        out = _generate(tmp_path, "library", [], license="Apache-2.0")

        index = (out / "src" / "index.ts").read_text(encoding="utf-8")
        assert "AcmeTool" in index
        assert not (out / "Dockerfile").exists()
        assert not (out / ".github").exists()
        assert "Apache-2.0" in (out / "LICENSE").read_text(encoding="utf-8")
        assert "docker-build" not in (out / "Makefile").read_text(encoding="utf-8")
        assert json.loads((out / "package.json").read_text(encoding="utf-8"))["license"] == "Apache-2.0"
