"""Shared pytest fixtures for the Bakery test suite.

Provides reusable fixtures for:
- Building template bundles on disk from plain dicts
- A small templates root (core, two archetypes, two addons)
- A default render context and project config
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Optional

import pytest

from bakery.config import Config, ProjectConfig
from bakery.scaffolder.models import BundleKind, RenderContext, TemplateBundle, TemplateDescriptor


def write_tree(root: Path, files: dict[str, str | bytes]) -> Path:
    """Create *files* (relative path -> content) below *root*."""
    root.mkdir(parents=True, exist_ok=True)
    for rel, content in files.items():
        target = root / rel
        target.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            target.write_bytes(content)
        else:
            target.write_text(content, encoding="utf-8")
    return root


def descriptor_json(name: str, **extra: Any) -> str:
    data = {"name": name, "displayName": name.title(), "description": f"{name} template", **extra}
    return json.dumps(data)


# ---------------------------------------------------------------------------
# Bundles
# ---------------------------------------------------------------------------


@pytest.fixture
def make_tree() -> Callable[[Path, dict[str, str | bytes]], Path]:
    """``write_tree`` as a fixture, for tests that build ad-hoc directories."""
    return write_tree


@pytest.fixture
def make_bundle(tmp_path: Path) -> Callable[..., TemplateBundle]:
    """Factory: ``make_bundle("cli", {"a.txt": "x"}, dependencies=[...])``.

    Writes the files plus a ``template.json`` into ``tmp_path/bundles/<name>``
    and returns the bound ``TemplateBundle``.
    """

    def _make(
        name: str,
        contents: Optional[dict[str, str | bytes]] = None,
        kind: BundleKind = BundleKind.ARCHETYPE,
        **descriptor: Any,
    ) -> TemplateBundle:
        path = tmp_path / "bundles" / name
        write_tree(path, {"template.json": descriptor_json(name, **descriptor), **(contents or {})})
        return TemplateBundle(
            descriptor=TemplateDescriptor.model_validate(json.loads((path / "template.json").read_text())),
            path=path,
            kind=kind,
        )

    return _make


@pytest.fixture
def templates_root(tmp_path: Path) -> Path:
    """A catalog with core, archetypes ``cli``/``library`` and addons ``docker``/``ci``."""
    root = tmp_path / "templates"
    write_tree(
        root,
        {
            "core/template.json": descriptor_json(
                "core",
                tasks=[{"name": "install", "description": "Install", "command": "bun install"}],
            ),
            "core/biome.json": '{"formatter": {"enabled": true}}\n',
            "core/README.md.j2": "# {{ project_name }}\n\n{{ description }}\n",
            "core/.gitignore": "node_modules/\n",
            "cli/template.json": descriptor_json(
                "cli",
                tasks=[
                    {"name": "install", "description": "Install again", "command": "npm install"},
                    {"name": "build", "description": "Build", "command": "bun run build"},
                ],
            ),
            "cli/package.json.j2": '{"name": "{{ project_name }}"}\n',
            "cli/src/{{project_name}}.ts.j2": "export const name = '{{ project_name_camel }}'\n",
            "library/template.json": descriptor_json("library"),
            "library/src/index.ts": "export {}\n",
            "addons/docker/template.json": descriptor_json("docker"),
            "addons/docker/Dockerfile.j2": "LABEL name={{ project_name }}\n",
            "addons/docker/README.md.j2": "# {{ project_name }} (docker)\n",
            "addons/ci/template.json": descriptor_json("ci"),
            "addons/ci/.github/workflows/ci.yml": "name: CI\n",
        },
    )
    return root


@pytest.fixture
def config(templates_root: Path) -> Config:
    """Config pointing at ``templates_root`` with git disabled."""
    return Config(templates_dir=templates_root, run_git_init=False)


# ---------------------------------------------------------------------------
# Project values
# ---------------------------------------------------------------------------


@pytest.fixture
def render_context() -> RenderContext:
    return RenderContext(
        project_name="my-cli",
        description="A small command-line tool",
        author="Ada",
        github_username="ada",
        archetype="cli",
        addons=("docker",),
        year=2026,
    )


@pytest.fixture
def project_config() -> ProjectConfig:
    return ProjectConfig(
        project_name="my-cli",
        description="A small command-line tool",
        author="Ada",
        archetype="cli",
        addons=["docker"],
    )


@pytest.fixture
def project_config_file(tmp_path: Path) -> Callable[[dict[str, Any]], Path]:
    """Factory writing a JSON project config and returning its path."""

    def _write(data: dict[str, Any]) -> Path:
        path = tmp_path / "project.json"
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    return _write
