"""Project generation orchestrator.

Takes a ``ProjectConfig`` and drives the template pipeline end to end:
catalog snapshot, resolution, composition, the optional external base
command, writing, ``setup.json``, ``git init`` and finally the manifest.

Everything up to ``build_plan`` is side-effect free, which is what makes
``dry_run`` possible.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Any, Optional

from bakery import __version__
from bakery.config import Config, ProjectConfig
from bakery.errors import CommandError, FileSystemError
from bakery.scaffolder.catalog import TemplateCatalog
from bakery.scaffolder.compositor import build_plan, compose_dry_run
from bakery.scaffolder.models import (
    CatalogSnapshot,
    DryRunResult,
    GenerationPlan,
    PostProcess,
    RenderContext,
    RenderedCommand,
    SetupTask,
)
from bakery.scaffolder.renderer import TemplateRenderer
from bakery.scaffolder.resolver import require_archetype, resolve, unknown_addons
from bakery.scaffolder.writer import write_file_set
from bakery.sync.manifest import Manifest, ManifestMeta, build_manifest, save_manifest, utc_timestamp
from bakery.utils import load_json, run_command, save_json

logger = logging.getLogger(__name__)


def create_render_context(project: ProjectConfig) -> RenderContext:
    """Map wizard answers onto the values templates can see."""
    return RenderContext(
        project_name=project.project_name,
        description=project.description,
        author=project.author,
        license=project.license,
        github_username=project.github_username,
        archetype=project.archetype,
        api_framework=project.api_framework,
        web_framework=project.web_framework,
        addons=tuple(project.addons),
    )


class ProjectGenerator:
    """Generates one project from a ``ProjectConfig``.

    Typical use::

        generator = ProjectGenerator(project, Config.from_env())
        print(generator.dry_run("./my-cli").total_size)
        manifest = generator.generate("./my-cli")
    """

    def __init__(self, project: ProjectConfig, config: Optional[Config] = None) -> None:
        self.project = project
        self.config = config or Config()
        self.catalog = TemplateCatalog(self.config.templates_dir, self.config.descriptor_file)
        self.renderer = TemplateRenderer(
            template_suffix=self.config.template_suffix,
            descriptor_file=self.config.descriptor_file,
        )
        self.context = create_render_context(project)

    # -- Public API --------------------------------------------------------

    def snapshot(self) -> CatalogSnapshot:
        snapshot = self.catalog.snapshot()
        for message in snapshot.diagnostics:
            logger.debug("catalog: %s", message)
        return snapshot

    def plan(self, output_dir: str | Path) -> GenerationPlan:
        """Compute the generation plan without touching *output_dir*.

        Raises:
            UnknownArchetypeError: If the archetype is not in the catalog.
            RenderError: If any template fails to render.
        """
        snapshot = self.snapshot()
        archetype = require_archetype(self.project.archetype, snapshot)
        for addon in unknown_addons(self.project.addons, snapshot):
            logger.warning("Unknown addon '%s' ignored", addon)

        bundles = resolve(archetype.name, self.project.addons, snapshot)
        logger.info("Resolved bundles: %s", ", ".join(b.name for b in bundles))
        return build_plan(
            bundles, self.context, output_dir, archetype=archetype, renderer=self.renderer
        )

    def dry_run(self, output_dir: str | Path) -> DryRunResult:
        """Describe what ``generate`` would produce; nothing is written."""
        return compose_dry_run(self.plan(output_dir))

    def generate(self, output_dir: str | Path) -> Manifest:
        """Generate the project into *output_dir* and persist its manifest.

        Args:
            output_dir: Project root.  Must not exist yet or be empty.

        Returns:
            The manifest that was written to ``.bakery/manifest.json``.
        """
        project_root = Path(output_dir).resolve()
        validate_output_dir(project_root)

        # 1. Plan everything before writing anything
        plan = self.plan(project_root)

        # 2. External generator and its package.json fix-ups
        if plan.base_command is not None:
            run_base_command(plan.base_command, self.config.base_command_env)
            if plan.post_process is not None:
                apply_post_process(project_root, plan.post_process)

        # 3. Template files (overlays included)
        write_file_set(plan.files, project_root)

        # 4. Setup tasks for the first-run script
        write_setup_config(self.config.setup_path(project_root), self.project.archetype, plan.tasks)

        # 5. Version control
        if self.config.run_git_init:
            init_git_repo(project_root)

        # 6. Manifest of what was generated
        meta = ManifestMeta(
            bakery_version=__version__,
            archetype=self.project.archetype,
            addons=list(self.project.addons),
        )
        manifest = build_manifest(
            project_root,
            meta,
            excluded_dirs=self.config.excluded_dirs,
            managed_paths=self.config.managed_paths,
        )
        save_manifest(project_root, manifest, self.config.state_dir, self.config.manifest_file)
        logger.info("Generated %s with %d tracked file(s)", project_root, len(manifest.files))
        return manifest


# ---------------------------------------------------------------------------
# Generation steps
# ---------------------------------------------------------------------------


def validate_output_dir(project_root: Path) -> None:
    """Refuse to generate into an existing file or a non-empty directory."""
    if not project_root.exists():
        return
    if not project_root.is_dir():
        raise FileSystemError(project_root, "Output path exists and is not a directory")
    if any(project_root.iterdir()):
        raise FileSystemError(project_root, "Output directory is not empty")


def run_base_command(command: RenderedCommand, env: dict[str, str]) -> None:
    """Run an archetype's external generator in its working directory.

    Raises:
        CommandError: If the command exits nonzero.
    """
    command.workdir.mkdir(parents=True, exist_ok=True)
    logger.info("Running: %s", command.command)
    returncode, stdout, stderr = run_command(command.command, cwd=command.workdir, env=env)
    if stdout:
        logger.debug(stdout)
    if returncode != 0:
        raise CommandError(command.command, returncode, stderr)


def apply_post_process(project_root: Path, post_process: PostProcess) -> None:
    """Remove files and edit ``package.json`` after a base command ran.

    A project without ``package.json`` only gets the removals.
    """
    for rel in post_process.remove:
        target = project_root / rel
        if target.is_dir():
            shutil.rmtree(target)
            logger.info("Removed: %s", rel)
        elif target.exists():
            target.unlink()
            logger.info("Removed: %s", rel)

    pkg_path = project_root / "package.json"
    if not pkg_path.is_file():
        return

    try:
        pkg: dict[str, Any] = load_json(pkg_path)
    except (OSError, ValueError) as exc:
        raise FileSystemError(pkg_path, f"Failed to read package.json ({exc})") from exc

    for dep in post_process.remove_deps:
        for section in ("dependencies", "devDependencies"):
            if dep in pkg.get(section, {}):
                del pkg[section][dep]
                logger.info("Removed %s entry: %s", section, dep)

    for name, version in post_process.add_deps.items():
        pkg.setdefault("dependencies", {})[name] = version
        logger.info("Added dependency: %s@%s", name, version)

    for name, version in post_process.add_dev_deps.items():
        pkg.setdefault("devDependencies", {})[name] = version
        logger.info("Added devDependency: %s@%s", name, version)

    for name, script in post_process.update_scripts.items():
        pkg.setdefault("scripts", {})[name] = script
        logger.info("Updated script: %s", name)

    save_json(pkg, pkg_path)


def write_setup_config(path: Path, archetype: str, tasks: list[SetupTask]) -> Path:
    """Write ``setup.json`` (archetype, timestamp and deduplicated tasks)."""
    payload = {
        "archetype": archetype,
        "generatedAt": utc_timestamp(),
        "tasks": [task.model_dump(mode="json", by_alias=True) for task in tasks],
    }
    try:
        return save_json(payload, path)
    except OSError as exc:
        raise FileSystemError(path, f"Failed to write setup config ({exc.strerror})") from exc


def init_git_repo(project_root: Path) -> bool:
    """Run ``git init`` unless the project already is a repository.

    Failure (git missing, permission problems) is logged and reported as
    ``False``; it never fails the generation.
    """
    if (project_root / ".git").exists():
        return False
    try:
        returncode, _, stderr = run_command(["git", "init"], cwd=project_root)
    except OSError as exc:
        logger.warning("git init skipped: %s", exc)
        return False
    if returncode != 0:
        logger.warning("git init failed: %s", stderr)
        return False
    return True
