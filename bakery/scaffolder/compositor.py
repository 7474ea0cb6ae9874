"""Multi-bundle merge, overlays and dry-run summaries.

Bundles are merged in resolver order and the later bundle wins whenever two
define the same path.  That is how an addon customises an archetype default.

Real generation and dry-run both go through ``build_plan``, so a preview
cannot disagree with what actually gets written.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional

from bakery.scaffolder.models import (
    BaseCommand,
    DryRunFile,
    DryRunResult,
    FileContent,
    GeneratedFileSet,
    GenerationPlan,
    RenderContext,
    RenderedCommand,
    SetupTask,
    TemplateBundle,
)
from bakery.scaffolder.renderer import TemplateRenderer

logger = logging.getLogger(__name__)


def compose(
    bundles: Iterable[TemplateBundle],
    context: RenderContext,
    renderer: Optional[TemplateRenderer] = None,
) -> GeneratedFileSet:
    """Render *bundles* in order and merge them; the last definition of a path wins."""
    renderer = renderer or TemplateRenderer()
    merged: GeneratedFileSet = {}
    for bundle in bundles:
        files = renderer.render(bundle, context)
        _merge_into(merged, files, renderer.descriptor_file, source=bundle.name)
    return merged


def compose_overlays(
    archetype: TemplateBundle,
    context: RenderContext,
    renderer: Optional[TemplateRenderer] = None,
) -> GeneratedFileSet:
    """Render the archetype's ``overlays/`` sub-bundle (empty if it has none)."""
    renderer = renderer or TemplateRenderer()
    return renderer.render_tree(archetype.overlays_path, context, bundle_name=f"{archetype.name}/overlays")


def build_plan(
    bundles: list[TemplateBundle],
    context: RenderContext,
    output_dir: str | Path,
    *,
    archetype: Optional[TemplateBundle] = None,
    renderer: Optional[TemplateRenderer] = None,
) -> GenerationPlan:
    """Compute everything a generation run will produce.

    When the archetype declares a ``base_command``, its own tree comes from
    that external generator: the plan composes every other bundle, then
    renders the archetype's overlays on top, and carries the command for the
    orchestrator to run first.
    """
    renderer = renderer or TemplateRenderer()
    if archetype is None:
        archetype = next((b for b in bundles if b.name == context.archetype), None)

    plan = GenerationPlan(tasks=collect_setup_tasks(bundles))
    layers = bundles
    if archetype is not None and archetype.descriptor.base_command is not None:
        plan.base_command = render_base_command(archetype.descriptor.base_command, output_dir)
        plan.post_process = archetype.descriptor.post_process
        layers = [b for b in bundles if b.name != archetype.name]

    plan.files = compose(layers, context, renderer)
    if archetype is not None:
        overlays = compose_overlays(archetype, context, renderer)
        _merge_into(plan.files, overlays, renderer.descriptor_file, source=f"{archetype.name}/overlays")
    return plan


def compose_dry_run(plan: GenerationPlan) -> DryRunResult:
    """Summarise *plan* without writing anything."""
    result = DryRunResult()
    for path, content in plan.files.items():
        size = content_size(content)
        result.files.append(DryRunFile(path=path, size=size))
        result.total_size += size

    if plan.base_command is not None:
        result.commands.append(plan.base_command.command)
    if plan.post_process is not None:
        result.dependencies.extend(f"{n}@{v}" for n, v in plan.post_process.add_deps.items())
        result.dev_dependencies.extend(f"{n}@{v}" for n, v in plan.post_process.add_dev_deps.items())
    return result


def render_base_command(base_command: BaseCommand, output_dir: str | Path) -> RenderedCommand:
    """Substitute ``{{projectName}}`` and ``{{parentDir}}`` for *output_dir*."""
    out = Path(output_dir).resolve()
    replacements = {"{{projectName}}": out.name, "{{parentDir}}": str(out.parent)}

    def _fill(value: str) -> str:
        for token, replacement in replacements.items():
            value = value.replace(token, replacement)
        return value

    return RenderedCommand(command=_fill(base_command.command), workdir=Path(_fill(base_command.workdir)))


def collect_setup_tasks(bundles: Iterable[TemplateBundle]) -> list[SetupTask]:
    """Setup tasks of all bundles in order; the first task with a given name wins."""
    tasks: list[SetupTask] = []
    seen: set[str] = set()
    for bundle in bundles:
        for task in bundle.descriptor.tasks:
            if task.name not in seen:
                tasks.append(task)
                seen.add(task.name)
    return tasks


def content_size(content: FileContent) -> int:
    """Size in bytes as written to disk (text is UTF-8)."""
    return len(content.encode("utf-8")) if isinstance(content, str) else len(content)


def _merge_into(target: GeneratedFileSet, files: GeneratedFileSet, descriptor_file: str, *, source: str) -> None:
    for path, content in files.items():
        if path == descriptor_file:
            continue
        if path in target:
            logger.debug("%s overrides %s", source, path)
        target[path] = content
