"""Template pipeline: catalog, resolver, renderer, compositor and writer."""

from bakery.scaffolder.catalog import TemplateCatalog, load_descriptor
from bakery.scaffolder.compositor import build_plan, compose, compose_dry_run, compose_overlays
from bakery.scaffolder.models import (
    CatalogSnapshot,
    DryRunResult,
    GeneratedFileSet,
    GenerationPlan,
    RenderContext,
    TemplateBundle,
    TemplateDescriptor,
)
from bakery.scaffolder.renderer import JinjaTemplating, TemplateRenderer, render_bundle
from bakery.scaffolder.resolver import require_archetype, resolve
from bakery.scaffolder.writer import write_file_set

__all__ = [
    "CatalogSnapshot",
    "DryRunResult",
    "GeneratedFileSet",
    "GenerationPlan",
    "JinjaTemplating",
    "RenderContext",
    "TemplateBundle",
    "TemplateCatalog",
    "TemplateDescriptor",
    "TemplateRenderer",
    "build_plan",
    "compose",
    "compose_dry_run",
    "compose_overlays",
    "load_descriptor",
    "render_bundle",
    "require_archetype",
    "resolve",
    "write_file_set",
]
