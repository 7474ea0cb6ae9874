"""Jinja2 rendering of a single template bundle.

``TemplateRenderer.render`` expands one bundle into an in-memory
``{relative_path: content}`` mapping.  It reads the bundle's source tree but
never writes anything, so dry-runs and tests can exercise it freely.

Within a bundle:

* files ending in ``.j2`` are rendered with Jinja2 and the suffix is
  stripped from the output path; ``{% include %}`` resolves relative to the
  bundle root;
* every other file is copied byte-for-byte;
* ``template.json`` at the bundle root is never emitted, and an archetype's
  top-level ``overlays/`` directory is rendered separately (see
  ``compositor.compose_overlays``); other bundles treat it as ordinary files;
* ``{{project_name}}``-style tokens in output paths are replaced with the
  project name and its case variants.
"""

from __future__ import annotations

import fnmatch
from pathlib import Path
from typing import Any, Callable, Iterable, Optional, Protocol

from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateError

from bakery.errors import FileSystemError, RenderError
from bakery.scaffolder.catalog import DESCRIPTOR_FILE
from bakery.scaffolder.models import BundleKind, GeneratedFileSet, RenderContext, TemplateBundle
from bakery.utils import camel_case, kebab_case, pascal_case, slugify, snake_case

TEMPLATE_SUFFIX = ".j2"
OVERLAYS_DIR = "overlays"


# ---------------------------------------------------------------------------
# Templating capability
# ---------------------------------------------------------------------------


class Templating(Protocol):
    """Anything that can render a template file found under a bundle root."""

    def render(self, template_path: str, variables: dict[str, Any]) -> str: ...


class JinjaTemplating:
    """Jinja2 environment rooted at one bundle directory."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)
        self.env = Environment(
            loader=FileSystemLoader(str(self.root)),
            autoescape=False,
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["slugify"] = slugify
        self.env.filters["kebab_case"] = kebab_case
        self.env.filters["pascal_case"] = pascal_case
        self.env.filters["snake_case"] = snake_case
        self.env.filters["camel_case"] = camel_case

    def render(self, template_path: str, variables: dict[str, Any]) -> str:
        """Render a template given by its POSIX path relative to the root."""
        template = self.env.get_template(template_path)
        return template.render(**variables)


TemplatingFactory = Callable[[Path], Templating]


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Expands bundles into generated file sets."""

    def __init__(
        self,
        templating_factory: TemplatingFactory = JinjaTemplating,
        *,
        template_suffix: str = TEMPLATE_SUFFIX,
        descriptor_file: str = DESCRIPTOR_FILE,
    ) -> None:
        self.templating_factory = templating_factory
        self.template_suffix = template_suffix
        self.descriptor_file = descriptor_file

    def render(self, bundle: TemplateBundle, context: RenderContext) -> GeneratedFileSet:
        """Render every file of *bundle*; an archetype's ``overlays/`` is left out."""
        return self.render_tree(
            bundle.path,
            context,
            bundle_name=bundle.name,
            include=bundle.descriptor.include_globs,
            exclude=bundle.descriptor.exclude_globs,
            skip_overlays=bundle.kind is BundleKind.ARCHETYPE,
        )

    def render_tree(
        self,
        root: str | Path,
        context: RenderContext,
        *,
        bundle_name: str = "",
        include: Optional[Iterable[str]] = None,
        exclude: Iterable[str] = (),
        skip_overlays: bool = False,
    ) -> GeneratedFileSet:
        """Render the directory tree at *root*.

        A missing *root* renders to an empty set.

        Raises:
            RenderError: If any template fails to render.
            FileSystemError: If a source file cannot be read.
        """
        root = Path(root)
        if not root.is_dir():
            return {}

        include = list(include) if include is not None else None
        exclude = list(exclude)
        templating: Optional[Templating] = None
        variables = context.template_vars()
        results: GeneratedFileSet = {}

        for source in sorted(p for p in root.rglob("*") if p.is_file()):
            rel = source.relative_to(root).as_posix()
            if rel == self.descriptor_file:
                continue
            if skip_overlays and rel.split("/", 1)[0] == OVERLAYS_DIR:
                continue
            if include is not None and not _matches_any(rel, include):
                continue
            if _matches_any(rel, exclude):
                continue

            if rel.endswith(self.template_suffix):
                if templating is None:
                    templating = self.templating_factory(root)
                output_rel = rel[: -len(self.template_suffix)]
                content: str | bytes = _render_one(templating, rel, variables, bundle_name or root.name)
            else:
                output_rel = rel
                content = _read_bytes(source)

            results[substitute_path_tokens(output_rel, context)] = content

        return results


def render_bundle(bundle: TemplateBundle, context: RenderContext) -> GeneratedFileSet:
    """Render *bundle* with the default Jinja2 renderer."""
    return TemplateRenderer().render(bundle, context)


# ---------------------------------------------------------------------------
# Path tokens
# ---------------------------------------------------------------------------


def substitute_path_tokens(path: str, context: RenderContext) -> str:
    """Replace project-name placeholders in an output path."""
    tokens = {
        "{{project_name}}": context.project_name,
        "{{project_name_pascal}}": context.project_name_pascal,
        "{{project_name_camel}}": context.project_name_camel,
        "{{project_name_snake}}": context.project_name_snake,
    }
    if "{{" not in path:
        return path
    for token, value in tokens.items():
        path = path.replace(token, value)
    return path


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _render_one(templating: Templating, rel: str, variables: dict[str, Any], bundle_name: str) -> str:
    try:
        return templating.render(rel, variables)
    except TemplateError as exc:
        raise RenderError(bundle_name, rel, str(exc)) from exc
    except UnicodeDecodeError as exc:
        raise RenderError(bundle_name, rel, "template is not valid UTF-8") from exc


def _read_bytes(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as exc:
        raise FileSystemError(path, f"Failed to read template file ({exc.strerror})") from exc


def _matches_any(path: str, globs: Iterable[str]) -> bool:
    """``fnmatch`` with two conveniences for directory-style globs.

    ``dir/**`` also matches ``dir`` itself and ``**/x`` also matches ``x`` at
    the top level.
    """
    for pattern in globs:
        if fnmatch.fnmatchcase(path, pattern):
            return True
        if pattern.startswith("**/") and fnmatch.fnmatchcase(path, pattern[3:]):
            return True
        if pattern.endswith("/**") and path == pattern[:-3]:
            return True
    return False
