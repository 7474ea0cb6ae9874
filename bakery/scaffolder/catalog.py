"""Template catalog: discovers bundle descriptors on disk.

Expected layout under the templates root::

    templates/
      core/                 always included; descriptor optional
      cli/template.json     every other top-level directory is an archetype
      library/template.json
      addons/
        docker/template.json

Discovery is best-effort.  A malformed ``template.json`` is reported as a
diagnostic and that template is skipped; it never breaks discovery of the
others.  The result is an immutable ``CatalogSnapshot`` so resolution can
stay a pure function.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable, Optional

from pydantic import ValidationError

from bakery.errors import DescriptorLoadError
from bakery.scaffolder.models import (
    BundleKind,
    BundleOrigin,
    CatalogSnapshot,
    TemplateBundle,
    TemplateDescriptor,
)

logger = logging.getLogger(__name__)

DESCRIPTOR_FILE = "template.json"

_RESERVED_DIRS = frozenset({"core", "addons"})


def load_descriptor(
    template_dir: str | Path, descriptor_file: str = DESCRIPTOR_FILE
) -> tuple[Optional[TemplateDescriptor], Optional[DescriptorLoadError]]:
    """Load and validate ``template.json`` from *template_dir*.

    Never raises.  Returns ``(descriptor, None)`` on success and
    ``(None, error)`` when the file is unreadable, not JSON, or fails schema
    validation.  A missing file returns ``(None, None)``: a directory without
    a descriptor simply is not a template.
    """
    path = Path(template_dir) / descriptor_file
    if not path.is_file():
        return None, None

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as exc:
        return None, _report(DescriptorLoadError(path, f"cannot read descriptor ({exc})"))
    except json.JSONDecodeError as exc:
        return None, _report(DescriptorLoadError(path, f"invalid JSON ({exc.msg}, line {exc.lineno})"))

    try:
        return TemplateDescriptor.model_validate(data), None
    except ValidationError as exc:
        details = [
            f"{'.'.join(str(p) for p in err['loc']) or '(root)'}: {err['msg']}" for err in exc.errors()
        ]
        return None, _report(DescriptorLoadError(path, "descriptor validation failed", details))


def _report(error: DescriptorLoadError) -> DescriptorLoadError:
    logger.warning("Skipping template: %s", error)
    for line in error.details:
        logger.warning("  %s", line)
    return error


class TemplateCatalog:
    """Filesystem adapter that produces ``CatalogSnapshot`` values.

    Descriptors are loaded fresh on every call; nothing is cached across
    snapshots.
    """

    def __init__(self, root: str | Path, descriptor_file: str = DESCRIPTOR_FILE) -> None:
        self.root = Path(root).resolve()
        self.descriptor_file = descriptor_file
        self.diagnostics: list[DescriptorLoadError] = []

    # -- Discovery ---------------------------------------------------------

    def discover(self, kind: BundleKind | str) -> list[TemplateBundle]:
        """Return the bundles of one *kind* (``archetype`` or ``addon``).

        Immediate subdirectories are scanned in sorted order; those without a
        descriptor are skipped silently.
        """
        kind = BundleKind(kind)
        if kind is BundleKind.CORE:
            return [self.load_core()]

        if kind is BundleKind.ADDON:
            scan_dir = self.root / "addons"
            candidates = self._subdirectories(scan_dir)
        else:
            candidates = [d for d in self._subdirectories(self.root) if d.name not in _RESERVED_DIRS]

        bundles: list[TemplateBundle] = []
        for directory in candidates:
            descriptor, error = load_descriptor(directory, self.descriptor_file)
            if error is not None:
                self.diagnostics.append(error)
            if descriptor is None:
                continue
            bundles.append(TemplateBundle(descriptor=descriptor, path=directory, kind=kind))
        return bundles

    def load_core(self) -> TemplateBundle:
        """Return the ``core`` bundle, synthesizing a descriptor if needed."""
        core_dir = self.root / "core"
        descriptor, error = load_descriptor(core_dir, self.descriptor_file)
        if error is not None:
            self.diagnostics.append(error)
        if descriptor is None:
            logger.debug("No core descriptor in %s; using synthesized core", core_dir)
            descriptor = TemplateDescriptor.synthesized_core()
        return TemplateBundle(descriptor=descriptor, path=core_dir, kind=BundleKind.CORE)

    def snapshot(self, extra_bundles: Iterable[TemplateBundle] = ()) -> CatalogSnapshot:
        """Load every bundle once and freeze the result.

        *extra_bundles* are externally supplied (e.g. plugin) bundles that have
        already been validated; they are merged with ``origin="external"``.
        Names are unique across core, archetypes and addons; when two bundles
        share a name the first one wins and the later one is reported.
        """
        self.diagnostics = []
        core = self.load_core()
        messages: list[str] = []
        archetypes: dict[str, TemplateBundle] = {}
        addons: dict[str, TemplateBundle] = {}

        externals = [
            b.model_copy(update={"origin": BundleOrigin.EXTERNAL}) for b in extra_bundles
        ]
        builtin = self.discover(BundleKind.ARCHETYPE) + self.discover(BundleKind.ADDON)

        taken: set[str] = {core.name}
        for bundle in builtin + externals:
            if bundle.kind is BundleKind.CORE:
                messages.append(f"{bundle.path}: external bundles cannot replace core")
                continue
            target = addons if bundle.kind is BundleKind.ADDON else archetypes
            if bundle.name in taken:
                message = f"{bundle.path}: duplicate {bundle.kind.value} name '{bundle.name}' ignored"
                logger.warning(message)
                messages.append(message)
                continue
            taken.add(bundle.name)
            target[bundle.name] = bundle

        messages = [str(err) for err in self.diagnostics] + messages
        return CatalogSnapshot(
            core=core,
            archetypes=archetypes,
            addons=addons,
            diagnostics=tuple(messages),
        )

    # -- Helpers -----------------------------------------------------------

    @staticmethod
    def _subdirectories(directory: Path) -> list[Path]:
        if not directory.is_dir():
            return []
        return sorted((p for p in directory.iterdir() if p.is_dir()), key=lambda p: p.name)
