"""Dependency-ordered bundle resolution.

``resolve`` is a pure function of its three inputs: the same archetype, the
same addon list and the same snapshot always yield the same ordered list.
"""

from __future__ import annotations

from typing import Iterable

from bakery.errors import UnknownArchetypeError
from bakery.scaffolder.models import CatalogSnapshot, TemplateBundle


def resolve(
    archetype_id: str,
    addon_ids: Iterable[str],
    snapshot: CatalogSnapshot,
) -> list[TemplateBundle]:
    """Return the bundles to render, in merge order.

    Order is always ``core`` -> archetype dependencies -> archetype -> addons.
    Only the archetype's own ``dependencies`` are inserted, in declaration
    order; dependencies of those bundles are not followed.  An unknown
    archetype yields ``[core]`` only; unknown dependencies and addons are
    skipped.  No bundle name appears twice.
    """
    bundles: list[TemplateBundle] = [snapshot.core]
    seen: set[str] = {snapshot.core.name}

    archetype = snapshot.archetype(archetype_id)
    if archetype is not None:
        # Marked up front so a dependency naming the archetype is skipped.
        seen.add(archetype.name)
        for reference in archetype.descriptor.dependencies:
            dependency = snapshot.lookup(reference)
            if dependency is None or dependency.name in seen:
                continue
            seen.add(dependency.name)
            bundles.append(dependency)
        bundles.append(archetype)

    for addon_id in addon_ids:
        addon = snapshot.addon(addon_id)
        if addon is None or addon.name in seen:
            continue
        seen.add(addon.name)
        bundles.append(addon)

    return bundles


def require_archetype(archetype_id: str, snapshot: CatalogSnapshot) -> TemplateBundle:
    """Return the archetype bundle or raise ``UnknownArchetypeError``."""
    archetype = snapshot.archetype(archetype_id)
    if archetype is None:
        raise UnknownArchetypeError(archetype_id, list(snapshot.archetypes))
    return archetype


def unknown_addons(addon_ids: Iterable[str], snapshot: CatalogSnapshot) -> list[str]:
    """Addon ids that ``resolve`` would skip because the catalog lacks them."""
    return [a for a in addon_ids if snapshot.addon(a) is None]
