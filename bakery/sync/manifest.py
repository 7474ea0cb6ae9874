"""Project manifest: the persisted record of one generation's file hashes.

A manifest is created once per successful generation, written to
``<project>/.bakery/manifest.json`` and later read back (unmodified) by
``bakery status`` to detect drift.  The JSON layout is::

    {
      "bakeryVersion": "0.4.0",
      "archetype": "cli",
      "addons": ["docker"],
      "generatedAt": "2026-01-01T00:00:00.000Z",
      "files": {"biome.json": {"hash": "<hex>", "managed": true, "injections": []}}
    }
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Iterator

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from bakery.errors import FileSystemError, ManifestError, ManifestNotFoundError
from bakery.sync.hash import hash_file

logger = logging.getLogger(__name__)

STATE_DIR = ".bakery"
MANIFEST_FILE = "manifest.json"

# Never descended into when walking a project tree.
EXCLUDED_DIRS: tuple[str, ...] = (".git", "node_modules", STATE_DIR)

# Infrastructure/config files the tool considers its own.  Entries ending in
# "/" cover a whole directory.
MANAGED_PATHS: tuple[str, ...] = (
    "biome.json",
    "tsconfig.json",
    "lefthook.yml",
    "Makefile",
    ".editorconfig",
    "knip.json",
    "commitlint.config.js",
    ".gitignore",
    "LICENSE",
    "AGENTS.md",
    ".github/",
)


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class ManifestEntry(BaseModel):
    """Hash and classification of a single generated file."""

    hash: str
    managed: bool = False
    injections: list[Any] = Field(default_factory=list)


class ManifestMeta(BaseModel):
    """Generation metadata recorded alongside the file hashes."""

    bakery_version: str
    archetype: str
    addons: list[str] = Field(default_factory=list)


class Manifest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    bakery_version: str = Field(..., alias="bakeryVersion")
    archetype: str
    addons: list[str] = Field(default_factory=list)
    generated_at: str = Field(..., alias="generatedAt", description="ISO-8601 UTC timestamp")
    files: dict[str, ManifestEntry] = Field(default_factory=dict)

    def to_json(self) -> str:
        """Serialise with camelCase keys, 2-space indent and a trailing newline."""
        payload = self.model_dump(mode="json", by_alias=True)
        return json.dumps(payload, indent=2, ensure_ascii=False) + "\n"


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


def is_managed(relative_path: str, managed_paths: Iterable[str] = MANAGED_PATHS) -> bool:
    """Return ``True`` if *relative_path* is on the managed allow-list.

    Directory entries match the directory itself (with or without a trailing
    slash) and everything beneath it.
    """
    path = relative_path.replace(os.sep, "/")
    if path.startswith("./"):
        path = path[2:]
    for entry in managed_paths:
        if entry.endswith("/"):
            directory = entry.rstrip("/")
            if path.rstrip("/") == directory or path.startswith(entry):
                return True
        elif path == entry:
            return True
    return False


# ---------------------------------------------------------------------------
# Tree walking
# ---------------------------------------------------------------------------


def iter_project_files(
    project_root: str | Path, excluded_dirs: Iterable[str] = EXCLUDED_DIRS
) -> Iterator[str]:
    """Yield the relative POSIX path of every regular file below *project_root*.

    Directories named in *excluded_dirs* are pruned at any depth.  Paths are
    yielded in sorted order so manifests are stable across platforms.
    """
    root = Path(project_root)
    excluded = set(excluded_dirs)
    found: list[str] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = [d for d in dirnames if d not in excluded]
        current = Path(dirpath)
        for name in filenames:
            full = current / name
            if full.is_file():
                found.append(full.relative_to(root).as_posix())
    yield from sorted(found)


# ---------------------------------------------------------------------------
# Build / persist
# ---------------------------------------------------------------------------


def build_manifest(
    project_root: str | Path,
    meta: ManifestMeta,
    *,
    excluded_dirs: Iterable[str] = EXCLUDED_DIRS,
    managed_paths: Iterable[str] = MANAGED_PATHS,
) -> Manifest:
    """Hash every file of a written project tree into a ``Manifest``.

    Raises:
        FileSystemError: If *project_root* is missing or a file can't be read.
    """
    root = Path(project_root)
    if not root.is_dir():
        raise FileSystemError(root, "Project directory not found")

    managed = tuple(managed_paths)
    files: dict[str, ManifestEntry] = {}
    for rel in iter_project_files(root, excluded_dirs):
        files[rel] = ManifestEntry(hash=hash_file(root / rel), managed=is_managed(rel, managed))

    logger.debug("Built manifest for %s with %d file(s)", root, len(files))
    return Manifest(
        bakery_version=meta.bakery_version,
        archetype=meta.archetype,
        addons=list(meta.addons),
        generated_at=utc_timestamp(),
        files=files,
    )


def get_manifest_path(
    project_root: str | Path,
    state_dir: str = STATE_DIR,
    manifest_file: str = MANIFEST_FILE,
) -> Path:
    return Path(project_root) / state_dir / manifest_file


def save_manifest(
    project_root: str | Path,
    manifest: Manifest,
    state_dir: str = STATE_DIR,
    manifest_file: str = MANIFEST_FILE,
) -> Path:
    """Write *manifest* under the project's state directory and return its path."""
    target = get_manifest_path(project_root, state_dir, manifest_file)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(manifest.to_json(), encoding="utf-8")
    except OSError as exc:
        raise FileSystemError(target, f"Failed to write manifest ({exc.strerror})") from exc
    return target


def load_manifest(
    project_root: str | Path,
    state_dir: str = STATE_DIR,
    manifest_file: str = MANIFEST_FILE,
) -> Manifest:
    """Read a persisted manifest back.

    Raises:
        ManifestNotFoundError: If the project has no manifest.
        ManifestError: If the file is not valid JSON or fails validation.
    """
    path = get_manifest_path(project_root, state_dir, manifest_file)
    if not path.is_file():
        raise ManifestNotFoundError(path)
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise FileSystemError(path, f"Failed to read manifest ({exc.strerror})") from exc
    try:
        return Manifest.model_validate_json(raw)
    except ValidationError as exc:
        raise ManifestError(path, f"{exc.error_count()} validation error(s)") from exc


def utc_timestamp() -> str:
    """Current UTC time as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")
