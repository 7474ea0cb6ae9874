"""Hash-based drift detection between a manifest and the current tree.

Every path that is either recorded in the manifest or present on disk gets
exactly one ``ChangeRecord``.  What to *do* with a modified or removed file
is left to the caller.
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Iterable, Optional

from pydantic import BaseModel, Field

from bakery.errors import HashMismatchInternalError, ManifestNotFoundError
from bakery.sync.hash import hash_file, hashes_match
from bakery.sync.manifest import EXCLUDED_DIRS, MANIFEST_FILE, STATE_DIR, Manifest, iter_project_files, load_manifest

logger = logging.getLogger(__name__)


class ChangeType(str, Enum):
    ADDED = "added"
    REMOVED = "removed"
    MODIFIED = "modified"
    UNCHANGED = "unchanged"


class ChangeRecord(BaseModel):
    """Classification of one path."""

    path: str
    type: ChangeType
    old_hash: Optional[str] = Field(default=None, description="Hash recorded in the manifest")
    new_hash: Optional[str] = Field(default=None, description="Hash of the file on disk now")
    managed: Optional[bool] = None


def detect_changes(
    project_root: str | Path,
    manifest: Optional[Manifest],
    *,
    excluded_dirs: Iterable[str] = EXCLUDED_DIRS,
) -> list[ChangeRecord]:
    """Classify every manifest path and every disk path.

    Records for manifest paths come first (in manifest order), followed by
    added paths in sorted order.

    Raises:
        ManifestNotFoundError: If *manifest* is ``None``; a project without a
            manifest is not reported as "everything added".
        FileSystemError: If a file on disk cannot be hashed.
        HashMismatchInternalError: If the classification is not a partition.
    """
    root = Path(project_root)
    if manifest is None:
        raise ManifestNotFoundError(root / STATE_DIR)

    on_disk = list(iter_project_files(root, excluded_dirs))
    disk_set = set(on_disk)
    records: list[ChangeRecord] = []

    for rel, entry in manifest.files.items():
        if rel not in disk_set:
            records.append(
                ChangeRecord(path=rel, type=ChangeType.REMOVED, old_hash=entry.hash, managed=entry.managed)
            )
            continue
        current = hash_file(root / rel)
        change_type = ChangeType.UNCHANGED if hashes_match(entry.hash, current) else ChangeType.MODIFIED
        records.append(
            ChangeRecord(
                path=rel,
                type=change_type,
                old_hash=entry.hash,
                new_hash=current,
                managed=entry.managed,
            )
        )

    for rel in on_disk:
        if rel not in manifest.files:
            records.append(
                ChangeRecord(path=rel, type=ChangeType.ADDED, new_hash=hash_file(root / rel), managed=False)
            )

    _verify_partition(records, set(manifest.files) | disk_set)
    logger.debug("Detected %d change record(s) under %s", len(records), root)
    return records


def detect_changes_from_disk(
    project_root: str | Path,
    state_dir: str = STATE_DIR,
    manifest_file: str = MANIFEST_FILE,
) -> list[ChangeRecord]:
    """Load the persisted manifest of *project_root* and run ``detect_changes``."""
    manifest = load_manifest(project_root, state_dir, manifest_file)
    excluded = tuple(d for d in EXCLUDED_DIRS if d != STATE_DIR) + (state_dir,)
    return detect_changes(project_root, manifest, excluded_dirs=excluded)


def summarize_changes(records: Iterable[ChangeRecord]) -> dict[ChangeType, int]:
    """Count records per change type (every type present, possibly zero)."""
    counts = {change_type: 0 for change_type in ChangeType}
    for record in records:
        counts[record.type] += 1
    return counts


def has_drift(records: Iterable[ChangeRecord]) -> bool:
    return any(record.type is not ChangeType.UNCHANGED for record in records)


def _verify_partition(records: list[ChangeRecord], expected: set[str]) -> None:
    paths = [record.path for record in records]
    if len(paths) != len(set(paths)):
        raise HashMismatchInternalError("Change detection produced duplicate records")
    if set(paths) != expected:
        missing = sorted(expected - set(paths))
        raise HashMismatchInternalError(f"Change detection missed path(s): {', '.join(missing)}")
    for record in records:
        if record.type is ChangeType.UNCHANGED and record.old_hash != record.new_hash:
            raise HashMismatchInternalError(f"{record.path} classified unchanged with differing hashes")
