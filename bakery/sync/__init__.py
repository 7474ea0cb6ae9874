"""Manifest building and drift detection for generated projects."""

from bakery.sync.changes import ChangeRecord, ChangeType, detect_changes, detect_changes_from_disk
from bakery.sync.hash import format_hash, hash_content, hash_file, hash_files, hashes_match
from bakery.sync.manifest import (
    Manifest,
    ManifestEntry,
    ManifestMeta,
    build_manifest,
    get_manifest_path,
    is_managed,
    load_manifest,
    save_manifest,
)

__all__ = [
    "ChangeRecord",
    "ChangeType",
    "Manifest",
    "ManifestEntry",
    "ManifestMeta",
    "build_manifest",
    "detect_changes",
    "detect_changes_from_disk",
    "format_hash",
    "get_manifest_path",
    "hash_content",
    "hash_file",
    "hash_files",
    "hashes_match",
    "is_managed",
    "load_manifest",
    "save_manifest",
]
