"""Content hashing for generated files.

All digests are lowercase hex SHA-256 and compared case-sensitively.
"""

from __future__ import annotations

import hashlib
from pathlib import Path

from bakery.errors import FileSystemError


def hash_content(content: str | bytes) -> str:
    """Return the SHA-256 hex digest of *content* (``str`` is UTF-8 encoded)."""
    data = content.encode("utf-8") if isinstance(content, str) else content
    return hashlib.sha256(data).hexdigest()


def hash_file(path: str | Path) -> str:
    """Hash a file on disk.

    Raises:
        FileSystemError: If the file does not exist or cannot be read.
    """
    file_path = Path(path)
    if not file_path.is_file():
        raise FileSystemError(file_path, "File not found")
    try:
        data = file_path.read_bytes()
    except OSError as exc:
        raise FileSystemError(file_path, f"Failed to read file ({exc.strerror})") from exc
    return hash_content(data)


def hash_files(base_path: str | Path, relative_paths: list[str]) -> dict[str, str]:
    """Hash several files below *base_path*, keyed by their relative path.

    The first failing file aborts the whole call.
    """
    base = Path(base_path)
    return {rel: hash_file(base / rel) for rel in relative_paths}


def hashes_match(left: str, right: str) -> bool:
    return left == right


def format_hash(digest: str) -> str:
    """Short form for display: the first 8 characters."""
    return digest[:8]
