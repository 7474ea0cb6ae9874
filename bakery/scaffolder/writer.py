"""Persist a composed file set to disk.

This is the only step of the template pipeline that writes.  Text content
is encoded as UTF-8; binary content is written verbatim.
"""

from __future__ import annotations

import logging
from pathlib import Path

from bakery.errors import FileSystemError
from bakery.scaffolder.models import GeneratedFileSet

logger = logging.getLogger(__name__)


def write_file_set(file_set: GeneratedFileSet, output_dir: str | Path) -> list[Path]:
    """Write every entry of *file_set* under *output_dir*.

    Parent directories are created as needed and existing files are
    overwritten.

    Returns:
        The absolute paths written, in file-set order.

    Raises:
        FileSystemError: On the first file that cannot be written.  Files
            written before the failure are left in place.
    """
    root = Path(output_dir).resolve()
    written: list[Path] = []
    for rel, content in file_set.items():
        target = root / rel
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                target.write_bytes(content)
            else:
                target.write_text(content, encoding="utf-8", newline="")
        except OSError as exc:
            raise FileSystemError(target, f"Failed to write file ({exc.strerror})") from exc
        written.append(target)

    logger.info("Wrote %d file(s) to %s", len(written), root)
    return written
