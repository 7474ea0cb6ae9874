"""Exception hierarchy shared by the catalog, pipeline and sync layers.

Catalog-level errors (``DescriptorLoadError``) are recorded and logged but
never abort discovery.  Everything raised from rendering, composing, writing
or hashing propagates and aborts the whole run.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class BakeryError(Exception):
    """Base class for every error raised by this package."""


class DescriptorLoadError(BakeryError):
    """A ``template.json`` is missing required fields or is not valid JSON."""

    def __init__(self, path: str | Path, message: str, details: Optional[list[str]] = None) -> None:
        self.path = Path(path)
        self.details = details or []
        super().__init__(f"{self.path}: {message}")


class UnknownArchetypeError(BakeryError):
    """The requested archetype is not present in the catalog snapshot."""

    def __init__(self, archetype: str, available: Optional[list[str]] = None) -> None:
        self.archetype = archetype
        self.available = sorted(available or [])
        hint = f" (available: {', '.join(self.available)})" if self.available else ""
        super().__init__(f"Unknown archetype: {archetype}{hint}")


class RenderError(BakeryError):
    """A template failed to render; the generation run cannot continue."""

    def __init__(self, bundle: str, path: str, message: str) -> None:
        self.bundle = bundle
        self.path = path
        super().__init__(f"Failed to render {path} (from {bundle}): {message}")


class FileSystemError(BakeryError):
    """Reading or writing a file failed.  ``path`` names the offending file."""

    def __init__(self, path: str | Path, message: str) -> None:
        self.path = Path(path)
        super().__init__(f"{message}: {self.path}")


class CommandError(BakeryError):
    """An external generator command exited with a nonzero status."""

    def __init__(self, command: str, returncode: int, stderr: str = "") -> None:
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f"Base command failed with exit code {returncode}: {command}")


class ManifestNotFoundError(BakeryError):
    """No persisted manifest exists for the project."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        super().__init__(f"Manifest not found: {self.path}")


class ManifestError(BakeryError):
    """A persisted manifest exists but cannot be parsed or validated."""

    def __init__(self, path: str | Path, message: str) -> None:
        self.path = Path(path)
        super().__init__(f"Invalid manifest {self.path}: {message}")


class HashMismatchInternalError(BakeryError):
    """Change classification broke its own invariants.  Always a bug."""


class ConfigError(BakeryError):
    """A project config file could not be loaded.

    ``type`` is one of ``file_not_found``, ``parse_error`` or
    ``validation_error``; ``details`` holds one line per validation issue.
    """

    def __init__(self, type: str, message: str, details: Optional[list[str]] = None) -> None:
        self.type = type
        self.message = message
        self.details = details or []
        super().__init__(message)
