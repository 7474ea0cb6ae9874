"""Bakery configuration.

Two typed models live here:

* ``Config`` -- tool settings (where templates live, the internal state
  directory, which paths are excluded from or managed by the manifest).
* ``ProjectConfig`` -- the answers describing one project to generate,
  normally produced by the wizard and loadable from a JSON config file for
  non-interactive runs.

Both use Pydantic v2 so they are validated at construction time and
serialise to/from JSON without boiler-plate.
"""

from __future__ import annotations

import json
import os
import re
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from bakery.errors import ConfigError
from bakery.sync.manifest import EXCLUDED_DIRS, MANAGED_PATHS, MANIFEST_FILE, STATE_DIR

_BUILTIN_TEMPLATES_DIR = Path(__file__).parent / "scaffolder" / "templates"

PROJECT_NAME_PATTERN = r"^[a-z][a-z0-9-]*$"

License = Literal["MIT", "Apache-2.0", "ISC", "GPL-3.0", "BSD-3-Clause"]


# ---------------------------------------------------------------------------
# Tool settings
# ---------------------------------------------------------------------------


class Config(BaseModel):
    """Global Bakery settings.

    Instances are typically created once by the CLI entry point and passed
    to ``ProjectGenerator`` and the sync helpers.
    """

    templates_dir: Path = Field(default=_BUILTIN_TEMPLATES_DIR)
    state_dir: str = Field(default=STATE_DIR, description="Tool-internal directory inside each project")
    descriptor_file: str = Field(default="template.json")
    template_suffix: str = Field(default=".j2", description="Marker extension of renderable templates")
    manifest_file: str = Field(default=MANIFEST_FILE)
    setup_file: str = Field(default="setup.json")
    excluded_dirs: list[str] = Field(default_factory=lambda: list(EXCLUDED_DIRS))
    managed_paths: list[str] = Field(default_factory=lambda: list(MANAGED_PATHS))
    run_git_init: bool = Field(default=True, description="Run `git init` after generating")
    base_command_env: dict[str, str] = Field(
        default_factory=lambda: {"CI": "true"},
        description="Extra environment for external generator commands",
    )

    @field_validator("template_suffix")
    @classmethod
    def _suffix_has_dot(cls, value: str) -> str:
        if not value.startswith("."):
            raise ValueError("template_suffix must start with '.'")
        return value

    # ------------------------------------------------------------------
    # Derived paths
    # ------------------------------------------------------------------

    def state_path(self, project_root: str | Path) -> Path:
        return Path(project_root) / self.state_dir

    def manifest_path(self, project_root: str | Path) -> Path:
        return self.state_path(project_root) / self.manifest_file

    def setup_path(self, project_root: str | Path) -> Path:
        return self.state_path(project_root) / self.setup_file

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the configuration to a JSON file and return its path."""
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return target

    @classmethod
    def load(cls, path: Path) -> "Config":
        """Load a previously-saved configuration from JSON."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls) -> "Config":
        """Build a ``Config`` from environment variables.

        Recognised variables (all optional):
            BAKERY_TEMPLATES_DIR, BAKERY_STATE_DIR, BAKERY_NO_GIT.
        """
        kwargs: dict[str, object] = {}
        if os.environ.get("BAKERY_TEMPLATES_DIR"):
            kwargs["templates_dir"] = Path(os.environ["BAKERY_TEMPLATES_DIR"])
        if os.environ.get("BAKERY_STATE_DIR"):
            state_dir = os.environ["BAKERY_STATE_DIR"]
            kwargs["state_dir"] = state_dir
            kwargs["excluded_dirs"] = [d for d in EXCLUDED_DIRS if d != STATE_DIR] + [state_dir]
        if os.environ.get("BAKERY_NO_GIT", "").lower() in ("1", "true", "yes"):
            kwargs["run_git_init"] = False
        return cls(**kwargs)


# ---------------------------------------------------------------------------
# Project answers
# ---------------------------------------------------------------------------


class ProjectConfig(BaseModel):
    """Everything needed to generate one project.

    Accepts the camelCase keys used by config files (``projectName``,
    ``githubUsername``...) as well as the Python field names.
    """

    model_config = ConfigDict(populate_by_name=True)

    project_name: str = Field(
        ..., alias="projectName", min_length=1, max_length=214, pattern=PROJECT_NAME_PATTERN
    )
    description: str = Field(..., min_length=1)
    author: str = Field(default="")
    license: License = Field(default="MIT")
    github_username: str = Field(default="", alias="githubUsername")
    archetype: str = Field(..., min_length=1)
    api_framework: Optional[str] = Field(default=None, alias="apiFramework")
    web_framework: Optional[str] = Field(default=None, alias="webFramework")
    addons: list[str] = Field(default_factory=list)

    @field_validator("addons")
    @classmethod
    def _unique_addons(cls, value: list[str]) -> list[str]:
        duplicates = sorted({a for a in value if value.count(a) > 1})
        if duplicates:
            raise ValueError(f"duplicate addons: {', '.join(duplicates)}")
        return value

    @model_validator(mode="after")
    def _frameworks_for_archetype(self) -> "ProjectConfig":
        if self.archetype in ("api", "full-stack") and self.api_framework is None:
            raise ValueError("apiFramework is required for api and full-stack archetypes")
        if self.archetype == "full-stack" and self.web_framework is None:
            raise ValueError("webFramework is required for full-stack archetype")
        return self


def load_config_file(path: str | Path) -> ProjectConfig:
    """Load and validate a project config file for non-interactive mode.

    Relative paths are resolved against the current working directory.

    Raises:
        ConfigError: with ``type`` ``file_not_found``, ``parse_error`` or
            ``validation_error``.
    """
    config_path = Path(path).resolve()
    if not config_path.exists():
        raise ConfigError("file_not_found", f"Config file not found: {config_path}")

    try:
        raw = config_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(
            "file_not_found", f"Failed to read config file: {config_path}", [str(exc)]
        ) from exc

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigError(
            "parse_error", f"Invalid JSON in config file: {config_path}", [f"  {exc.msg} (line {exc.lineno})"]
        ) from exc

    try:
        return ProjectConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(
            "validation_error", "Config file validation failed", _format_validation_errors(exc)
        ) from exc


def format_config_error(error: ConfigError) -> str:
    """Render a ``ConfigError`` as a message followed by its detail lines."""
    if not error.details:
        return error.message
    return "\n".join([error.message, *error.details])


def _format_validation_errors(exc: ValidationError) -> list[str]:
    lines = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err["loc"]) or "(root)"
        message = re.sub(r"^Value error, ", "", err["msg"])
        lines.append(f"  {loc}: {message}")
    return lines
