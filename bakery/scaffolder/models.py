"""Pydantic v2 models for template descriptors, bundles and generation results.

The descriptor models mirror the on-disk ``template.json`` format, which
uses camelCase keys (``displayName``, ``baseCommand``...).  Python code
uses the snake_case field names; both spellings validate.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from bakery.utils import camel_case, kebab_case, pascal_case, snake_case

FileContent = Union[str, bytes]

# Ordered relative-path -> content mapping produced by rendering/composing.
GeneratedFileSet = dict[str, FileContent]


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class BundleKind(str, Enum):
    """Catalog slot a bundle was discovered in."""

    CORE = "core"
    ARCHETYPE = "archetype"
    ADDON = "addon"


class BundleOrigin(str, Enum):
    BUILTIN = "builtin"
    EXTERNAL = "external"


# ---------------------------------------------------------------------------
# Descriptor (template.json)
# ---------------------------------------------------------------------------


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


class PromptOption(_CamelModel):
    value: str
    label: str


class PromptDef(_CamelModel):
    """An extra wizard question declared by a template (not interpreted here)."""

    name: str
    type: Literal["text", "select", "multiselect", "confirm"]
    message: str
    default: Optional[Any] = None
    options: Optional[list[PromptOption]] = None


class BaseCommand(_CamelModel):
    """External generator run before the template files are applied.

    Both strings support ``{{projectName}}`` and ``{{parentDir}}``.
    """

    command: str
    workdir: str = "{{parentDir}}"


class PostProcess(_CamelModel):
    """``package.json`` edits applied after a base command ran."""

    remove: list[str] = Field(default_factory=list)
    remove_deps: list[str] = Field(default_factory=list, alias="removeDeps")
    add_deps: dict[str, str] = Field(default_factory=dict, alias="addDeps")
    add_dev_deps: dict[str, str] = Field(default_factory=dict, alias="addDevDeps")
    update_scripts: dict[str, str] = Field(default_factory=dict, alias="updateScripts")


class Hooks(_CamelModel):
    before_generate: Optional[str] = Field(default=None, alias="beforeGenerate")
    after_generate: Optional[str] = Field(default=None, alias="afterGenerate")


class SetupTask(_CamelModel):
    """A post-generation task written to ``.bakery/setup.json``."""

    name: str
    description: str
    command: str
    condition: Literal["always", "if-no-git", "if-convex", "if-docker"] = "always"
    continue_on_error: bool = Field(default=False, alias="continueOnError")


class TemplateDescriptor(_CamelModel):
    """Validated contents of a ``template.json``."""

    name: str = Field(..., min_length=1, description="Unique identifier within a catalog")
    display_name: str = Field(..., alias="displayName")
    description: str
    version: str = "1.0.0"
    dependencies: list[str] = Field(default_factory=list)
    prompts: list[PromptDef] = Field(default_factory=list)
    include_globs: Optional[list[str]] = Field(
        default=None, alias="files", description="If omitted, all files are included"
    )
    exclude_globs: list[str] = Field(default_factory=list, alias="exclude")
    base_command: Optional[BaseCommand] = Field(default=None, alias="baseCommand")
    post_process: Optional[PostProcess] = Field(default=None, alias="postProcess")
    hooks: Hooks = Field(default_factory=Hooks)
    tasks: list[SetupTask] = Field(default_factory=list)
    injections: list[Any] = Field(default_factory=list, description="Reserved; unused by the pipeline")

    @classmethod
    def synthesized_core(cls) -> "TemplateDescriptor":
        """Minimal descriptor used when ``core/`` ships no ``template.json``."""
        return cls(name="core", display_name="Core", description="Shared tooling and configuration")


# ---------------------------------------------------------------------------
# Bundles and catalog snapshot
# ---------------------------------------------------------------------------


class TemplateBundle(BaseModel):
    """A descriptor bound to its absolute source directory."""

    model_config = ConfigDict(frozen=True)

    descriptor: TemplateDescriptor
    path: Path
    kind: BundleKind = BundleKind.ARCHETYPE
    origin: BundleOrigin = BundleOrigin.BUILTIN

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def overlays_path(self) -> Path:
        return self.path / "overlays"


class CatalogSnapshot(BaseModel):
    """Immutable view of every bundle available to one invocation."""

    model_config = ConfigDict(frozen=True)

    core: TemplateBundle
    archetypes: dict[str, TemplateBundle] = Field(default_factory=dict)
    addons: dict[str, TemplateBundle] = Field(default_factory=dict)
    diagnostics: tuple[str, ...] = ()

    def archetype(self, name: str) -> Optional[TemplateBundle]:
        return self.archetypes.get(name)

    def addon(self, name: str) -> Optional[TemplateBundle]:
        return self.addons.get(name)

    def lookup(self, reference: str) -> Optional[TemplateBundle]:
        """Find a dependency by name or by layout path (``addons/docker``)."""
        if reference == "core":
            return self.core
        if reference.startswith("addons/"):
            return self.addons.get(reference.split("/", 1)[1])
        return self.archetypes.get(reference) or self.addons.get(reference)


# ---------------------------------------------------------------------------
# Render context
# ---------------------------------------------------------------------------


class RenderContext(BaseModel):
    """Named project values available to every template.  Read-only."""

    model_config = ConfigDict(frozen=True)

    project_name: str
    description: str = ""
    author: str = ""
    license: str = "MIT"
    year: int = Field(default_factory=lambda: datetime.now(timezone.utc).year)
    github_username: str = ""
    archetype: str = ""
    api_framework: Optional[str] = None
    web_framework: Optional[str] = None
    addons: tuple[str, ...] = ()

    @property
    def project_name_pascal(self) -> str:
        return pascal_case(self.project_name)

    @property
    def project_name_camel(self) -> str:
        return camel_case(self.project_name)

    @property
    def project_name_snake(self) -> str:
        return snake_case(self.project_name)

    @property
    def github_url(self) -> str:
        if not self.github_username:
            return ""
        return f"https://github.com/{self.github_username}/{self.project_name}"

    def has_addon(self, name: str) -> bool:
        return name in self.addons

    def template_vars(self) -> dict[str, Any]:
        """Flatten into the variable mapping handed to the template engine."""
        helpers: dict[str, Callable[..., Any]] = {
            "has_addon": self.has_addon,
            "kebab_case": kebab_case,
            "pascal_case": pascal_case,
            "camel_case": camel_case,
            "snake_case": snake_case,
        }
        return {
            **self.model_dump(),
            "addons": list(self.addons),
            "project_name_pascal": self.project_name_pascal,
            "project_name_camel": self.project_name_camel,
            "project_name_snake": self.project_name_snake,
            "github_url": self.github_url,
            **helpers,
        }


# ---------------------------------------------------------------------------
# Generation results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RenderedCommand:
    """A base command with its placeholders substituted."""

    command: str
    workdir: Path


@dataclass
class GenerationPlan:
    """Everything a generation run will produce, computed without I/O writes.

    Real generation and dry-run both start from this value.
    """

    files: GeneratedFileSet = field(default_factory=dict)
    base_command: Optional[RenderedCommand] = None
    post_process: Optional[PostProcess] = None
    tasks: list[SetupTask] = field(default_factory=list)


class DryRunFile(BaseModel):
    path: str
    size: int


class DryRunResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    files: list[DryRunFile] = Field(default_factory=list)
    total_size: int = Field(default=0, alias="totalSize")
    commands: list[str] = Field(default_factory=list)
    dependencies: list[str] = Field(default_factory=list)
    dev_dependencies: list[str] = Field(default_factory=list, alias="devDependencies")
