"""Bakery -- compose project scaffolds from template bundles and track drift.

Quick usage::

    from bakery.config import Config, ProjectConfig
    from bakery.generator import ProjectGenerator

    project = ProjectConfig(
        project_name="my-cli",
        description="A small command-line tool",
        archetype="cli",
        addons=["docker"],
    )
    manifest = ProjectGenerator(project, Config()).generate("./my-cli")
"""

__version__ = "0.4.0"
