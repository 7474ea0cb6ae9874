"""Command-line entry point (``bakery`` console script, ``python -m bakery``).

Subcommands::

    bakery new --config project.json [-o DIR] [--dry-run] [--templates DIR]
    bakery list [--templates DIR]
    bakery status [DIR] [--all] [--check]
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from bakery import __version__
from bakery.config import Config, format_config_error, load_config_file
from bakery.errors import BakeryError, ConfigError
from bakery.generator import ProjectGenerator
from bakery.scaffolder.catalog import TemplateCatalog
from bakery.sync.changes import ChangeType, detect_changes_from_disk, has_drift, summarize_changes
from bakery.utils import (
    console,
    print_changes,
    print_dry_run,
    print_error,
    print_success,
    print_summary_table,
    print_warning,
)


def configure_logging(verbose: bool = False) -> None:
    """Route library logging through Rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        force=True,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bakery",
        description="Bakery -- compose project scaffolds from template bundles",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  bakery new --config project.json -o ./my-cli\n"
            "  bakery new --config project.json --dry-run\n"
            "  bakery status ./my-cli --check\n"
        ),
    )
    parser.add_argument("--version", action="version", version=f"bakery {__version__}")
    parser.add_argument("--verbose", "-v", action="store_true", help="Show debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    new = sub.add_parser("new", help="Generate a new project from a config file")
    new.add_argument("--config", "-c", required=True, help="Path to a project config JSON file")
    new.add_argument(
        "--output", "-o",
        default=None,
        help="Output directory (default: ./<projectName>)",
    )
    new.add_argument("--dry-run", action="store_true", help="Show what would be generated")
    new.add_argument("--templates", default=None, help="Templates directory to use instead of the built-in one")

    list_cmd = sub.add_parser("list", help="List available archetypes and addons")
    list_cmd.add_argument("--templates", default=None, help="Templates directory to inspect")

    status = sub.add_parser("status", help="Show changes since the project was generated")
    status.add_argument("directory", nargs="?", default=".", help="Project root (default: .)")
    status.add_argument("--all", action="store_true", help="Include unchanged files")
    status.add_argument("--check", action="store_true", help="Exit with status 1 if anything drifted")

    return parser


def _load_config(templates: Optional[str]) -> Config:
    config = Config.from_env()
    if templates:
        config = config.model_copy(update={"templates_dir": Path(templates)})
    return config


# ---------------------------------------------------------------------------
# Subcommands
# ---------------------------------------------------------------------------


def cmd_new(args: argparse.Namespace) -> int:
    try:
        project = load_config_file(args.config)
    except ConfigError as exc:
        print_error(format_config_error(exc))
        return 1

    config = _load_config(args.templates)
    output_dir = Path(args.output) if args.output else Path.cwd() / project.project_name
    generator = ProjectGenerator(project, config)

    if args.dry_run:
        print_dry_run(generator.dry_run(output_dir))
        return 0

    manifest = generator.generate(output_dir)
    managed = sum(1 for entry in manifest.files.values() if entry.managed)
    print_summary_table(
        {
            "Project": project.project_name,
            "Archetype": project.archetype,
            "Addons": ", ".join(project.addons) or "-",
            "Location": str(output_dir.resolve()),
            "Files": str(len(manifest.files)),
            "Managed": str(managed),
        },
        title="Project created",
    )
    print_success(f"Created {project.project_name}")
    return 0


def cmd_list(args: argparse.Namespace) -> int:
    config = _load_config(args.templates)
    snapshot = TemplateCatalog(config.templates_dir, config.descriptor_file).snapshot()

    for title, bundles in (("Archetypes", snapshot.archetypes), ("Addons", snapshot.addons)):
        table = Table(title=title, show_header=True, header_style="bold cyan")
        table.add_column("Name", no_wrap=True)
        table.add_column("Description")
        table.add_column("Version", style="dim")
        for name, bundle in sorted(bundles.items()):
            table.add_row(name, escape(bundle.descriptor.description), bundle.descriptor.version)
        console.print(table)

    for message in snapshot.diagnostics:
        print_warning(message)
    return 0


def cmd_status(args: argparse.Namespace) -> int:
    config = Config.from_env()
    records = detect_changes_from_disk(args.directory, config.state_dir, config.manifest_file)
    print_changes(records, show_unchanged=args.all)

    counts = summarize_changes(records)
    console.print(
        "[dim]"
        + ", ".join(f"{counts[change_type]} {change_type.value}" for change_type in ChangeType)
        + "[/dim]"
    )
    if not has_drift(records):
        print_success("No changes since generation")
        return 0
    return 1 if args.check else 0


_COMMANDS = {"new": cmd_new, "list": cmd_list, "status": cmd_status}


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Parse *argv* and run the chosen subcommand; returns the exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    try:
        return _COMMANDS[args.command](args)
    except BakeryError as exc:
        print_error(f"Error: {exc}")
        return 1


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
