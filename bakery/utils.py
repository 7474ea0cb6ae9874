"""Shared utility functions for Bakery.

Provides command execution, JSON I/O, name case conversion, and Rich-based
reporting for the CLI.  Library modules use the pure helpers only; anything
that prints goes through the module-level ``console``.
"""

from __future__ import annotations

import json
import os
import re
import subprocess
from pathlib import Path
from typing import TYPE_CHECKING, Any, Iterable

from rich.console import Console
from rich.markup import escape
from rich.table import Table

if TYPE_CHECKING:
    from bakery.scaffolder.models import DryRunResult
    from bakery.sync.changes import ChangeRecord

console = Console()

# ---------------------------------------------------------------------------
# Command execution
# ---------------------------------------------------------------------------


def run_command(
    cmd: str | list[str],
    cwd: str | Path | None = None,
    timeout: int | None = None,
    capture: bool = True,
    env: dict[str, str] | None = None,
) -> tuple[int, str, str]:
    """Run a command and wait for it.

    Args:
        cmd: Shell command string or list of arguments.
        cwd: Working directory for the child process.
        timeout: Maximum wall-clock seconds before the process is killed.
        capture: Whether to capture stdout/stderr (if ``False`` they inherit
            the parent's streams).
        env: Optional extra environment variables merged on top of ``os.environ``.

    Returns:
        A ``(returncode, stdout, stderr)`` tuple.  If *capture* is ``False``
        the stdout/stderr strings will be empty.
    """
    merged_env: dict[str, str] | None = None
    if env:
        merged_env = {**os.environ, **env}

    try:
        completed = subprocess.run(
            cmd,
            shell=isinstance(cmd, str),
            cwd=str(cwd) if cwd else None,
            env=merged_env,
            capture_output=capture,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        return (
            -1,
            "",
            f"Command timed out after {timeout}s: {cmd if isinstance(cmd, str) else ' '.join(cmd)}",
        )

    return (completed.returncode, (completed.stdout or "").strip(), (completed.stderr or "").strip())


# ---------------------------------------------------------------------------
# Name case helpers
# ---------------------------------------------------------------------------


def slugify(value: str) -> str:
    """Convert a string to a URL/filename-safe slug."""
    slug = re.sub(r"[^a-z0-9]+", "-", value.lower().strip())
    return slug.strip("-")


def kebab_case(value: str) -> str:
    """Convert ``someThing`` or ``some_thing`` to ``some-thing``."""
    s1 = re.sub(r"([a-z])([A-Z])", r"\1-\2", value)
    return re.sub(r"[_\s]+", "-", s1).lower()


def pascal_case(value: str) -> str:
    """Convert ``some-thing`` or ``some_thing`` to ``SomeThing``."""
    parts = re.split(r"[-_\s]+", value)
    return "".join(word.capitalize() for word in parts if word)


def camel_case(value: str) -> str:
    """Convert ``some-thing`` or ``some_thing`` to ``someThing``."""
    pascal = pascal_case(value)
    if pascal:
        return pascal[0].lower() + pascal[1:]
    return ""


def snake_case(value: str) -> str:
    """Convert ``SomeThing`` or ``some-thing`` to ``some_thing``."""
    s1 = re.sub(r"(.)([A-Z][a-z]+)", r"\1_\2", value)
    s2 = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", s1)
    return re.sub(r"[-\s]+", "_", s2).lower()


# ---------------------------------------------------------------------------
# JSON I/O
# ---------------------------------------------------------------------------


def load_json(path: str | Path) -> dict[str, Any]:
    """Load and parse a JSON file that holds an object.

    Raises:
        FileNotFoundError: If the file does not exist.
        json.JSONDecodeError: If the file is not valid JSON.
        ValueError: If the document is not a JSON object.
    """
    raw = Path(path).read_text(encoding="utf-8")
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object in {path}, got {type(data).__name__}")
    return data


def save_json(data: dict[str, Any] | list[Any], path: str | Path) -> Path:
    """Save data as 2-space indented JSON with a trailing newline."""
    file_path = Path(path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_text(json.dumps(data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    return file_path


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def format_size(size: int) -> str:
    """Format a byte count in kilobytes, e.g. ``format_size(2048) -> "2.0KB"``."""
    return f"{size / 1024:.1f}KB"


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------

_CHANGE_STYLES: dict[str, tuple[str, str]] = {
    "added": ("+", "green"),
    "removed": ("-", "red"),
    "modified": ("~", "yellow"),
    "unchanged": ("=", "dim"),
}


def print_summary_table(data: dict[str, str], title: str = "Summary") -> None:
    """Print a two-column key/value summary table."""
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Item", style="dim", no_wrap=True)
    table.add_column("Value")

    for key, value in data.items():
        table.add_row(escape(key), escape(str(value)))

    console.print(table)
    console.print()


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{escape(message)}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message."""
    console.print(f"[bold red]{escape(message)}[/bold red]")


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{escape(message)}[/bold yellow]")


def print_dry_run(result: "DryRunResult") -> None:
    """Print the files, commands and dependencies a generation would produce."""
    console.print("\n[bold cyan]Dry run - files that would be generated:[/bold cyan]\n")
    for file in sorted(result.files, key=lambda f: f.path):
        console.print(f"  [green]+[/green] {escape(file.path)} [dim]({format_size(file.size)})[/dim]")
    console.print()
    console.print(f"[dim]Total: {len(result.files)} files, {format_size(result.total_size)}[/dim]")

    sections = (
        ("Commands that would be executed", "$", result.commands),
        ("Dependencies that would be added", "+", result.dependencies),
        ("DevDependencies that would be added", "+", result.dev_dependencies),
    )
    for title, marker, items in sections:
        if not items:
            continue
        console.print(f"\n[bold cyan]{title}:[/bold cyan]\n")
        for item in items:
            console.print(f"  [yellow]{marker}[/yellow] {escape(item)}")

    console.print("\n[dim]Run without --dry-run to actually generate the project.[/dim]\n")


def print_changes(records: Iterable["ChangeRecord"], *, show_unchanged: bool = False) -> None:
    """Print a change report as a table, one row per path."""
    table = Table(title="Changes since generation", show_header=True, header_style="bold cyan")
    table.add_column("", no_wrap=True)
    table.add_column("Path")
    table.add_column("Status")
    table.add_column("Managed", justify="center")

    for record in records:
        status = record.type.value
        if status == "unchanged" and not show_unchanged:
            continue
        marker, style = _CHANGE_STYLES[status]
        table.add_row(
            f"[{style}]{marker}[/{style}]",
            escape(record.path),
            f"[{style}]{status}[/{style}]",
            "yes" if record.managed else "",
        )

    console.print(table)
    console.print()
