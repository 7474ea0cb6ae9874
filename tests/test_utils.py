"""Unit tests for utility functions (bakery.utils).

Tests cover:
- run_command (success, failure, timeout, list vs string, env vars)
- Name case helpers
- load_json / save_json
- format_size
- Rich output helpers (print_summary_table, print_dry_run, print_changes, ...)
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest

from bakery.scaffolder.models import DryRunFile, DryRunResult
from bakery.sync.changes import ChangeRecord, ChangeType
from bakery.utils import (
    camel_case,
    console,
    format_size,
    kebab_case,
    load_json,
    pascal_case,
    print_changes,
    print_dry_run,
    print_error,
    print_success,
    print_summary_table,
    print_warning,
    run_command,
    save_json,
    slugify,
    snake_case,
)

pytestmark = pytest.mark.unit


# ---------------------------------------------------------------------------
# run_command
# ---------------------------------------------------------------------------


class TestRunCommand:
    def test_successful_command_list(self):
        returncode, stdout, stderr = run_command([sys.executable, "-c", "print('hello')"])
        assert returncode == 0
        assert stdout == "hello"
        assert stderr == ""

    def test_failing_command(self):
        returncode, _, stderr = run_command(
            [sys.executable, "-c", "import sys; sys.stderr.write('bad'); sys.exit(3)"]
        )
        assert returncode == 3
        assert stderr == "bad"

    def test_string_command_uses_shell(self):
        returncode, stdout, _ = run_command("echo one && echo two")
        assert returncode == 0
        assert stdout.splitlines() == ["one", "two"]

    def test_cwd(self, tmp_path: Path):
        _, stdout, _ = run_command([sys.executable, "-c", "import os; print(os.getcwd())"], cwd=tmp_path)
        assert Path(stdout).resolve() == tmp_path.resolve()

    def test_env_is_merged(self):
        _, stdout, _ = run_command(
            [sys.executable, "-c", "import os; print(os.environ['CI'], 'PATH' in os.environ)"],
            env={"CI": "true"},
        )
        assert stdout == "true True"

    def test_timeout(self):
        returncode, _, stderr = run_command([sys.executable, "-c", "import time; time.sleep(5)"], timeout=1)
        assert returncode == -1
        assert "timed out" in stderr


# ---------------------------------------------------------------------------
# Name helpers
# ---------------------------------------------------------------------------


class TestNameHelpers:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [("My Cool App!", "my-cool-app"), ("  spaces  ", "spaces"), ("a--b", "a-b")],
    )
    def test_slugify(self, value: str, expected: str):
        assert slugify(value) == expected

    def test_case_conversions(self):
        assert pascal_case("my-cool_app") == "MyCoolApp"
        assert camel_case("my-cool-app") == "myCoolApp"
        assert snake_case("MyCoolApp") == "my_cool_app"
        assert snake_case("my-cool-app") == "my_cool_app"
        assert kebab_case("myCoolApp") == "my-cool-app"
        assert kebab_case("my_cool app") == "my-cool-app"

    def test_empty(self):
        assert camel_case("") == ""
        assert pascal_case("") == ""


# ---------------------------------------------------------------------------
# JSON I/O
# ---------------------------------------------------------------------------


class TestJsonIO:
    def test_save_and_load(self, tmp_path: Path):
        path = save_json({"b": 1, "a": ["x"]}, tmp_path / "nested" / "data.json")
        assert path.read_text(encoding="utf-8") == '{\n  "b": 1,\n  "a": [\n    "x"\n  ]\n}\n'
        assert load_json(path) == {"b": 1, "a": ["x"]}

    def test_non_ascii_kept(self, tmp_path: Path):
        path = save_json({"name": "café"}, tmp_path / "d.json")
        assert "café" in path.read_text(encoding="utf-8")

    def test_load_non_object(self, tmp_path: Path):
        path = tmp_path / "list.json"
        path.write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(ValueError, match="Expected a JSON object"):
            load_json(path)

    def test_load_missing(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            load_json(tmp_path / "missing.json")

    def test_load_invalid(self, tmp_path: Path):
        path = tmp_path / "bad.json"
        path.write_text("{", encoding="utf-8")
        with pytest.raises(json.JSONDecodeError):
            load_json(path)


# ---------------------------------------------------------------------------
# Formatting and Rich output
# ---------------------------------------------------------------------------


class TestOutput:
    def test_format_size(self):
        assert format_size(0) == "0.0KB"
        assert format_size(2048) == "2.0KB"
        assert format_size(1536) == "1.5KB"

    def test_message_helpers(self):
        with console.capture() as capture:
            print_success("done")
            print_error("failed")
            print_warning("careful")
        output = capture.get()
        assert "done" in output
        assert "failed" in output
        assert "careful" in output

    def test_summary_table(self):
        with console.capture() as capture:
            print_summary_table({"Project": "my-cli", "Files": "7"}, title="Created")
        output = capture.get()
        assert "Created" in output
        assert "my-cli" in output

    def test_print_dry_run(self):
        result = DryRunResult(
            files=[DryRunFile(path="b.txt", size=2048), DryRunFile(path="a.txt", size=10)],
            total_size=2058,
            commands=["bun create vite app"],
            dependencies=["zod@^3"],
        )
        with console.capture() as capture:
            print_dry_run(result)
        output = capture.get()

        assert output.index("a.txt") < output.index("b.txt")
        assert "2.0KB" in output
        assert "Total: 2 files" in output
        assert "bun create vite app" in output
        assert "zod@^3" in output
        assert "DevDependencies" not in output

    def test_print_changes_hides_unchanged(self):
        records = [
            ChangeRecord(path="same.txt", type=ChangeType.UNCHANGED),
            ChangeRecord(path="edited.txt", type=ChangeType.MODIFIED, managed=True),
        ]
        with console.capture() as capture:
            print_changes(records)
        output = capture.get()

        assert "edited.txt" in output
        assert "same.txt" not in output

    def test_print_changes_all(self):
        records = [ChangeRecord(path="same.txt", type=ChangeType.UNCHANGED)]
        with console.capture() as capture:
            print_changes(records, show_unchanged=True)
        assert "same.txt" in capture.get()

    def test_print_changes_shows_markup_literally(self):
        records = [ChangeRecord(path="docs/[red]x.md", type=ChangeType.ADDED)]
        with console.capture() as capture:
            print_changes(records)
        assert "docs/[red]x.md" in capture.get()

    def test_print_dry_run_shows_markup_literally(self):
        result = DryRunResult(
            files=[DryRunFile(path="[bold]notes.md", size=1)],
            total_size=1,
            commands=["echo [ok]"],
        )
        with console.capture() as capture:
            print_dry_run(result)
        output = capture.get()

        assert "[bold]notes.md" in output
        assert "echo [ok]" in output
