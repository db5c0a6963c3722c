"""Shared CLI utilities for sigbind commands.

Provides the common config loader, standardised error / JSON output helpers
and the all-or-nothing output writer used by every command.

Usage in a command::

    import typer
    from sigbind.cli import error_exit, get_config, json_print, write_output

    app = typer.Typer()

    @app.command()
    def main(json_output: bool = JsonOption) -> None:
        cfg = get_config(json_mode=json_output)
        ...
"""

from __future__ import annotations

import contextlib
import json
import os
from pathlib import Path
from typing import Any, NoReturn

import typer
from rich.console import Console
from rich.markup import escape

from sigbind.config import ProjectConfig, load_config

JsonOption: bool = typer.Option(False, "--json", help="Print machine-readable JSON.")

OutputOption: Path | None = typer.Option(
    None, "--output", "-o", help="Output path (default: stdout)."
)


def get_config(*, json_mode: bool = False) -> ProjectConfig:
    """Load sigbind.toml (or defaults), exiting on invalid settings."""
    try:
        return load_config()
    except (ValueError, OSError) as exc:
        error_exit(str(exc), json_mode=json_mode)


# ---------------------------------------------------------------------------
# Standardised output helpers
# ---------------------------------------------------------------------------

_err_console = Console(stderr=True)


def error_exit(msg: str, *, json_mode: bool = False, code: int = 1) -> NoReturn:
    """Print *msg* as an error and ``raise typer.Exit(code)``."""
    if json_mode:
        print(json.dumps({"error": msg}, indent=2))
    else:
        _err_console.print(
            f"[red bold]error:[/red bold] {escape(msg)}", highlight=False, soft_wrap=True
        )
    raise typer.Exit(code=code)


def json_print(data: dict[str, Any] | list[Any]) -> None:
    """Print *data* as pretty-printed JSON to stdout."""
    print(json.dumps(data, indent=2))


def read_text(path: Path, *, json_mode: bool = False) -> str:
    """Read an input file, exiting with a readable error when it is missing."""
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        error_exit(f"cannot read {path}: {exc.strerror or exc}", json_mode=json_mode)


def write_output(text: str, output: Path | None) -> None:
    """Write *text* to *output* atomically, or to stdout when it is ``None``.

    The file only appears once it is complete; an interrupted write leaves no
    partial output behind.
    """
    if output is None:
        print(text, end="")
        return
    tmp_path = output.with_suffix(output.suffix + ".tmp")
    try:
        tmp_path.write_text(text, encoding="utf-8")
        os.replace(tmp_path, output)
    except BaseException:
        with contextlib.suppress(OSError):
            tmp_path.unlink()
        raise
