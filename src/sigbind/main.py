"""main.py – Umbrella CLI entry point for sigbind.

Lazily imports and registers the subcommand typer apps so that a broken
optional import in one command doesn't prevent the entire CLI from loading.
Every command module exposes a single ``main`` which is registered as a flat
``app.command()`` entry.
"""

import importlib
import sys
from collections.abc import Callable

import typer

from sigbind import __version__

app = typer.Typer(
    help="Bind decompiler-recovered function addresses to compiled C header declarations.",
    rich_markup_mode="rich",
    epilog="""\
[bold]Typical workflow:[/bold]
  sigbind header sigs.json -o funcs.h      Generate a stub header from recovered sigs
  sigbind resolve funcs.h _WinMain@16      Check how a symbol resolves
  sigbind bind funcs.h -o funcs.ll         Emit address-annotated declarations

[dim]Compiler and resolver settings are read from sigbind.toml when present.[/dim]""",
)

# ---------------------------------------------------------------------------
# Subcommand registry
# ---------------------------------------------------------------------------

_COMMANDS: list[tuple[str, str, str]] = [
    ("bind", "sigbind.bind", "Convert C headers to LLVM IR function declarations."),
    ("resolve", "sigbind.resolve_cli", "Resolve recovered symbol names against a header."),
    ("header", "sigbind.header", "Convert function signatures to empty C headers."),
]


def _make_stub_cmd(mod_name: str, err: ImportError) -> Callable[[], None]:
    """Create a stub command function that reports a missing dependency."""

    def _stub() -> None:
        print(f"Error: could not load '{mod_name}': {err}", file=sys.stderr)
        raise typer.Exit(code=1)

    return _stub


def _version_callback(value: bool) -> None:
    if value:
        print(f"sigbind {__version__}")
        raise typer.Exit()


@app.callback()
def _root(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit.",
    ),
) -> None:
    pass


for _name, _module, _help in _COMMANDS:
    try:
        _mod = importlib.import_module(_module)
        _epilog = getattr(_mod.app.info, "epilog", None)
        if not isinstance(_epilog, str):
            _epilog = None
        app.command(name=_name, help=_help, epilog=_epilog)(_mod.main)
    except ImportError as _exc:
        app.command(name=_name, help=f"[unavailable] {_help}")(_make_stub_cmd(_module, _exc))


def main() -> None:
    app()


if __name__ == "__main__":
    main()
