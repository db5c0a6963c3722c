"""header.py - Generate a stub C header from recovered function signatures.

The inverse of ``sigbind bind``: turns a signature file into a header with
one empty-bodied definition per address, ready to be hand-edited and fed
back through ``bind``::

    // 0x401000
    int __stdcall WinMain(HINSTANCE, HINSTANCE, LPSTR, int) {}

Functions whose prototype is missing get a ``void name()`` placeholder.
"""

from pathlib import Path

import typer

from sigbind.address import format_addr
from sigbind.cli import OutputOption, error_exit, write_output
from sigbind.errors import SigsFormatError
from sigbind.sigs import AddressTable, load_sigs

HEADER_PRELUDE = """\
#include <stdint.h> // int8_t, ...
#include <stdarg.h> // va_list
#if __WORDSIZE == 64
\ttypedef uint64_t size_t;
#else
\ttypedef uint32_t size_t;
#endif

#include "types.h"
"""

app = typer.Typer(
    help="Convert function signatures to empty C headers (*.json -> *.h).",
    rich_markup_mode="rich",
    epilog="""\
[bold]Examples:[/bold]

sigbind header sigs.json                 Print header to stdout

sigbind header sigs.json -o funcs.h""",
)


def render_header(table: AddressTable) -> str:
    """Render the stub header for *table*, ordered by address."""
    parts = [HEADER_PRELUDE]
    for addr, sig in table:
        proto = sig.sig or f"void {sig.name}() /* signature missing */"
        parts.append(f"\n// {format_addr(addr)}\n{proto} {{}}\n")
    return "".join(parts)


@app.callback(invoke_without_command=True)
def main(
    sigs: Path = typer.Argument(..., help="JSON file with function signatures"),
    output: Path | None = OutputOption,
) -> None:
    """Convert function signatures to empty C headers."""
    try:
        table = load_sigs(sigs)
    except SigsFormatError as exc:
        error_exit(str(exc))
    try:
        write_output(render_header(table), output)
    except OSError as exc:
        error_exit(f"cannot write {output}: {exc.strerror or exc}")


def main_entry() -> None:
    """Package entry point for ``sigbind-header``."""
    app()
