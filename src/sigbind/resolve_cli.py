"""resolve_cli.py - Show how recovered symbol names map onto a header.

Compiles the header and reports, for each given symbol, the compiled
function it resolves to and the chain of rewrites that got there.  Unlike
``sigbind bind`` every name is reported; the exit status is 1 if any of them
is unresolved.
"""

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from sigbind.cli import JsonOption, error_exit, get_config, json_print, read_text
from sigbind.compile import make_compiler
from sigbind.errors import SigbindError, UnresolvedError
from sigbind.index import ModuleIndex
from sigbind.resolve import explain

app = typer.Typer(
    help="Resolve recovered symbol names against a compiled header.",
    rich_markup_mode="rich",
    epilog="""\
[bold]Examples:[/bold]

sigbind resolve funcs.h _WinMain@16 __imp_ExitProcess

sigbind resolve funcs.h "??1type_info@@UAE@XZ" --json""",
)
console = Console()


@app.callback(invoke_without_command=True)
def main(
    header: Path = typer.Argument(..., help="C header to compile"),
    names: list[str] = typer.Argument(..., help="Recovered symbol names"),
    clang: str | None = typer.Option(None, "--clang", help="Override the compiler command."),
    json_output: bool = JsonOption,
) -> None:
    """Resolve recovered symbol names against a compiled header."""
    cfg = get_config(json_mode=json_output)
    if clang is not None:
        cfg.compiler_command = clang

    source = read_text(header, json_mode=json_output)
    try:
        index = ModuleIndex.build(make_compiler(cfg)(source).funcs)
    except SigbindError as exc:
        error_exit(str(exc), json_mode=json_output)

    results = []
    for name in names:
        try:
            chain = explain(name, index, cfg.aliases)
        except UnresolvedError:
            results.append({"symbol": name, "function": None, "chain": [name]})
        else:
            results.append({"symbol": name, "function": chain[-1], "chain": chain})

    unresolved = sum(1 for r in results if r["function"] is None)
    if json_output:
        json_print({"results": results, "unresolved": unresolved})
    else:
        tbl = Table(show_header=True, header_style="bold", box=None, padding=(0, 2))
        tbl.add_column("Symbol")
        tbl.add_column("Function")
        tbl.add_column("Via", style="dim")
        for r in results:
            if r["function"] is None:
                tbl.add_row(escape(r["symbol"]), "[red]unresolved[/red]", "")
            else:
                tbl.add_row(
                    escape(r["symbol"]),
                    f"[green]{escape(r['function'])}[/green]",
                    escape(" -> ".join(r["chain"][1:-1])),
                )
        console.print(tbl)

    if unresolved:
        raise typer.Exit(code=1)


def main_entry() -> None:
    """Package entry point for ``sigbind-resolve``."""
    app()
