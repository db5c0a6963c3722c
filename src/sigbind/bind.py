"""bind.py - Convert a C header to address-annotated LLVM IR declarations.

Compiles the header with clang, matches every recovered symbol of the
signature file to a compiled function, and writes one ``declare`` per
address (ascending) carrying ``!addr`` metadata.  Nothing is written unless
every address resolves.
"""

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from sigbind.address import format_addr
from sigbind.cli import (
    JsonOption,
    OutputOption,
    error_exit,
    get_config,
    json_print,
    read_text,
    write_output,
)
from sigbind.compile import make_compiler
from sigbind.errors import SigbindError
from sigbind.llvm_ir import verify_text
from sigbind.rebind import bind_source
from sigbind.sigs import load_sigs

app = typer.Typer(
    help="Convert C headers to LLVM IR function declarations (*.h -> *.ll).",
    rich_markup_mode="rich",
    epilog="""\
[bold]Examples:[/bold]

sigbind bind funcs.h                            Use sigs.json, print IR to stdout

sigbind bind funcs.h --sigs game.json -o game.ll

sigbind bind funcs.h -o out.ll --reject-aliasing   Fail if two addresses share a function

[dim]Recovered names are matched after stripping __imp_ prefixes, a leading
underscore and @N stdcall suffixes.[/dim]""",
)
console = Console(stderr=True)


@app.callback(invoke_without_command=True)
def main(
    header: Path = typer.Argument(..., help="C header to compile"),
    sigs: Path = typer.Option(
        Path("sigs.json"), "--sigs", "-s", help="JSON file with function signatures"
    ),
    output: Path | None = OutputOption,
    allow_aliasing: bool | None = typer.Option(
        None,
        "--allow-aliasing/--reject-aliasing",
        help="Allow two addresses to bind the same function (default: from sigbind.toml).",
    ),
    clang: str | None = typer.Option(None, "--clang", help="Override the compiler command."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Print each binding."),
    json_output: bool = JsonOption,
) -> None:
    """Convert C headers to LLVM IR function declarations."""
    if json_output and output is None:
        error_exit("--json requires --output for the IR module", json_mode=True)

    cfg = get_config(json_mode=json_output)
    if clang is not None:
        cfg.compiler_command = clang
    if allow_aliasing is None:
        allow_aliasing = cfg.allow_aliasing

    source = read_text(header, json_mode=json_output)
    try:
        table = load_sigs(sigs)
        module = bind_source(
            table,
            source,
            make_compiler(cfg),
            aliases=cfg.aliases,
            allow_aliasing=allow_aliasing,
        )
        text = module.to_text()
        verify_text(text)
    except SigbindError as exc:
        error_exit(str(exc), json_mode=json_output)

    bindings = [
        {"addr": format_addr(addr), "symbol": sig.name, "name": f.name}
        for (addr, sig), f in zip(table, module.funcs)
    ]
    if verbose and not json_output:
        for b in bindings:
            console.print(
                f"[cyan]{b['addr']}[/cyan]  {escape(b['symbol'])} -> {escape(b['name'])}",
                highlight=False,
                soft_wrap=True,
            )

    try:
        write_output(text, output)
    except OSError as exc:
        error_exit(f"cannot write {output}: {exc.strerror or exc}", json_mode=json_output)

    if json_output:
        json_print({"output": str(output), "count": len(bindings), "functions": bindings})
    elif output is not None:
        console.print(
            f"Bound {len(bindings)} functions -> {output}", highlight=False, soft_wrap=True
        )


def main_entry() -> None:
    """Package entry point for ``sigbind-bind``."""
    app()
