"""Compile C headers to LLVM IR with clang.

The header text is piped to clang on stdin and the textual IR is read back
from stdout, so no temporary files are involved::

    clang -m32 -S -emit-llvm -x c -Wno-return-type -Wno-invalid-noreturn -o - -

:func:`compile_header` is the only place sigbind runs an external process.
The binding pipeline receives it as a plain callable (see
:func:`make_compiler`), which keeps the resolution core testable without
clang installed.
"""

from __future__ import annotations

import shlex
import subprocess

from rich.console import Console

from sigbind.config import DEFAULT_CLANG_FLAGS, ProjectConfig
from sigbind.errors import CompileError
from sigbind.llvm_ir import IRModule, parse_module
from sigbind.rebind import Compiler

_err_console = Console(stderr=True)


def resolve_clang_command(command: str) -> list[str]:
    """Split the configured compiler command into argv parts.

    Raises:
        CompileError: if the command has unbalanced quotes.
    """
    try:
        parts = shlex.split(command)
    except ValueError as e:
        raise CompileError(f"malformed compiler command {command!r}: {e}") from None
    return parts or ["clang"]


def compile_header(
    source: str,
    *,
    command: str = "clang",
    flags: list[str] | None = None,
    timeout: float | None = None,
) -> IRModule:
    """Compile C *source* and parse the resulting IR module.

    Args:
        source: Header text.
        command: Compiler command, e.g. ``"clang"`` or ``"clang-17 --target=i686-pc-win32"``.
        flags: Compiler flags; defaults to :data:`DEFAULT_CLANG_FLAGS`.
        timeout: Seconds before the compiler is killed; ``None`` waits forever.

    Raises:
        CompileError: if the compiler is missing, times out or fails.
        ModuleParseError: if its output is not parseable IR.
    """
    cmd = resolve_clang_command(command) + list(DEFAULT_CLANG_FLAGS if flags is None else flags)
    try:
        r = subprocess.run(
            cmd,
            input=source,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        raise CompileError(f"compile timed out after {timeout}s") from None
    except FileNotFoundError as e:
        raise CompileError(f"compiler not found: {e}") from e
    except OSError as e:
        raise CompileError(f"failed to run compiler: {e}") from e

    if r.returncode != 0:
        raise CompileError(f"{cmd[0]} exited with status {r.returncode}", r.stderr)
    if r.stderr:
        # Warnings from a successful compile
        _err_console.print(
            r.stderr, end="", markup=False, emoji=False, highlight=False, soft_wrap=True
        )
    return parse_module(r.stdout)


def make_compiler(cfg: ProjectConfig) -> Compiler:
    """Return a ``source -> IRModule`` callable configured from *cfg*."""

    def _compile(source: str) -> IRModule:
        return compile_header(
            source,
            command=cfg.compiler_command,
            flags=cfg.clang_args,
            timeout=cfg.compile_timeout,
        )

    return _compile
