"""errors.py - Exception types raised by the sigbind pipeline.

Every failure is terminal for a run: the CLI layer catches
:class:`SigbindError` and reports it through ``error_exit``.
"""

from __future__ import annotations


class SigbindError(Exception):
    """Base class for all sigbind failures."""


class SigsFormatError(SigbindError):
    """The address -> signature JSON payload is malformed."""


class CompileError(SigbindError):
    """The C compiler could not turn the header into IR."""

    def __init__(self, msg: str, stderr: str = "") -> None:
        self.stderr = stderr
        if stderr.strip():
            msg = f"{msg}\n{stderr.rstrip()}"
        super().__init__(msg)


class ModuleParseError(SigbindError):
    """LLVM rejected the compiler's output or a generated module."""


class DuplicateNameError(SigbindError):
    """Two compiled functions share the same source-level name."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"function name {name!r} already present")


class UnresolvedError(SigbindError):
    """A recovered symbol name has no matching compiled function."""

    def __init__(self, name: str, addr: int | None = None) -> None:
        self.name = name
        self.addr = addr
        if addr is None:
            msg = f"unable to locate function {name!r}"
        else:
            msg = f"unable to locate function {name!r} at 0x{addr:X}"
        super().__init__(msg)


class AliasedFunctionError(SigbindError):
    """Two addresses resolved to the same compiled function."""

    def __init__(self, name: str, addr: int, first_addr: int) -> None:
        self.name = name
        self.addr = addr
        self.first_addr = first_addr
        super().__init__(
            f"function {name!r} at 0x{addr:X} is already bound to 0x{first_addr:X}"
        )
