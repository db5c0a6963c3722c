"""rebind.py - Bind compiled declarations to recovered function addresses.

Given an :class:`~sigbind.sigs.AddressTable` and a compiled header module,
produce one declaration per address, in ascending address order, each
stamped with ``!addr`` metadata holding the canonical address string::

    declare !addr !0 i32 @WinMain(ptr, ptr, ptr, i32)
    !0 = !{!"0x401000"}

The run is all-or-nothing: the first symbol that cannot be resolved aborts
it and no partial list is returned.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping

from sigbind.address import format_addr
from sigbind.errors import AliasedFunctionError, UnresolvedError
from sigbind.index import ModuleIndex
from sigbind.llvm_ir import IRFunction, IRModule
from sigbind.resolve import KNOWN_ALIASES, resolve
from sigbind.sigs import AddressTable

ADDR_KEY = "addr"

# Compiles C header text into a module; see sigbind.compile.compile_header.
Compiler = Callable[[str], IRModule]


def rebind(
    table: AddressTable,
    index: ModuleIndex,
    *,
    aliases: Mapping[str, str] = KNOWN_ALIASES,
    allow_aliasing: bool = True,
) -> list[IRFunction]:
    """Resolve every address of *table* against *index*.

    Args:
        table: Recovered address -> signature table.
        index: Index over the compiled module's functions.
        aliases: Alias table consulted by the resolver.
        allow_aliasing: Whether two addresses may bind to the same compiled
            function.  When ``False`` the second one raises.

    Returns:
        Detached declarations, one per address, ordered by address.

    Raises:
        UnresolvedError: naming the first address whose symbol has no match.
        AliasedFunctionError: when aliasing is rejected and occurs.
    """
    funcs: list[IRFunction] = []
    bound_at: dict[int, int] = {}
    for addr, sig in table:
        try:
            slot = resolve(sig.name, index, aliases)
        except UnresolvedError:
            raise UnresolvedError(sig.name, addr) from None
        if slot in bound_at and not allow_aliasing:
            raise AliasedFunctionError(index.function(slot).name, addr, bound_at[slot])
        bound_at.setdefault(slot, addr)
        f = index.take(slot)
        f.metadata[ADDR_KEY] = [format_addr(addr)]
        funcs.append(f)
    return funcs


def assemble_module(
    type_defs: list[str],
    funcs: list[IRFunction],
    *,
    template: IRModule | None = None,
) -> IRModule:
    """Place rebound declarations and carried-over type definitions in a new module.

    *type_defs* is shared by reference.  When *template* is given its data
    layout and target triple are copied so the output targets the same
    platform as the compiled header.
    """
    module = IRModule(type_defs=type_defs, funcs=funcs)
    if template is not None:
        module.data_layout = template.data_layout
        module.triple = template.triple
    return module


def bind_header(
    table: AddressTable,
    compiled: IRModule,
    *,
    aliases: Mapping[str, str] = KNOWN_ALIASES,
    allow_aliasing: bool = True,
) -> IRModule:
    """Run index -> rebind -> assemble over an already compiled module."""
    index = ModuleIndex.build(compiled.funcs)
    funcs = rebind(table, index, aliases=aliases, allow_aliasing=allow_aliasing)
    return assemble_module(compiled.type_defs, funcs, template=compiled)


def bind_source(
    table: AddressTable,
    source: str,
    compiler: Compiler,
    *,
    aliases: Mapping[str, str] = KNOWN_ALIASES,
    allow_aliasing: bool = True,
) -> IRModule:
    """Compile header *source* with *compiler* and bind it to *table*."""
    compiled = compiler(source)
    return bind_header(table, compiled, aliases=aliases, allow_aliasing=allow_aliasing)
