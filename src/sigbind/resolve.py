"""resolve.py - Map recovered symbol names onto compiled function names.

Disassemblers record symbols with decorations the header-compiled names do
not carry.  :func:`resolve` tries an ordered chain of rewrites, recursing on
each rewritten name and stopping at the first hit:

1. direct hit                    ``ExitProcess``
2. import prefix stripped        ``__imp_ExitProcess`` -> ``ExitProcess``
3. one leading underscore        ``_crt_cpp_init`` -> ``crt_cpp_init``
4. alias table                   ``??1type_info@@UAE@XZ`` -> ``type_info_create``
5. truncate at the first ``@``   ``_WinMain@16`` -> ``_WinMain``

Prefix rules run before suffix truncation, so ``_WinMain@16`` resolves via
``WinMain@16`` -> ``WinMain``.  Matching is exact; there is no fuzzy or
case-insensitive fallback.
"""

from __future__ import annotations

from collections.abc import Mapping

from sigbind.errors import UnresolvedError
from sigbind.index import ModuleIndex

IMPORT_PREFIX = "__imp_"

# C++ constructor/destructor symbols with known C-level helper names.  No
# general demangling is attempted; extra entries come from ``[resolve.aliases]``.
KNOWN_ALIASES: dict[str, str] = {
    "??1type_info@@UAE@XZ": "type_info_create",
    "??_Gtype_info@@UAEPAXI@Z": "type_info_delete",
}


def _rewrites(name: str, aliases: Mapping[str, str]) -> list[str]:
    """Return the candidate rewrites of *name*, in rule order."""
    out = []
    if name.startswith(IMPORT_PREFIX):
        out.append(name[len(IMPORT_PREFIX) :])
    if name.startswith("_"):
        out.append(name[1:])
    alias = aliases.get(name)
    if alias is not None:
        out.append(alias)
    pos = name.find("@")
    if pos > 0:
        out.append(name[:pos])
    return out

def _search(
    name: str, index: ModuleIndex, aliases: Mapping[str, str], seen: set[str]
) -> tuple[list[str], int] | None:
    """Return the rewrite chain from *name* and the slot it lands on."""
    slot = index.lookup(name)
    if slot is not None:
        return [name], slot
    seen.add(name)
    for candidate in _rewrites(name, aliases):
        if not candidate or candidate in seen:
            continue
        found = _search(candidate, index, aliases, seen)
        if found is not None:
            chain, slot = found
            return [name] + chain, slot
    return None


def _find(name: str, index: ModuleIndex, aliases: Mapping[str, str]) -> tuple[list[str], int]:
    found = _search(name, index, aliases, set())
    if found is None:
        raise UnresolvedError(name)
    return found


def explain(
    name: str, index: ModuleIndex, aliases: Mapping[str, str] = KNOWN_ALIASES
) -> list[str]:
    """Return the chain of names tried from *name* to the matching function.

    The first element is *name* itself and the last is the compiled
    function's name.

    Raises:
        UnresolvedError: if no rewrite reaches a function in *index*.
    """
    return _find(name, index, aliases)[0]


def resolve(name: str, index: ModuleIndex, aliases: Mapping[str, str] = KNOWN_ALIASES) -> int:
    """Return the index slot of the function matching the recovered *name*.

    Raises:
        UnresolvedError: if every rewrite rule is exhausted without a hit.
    """
    return _find(name, index, aliases)[1]
