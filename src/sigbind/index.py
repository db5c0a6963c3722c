"""index.py - Name index over the functions of a compiled module.

The index owns an arena of the module's functions.  Lookups return a *slot*
(position in the arena) rather than the function object; the rebinder then
``take``s a slot, which yields a fresh, independently owned declaration and
marks the slot consumed.  The compiled module itself is never mutated.
"""

from __future__ import annotations

from collections.abc import Iterable

from sigbind.errors import DuplicateNameError
from sigbind.llvm_ir import IRFunction


class ModuleIndex:
    """Mapping from source-level function name to arena slot."""

    def __init__(self, funcs: list[IRFunction], slots: dict[str, int]) -> None:
        self._funcs = funcs
        self._slots = slots
        self._consumed: set[int] = set()

    @classmethod
    def build(cls, funcs: Iterable[IRFunction]) -> ModuleIndex:
        """Index *funcs* by name.

        Raises:
            DuplicateNameError: on the first name seen twice.  No index is
                returned in that case.
        """
        arena: list[IRFunction] = []
        slots: dict[str, int] = {}
        for f in funcs:
            if f.name in slots:
                raise DuplicateNameError(f.name)
            slots[f.name] = len(arena)
            arena.append(f)
        return cls(arena, slots)

    def __len__(self) -> int:
        return len(self._funcs)

    def __contains__(self, name: object) -> bool:
        return name in self._slots

    def names(self) -> list[str]:
        return list(self._slots)

    def lookup(self, name: str) -> int | None:
        """Return the slot of the function called *name*, or ``None``."""
        return self._slots.get(name)

    def function(self, slot: int) -> IRFunction:
        """Return the indexed (original) function in *slot*."""
        return self._funcs[slot]

    def is_consumed(self, slot: int) -> bool:
        return slot in self._consumed

    def take(self, slot: int) -> IRFunction:
        """Move the function in *slot* out as a detached declaration.

        The returned value has no body and no owning module.  Taking an
        already consumed slot yields another independent declaration; whether
        that is allowed is the caller's policy.
        """
        self._consumed.add(slot)
        return self._funcs[slot].detach()
