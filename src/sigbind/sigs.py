"""sigs.py - Address-keyed function signatures recovered from a binary.

The signature file is a JSON object mapping an address string to the symbol
name and C prototype the decompiler recovered for the function at that
address::

    {
      "0x401000": {"name": "_WinMain@16", "sig": "int __stdcall WinMain(...)"},
      "0x401200": {"name": "__imp_ExitProcess", "sig": ""}
    }

:class:`AddressTable` is built once from that mapping and never mutated; its
``addrs`` tuple (ascending) fixes the order of everything emitted downstream.
"""

from __future__ import annotations

import json
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from sigbind.address import format_addr, parse_addr
from sigbind.errors import SigsFormatError


@dataclass(frozen=True)
class FuncSig:
    """A recovered symbol name and its informational C prototype."""

    name: str
    sig: str = ""

    @classmethod
    def from_json(cls, raw: Any) -> FuncSig:
        if isinstance(raw, FuncSig):
            return raw
        if not isinstance(raw, Mapping):
            raise SigsFormatError(f"expected an object, got {type(raw).__name__}")
        name = raw.get("name")
        if not isinstance(name, str) or not name:
            raise SigsFormatError("missing function name")
        sig = raw.get("sig") or ""
        if not isinstance(sig, str):
            raise SigsFormatError(f"signature of {name!r} is not a string")
        return cls(name=name, sig=sig)

    def to_json(self) -> dict[str, str]:
        return {"name": self.name, "sig": self.sig}


@dataclass(frozen=True)
class AddressTable:
    """Read-only mapping from address to :class:`FuncSig`, ordered by address."""

    sigs: Mapping[int, FuncSig] = field(default_factory=dict)
    addrs: tuple[int, ...] = ()

    @classmethod
    def from_mapping(cls, raw: Mapping[Any, Any]) -> AddressTable:
        """Build a table from a decoded JSON object (or already-typed values).

        Keys may be ints or address strings; values may be ``FuncSig`` or
        ``{"name": ..., "sig": ...}`` objects.
        """
        sigs: dict[int, FuncSig] = {}
        for key, value in raw.items():
            if isinstance(key, int):
                addr = key
            else:
                try:
                    addr = parse_addr(str(key))
                except ValueError as exc:
                    raise SigsFormatError(str(exc)) from None
            if addr in sigs:
                raise SigsFormatError(f"duplicate address {format_addr(addr)}")
            try:
                sigs[addr] = FuncSig.from_json(value)
            except SigsFormatError as exc:
                raise SigsFormatError(f"{key}: {exc}") from None
        return cls(sigs=sigs, addrs=tuple(sorted(sigs)))

    def __len__(self) -> int:
        return len(self.addrs)

    def __iter__(self) -> Iterator[tuple[int, FuncSig]]:
        for addr in self.addrs:
            yield addr, self.sigs[addr]

    def __getitem__(self, addr: int) -> FuncSig:
        return self.sigs[addr]

    def __contains__(self, addr: object) -> bool:
        return addr in self.sigs


def load_sigs(path: Path) -> AddressTable:
    """Read a signature JSON file into an :class:`AddressTable`."""
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise SigsFormatError(f"cannot read {path}: {exc.strerror or exc}") from exc
    except json.JSONDecodeError as exc:
        raise SigsFormatError(f"{path}: invalid JSON: {exc}") from exc
    if not isinstance(raw, dict):
        raise SigsFormatError(f"{path}: expected a JSON object keyed by address")
    try:
        return AddressTable.from_mapping(raw)
    except SigsFormatError as exc:
        raise SigsFormatError(f"{path}: {exc}") from None
