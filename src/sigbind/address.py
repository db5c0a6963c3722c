"""address.py - Parse and format binary addresses.

Addresses are plain ``int`` values.  The canonical text form is ``0x`` followed
by uppercase hex digits (``0x401000``); this is the string stored in the
``!addr`` metadata of every emitted declaration.
"""

_U64_MASK = (1 << 64) - 1


def parse_addr(text: str) -> int:
    """Parse ``0x``-prefixed hex or decimal text into an address.

    Negative values are accepted and stored as their 64-bit two's complement,
    matching how disassemblers sometimes print sign-extended addresses.

    Raises:
        ValueError: if *text* is not a valid number.
    """
    s = text.strip()
    base = 10
    if s[:2] in ("0x", "0X"):
        s = s[2:]
        base = 16
    if not s or s[0] in "+_" or "_" in s:
        raise ValueError(f"invalid address: {text!r}")
    try:
        value = int(s, base)
    except ValueError:
        raise ValueError(f"invalid address: {text!r}") from None
    if value < -(1 << 63) or value > _U64_MASK:
        raise ValueError(f"address out of range: {text!r}")
    return value & _U64_MASK


def format_addr(addr: int) -> str:
    """Return the canonical ``0x%X`` string for *addr*."""
    return f"0x{addr:X}"
