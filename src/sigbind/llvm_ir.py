"""llvm_ir.py - Minimal LLVM IR module model for clang's textual output.

Clang's output is parsed and verified with :mod:`llvmlite.binding`; the
functions it reports are kept as header text plus body lines, since only
their declaration shape survives binding.  The model covers:

- ``target datalayout`` and ``target triple``
- identified type definitions (``%struct.Foo = type { i32, i8* }``), kept verbatim
- functions: ``define`` (with a body) and ``declare`` (without one)

Writing produces a self-contained module of type definitions, functions and
the metadata nodes the functions reference, e.g.::

    %struct.Foo = type { i32 }

    declare !addr !0 i32 @WinMain(ptr, ptr, ptr, i32)

    !0 = !{!"0x401000"}

:func:`verify_text` runs the written module back through LLVM so invalid
output is caught before it reaches disk.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from llvmlite import binding as llvm  # type: ignore

from sigbind.errors import ModuleParseError

# ---------------------------------------------------------------------------
# Lexical helpers
# ---------------------------------------------------------------------------

_IDENT = r'(?:[-a-zA-Z$._][-a-zA-Z$._0-9]*|"(?:[^"\\]|\\.)*"|\d+)'

_TYPEDEF_RE = re.compile(r"^%" + _IDENT + r"\s*=\s*type\b")
_FUNC_NAME_RE = re.compile(r"@(" + _IDENT + r")\s*\(")
# Linkage types that are only legal on definitions.
_DEFINITION_LINKAGES = frozenset(
    {
        "private",
        "internal",
        "available_externally",
        "linkonce",
        "linkonce_odr",
        "weak",
        "weak_odr",
        "common",
        "appending",
    }
)

# Trailing clauses after which nothing survives in a declaration.
_TRAILING_CUTOFF = frozenset({"prefix", "prologue", "personality"})

_OPEN = "([{<"
_CLOSE = ")]}>"


def _escape(text: str) -> str:
    """Escape *text* for use inside an LLVM double-quoted string."""
    out = []
    for ch in text:
        if ch in ('"', "\\") or not (0x20 <= ord(ch) < 0x7F):
            out.extend(f"\\{b:02X}" for b in ch.encode("utf-8"))
        else:
            out.append(ch)
    return "".join(out)


def _split_top_level(text: str, sep: str | None = ",") -> list[str]:
    """Split *text* on *sep* (whitespace when ``None``) outside brackets/quotes."""
    parts: list[str] = []
    depth = 0
    in_str = False
    cur: list[str] = []
    for ch in text:
        if in_str:
            cur.append(ch)
            if ch == '"':
                in_str = False
            continue
        if ch == '"':
            in_str = True
        elif ch in _OPEN:
            depth += 1
        elif ch in _CLOSE:
            depth -= 1
        elif depth == 0 and (ch == sep or (sep is None and ch.isspace())):
            parts.append("".join(cur))
            cur = []
            continue
        cur.append(ch)
    parts.append("".join(cur))
    return [p.strip() for p in parts if p.strip()]


def _split_header(header: str) -> tuple[str, str, str, str]:
    """Split a function header into (prefix, @name, params, suffix)."""
    m = _FUNC_NAME_RE.search(header)
    if m is None:
        raise ModuleParseError(f"no function name in {header!r}")
    open_idx = m.end() - 1
    depth = 0
    in_str = False
    for i in range(open_idx, len(header)):
        ch = header[i]
        if in_str:
            if ch == '"':
                in_str = False
        elif ch == '"':
            in_str = True
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0:
                return (
                    header[: m.start()].strip(),
                    "@" + m.group(1),
                    header[open_idx + 1 : i],
                    header[i + 1 :].strip(),
                )
    raise ModuleParseError(f"unbalanced parameter list in {header!r}")


def declaration_header(header: str) -> str:
    """Rewrite a ``define`` header so it forms a stand-alone ``declare``.

    Drops argument names, definition-only linkages, attribute group
    references, ``comdat``/``section``/``partition`` clauses, trailing
    ``prefix``/``prologue``/``personality`` constants and metadata attachments.
    """
    prefix, name, params, suffix = _split_header(header)

    prefix_tokens = [
        t
        for t in _split_top_level(prefix, None)
        if t not in _DEFINITION_LINKAGES and not t.startswith("!")
    ]

    new_params = []
    for param in _split_top_level(params):
        tokens = _split_top_level(param, None)
        if len(tokens) > 1 and tokens[-1].startswith("%"):
            tokens = tokens[:-1]
        new_params.append(" ".join(tokens))

    suffix_tokens: list[str] = []
    skip_next = False
    for tok in _split_top_level(suffix, None):
        if skip_next:
            skip_next = False
            continue
        if tok in _TRAILING_CUTOFF or tok.startswith("!"):
            break
        if tok in ("section", "partition"):
            skip_next = True
            continue
        if tok.startswith("#") or tok.startswith("comdat") or tok == "{":
            continue
        suffix_tokens.append(tok)

    out = " ".join(prefix_tokens + [f"{name}({', '.join(new_params)})"] + suffix_tokens)
    return out.strip()


# ---------------------------------------------------------------------------
# Model
# ---------------------------------------------------------------------------


@dataclass
class IRFunction:
    """A function entity: declaration (no blocks) or definition (with blocks).

    ``header`` is the text between ``define``/``declare`` and the body, e.g.
    ``dso_local i32 @main(i32 noundef %0) #0``.  ``metadata`` maps an
    attachment name to the string nodes of its tuple.
    """

    name: str
    header: str
    blocks: list[str] = field(default_factory=list)
    parent: IRModule | None = field(default=None, repr=False, compare=False)
    metadata: dict[str, list[str]] = field(default_factory=dict)

    @property
    def is_declaration(self) -> bool:
        return not self.blocks

    def detach(self) -> IRFunction:
        """Return a new bare declaration of this function.

        The copy has no body, no owning module and no metadata; ``self`` is
        left untouched.
        """
        return IRFunction(name=self.name, header=declaration_header(self.header))

    def to_text(self, md_refs: dict[str, int] | None = None) -> str:
        attach = "".join(f" !{key} !{num}" for key, num in (md_refs or {}).items())
        if self.is_declaration:
            return f"declare{attach} {self.header}"
        lines = [f"define {self.header}{attach} {{"]
        lines.extend(self.blocks)
        lines.append("}")
        return "\n".join(lines)


@dataclass
class IRModule:
    """An LLVM IR module reduced to type definitions and functions."""

    type_defs: list[str] = field(default_factory=list)
    funcs: list[IRFunction] = field(default_factory=list)
    data_layout: str | None = None
    triple: str | None = None

    def to_text(self) -> str:
        """Serialize the module as LLVM IR assembly."""
        sections: list[str] = []

        head = []
        if self.data_layout is not None:
            head.append(f'target datalayout = "{_escape(self.data_layout)}"')
        if self.triple is not None:
            head.append(f'target triple = "{_escape(self.triple)}"')
        if head:
            sections.append("\n".join(head))

        if self.type_defs:
            sections.append("\n".join(self.type_defs))

        md_nodes: list[str] = []
        func_texts = []
        for f in self.funcs:
            refs: dict[str, int] = {}
            for key, values in f.metadata.items():
                refs[key] = len(md_nodes)
                elems = ", ".join(f'!"{_escape(v)}"' for v in values)
                md_nodes.append(f"!{{{elems}}}")
            func_texts.append(f.to_text(refs))
        if func_texts:
            sep = "\n\n" if any(not f.is_declaration for f in self.funcs) else "\n"
            sections.append(sep.join(func_texts))

        if md_nodes:
            sections.append("\n".join(f"!{i} = {node}" for i, node in enumerate(md_nodes)))

        return "\n\n".join(sections) + "\n"


# ---------------------------------------------------------------------------
# Reader
# ---------------------------------------------------------------------------


def _load(text: str, what: str) -> llvm.ModuleRef:
    """Parse and verify *text* in a fresh context.

    A context per module keeps identified struct names from being renamed
    (``%struct.S.0``) when the same types are parsed twice.
    """
    try:
        ref = llvm.parse_assembly(text, context=llvm.create_context())
        ref.verify()
    except RuntimeError as exc:
        raise ModuleParseError(f"{what} is not valid LLVM IR: {str(exc).strip()}") from None
    return ref


def _function_text(fn: llvm.ValueRef) -> tuple[str, list[str]]:
    """Split LLVM's printed form of *fn* into its header and body lines."""
    lines = str(fn).splitlines()
    while lines and (not lines[0].strip() or lines[0].startswith(";")):
        lines.pop(0)
    if not lines:
        raise ModuleParseError(f"function {fn.name!r} printed no text")
    first = lines[0].rstrip()
    if fn.is_declaration:
        return first[len("declare ") :].strip(), []
    header = first[len("define ") :]
    if header.endswith("{"):
        header = header[:-1]
    body = [line.rstrip() for line in lines[1:]]
    while body and not body[0]:
        body.pop(0)
    while body and not body[-1]:
        body.pop()
    if body and body[-1] == "}":
        body.pop()
    return header.strip(), body


def parse_module(text: str) -> IRModule:
    """Parse clang's textual IR output into an :class:`IRModule`.

    Raises:
        ModuleParseError: if LLVM rejects the text.
    """
    ref = _load(text, "compiler output")
    module = IRModule(
        data_layout=ref.data_layout or None,
        triple=ref.triple or None,
    )
    for line in text.splitlines():
        line = line.rstrip()
        if _TYPEDEF_RE.match(line):
            module.type_defs.append(line)
    for fn in ref.functions:
        header, blocks = _function_text(fn)
        module.funcs.append(IRFunction(name=fn.name, header=header, blocks=blocks, parent=module))
    return module


def verify_text(text: str) -> None:
    """Check that *text* is a valid stand-alone LLVM module.

    Raises:
        ModuleParseError: if LLVM rejects it.
    """
    _load(text, "generated module")
