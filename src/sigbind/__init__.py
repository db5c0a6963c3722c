"""sigbind: bind decompiler-recovered addresses to compiled C declarations.

Resolves the symbol names a disassembler recorded for function addresses
against the functions of a clang-compiled header, and re-emits the matched
declarations as a standalone LLVM IR module annotated with ``!addr`` metadata.
"""

__version__ = "0.1.0"
