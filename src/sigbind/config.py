"""Project configuration loader for sigbind.

Reads ``sigbind.toml`` from the project root (found by walking up from the
current directory) and exposes the settings as simple attributes.  Every
setting has a default, so the file is optional.

Example ``sigbind.toml``::

    [compiler]
    command = "clang"
    flags = ["-m32", "-S", "-emit-llvm", "-x", "c", "-o", "-", "-"]
    include_dirs = ["include"]
    timeout = 60

    [resolve]
    allow_aliasing = false

    [resolve.aliases]
    "??0Foo@@QAE@XZ" = "Foo_create"

Usage::

    from sigbind.config import load_config
    cfg = load_config()
    cfg.compiler_command     # "clang"
    cfg.aliases              # built-in aliases merged with [resolve.aliases]
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from sigbind.resolve import KNOWN_ALIASES

if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomllib  # type: ignore[import]
    except ModuleNotFoundError:
        import tomli as tomllib  # type: ignore[import,no-redef]

CONFIG_NAME = "sigbind.toml"

# clang reads the header from stdin and writes textual IR to stdout.
DEFAULT_CLANG_FLAGS: List[str] = [
    "-m32",
    "-S",
    "-emit-llvm",
    "-x",
    "c",
    "-Wno-return-type",
    "-Wno-invalid-noreturn",
    "-o",
    "-",
    "-",
]


@dataclass
class ProjectConfig:
    """Parsed sigbind configuration with resolved paths."""

    # Directory holding sigbind.toml (cwd when there is none)
    root: Path

    # --- [compiler] ---
    compiler_command: str = "clang"
    compiler_flags: List[str] = field(default_factory=lambda: list(DEFAULT_CLANG_FLAGS))
    include_dirs: List[Path] = field(default_factory=list)
    compile_timeout: Optional[float] = None  # None waits indefinitely

    # --- [resolve] ---
    allow_aliasing: bool = True
    aliases: Dict[str, str] = field(default_factory=lambda: dict(KNOWN_ALIASES))

    @property
    def clang_args(self) -> List[str]:
        """Compiler flags followed by ``-I`` options for each include dir."""
        return self.compiler_flags + [f"-I{d}" for d in self.include_dirs]


def _resolve(root: Path, rel: str) -> Path:
    """Resolve a path relative to project root."""
    p = Path(rel)
    if p.is_absolute():
        return p
    return root / p


def _find_root(start: Optional[Path] = None) -> Path:
    """Walk up from *start* (or cwd) to find sigbind.toml."""
    if start is not None:
        return start
    candidate = Path.cwd().resolve()
    while candidate != candidate.parent:
        if (candidate / CONFIG_NAME).exists():
            return candidate
        candidate = candidate.parent
    raise FileNotFoundError(
        f"Could not find {CONFIG_NAME} in any parent of the current directory."
    )


def _str_list(value: object, key: str) -> List[str]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValueError(f"{CONFIG_NAME}: {key} must be a list of strings")
    return list(value)


def load_config(root: Optional[Path] = None) -> ProjectConfig:
    """Load sigbind.toml.

    Args:
        root: Directory containing ``sigbind.toml``.  Auto-detected if
            ``None``; when no file is found anywhere, defaults are returned
            with the current directory as root.

    Raises:
        ValueError: if a setting has the wrong type.
    """
    try:
        root = _find_root(root)
    except FileNotFoundError:
        return ProjectConfig(root=Path.cwd())

    toml_path = root / CONFIG_NAME
    if not toml_path.exists():
        return ProjectConfig(root=root)

    with open(toml_path, "rb") as f:
        raw = tomllib.load(f)

    compiler = raw.get("compiler", {})
    resolve = raw.get("resolve", {})

    cfg = ProjectConfig(root=root)
    cfg.compiler_command = compiler.get("command", cfg.compiler_command)
    if "flags" in compiler:
        cfg.compiler_flags = _str_list(compiler["flags"], "compiler.flags")
    include_dirs = _str_list(compiler.get("include_dirs", []), "compiler.include_dirs")
    cfg.include_dirs = [_resolve(root, d) for d in include_dirs]
    timeout = compiler.get("timeout")
    if timeout is not None:
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
            raise ValueError(f"{CONFIG_NAME}: compiler.timeout must be a positive number")
        cfg.compile_timeout = float(timeout)

    allow_aliasing = resolve.get("allow_aliasing", cfg.allow_aliasing)
    if not isinstance(allow_aliasing, bool):
        raise ValueError(f"{CONFIG_NAME}: resolve.allow_aliasing must be true or false")
    cfg.allow_aliasing = allow_aliasing
    extra = resolve.get("aliases", {})
    if not isinstance(extra, dict) or not all(isinstance(v, str) for v in extra.values()):
        raise ValueError(f"{CONFIG_NAME}: resolve.aliases must map names to names")
    cfg.aliases.update(extra)

    return cfg
