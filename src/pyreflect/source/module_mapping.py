"""Module path <-> file path mapping utilities.

Converts between dotted module paths (e.g. ``pkg.sub.mod``) and
filesystem paths (e.g. ``src/pkg/sub/mod.py``), relative to a source root.
"""

from __future__ import annotations

from pathlib import Path

SOURCE_SUFFIXES: tuple[str, ...] = (".py", ".pyi")


def path_to_module(path: str) -> str | None:
    """Convert a root-relative file path to a dotted module path.

    ``__init__.py`` maps to its package.

    Examples:
        >>> path_to_module("pkg/sub/mod.py")
        'pkg.sub.mod'
        >>> path_to_module("pkg/__init__.py")
        'pkg'
        >>> path_to_module("README.md")
    """
    dot_pos = path.rfind(".")
    if dot_pos < 0:
        return None

    ext = path[dot_pos:]
    if ext not in SOURCE_SUFFIXES:
        return None

    module = path[:dot_pos].replace("\\", "/")

    if module == "__init__":
        return None
    if module.endswith("/__init__"):
        module = module[:-9]  # strip /__init__

    module = module.replace("/", ".").lstrip(".")
    return module or None


def module_name_for(path: Path, roots: list[Path]) -> str | None:
    """Dotted module name of ``path`` under the first root that contains it."""
    resolved = path.resolve()
    for root in roots:
        try:
            relative = resolved.relative_to(root.resolve())
        except ValueError:
            continue
        module = path_to_module(relative.as_posix())
        if module:
            return module
    return None


def module_to_candidate_paths(module: str) -> list[str]:
    """Root-relative file paths that could hold ``module``, most specific first.

    Examples:
        >>> module_to_candidate_paths("pkg.mod")
        ['pkg/mod.py', 'pkg/mod/__init__.py', 'pkg/mod.pyi', 'pkg/mod/__init__.pyi']
    """
    base = module.replace(".", "/")
    candidates: list[str] = []
    for suffix in SOURCE_SUFFIXES:
        candidates.append(f"{base}{suffix}")
        candidates.append(f"{base}/__init__{suffix}")
    return candidates


def module_prefixes(name: str) -> list[str]:
    """Every dotted prefix of ``name``, longest first.

    Examples:
        >>> module_prefixes("a.b.C")
        ['a.b.C', 'a.b', 'a']
    """
    parts = name.split(".")
    return [".".join(parts[:i]) for i in range(len(parts), 0, -1)]


def is_package_file(path: Path) -> bool:
    return path.stem == "__init__"


def build_module_index(root: Path, file_paths: list[Path]) -> dict[str, Path]:
    """Build a mapping from module name -> absolute file path.

    Args:
        root: Source root the modules are relative to.
        file_paths: Files under ``root`` (absolute or root-relative).

    Returns:
        Dict mapping dotted module name to resolved file path.
    """
    index: dict[str, Path] = {}
    for fp in file_paths:
        absolute = fp if fp.is_absolute() else root / fp
        module = module_name_for(absolute, [root])
        if module:
            index[module] = absolute.resolve()
    return index
