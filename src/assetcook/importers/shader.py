"""Shader importer: recursive ``#include`` inlining.

Includes are expanded pre-order. Each include is resolved against the
including file's directory first, then against the fallback include
directories in order. A stack of the files currently being expanded
(resolved absolute paths) rejects cycles.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from ..errors import E_CYCLE, E_INCLUDE, format_error
from ..logging import get_logger
from ..registry.models import ShaderDesc
from ..utils.io import read_text

__all__ = [
    "SHADER_EXTENSIONS",
    "LANGUAGE_HLSL",
    "LANGUAGE_SLANG",
    "shader_language",
    "resolve_include",
    "expand_includes",
    "cook_shader",
]

SHADER_EXTENSIONS = (".hlsl", ".slang")
LANGUAGE_HLSL = 0
LANGUAGE_SLANG = 1

_INCLUDE_RE = re.compile(r'^\s*#\s*include\s*(?:"([^"]+)"|<([^>]+)>)')


def shader_language(path: Path) -> int:
    return LANGUAGE_SLANG if Path(path).suffix.lower() == ".slang" else LANGUAGE_HLSL


def _normalize(path: Path) -> Path:
    return Path(path).resolve()


def resolve_include(
    name: str, including_dir: Path, include_dirs: Sequence[Path]
) -> Optional[Path]:
    for base in (including_dir, *include_dirs):
        candidate = Path(base) / name
        if candidate.is_file():
            return _normalize(candidate)
    return None


def _expand(
    path: Path,
    include_dirs: Sequence[Path],
    stack: List[Path],
    out: List[str],
) -> None:
    text = read_text(path)
    for line_no, line in enumerate(text.splitlines(), start=1):
        m = _INCLUDE_RE.match(line)
        if m is None:
            out.append(line + "\n")
            continue
        name = m.group(1) or m.group(2)
        target = resolve_include(name, path.parent, include_dirs)
        if target is None:
            raise format_error(
                E_INCLUDE,
                f"Cannot resolve include '{name}'",
                {"file": str(path), "line": line_no},
            )
        if target in stack:
            chain = " -> ".join(p.name for p in (*stack, target))
            raise format_error(
                E_CYCLE,
                f"Include cycle detected: {chain}",
                {"file": str(path), "line": line_no},
            )
        stack.append(target)
        _expand(target, include_dirs, stack, out)
        stack.pop()
        out.append("\n")


def expand_includes(path: Path, include_dirs: Sequence[Path] = ()) -> str:
    """Return the fully inlined shader text of ``path``."""
    root = _normalize(Path(path))
    out: List[str] = []
    _expand(root, [Path(d) for d in include_dirs], [root], out)
    return "".join(out)


def cook_shader(
    path: Path, include_dirs: Sequence[Path] = ()
) -> Tuple[str, ShaderDesc]:
    text = expand_includes(path, include_dirs)
    language = shader_language(path)
    get_logger().debug(
        "shader %s: %d chars, language=%s",
        Path(path).name,
        len(text),
        "slang" if language == LANGUAGE_SLANG else "hlsl",
    )
    return text, ShaderDesc(language=language)
