"""Path utilities (virtual path folding, source-relative resolution)."""

from __future__ import annotations
from pathlib import Path

__all__ = ["fold_virtual_path", "normalize_asset_ref", "resolve_under"]


def fold_virtual_path(path: str) -> str:
    """Lowercase with forward slashes; the stored form of every virtual path."""
    return path.replace("\\", "/").lower()


def normalize_asset_ref(path: str) -> str:
    """Fold a path written inside a source file (material stage refs)."""
    folded = fold_virtual_path(path.strip())
    while folded.startswith("./"):
        folded = folded[2:]
    return folded


def resolve_under(root: Path, relative: str) -> Path:
    """Resolve a source-relative path; ValueError if it leaves ``root``."""
    anchor = Path(root).resolve()
    target = anchor.joinpath(relative.replace("\\", "/")).resolve()
    if target != anchor and anchor not in target.parents:
        raise ValueError(f"{relative!r} resolves outside {anchor}")
    return target
