"""Byte and text reading for source assets."""

from __future__ import annotations
from pathlib import Path

from ..errors import E_IO, SourceIOError

__all__ = ["read_bytes", "read_text", "write_bytes", "MAX_SOURCE_SIZE"]

MAX_SOURCE_SIZE = 512 * 1024 * 1024


def read_bytes(path: Path, max_size: int = MAX_SOURCE_SIZE) -> bytes:
    path = Path(path)
    if not path.is_file():
        raise SourceIOError(E_IO, f"File not found: {path}", {"path": str(path)})
    size = path.stat().st_size
    if size > max_size:
        raise SourceIOError(
            E_IO, f"File too large: {size}>{max_size}", {"path": str(path)}
        )
    try:
        return path.read_bytes()
    except OSError as e:
        raise SourceIOError(E_IO, f"Cannot read {path}: {e}") from e


def read_text(path: Path, max_size: int = MAX_SOURCE_SIZE) -> str:
    raw = read_bytes(path, max_size)
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise SourceIOError(E_IO, f"{path} is not UTF-8 text: {e}") from e


def write_bytes(path: Path, data: bytes) -> int:
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
    except OSError as e:
        raise SourceIOError(E_IO, f"Cannot write {path}: {e}") from e
    return len(data)
