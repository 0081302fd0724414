from __future__ import annotations

FNV1A32_OFFSET = 2166136261
FNV1A32_PRIME = 16777619

__all__ = ["fnv1a32", "FNV1A32_OFFSET", "FNV1A32_PRIME"]


def fnv1a32(text: str) -> int:
    """32-bit FNV-1a over the UTF-8 bytes of ``text``; empty text hashes to 0."""
    if not text:
        return 0
    h = FNV1A32_OFFSET
    for b in text.encode("utf-8"):
        h ^= b
        h = (h * FNV1A32_PRIME) & 0xFFFFFFFF
    return h
