"""UUID parse/format helpers.

Accepted text forms are the 36-character hyphenated form and the
32-character compact hex form; anything else (braces, urn prefix) is
rejected.
"""

from __future__ import annotations

import re
import uuid
from typing import Optional

__all__ = ["NIL_UUID", "try_parse_uuid", "format_uuid", "new_uuid"]

NIL_UUID = uuid.UUID(int=0)

_HYPHENATED = re.compile(
    r"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}"
)
_COMPACT = re.compile(r"[0-9a-fA-F]{32}")


def try_parse_uuid(text: object) -> Optional[uuid.UUID]:
    if isinstance(text, uuid.UUID):
        return text
    if not isinstance(text, str):
        return None
    if not (_HYPHENATED.fullmatch(text) or _COMPACT.fullmatch(text)):
        return None
    try:
        return uuid.UUID(text)
    except ValueError:
        return None


def format_uuid(value: uuid.UUID) -> str:
    return str(value)


def new_uuid() -> uuid.UUID:
    return uuid.uuid4()
