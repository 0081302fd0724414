"""Error definitions for assetcook."""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional

E_IO = "E_IO"
E_PARSE = "E_PARSE"
E_FIELD = "E_FIELD"
E_TYPE = "E_TYPE"
E_RANGE = "E_RANGE"
E_TOPOLOGY = "E_TOPOLOGY"
E_ACCESSOR = "E_ACCESSOR"
E_CYCLE = "E_CYCLE"
E_INCLUDE = "E_INCLUDE"
E_REF = "E_REF"
E_EMPTY = "E_EMPTY"
E_PITCH = "E_PITCH"
E_SIZE = "E_SIZE"
E_FORMAT = "E_FORMAT"
E_DUP = "E_DUP"
E_UNSUPPORTED = "E_UNSUPPORTED"


@dataclass
class CookError(Exception):
    code: str
    message: str
    context: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:
        return f"{self.code}: {self.message}" + (
            f" | ctx={self.context}" if self.context else ""
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context or {},
        }


class RegistryError(CookError):
    pass


class SourceFormatError(CookError):
    """Malformed source: bad JSON, missing fields, unsupported layout."""


class ReferenceResolutionError(CookError):
    """A referenced asset is missing or has the wrong type."""


class SourceIOError(CookError):
    pass


class StructuralError(CookError):
    """Source parsed but cannot produce a valid blob (empty, bad pitch)."""


class BlobFormatError(CookError):
    pass


def format_error(
    code: str, message: str, context: Optional[Dict[str, Any]] = None
) -> SourceFormatError:
    return SourceFormatError(code=code, message=message, context=context)


def reference_error(
    message: str, context: Optional[Dict[str, Any]] = None
) -> ReferenceResolutionError:
    return ReferenceResolutionError(code=E_REF, message=message, context=context)


def structural_error(
    code: str, message: str, context: Optional[Dict[str, Any]] = None
) -> StructuralError:
    return StructuralError(code=code, message=message, context=context)


__all__ = [
    "CookError",
    "RegistryError",
    "SourceFormatError",
    "ReferenceResolutionError",
    "SourceIOError",
    "StructuralError",
    "BlobFormatError",
    "format_error",
    "reference_error",
    "structural_error",
    "E_IO",
    "E_PARSE",
    "E_FIELD",
    "E_TYPE",
    "E_RANGE",
    "E_TOPOLOGY",
    "E_ACCESSOR",
    "E_CYCLE",
    "E_INCLUDE",
    "E_REF",
    "E_EMPTY",
    "E_PITCH",
    "E_SIZE",
    "E_FORMAT",
    "E_DUP",
    "E_UNSUPPORTED",
]
