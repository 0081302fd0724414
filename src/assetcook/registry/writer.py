"""Registry JSON serialization."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterable

from ..utils.io import write_bytes
from ..utils.uuids import format_uuid
from .models import AssetDesc, AssetRedirector, asset_type_name
from .registry import AssetRegistry

__all__ = [
    "SCHEMA_VERSION",
    "asset_to_dict",
    "registry_to_dict",
    "serialize_registry",
    "write_registry",
]

SCHEMA_VERSION = 1


def asset_to_dict(desc: AssetDesc) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "Uuid": format_uuid(desc.uuid),
        "Type": asset_type_name(desc.type),
        "VirtualPath": desc.virtual_path,
    }
    if desc.cooked_path:
        out["CookedPath"] = desc.cooked_path
    out["Dependencies"] = [
        {"Uuid": format_uuid(d.uuid), "Type": asset_type_name(d.type)}
        for d in desc.dependencies
    ]
    if desc.payload is not None:
        out["Desc"] = desc.payload.to_json()
    return out


def _redirector_to_dict(r: AssetRedirector) -> Dict[str, Any]:
    return {
        "OldUuid": format_uuid(r.old_uuid),
        "NewUuid": format_uuid(r.new_uuid),
        "OldVirtualPath": r.old_virtual_path,
    }


def registry_to_dict(
    registry: AssetRegistry | None = None,
    *,
    assets: Iterable[AssetDesc] | None = None,
    redirectors: Iterable[AssetRedirector] | None = None,
) -> Dict[str, Any]:
    if registry is not None:
        assets = registry.assets
        redirectors = registry.redirectors
    data: Dict[str, Any] = {
        "SchemaVersion": SCHEMA_VERSION,
        "Assets": [asset_to_dict(a) for a in assets or ()],
    }
    redirect_list = [_redirector_to_dict(r) for r in redirectors or ()]
    if redirect_list:
        data["Redirectors"] = redirect_list
    return data


def serialize_registry(registry: AssetRegistry) -> str:
    return json.dumps(registry_to_dict(registry), indent=2) + "\n"


def write_registry(registry: AssetRegistry, path: Path) -> int:
    return write_bytes(Path(path), serialize_registry(registry).encode("utf-8"))
