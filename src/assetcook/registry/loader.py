"""Registry JSON parsing.

Object keys are matched case-insensitively (an exact match wins). Any
structural violation raises ``RegistryError``; the caller decides whether to
keep the previous registry state.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Tuple

from ..errors import E_FIELD, E_PARSE, E_TYPE, RegistryError
from ..utils.uuids import try_parse_uuid
from .models import (
    AssetDesc,
    AssetHandle,
    AssetRedirector,
    AssetType,
    default_payload,
    parse_asset_type,
)

__all__ = ["get_ci", "parse_registry_text", "parse_registry_data", "parse_dependency"]

_U32_MAX = 0xFFFFFFFF


def get_ci(obj: Dict[str, Any], key: str) -> Any:
    if key in obj:
        return obj[key]
    lowered = key.lower()
    for k, v in obj.items():
        if isinstance(k, str) and k.lower() == lowered:
            return v
    return None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _fail(code: str, message: str, path: str) -> RegistryError:
    return RegistryError(code, message, {"path": path})


def parse_dependency(value: Any) -> Optional[AssetHandle]:
    """Uuid string (type Unknown) or ``{Uuid, Type}`` object; None if invalid."""
    if isinstance(value, str):
        uid = try_parse_uuid(value)
        return AssetHandle(uid, AssetType.UNKNOWN) if uid else None
    if isinstance(value, dict):
        uid = try_parse_uuid(get_ci(value, "Uuid"))
        if uid is None:
            return None
        return AssetHandle(uid, parse_asset_type(get_ci(value, "Type")))
    return None


def _read_payload(desc: AssetDesc, desc_obj: Dict[str, Any]) -> None:
    payload = desc.payload
    if payload is None:
        return
    # fields with the wrong JSON type or out of range keep their default
    for key, attr, kind in payload.JSON_FIELDS:
        value = get_ci(desc_obj, key)
        if kind == "u32":
            if _is_number(value) and 0 <= value <= _U32_MAX:
                setattr(payload, attr, int(value))
        elif kind == "f32":
            if _is_number(value):
                setattr(payload, attr, float(value))
        elif kind == "bool":
            if isinstance(value, bool):
                setattr(payload, attr, value)
        elif isinstance(value, str):
            setattr(payload, attr, value)


def _parse_asset(entry: Any, path: str) -> AssetDesc:
    if not isinstance(entry, dict):
        raise _fail(E_TYPE, "Asset entry must be an object.", path)
    uuid_text = get_ci(entry, "Uuid")
    type_text = get_ci(entry, "Type")
    vpath = get_ci(entry, "VirtualPath")
    if not isinstance(uuid_text, str):
        raise _fail(E_FIELD, "Asset missing Uuid.", path)
    if not isinstance(type_text, str):
        raise _fail(E_FIELD, "Asset missing Type.", path)
    if not isinstance(vpath, str):
        raise _fail(E_FIELD, "Asset missing VirtualPath.", path)
    uid = try_parse_uuid(uuid_text)
    if uid is None:
        raise _fail(E_FIELD, f"Asset Uuid invalid: {uuid_text!r}.", path + ".Uuid")
    atype = parse_asset_type(type_text)
    if atype == AssetType.UNKNOWN:
        raise _fail(E_TYPE, f"Asset Type unknown: {type_text!r}.", path + ".Type")

    desc = AssetDesc(
        handle=AssetHandle(uid, atype),
        virtual_path=vpath,
        payload=default_payload(atype),
    )
    cooked = get_ci(entry, "CookedPath")
    if isinstance(cooked, str):
        desc.cooked_path = cooked

    deps = get_ci(entry, "Dependencies")
    if deps is not None:
        if not isinstance(deps, list):
            raise _fail(E_TYPE, "Asset Dependencies invalid.", path + ".Dependencies")
        for dep in deps:
            handle = parse_dependency(dep)
            if handle is not None:
                desc.dependencies.append(handle)

    desc_obj = get_ci(entry, "Desc")
    if isinstance(desc_obj, dict):
        _read_payload(desc, desc_obj)
    return desc


def _parse_redirector(entry: Any, path: str) -> AssetRedirector:
    if not isinstance(entry, dict):
        raise _fail(E_TYPE, "Redirector entry must be an object.", path)
    old_uuid = try_parse_uuid(get_ci(entry, "OldUuid"))
    new_uuid = try_parse_uuid(get_ci(entry, "NewUuid"))
    old_path = get_ci(entry, "OldVirtualPath")
    if old_uuid is None or new_uuid is None or not isinstance(old_path, str):
        raise _fail(E_FIELD, "Redirector requires OldUuid, NewUuid, OldVirtualPath.", path)
    return AssetRedirector(old_uuid, new_uuid, old_path)


def parse_registry_data(
    data: Any,
) -> Tuple[List[AssetDesc], List[AssetRedirector]]:
    if not isinstance(data, dict):
        raise _fail(E_TYPE, "Registry root must be an object.", "")
    if not _is_number(get_ci(data, "SchemaVersion")):
        raise _fail(E_FIELD, "Registry missing SchemaVersion.", "SchemaVersion")
    assets_value = get_ci(data, "Assets")
    if not isinstance(assets_value, list):
        raise _fail(E_FIELD, "Registry missing Assets array.", "Assets")

    assets: List[AssetDesc] = []
    positions: Dict[Any, int] = {}
    for i, entry in enumerate(assets_value):
        desc = _parse_asset(entry, f"Assets[{i}]")
        # duplicate uuid: the later entry replaces the earlier one in place
        pos = positions.get(desc.uuid)
        if pos is None:
            positions[desc.uuid] = len(assets)
            assets.append(desc)
        else:
            assets[pos] = desc

    redirectors: List[AssetRedirector] = []
    redirect_value = get_ci(data, "Redirectors")
    if redirect_value is not None:
        if not isinstance(redirect_value, list):
            raise _fail(E_TYPE, "Registry Redirectors must be an array.", "Redirectors")
        for i, entry in enumerate(redirect_value):
            redirectors.append(_parse_redirector(entry, f"Redirectors[{i}]"))
    return assets, redirectors


def parse_registry_text(
    text: str,
) -> Tuple[List[AssetDesc], List[AssetRedirector]]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise RegistryError(E_PARSE, f"Registry JSON parse failed: {e}") from e
    return parse_registry_data(data)
