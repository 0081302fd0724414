"""Registry document validation.

Unlike ``AssetRegistry.load_from_json_text`` (which stops at the first
problem) this walks the whole document and reports every problem it finds,
including duplicates the loader tolerates.

Returns a list of ValidationErrorRecord; empty list means success.
"""

from __future__ import annotations

from typing import Any, Dict, List

from ..errors import E_DUP, E_FIELD, E_REF, E_TYPE
from ..utils.paths import fold_virtual_path
from ..utils.uuids import try_parse_uuid
from .loader import get_ci
from .models import AssetType, parse_asset_type

__all__ = ["ValidationErrorRecord", "validate_registry_data"]


class ValidationErrorRecord:
    def __init__(self, code: str, message: str, path: str = "") -> None:
        self.code = code
        self.message = message
        self.path = path

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message, "path": self.path}

    def __repr__(self) -> str:  # convenience for tests
        return f"ValidationErrorRecord(code={self.code}, path={self.path}, message={self.message})"


def _err(errors: List[ValidationErrorRecord], code: str, message: str, path: str):
    errors.append(ValidationErrorRecord(code, message, path))


def _check_asset(entry: Any, path: str, errors: List[ValidationErrorRecord]) -> None:
    if not isinstance(entry, dict):
        _err(errors, E_TYPE, "Asset entry must be an object", path)
        return
    uuid_text = get_ci(entry, "Uuid")
    if not isinstance(uuid_text, str):
        _err(errors, E_FIELD, "Missing Uuid", path)
    elif try_parse_uuid(uuid_text) is None:
        _err(errors, E_FIELD, f"Invalid Uuid {uuid_text!r}", path + ".Uuid")
    type_text = get_ci(entry, "Type")
    if not isinstance(type_text, str):
        _err(errors, E_FIELD, "Missing Type", path)
    elif parse_asset_type(type_text) == AssetType.UNKNOWN:
        _err(errors, E_TYPE, f"Unknown Type {type_text!r}", path + ".Type")
    if not isinstance(get_ci(entry, "VirtualPath"), str):
        _err(errors, E_FIELD, "Missing VirtualPath", path)
    deps = get_ci(entry, "Dependencies")
    if deps is not None and not isinstance(deps, list):
        _err(errors, E_TYPE, "Dependencies must be an array", path + ".Dependencies")
    desc_obj = get_ci(entry, "Desc")
    if desc_obj is not None and not isinstance(desc_obj, dict):
        _err(errors, E_TYPE, "Desc must be an object", path + ".Desc")


def validate_registry_data(data: Any) -> List[ValidationErrorRecord]:
    errors: List[ValidationErrorRecord] = []
    if not isinstance(data, dict):
        _err(errors, E_TYPE, "Registry root must be an object", "")
        return errors
    version = get_ci(data, "SchemaVersion")
    if isinstance(version, bool) or not isinstance(version, (int, float)):
        _err(errors, E_FIELD, "SchemaVersion must be a number", "SchemaVersion")
    assets = get_ci(data, "Assets")
    if not isinstance(assets, list):
        _err(errors, E_FIELD, "Assets must be an array", "Assets")
        assets = []

    seen_uuid: Dict[str, str] = {}
    seen_path: Dict[str, str] = {}
    live_uuids = set()
    for i, entry in enumerate(assets):
        path = f"Assets[{i}]"
        _check_asset(entry, path, errors)
        if not isinstance(entry, dict):
            continue
        uid = try_parse_uuid(get_ci(entry, "Uuid"))
        if uid is not None:
            live_uuids.add(uid)
            key = str(uid)
            if key in seen_uuid:
                _err(errors, E_DUP, f"Duplicate Uuid {key} (first at {seen_uuid[key]})", path)
            else:
                seen_uuid[key] = path
        vpath = get_ci(entry, "VirtualPath")
        if isinstance(vpath, str):
            folded = fold_virtual_path(vpath)
            if folded in seen_path:
                _err(
                    errors,
                    E_DUP,
                    f"Duplicate VirtualPath {folded!r} (first at {seen_path[folded]})",
                    path,
                )
            else:
                seen_path[folded] = path

    redirectors = get_ci(data, "Redirectors")
    if redirectors is None:
        return errors
    if not isinstance(redirectors, list):
        _err(errors, E_TYPE, "Redirectors must be an array", "Redirectors")
        return errors
    for i, entry in enumerate(redirectors):
        path = f"Redirectors[{i}]"
        if not isinstance(entry, dict):
            _err(errors, E_TYPE, "Redirector entry must be an object", path)
            continue
        old_uuid = try_parse_uuid(get_ci(entry, "OldUuid"))
        if old_uuid is None:
            _err(errors, E_FIELD, "Missing or invalid OldUuid", path)
        elif old_uuid in live_uuids:
            _err(errors, E_REF, f"Redirector OldUuid {old_uuid} is a live asset", path)
        if try_parse_uuid(get_ci(entry, "NewUuid")) is None:
            _err(errors, E_FIELD, "Missing or invalid NewUuid", path)
        if not isinstance(get_ci(entry, "OldVirtualPath"), str):
            _err(errors, E_FIELD, "Missing OldVirtualPath", path)
    return errors
