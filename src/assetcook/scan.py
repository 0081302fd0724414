"""Source tree discovery and ``.meta`` sidecar identity.

Each cookable source file gets a ``<file>.meta`` JSON sidecar holding its
stable Uuid, so renaming or re-importing keeps the identity assets were
registered with. Sidecars are written once and reused afterwards.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any, Dict, List, Optional
from uuid import UUID

from .errors import E_FIELD, E_PARSE, E_TYPE, format_error
from .logging import get_logger
from .registry.models import AssetType, asset_type_name, parse_asset_type
from .utils.io import read_text, write_bytes
from .utils.paths import fold_virtual_path
from .utils.uuids import format_uuid, new_uuid, try_parse_uuid

__all__ = [
    "META_SUFFIX",
    "IMPORTER_VERSION",
    "EXTENSION_TYPES",
    "SourceRecord",
    "classify_source",
    "virtual_path_for",
    "collect_assets",
    "meta_path_for",
    "read_meta",
    "ensure_meta",
]

META_SUFFIX = ".meta"
IMPORTER_VERSION = 1

EXTENSION_TYPES: Dict[str, AssetType] = {
    ".png": AssetType.TEXTURE2D,
    ".jpg": AssetType.TEXTURE2D,
    ".jpeg": AssetType.TEXTURE2D,
    ".obj": AssetType.MESH,
    ".gltf": AssetType.MESH,
    ".glb": AssetType.MESH,
    ".wav": AssetType.AUDIO,
    ".ogg": AssetType.AUDIO,
    ".hlsl": AssetType.SHADER,
    ".slang": AssetType.SHADER,
    ".material": AssetType.MATERIAL_TEMPLATE,
    ".model": AssetType.MODEL,
}

_IMPORTER_NAMES = {
    AssetType.TEXTURE2D: "texture",
    AssetType.MESH: "mesh",
    AssetType.AUDIO: "audio",
    AssetType.SHADER: "shader",
    AssetType.MATERIAL_TEMPLATE: "material",
    AssetType.MODEL: "model",
}


@dataclass(slots=True)
class SourceRecord:
    source_path: Path
    relative_path: str
    asset_type: AssetType
    virtual_path: str
    uuid: Optional[UUID] = None
    dependencies: List[UUID] = field(default_factory=list)


def classify_source(path: Path) -> AssetType:
    return EXTENSION_TYPES.get(Path(path).suffix.lower(), AssetType.UNKNOWN)


def virtual_path_for(relative: str, prefix: str = "") -> str:
    stem = PurePosixPath(relative).with_suffix("").as_posix()
    prefix = prefix.strip("/\\")
    joined = f"{prefix}/{stem}" if prefix else stem
    return fold_virtual_path(joined)


def collect_assets(root: Path, virtual_prefix: str = "") -> List[SourceRecord]:
    """Walk ``root`` and return one record per cookable file, sorted by path."""
    root = Path(root)
    records: List[SourceRecord] = []
    for path in sorted(p for p in root.rglob("*") if p.is_file()):
        asset_type = classify_source(path)
        if asset_type == AssetType.UNKNOWN:
            continue
        relative = path.relative_to(root).as_posix()
        records.append(
            SourceRecord(
                source_path=path,
                relative_path=relative,
                asset_type=asset_type,
                virtual_path=virtual_path_for(relative, virtual_prefix),
            )
        )
    get_logger().debug("collected %d source assets under %s", len(records), root)
    return records


def meta_path_for(source_path: Path) -> Path:
    source_path = Path(source_path)
    return source_path.with_name(source_path.name + META_SUFFIX)


def read_meta(meta_path: Path) -> Dict[str, Any]:
    text = read_text(meta_path)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise format_error(E_PARSE, f"Bad meta file {meta_path.name}: {e}") from e
    if not isinstance(data, dict):
        raise format_error(E_TYPE, f"Meta file {meta_path.name} root must be an object")
    return data


def _meta_dict(record: SourceRecord) -> Dict[str, Any]:
    return {
        "Uuid": format_uuid(record.uuid),
        "Type": asset_type_name(record.asset_type),
        "VirtualPath": record.virtual_path,
        "SourcePath": record.relative_path,
        "Importer": _IMPORTER_NAMES.get(record.asset_type, "unknown"),
        "ImporterVersion": IMPORTER_VERSION,
        "Dependencies": [format_uuid(d) for d in record.dependencies],
    }


def ensure_meta(record: SourceRecord) -> SourceRecord:
    """Reuse the sidecar identity of ``record`` or write a fresh sidecar."""
    meta_path = meta_path_for(record.source_path)
    if meta_path.is_file():
        data = read_meta(meta_path)
        uid = try_parse_uuid(data.get("Uuid"))
        if uid is None:
            raise format_error(E_FIELD, f"Meta file {meta_path.name} has no valid Uuid")
        meta_type = parse_asset_type(data.get("Type"))
        if meta_type not in (AssetType.UNKNOWN, record.asset_type):
            get_logger().warning(
                "%s: meta Type %s differs from extension type %s",
                meta_path.name,
                asset_type_name(meta_type),
                asset_type_name(record.asset_type),
            )
        record.uuid = uid
        vpath = data.get("VirtualPath")
        if isinstance(vpath, str) and vpath:
            record.virtual_path = fold_virtual_path(vpath)
        return record
    record.uuid = new_uuid()
    text = json.dumps(_meta_dict(record), indent=2) + "\n"
    write_bytes(meta_path, text.encode("utf-8"))
    get_logger().debug("wrote %s", meta_path)
    return record
