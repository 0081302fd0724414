"""AAS1 blob inspection.

Public functions:
- parse_blob_header(data) -> dict
- inspect_blob(data_or_path) -> dict
- validate_blob(info) -> list[str]

``inspect_blob`` decodes whatever it can and never trusts offsets blindly;
``validate_blob`` turns the decoded dict into a list of human-readable
problems (empty means the blob is self-consistent).
"""

from __future__ import annotations

import struct
from pathlib import Path
from typing import Any, Dict, List, Tuple

from ..errors import E_FORMAT, BlobFormatError
from .constants import (
    AUDIO_CHUNK_FORMAT,
    AUDIO_CHUNK_SIZE,
    AUDIO_DESC_FORMAT,
    AUDIO_DESC_SIZE,
    BLOB_FLAG_SRGB,
    BLOB_HEADER_FORMAT,
    BLOB_HEADER_SIZE,
    BLOB_MAGIC,
    BLOB_VERSION,
    INDEX_TYPE_SIZES,
    MESH_ATTRIBUTE_FORMAT,
    MESH_ATTRIBUTE_SIZE,
    MESH_DESC_FORMAT,
    MESH_DESC_SIZE,
    MESH_SUBMESH_FORMAT,
    MESH_SUBMESH_SIZE,
    MODEL_DESC_FORMAT,
    MODEL_DESC_SIZE,
    MODEL_MATERIAL_SLOT_SIZE,
    MODEL_MESH_REF_SIZE,
    MODEL_NODE_SIZE,
    TEXTURE_BYTES_PER_PIXEL,
    TEXTURE_DESC_FORMAT,
    TEXTURE_DESC_SIZE,
)

__all__ = [
    "parse_blob_header",
    "inspect_blob",
    "validate_blob",
    "DESC_SIZES",
]

# Asset type value -> expected desc size
DESC_SIZES = {
    1: TEXTURE_DESC_SIZE,
    2: MESH_DESC_SIZE,
    4: AUDIO_DESC_SIZE,
    9: MODEL_DESC_SIZE,
}

_MESH_DESC_KEYS = (
    "vertex_count",
    "index_count",
    "vertex_stride",
    "index_type",
    "attribute_count",
    "submesh_count",
    "attributes_offset",
    "submeshes_offset",
    "vertex_data_offset",
    "index_data_offset",
    "vertex_data_size",
    "index_data_size",
)

_AUDIO_DESC_KEYS = (
    "codec",
    "sample_format",
    "channels",
    "sample_rate",
    "frame_count",
    "chunk_count",
    "frames_per_chunk",
    "chunk_table_offset",
    "data_offset",
    "data_size",
)

_MODEL_DESC_KEYS = (
    "node_count",
    "mesh_ref_count",
    "material_slot_count",
    "nodes_offset",
    "mesh_refs_offset",
    "material_slots_offset",
)


def _read_exact(data: bytes, offset: int, size: int, label: str) -> bytes:
    end = offset + size
    if offset < 0 or end > len(data):
        raise BlobFormatError(
            E_FORMAT, f"Out of range read for {label}: {offset}+{size}>{len(data)}"
        )
    return data[offset:end]


def parse_blob_header(data: bytes) -> Dict[str, Any]:
    raw = _read_exact(data, 0, BLOB_HEADER_SIZE, "header")
    magic, version, asset_type, flags, desc_size, data_size = struct.unpack(
        BLOB_HEADER_FORMAT, raw
    )
    return {
        "magic": magic,
        "version": version,
        "type": asset_type,
        "flags": flags,
        "srgb": bool(flags & BLOB_FLAG_SRGB),
        "desc_size": desc_size,
        "data_size": data_size,
    }


def _table(
    region: bytes, offset: int, count: int, entry_size: int, fmt: str, label: str
) -> List[Tuple[Any, ...]]:
    raw = _read_exact(region, offset, count * entry_size, label)
    return [struct.unpack_from(fmt, raw, i * entry_size) for i in range(count)]


def _decode_texture(desc: bytes, region: bytes) -> Dict[str, Any]:
    width, height, fmt, mips, pitch = struct.unpack(TEXTURE_DESC_FORMAT, desc)
    return {
        "width": width,
        "height": height,
        "format": fmt,
        "mip_count": mips,
        "row_pitch": pitch,
    }


def _decode_mesh(desc: bytes, region: bytes) -> Dict[str, Any]:
    values = struct.unpack(MESH_DESC_FORMAT, desc)
    out: Dict[str, Any] = dict(zip(_MESH_DESC_KEYS, values[:12]))
    out["bounds_min"] = list(values[12:15])
    out["bounds_max"] = list(values[15:18])
    out["flags"] = values[18]
    out["attributes"] = [
        {
            "semantic": a[0],
            "semantic_index": a[1],
            "format": a[2],
            "input_slot": a[3],
            "aligned_offset": a[4],
            "per_instance": a[5],
            "instance_step_rate": a[6],
        }
        for a in _table(
            region,
            out["attributes_offset"],
            out["attribute_count"],
            MESH_ATTRIBUTE_SIZE,
            MESH_ATTRIBUTE_FORMAT,
            "attributes",
        )
    ]
    out["submeshes"] = [
        {
            "index_start": s[0],
            "index_count": s[1],
            "base_vertex": s[2],
            "material_slot": s[3],
        }
        for s in _table(
            region,
            out["submeshes_offset"],
            out["submesh_count"],
            MESH_SUBMESH_SIZE,
            MESH_SUBMESH_FORMAT,
            "submeshes",
        )
    ]
    return out


def _decode_audio(desc: bytes, region: bytes) -> Dict[str, Any]:
    out: Dict[str, Any] = dict(zip(_AUDIO_DESC_KEYS, struct.unpack(AUDIO_DESC_FORMAT, desc)))
    out["chunks"] = [
        {"offset": c[0], "size": c[1]}
        for c in _table(
            region,
            out["chunk_table_offset"],
            out["chunk_count"],
            AUDIO_CHUNK_SIZE,
            AUDIO_CHUNK_FORMAT,
            "chunk table",
        )
    ]
    return out


def _decode_model(desc: bytes, region: bytes) -> Dict[str, Any]:
    return dict(zip(_MODEL_DESC_KEYS, struct.unpack(MODEL_DESC_FORMAT, desc)))


_DECODERS = {
    1: _decode_texture,
    2: _decode_mesh,
    4: _decode_audio,
    9: _decode_model,
}


def inspect_blob(source: bytes | str | Path) -> Dict[str, Any]:
    if isinstance(source, (str, Path)):
        data = Path(source).read_bytes()
    else:
        data = bytes(source)
    header = parse_blob_header(data)
    info: Dict[str, Any] = {
        "file_size": len(data),
        "header": header,
        "desc": None,
        "errors": [],
    }
    desc_start = BLOB_HEADER_SIZE
    data_start = desc_start + header["desc_size"]
    data_end = data_start + header["data_size"]
    info["data_offset"] = data_start
    if data_end > len(data):
        info["errors"].append(
            f"blob truncated: need {data_end} bytes, have {len(data)}"
        )
        return info
    decoder = _DECODERS.get(header["type"])
    expected = DESC_SIZES.get(header["type"])
    if decoder is None or expected != header["desc_size"]:
        return info
    desc = data[desc_start:data_start]
    region = data[data_start:data_end]
    try:
        info["desc"] = decoder(desc, region)
    except BlobFormatError as e:
        info["errors"].append(e.message)
    return info


def _range_ok(offset: int, size: int, limit: int) -> bool:
    return 0 <= offset and offset + size <= limit


def validate_blob(info: Dict[str, Any]) -> List[str]:
    issues: List[str] = list(info.get("errors", []))
    header = info.get("header", {})
    if header.get("magic") != BLOB_MAGIC:
        issues.append(f"bad magic 0x{header.get('magic', 0):08X}")
    if header.get("version") != BLOB_VERSION:
        issues.append(f"unsupported version {header.get('version')}")
    atype = header.get("type")
    expected = DESC_SIZES.get(atype)
    if expected is not None and header.get("desc_size") != expected:
        issues.append(
            f"desc size {header.get('desc_size')} != {expected} for type {atype}"
        )
    desc = info.get("desc")
    data_size = header.get("data_size", 0)
    if not desc:
        return issues
    if atype == 1:
        bpp = TEXTURE_BYTES_PER_PIXEL.get(desc["format"], 0)
        if bpp == 0:
            issues.append(f"unknown texture format {desc['format']}")
        elif desc["row_pitch"] < desc["width"] * bpp:
            issues.append("row pitch smaller than width * bytes per pixel")
        if desc["row_pitch"] * desc["height"] != data_size:
            issues.append("texture data size != row_pitch * height")
    elif atype == 2:
        isize = INDEX_TYPE_SIZES.get(desc["index_type"], 0)
        if isize == 0:
            issues.append(f"unknown index type {desc['index_type']}")
        if desc["vertex_count"] * desc["vertex_stride"] != desc["vertex_data_size"]:
            issues.append("vertex data size != vertex_count * stride")
        if desc["index_count"] * isize != desc["index_data_size"]:
            issues.append("index data size != index_count * index size")
        for label, off, size in (
            ("vertex data", desc["vertex_data_offset"], desc["vertex_data_size"]),
            ("index data", desc["index_data_offset"], desc["index_data_size"]),
        ):
            if not _range_ok(off, size, data_size):
                issues.append(f"{label} out of range")
        for i, sm in enumerate(desc["submeshes"]):
            if sm["index_start"] + sm["index_count"] > desc["index_count"]:
                issues.append(f"submesh {i} exceeds index count")
    elif atype == 4:
        if not _range_ok(desc["data_offset"], desc["data_size"], data_size):
            issues.append("audio data out of range")
        for i, c in enumerate(desc["chunks"]):
            if not _range_ok(c["offset"], c["size"], data_size):
                issues.append(f"audio chunk {i} out of range")
    elif atype == 9:
        for label, off, count, size in (
            ("nodes", desc["nodes_offset"], desc["node_count"], MODEL_NODE_SIZE),
            ("mesh refs", desc["mesh_refs_offset"], desc["mesh_ref_count"], MODEL_MESH_REF_SIZE),
            (
                "material slots",
                desc["material_slots_offset"],
                desc["material_slot_count"],
                MODEL_MATERIAL_SLOT_SIZE,
            ),
        ):
            if not _range_ok(off, count * size, data_size):
                issues.append(f"model {label} out of range")
    return issues
