"""Model importer: validates an already laid-out model blob and passes it on."""

from __future__ import annotations

import struct
from pathlib import Path
from typing import Tuple

from ..blob.constants import (
    BLOB_HEADER_SIZE,
    BLOB_MAGIC,
    BLOB_VERSION,
    MODEL_DESC_FORMAT,
    MODEL_DESC_SIZE,
    MODEL_MATERIAL_SLOT_SIZE,
    MODEL_MESH_REF_SIZE,
    MODEL_NODE_SIZE,
)
from ..blob.inspector import parse_blob_header
from ..errors import E_FORMAT, E_RANGE, E_SIZE, BlobFormatError, format_error, structural_error
from ..registry.models import AssetType, ModelDesc
from ..utils.io import read_bytes

__all__ = ["MODEL_EXTENSIONS", "cook_model_bytes", "cook_model"]

MODEL_EXTENSIONS = (".model",)


def cook_model_bytes(data: bytes) -> Tuple[bytes, ModelDesc]:
    try:
        header = parse_blob_header(data)
    except BlobFormatError as e:
        raise format_error(E_FORMAT, f"Model blob header unreadable: {e.message}") from e
    if header["magic"] != BLOB_MAGIC or header["version"] != BLOB_VERSION:
        raise format_error(E_FORMAT, "Model blob has bad magic or version")
    if header["type"] != AssetType.MODEL:
        raise format_error(E_FORMAT, f"Blob type {header['type']} is not Model")
    if header["desc_size"] != MODEL_DESC_SIZE:
        raise format_error(
            E_SIZE, f"Model desc size {header['desc_size']} != {MODEL_DESC_SIZE}"
        )
    total = BLOB_HEADER_SIZE + MODEL_DESC_SIZE + header["data_size"]
    if len(data) < total:
        raise structural_error(
            E_SIZE, "Model blob truncated", {"expected": total, "actual": len(data)}
        )
    (
        node_count,
        mesh_ref_count,
        slot_count,
        nodes_offset,
        mesh_refs_offset,
        slots_offset,
    ) = struct.unpack_from(MODEL_DESC_FORMAT, data, BLOB_HEADER_SIZE)
    for label, offset, count, entry in (
        ("nodes", nodes_offset, node_count, MODEL_NODE_SIZE),
        ("mesh refs", mesh_refs_offset, mesh_ref_count, MODEL_MESH_REF_SIZE),
        ("material slots", slots_offset, slot_count, MODEL_MATERIAL_SLOT_SIZE),
    ):
        if offset + count * entry > header["data_size"]:
            raise structural_error(
                E_RANGE,
                f"Model {label} table out of range",
                {"offset": offset, "count": count, "data_size": header["data_size"]},
            )
    return bytes(data), ModelDesc(
        node_count=node_count,
        mesh_ref_count=mesh_ref_count,
        material_slot_count=slot_count,
    )


def cook_model(path: Path) -> Tuple[bytes, ModelDesc]:
    return cook_model_bytes(read_bytes(Path(path)))
