"""Pure binary packing functions for AAS1 blobs.

All functions are side-effect free and validate sizes.
"""

from __future__ import annotations

import struct
from typing import Sequence

from ..errors import E_RANGE, E_SIZE, BlobFormatError
from .constants import (
    AUDIO_CHUNK_FORMAT,
    AUDIO_CHUNK_SIZE,
    AUDIO_DESC_FORMAT,
    AUDIO_DESC_SIZE,
    BLOB_HEADER_FORMAT,
    BLOB_HEADER_SIZE,
    BLOB_MAGIC,
    BLOB_VERSION,
    MESH_ATTRIBUTE_FORMAT,
    MESH_ATTRIBUTE_SIZE,
    MESH_DESC_FORMAT,
    MESH_DESC_SIZE,
    MESH_FLAG_HAS_BOUNDS,
    MESH_SUBMESH_FORMAT,
    MESH_SUBMESH_SIZE,
    MODEL_DESC_FORMAT,
    MODEL_DESC_SIZE,
    TEXTURE_DESC_FORMAT,
    TEXTURE_DESC_SIZE,
    U32_MAX,
)

__all__ = [
    "pack_blob_header",
    "pack_texture_desc",
    "pack_mesh_desc",
    "pack_vertex_attribute",
    "pack_submesh",
    "pack_audio_desc",
    "pack_audio_chunk",
    "pack_model_desc",
    "assemble_blob",
]


def _check_size(label: str, packed: bytes, expected: int) -> bytes:
    if len(packed) != expected:
        raise BlobFormatError(E_SIZE, f"{label} size mismatch: {len(packed)}!={expected}")
    return packed


def _u32(label: str, value: int) -> int:
    v = int(value)
    if v < 0 or v > U32_MAX:
        raise BlobFormatError(E_RANGE, f"{label} out of u32 range: {v}")
    return v


def pack_blob_header(asset_type: int, desc_size: int, data_size: int, flags: int = 0) -> bytes:
    out = struct.pack(
        BLOB_HEADER_FORMAT,
        BLOB_MAGIC,
        BLOB_VERSION,
        int(asset_type) & 0xFF,
        int(flags) & 0xFF,
        _u32("DescSize", desc_size),
        _u32("DataSize", data_size),
    )
    return _check_size("BlobHeader", out, BLOB_HEADER_SIZE)


def pack_texture_desc(
    width: int, height: int, fmt: int, mip_count: int, row_pitch: int
) -> bytes:
    out = struct.pack(
        TEXTURE_DESC_FORMAT,
        _u32("Width", width),
        _u32("Height", height),
        _u32("Format", fmt),
        _u32("MipCount", mip_count),
        _u32("RowPitch", row_pitch),
    )
    return _check_size("Texture2DBlobDesc", out, TEXTURE_DESC_SIZE)


def pack_mesh_desc(
    *,
    vertex_count: int,
    index_count: int,
    vertex_stride: int,
    index_type: int,
    attribute_count: int,
    submesh_count: int,
    attributes_offset: int,
    submeshes_offset: int,
    vertex_data_offset: int,
    index_data_offset: int,
    vertex_data_size: int,
    index_data_size: int,
    bounds_min: Sequence[float],
    bounds_max: Sequence[float],
    flags: int = MESH_FLAG_HAS_BOUNDS,
) -> bytes:
    # MeshBlobDesc: 12 x u32 + BoundsMin(3f) + BoundsMax(3f) + Flags(u32) = 76 bytes.
    counts = [
        ("VertexCount", vertex_count),
        ("IndexCount", index_count),
        ("VertexStride", vertex_stride),
        ("IndexType", index_type),
        ("AttributeCount", attribute_count),
        ("SubMeshCount", submesh_count),
        ("AttributesOffset", attributes_offset),
        ("SubMeshesOffset", submeshes_offset),
        ("VertexDataOffset", vertex_data_offset),
        ("IndexDataOffset", index_data_offset),
        ("VertexDataSize", vertex_data_size),
        ("IndexDataSize", index_data_size),
    ]
    if len(bounds_min) != 3 or len(bounds_max) != 3:
        raise BlobFormatError(E_SIZE, "Mesh bounds must have 3 components")
    out = struct.pack(
        MESH_DESC_FORMAT,
        *(_u32(name, v) for name, v in counts),
        *(float(v) for v in bounds_min),
        *(float(v) for v in bounds_max),
        _u32("Flags", flags),
    )
    return _check_size("MeshBlobDesc", out, MESH_DESC_SIZE)


def pack_vertex_attribute(
    semantic: int,
    semantic_index: int,
    fmt: int,
    input_slot: int,
    aligned_offset: int,
    per_instance: int = 0,
    instance_step_rate: int = 0,
) -> bytes:
    out = struct.pack(
        MESH_ATTRIBUTE_FORMAT,
        semantic,
        semantic_index,
        fmt,
        input_slot,
        aligned_offset,
        per_instance,
        instance_step_rate,
    )
    return _check_size("MeshVertexAttributeDesc", out, MESH_ATTRIBUTE_SIZE)


def pack_submesh(
    index_start: int, index_count: int, base_vertex: int, material_slot: int
) -> bytes:
    out = struct.pack(
        MESH_SUBMESH_FORMAT, index_start, index_count, base_vertex, material_slot
    )
    return _check_size("MeshSubMeshDesc", out, MESH_SUBMESH_SIZE)


def pack_audio_desc(
    *,
    codec: int,
    sample_format: int,
    channels: int,
    sample_rate: int,
    frame_count: int,
    chunk_count: int,
    frames_per_chunk: int,
    chunk_table_offset: int,
    data_offset: int,
    data_size: int,
) -> bytes:
    out = struct.pack(
        AUDIO_DESC_FORMAT,
        codec,
        sample_format,
        _u32("Channels", channels),
        _u32("SampleRate", sample_rate),
        _u32("FrameCount", frame_count),
        _u32("ChunkCount", chunk_count),
        _u32("FramesPerChunk", frames_per_chunk),
        _u32("ChunkTableOffset", chunk_table_offset),
        _u32("DataOffset", data_offset),
        _u32("DataSize", data_size),
    )
    return _check_size("AudioBlobDesc", out, AUDIO_DESC_SIZE)


def pack_audio_chunk(offset: int, size: int) -> bytes:
    out = struct.pack(AUDIO_CHUNK_FORMAT, _u32("Offset", offset), _u32("Size", size))
    return _check_size("AudioChunkDesc", out, AUDIO_CHUNK_SIZE)


def pack_model_desc(
    node_count: int,
    mesh_ref_count: int,
    material_slot_count: int,
    nodes_offset: int,
    mesh_refs_offset: int,
    material_slots_offset: int,
) -> bytes:
    out = struct.pack(
        MODEL_DESC_FORMAT,
        node_count,
        mesh_ref_count,
        material_slot_count,
        nodes_offset,
        mesh_refs_offset,
        material_slots_offset,
    )
    return _check_size("ModelBlobDesc", out, MODEL_DESC_SIZE)


def assemble_blob(asset_type: int, desc: bytes, data: bytes, flags: int = 0) -> bytes:
    """Header + desc + data as one contiguous buffer."""
    header = pack_blob_header(asset_type, len(desc), len(data), flags)
    return header + desc + data
