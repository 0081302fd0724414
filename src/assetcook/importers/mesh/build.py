"""Shared mesh intermediate and its blob layout.

Both source parsers (OBJ, glTF) hand ``finalize_mesh`` plain float arrays;
everything about attribute order, stride, index width and section offsets
is decided here so the two paths cannot drift apart.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np

from ...blob.constants import (
    INDEX_TYPE_UINT16,
    INDEX_TYPE_UINT32,
    MAX_UINT16_INDEX,
    MESH_ATTRIBUTE_SIZE,
    MESH_SEMANTIC_NORMAL,
    MESH_SEMANTIC_POSITION,
    MESH_SEMANTIC_TEXCOORD,
    MESH_SUBMESH_SIZE,
    MESH_VERTEX_MASK_NORMAL,
    MESH_VERTEX_MASK_POSITION,
    MESH_VERTEX_MASK_TEXCOORD0,
    U32_MAX,
    VERTEX_FORMAT_R32G32_FLOAT,
    VERTEX_FORMAT_R32G32B32_FLOAT,
)
from ...blob.packers import (
    assemble_blob,
    pack_mesh_desc,
    pack_submesh,
    pack_vertex_attribute,
)
from ...errors import E_EMPTY, E_RANGE, E_SIZE, structural_error
from ...registry.models import AssetType, MeshDesc

__all__ = [
    "VertexAttribute",
    "SubMesh",
    "MeshBuildResult",
    "select_index_type",
    "finalize_mesh",
    "build_mesh_blob",
]


@dataclass(slots=True)
class VertexAttribute:
    semantic: int
    semantic_index: int
    format: int
    input_slot: int = 0
    aligned_offset: int = 0
    per_instance: int = 0
    instance_step_rate: int = 0


@dataclass(slots=True)
class SubMesh:
    index_start: int
    index_count: int
    base_vertex: int = 0
    material_slot: int = 0


@dataclass(slots=True)
class MeshBuildResult:
    vertex_data: bytes = b""
    index_data: bytes = b""
    attributes: List[VertexAttribute] = field(default_factory=list)
    submeshes: List[SubMesh] = field(default_factory=list)
    vertex_count: int = 0
    index_count: int = 0
    vertex_stride: int = 0
    index_type: int = INDEX_TYPE_UINT16
    vertex_format_mask: int = 0
    bounds_min: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    bounds_max: Tuple[float, float, float] = (0.0, 0.0, 0.0)


def select_index_type(max_index: int) -> int:
    return INDEX_TYPE_UINT16 if max_index <= MAX_UINT16_INDEX else INDEX_TYPE_UINT32


def finalize_mesh(
    positions: np.ndarray,
    indices: np.ndarray,
    normals: Optional[np.ndarray] = None,
    texcoords: Optional[np.ndarray] = None,
) -> MeshBuildResult:
    """Interleave Position, Normal?, TexCoord0? and pack the index buffer."""
    positions = np.asarray(positions, dtype="<f4").reshape(-1, 3)
    indices = np.asarray(indices, dtype=np.int64).reshape(-1)
    vertex_count = positions.shape[0]
    if vertex_count == 0:
        raise structural_error(E_EMPTY, "Mesh has no vertices")
    if indices.size == 0:
        raise structural_error(E_EMPTY, "Mesh has no indices")
    if indices.min() < 0 or indices.max() >= vertex_count:
        raise structural_error(
            E_RANGE,
            "Mesh index out of range",
            {"vertex_count": vertex_count, "max_index": int(indices.max())},
        )
    if vertex_count > U32_MAX or indices.size > U32_MAX:
        raise structural_error(E_SIZE, "Mesh too large for 32-bit counts")

    streams = [(positions, MESH_SEMANTIC_POSITION, VERTEX_FORMAT_R32G32B32_FLOAT, MESH_VERTEX_MASK_POSITION)]
    if normals is not None:
        streams.append(
            (
                np.asarray(normals, dtype="<f4").reshape(-1, 3),
                MESH_SEMANTIC_NORMAL,
                VERTEX_FORMAT_R32G32B32_FLOAT,
                MESH_VERTEX_MASK_NORMAL,
            )
        )
    if texcoords is not None:
        streams.append(
            (
                np.asarray(texcoords, dtype="<f4").reshape(-1, 2),
                MESH_SEMANTIC_TEXCOORD,
                VERTEX_FORMAT_R32G32_FLOAT,
                MESH_VERTEX_MASK_TEXCOORD0,
            )
        )

    mesh = MeshBuildResult()
    columns = []
    offset = 0
    for data, semantic, fmt, mask in streams:
        if data.shape[0] != vertex_count:
            raise structural_error(
                E_SIZE, "Vertex stream length differs from position count"
            )
        mesh.attributes.append(
            VertexAttribute(semantic=semantic, semantic_index=0, format=fmt, aligned_offset=offset)
        )
        mesh.vertex_format_mask |= mask
        offset += data.shape[1] * 4
        columns.append(data)
    mesh.vertex_stride = offset
    mesh.vertex_count = vertex_count
    mesh.vertex_data = np.ascontiguousarray(np.hstack(columns), dtype="<f4").tobytes()

    max_index = int(indices.max())
    mesh.index_type = select_index_type(max_index)
    dtype = "<u2" if mesh.index_type == INDEX_TYPE_UINT16 else "<u4"
    mesh.index_data = indices.astype(dtype).tobytes()
    mesh.index_count = int(indices.size)
    mesh.submeshes = [SubMesh(index_start=0, index_count=mesh.index_count)]

    mesh.bounds_min = tuple(float(v) for v in positions.min(axis=0))  # type: ignore[assignment]
    mesh.bounds_max = tuple(float(v) for v in positions.max(axis=0))  # type: ignore[assignment]
    return mesh


def build_mesh_blob(mesh: MeshBuildResult) -> Tuple[bytes, MeshDesc]:
    """Serialize as Header, Desc, Attributes, SubMeshes, VertexData, IndexData."""
    if mesh.vertex_count == 0 or mesh.index_count == 0 or mesh.vertex_stride == 0:
        raise structural_error(E_EMPTY, "Mesh is empty")

    attr_bytes = len(mesh.attributes) * MESH_ATTRIBUTE_SIZE
    submesh_bytes = len(mesh.submeshes) * MESH_SUBMESH_SIZE
    attributes_offset = 0
    submeshes_offset = attributes_offset + attr_bytes
    vertex_data_offset = submeshes_offset + submesh_bytes
    index_data_offset = vertex_data_offset + len(mesh.vertex_data)

    desc = pack_mesh_desc(
        vertex_count=mesh.vertex_count,
        index_count=mesh.index_count,
        vertex_stride=mesh.vertex_stride,
        index_type=mesh.index_type,
        attribute_count=len(mesh.attributes),
        submesh_count=len(mesh.submeshes),
        attributes_offset=attributes_offset,
        submeshes_offset=submeshes_offset,
        vertex_data_offset=vertex_data_offset,
        index_data_offset=index_data_offset,
        vertex_data_size=len(mesh.vertex_data),
        index_data_size=len(mesh.index_data),
        bounds_min=mesh.bounds_min,
        bounds_max=mesh.bounds_max,
    )
    data = b"".join(
        [
            *(
                pack_vertex_attribute(
                    a.semantic,
                    a.semantic_index,
                    a.format,
                    a.input_slot,
                    a.aligned_offset,
                    a.per_instance,
                    a.instance_step_rate,
                )
                for a in mesh.attributes
            ),
            *(
                pack_submesh(s.index_start, s.index_count, s.base_vertex, s.material_slot)
                for s in mesh.submeshes
            ),
            mesh.vertex_data,
            mesh.index_data,
        ]
    )
    blob = assemble_blob(AssetType.MESH, desc, data)
    return blob, MeshDesc(
        vertex_format=mesh.vertex_format_mask,
        index_format=mesh.index_type,
        submesh_count=len(mesh.submeshes),
    )
