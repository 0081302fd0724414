"""glTF 2.0 (.gltf / .glb) parsing into the shared mesh intermediate.

Only the first primitive of the first mesh is cooked. Accessor decoding
follows bufferView.byteStride (interleaved views) and bounds-checks every
read against the owning buffer before touching it.
"""

from __future__ import annotations

import json
import struct
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

import numpy as np
from pygltflib import GLTF2

from ...errors import (
    E_ACCESSOR,
    E_FIELD,
    E_FORMAT,
    E_IO,
    E_PARSE,
    E_TOPOLOGY,
    E_UNSUPPORTED,
    SourceIOError,
    format_error,
    structural_error,
)
from ...utils.io import read_bytes
from .build import MeshBuildResult, finalize_mesh

__all__ = [
    "GLB_MAGIC",
    "GltfDocument",
    "split_glb",
    "load_gltf",
    "read_accessor_floats",
    "read_accessor_indices",
    "parse_gltf",
    "cook_gltf_file",
]

GLB_MAGIC = 0x46546C67  # "glTF"
GLB_VERSION = 2
GLB_CHUNK_JSON = 0x4E4F534A
GLB_CHUNK_BIN = 0x004E4942

COMPONENT_FLOAT = 5126
COMPONENT_UNSIGNED_SHORT = 5123
COMPONENT_UNSIGNED_INT = 5125
MODE_TRIANGLES = 4

_TYPE_COMPONENTS = {"SCALAR": 1, "VEC2": 2, "VEC3": 3, "VEC4": 4}


@dataclass(slots=True)
class GltfDocument:
    gltf: GLTF2
    buffers: List[bytes]


def split_glb(data: bytes) -> Tuple[str, Optional[bytes]]:
    """Return (json text, BIN chunk or None) from a binary glTF container."""
    if len(data) < 12:
        raise format_error(E_FORMAT, "GLB too small for header")
    magic, version, _length = struct.unpack_from("<III", data, 0)
    if magic != GLB_MAGIC or version != GLB_VERSION:
        raise format_error(E_FORMAT, "Not a glTF 2.0 binary container")
    offset = 12
    json_text: Optional[str] = None
    bin_chunk: Optional[bytes] = None
    while offset + 8 <= len(data):
        chunk_len, chunk_type = struct.unpack_from("<II", data, offset)
        start = offset + 8
        end = start + chunk_len
        if end > len(data):
            raise format_error(E_FORMAT, "GLB chunk overflows file", {"offset": offset})
        if chunk_type == GLB_CHUNK_JSON:
            try:
                json_text = data[start:end].decode("utf-8")
            except UnicodeDecodeError as e:
                raise format_error(E_PARSE, f"GLB JSON chunk is not UTF-8: {e}") from e
        elif chunk_type == GLB_CHUNK_BIN and bin_chunk is None:
            bin_chunk = data[start:end]
        offset = end
    if json_text is None:
        raise format_error(E_FORMAT, "GLB has no JSON chunk")
    return json_text, bin_chunk


def _parse_document(json_text: str) -> GLTF2:
    try:
        return GLTF2.from_json(json_text, infer_missing=True)
    except json.JSONDecodeError as e:
        raise format_error(E_PARSE, f"glTF JSON parse failed: {e}") from e
    except (TypeError, ValueError, KeyError, AttributeError) as e:
        raise format_error(E_PARSE, f"glTF document malformed: {e}") from e


def _load_buffers(
    gltf: GLTF2, base_dir: Path, bin_chunk: Optional[bytes]
) -> List[bytes]:
    buffers: List[bytes] = []
    for i, buf in enumerate(gltf.buffers or []):
        uri = getattr(buf, "uri", None)
        if uri:
            if uri.startswith("data:"):
                raise format_error(
                    E_UNSUPPORTED, "Embedded data: URIs are not supported", {"buffer": i}
                )
            try:
                buffers.append(read_bytes(base_dir / uri))
            except SourceIOError as e:
                raise SourceIOError(E_IO, f"glTF buffer {i}: {e.message}") from e
        elif i == 0 and bin_chunk is not None:
            buffers.append(bin_chunk)
        else:
            raise format_error(E_FIELD, "Buffer has no uri and no GLB BIN chunk", {"buffer": i})
    return buffers


def load_gltf(data: bytes, base_dir: Path, *, binary: bool) -> GltfDocument:
    if binary:
        json_text, bin_chunk = split_glb(data)
    else:
        try:
            json_text = data.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise format_error(E_PARSE, f"glTF is not UTF-8 text: {e}") from e
        bin_chunk = None
    gltf = _parse_document(json_text)
    return GltfDocument(gltf=gltf, buffers=_load_buffers(gltf, base_dir, bin_chunk))


def _accessor_view(doc: GltfDocument, index: int):
    accessors = doc.gltf.accessors or []
    if index is None or not 0 <= index < len(accessors):
        raise format_error(E_ACCESSOR, f"Accessor {index} missing")
    accessor = accessors[index]
    if accessor.bufferView is None or accessor.componentType is None or accessor.count is None:
        raise format_error(
            E_ACCESSOR, "Accessor requires bufferView, componentType, count", {"accessor": index}
        )
    if accessor.count <= 0:
        raise format_error(E_ACCESSOR, "Accessor count is zero", {"accessor": index})
    views = doc.gltf.bufferViews or []
    if not 0 <= accessor.bufferView < len(views):
        raise format_error(E_ACCESSOR, "Accessor bufferView out of range", {"accessor": index})
    view = views[accessor.bufferView]
    if view.buffer is None or view.byteLength is None:
        raise format_error(
            E_ACCESSOR, "bufferView requires buffer and byteLength", {"view": accessor.bufferView}
        )
    if not 0 <= view.buffer < len(doc.buffers):
        raise format_error(E_ACCESSOR, "bufferView buffer out of range", {"view": accessor.bufferView})
    return accessor, view, doc.buffers[view.buffer]


def _gather(
    buffer: bytes,
    start: int,
    count: int,
    stride: int,
    dtype: str,
    components: int,
    label: str,
) -> np.ndarray:
    itemsize = np.dtype(dtype).itemsize
    element_size = components * itemsize
    required = stride * (count - 1) + element_size
    if start < 0 or start + required > len(buffer):
        raise format_error(
            E_ACCESSOR,
            f"{label} accessor reads past end of buffer",
            {"start": start, "required": required, "buffer_size": len(buffer)},
        )
    if stride == element_size:
        arr = np.frombuffer(buffer, dtype=dtype, count=count * components, offset=start)
        return arr.reshape((count, components)).copy()
    # interleaved view: strided gather
    out = np.empty((count, components), dtype=dtype)
    for i in range(count):
        out[i, :] = np.frombuffer(buffer, dtype=dtype, count=components, offset=start + i * stride)
    return out


def read_accessor_floats(
    doc: GltfDocument, index: int, expected_components: int, label: str = "float"
) -> np.ndarray:
    accessor, view, buffer = _accessor_view(doc, index)
    if accessor.componentType != COMPONENT_FLOAT:
        raise format_error(
            E_ACCESSOR, f"{label} accessor must be FLOAT", {"accessor": index}
        )
    components = _TYPE_COMPONENTS.get(accessor.type or "", 0)
    if components != expected_components:
        raise format_error(
            E_ACCESSOR,
            f"{label} accessor has {accessor.type}, expected {expected_components} components",
            {"accessor": index},
        )
    stride = int(view.byteStride or 0) or components * 4
    start = int(view.byteOffset or 0) + int(accessor.byteOffset or 0)
    return _gather(buffer, start, int(accessor.count), stride, "<f4", components, label)


def read_accessor_indices(doc: GltfDocument, index: int) -> np.ndarray:
    accessor, view, buffer = _accessor_view(doc, index)
    if accessor.componentType == COMPONENT_UNSIGNED_SHORT:
        dtype, size = "<u2", 2
    elif accessor.componentType == COMPONENT_UNSIGNED_INT:
        dtype, size = "<u4", 4
    else:
        raise format_error(
            E_ACCESSOR, "Index accessor must be UNSIGNED_SHORT or UNSIGNED_INT", {"accessor": index}
        )
    stride = int(view.byteStride or 0) or size
    start = int(view.byteOffset or 0) + int(accessor.byteOffset or 0)
    return _gather(buffer, start, int(accessor.count), stride, dtype, 1, "index").reshape(-1)


def parse_gltf(doc: GltfDocument) -> MeshBuildResult:
    meshes = doc.gltf.meshes or []
    if not meshes or not meshes[0].primitives:
        raise format_error(E_FIELD, "glTF has no mesh primitive")
    prim = meshes[0].primitives[0]
    mode = MODE_TRIANGLES if prim.mode is None else prim.mode
    if mode != MODE_TRIANGLES:
        raise structural_error(E_TOPOLOGY, f"Unsupported primitive mode {mode}")
    attributes = prim.attributes
    pos_index = getattr(attributes, "POSITION", None)
    if pos_index is None:
        raise format_error(E_FIELD, "Primitive has no POSITION attribute")
    positions = read_accessor_floats(doc, pos_index, 3, "POSITION")
    vertex_count = positions.shape[0]

    normals = None
    normal_index = getattr(attributes, "NORMAL", None)
    if normal_index is not None:
        normals = read_accessor_floats(doc, normal_index, 3, "NORMAL")
        if normals.shape[0] != vertex_count:
            raise format_error(E_ACCESSOR, "NORMAL count differs from POSITION count")
    texcoords = None
    uv_index = getattr(attributes, "TEXCOORD_0", None)
    if uv_index is not None:
        texcoords = read_accessor_floats(doc, uv_index, 2, "TEXCOORD_0")
        if texcoords.shape[0] != vertex_count:
            raise format_error(E_ACCESSOR, "TEXCOORD_0 count differs from POSITION count")

    if prim.indices is None:
        if vertex_count % 3 != 0:
            raise structural_error(
                E_TOPOLOGY, "Non-indexed primitive vertex count is not a multiple of 3"
            )
        indices = np.arange(vertex_count, dtype=np.int64)
    else:
        indices = read_accessor_indices(doc, prim.indices).astype(np.int64)
    if indices.size == 0 or indices.size % 3 != 0:
        raise structural_error(E_TOPOLOGY, "Index count is not a multiple of 3")
    return finalize_mesh(positions, indices, normals=normals, texcoords=texcoords)


def cook_gltf_file(path: Path) -> MeshBuildResult:
    path = Path(path)
    data = read_bytes(path)
    doc = load_gltf(data, path.parent, binary=path.suffix.lower() == ".glb")
    return parse_gltf(doc)
