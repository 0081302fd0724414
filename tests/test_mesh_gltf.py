import json
import struct
from pathlib import Path

import numpy as np
import pytest

from assetcook.errors import SourceFormatError, SourceIOError, StructuralError
from assetcook.importers.mesh import cook_mesh
from assetcook.importers.mesh.gltf import cook_gltf_file, load_gltf, parse_gltf, split_glb

TRIANGLE = np.array([[0, 0, 0], [1, 0, 0], [0, 1, 0]], dtype="<f4")
NORMALS = np.array([[0, 0, 1]] * 3, dtype="<f4")


def _glb(doc, payload: bytes) -> bytes:
    json_bytes = json.dumps(doc).encode("utf-8")
    json_bytes += b" " * ((-len(json_bytes)) % 4)
    payload += b"\x00" * ((-len(payload)) % 4)
    chunks = struct.pack("<II", len(json_bytes), 0x4E4F534A) + json_bytes
    chunks += struct.pack("<II", len(payload), 0x004E4942) + payload
    return struct.pack("<III", 0x46546C67, 2, 12 + len(chunks)) + chunks


def _triangle_doc(payload_len, *, indices=True, mode=None, extra_attrs=None):
    accessors = [
        {"bufferView": 0, "componentType": 5126, "count": 3, "type": "VEC3"},
    ]
    views = [{"buffer": 0, "byteOffset": 0, "byteLength": 36}]
    prim = {"attributes": {"POSITION": 0}}
    if indices:
        views.append({"buffer": 0, "byteOffset": 36, "byteLength": 6})
        accessors.append({"bufferView": 1, "componentType": 5123, "count": 3, "type": "SCALAR"})
        prim["indices"] = 1
    if mode is not None:
        prim["mode"] = mode
    if extra_attrs:
        prim["attributes"].update(extra_attrs)
    return {
        "asset": {"version": "2.0"},
        "buffers": [{"byteLength": payload_len}],
        "bufferViews": views,
        "accessors": accessors,
        "meshes": [{"primitives": [prim]}],
    }


def _indexed_payload():
    return TRIANGLE.tobytes() + struct.pack("<3H", 0, 1, 2)


def test_glb_triangle(tmp_path):
    payload = _indexed_payload()
    path = tmp_path / "tri.glb"
    path.write_bytes(_glb(_triangle_doc(len(payload)), payload))
    mesh = cook_gltf_file(path)
    assert mesh.vertex_count == 3
    assert mesh.index_count == 3
    assert mesh.vertex_stride == 12
    assert struct.unpack("<3H", mesh.index_data) == (0, 1, 2)
    assert mesh.bounds_max == (1.0, 1.0, 0.0)


def test_non_indexed_primitive_gets_sequential_indices(tmp_path):
    payload = TRIANGLE.tobytes()
    path = tmp_path / "tri.glb"
    path.write_bytes(_glb(_triangle_doc(len(payload), indices=False), payload))
    mesh = cook_gltf_file(path)
    assert struct.unpack("<3H", mesh.index_data) == (0, 1, 2)


def test_interleaved_view_uses_byte_stride(tmp_path):
    interleaved = np.hstack([TRIANGLE, NORMALS]).astype("<f4").tobytes()
    doc = {
        "asset": {"version": "2.0"},
        "buffers": [{"byteLength": len(interleaved)}],
        "bufferViews": [
            {"buffer": 0, "byteOffset": 0, "byteLength": len(interleaved), "byteStride": 24}
        ],
        "accessors": [
            {"bufferView": 0, "componentType": 5126, "count": 3, "type": "VEC3"},
            {"bufferView": 0, "byteOffset": 12, "componentType": 5126, "count": 3, "type": "VEC3"},
        ],
        "meshes": [{"primitives": [{"attributes": {"POSITION": 0, "NORMAL": 1}}]}],
    }
    path = tmp_path / "interleaved.glb"
    path.write_bytes(_glb(doc, interleaved))
    mesh = cook_gltf_file(path)
    assert mesh.vertex_stride == 24
    vertices = np.frombuffer(mesh.vertex_data, dtype="<f4").reshape(3, 6)
    assert np.array_equal(vertices[:, :3], TRIANGLE)
    assert np.array_equal(vertices[:, 3:], NORMALS)


def test_external_buffer(tmp_path):
    payload = _indexed_payload()
    (tmp_path / "tri.bin").write_bytes(payload)
    doc = _triangle_doc(len(payload))
    doc["buffers"][0]["uri"] = "tri.bin"
    path = tmp_path / "tri.gltf"
    path.write_text(json.dumps(doc))
    blob, desc = cook_mesh(path)
    assert blob[:4] == b"AAS1"
    assert desc.index_format == 0


def test_missing_external_buffer_is_io_error(tmp_path):
    doc = _triangle_doc(42)
    doc["buffers"][0]["uri"] = "missing.bin"
    path = tmp_path / "tri.gltf"
    path.write_text(json.dumps(doc))
    with pytest.raises(SourceIOError) as exc:
        cook_gltf_file(path)
    assert exc.value.code == "E_IO"


def test_data_uri_rejected(tmp_path):
    doc = _triangle_doc(42)
    doc["buffers"][0]["uri"] = "data:application/octet-stream;base64,AAAA"
    with pytest.raises(SourceFormatError) as exc:
        load_gltf(json.dumps(doc).encode("utf-8"), tmp_path, binary=False)
    assert exc.value.code == "E_UNSUPPORTED"


def test_non_triangle_mode_rejected():
    payload = _indexed_payload()
    doc = load_gltf(_glb(_triangle_doc(len(payload), mode=1), payload), Path("."), binary=True)
    with pytest.raises(StructuralError) as exc:
        parse_gltf(doc)
    assert exc.value.code == "E_TOPOLOGY"


def test_accessor_past_end_of_buffer_rejected():
    payload = TRIANGLE.tobytes()[:24]
    doc = load_gltf(_glb(_triangle_doc(len(payload), indices=False), payload), Path("."), binary=True)
    with pytest.raises(SourceFormatError) as exc:
        parse_gltf(doc)
    assert exc.value.code == "E_ACCESSOR"


def test_wrong_accessor_type_rejected():
    payload = _indexed_payload()
    glb = _glb(
        _triangle_doc(len(payload), extra_attrs={"TEXCOORD_0": 0}), payload
    )
    with pytest.raises(SourceFormatError) as exc:
        parse_gltf(load_gltf(glb, Path("."), binary=True))
    assert exc.value.code == "E_ACCESSOR"


def test_split_glb_rejects_bad_magic():
    with pytest.raises(SourceFormatError) as exc:
        split_glb(b"NOPE" + b"\x00" * 20)
    assert exc.value.code == "E_FORMAT"
