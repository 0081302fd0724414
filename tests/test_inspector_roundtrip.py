import numpy as np

from assetcook.blob.inspector import inspect_blob, parse_blob_header, validate_blob
from assetcook.blob.packers import assemble_blob, pack_model_desc
from assetcook.importers.mesh import build_mesh_blob, finalize_mesh
from assetcook.importers.texture import DecodedImage, cook_texture_image


def _triangle_blob():
    mesh = finalize_mesh(
        np.array([[0, 0, 0], [1, 0, 0], [0, 1, 0]], dtype=np.float32),
        np.array([0, 1, 2]),
        normals=np.array([[0, 0, 1]] * 3, dtype=np.float32),
    )
    blob, _ = build_mesh_blob(mesh)
    return blob


def test_inspect_mesh_blob():
    info = inspect_blob(_triangle_blob())
    assert info["errors"] == []
    desc = info["desc"]
    assert desc["vertex_count"] == 3
    assert desc["vertex_stride"] == 24
    assert [a["aligned_offset"] for a in desc["attributes"]] == [0, 12]
    assert desc["submeshes"] == [
        {"index_start": 0, "index_count": 3, "base_vertex": 0, "material_slot": 0}
    ]
    assert desc["bounds_max"] == [1.0, 1.0, 0.0]
    assert validate_blob(info) == []


def test_inspect_texture_blob_from_path(tmp_path):
    image = DecodedImage(width=2, height=1, row_pitch=8, format=3, pixels=bytes(range(8)))
    blob, _ = cook_texture_image(image, srgb=False)
    path = tmp_path / "t.bin"
    path.write_bytes(blob)
    info = inspect_blob(path)
    assert info["header"]["srgb"] is False
    assert info["desc"]["row_pitch"] == 8
    assert validate_blob(info) == []


def test_truncated_blob_reported():
    blob = _triangle_blob()[:-4]
    info = inspect_blob(blob)
    assert info["desc"] is None
    assert any("truncated" in e for e in validate_blob(info))


def test_bad_magic_reported():
    blob = bytearray(_triangle_blob())
    blob[0:4] = b"XXXX"
    issues = validate_blob(inspect_blob(bytes(blob)))
    assert any("bad magic" in i for i in issues)


def test_model_table_out_of_range():
    blob = assemble_blob(9, pack_model_desc(2, 0, 0, 0, 0, 0), b"\x00" * 48)
    info = inspect_blob(blob)
    assert parse_blob_header(blob)["desc_size"] == 24
    assert "model nodes out of range" in validate_blob(info)
