import struct

import pytest

from assetcook.blob.inspector import inspect_blob, validate_blob
from assetcook.errors import SourceFormatError, StructuralError
from assetcook.importers.mesh import build_mesh_blob, cook_mesh, parse_obj, parse_obj_index

QUAD = """\
# unit quad
v 0 0 0
v 1 0 0
v 1 1 0
v 0 1 0
vt 0 0
vt 1 0
vt 1 1
vt 0 1
vn 0 0 1
f 1/1/1 2/2/1 3/3/1 4/4/1
"""


def test_quad_is_fan_triangulated():
    mesh = parse_obj(QUAD)
    assert mesh.vertex_count == 4
    assert mesh.index_count == 6
    assert list(struct.unpack("<6H", mesh.index_data)) == [0, 1, 2, 0, 2, 3]
    assert len(mesh.submeshes) == 1
    assert (mesh.submeshes[0].index_start, mesh.submeshes[0].index_count) == (0, 6)


def test_attribute_layout_position_normal_uv():
    mesh = parse_obj(QUAD)
    assert [a.semantic for a in mesh.attributes] == [0, 1, 3]
    assert [a.aligned_offset for a in mesh.attributes] == [0, 12, 24]
    assert mesh.vertex_stride == 32
    assert mesh.vertex_format_mask == 0b111
    assert mesh.bounds_min == (0.0, 0.0, 0.0)
    assert mesh.bounds_max == (1.0, 1.0, 0.0)


def test_positions_only_layout():
    mesh = parse_obj("v 0 0 0\nv 1 0 0\nv 0 1 0\nf 1 2 3\n")
    assert mesh.vertex_stride == 12
    assert mesh.vertex_format_mask == 1
    assert len(mesh.attributes) == 1


def test_shared_corners_are_welded():
    text = "v 0 0 0\nv 1 0 0\nv 0 1 0\nv 1 1 0\nf 1 2 3\nf 3 2 4\n"
    mesh = parse_obj(text)
    assert mesh.vertex_count == 4
    assert list(struct.unpack("<6H", mesh.index_data)) == [0, 1, 2, 2, 1, 3]


def test_negative_indices_count_from_end():
    text = "v 0 0 0\nv 1 0 0\nv 0 1 0\nf -3 -2 -1\n"
    mesh = parse_obj(text)
    assert list(struct.unpack("<3H", mesh.index_data)) == [0, 1, 2]


def test_parse_obj_index_forms():
    assert parse_obj_index("2", 3, 0, 0) == (1, -1, -1)
    assert parse_obj_index("2/1", 3, 2, 0) == (1, 0, -1)
    assert parse_obj_index("2//1", 3, 0, 1) == (1, -1, 0)
    assert parse_obj_index("-1/-1/-1", 3, 2, 1) == (2, 1, 0)


def test_face_with_missing_position_fails():
    with pytest.raises(StructuralError) as exc:
        parse_obj("v 0 0 0\nf 1 2 3\n")
    assert exc.value.code == "E_RANGE"


def test_bad_token_fails():
    with pytest.raises(SourceFormatError) as exc:
        parse_obj("v 0 0 0\nv 1 0 0\nv 0 1 0\nf 1 x 3\n")
    assert exc.value.code == "E_PARSE"


def test_no_faces_fails():
    with pytest.raises(StructuralError) as exc:
        parse_obj("v 0 0 0\nv 1 0 0\n")
    assert exc.value.code == "E_EMPTY"


def test_degenerate_faces_skipped():
    mesh = parse_obj("v 0 0 0\nv 1 0 0\nv 0 1 0\nf 1 2\nf 1 2 3\n")
    assert mesh.index_count == 3


def test_cook_is_byte_identical(tmp_path):
    src = tmp_path / "quad.obj"
    src.write_text(QUAD)
    first, desc = cook_mesh(src)
    second, _ = cook_mesh(src)
    assert first == second
    assert desc.submesh_count == 1
    assert desc.index_format == 0
    assert validate_blob(inspect_blob(first)) == []


def test_blob_section_offsets():
    blob, _ = build_mesh_blob(parse_obj(QUAD))
    desc = inspect_blob(blob)["desc"]
    assert desc["attributes_offset"] == 0
    assert desc["submeshes_offset"] == 3 * 28
    assert desc["vertex_data_offset"] == 3 * 28 + 16
    assert desc["index_data_offset"] == desc["vertex_data_offset"] + 4 * 32
    assert desc["index_data_size"] == 12
