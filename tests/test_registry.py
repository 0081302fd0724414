import json
import uuid

import pytest

from assetcook.registry import (
    AssetDesc,
    AssetHandle,
    AssetRedirector,
    AssetRegistry,
    AssetType,
    INVALID_HANDLE,
    MeshDesc,
    TextureDesc,
    serialize_registry,
)

TEX = "11111111-1111-1111-1111-111111111111"
MESH = "22222222-2222-2222-2222-222222222222"
SHADER = "33333333-3333-3333-3333-333333333333"
OLD = "44444444-4444-4444-4444-444444444444"
GONE = "55555555-5555-5555-5555-555555555555"


def _registry_doc():
    return {
        "SchemaVersion": 1,
        "Assets": [
            {
                "Uuid": TEX,
                "Type": "texture2d",
                "VirtualPath": "Foo/Bar.png",
                "CookedPath": "Assets/tex.bin",
                "Desc": {"Width": 4, "Height": 2, "MipCount": 1, "Format": 3, "SRGB": False},
            },
            {
                "Uuid": MESH,
                "Type": "Mesh",
                "VirtualPath": "meshes/cube",
                "Dependencies": [TEX, {"Uuid": SHADER, "Type": "Shader"}],
                "Desc": {"VertexFormat": 7, "IndexFormat": 0, "SubMeshCount": 1},
            },
            {"Uuid": SHADER, "Type": "SHADER", "VirtualPath": "shaders/basic"},
        ],
        "Redirectors": [
            {"OldUuid": OLD, "NewUuid": MESH, "OldVirtualPath": "Meshes/OldCube"},
            {"OldUuid": GONE, "NewUuid": OLD, "OldVirtualPath": "meshes/older"},
        ],
    }


def _load(doc=None) -> AssetRegistry:
    reg = AssetRegistry()
    assert reg.load_from_json_text(json.dumps(doc or _registry_doc())), reg.last_error
    return reg


def _tuples(reg: AssetRegistry):
    return {
        (a.uuid, a.type, a.virtual_path, tuple(d.uuid for d in a.dependencies))
        for a in reg.assets
    }


def test_load_roundtrip_preserves_identity():
    reg = _load()
    again = AssetRegistry()
    assert again.load_from_json_text(serialize_registry(reg))
    assert _tuples(again) == _tuples(reg)
    assert len(again.redirectors) == 2


def test_payload_fields_read():
    reg = _load()
    desc = reg.get_desc(AssetHandle(uuid.UUID(TEX), AssetType.TEXTURE2D))
    assert desc.payload == TextureDesc(width=4, height=2, mip_count=1, format=3, srgb=False)
    assert desc.cooked_path == "Assets/tex.bin"
    mesh = reg.get_desc(AssetHandle(uuid.UUID(MESH)))
    assert mesh.payload == MeshDesc(vertex_format=7, index_format=0, submesh_count=1)
    assert [d.type for d in mesh.dependencies] == [AssetType.UNKNOWN, AssetType.SHADER]


def test_find_by_path_case_insensitive():
    reg = _load()
    a = reg.find_by_path("Foo/Bar.png")
    b = reg.find_by_path("foo/bar.PNG")
    assert a.is_valid
    assert a == b
    assert a.type == AssetType.TEXTURE2D
    assert reg.find_by_path("foo\\bar.png") == a


def test_find_by_path_through_redirector():
    reg = _load()
    handle = reg.find_by_path("meshes/oldcube")
    assert handle.uuid == uuid.UUID(MESH)
    assert handle.type == AssetType.MESH
    assert reg.find_by_path("missing/path") == INVALID_HANDLE


def test_find_by_uuid_nil_is_invalid():
    reg = _load()
    assert not reg.find_by_uuid(uuid.UUID(int=0)).is_valid
    assert reg.find_by_uuid(uuid.UUID(SHADER)).type == AssetType.SHADER


def test_get_desc_unknown_type_is_wildcard():
    reg = _load()
    uid = uuid.UUID(SHADER)
    assert reg.get_desc(AssetHandle(uid)) is not None
    assert reg.get_desc(AssetHandle(uid, AssetType.SHADER)) is not None
    assert reg.get_desc(AssetHandle(uid, AssetType.MESH)) is None


def test_get_dependencies():
    reg = _load()
    deps = reg.get_dependencies(AssetHandle(uuid.UUID(MESH), AssetType.MESH))
    assert [d.uuid for d in deps] == [uuid.UUID(TEX), uuid.UUID(SHADER)]
    assert reg.get_dependencies(AssetHandle(uuid.UUID(OLD))) is None


def test_resolve_redirector_live_target_picks_real_type():
    reg = _load()
    resolved = reg.resolve_redirector(AssetHandle(uuid.UUID(OLD), AssetType.TEXTURE2D))
    assert resolved.uuid == uuid.UUID(MESH)
    assert resolved.type == AssetType.MESH


def test_resolve_redirector_missing_target_keeps_caller_type():
    reg = AssetRegistry()
    reg.add_redirector(AssetRedirector(uuid.UUID(OLD), uuid.UUID(GONE), "a/b"))
    resolved = reg.resolve_redirector(AssetHandle(uuid.UUID(OLD), AssetType.AUDIO))
    assert resolved.is_valid
    assert resolved.uuid == uuid.UUID(GONE)
    assert resolved.type == AssetType.AUDIO


def test_resolve_redirector_follows_single_hop():
    reg = _load()
    # GONE -> OLD -> MESH; only the first hop is taken
    resolved = reg.resolve_redirector(AssetHandle(uuid.UUID(GONE), AssetType.MESH))
    assert resolved.uuid == uuid.UUID(OLD)
    assert resolved.type == AssetType.MESH


def test_resolve_redirector_without_entry_returns_input():
    reg = _load()
    h = AssetHandle(uuid.UUID(TEX), AssetType.TEXTURE2D)
    assert reg.resolve_redirector(h) is h


def test_duplicate_uuid_last_wins_in_place():
    doc = _registry_doc()
    doc["Assets"].append({"Uuid": TEX.upper(), "Type": "Texture2D", "VirtualPath": "tex/replaced"})
    reg = _load(doc)
    assert len(reg) == 3
    assert reg.assets[0].virtual_path == "tex/replaced"
    assert not reg.find_by_path("foo/bar.png").is_valid


def test_add_asset_replaces_same_uuid():
    reg = _load()
    reg.add_asset(
        AssetDesc(handle=AssetHandle(uuid.UUID(SHADER), AssetType.SHADER), virtual_path="Shaders/New")
    )
    assert len(reg) == 3
    assert reg.find_by_path("shaders/new").uuid == uuid.UUID(SHADER)


@pytest.mark.parametrize(
    "doc, fragment",
    [
        ({"Assets": []}, "SchemaVersion"),
        ({"SchemaVersion": 1}, "Assets"),
        ({"SchemaVersion": 1, "Assets": [{"Type": "Mesh", "VirtualPath": "a"}]}, "Uuid"),
        ({"SchemaVersion": 1, "Assets": [{"Uuid": TEX, "VirtualPath": "a"}]}, "Type"),
        ({"SchemaVersion": 1, "Assets": [{"Uuid": TEX, "Type": "Mesh"}]}, "VirtualPath"),
        ({"SchemaVersion": 1, "Assets": [{"Uuid": TEX, "Type": "Bogus", "VirtualPath": "a"}]}, "Type"),
        ({"SchemaVersion": 1, "Assets": [{"Uuid": TEX + "\n", "Type": "Texture2D", "VirtualPath": "a"}]}, "Uuid"),
        ({"SchemaVersion": 1, "Assets": [], "Redirectors": {}}, "Redirectors"),
    ],
)
def test_load_failure_keeps_previous_state(doc, fragment):
    reg = _load()
    assert not reg.load_from_json_text(json.dumps(doc))
    assert fragment in reg.last_error
    assert len(reg) == 3


def test_load_rejects_bad_json():
    reg = AssetRegistry()
    assert not reg.load_from_json_text("{not json")
    assert reg.last_error


def test_load_from_missing_file(tmp_path):
    reg = AssetRegistry()
    assert not reg.load_from_json_file(tmp_path / "nope.json")
    assert "nope.json" in reg.last_error


def test_handle_equality_ignores_type():
    uid = uuid.UUID(TEX)
    assert AssetHandle(uid, AssetType.MESH) == AssetHandle(uid, AssetType.TEXTURE2D)
    assert len({AssetHandle(uid, AssetType.MESH), AssetHandle(uid)}) == 1
    assert not INVALID_HANDLE.is_valid


def test_asset_desc_rejects_mismatched_payload():
    with pytest.raises(TypeError):
        AssetDesc(
            handle=AssetHandle(uuid.UUID(TEX), AssetType.TEXTURE2D),
            virtual_path="x",
            payload=MeshDesc(),
        )
