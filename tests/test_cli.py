import json
import struct

from PIL import Image

from assetcook.blob.packers import assemble_blob, pack_texture_desc
from assetcook.cli import main
from assetcook.registry import AssetType


def _sources(root):
    (root / "shaders").mkdir(parents=True)
    (root / "shaders" / "flat.hlsl").write_text("void PSMain() {}\n")
    Image.new("L", (4, 4), 7).save(root / "mask.png")
    return root


def test_import_then_cook(tmp_path, capsys):
    src = _sources(tmp_path / "src")
    registry = tmp_path / "AssetRegistry.json"
    assert main(["-r", "plain", "import", str(src), str(registry), "--prefix", "Game"]) == 0
    assert main(["-r", "plain", "cook", str(registry), str(tmp_path / "out"), "--source-root", str(src)]) == 0
    err = capsys.readouterr().err
    assert "Import summary: assets=2 new=2" in err
    assert "Cook summary: assets=2 cooked=2 failed=0" in err
    cooked = json.loads((tmp_path / "out" / "Registry" / "AssetRegistry.json").read_text())
    assert sorted(a["VirtualPath"] for a in cooked["Assets"]) == ["game/mask", "game/shaders/flat"]


def test_cook_exit_code_on_failed_asset(tmp_path):
    src = _sources(tmp_path / "src")
    (src / "bad.obj").write_text("v 0 0 0\n")
    registry = tmp_path / "AssetRegistry.json"
    assert main(["-r", "silent", "import", str(src), str(registry)]) == 0
    assert main(["-r", "silent", "cook", str(registry), str(tmp_path / "out"), "--source-root", str(src)]) == 1


def test_cook_with_unreadable_registry_exits_2(tmp_path):
    registry = tmp_path / "AssetRegistry.json"
    registry.write_text("[")
    assert main(["-r", "silent", "cook", str(registry), str(tmp_path / "out")]) == 2


def test_validate_exit_codes(tmp_path, capsys):
    good = tmp_path / "good.json"
    good.write_text(json.dumps({"SchemaVersion": 1, "Assets": []}))
    assert main(["-r", "plain", "validate", str(good)]) == 0
    bad = tmp_path / "bad.json"
    bad.write_text(json.dumps({"SchemaVersion": 1, "Assets": [{"Type": "Mesh"}]}))
    assert main(["-r", "plain", "validate", str(bad)]) == 1
    err = capsys.readouterr().err
    assert "Validate summary: errors=0 file=good.json" in err
    assert "E_FIELD:Assets[0]" in err


def _texture_blob():
    desc = pack_texture_desc(1, 1, 1, 1, 1)
    return assemble_blob(AssetType.TEXTURE2D, desc, b"\x80", 1)


def test_inspect_json(tmp_path, capsys):
    blob = tmp_path / "tex.bin"
    blob.write_bytes(_texture_blob())
    assert main(["-r", "silent", "inspect", str(blob), "--json"]) == 0
    info = json.loads(capsys.readouterr().out)
    assert info["header"]["type"] == 1
    assert info["header"]["srgb"] is True
    assert info["issues"] == []


def test_inspect_summary_and_issues(tmp_path, capsys):
    blob = tmp_path / "tex.bin"
    data = bytearray(_texture_blob())
    struct.pack_into("<I", data, 12, 99)
    blob.write_bytes(bytes(data))
    assert main(["-r", "plain", "inspect", str(blob)]) == 1
    err = capsys.readouterr().err
    assert "Blob summary: type=Texture2D desc_size=20 data_size=99 srgb=1 issues=1" in err


def test_json_reporter_emits_summary_event(tmp_path, capsys):
    good = tmp_path / "good.json"
    good.write_text(json.dumps({"SchemaVersion": 1, "Assets": []}))
    assert main(["-r", "json", "validate", str(good)]) == 0
    events = [json.loads(line) for line in capsys.readouterr().out.splitlines()]
    summary = [e for e in events if e["event"] == "summary"]
    assert summary[0]["summary_type"] == "validate"
    assert summary[0]["errors"] == "0"
