import pytest

from assetcook.errors import SourceFormatError
from assetcook.importers.shader import (
    LANGUAGE_HLSL,
    LANGUAGE_SLANG,
    cook_shader,
    expand_includes,
    resolve_include,
)


def test_includes_are_inlined_in_order(tmp_path):
    (tmp_path / "common.hlsli").write_text("float4 Tint;\n")
    (tmp_path / "main.hlsl").write_text('#include "common.hlsli"\nfloat4 main() : SV_Target { return Tint; }\n')
    text = expand_includes(tmp_path / "main.hlsl")
    assert text == "float4 Tint;\n\nfloat4 main() : SV_Target { return Tint; }\n"


def test_nested_includes(tmp_path):
    (tmp_path / "a.hlsli").write_text('#include "b.hlsli"\nA\n')
    (tmp_path / "b.hlsli").write_text("B\n")
    (tmp_path / "main.hlsl").write_text('#include "a.hlsli"\nMAIN\n')
    assert expand_includes(tmp_path / "main.hlsl") == "B\n\nA\n\nMAIN\n"


def test_angle_brackets_search_include_dirs(tmp_path):
    shared = tmp_path / "shared"
    shared.mkdir()
    (shared / "lighting.hlsli").write_text("LIGHT\n")
    src = tmp_path / "src"
    src.mkdir()
    (src / "main.hlsl").write_text("#include <lighting.hlsli>\n")
    assert expand_includes(src / "main.hlsl", [shared]) == "LIGHT\n\n"


def test_including_dir_wins_over_include_dirs(tmp_path):
    shared = tmp_path / "shared"
    shared.mkdir()
    (shared / "x.hlsli").write_text("SHARED\n")
    (tmp_path / "x.hlsli").write_text("LOCAL\n")
    found = resolve_include("x.hlsli", tmp_path, [shared])
    assert found == (tmp_path / "x.hlsli").resolve()


def test_same_file_included_twice_is_not_a_cycle(tmp_path):
    (tmp_path / "c.hlsli").write_text("C\n")
    (tmp_path / "main.hlsl").write_text('#include "c.hlsli"\n#include "c.hlsli"\n')
    assert expand_includes(tmp_path / "main.hlsl") == "C\n\nC\n\n"


def test_cycle_detected(tmp_path):
    (tmp_path / "a.hlsli").write_text('#include "b.hlsli"\n')
    (tmp_path / "b.hlsli").write_text('#include "a.hlsli"\n')
    with pytest.raises(SourceFormatError) as exc:
        expand_includes(tmp_path / "a.hlsli")
    assert exc.value.code == "E_CYCLE"
    assert "a.hlsli -> b.hlsli -> a.hlsli" in exc.value.message


def test_self_include_is_a_cycle(tmp_path):
    (tmp_path / "self.hlsl").write_text('#include "self.hlsl"\n')
    with pytest.raises(SourceFormatError) as exc:
        expand_includes(tmp_path / "self.hlsl")
    assert exc.value.code == "E_CYCLE"


def test_missing_include(tmp_path):
    (tmp_path / "main.hlsl").write_text('#include "nope.hlsli"\n')
    with pytest.raises(SourceFormatError) as exc:
        expand_includes(tmp_path / "main.hlsl")
    assert exc.value.code == "E_INCLUDE"
    assert exc.value.context["line"] == 1


def test_language_from_extension(tmp_path):
    (tmp_path / "a.slang").write_text("S\n")
    (tmp_path / "b.hlsl").write_text("H\n")
    assert cook_shader(tmp_path / "a.slang")[1].language == LANGUAGE_SLANG
    assert cook_shader(tmp_path / "b.hlsl")[1].language == LANGUAGE_HLSL
