"""Material template importer.

Source and cooked forms share one JSON shape::

    {
      "Name": "...",
      "Passes": {
        "<pass>": {
          "Shaders": {"vs": {...}, "ps": {...}, "cs": {...}},
          "Overrides": {"<param>": {"Type": "float3", "Value": [1, 2, 3]}}
        }
      },
      "Precompile_Variants": [["A", "B"], ...]
    }

A source stage names its shader by ``Asset`` (virtual path) or ``Uuid``; the
cooked stage always carries the resolved ``Uuid`` and ``Type: "Shader"``.
Overrides gain their FNV-1a-32 parameter ``Id``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Protocol, Tuple
from uuid import UUID

from ..errors import (
    E_FIELD,
    E_PARSE,
    E_TYPE,
    format_error,
    reference_error,
)
from ..registry.loader import get_ci
from ..registry.models import AssetDesc, AssetHandle, AssetType, MaterialDesc, asset_type_name
from ..registry.registry import AssetRegistry
from ..utils.hashing import fnv1a32
from ..utils.io import read_text
from ..utils.paths import normalize_asset_ref
from ..utils.uuids import format_uuid, try_parse_uuid

__all__ = [
    "MATERIAL_EXTENSIONS",
    "STAGES",
    "MaterialShaderRef",
    "MaterialOverride",
    "MaterialPass",
    "MaterialTemplate",
    "ShaderResolver",
    "PathMapResolver",
    "RegistryResolver",
    "parse_material",
    "resolve_material_dependencies",
    "write_cooked_material",
    "cook_material",
    "cook_material_file",
]

MATERIAL_EXTENSIONS = (".material",)
STAGES = ("vs", "ps", "cs")

# override type -> (min values, max values)
_OVERRIDE_ARITY = {
    "float": (1, 1),
    "scalar": (1, 1),
    "float2": (2, 2),
    "float3": (3, 3),
    "float4": (4, 4),
    "vector": (1, 4),
    "float4x4": (16, 16),
    "matrix": (16, 16),
}


@dataclass(slots=True)
class MaterialShaderRef:
    stage: str
    entry: str
    asset_path: str = ""
    uuid: Optional[UUID] = None
    handle: Optional[AssetHandle] = None


@dataclass(slots=True)
class MaterialOverride:
    name: str
    type: str
    values: List[float]
    is_scalar: bool = False

    @property
    def param_id(self) -> int:
        return fnv1a32(self.name)


@dataclass(slots=True)
class MaterialPass:
    name: str
    shaders: Dict[str, MaterialShaderRef] = field(default_factory=dict)
    overrides: List[MaterialOverride] = field(default_factory=list)


@dataclass(slots=True)
class MaterialTemplate:
    name: str = ""
    passes: List[MaterialPass] = field(default_factory=list)
    variants: List[List[str]] = field(default_factory=list)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _parse_stage(stage: str, value: Any, pass_name: str) -> MaterialShaderRef:
    ctx = {"pass": pass_name, "stage": stage}
    if not isinstance(value, dict):
        raise format_error(E_TYPE, "Shader stage must be an object", ctx)
    entry = get_ci(value, "Entry")
    if not isinstance(entry, str) or not entry:
        raise format_error(E_FIELD, "Shader stage missing Entry", ctx)
    ref = MaterialShaderRef(stage=stage, entry=entry)
    asset = get_ci(value, "Asset")
    uuid_text = get_ci(value, "Uuid")
    if isinstance(asset, str) and asset.strip():
        ref.asset_path = normalize_asset_ref(asset)
    elif uuid_text is not None:
        ref.uuid = try_parse_uuid(uuid_text)
        if ref.uuid is None:
            raise format_error(E_FIELD, f"Shader stage Uuid invalid: {uuid_text!r}", ctx)
    else:
        raise format_error(E_FIELD, "Shader stage needs Asset or Uuid", ctx)
    type_text = get_ci(value, "Type")
    if type_text is not None and (
        not isinstance(type_text, str) or type_text.strip().lower() != "shader"
    ):
        raise format_error(E_TYPE, f"Shader stage Type must be Shader, got {type_text!r}", ctx)
    return ref


def _parse_override(name: str, value: Any, pass_name: str) -> MaterialOverride:
    ctx = {"pass": pass_name, "param": name}
    if not name:
        raise format_error(E_FIELD, "Override parameter name is empty", {"pass": pass_name})
    if not isinstance(value, dict):
        raise format_error(E_TYPE, "Override must be an object", ctx)
    type_text = get_ci(value, "Type")
    if not isinstance(type_text, str):
        raise format_error(E_FIELD, "Override missing Type", ctx)
    arity = _OVERRIDE_ARITY.get(type_text.strip().lower())
    if arity is None:
        raise format_error(E_TYPE, f"Unknown override type {type_text!r}", ctx)
    raw = get_ci(value, "Value")
    if _is_number(raw):
        values, is_scalar = [float(raw)], True
    elif isinstance(raw, list) and all(_is_number(v) for v in raw):
        values, is_scalar = [float(v) for v in raw], False
    else:
        raise format_error(E_TYPE, "Override Value must be a number or number array", ctx)
    lo, hi = arity
    if not lo <= len(values) <= hi:
        raise format_error(
            E_FIELD,
            f"Override {type_text} expects {lo if lo == hi else f'{lo}..{hi}'} values, got {len(values)}",
            ctx,
        )
    return MaterialOverride(name=name, type=type_text, values=values, is_scalar=is_scalar)


def _parse_pass(name: str, value: Dict[str, Any]) -> MaterialPass:
    shaders = get_ci(value, "Shaders")
    if not isinstance(shaders, dict):
        raise format_error(E_FIELD, "Material Pass shaders missing", {"pass": name})
    mpass = MaterialPass(name=name)
    for stage in STAGES:
        stage_value = get_ci(shaders, stage)
        if stage_value is not None:
            mpass.shaders[stage] = _parse_stage(stage, stage_value, name)
    if "vs" not in mpass.shaders and "cs" not in mpass.shaders:
        raise format_error(E_FIELD, "Material Pass requires at least VS or CS", {"pass": name})
    overrides = get_ci(value, "Overrides")
    if overrides is not None:
        if not isinstance(overrides, dict):
            raise format_error(E_TYPE, "Overrides must be an object", {"pass": name})
        for param, entry in overrides.items():
            mpass.overrides.append(_parse_override(param, entry, name))
    return mpass


def parse_material(text: str) -> MaterialTemplate:
    try:
        root = json.loads(text)
    except json.JSONDecodeError as e:
        raise format_error(E_PARSE, f"Material JSON parse failed: {e}") from e
    if not isinstance(root, dict):
        raise format_error(E_TYPE, "Material JSON root must be an object")
    material = MaterialTemplate()
    name = get_ci(root, "Name")
    if isinstance(name, str):
        material.name = name
    passes = get_ci(root, "Passes")
    if not isinstance(passes, dict):
        raise format_error(E_FIELD, "Material Passes missing")
    for pass_name, pass_value in passes.items():
        if not pass_name:
            raise format_error(E_FIELD, "Material pass name is empty")
        if not isinstance(pass_value, dict):
            raise format_error(E_TYPE, "Material pass must be an object", {"pass": pass_name})
        material.passes.append(_parse_pass(pass_name, pass_value))
    if not material.passes:
        raise format_error(E_FIELD, "Material has no passes")
    variants = get_ci(root, "Precompile_Variants")
    if variants is not None:
        if not isinstance(variants, list):
            raise format_error(E_TYPE, "Precompile_Variants must be an array")
        for i, variant in enumerate(variants):
            if not isinstance(variant, list) or not all(isinstance(v, str) for v in variant):
                raise format_error(
                    E_TYPE, "Precompile variant must be an array of strings", {"variant": i}
                )
            material.variants.append([v for v in variant if v])
    return material


class ShaderResolver(Protocol):
    def resolve(self, ref: MaterialShaderRef) -> AssetHandle:
        """Return the shader handle for ``ref`` or raise ReferenceResolutionError."""
        ...


def _describe(ref: MaterialShaderRef) -> str:
    return ref.asset_path or (format_uuid(ref.uuid) if ref.uuid else "")


class PathMapResolver:
    """Resolve stage paths against a virtual path -> asset record map."""

    def __init__(self, assets_by_path: Mapping[str, AssetDesc]) -> None:
        self._by_path = {normalize_asset_ref(k): v for k, v in assets_by_path.items()}
        self._by_uuid = {v.uuid: v for v in assets_by_path.values()}

    def resolve(self, ref: MaterialShaderRef) -> AssetHandle:
        if ref.asset_path:
            record = self._by_path.get(ref.asset_path)
        else:
            record = self._by_uuid.get(ref.uuid)
        if record is None:
            raise reference_error(f"Material shader asset not found: {_describe(ref)}")
        if record.type != AssetType.SHADER:
            raise reference_error(
                f"Material shader asset invalid: {_describe(ref)}",
                {"type": asset_type_name(record.type)},
            )
        return record.handle


class RegistryResolver:
    """Resolve stages through an AssetRegistry, following one redirector hop."""

    def __init__(self, registry: AssetRegistry) -> None:
        self._registry = registry

    def resolve(self, ref: MaterialShaderRef) -> AssetHandle:
        reg = self._registry
        if ref.asset_path:
            handle = reg.find_by_path(ref.asset_path)
        else:
            handle = reg.find_by_uuid(ref.uuid)
            if not handle.is_valid:
                handle = reg.resolve_redirector(AssetHandle(ref.uuid, AssetType.SHADER))
        desc = reg.get_desc(handle) if handle.is_valid else None
        if desc is None:
            raise reference_error(f"Material shader asset not found: {_describe(ref)}")
        if desc.type != AssetType.SHADER:
            raise reference_error(
                f"Material shader asset invalid: {_describe(ref)}",
                {"type": asset_type_name(desc.type)},
            )
        return desc.handle


def resolve_material_dependencies(
    material: MaterialTemplate, resolver: ShaderResolver
) -> Tuple[List[AssetHandle], MaterialDesc]:
    deps: List[AssetHandle] = []
    seen = set()
    shader_count = 0
    for mpass in material.passes:
        for stage in STAGES:
            ref = mpass.shaders.get(stage)
            if ref is None:
                continue
            ref.handle = resolver.resolve(ref)
            shader_count += 1
            key = format_uuid(ref.handle.uuid)
            if key not in seen:
                seen.add(key)
                deps.append(ref.handle)
    desc = MaterialDesc(
        pass_count=len(material.passes),
        shader_count=shader_count,
        variant_count=len(material.variants),
    )
    return deps, desc


def _cooked_pass(mpass: MaterialPass) -> Dict[str, Any]:
    shaders: Dict[str, Any] = {}
    for stage in STAGES:
        ref = mpass.shaders.get(stage)
        if ref is None:
            continue
        if ref.handle is None:
            raise format_error(E_FIELD, f"Stage {stage} of pass {mpass.name} is unresolved")
        shaders[stage] = {
            "Uuid": format_uuid(ref.handle.uuid),
            "Type": asset_type_name(AssetType.SHADER),
            "Entry": ref.entry,
        }
    out: Dict[str, Any] = {"Shaders": shaders}
    if mpass.overrides:
        out["Overrides"] = {
            o.name: {
                "Type": o.type,
                "Value": o.values[0] if o.is_scalar else list(o.values),
                "Id": o.param_id,
            }
            for o in mpass.overrides
        }
    return out


def write_cooked_material(material: MaterialTemplate) -> str:
    doc: Dict[str, Any] = {}
    if material.name:
        doc["Name"] = material.name
    doc["Passes"] = {p.name: _cooked_pass(p) for p in material.passes}
    doc["Precompile_Variants"] = [list(v) for v in material.variants]
    return json.dumps(doc, indent=2) + "\n"


def cook_material(
    text: str, resolver: ShaderResolver
) -> Tuple[str, List[AssetHandle], MaterialDesc]:
    """Parse, resolve and re-emit a material template.

    Returns (cooked json text, deduplicated shader dependencies, summary desc).
    """
    material = parse_material(text)
    deps, desc = resolve_material_dependencies(material, resolver)
    return write_cooked_material(material), deps, desc


def cook_material_file(
    path: Path, resolver: ShaderResolver
) -> Tuple[str, List[AssetHandle], MaterialDesc]:
    return cook_material(read_text(Path(path)), resolver)
