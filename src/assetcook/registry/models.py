"""Registry data model: asset types, handles, payload descriptions.

The per-type payload is a tagged union. ``AssetDesc.payload`` holds exactly
one of the ``*Desc`` dataclasses below, and which one is fixed by
``AssetDesc.handle.type`` (see ``PAYLOAD_TYPES``). Types without a payload
(Unknown, Redirector, MaterialInstance) carry ``None``.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, ClassVar, Dict, List, Optional, Tuple, Type, Union

from ..utils.paths import fold_virtual_path
from ..utils.uuids import NIL_UUID

__all__ = [
    "AssetType",
    "parse_asset_type",
    "asset_type_name",
    "AssetHandle",
    "INVALID_HANDLE",
    "TextureDesc",
    "MeshDesc",
    "MaterialDesc",
    "AudioDesc",
    "ScriptDesc",
    "ShaderDesc",
    "ModelDesc",
    "AssetPayload",
    "PAYLOAD_TYPES",
    "default_payload",
    "AssetDesc",
    "AssetRedirector",
]


class AssetType(IntEnum):
    UNKNOWN = 0
    TEXTURE2D = 1
    MESH = 2
    MATERIAL_TEMPLATE = 3
    AUDIO = 4
    SCRIPT = 5
    REDIRECTOR = 6
    MATERIAL_INSTANCE = 7
    SHADER = 8
    MODEL = 9


_TYPE_ALIASES: Dict[str, AssetType] = {
    "texture2d": AssetType.TEXTURE2D,
    "mesh": AssetType.MESH,
    "material": AssetType.MATERIAL_TEMPLATE,
    "materialtemplate": AssetType.MATERIAL_TEMPLATE,
    "materialinstance": AssetType.MATERIAL_INSTANCE,
    "shader": AssetType.SHADER,
    "audio": AssetType.AUDIO,
    "script": AssetType.SCRIPT,
    "redirector": AssetType.REDIRECTOR,
    "model": AssetType.MODEL,
}

_TYPE_NAMES: Dict[AssetType, str] = {
    AssetType.UNKNOWN: "Unknown",
    AssetType.TEXTURE2D: "Texture2D",
    AssetType.MESH: "Mesh",
    AssetType.MATERIAL_TEMPLATE: "MaterialTemplate",
    AssetType.AUDIO: "Audio",
    AssetType.SCRIPT: "Script",
    AssetType.REDIRECTOR: "Redirector",
    AssetType.MATERIAL_INSTANCE: "MaterialInstance",
    AssetType.SHADER: "Shader",
    AssetType.MODEL: "Model",
}


def parse_asset_type(text: object) -> AssetType:
    """Case-insensitive type name lookup; unrecognized text maps to UNKNOWN."""
    if not isinstance(text, str):
        return AssetType.UNKNOWN
    return _TYPE_ALIASES.get(text.strip().lower(), AssetType.UNKNOWN)


def asset_type_name(t: AssetType) -> str:
    return _TYPE_NAMES[AssetType(t)]


@dataclass(frozen=True, slots=True)
class AssetHandle:
    """Identity of an asset.

    Equality and hashing use the uuid only; ``type`` is advisory.
    """

    uuid: uuid.UUID = NIL_UUID
    type: AssetType = AssetType.UNKNOWN

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AssetHandle):
            return NotImplemented
        return self.uuid == other.uuid

    def __hash__(self) -> int:
        return hash(self.uuid)

    @property
    def is_valid(self) -> bool:
        return self.uuid != NIL_UUID

    def with_type(self, t: AssetType) -> "AssetHandle":
        return AssetHandle(self.uuid, t)

    def __str__(self) -> str:
        return f"{asset_type_name(self.type)}:{self.uuid}"


INVALID_HANDLE = AssetHandle()


class _Payload:
    # (json key, attribute, kind); kind is "u32", "f32", "bool" or "str"
    JSON_FIELDS: ClassVar[Tuple[Tuple[str, str, str], ...]] = ()

    def to_json(self) -> Dict[str, Any]:
        return {key: getattr(self, attr) for key, attr, _ in self.JSON_FIELDS}


@dataclass(slots=True)
class TextureDesc(_Payload):
    width: int = 0
    height: int = 0
    mip_count: int = 0
    format: int = 0
    srgb: bool = True

    JSON_FIELDS: ClassVar[Tuple[Tuple[str, str, str], ...]] = (
        ("Width", "width", "u32"),
        ("Height", "height", "u32"),
        ("MipCount", "mip_count", "u32"),
        ("Format", "format", "u32"),
        ("SRGB", "srgb", "bool"),
    )


@dataclass(slots=True)
class MeshDesc(_Payload):
    vertex_format: int = 0
    index_format: int = 0
    submesh_count: int = 0

    JSON_FIELDS: ClassVar[Tuple[Tuple[str, str, str], ...]] = (
        ("VertexFormat", "vertex_format", "u32"),
        ("IndexFormat", "index_format", "u32"),
        ("SubMeshCount", "submesh_count", "u32"),
    )


@dataclass(slots=True)
class MaterialDesc(_Payload):
    pass_count: int = 0
    shader_count: int = 0
    variant_count: int = 0

    JSON_FIELDS: ClassVar[Tuple[Tuple[str, str, str], ...]] = (
        ("PassCount", "pass_count", "u32"),
        ("ShaderCount", "shader_count", "u32"),
        ("VariantCount", "variant_count", "u32"),
    )


@dataclass(slots=True)
class AudioDesc(_Payload):
    codec: int = 0
    channels: int = 0
    sample_rate: int = 0
    duration: float = 0.0

    JSON_FIELDS: ClassVar[Tuple[Tuple[str, str, str], ...]] = (
        ("Codec", "codec", "u32"),
        ("Channels", "channels", "u32"),
        ("SampleRate", "sample_rate", "u32"),
        ("Duration", "duration", "f32"),
    )


@dataclass(slots=True)
class ScriptDesc(_Payload):
    assembly_path: str = ""
    type_name: str = ""

    JSON_FIELDS: ClassVar[Tuple[Tuple[str, str, str], ...]] = (
        ("AssemblyPath", "assembly_path", "str"),
        ("TypeName", "type_name", "str"),
    )


@dataclass(slots=True)
class ShaderDesc(_Payload):
    language: int = 0  # 0 = HLSL, 1 = Slang

    JSON_FIELDS: ClassVar[Tuple[Tuple[str, str, str], ...]] = (
        ("Language", "language", "u32"),
    )


@dataclass(slots=True)
class ModelDesc(_Payload):
    node_count: int = 0
    mesh_ref_count: int = 0
    material_slot_count: int = 0

    JSON_FIELDS: ClassVar[Tuple[Tuple[str, str, str], ...]] = (
        ("NodeCount", "node_count", "u32"),
        ("MeshRefCount", "mesh_ref_count", "u32"),
        ("MaterialSlotCount", "material_slot_count", "u32"),
    )


AssetPayload = Union[
    TextureDesc, MeshDesc, MaterialDesc, AudioDesc, ScriptDesc, ShaderDesc, ModelDesc
]

PAYLOAD_TYPES: Dict[AssetType, Type[_Payload]] = {
    AssetType.TEXTURE2D: TextureDesc,
    AssetType.MESH: MeshDesc,
    AssetType.MATERIAL_TEMPLATE: MaterialDesc,
    AssetType.AUDIO: AudioDesc,
    AssetType.SCRIPT: ScriptDesc,
    AssetType.SHADER: ShaderDesc,
    AssetType.MODEL: ModelDesc,
}


def default_payload(t: AssetType) -> Optional[AssetPayload]:
    cls = PAYLOAD_TYPES.get(t)
    return cls() if cls is not None else None  # type: ignore[return-value]


@dataclass(slots=True)
class AssetDesc:
    handle: AssetHandle
    virtual_path: str
    cooked_path: str = ""
    dependencies: List[AssetHandle] = field(default_factory=list)
    payload: Optional[AssetPayload] = None

    def __post_init__(self) -> None:
        self.virtual_path = fold_virtual_path(self.virtual_path)
        expected = PAYLOAD_TYPES.get(self.handle.type)
        if self.payload is None:
            self.payload = default_payload(self.handle.type)
        elif expected is None or not isinstance(self.payload, expected):
            raise TypeError(
                f"{type(self.payload).__name__} payload does not match "
                f"asset type {asset_type_name(self.handle.type)}"
            )

    @property
    def uuid(self) -> uuid.UUID:
        return self.handle.uuid

    @property
    def type(self) -> AssetType:
        return self.handle.type


@dataclass(slots=True)
class AssetRedirector:
    old_uuid: uuid.UUID
    new_uuid: uuid.UUID
    old_virtual_path: str

    def __post_init__(self) -> None:
        self.old_virtual_path = fold_virtual_path(self.old_virtual_path)
