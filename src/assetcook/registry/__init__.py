from .models import (
    AssetType,
    AssetHandle,
    AssetDesc,
    AssetRedirector,
    AudioDesc,
    INVALID_HANDLE,
    MaterialDesc,
    MeshDesc,
    ModelDesc,
    ScriptDesc,
    ShaderDesc,
    TextureDesc,
    asset_type_name,
    parse_asset_type,
)
from .registry import AssetRegistry
from .writer import registry_to_dict, serialize_registry, write_registry
from .validator import ValidationErrorRecord, validate_registry_data

__all__ = [
    "AssetType",
    "AssetHandle",
    "AssetDesc",
    "AssetRedirector",
    "AudioDesc",
    "INVALID_HANDLE",
    "MaterialDesc",
    "MeshDesc",
    "ModelDesc",
    "ScriptDesc",
    "ShaderDesc",
    "TextureDesc",
    "asset_type_name",
    "parse_asset_type",
    "AssetRegistry",
    "registry_to_dict",
    "serialize_registry",
    "write_registry",
    "ValidationErrorRecord",
    "validate_registry_data",
]
