"""assetcook: offline asset cooking into self-describing AAS1 blobs."""

from .api import (
    CookOptions,
    CookResult,
    CookSummary,
    ImportOptions,
    cook_asset,
    cook_registry,
    import_sources,
    inspect_blob_file,
    validate_registry_file,
)
from .config import CookConfig, load_config
from .errors import CookError
from .registry import AssetHandle, AssetRegistry, AssetType

__version__ = "0.1.0"

__all__ = [
    "CookOptions",
    "CookResult",
    "CookSummary",
    "ImportOptions",
    "cook_asset",
    "cook_registry",
    "import_sources",
    "inspect_blob_file",
    "validate_registry_file",
    "CookConfig",
    "load_config",
    "CookError",
    "AssetHandle",
    "AssetRegistry",
    "AssetType",
    "__version__",
]
