"""High-level API for assetcook.

Cooking is per asset: one importer failure becomes a failed CookResult and
the remaining assets are still cooked. The registry is loaded once, read by
every importer, and only rewritten after all assets have been processed.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List
from uuid import UUID

from .blob.inspector import inspect_blob, validate_blob
from .config import CookConfig, load_config
from .errors import E_IO, E_PARSE, E_UNSUPPORTED, CookError, RegistryError, SourceIOError
from .importers import (
    RegistryResolver,
    cook_audio,
    cook_material_file,
    cook_mesh,
    cook_model,
    cook_shader,
    cook_texture,
)
from .logging import get_logger
from .registry import (
    AssetDesc,
    AssetHandle,
    AssetRegistry,
    AssetType,
    ValidationErrorRecord,
    asset_type_name,
    validate_registry_data,
    write_registry,
)
from .registry.models import AssetPayload
from .reporting import TaskStatus, get_reporter
from .scan import collect_assets, ensure_meta, meta_path_for, read_meta
from .utils.io import read_text, write_bytes
from .utils.paths import resolve_under
from .utils.uuids import format_uuid, try_parse_uuid

__all__ = [
    "ASSETS_DIR",
    "REGISTRY_RELATIVE_PATH",
    "CookOptions",
    "CookResult",
    "CookSummary",
    "ImportOptions",
    "ImportSummary",
    "output_suffix",
    "cook_asset",
    "map_sources",
    "cook_registry",
    "import_sources",
    "validate_registry_file",
    "inspect_blob_file",
]

ASSETS_DIR = "Assets"
REGISTRY_RELATIVE_PATH = Path("Registry") / "AssetRegistry.json"

_OUTPUT_SUFFIX = {
    AssetType.MATERIAL_TEMPLATE: ".json",
    AssetType.SHADER: ".shader",
}


@dataclass(slots=True)
class CookOptions:
    registry_path: Path
    output_root: Path
    source_root: Path | None = None
    config_path: Path | None = None
    # extra shader include dirs; searched before the config file's
    include_dirs: List[Path] = field(default_factory=list)


@dataclass(slots=True)
class CookResult:
    handle: AssetHandle
    ok: bool
    error: CookError | None = None
    cooked: bytes = b""
    desc: AssetPayload | None = None
    dependencies: List[AssetHandle] = field(default_factory=list)
    output_path: Path | None = None


@dataclass(slots=True)
class CookSummary:
    results: List[CookResult]
    registry_path: Path
    bytes_written: int = 0

    @property
    def cooked(self) -> int:
        return sum(1 for r in self.results if r.ok)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.ok)


@dataclass(slots=True)
class ImportOptions:
    source_root: Path
    registry_path: Path
    virtual_prefix: str = ""


@dataclass(slots=True)
class ImportSummary:
    registry_path: Path
    assets: int
    new: int


def output_suffix(asset_type: AssetType) -> str:
    return _OUTPUT_SUFFIX.get(asset_type, ".bin")


def cook_asset(
    desc: AssetDesc,
    source_path: Path,
    registry: AssetRegistry,
    config: CookConfig,
) -> CookResult:
    """Cook one registry entry from its source file; never raises CookError."""
    handle = desc.handle
    deps: List[AssetHandle] = []
    try:
        t = desc.type
        if t == AssetType.TEXTURE2D:
            cooked, payload = cook_texture(source_path, config.default_srgb)
        elif t == AssetType.MESH:
            cooked, payload = cook_mesh(source_path)
        elif t == AssetType.AUDIO:
            cooked, payload = cook_audio(source_path)
        elif t == AssetType.MODEL:
            cooked, payload = cook_model(source_path)
        elif t == AssetType.SHADER:
            text, payload = cook_shader(source_path, config.include_dirs)
            cooked = text.encode("utf-8")
        elif t == AssetType.MATERIAL_TEMPLATE:
            text, deps, payload = cook_material_file(source_path, RegistryResolver(registry))
            cooked = text.encode("utf-8")
        else:
            raise CookError(
                E_UNSUPPORTED, f"No importer for asset type {asset_type_name(t)}"
            )
    except CookError as e:
        get_logger().error("%s (%s): %s", desc.virtual_path, source_path.name, e)
        return CookResult(handle=handle, ok=False, error=e)
    get_logger().debug(
        "cooked %s -> %d bytes, %d deps", desc.virtual_path, len(cooked), len(deps)
    )
    return CookResult(handle=handle, ok=True, cooked=cooked, desc=payload, dependencies=deps)


def map_sources(
    source_root: Path, registry: AssetRegistry, virtual_prefix: str = ""
) -> Dict[UUID, Path]:
    """Map registry uuids to source files via ``.meta`` sidecars, then by path."""
    sources: Dict[UUID, Path] = {}
    by_vpath: Dict[str, Path] = {}
    for record in collect_assets(source_root, virtual_prefix):
        by_vpath.setdefault(record.virtual_path, record.source_path)
        meta_path = meta_path_for(record.source_path)
        if not meta_path.is_file():
            continue
        meta = read_meta(meta_path)
        uid = try_parse_uuid(meta.get("Uuid"))
        if uid is None:
            continue
        sources[uid] = record.source_path
        rel = meta.get("SourcePath")
        if isinstance(rel, str) and rel:
            try:
                candidate = resolve_under(source_root, rel)
            except ValueError:
                get_logger().warning("%s: SourcePath escapes source root", meta_path.name)
                continue
            if candidate.is_file():
                sources[uid] = candidate
    for desc in registry:
        if desc.uuid not in sources and desc.virtual_path in by_vpath:
            sources[desc.uuid] = by_vpath[desc.virtual_path]
    return sources


def _cook_order(desc: AssetDesc) -> int:
    # materials resolve shaders through the registry, so they go last
    if desc.type == AssetType.SHADER:
        return 0
    if desc.type == AssetType.MATERIAL_TEMPLATE:
        return 2
    return 1


def _resolve_config(options: CookOptions) -> CookConfig:
    config = load_config(options.config_path) if options.config_path else CookConfig()
    return config.with_overrides(
        source_root=options.source_root,
        output_root=options.output_root,
        include_dirs=options.include_dirs,
    )


def cook_registry(options: CookOptions) -> CookSummary:
    logger = get_logger()
    rep = get_reporter()
    config = _resolve_config(options)
    registry = AssetRegistry()
    if not registry.load_from_json_file(options.registry_path):
        raise RegistryError(E_PARSE, registry.last_error, {"path": str(options.registry_path)})
    source_root = Path(config.source_root or Path(options.registry_path).parent)
    output_root = Path(config.output_root or options.output_root)
    sources = map_sources(source_root, registry, config.virtual_prefix)

    ordered = sorted(registry.assets, key=_cook_order)
    results: List[CookResult] = []
    bytes_written = 0
    rep.start_task("cook.assets", "Cook assets", total=len(ordered))
    for desc in ordered:
        source = sources.get(desc.uuid)
        if source is None:
            err = SourceIOError(
                E_IO, f"No source file for {desc.virtual_path}", {"uuid": format_uuid(desc.uuid)}
            )
            logger.error("%s", err)
            result = CookResult(handle=desc.handle, ok=False, error=err)
        else:
            result = cook_asset(desc, source, registry, config)
        if result.ok:
            relative = f"{ASSETS_DIR}/{format_uuid(desc.uuid)}{output_suffix(desc.type)}"
            result.output_path = output_root / relative
            bytes_written += write_bytes(result.output_path, result.cooked)
            registry.add_asset(
                AssetDesc(
                    handle=desc.handle,
                    virtual_path=desc.virtual_path,
                    cooked_path=relative,
                    dependencies=list(result.dependencies),
                    payload=result.desc,
                )
            )
        results.append(result)
        rep.advance("cook.assets", current_item=desc.virtual_path)

    registry_out = output_root / REGISTRY_RELATIVE_PATH
    write_registry(registry, registry_out)
    summary = CookSummary(results=results, registry_path=registry_out, bytes_written=bytes_written)
    rep.end_task(
        "cook.assets",
        TaskStatus.FAILED if summary.failed else TaskStatus.SUCCESS,
        assets=len(results),
        cooked=summary.cooked,
        failed=summary.failed,
        bytes=bytes_written,
    )
    rep.status(
        "Cook summary: "
        + f"assets={len(results)} cooked={summary.cooked} failed={summary.failed} bytes={bytes_written}"
    )
    return summary


def import_sources(options: ImportOptions) -> ImportSummary:
    """Scan a source tree, assign identities and write the registry file."""
    rep = get_reporter()
    previous = AssetRegistry()
    if Path(options.registry_path).is_file() and not previous.load_from_json_file(
        options.registry_path
    ):
        raise RegistryError(E_PARSE, previous.last_error, {"path": str(options.registry_path)})

    registry = AssetRegistry()
    for r in previous.redirectors:
        registry.add_redirector(r)
    new = 0
    records = collect_assets(options.source_root, options.virtual_prefix)
    rep.start_task("import.scan", "Import sources", total=len(records))
    for record in records:
        ensure_meta(record)
        known = previous.get_desc(AssetHandle(record.uuid))
        if known is not None and known.type == record.asset_type:
            desc = AssetDesc(
                handle=known.handle,
                virtual_path=record.virtual_path,
                cooked_path=known.cooked_path,
                dependencies=list(known.dependencies),
                payload=known.payload,
            )
        else:
            new += 1
            desc = AssetDesc(
                handle=AssetHandle(record.uuid, record.asset_type),
                virtual_path=record.virtual_path,
            )
        registry.add_asset(desc)
        rep.advance("import.scan", current_item=record.virtual_path)
    write_registry(registry, options.registry_path)
    rep.end_task("import.scan", TaskStatus.SUCCESS, assets=len(records))
    rep.status(f"Import summary: assets={len(records)} new={new}")
    return ImportSummary(registry_path=Path(options.registry_path), assets=len(records), new=new)


def validate_registry_file(path: str | Path) -> List[ValidationErrorRecord]:
    try:
        data: Any = json.loads(read_text(Path(path)))
    except SourceIOError as e:
        return [ValidationErrorRecord(e.code, e.message, str(path))]
    except json.JSONDecodeError as e:
        return [ValidationErrorRecord(E_PARSE, f"Invalid JSON: {e}", str(path))]
    return validate_registry_data(data)


def inspect_blob_file(path: str | Path) -> Dict[str, Any]:
    """Decode a cooked blob and attach its validation issues."""
    info = inspect_blob(Path(path))
    info["issues"] = validate_blob(info)
    return info