"""Cook configuration loading (JSON/YAML)."""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .errors import E_FIELD, E_PARSE, E_TYPE, format_error
from .utils.io import read_text

__all__ = ["CookConfig", "load_config", "config_from_dict"]


@dataclass(slots=True)
class CookConfig:
    source_root: Optional[Path] = None
    output_root: Optional[Path] = None
    # shader include fallbacks, searched in order after the includer's dir
    include_dirs: List[Path] = field(default_factory=list)
    default_srgb: bool = True
    virtual_prefix: str = ""

    def with_overrides(
        self,
        *,
        source_root: Optional[Path] = None,
        output_root: Optional[Path] = None,
        include_dirs: Sequence[Path] = (),
    ) -> "CookConfig":
        """Command line values win; extra include dirs go before file ones."""
        return replace(
            self,
            source_root=source_root if source_root is not None else self.source_root,
            output_root=output_root if output_root is not None else self.output_root,
            include_dirs=[Path(d) for d in include_dirs] + list(self.include_dirs),
        )


_PATH_KEYS = ("source_root", "output_root")


def _as_path(value: Any, key: str, base_dir: Path) -> Path:
    if not isinstance(value, str) or not value:
        raise format_error(E_TYPE, f"Config '{key}' must be a non-empty string")
    p = Path(value)
    return p if p.is_absolute() else (base_dir / p)


def config_from_dict(data: Any, base_dir: Path = Path(".")) -> CookConfig:
    if not isinstance(data, dict):
        raise format_error(E_TYPE, "Root of cook config must be a mapping")
    known = {f.name for f in fields(CookConfig)}
    unknown = sorted(str(k) for k in data if k not in known)
    if unknown:
        raise format_error(E_FIELD, f"Unknown config keys: {', '.join(unknown)}")
    kwargs: Dict[str, Any] = {}
    for key in _PATH_KEYS:
        if data.get(key) is not None:
            kwargs[key] = _as_path(data[key], key, base_dir)
    includes = data.get("include_dirs")
    if includes is not None:
        if not isinstance(includes, list):
            raise format_error(E_TYPE, "Config 'include_dirs' must be a list")
        kwargs["include_dirs"] = [_as_path(v, "include_dirs", base_dir) for v in includes]
    if "default_srgb" in data:
        if not isinstance(data["default_srgb"], bool):
            raise format_error(E_TYPE, "Config 'default_srgb' must be a boolean")
        kwargs["default_srgb"] = data["default_srgb"]
    if "virtual_prefix" in data:
        prefix = data["virtual_prefix"]
        if not isinstance(prefix, str):
            raise format_error(E_TYPE, "Config 'virtual_prefix' must be a string")
        kwargs["virtual_prefix"] = prefix
    return CookConfig(**kwargs)


def load_config(path: str | Path) -> CookConfig:
    p = Path(path)
    text = read_text(p)
    try:
        if p.suffix.lower() in {".yaml", ".yml"}:
            data: Any = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise format_error(E_PARSE, f"Cannot parse config {p.name}: {e}") from e
    return config_from_dict(data, p.parent)
