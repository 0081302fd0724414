"""In-memory asset registry.

Built once (load or explicit adds), then read by the importers. The registry
does no locking: concurrent readers are fine, writers must be serialized by
the caller and must not overlap with readers.
"""

from __future__ import annotations

import uuid
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence

from ..errors import CookError
from ..logging import get_logger
from ..utils.paths import fold_virtual_path
from ..utils.uuids import NIL_UUID
from .loader import parse_registry_text
from .models import (
    INVALID_HANDLE,
    AssetDesc,
    AssetHandle,
    AssetRedirector,
    AssetType,
)

__all__ = ["AssetRegistry"]


class AssetRegistry:
    def __init__(self) -> None:
        self._assets: List[AssetDesc] = []
        self._redirectors: List[AssetRedirector] = []
        self._by_uuid: Dict[uuid.UUID, int] = {}
        self._by_path: Dict[str, int] = {}
        self._redirect_by_uuid: Dict[uuid.UUID, AssetRedirector] = {}
        self._redirect_by_path: Dict[str, AssetRedirector] = {}
        self.last_error: str = ""

    # Loading ------------------------------------------------------------------
    def load_from_json_text(self, text: str) -> bool:
        """Replace the whole registry from JSON text.

        Returns False and sets ``last_error`` on any structural problem; the
        previous contents are kept untouched in that case.
        """
        try:
            assets, redirectors = parse_registry_text(text)
        except CookError as e:
            self.last_error = e.message
            get_logger().debug("registry load failed: %s", e)
            return False
        self._assets = assets
        self._redirectors = redirectors
        self._reindex()
        self.last_error = ""
        return True

    def load_from_json_file(self, path: str | Path) -> bool:
        p = Path(path)
        try:
            text = p.read_text(encoding="utf-8-sig")
        except (OSError, UnicodeDecodeError) as e:
            self.last_error = f"Failed to read registry file {p}: {e}"
            return False
        return self.load_from_json_text(text)

    def clear(self) -> None:
        self._assets = []
        self._redirectors = []
        self._reindex()
        self.last_error = ""

    def add_asset(self, desc: AssetDesc) -> None:
        """Add ``desc``; an entry with the same uuid is replaced in place."""
        desc.virtual_path = fold_virtual_path(desc.virtual_path)
        pos = self._by_uuid.get(desc.uuid)
        if pos is None:
            self._assets.append(desc)
        else:
            self._assets[pos] = desc
        self._reindex()

    def add_redirector(self, redirector: AssetRedirector) -> None:
        redirector.old_virtual_path = fold_virtual_path(redirector.old_virtual_path)
        self._redirectors.append(redirector)
        self._redirect_by_uuid.setdefault(redirector.old_uuid, redirector)
        self._redirect_by_path.setdefault(redirector.old_virtual_path, redirector)

    def _reindex(self) -> None:
        # first match wins for paths, mirroring a front-to-back scan
        self._by_uuid = {}
        self._by_path = {}
        for i, desc in enumerate(self._assets):
            self._by_uuid[desc.uuid] = i
            self._by_path.setdefault(desc.virtual_path, i)
        self._redirect_by_uuid = {}
        self._redirect_by_path = {}
        for r in self._redirectors:
            self._redirect_by_uuid.setdefault(r.old_uuid, r)
            self._redirect_by_path.setdefault(r.old_virtual_path, r)

    # Queries ------------------------------------------------------------------
    @property
    def assets(self) -> Sequence[AssetDesc]:
        return tuple(self._assets)

    @property
    def redirectors(self) -> Sequence[AssetRedirector]:
        return tuple(self._redirectors)

    def __len__(self) -> int:
        return len(self._assets)

    def __iter__(self) -> Iterator[AssetDesc]:
        return iter(tuple(self._assets))

    def find_by_path(self, path: str) -> AssetHandle:
        key = fold_virtual_path(path)
        pos = self._by_path.get(key)
        if pos is not None:
            return self._assets[pos].handle
        redirector = self._redirect_by_path.get(key)
        if redirector is not None:
            return self.find_by_uuid(redirector.new_uuid)
        return INVALID_HANDLE

    def find_by_uuid(self, uid: uuid.UUID) -> AssetHandle:
        if uid == NIL_UUID:
            return INVALID_HANDLE
        pos = self._by_uuid.get(uid)
        if pos is None:
            return INVALID_HANDLE
        return self._assets[pos].handle

    def get_desc(self, handle: AssetHandle) -> Optional[AssetDesc]:
        """Look up by uuid; a non-UNKNOWN handle type must match as well."""
        if not handle.is_valid:
            return None
        pos = self._by_uuid.get(handle.uuid)
        if pos is None:
            return None
        desc = self._assets[pos]
        if handle.type != AssetType.UNKNOWN and desc.type != handle.type:
            return None
        return desc

    def get_dependencies(self, handle: AssetHandle) -> Optional[List[AssetHandle]]:
        desc = self.get_desc(handle)
        if desc is None:
            return None
        return desc.dependencies

    def resolve_redirector(self, handle: AssetHandle) -> AssetHandle:
        """Follow one redirector hop from ``handle``.

        A live target yields its current handle (with its real type). A
        missing target yields ``{new uuid, handle.type}``. Without a
        redirector for ``handle`` the handle comes back unchanged. Chains are
        not followed further.
        """
        if not handle.is_valid:
            return handle
        redirector = self._redirect_by_uuid.get(handle.uuid)
        if redirector is None:
            return handle
        resolved = self.find_by_uuid(redirector.new_uuid)
        if resolved.is_valid:
            return resolved
        return AssetHandle(redirector.new_uuid, handle.type)
