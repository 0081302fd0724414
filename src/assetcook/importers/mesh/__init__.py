"""Mesh importers (OBJ, glTF) sharing one intermediate and blob layout."""

from __future__ import annotations

from pathlib import Path
from typing import Tuple

from ...errors import E_UNSUPPORTED, format_error
from ...registry.models import MeshDesc
from ...utils.io import read_text
from .build import (
    MeshBuildResult,
    SubMesh,
    VertexAttribute,
    build_mesh_blob,
    finalize_mesh,
    select_index_type,
)
from .gltf import cook_gltf_file, parse_gltf, load_gltf, split_glb
from .obj import parse_obj, parse_obj_index

__all__ = [
    "MESH_EXTENSIONS",
    "MeshBuildResult",
    "SubMesh",
    "VertexAttribute",
    "build_mesh_blob",
    "finalize_mesh",
    "select_index_type",
    "parse_obj",
    "parse_obj_index",
    "parse_gltf",
    "load_gltf",
    "split_glb",
    "load_mesh_source",
    "cook_mesh",
]

MESH_EXTENSIONS = (".obj", ".gltf", ".glb")


def load_mesh_source(path: Path) -> MeshBuildResult:
    path = Path(path)
    ext = path.suffix.lower()
    if ext == ".obj":
        return parse_obj(read_text(path))
    if ext in (".gltf", ".glb"):
        return cook_gltf_file(path)
    raise format_error(E_UNSUPPORTED, f"Unsupported mesh source '{ext}'", {"path": str(path)})


def cook_mesh(path: Path) -> Tuple[bytes, MeshDesc]:
    """Cook an OBJ/glTF/GLB file into a mesh blob and its registry desc."""
    return build_mesh_blob(load_mesh_source(path))
