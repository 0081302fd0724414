"""Wavefront OBJ parsing into the shared mesh intermediate."""

from __future__ import annotations

from typing import Dict, List, Tuple

import numpy as np

from ...errors import E_EMPTY, E_PARSE, E_RANGE, format_error, structural_error
from .build import MeshBuildResult, finalize_mesh

__all__ = ["parse_obj_index", "parse_obj"]

ObjIndex = Tuple[int, int, int]  # (v, vt, vn), -1 when absent


def _fix_index(idx: int, count: int) -> int:
    # 1-based; negative counts back from the current end of the pool
    if idx > 0:
        return idx - 1
    if idx < 0:
        fixed = count + idx
        return fixed if fixed >= 0 else -1
    return -1


def _to_int(text: str, token: str, line_no: int) -> int:
    try:
        return int(text)
    except ValueError:
        raise format_error(
            E_PARSE, f"Bad face index {token!r}", {"line": line_no}
        ) from None


def parse_obj_index(
    token: str, v_count: int, vt_count: int, vn_count: int, line_no: int = 0
) -> ObjIndex:
    """Parse one ``v``, ``v/vt``, ``v//vn`` or ``v/vt/vn`` face token."""
    parts = token.split("/")
    if len(parts) > 3 or not parts[0]:
        raise format_error(E_PARSE, f"Bad face token {token!r}", {"line": line_no})
    v = _to_int(parts[0], token, line_no)
    vt = _to_int(parts[1], token, line_no) if len(parts) > 1 and parts[1] else 0
    vn = _to_int(parts[2], token, line_no) if len(parts) > 2 and parts[2] else 0
    fixed_v = _fix_index(v, v_count)
    if fixed_v < 0 or fixed_v >= v_count:
        raise structural_error(
            E_RANGE, f"Face references missing position {v}", {"line": line_no}
        )
    return fixed_v, _fix_index(vt, vt_count), _fix_index(vn, vn_count)


def _floats(fields: List[str], n: int, line_no: int) -> List[float]:
    values = []
    for text in fields[:n]:
        try:
            values.append(float(text))
        except ValueError:
            raise format_error(
                E_PARSE, f"Bad number {text!r}", {"line": line_no}
            ) from None
    values.extend([0.0] * (n - len(values)))
    return values


def parse_obj(text: str) -> MeshBuildResult:
    positions: List[List[float]] = []
    normals: List[List[float]] = []
    texcoords: List[List[float]] = []

    out_pos: List[List[float]] = []
    out_nrm: List[List[float]] = []
    out_uv: List[List[float]] = []
    indices: List[int] = []
    welded: Dict[ObjIndex, int] = {}
    has_normal = False
    has_texcoord = False

    def emit(key: ObjIndex) -> int:
        found = welded.get(key)
        if found is not None:
            return found
        v, vt, vn = key
        out_pos.append(positions[v])
        out_nrm.append(normals[vn] if 0 <= vn < len(normals) else [0.0, 0.0, 0.0])
        out_uv.append(texcoords[vt] if 0 <= vt < len(texcoords) else [0.0, 0.0])
        welded[key] = len(out_pos) - 1
        return welded[key]

    for line_no, line in enumerate(text.splitlines(), start=1):
        fields = line.split()
        if not fields:
            continue
        tag, args = fields[0], fields[1:]
        if tag == "v":
            positions.append(_floats(args, 3, line_no))
        elif tag == "vn":
            normals.append(_floats(args, 3, line_no))
        elif tag == "vt":
            texcoords.append(_floats(args, 2, line_no))
        elif tag == "f":
            face = [
                parse_obj_index(t, len(positions), len(texcoords), len(normals), line_no)
                for t in args
            ]
            for _, vt, vn in face:
                has_texcoord = has_texcoord or vt >= 0
                has_normal = has_normal or vn >= 0
            if len(face) < 3:
                continue
            # fan around the first corner
            for i in range(1, len(face) - 1):
                indices.extend((emit(face[0]), emit(face[i]), emit(face[i + 1])))

    if not out_pos or not indices:
        raise structural_error(E_EMPTY, "OBJ contains no triangles")
    return finalize_mesh(
        np.array(out_pos, dtype="<f4"),
        np.array(indices, dtype=np.int64),
        normals=np.array(out_nrm, dtype="<f4") if has_normal else None,
        texcoords=np.array(out_uv, dtype="<f4") if has_texcoord else None,
    )
