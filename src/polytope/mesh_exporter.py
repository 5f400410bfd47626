"""
Export of projected triangles as an ordinary 3D mesh file.

Positions are dehomogenized into plain 3D points. Negated (hole) triangles
are kept and coloured differently, and their flags are stored in the mesh
metadata so downstream tools can compose them subtractively.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional

import numpy as np
import trimesh

from .triangle import Triangle

_LOGGER = logging.getLogger(__name__)

FILLED_COLOR = np.array([200, 200, 200, 255], dtype=np.uint8)
NEGATED_COLOR = np.array([220, 40, 40, 255], dtype=np.uint8)


def triangles_to_trimesh(triangles: Iterable[Triangle]) -> trimesh.Trimesh:
    """
    Build an unprocessed `trimesh.Trimesh` with three vertices per triangle.

    Triangles with a vertex at infinity (zero or non-finite weight) are
    dropped.
    """
    points: list[np.ndarray] = []
    negated: list[bool] = []
    dropped = 0
    with np.errstate(divide="ignore", invalid="ignore"):
        for tri in triangles:
            pts = np.array([v.point for v in tri.vertices], dtype=np.float64)
            if not np.all(np.isfinite(pts)):
                dropped += 1
                continue
            points.append(pts)
            negated.append(bool(tri.negated))

    if dropped:
        _LOGGER.debug("Dropped %d triangle(s) with vertices at infinity", dropped)

    if points:
        vertices = np.concatenate(points, axis=0)
    else:
        vertices = np.zeros((0, 3), dtype=np.float64)
    faces = np.arange(vertices.shape[0], dtype=np.int64).reshape(-1, 3)

    flags = np.asarray(negated, dtype=bool)
    colors = np.where(flags[:, None], NEGATED_COLOR, FILLED_COLOR).astype(np.uint8)

    mesh = trimesh.Trimesh(
        vertices=vertices,
        faces=faces,
        face_colors=colors if faces.shape[0] else None,
        process=False,
    )
    mesh.metadata["negated"] = flags.tolist()
    return mesh


def export_triangles(triangles: Iterable[Triangle], output_path: str | Path) -> Optional[str]:
    """
    Write triangles to a mesh file (format from the suffix, e.g. .ply/.obj/.stl).

    Returns the written path, or None when there is nothing to export.
    """
    mesh = triangles_to_trimesh(triangles)
    if len(mesh.faces) == 0:
        return None

    out = Path(output_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    mesh.export(str(out))
    return str(out)
