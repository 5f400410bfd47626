"""
Projective helpers shared by facets and textures.

Frames used throughout the package:

- ambient: 4D space in homogeneous coordinates (5 components)
- screen-with-depth: the camera frame, same size as ambient; index 3 is depth
- display: screen-with-depth with the depth row dropped (4 components, i.e.
  a 3D homogeneous point)

Matrices act on column vectors; hyperplanes are row vectors and are pulled
back through a map by right multiplication (`h @ m`).
"""

from __future__ import annotations

import math
from typing import Optional

import numpy as np

from .runtime_defaults import DEFAULTS

DEPTH_AXIS = 3

_FORGET_DEPTH = np.array(
    [
        [1.0, 0.0, 0.0, 0.0, 0.0],
        [0.0, 1.0, 0.0, 0.0, 0.0],
        [0.0, 0.0, 1.0, 0.0, 0.0],
        [0.0, 0.0, 0.0, 0.0, 1.0],
    ],
    dtype=np.float64,
)
_FORGET_DEPTH.setflags(write=False)


def as_matrix(value, shape: tuple[int, int], name: str) -> np.ndarray:
    """Return `value` as a float64 array of the given shape or raise ValueError."""
    arr = np.asarray(value, dtype=np.float64)
    if arr.shape != tuple(shape):
        raise ValueError(f"{name} must have shape {tuple(shape)}, got {arr.shape}")
    return arr


def matrix_forget_depth() -> np.ndarray:
    """4x5 selection matrix: screen-with-depth -> display (drops the depth row)."""
    return _FORGET_DEPTH.copy()


def forget_depth(m: np.ndarray) -> np.ndarray:
    """Apply the forget-depth projection to a 5-vector or a 5xN matrix."""
    return _FORGET_DEPTH @ np.asarray(m, dtype=np.float64)


def outward_hyperplane(embedding: np.ndarray) -> Optional[np.ndarray]:
    """
    Hyperplane spanned by a cell embedded in screen-with-depth space.

    This is the generalized cross product of the four columns of the 5x4
    `embedding`: coefficient i is the determinant of the embedding with row i
    removed, with alternating sign. Every column of `embedding` lies on the
    returned hyperplane, and its positive side is the +depth side (behind the
    cell as seen from the camera).

    Returns None when the depth coefficient is negative: the cell faces away
    from the camera.
    """
    m = as_matrix(embedding, (5, 4), "embedding")
    hyperplane = np.array(
        [(-1.0) ** i * np.linalg.det(np.delete(m, i, axis=0)) for i in range(5)],
        dtype=np.float64,
    )

    if hyperplane[DEPTH_AXIS] < 0.0:
        return None
    return hyperplane


def try_inverse(matrix: np.ndarray, *, tolerance: float | None = None) -> Optional[np.ndarray]:
    """
    Inverse of a square matrix, or None when it is (numerically) singular.

    The determinant is compared against the Hadamard bound (product of row
    norms), so the test does not depend on the overall scale of the matrix.
    """
    m = np.asarray(matrix, dtype=np.float64)
    if m.ndim != 2 or m.shape[0] != m.shape[1]:
        raise ValueError(f"Expected a square matrix, got shape {m.shape}")
    if not np.all(np.isfinite(m)):
        return None

    tol = DEFAULTS.singular_tolerance if tolerance is None else float(tolerance)
    det = float(np.linalg.det(m))
    bound = float(np.prod(np.linalg.norm(m, axis=1)))
    if (not math.isfinite(det)) or abs(det) <= tol * bound:
        return None

    try:
        return np.linalg.inv(m)
    except np.linalg.LinAlgError:
        return None


def unbounded_box(dim: int = 3) -> np.ndarray:
    return np.array([[-np.inf] * dim, [np.inf] * dim], dtype=np.float64)


def bounding_box(points: np.ndarray, dim: int = 3) -> np.ndarray:
    """
    Axis-aligned box [[min...], [max...]] of homogeneous points, one per row.

    Points are divided by their last component. A point with zero or
    non-finite weight has no finite image, and weights of both signs mean the
    hull wraps through infinity; either way the box becomes unbounded, since
    it must contain every projected point of the hull.
    """
    pts = np.asarray(points, dtype=np.float64).reshape(-1, dim + 1)
    if pts.shape[0] == 0:
        return unbounded_box(dim)

    w = pts[:, -1]
    if (not np.all(np.isfinite(pts))) or np.any(w == 0.0):
        return unbounded_box(dim)
    if np.any(w > 0.0) and np.any(w < 0.0):
        return unbounded_box(dim)

    affine = pts[:, :-1] / w[:, None]
    return np.array([affine.min(axis=0), affine.max(axis=0)], dtype=np.float64)


def boxes_overlap(a: np.ndarray, b: np.ndarray) -> bool:
    """
    Conservative overlap test for boxes from `bounding_box`.

    Only a strict gap on some axis separates two boxes; boxes that touch at a
    face, edge or corner count as overlapping.
    """
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    if np.any(a[0] > b[1]) or np.any(b[0] > a[1]):
        return False
    return True
