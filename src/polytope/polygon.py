"""
Planar polygon arithmetic used by textures.

Half-planes are homogeneous lines `a*x + b*y + c*w >= 0`. Convex regions are
built from half-plane lists with scipy's Qhull-based halfspace intersection
(seeded by the Chebyshev centre of the region, found with `linprog`), and the
boolean work is done by shapely. Shapes live in the affine plane `w = 1`.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Iterable, Optional

import numpy as np
from scipy.optimize import linprog
from scipy.spatial import HalfspaceIntersection, QhullError
from shapely.geometry import GeometryCollection, MultiPoint, MultiPolygon, Polygon
from shapely.geometry.base import BaseGeometry
from shapely.ops import unary_union

from .logging_utils import log_once
from .runtime_defaults import DEFAULTS

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class HalfPlane:
    """Homogeneous half-plane `a*x + b*y + c*w >= 0`."""
    a: float
    b: float
    c: float

    @classmethod
    def from_coefficients(
        cls,
        coefficients,
        *,
        scale: float | None = None,
        tolerance: float | None = None,
    ) -> Optional["HalfPlane"]:
        """
        Build a half-plane from three coefficients.

        `scale` is the magnitude the coefficients would have if nothing
        cancelled (for a pulled-back row `h @ m`, `max|h| * max|m|`); it
        defaults to the largest coefficient itself. Returns None when all
        coefficients vanish relative to `scale`: such a row constrains
        nothing and has no line. The returned coefficients are scaled so
        the largest magnitude is 1.
        """
        coeffs = np.asarray(coefficients, dtype=np.float64).reshape(3)
        if not np.all(np.isfinite(coeffs)):
            return None
        magnitude = float(np.max(np.abs(coeffs)))
        ref = magnitude if scale is None else float(scale)
        tol = DEFAULTS.line_tolerance if tolerance is None else float(tolerance)
        if magnitude == 0.0 or magnitude <= tol * ref:
            return None
        a, b, c = (float(v) for v in coeffs / magnitude)
        return cls(a, b, c)

    @property
    def is_constant(self) -> bool:
        """True for the line at infinity (`a = b = 0`): always or never satisfied."""
        largest = max(abs(self.a), abs(self.b), abs(self.c))
        return max(abs(self.a), abs(self.b)) <= DEFAULTS.line_tolerance * largest


def polygon_from_boundaries(lines: Iterable[HalfPlane]) -> Optional[Polygon]:
    """
    Intersection of half-planes as a bounded convex polygon.

    Returns None when the intersection is empty, unbounded or has no area.
    """
    halfspaces: list[list[float]] = []
    for line in lines:
        if line.is_constant:
            if line.c < 0.0:
                return None
            continue
        # Qhull convention: A @ x + b <= 0.
        halfspaces.append([-line.a, -line.b, -line.c])

    if len(halfspaces) < 3:
        return None

    hs = np.unique(np.asarray(halfspaces, dtype=np.float64), axis=0)
    normals = hs[:, :2]
    norms = np.linalg.norm(normals, axis=1)

    # Chebyshev centre: maximise r subject to A @ x + r * |A_i| <= -b.
    res = linprog(
        c=[0.0, 0.0, -1.0],
        A_ub=np.column_stack([normals, norms]),
        b_ub=-hs[:, 2],
        bounds=[(None, None), (None, None), (0.0, None)],
        method="highs",
    )
    if res.status != 0 or res.x is None:
        return None
    radius = float(res.x[2])
    if radius <= DEFAULTS.area_tolerance:
        return None

    try:
        intersection = HalfspaceIntersection(hs, np.asarray(res.x[:2], dtype=np.float64))
    except (QhullError, ValueError):
        log_once(
            _LOGGER,
            "polygon:halfspace_intersection_failed",
            logging.DEBUG,
            "Halfspace intersection failed for %d constraints; region skipped",
            len(hs),
            exc_info=True,
        )
        return None

    pts = np.asarray(intersection.intersections, dtype=np.float64)
    pts = pts[np.all(np.isfinite(pts), axis=1)]
    if pts.shape[0] < 3:
        return None

    hull = MultiPoint([tuple(p) for p in pts]).convex_hull
    if not isinstance(hull, Polygon) or hull.area <= DEFAULTS.area_tolerance:
        return None
    return hull


def polygon_difference(shape: BaseGeometry, subtrahends: Iterable[Optional[Polygon]]) -> BaseGeometry:
    """
    Subtract every polygon in `subtrahends` from `shape` in one operation.

    The result may contain several parts and holes, or be empty. When no area
    is removed the original `shape` object is returned unchanged, so its
    vertex order (and therefore its triangulation) is preserved.
    """
    polys = [p for p in subtrahends if p is not None and not p.is_empty]
    if not polys or shape.is_empty:
        return shape

    cutter = unary_union(polys)
    if not shape.intersects(cutter):
        return shape

    remaining = shape.difference(cutter)
    if remaining.equals(shape):
        return shape
    return _polygonal_part(remaining)


def _polygonal_part(geom: BaseGeometry) -> BaseGeometry:
    if isinstance(geom, (Polygon, MultiPolygon)):
        return geom
    # Overlay can leave lower-dimensional debris in a collection.
    parts = list(_iter_polygons(geom))
    if not parts:
        return Polygon()
    return MultiPolygon(parts) if len(parts) > 1 else parts[0]


def _iter_polygons(shape: BaseGeometry):
    if shape.is_empty:
        return
    if isinstance(shape, Polygon):
        yield shape
    elif isinstance(shape, (MultiPolygon, GeometryCollection)):
        for g in shape.geoms:
            yield from _iter_polygons(g)


def polygon_loops(shape: BaseGeometry) -> list[np.ndarray]:
    """
    Boundary loops of a polygonal shape as homogeneous (n, 3) arrays.

    Every polygon part contributes its exterior ring followed by its interior
    rings; the repeated closing vertex is dropped.
    """
    loops: list[np.ndarray] = []
    for poly in _iter_polygons(shape):
        for ring in (poly.exterior, *poly.interiors):
            coords = np.asarray(ring.coords, dtype=np.float64)[:-1, :2]
            if coords.shape[0] < 3:
                continue
            loops.append(np.column_stack([coords, np.ones(coords.shape[0])]))
    return loops


def signed_area(points: np.ndarray) -> float:
    """Shoelace signed area of homogeneous points (positive = counter-clockwise)."""
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    if pts.shape[0] < 3:
        return 0.0
    x = pts[:, 0] / pts[:, 2]
    y = pts[:, 1] / pts[:, 2]
    x_next = np.roll(x, -1)
    y_next = np.roll(y, -1)
    return float(0.5 * np.sum(x * y_next - y * x_next))
