"""
Surface patches (textures) covering the cells of a polytope.

A texture is a planar shape in its own 2D homogeneous frame together with an
embedding of that frame into the frame of its owner (the cell's local frame
while occlusion is computed, the display frame afterwards).
"""

from __future__ import annotations

from dataclasses import dataclass, replace
import logging
from typing import Iterable, Iterator, Optional

import numpy as np
from shapely.geometry import Polygon, box
from shapely.geometry.base import BaseGeometry

from .polygon import (
    HalfPlane,
    polygon_difference,
    polygon_from_boundaries,
    polygon_loops,
    signed_area,
)
from .projective import as_matrix
from .runtime_defaults import DEFAULTS
from .triangle import Triangle, Vertex

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class Texture:
    """
    A surface patch.

    Attributes:
        embedding: (4, 3) map from the texture frame to the owner's frame
        shape: polygonal region of the texture frame (may have holes/parts)
    """
    embedding: np.ndarray
    shape: BaseGeometry

    def __post_init__(self):
        m = as_matrix(self.embedding, (4, 3), "Texture.embedding").copy()
        m.setflags(write=False)
        object.__setattr__(self, "embedding", m)

    @classmethod
    def new_square(cls, a, b, c) -> "Texture":
        """
        Unit-square texture spanning the parallelogram a, b, c in the owner frame.

        `a` is the image of texture (0, 0), `b` of (1, 0) and `c` of (0, 1).
        """
        a = np.asarray(a, dtype=np.float64).reshape(3)
        b = np.asarray(b, dtype=np.float64).reshape(3)
        c = np.asarray(c, dtype=np.float64).reshape(3)
        embedding = np.column_stack(
            [
                np.append(b - a, 0.0),
                np.append(c - a, 0.0),
                np.append(a, 1.0),
            ]
        )
        return cls(embedding=embedding, shape=box(0.0, 0.0, 1.0, 1.0))

    def transform(self, matrix: np.ndarray) -> "Texture":
        """Re-embed the texture through `matrix` (owner frame -> new owner frame)."""
        m = as_matrix(matrix, (4, 4), "transform matrix")
        return replace(self, embedding=m @ self.embedding)

    def region_to_polygon(self, region: np.ndarray, *, clip_extent: float | None = None) -> Optional[Polygon]:
        """
        Convex polygon, in texture coordinates, of a region given in the owner frame.

        `region` rows are half-space constraints `h @ x >= 0` on owner-frame
        points. The region is clipped to the giant square so the result is
        always bounded. Returns None for an empty or degenerate region.

        Rows may come from a camera of any overall scale; a row is judged to
        vanish on the texture plane only relative to its own magnitude.
        """
        rows = np.asarray(region, dtype=np.float64).reshape(-1, 4)
        embedding_scale = float(np.max(np.abs(self.embedding)))
        lines: list[HalfPlane] = []
        for row, coefficients in zip(rows, rows @ self.embedding):
            row_scale = float(np.max(np.abs(row)))
            line = HalfPlane.from_coefficients(coefficients, scale=row_scale * embedding_scale)
            if line is not None:
                lines.append(line)
        lines.extend(giant_square(clip_extent))
        return polygon_from_boundaries(lines)

    def subtract_regions(self, regions: Iterable[np.ndarray]) -> "Texture":
        """Remove every region (owner-frame constraint lists) from the shape."""
        polygons = [self.region_to_polygon(region) for region in regions]
        kept = [p for p in polygons if p is not None]
        if len(kept) < len(polygons):
            _LOGGER.debug("Skipped %d empty occluder region(s)", len(polygons) - len(kept))
        return replace(self, shape=polygon_difference(self.shape, kept))

    def get_triangles(self) -> Iterator[Triangle]:
        """
        Fan-triangulate every boundary loop of the shape.

        Each loop is first turned counter-clockwise. A fan triangle that ends
        up clockwise is flagged `negated` (it cancels area added by its
        neighbours). The flag is only right for loops of simple polygons:
        hole loops are turned counter-clockwise like any other loop, so their
        triangles come out filled.
        """
        embedding = self.embedding
        for loop in polygon_loops(self.shape):
            if signed_area(loop) < 0.0:
                loop = loop[::-1]
            v1 = loop[0]
            for v2, v3 in zip(loop[1:-1], loop[2:]):
                yield Triangle(
                    vertices=(
                        Vertex.from_texture_point(v1, embedding),
                        Vertex.from_texture_point(v2, embedding),
                        Vertex.from_texture_point(v3, embedding),
                    ),
                    negated=signed_area(np.array([v1, v2, v3])) < 0.0,
                )


def giant_square(half_extent: float | None = None) -> list[HalfPlane]:
    """The four half-planes of the square |x|, |y| <= half_extent."""
    h = DEFAULTS.clip_extent if half_extent is None else float(half_extent)
    return [
        HalfPlane(1.0, 0.0, h),
        HalfPlane(0.0, 1.0, h),
        HalfPlane(-1.0, 0.0, h),
        HalfPlane(0.0, -1.0, h),
    ]
