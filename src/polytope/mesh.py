"""
The polytope as a whole: a flat list of facets rendered through a camera.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional, Sequence

import numpy as np

from .facet import Facet
from .triangle import Triangle


@dataclass(frozen=True, eq=False)
class Mesh:
    """
    The mesh, in 4D space.

    Facets are addressed by index only; nothing holds a reference to another
    facet.
    """
    facets: tuple[Facet, ...]

    def __post_init__(self):
        object.__setattr__(self, "facets", tuple(self.facets))

    def project(self, camera: np.ndarray, *, max_workers: int | None = None) -> Iterator[Triangle]:
        """
        Visible triangles of the mesh as seen through `camera`.

        `camera` is a 5x5 projective map from the ambient frame to the
        screen-with-depth frame (depth is row 3, larger is farther). Triangle
        positions are in the display frame: homogeneous 3D points.
        """
        for texture in Facet.do_all_occlusions(self.facets, camera, max_workers=max_workers):
            yield from texture.get_triangles()

    @classmethod
    def new_tesseract(cls, size: float = 1.0, offset: Optional[Sequence[float]] = None) -> "Mesh":
        """
        The eight cubical cells of the 4-cube `offset + [0, size]^4`.

        Every cell is oriented with the interior of the 4-cube on the positive
        side of its hyperplane, so under a camera of positive determinant the
        cells facing the camera pass the front-facing test.
        """
        size = float(size)
        origin = np.zeros(4) if offset is None else np.asarray(offset, dtype=np.float64).reshape(4)
        centre = np.append(origin + 0.5 * size, 1.0)

        facets = []
        for axis in range(4):
            others = [a for a in range(4) if a != axis]
            for side in (0.0, 1.0):
                embedding = np.zeros((5, 4), dtype=np.float64)
                for col, ax in enumerate(others):
                    embedding[ax, col] = size
                embedding[:4, 3] = origin
                embedding[axis, 3] += side * size
                embedding[4, 3] = 1.0

                if np.linalg.det(np.column_stack([centre, embedding])) < 0.0:
                    embedding[:, [0, 1]] = embedding[:, [1, 0]]

                facets.append(Facet.new_cube(embedding))
        return cls(facets=tuple(facets))
