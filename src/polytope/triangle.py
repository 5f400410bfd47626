"""
Output records of a projection.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class Vertex:
    """
    A vertex of a triangle in the 3D render.

    Attributes:
        position: display-frame position, homogeneous (x, y, z, w)
        texcoord: location in the texture, homogeneous (u, v, w)
    """
    position: tuple[float, float, float, float]
    texcoord: tuple[float, float, float]

    @classmethod
    def from_texture_point(cls, point: np.ndarray, embedding: np.ndarray) -> "Vertex":
        p = np.asarray(point, dtype=np.float64).reshape(3)
        pos = np.asarray(embedding, dtype=np.float64) @ p
        return cls(
            position=tuple(float(v) for v in pos),
            texcoord=tuple(float(v) for v in p),
        )

    @property
    def point(self) -> np.ndarray:
        """Position divided by its homogeneous weight."""
        pos = np.asarray(self.position, dtype=np.float64)
        return pos[:3] / pos[3]


@dataclass(frozen=True)
class Triangle:
    """
    A triangle in the 3D render.

    `negated` marks a triangle that must be subtracted from the picture
    rather than added.
    """
    vertices: tuple[Vertex, Vertex, Vertex]
    negated: bool = False
