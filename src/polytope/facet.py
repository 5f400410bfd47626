"""
Cells (facets) of a 4D polytope and the occlusion pass over all of them.

Each facet is a 3D cell with its own homogeneous frame (4 components) and an
embedding into the ambient 4D frame (5 components). During occlusion facets
refer to each other only by their index in the facet list.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
import logging
import threading
from typing import Iterator, Sequence

import numpy as np

from .logging_utils import log_once
from .projective import (
    as_matrix,
    bounding_box,
    boxes_overlap,
    forget_depth,
    matrix_forget_depth,
    outward_hyperplane,
    try_inverse,
    unbounded_box,
)
from .runtime_defaults import DEFAULTS
from .texture import Texture

_LOGGER = logging.getLogger(__name__)

_CUBE_REGION = np.array(
    [
        [1.0, 0.0, 0.0, 0.0],
        [0.0, 1.0, 0.0, 0.0],
        [0.0, 0.0, 1.0, 0.0],
        [-1.0, 0.0, 0.0, 1.0],
        [0.0, -1.0, 0.0, 1.0],
        [0.0, 0.0, -1.0, 1.0],
    ],
    dtype=np.float64,
)

_CUBE_HULL = np.array(
    [
        [0.0, 0.0, 0.0, 1.0],
        [0.0, 0.0, 1.0, 1.0],
        [0.0, 1.0, 0.0, 1.0],
        [0.0, 1.0, 1.0, 1.0],
        [1.0, 0.0, 0.0, 1.0],
        [1.0, 0.0, 1.0, 1.0],
        [1.0, 1.0, 0.0, 1.0],
        [1.0, 1.0, 1.0, 1.0],
    ],
    dtype=np.float64,
)

# (a, b, c) corners of the six inset face squares of the unit cube.
_CUBE_FACES = (
    ((0.05, 0.05, 0.05), (0.95, 0.05, 0.05), (0.05, 0.95, 0.05)),
    ((0.05, 0.05, 0.05), (0.05, 0.95, 0.05), (0.05, 0.05, 0.95)),
    ((0.05, 0.05, 0.05), (0.05, 0.05, 0.95), (0.95, 0.05, 0.05)),
    ((0.95, 0.95, 0.95), (0.05, 0.95, 0.95), (0.95, 0.05, 0.95)),
    ((0.95, 0.95, 0.95), (0.95, 0.05, 0.95), (0.95, 0.95, 0.05)),
    ((0.95, 0.95, 0.95), (0.95, 0.95, 0.05), (0.05, 0.95, 0.95)),
)


def _frozen(arr: np.ndarray) -> np.ndarray:
    out = np.array(arr, dtype=np.float64)
    out.setflags(write=False)
    return out


@dataclass(frozen=True, eq=False)
class Facet:
    """
    A 3D cell of the polytope boundary.

    Attributes:
        embedding: (5, 4) map from the cell frame to the ambient frame
        regions: sequence of (m, 4) constraint arrays in the cell frame; each
            one is a convex region (rows `h` with `h @ x >= 0`) that hides
            what lies behind it
        textures: surface patches drawn on the cell, in the cell frame
        convex_hull: (k, 4) cell-frame vertices used for box pruning; empty
            means "no hull", which disables pruning for this cell
    """
    embedding: np.ndarray
    regions: tuple[np.ndarray, ...]
    textures: tuple[Texture, ...] = ()
    convex_hull: np.ndarray = field(default_factory=lambda: np.zeros((0, 4)))

    def __post_init__(self):
        object.__setattr__(self, "embedding", _frozen(as_matrix(self.embedding, (5, 4), "Facet.embedding")))

        regions = []
        for k, region in enumerate(self.regions):
            arr = np.asarray(region, dtype=np.float64)
            if arr.ndim != 2 or arr.shape[1] != 4:
                raise ValueError(f"Facet region {k} must have shape (m, 4), got {arr.shape}")
            regions.append(_frozen(arr))
        object.__setattr__(self, "regions", tuple(regions))
        object.__setattr__(self, "textures", tuple(self.textures))

        hull = np.asarray(self.convex_hull, dtype=np.float64)
        if hull.size == 0:
            hull = np.zeros((0, 4))
        if hull.ndim != 2 or hull.shape[1] != 4:
            raise ValueError(f"Facet.convex_hull must have shape (k, 4), got {hull.shape}")
        object.__setattr__(self, "convex_hull", _frozen(hull))

    @classmethod
    def new_cube(cls, embedding: np.ndarray) -> "Facet":
        """Unit-cube cell with an inset square texture on each of its six faces."""
        return cls(
            embedding=embedding,
            regions=(_CUBE_REGION,),
            textures=tuple(Texture.new_square(a, b, c) for a, b, c in _CUBE_FACES),
            convex_hull=_CUBE_HULL,
        )

    def local_to_screen_depth(self, camera: np.ndarray) -> np.ndarray:
        return np.asarray(camera, dtype=np.float64) @ self.embedding

    def bounding_box(self, camera: np.ndarray) -> np.ndarray:
        """Display-frame box [[min x, y, z], [max x, y, z]] of the projected hull."""
        if self.convex_hull.shape[0] == 0:
            return unbounded_box(3)
        local_to_screen = forget_depth(self.local_to_screen_depth(camera))
        return bounding_box((local_to_screen @ self.convex_hull.T).T)

    def to_screen_depth_space(self, camera: np.ndarray) -> list[np.ndarray]:
        """
        Occluder regions of this cell, as constraints in screen-with-depth space.

        A screen-with-depth point satisfies region k when its display image
        falls inside region k of this cell and it lies behind the cell. The
        result is empty when the cell is seen edge-on (its local -> display
        map is singular) or faces away from the camera.
        """
        local_to_screen_depth = self.local_to_screen_depth(camera)
        local_to_screen = forget_depth(local_to_screen_depth)
        screen_to_local = try_inverse(local_to_screen)
        if screen_to_local is None:
            log_once(
                _LOGGER,
                "facet:occluder_singular",
                logging.DEBUG,
                "Facet projects to a degenerate region; it occludes nothing",
            )
            return []
        screen_depth_to_local = screen_to_local @ matrix_forget_depth()

        behind = outward_hyperplane(local_to_screen_depth)
        if behind is None:
            return []

        return [np.vstack([region @ screen_depth_to_local, behind]) for region in self.regions]

    @staticmethod
    def do_all_occlusions(
        facets: Sequence["Facet"],
        camera: np.ndarray,
        *,
        max_workers: int | None = None,
    ) -> Iterator[Texture]:
        """
        Visible part of every texture of every front-facing facet.

        Yields one texture per texture of each front-facing, non-degenerate
        facet, in facet order, with the area hidden by the other facets
        removed and its embedding moved into the display frame. Back-facing
        and edge-on facets yield nothing.

        With `max_workers > 1` the per-texture work runs on a thread pool;
        results keep the serial order.
        """
        facets = list(facets)
        p = as_matrix(camera, (5, 5), "camera")
        boxes = [f.bounding_box(p) for f in facets]
        occluders = _OccluderCache(facets, p)

        work: list[tuple[int, Texture, list[int]]] = []
        for i, facet in enumerate(facets):
            local_to_screen_depth = facet.local_to_screen_depth(p)
            if outward_hyperplane(local_to_screen_depth) is None:
                continue
            if try_inverse(forget_depth(local_to_screen_depth)) is None:
                log_once(
                    _LOGGER,
                    ("facet:render_singular", i),
                    logging.DEBUG,
                    "Facet %d is seen edge-on; no textures emitted",
                    i,
                )
                continue

            candidates = [
                j for j in range(len(facets))
                if j != i and boxes_overlap(boxes[i], boxes[j])
            ]
            for texture in facet.textures:
                work.append((i, texture, candidates))

        def occlude(item: tuple[int, Texture, list[int]]) -> Texture:
            i, texture, candidates = item
            local_to_screen_depth = facets[i].local_to_screen_depth(p)
            regions = [
                region @ local_to_screen_depth
                for j in candidates
                for region in occluders.get(j)
            ]
            return texture.subtract_regions(regions).transform(forget_depth(local_to_screen_depth))

        workers = DEFAULTS.max_workers if max_workers is None else int(max_workers)
        if workers <= 1 or len(work) <= 1:
            return (occlude(item) for item in work)

        _LOGGER.debug("Occluding %d textures on %d workers", len(work), workers)
        with ThreadPoolExecutor(max_workers=workers) as pool:
            return iter(list(pool.map(occlude, work)))


class _OccluderCache:
    """Per-call lazy cache of `Facet.to_screen_depth_space`, indexed by facet."""

    def __init__(self, facets: Sequence[Facet], camera: np.ndarray):
        self._facets = facets
        self._camera = camera
        self._cache: dict[int, list[np.ndarray]] = {}
        self._lock = threading.Lock()

    def get(self, index: int) -> list[np.ndarray]:
        with self._lock:
            cached = self._cache.get(index)
        if cached is not None:
            return cached

        value = self._facets[index].to_screen_depth_space(self._camera)
        with self._lock:
            return self._cache.setdefault(index, value)
