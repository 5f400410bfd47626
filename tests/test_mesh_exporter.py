import tempfile
import unittest
from pathlib import Path

import numpy as np
import trimesh

from src.polytope.mesh_exporter import (
    FILLED_COLOR,
    NEGATED_COLOR,
    export_triangles,
    triangles_to_trimesh,
)
from src.polytope.output_paths import projection_output_path
from src.polytope.triangle import Triangle, Vertex


def _vertex(x, y, z, w=1.0):
    return Vertex(position=(x, y, z, w), texcoord=(x, y, 1.0))


def _triangle(offset=0.0, negated=False, w=1.0):
    return Triangle(
        vertices=(
            _vertex(offset, 0.0, 0.0, w),
            _vertex(offset + 1.0, 0.0, 0.0, w),
            _vertex(offset, 1.0, 0.0, w),
        ),
        negated=negated,
    )


class TestTrianglesToTrimesh(unittest.TestCase):
    def test_faces_and_colors(self):
        mesh = triangles_to_trimesh([_triangle(), _triangle(offset=2.0, negated=True)])
        self.assertIsInstance(mesh, trimesh.Trimesh)
        self.assertEqual(mesh.vertices.shape, (6, 3))
        self.assertEqual(mesh.faces.tolist(), [[0, 1, 2], [3, 4, 5]])
        self.assertEqual(mesh.metadata["negated"], [False, True])
        np.testing.assert_array_equal(mesh.visual.face_colors[0], FILLED_COLOR)
        np.testing.assert_array_equal(mesh.visual.face_colors[1], NEGATED_COLOR)

    def test_dehomogenizes(self):
        mesh = triangles_to_trimesh([_triangle(w=2.0)])
        np.testing.assert_allclose(mesh.vertices[1], [0.5, 0.0, 0.0])

    def test_drops_points_at_infinity(self):
        mesh = triangles_to_trimesh([_triangle(), _triangle(w=0.0)])
        self.assertEqual(len(mesh.faces), 1)

    def test_empty(self):
        mesh = triangles_to_trimesh([])
        self.assertEqual(len(mesh.faces), 0)
        self.assertEqual(mesh.metadata["negated"], [])


class TestExportTriangles(unittest.TestCase):
    def test_export_writes_ply(self):
        with tempfile.TemporaryDirectory() as td:
            out = Path(td) / "nested" / "scene.projection.ply"
            saved = export_triangles([_triangle(), _triangle(offset=2.0)], out)
            self.assertEqual(saved, str(out))
            self.assertTrue(out.exists())

            loaded = trimesh.load(str(out), process=False)
            self.assertEqual(len(loaded.faces), 2)

    def test_export_empty_returns_none(self):
        with tempfile.TemporaryDirectory() as td:
            out = Path(td) / "empty.ply"
            self.assertIsNone(export_triangles([], out))
            self.assertFalse(out.exists())


class TestOutputPaths(unittest.TestCase):
    def test_default_name(self):
        self.assertEqual(projection_output_path(), Path("tesseract.projection.ply"))

    def test_name_from_input(self):
        self.assertEqual(projection_output_path("scene"), Path("scene.projection.ply"))

    def test_explicit_output_wins(self):
        self.assertEqual(projection_output_path("scene", "out/x.obj"), Path("out/x.obj"))


if __name__ == "__main__":
    unittest.main()
