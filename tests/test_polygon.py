import unittest

import numpy as np
from shapely.geometry import Polygon, box

from src.polytope.polygon import (
    HalfPlane,
    polygon_difference,
    polygon_from_boundaries,
    polygon_loops,
    signed_area,
)


def _unit_square_lines():
    return [
        HalfPlane(1.0, 0.0, 0.0),
        HalfPlane(0.0, 1.0, 0.0),
        HalfPlane(-1.0, 0.0, 1.0),
        HalfPlane(0.0, -1.0, 1.0),
    ]


def _evaluate(line, x, y, w=1.0):
    return line.a * x + line.b * y + line.c * w


class TestHalfPlane(unittest.TestCase):
    def test_all_zero_coefficients_have_no_line(self):
        self.assertIsNone(HalfPlane.from_coefficients([0.0, 0.0, 0.0]))

    def test_from_coefficients_normalises(self):
        line = HalfPlane.from_coefficients(np.array([1.0, -2.0, 4.0]))
        self.assertEqual(line, HalfPlane(0.25, -0.5, 1.0))
        self.assertFalse(line.is_constant)
        self.assertAlmostEqual(_evaluate(line, 2.0, 3.0), 0.0)

    def test_tiny_coefficients_are_kept(self):
        line = HalfPlane.from_coefficients([0.0, 0.0, -1e-30])
        self.assertEqual(line, HalfPlane(0.0, 0.0, -1.0))
        self.assertTrue(line.is_constant)

    def test_cancelled_row_has_no_line(self):
        # Coefficients left over after cancellation of order-one terms.
        self.assertIsNone(HalfPlane.from_coefficients([1e-17, 0.0, -1e-17], scale=1.0))
        self.assertIsNotNone(HalfPlane.from_coefficients([1e-17, 0.0, -1e-17], scale=1e-17))

    def test_non_finite_coefficients_have_no_line(self):
        self.assertIsNone(HalfPlane.from_coefficients([np.nan, 1.0, 0.0]))

    def test_constant_line(self):
        self.assertTrue(HalfPlane(0.0, 0.0, -1.0).is_constant)
        self.assertTrue(HalfPlane(0.0, 0.0, 2.0).is_constant)
        self.assertTrue(HalfPlane(1e-20, 0.0, 1e-5).is_constant)
        self.assertFalse(HalfPlane(1e-20, 0.0, 1e-19).is_constant)


class TestPolygonFromBoundaries(unittest.TestCase):
    def test_unit_square(self):
        poly = polygon_from_boundaries(_unit_square_lines())
        self.assertIsNotNone(poly)
        self.assertAlmostEqual(poly.area, 1.0, places=9)
        np.testing.assert_allclose(poly.bounds, (0.0, 0.0, 1.0, 1.0), atol=1e-9)

    def test_homogeneous_scaling_of_lines(self):
        lines = [HalfPlane(2.0 * l.a, 2.0 * l.b, 2.0 * l.c) for l in _unit_square_lines()]
        poly = polygon_from_boundaries(lines)
        self.assertAlmostEqual(poly.area, 1.0, places=9)

    def test_triangle(self):
        lines = [
            HalfPlane(1.0, 0.0, 0.0),
            HalfPlane(0.0, 1.0, 0.0),
            HalfPlane(-1.0, -1.0, 2.0),
        ]
        poly = polygon_from_boundaries(lines)
        self.assertAlmostEqual(poly.area, 2.0, places=9)

    def test_infeasible_returns_none(self):
        lines = _unit_square_lines() + [HalfPlane(1.0, 0.0, -2.0)]
        self.assertIsNone(polygon_from_boundaries(lines))

    def test_unbounded_returns_none(self):
        lines = [
            HalfPlane(1.0, 0.0, 0.0),
            HalfPlane(0.0, 1.0, 0.0),
            HalfPlane(1.0, 1.0, -1.0),
        ]
        self.assertIsNone(polygon_from_boundaries(lines))

    def test_zero_area_returns_none(self):
        lines = _unit_square_lines() + [HalfPlane(1.0, 0.0, -1.0)]
        self.assertIsNone(polygon_from_boundaries(lines))

    def test_too_few_lines_returns_none(self):
        self.assertIsNone(polygon_from_boundaries(_unit_square_lines()[:2]))

    def test_negative_constant_line_makes_region_empty(self):
        lines = _unit_square_lines() + [HalfPlane(0.0, 0.0, -0.5)]
        self.assertIsNone(polygon_from_boundaries(lines))

    def test_positive_constant_line_is_ignored(self):
        lines = _unit_square_lines() + [HalfPlane(0.0, 0.0, 0.5)]
        poly = polygon_from_boundaries(lines)
        self.assertAlmostEqual(poly.area, 1.0, places=9)

    def test_duplicate_lines(self):
        lines = _unit_square_lines() + _unit_square_lines()
        poly = polygon_from_boundaries(lines)
        self.assertAlmostEqual(poly.area, 1.0, places=9)


class TestPolygonDifference(unittest.TestCase):
    def test_no_subtrahends_returns_same_object(self):
        shape = box(0.0, 0.0, 1.0, 1.0)
        self.assertIs(polygon_difference(shape, []), shape)
        self.assertIs(polygon_difference(shape, [None]), shape)

    def test_disjoint_subtrahend_returns_same_object(self):
        shape = box(0.0, 0.0, 1.0, 1.0)
        self.assertIs(polygon_difference(shape, [box(2.0, 2.0, 3.0, 3.0)]), shape)

    def test_full_cover_leaves_empty(self):
        shape = box(0.0, 0.0, 1.0, 1.0)
        out = polygon_difference(shape, [box(-1.0, -1.0, 2.0, 2.0)])
        self.assertTrue(out.is_empty)
        self.assertEqual(polygon_loops(out), [])

    def test_union_of_subtrahends(self):
        shape = box(0.0, 0.0, 1.0, 1.0)
        out = polygon_difference(shape, [box(-1.0, -1.0, 0.5, 2.0), box(0.25, -1.0, 0.75, 2.0)])
        self.assertAlmostEqual(out.area, 0.25, places=9)

    def test_split_into_parts(self):
        shape = box(0.0, 0.0, 1.0, 1.0)
        out = polygon_difference(shape, [box(0.4, -1.0, 0.6, 2.0)])
        self.assertEqual(len(polygon_loops(out)), 2)
        self.assertAlmostEqual(out.area, 0.8, places=9)

    def test_hole(self):
        shape = box(0.0, 0.0, 1.0, 1.0)
        out = polygon_difference(shape, [box(0.25, 0.25, 0.75, 0.75)])
        self.assertIsInstance(out, Polygon)
        self.assertEqual(len(out.interiors), 1)
        loops = polygon_loops(out)
        self.assertEqual(len(loops), 2)
        for loop in loops:
            self.assertEqual(loop.shape, (4, 3))
            np.testing.assert_array_equal(loop[:, 2], np.ones(4))


class TestSignedArea(unittest.TestCase):
    def test_orientation(self):
        ccw = np.array([[0.0, 0.0, 1.0], [1.0, 0.0, 1.0], [1.0, 1.0, 1.0], [0.0, 1.0, 1.0]])
        self.assertAlmostEqual(signed_area(ccw), 1.0)
        self.assertAlmostEqual(signed_area(ccw[::-1]), -1.0)

    def test_homogeneous_weight(self):
        pts = np.array([[0.0, 0.0, 2.0], [1.0, 0.0, 2.0], [1.0, 1.0, 2.0], [0.0, 1.0, 2.0]])
        self.assertAlmostEqual(signed_area(pts), 0.25)

    def test_degenerate(self):
        self.assertEqual(signed_area(np.array([[0.0, 0.0, 1.0], [1.0, 0.0, 1.0]])), 0.0)


if __name__ == "__main__":
    unittest.main()
