#!/usr/bin/env python3
"""
ベクトル演算・法線推定・平面投影のテスト
"""

import unittest
import itertools
import numpy as np

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from citymesh.mesh import (
    normalize, dot, cross, subtract, scale, length, distance,
    newell_normal, newell_vector, is_degenerate,
    PlanarProjector, project_to_plane
)
from citymesh.config import TriangulationConfig


def _plane_points(origin, u, v, coords):
    """平面 origin + a*u + b*v 上の点を生成"""
    origin = np.asarray(origin, dtype=float)
    u = normalize(u)
    v = normalize(v)
    return np.array([origin + a * u + b * v for a, b in coords])


class TestVectorMath(unittest.TestCase):
    """ベクトル演算テスト"""

    def test_basic_operations(self):
        self.assertAlmostEqual(dot([1, 2, 3], [4, 5, 6]), 32.0)
        np.testing.assert_allclose(cross([1, 0, 0], [0, 1, 0]), [0, 0, 1])
        np.testing.assert_allclose(subtract([3, 3, 3], [1, 2, 3]), [2, 1, 0])
        np.testing.assert_allclose(scale([1, -2, 0.5], 2.0), [2, -4, 1])
        self.assertAlmostEqual(length([3, 4, 0]), 5.0)
        self.assertAlmostEqual(distance([1, 1, 1], [1, 1, 3]), 2.0)

    def test_normalize(self):
        n = normalize([0, 0, 5])
        np.testing.assert_allclose(n, [0, 0, 1])
        self.assertAlmostEqual(length(normalize([1, 2, 3])), 1.0)

    def test_normalize_zero_vector(self):
        """ゼロベクトルはゼロ除算せずゼロを返す"""
        np.testing.assert_array_equal(normalize([0, 0, 0]), [0, 0, 0])


class TestNewellNormal(unittest.TestCase):
    """Newell法による法線推定テスト"""

    def setUp(self):
        self.square = np.array([
            [0.0, 0.0, 0.0],
            [1.0, 0.0, 0.0],
            [1.0, 1.0, 0.0],
            [0.0, 1.0, 0.0],
        ])

    def test_counter_clockwise_square(self):
        np.testing.assert_allclose(newell_normal(self.square), [0, 0, 1], atol=1e-12)

    def test_winding_flips_normal(self):
        np.testing.assert_allclose(newell_normal(self.square[::-1]), [0, 0, -1], atol=1e-12)

    def test_vector_length_is_twice_area(self):
        self.assertAlmostEqual(length(newell_vector(self.square)), 2.0)

    def test_starting_point_invariance(self):
        """開始点の巡回シフトに対して不変"""
        ring = np.array([[0, 0, 0], [4, 0, 1], [5, 3, 2], [2, 5, 1], [-1, 2, 0]], dtype=float)
        expected = newell_normal(ring)
        for shift in range(1, len(ring)):
            with self.subTest(shift=shift):
                np.testing.assert_allclose(newell_normal(np.roll(ring, shift, axis=0)), expected, atol=1e-12)

    def test_non_convex_ring(self):
        """凹ポリゴン（L字）でも法線が定義される"""
        l_shape = np.array([
            [0, 0, 2], [2, 0, 2], [2, 1, 2], [1, 1, 2], [1, 2, 2], [0, 2, 2]
        ], dtype=float)
        np.testing.assert_allclose(newell_normal(l_shape), [0, 0, 1], atol=1e-12)

    def test_slightly_non_planar_ring(self):
        ring = self.square.copy()
        ring[2, 2] = 0.01
        normal = newell_normal(ring)
        self.assertAlmostEqual(length(normal), 1.0)
        self.assertGreater(normal[2], 0.99)

    def test_degenerate_rings(self):
        coincident = np.ones((4, 3))
        collinear = np.array([[0, 0, 0], [1, 1, 1], [2, 2, 2], [3, 3, 3]], dtype=float)
        for ring in (coincident, collinear):
            with self.subTest(ring=ring.tolist()):
                self.assertTrue(is_degenerate(newell_normal(ring)))

    def test_invalid_shape(self):
        with self.assertRaises(ValueError):
            newell_normal(np.zeros((4, 2)))


class TestPlanarProjector(unittest.TestCase):
    """平面投影テスト"""

    def _assert_orthonormal(self, projector):
        n, x, y = projector.normal, projector.x_axis, projector.y_axis
        for a in (n, x, y):
            self.assertAlmostEqual(length(a), 1.0)
        self.assertAlmostEqual(dot(n, x), 0.0)
        self.assertAlmostEqual(dot(n, y), 0.0)
        self.assertAlmostEqual(dot(x, y), 0.0)

    def test_axis_aligned_normals(self):
        for axis in itertools.product((-1, 0, 1), repeat=3):
            if sum(abs(c) for c in axis) != 1:
                continue
            with self.subTest(normal=axis):
                self._assert_orthonormal(PlanarProjector(np.array(axis, dtype=float)))

    def test_normal_parallel_to_probe(self):
        """プローブベクトルと（反）平行な法線でも基底が定義される"""
        for sign in (1.0, -1.0):
            with self.subTest(sign=sign):
                projector = PlanarProjector(sign * np.array([1.0, 1.0, 1.0]))
                self._assert_orthonormal(projector)

    def test_right_handed_frame(self):
        projector = PlanarProjector(np.array([0.2, -0.5, 0.8]))
        np.testing.assert_allclose(cross(projector.x_axis, projector.y_axis), projector.normal, atol=1e-12)

    def test_zero_normal_rejected(self):
        with self.assertRaises(ValueError):
            PlanarProjector(np.zeros(3))

    def test_projection_preserves_distances(self):
        """平面上のリングは投影後もすべての頂点間距離を保つ"""
        cases = [
            ([0, 0, 0], [1, 0, 0], [0, 1, 0]),
            ([10, -3, 7], [1, 0, 0], [0, 0, 1]),
            ([5, 5, 5], [1, -1, 0], [1, 1, -2]),
            ([1, 2, 3], [0.3, 0.9, -0.1], [-0.5, 0.2, 0.4]),
        ]
        coords = [(0, 0), (4, 0), (4, 3), (2, 5), (0, 3)]
        for origin, u, v in cases:
            v_orth = subtract(v, dot(v, normalize(u)) * normalize(u))
            points = _plane_points(origin, u, v_orth, coords)
            normal = newell_normal(points)
            projected = PlanarProjector(normal).project(points)
            with self.subTest(origin=origin):
                for i, j in itertools.combinations(range(len(points)), 2):
                    self.assertAlmostEqual(
                        np.linalg.norm(projected[i] - projected[j]),
                        np.linalg.norm(points[i] - points[j]),
                        places=9
                    )

    def test_round_trip(self):
        """投影して戻すと元の点に一致する"""
        points = _plane_points([2, -1, 4], [1, 2, 0], [-2, 1, 3], [(0, 0), (3, 0), (3, 2), (0, 2)])
        projector = PlanarProjector(newell_normal(points))
        restored = projector.unproject(projector.project(points), origin=points[0])
        np.testing.assert_allclose(restored, points, atol=1e-9)

    def test_project_to_plane_uses_config(self):
        points = np.array([[0, 0, 0], [1, 0, 0], [0, 1, 0]], dtype=float)
        result = project_to_plane(points, np.array([0, 0, 1.0]), TriangulationConfig())
        self.assertEqual(result.shape, (3, 2))


if __name__ == '__main__':
    unittest.main()
