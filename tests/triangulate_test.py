#!/usr/bin/env python3
"""
ポリゴン三角形分割のテスト
"""

import unittest
from unittest.mock import Mock, patch
import numpy as np

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from citymesh.mesh import (
    PolygonTriangulator,
    earcut_triangulate,
    flatten_polygon,
    triangulate_polygon,
    normalize,
)


class TestFlattenPolygon(unittest.TestCase):
    """リング平坦化テスト"""

    def test_outer_ring_only(self):
        boundary, holes = flatten_polygon([[3, 4, 5, 6]])
        self.assertEqual(boundary, [3, 4, 5, 6])
        self.assertEqual(holes, [])

    def test_hole_offsets_are_cumulative(self):
        boundary, holes = flatten_polygon([[0, 1, 2, 3], [4, 5, 6], [7, 8, 9]])
        self.assertEqual(boundary, list(range(10)))
        self.assertEqual(holes, [4, 7])

    def test_malformed_polygons_rejected(self):
        """入れ子の不足や整数でない頂点インデックスは ValueError"""
        for polygon in ([0, 1, 2, 3], [[0, 1, None]], 7, [[0, 1, [2]]]):
            with self.subTest(polygon=polygon), self.assertRaises(ValueError):
                flatten_polygon(polygon)

    def test_empty_rings_skipped(self):
        boundary, holes = flatten_polygon([[0, 1, 2, 3], [], [4, 5, 6]])
        self.assertEqual(boundary, [0, 1, 2, 3, 4, 5, 6])
        self.assertEqual(holes, [4])


class TestEarcutTriangulate(unittest.TestCase):
    """mapbox_earcut ラッパーテスト"""

    def test_square(self):
        square = np.array([[0, 0], [1, 0], [1, 1], [0, 1]], dtype=float)
        triangles = earcut_triangulate(square, [])
        self.assertEqual(triangles.shape, (2, 3))
        self.assertEqual(set(triangles.ravel()), {0, 1, 2, 3})

    def test_square_with_hole(self):
        points = np.array([
            [0, 0], [10, 0], [10, 10], [0, 10],
            [3, 3], [3, 7], [7, 7], [7, 3],
        ], dtype=float)
        triangles = earcut_triangulate(points, [4])
        # 外周4 + 穴4 の頂点から 8 三角形
        self.assertEqual(len(triangles), 8)
        self.assertTrue(np.all((triangles >= 0) & (triangles < 8)))


class TestPolygonTriangulator(unittest.TestCase):
    """PolygonTriangulator テスト"""

    def setUp(self):
        self.vertices = np.array([
            [0, 0, 0], [1, 0, 0], [1, 1, 0], [0, 1, 0],   # 水平な正方形
            [0, 0, 0], [2, 0, 0], [4, 0, 0], [6, 0, 0],   # 一直線
            [5, 5, 5], [5, 5, 5], [5, 5, 5], [5, 5, 5],   # 同一点
        ], dtype=float)
        self.triangulator = PolygonTriangulator()

    def test_fast_path_skips_triangulation(self):
        """3頂点・穴なしは2D分割も法線推定も行わない"""
        fn = Mock()
        triangulator = PolygonTriangulator(triangulate_fn=fn)
        with patch("citymesh.mesh.triangulate.newell_normal") as normal_mock:
            result = triangulator.triangulate([5, 6, 7], [], self.vertices)
        np.testing.assert_array_equal(result, [[0, 1, 2]])
        fn.assert_not_called()
        normal_mock.assert_not_called()

    def test_fast_path_preserves_vertex_order(self):
        result = self.triangulator.triangulate_polygon([[9, 2, 4]], self.vertices)
        np.testing.assert_array_equal(result, [[9, 2, 4]])

    def test_quad(self):
        result = self.triangulator.triangulate_polygon([[0, 1, 2, 3]], self.vertices)
        self.assertEqual(result.shape, (2, 3))
        self.assertEqual(set(result.ravel()), {0, 1, 2, 3})

    def test_triangle_count_matches_triangulate_fn(self):
        fn = Mock(side_effect=earcut_triangulate)
        triangulator = PolygonTriangulator(triangulate_fn=fn)
        result = triangulator.triangulate_polygon([[0, 1, 2, 3]], self.vertices)
        fn.assert_called_once()
        self.assertEqual(len(result), len(fn.side_effect(*fn.call_args[0])))

    def test_hole_offsets_passed_to_fn(self):
        vertices = np.array([
            [0, 0, 0], [10, 0, 0], [10, 10, 0], [0, 10, 0],
            [3, 3, 0], [3, 7, 0], [7, 7, 0], [7, 3, 0],
        ], dtype=float)
        fn = Mock(return_value=np.empty((0, 3), dtype=np.int64))
        triangulator = PolygonTriangulator(triangulate_fn=fn)
        triangulator.triangulate_polygon([[0, 1, 2, 3], [4, 5, 6, 7]], vertices)
        points_2d, holes = fn.call_args[0]
        self.assertEqual(points_2d.shape, (8, 2))
        self.assertEqual(list(holes), [4])

    def test_polygon_with_hole(self):
        vertices = np.array([
            [0, 0, 0], [10, 0, 0], [10, 10, 0], [0, 10, 0],
            [3, 3, 0], [3, 7, 0], [7, 7, 0], [7, 3, 0],
        ], dtype=float)
        result = triangulate_polygon([[0, 1, 2, 3], [4, 5, 6, 7]], vertices)
        self.assertEqual(len(result), 8)
        # 全三角形の面積の和は外周から穴を引いた面積
        v = vertices[result]
        areas = np.linalg.norm(np.cross(v[:, 1] - v[:, 0], v[:, 2] - v[:, 0]), axis=1) / 2
        self.assertAlmostEqual(float(areas.sum()), 100.0 - 16.0)

    def test_vertical_wall(self):
        """法線が水平な壁面でも分割できる"""
        vertices = np.array([[0, 0, 0], [4, 0, 0], [4, 0, 3], [0, 0, 3]], dtype=float)
        result = triangulate_polygon([[0, 1, 2, 3]], vertices)
        self.assertEqual(len(result), 2)

    def test_normal_parallel_to_probe(self):
        """法線が (1,1,1) 方向のポリゴン"""
        u = normalize([1, -1, 0])
        v = normalize([1, 1, -2])
        origin = np.array([1.0, 1.0, 1.0])
        vertices = np.array([origin, origin + 2 * u, origin + 2 * u + 2 * v, origin + 2 * v])
        result = triangulate_polygon([[0, 1, 2, 3]], vertices)
        self.assertEqual(len(result), 2)

    def test_degenerate_polygons(self):
        fn = Mock()
        triangulator = PolygonTriangulator(triangulate_fn=fn)
        for polygon in ([[4, 5, 6, 7]], [[8, 9, 10, 11]], [[0, 1]], [[]]):
            with self.subTest(polygon=polygon):
                result = triangulator.triangulate_polygon(polygon, self.vertices)
                self.assertEqual(result.shape, (0, 3))
        fn.assert_not_called()

    def test_performance_stats(self):
        self.triangulator.triangulate_polygon([[0, 1, 2]], self.vertices)
        self.triangulator.triangulate_polygon([[0, 1, 2, 3]], self.vertices)
        self.triangulator.triangulate_polygon([[4, 5, 6, 7]], self.vertices)

        stats = self.triangulator.get_performance_stats()
        self.assertEqual(stats['total_polygons'], 3)
        self.assertEqual(stats['fast_path'], 1)
        self.assertEqual(stats['degenerate'], 1)
        self.assertEqual(stats['triangles'], 3)

        self.triangulator.reset_stats()
        self.assertEqual(self.triangulator.get_performance_stats()['total_polygons'], 0)


if __name__ == '__main__':
    unittest.main()
