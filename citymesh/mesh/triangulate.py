#!/usr/bin/env python3
"""
ポリゴン三角形分割

外周リング＋穴リングからなるポリゴンを三角形に分割します。
法線推定 → ローカル平面への投影 → 2D耳刈り (mapbox_earcut) の順に処理し、
ちょうど3頂点の穴なしポリゴンはそのまま1枚の三角形として扱います。
"""

import threading
import time
from typing import Callable, List, Optional, Sequence, Tuple
import numpy as np
import mapbox_earcut

from .normals import newell_normal, is_degenerate
from .projection import PlanarProjector
from ..config import TriangulationConfig
from ..constants import TRIANGLE_VERTEX_COUNT
from .. import get_logger

logger = get_logger(__name__)

# (2D点 (N, 2), 穴の開始オフセット) -> ローカルインデックス三つ組 (M, 3)
TriangulateFn = Callable[[np.ndarray, Sequence[int]], np.ndarray]

_SEQUENCE_TYPES = (list, tuple, np.ndarray)


def _empty_triangles() -> np.ndarray:
    return np.empty((0, 3), dtype=np.int64)


def earcut_triangulate(points_2d: np.ndarray, hole_starts: Sequence[int]) -> np.ndarray:
    """
    mapbox_earcut による2D三角形分割

    mapbox_earcut はリング終端インデックスを受け取るため、
    穴の開始オフセットに全頂点数を加えて変換します。

    Args:
        points_2d: 平坦化されたリング頂点の2D座標 (N, 2)
        hole_starts: 各穴リングの開始オフセット（昇順）

    Returns:
        points_2d へのインデックス三つ組 (M, 3)
    """
    pts = np.ascontiguousarray(points_2d, dtype=np.float64).reshape(-1, 2)
    ring_ends = np.array(list(hole_starts) + [len(pts)], dtype=np.uint32)
    indices = mapbox_earcut.triangulate_float64(pts, ring_ends)
    return np.asarray(indices, dtype=np.int64).reshape(-1, 3)


def flatten_polygon(polygon: Sequence[Sequence[int]]) -> Tuple[List[int], List[int]]:
    """
    外周リングと穴リングを1本の頂点列に平坦化

    穴の開始オフセットは、それ以前に連結された全リングの頂点数の累積です。
    空のリングは無視します。

    Args:
        polygon: [外周リング, 穴リング, ...]（各リングは頂点インデックス列）

    Returns:
        (平坦化された頂点インデックス列, 穴の開始オフセット列)

    Raises:
        ValueError: ポリゴンやリングの入れ子が不正、または頂点インデックスが整数でない
    """
    if not isinstance(polygon, _SEQUENCE_TYPES):
        raise ValueError(f"Polygon must be a sequence of rings, got {polygon!r}")

    boundary: List[int] = []
    holes: List[int] = []
    for k, ring in enumerate(polygon):
        if not isinstance(ring, _SEQUENCE_TYPES):
            raise ValueError(f"Ring {k} must be a sequence of vertex indices, got {ring!r}")
        if len(ring) == 0:
            continue
        try:
            indices = [int(v) for v in ring]
        except TypeError:
            raise ValueError(f"Ring {k} has a non-integer vertex index: {list(ring)!r}") from None
        if boundary:
            holes.append(len(boundary))
        boundary.extend(indices)
    return boundary, holes


class PolygonTriangulator:
    """穴付きポリゴン三角形分割クラス"""

    def __init__(
        self,
        triangulate_fn: Optional[TriangulateFn] = None,
        config: Optional[TriangulationConfig] = None
    ):
        """
        初期化

        Args:
            triangulate_fn: 2D三角形分割関数（Noneなら earcut_triangulate）
            config: 三角形分割設定
        """
        self.triangulate_fn = triangulate_fn or earcut_triangulate
        self.config = config or TriangulationConfig()
        self._stats_lock = threading.Lock()
        self.reset_stats()

    def triangulate(
        self,
        boundary: Sequence[int],
        holes: Sequence[int],
        vertices: np.ndarray
    ) -> np.ndarray:
        """
        平坦化済みポリゴンを三角形分割

        Args:
            boundary: 平坦化された頂点インデックス列
            holes: 穴の開始オフセット
            vertices: 共有頂点テーブル (N, 3)

        Returns:
            boundary へのローカルインデックス三つ組 (M, 3)
        """
        start_time = time.perf_counter()

        if len(boundary) < TRIANGLE_VERTEX_COUNT:
            self._record(degenerate=1)
            return _empty_triangles()

        if len(boundary) == TRIANGLE_VERTEX_COUNT and not holes:
            self._record(fast_path=1, triangles=1)
            return np.array([[0, 1, 2]], dtype=np.int64)

        points = vertices[np.asarray(boundary, dtype=np.int64)]

        normal = newell_normal(points, self.config.normal_epsilon)
        if is_degenerate(normal):
            logger.debug("Degenerate face with %d vertices skipped", len(boundary))
            self._record(degenerate=1)
            return _empty_triangles()

        projector = PlanarProjector.from_config(normal, self.config)
        points_2d = projector.project(points)

        triangles = np.asarray(self.triangulate_fn(points_2d, list(holes)), dtype=np.int64).reshape(-1, 3)

        self._record(
            degenerate=int(len(triangles) == 0),
            triangles=len(triangles),
            total_time_ms=(time.perf_counter() - start_time) * 1000,
        )
        return triangles

    def triangulate_polygon(self, polygon: Sequence[Sequence[int]], vertices: np.ndarray) -> np.ndarray:
        """
        ポリゴンを三角形分割し、頂点テーブルのインデックスで返す

        Args:
            polygon: [外周リング, 穴リング, ...]
            vertices: 共有頂点テーブル (N, 3)

        Returns:
            頂点テーブルへのインデックス三つ組 (M, 3)
        """
        boundary, holes = flatten_polygon(polygon)
        local = self.triangulate(boundary, holes, vertices)
        if len(local) == 0:
            return local
        return np.asarray(boundary, dtype=np.int64)[local]

    def _record(self, **deltas) -> None:
        """統計更新（ワーカースレッドから同時に呼ばれる）"""
        with self._stats_lock:
            self.stats['total_polygons'] += 1
            for key, value in deltas.items():
                self.stats[key] += value

    def get_performance_stats(self) -> dict:
        """パフォーマンス統計取得"""
        with self._stats_lock:
            return self.stats.copy()

    def reset_stats(self):
        """統計リセット"""
        with self._stats_lock:
            self.stats = {
                'total_polygons': 0,
                'fast_path': 0,
                'degenerate': 0,
                'triangles': 0,
                'total_time_ms': 0.0
            }


# 便利関数

def triangulate_polygon(
    polygon: Sequence[Sequence[int]],
    vertices: np.ndarray,
    config: Optional[TriangulationConfig] = None
) -> np.ndarray:
    """
    ポリゴンを三角形分割（簡単なインターフェース）

    Args:
        polygon: [外周リング, 穴リング, ...]
        vertices: 共有頂点テーブル (N, 3)
        config: 三角形分割設定

    Returns:
        頂点テーブルへのインデックス三つ組 (M, 3)
    """
    triangulator = PolygonTriangulator(config=config)
    return triangulator.triangulate_polygon(polygon, vertices)
