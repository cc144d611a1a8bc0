#!/usr/bin/env python3
"""
三角形メッシュ出力バッファ

三角形分割の結果を、出力頂点ごとのインデックス整列した並列リストとして
蓄積します。頂点位置そのものは共有頂点テーブルへの参照で保持し、
溶接・重複排除は行いません。

バッファ長は常に3の倍数です（1三角形 = 3頂点）。
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple
import numpy as np

from ..constants import NO_INDEX

# 並列ストリーム名（to_arrays() のキー）
STREAM_NAMES: Tuple[str, ...] = (
    "vertices",
    "object_ids",
    "object_types",
    "semantic_surfaces",
    "geometry_ids",
    "boundary_ids",
    "lod_ids",
)


@dataclass(frozen=True)
class EmittedVertex:
    """出力頂点1個分の属性"""
    vertex: int
    object_id: int
    object_type: int
    semantic_surface: int
    geometry_id: int
    boundary_id: int
    lod_id: int


@dataclass
class TriangleMesh:
    """三角形メッシュデータ構造"""
    vertices: np.ndarray       # 頂点座標 (N, 3) - (x, y, z)
    triangles: np.ndarray      # 三角形インデックス (M, 3)

    @property
    def num_vertices(self) -> int:
        """頂点数を取得"""
        return len(self.vertices)

    @property
    def num_triangles(self) -> int:
        """三角形数を取得"""
        return len(self.triangles)

    def get_bounds(self) -> Tuple[np.ndarray, np.ndarray]:
        """参照されている頂点のバウンディングボックスを取得（頂点が無ければゼロ）"""
        used = self.vertices[np.unique(self.triangles)] if self.num_triangles else self.vertices
        if len(used) == 0:
            return np.zeros(3), np.zeros(3)
        return np.min(used, axis=0), np.max(used, axis=0)

    def get_triangle_normals(self) -> np.ndarray:
        """三角形の単位法線を計算（退化三角形はゼロベクトル）"""
        v0 = self.vertices[self.triangles[:, 0]]
        v1 = self.vertices[self.triangles[:, 1]]
        v2 = self.vertices[self.triangles[:, 2]]
        normals = np.cross(v1 - v0, v2 - v0)
        norms = np.linalg.norm(normals, axis=1, keepdims=True)
        return np.divide(normals, norms, out=np.zeros_like(normals), where=norms > 0)

    def get_triangle_areas(self) -> np.ndarray:
        """三角形の面積を計算"""
        v0 = self.vertices[self.triangles[:, 0]]
        v1 = self.vertices[self.triangles[:, 1]]
        v2 = self.vertices[self.triangles[:, 2]]
        cross = np.cross(v1 - v0, v2 - v0)
        return np.linalg.norm(cross, axis=1) / 2.0


class GeometryData:
    """追記専用の出力バッファ

    1回のパースを担う呼び出し側が所有し、再利用前に clear() します。
    """

    def __init__(self):
        self.clear()

    def clear(self) -> None:
        """全ストリームを空にする"""
        self.vertices: List[int] = []
        self.object_ids: List[int] = []
        self.object_types: List[int] = []
        self.semantic_surfaces: List[int] = []
        self.geometry_ids: List[int] = []
        self.boundary_ids: List[int] = []
        self.lod_ids: List[int] = []

    def add_vertex(
        self,
        vertex: int,
        object_id: int,
        object_type: int,
        semantic_surface: int,
        geometry_id: Optional[int] = None,
        boundary_id: Optional[int] = None,
        lod_id: Optional[int] = None
    ) -> None:
        """
        出力頂点を1個追加

        Args:
            vertex: 共有頂点テーブルへのインデックス（範囲チェックなし）
            object_id: 所有オブジェクトのインデックス
            object_type: オブジェクト種別インデックス
            semantic_surface: セマンティックサーフェス種別インデックス
            geometry_id: ジオメトリインデックス（省略時 -1）
            boundary_id: サーフェス列内のポリゴンインデックス（省略時 -1）
            lod_id: LODインデックス（省略時 -1）
        """
        self.vertices.append(int(vertex))
        self.object_ids.append(object_id)
        self.object_types.append(object_type)
        self.semantic_surfaces.append(semantic_surface)
        self.geometry_ids.append(NO_INDEX if geometry_id is None else geometry_id)
        self.boundary_ids.append(NO_INDEX if boundary_id is None else boundary_id)
        self.lod_ids.append(NO_INDEX if lod_id is None else lod_id)

    def add_triangle(
        self,
        triangle: Sequence[int],
        object_id: int,
        object_type: int,
        semantic_surface: int,
        geometry_id: Optional[int] = None,
        boundary_id: Optional[int] = None,
        lod_id: Optional[int] = None
    ) -> None:
        """三角形を追加（3頂点は頂点位置以外の属性を共有）"""
        if len(triangle) != 3:
            raise ValueError(f"Triangle must have 3 vertices, got {len(triangle)}")
        for vertex in triangle:
            self.add_vertex(vertex, object_id, object_type, semantic_surface,
                            geometry_id, boundary_id, lod_id)

    def extend(self, other: "GeometryData") -> None:
        """別バッファの内容を末尾に連結（ワーカーごとのバッファのマージ用）"""
        for name in STREAM_NAMES:
            getattr(self, name).extend(getattr(other, name))

    def truncate(self, length: int) -> None:
        """先頭 length 頂点だけを残す（失敗したジオメトリの途中出力の取り消し用）"""
        if length < 0 or length % 3:
            raise ValueError(f"Length must be a non-negative multiple of 3, got {length}")
        for name in STREAM_NAMES:
            del getattr(self, name)[length:]

    def vertex_at(self, i: int) -> EmittedVertex:
        """i番目の出力頂点を取得"""
        return EmittedVertex(*(getattr(self, name)[i] for name in STREAM_NAMES))

    def __len__(self) -> int:
        return len(self.vertices)

    @property
    def num_triangles(self) -> int:
        """三角形数を取得"""
        return len(self.vertices) // 3

    @property
    def is_empty(self) -> bool:
        return not self.vertices

    def to_arrays(self) -> Dict[str, np.ndarray]:
        """全ストリームを読み取り専用のint配列として取得"""
        arrays = {}
        for name in STREAM_NAMES:
            arr = np.array(getattr(self, name), dtype=np.int64)
            arr.setflags(write=False)
            arrays[name] = arr
        return arrays

    def to_triangle_mesh(self, vertex_table: np.ndarray) -> TriangleMesh:
        """
        共有頂点テーブルを参照する三角形メッシュに変換

        Args:
            vertex_table: 共有頂点テーブル (N, 3)

        Returns:
            三角形メッシュ（頂点は溶接しない）
        """
        triangles = np.array(self.vertices, dtype=np.int64).reshape(-1, 3)
        return TriangleMesh(vertices=np.asarray(vertex_table), triangles=triangles)
