#!/usr/bin/env python3
"""
バウンダリウォーカー

ジオメトリ種別ごとに入れ子の深さが異なるバウンダリ配列を再帰的に辿り、
各ポリゴン（外周リング＋穴リング）を三角形分割して出力バッファへ追加します。

種別と入れ子の対応:
    MultiSurface / CompositeSurface : ポリゴン列
    Solid                           : シェル → ポリゴン列
    MultiSolid / CompositeSolid     : ソリッド → シェル → ポリゴン列

セマンティクスの values はバウンダリからリング次元を除いた同じ形状を持ちます。
未対応の種別は黙ってスキップします（上流が描画対象外の種別を含むことがあるため）。
"""

import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Set
import numpy as np

from .buffer import GeometryData
from .registry import LodRegistry, ObjectTypeRegistry, SemanticSurfaceRegistry
from .triangulate import PolygonTriangulator
from ..constants import NO_SEMANTIC_SURFACE, OBJECT_TYPE_NOT_FOUND
from ..data_types import (
    CityModel,
    Geometry,
    GeometryKind,
    ObjectCategoryNotFoundError,
    OwnerNotFoundError,
    SemanticSurface,
)
from .. import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class OwnerInfo:
    """ジオメトリ単位で一度だけ解決される所有者属性"""
    object_id: int
    object_type: int
    geometry_id: Optional[int]
    lod_id: int


def _child(values: Any, i: int) -> Any:
    """セマンティクス values の i 番目（存在しなければ None）"""
    if not isinstance(values, (list, tuple)) or i >= len(values):
        return None
    return values[i]


class BoundaryWalker:
    """ジオメトリバウンダリの走査と三角形出力"""

    def __init__(
        self,
        model: CityModel,
        data: Optional[GeometryData] = None,
        semantic_registry: Optional[SemanticSurfaceRegistry] = None,
        object_type_registry: Optional[ObjectTypeRegistry] = None,
        lod_registry: Optional[LodRegistry] = None,
        triangulator: Optional[PolygonTriangulator] = None,
        strict_object_types: bool = False,
        object_index: Optional[Mapping[str, int]] = None
    ):
        """
        初期化

        Args:
            model: 都市モデル（頂点テーブルとオブジェクト一覧）
            data: 出力バッファ（walk() で個別に渡さない場合の出力先）
            semantic_registry: セマンティックサーフェス種別レジストリ
            object_type_registry: オブジェクト種別レジストリ
            lod_registry: LODレジストリ
            triangulator: ポリゴン三角形分割器
            strict_object_types: 未知のオブジェクト種別を例外として扱うか
            object_index: オブジェクトID → インデックス（Noneなら model.object_ids から構築）
        """
        self.model = model
        self.data = data if data is not None else GeometryData()
        self.semantics = semantic_registry if semantic_registry is not None else SemanticSurfaceRegistry()
        self.object_types = object_type_registry if object_type_registry is not None else ObjectTypeRegistry()
        self.lods = lod_registry if lod_registry is not None else LodRegistry()
        self.triangulator = triangulator or PolygonTriangulator()
        self.strict_object_types = strict_object_types

        if object_index is None:
            index: Dict[str, int] = {}
            for i, object_id in enumerate(model.object_ids):
                index.setdefault(object_id, i)
            object_index = index
        self._object_index = object_index
        # 並列パースではワーカー間で共有される
        self._warned_lock = threading.Lock()
        self._warned_types: Set[str] = set()

        self._handlers: Dict[GeometryKind, Callable[..., None]] = {
            GeometryKind.SOLID: self._walk_solid,
            GeometryKind.MULTI_SOLID: self._walk_multi_solid,
            GeometryKind.COMPOSITE_SOLID: self._walk_multi_solid,
            GeometryKind.MULTI_SURFACE: self._walk_multi_surface,
            GeometryKind.COMPOSITE_SURFACE: self._walk_multi_surface,
        }

    def walk(
        self,
        geometry: Geometry,
        object_id: str,
        geometry_index: Optional[int] = None,
        data: Optional[GeometryData] = None
    ) -> int:
        """
        ジオメトリを三角形分割して出力バッファへ追加

        Args:
            geometry: ジオメトリ
            object_id: 所有オブジェクトID
            geometry_index: オブジェクト内のジオメトリインデックス
            data: 出力バッファ（Noneなら self.data）

        Returns:
            追加した三角形数

        Raises:
            OwnerNotFoundError: object_id が既知のオブジェクト一覧に無い
            ObjectCategoryNotFoundError: strict_object_types かつ種別が未知
        """
        out = data if data is not None else self.data

        handler = self._handlers.get(geometry.kind)
        if handler is None:
            logger.debug("Skipping unsupported geometry type %r of %s", geometry.type_name, object_id)
            return 0

        owner = self.resolve_owner(object_id, geometry, geometry_index)
        before = out.num_triangles
        handler(geometry, owner, out)
        return out.num_triangles - before

    def resolve_owner(
        self,
        object_id: str,
        geometry: Geometry,
        geometry_index: Optional[int] = None
    ) -> OwnerInfo:
        """所有オブジェクトのインデックス・種別・LODを解決"""
        index = self._object_index.get(object_id)
        city_object = self.model.city_objects.get(object_id)
        if index is None or city_object is None:
            raise OwnerNotFoundError(object_id)

        return OwnerInfo(
            object_id=index,
            object_type=self._resolve_object_type(city_object.type_name),
            geometry_id=geometry_index,
            lod_id=self.lods.resolve(geometry.lod),
        )

    def _resolve_object_type(self, type_name: str) -> int:
        try:
            return self.object_types.resolve(type_name)
        except ObjectCategoryNotFoundError:
            if self.strict_object_types:
                raise
            with self._warned_lock:
                first = type_name not in self._warned_types
                self._warned_types.add(type_name)
            if first:
                logger.warning("Unknown city object type %r, using index %d", type_name, OBJECT_TYPE_NOT_FOUND)
            return OBJECT_TYPE_NOT_FOUND

    # ------------------------------------------------------------------
    # 種別ごとの走査
    # ------------------------------------------------------------------

    def _walk_multi_surface(self, geometry: Geometry, owner: OwnerInfo, out: GeometryData) -> None:
        values, surfaces = self._semantics_of(geometry)
        self._walk_surfaces(geometry.boundaries, values, surfaces, owner, out)

    def _walk_solid(self, geometry: Geometry, owner: OwnerInfo, out: GeometryData) -> None:
        values, surfaces = self._semantics_of(geometry)
        for i, shell in enumerate(geometry.boundaries):
            self._walk_surfaces(shell, _child(values, i), surfaces, owner, out)

    def _walk_multi_solid(self, geometry: Geometry, owner: OwnerInfo, out: GeometryData) -> None:
        values, surfaces = self._semantics_of(geometry)
        for i, solid in enumerate(geometry.boundaries):
            solid_values = _child(values, i)
            for j, shell in enumerate(solid):
                self._walk_surfaces(shell, _child(solid_values, j), surfaces, owner, out)

    @staticmethod
    def _semantics_of(geometry: Geometry):
        if geometry.semantics is None:
            return None, []
        return geometry.semantics.values, geometry.semantics.surfaces

    def _walk_surfaces(
        self,
        polygons: Sequence[Sequence[Sequence[int]]],
        semantic_values: Any,
        semantic_surfaces: List[SemanticSurface],
        owner: OwnerInfo,
        out: GeometryData
    ) -> None:
        """ポリゴン列を三角形分割して出力"""
        vertices = self.model.vertices
        for i, polygon in enumerate(polygons):
            semantic = self._resolve_semantic(i, semantic_values, semantic_surfaces)
            triangles = self.triangulator.triangulate_polygon(polygon, vertices)
            for triangle in triangles:
                out.add_triangle(
                    triangle,
                    owner.object_id,
                    owner.object_type,
                    semantic,
                    owner.geometry_id,
                    i,
                    owner.lod_id,
                )

    def _resolve_semantic(
        self,
        i: int,
        semantic_values: Any,
        semantic_surfaces: List[SemanticSurface]
    ) -> int:
        """i番目のポリゴンのセマンティックサーフェス種別インデックス"""
        ref = _child(semantic_values, i)
        if ref is None:
            return NO_SEMANTIC_SURFACE
        if isinstance(ref, bool) or not isinstance(ref, (int, np.integer)):
            raise ValueError(f"Semantic value must be a surface index, got {ref!r}")
        if ref < 0 or ref >= len(semantic_surfaces):
            logger.debug("Semantic surface index %d out of range (%d surfaces)", ref, len(semantic_surfaces))
            return NO_SEMANTIC_SURFACE
        return self.semantics.resolve(semantic_surfaces[ref].type_name)
