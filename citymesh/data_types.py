#!/usr/bin/env python3
"""
共通型定義

CityJSON形式の都市モデルを表すデータ構造とエラー型を一元管理し、
モジュール間の循環依存を解消します。

入力はデコード済みの汎用ツリー（dict / list / 数値 / 文字列）を前提とし、
ここではそれを型付きのレコードに写像するだけでファイルI/Oは行いません。
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Any, Dict, Mapping, Sequence
import numpy as np


# =============================================================================
# エラー定義
# =============================================================================

class CityMeshError(Exception):
    """citymesh の基底例外"""


class OwnerNotFoundError(CityMeshError, LookupError):
    """オブジェクトIDが既知のオブジェクト一覧に存在しない"""

    def __init__(self, object_id: str):
        super().__init__(f"City object not found: {object_id!r}")
        self.object_id = object_id


class ObjectCategoryNotFoundError(CityMeshError, LookupError):
    """オブジェクト種別がカテゴリ一覧に存在しない"""

    def __init__(self, type_name: str):
        super().__init__(f"Unknown city object type: {type_name!r}")
        self.type_name = type_name


# =============================================================================
# ジオメトリ型定義
# =============================================================================

class GeometryKind(Enum):
    """三角形分割対象のジオメトリ種別"""
    SOLID = "Solid"
    MULTI_SOLID = "MultiSolid"
    COMPOSITE_SOLID = "CompositeSolid"
    MULTI_SURFACE = "MultiSurface"
    COMPOSITE_SURFACE = "CompositeSurface"

    @classmethod
    def from_type_name(cls, type_name: Optional[str]) -> Optional["GeometryKind"]:
        """type文字列から種別を取得（未対応の種別はNone）"""
        try:
            return cls(type_name)
        except ValueError:
            return None

    @property
    def nesting_depth(self) -> int:
        """ポリゴン階層より上の入れ子の深さ"""
        if self in (GeometryKind.MULTI_SURFACE, GeometryKind.COMPOSITE_SURFACE):
            return 0
        if self is GeometryKind.SOLID:
            return 1
        return 2


@dataclass
class SemanticSurface:
    """セマンティックサーフェス定義"""
    type_name: str
    attributes: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, surface: Mapping[str, Any]) -> "SemanticSurface":
        attributes = {k: v for k, v in surface.items() if k != "type"}
        return cls(type_name=str(surface.get("type", "")), attributes=attributes)


@dataclass
class Semantics:
    """ジオメトリのセマンティクスブロック

    ``values`` はバウンダリと同じ形状からリング次元を除いたもので、
    葉はサーフェス定義のインデックスまたは None。
    """
    surfaces: List[SemanticSurface]
    values: Any

    @classmethod
    def from_dict(cls, semantics: Mapping[str, Any]) -> "Semantics":
        surfaces = [SemanticSurface.from_dict(s) for s in semantics.get("surfaces") or []]
        values = semantics.get("values")
        return cls(surfaces=surfaces, values=values if values is not None else [])


@dataclass
class Geometry:
    """ジオメトリオブジェクト"""
    kind: Optional[GeometryKind]
    type_name: str
    boundaries: Any
    semantics: Optional[Semantics] = None
    lod: Optional[str] = None

    @classmethod
    def from_dict(cls, geometry: Mapping[str, Any]) -> "Geometry":
        type_name = str(geometry.get("type", ""))
        semantics = geometry.get("semantics")
        lod = geometry.get("lod")
        return cls(
            kind=GeometryKind.from_type_name(type_name),
            type_name=type_name,
            boundaries=geometry.get("boundaries") or [],
            semantics=Semantics.from_dict(semantics) if semantics else None,
            lod=str(lod) if lod is not None else None,
        )

    @property
    def is_supported(self) -> bool:
        """三角形分割可能な種別か"""
        return self.kind is not None


@dataclass
class CityObject:
    """都市オブジェクト"""
    object_id: str
    type_name: str
    geometries: List[Geometry] = field(default_factory=list)

    @classmethod
    def from_dict(cls, object_id: str, city_object: Mapping[str, Any]) -> "CityObject":
        return cls(
            object_id=object_id,
            type_name=str(city_object.get("type", "")),
            geometries=[Geometry.from_dict(g) for g in city_object.get("geometry") or []],
        )


class CityModel:
    """都市モデル（頂点テーブル + 都市オブジェクト）

    頂点テーブルは読み取り専用の (N, 3) float64 配列として保持し、
    全ジオメトリから共有されます。
    """

    def __init__(
        self,
        vertices: Any,
        city_objects: Mapping[str, CityObject],
        object_ids: Optional[Sequence[str]] = None,
    ):
        table = np.array(vertices, dtype=np.float64)
        if table.size == 0:
            table = table.reshape(0, 3)
        if table.ndim != 2 or table.shape[1] != 3:
            raise ValueError(f"Vertices must be (N, 3), got {table.shape}")
        table.setflags(write=False)

        self.vertices: np.ndarray = table
        self.city_objects: Dict[str, CityObject] = dict(city_objects)
        self.object_ids: List[str] = list(object_ids) if object_ids is not None else list(self.city_objects)

    @classmethod
    def from_dict(cls, tree: Mapping[str, Any]) -> "CityModel":
        """デコード済みCityJSONドキュメントからモデルを構築

        ``transform`` (scale / translate) があれば頂点座標に適用します。
        """
        vertices = np.array(tree.get("vertices") or [], dtype=np.float64)
        if vertices.size == 0:
            vertices = vertices.reshape(0, 3)

        transform = tree.get("transform")
        if transform:
            scale = np.asarray(transform.get("scale", (1.0, 1.0, 1.0)), dtype=np.float64)
            translate = np.asarray(transform.get("translate", (0.0, 0.0, 0.0)), dtype=np.float64)
            vertices = vertices * scale + translate

        city_objects = {
            object_id: CityObject.from_dict(object_id, obj)
            for object_id, obj in (tree.get("CityObjects") or {}).items()
        }
        return cls(vertices, city_objects)

    @property
    def num_vertices(self) -> int:
        """頂点数を取得"""
        return len(self.vertices)

    @property
    def num_objects(self) -> int:
        """オブジェクト数を取得"""
        return len(self.city_objects)

    def get_object(self, object_id: str) -> CityObject:
        """オブジェクトを取得（存在しなければ OwnerNotFoundError）"""
        try:
            return self.city_objects[object_id]
        except KeyError:
            raise OwnerNotFoundError(object_id) from None
