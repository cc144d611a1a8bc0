#!/usr/bin/env python3
"""
共通定数・設定値

三角形分割・レジストリ・出力バッファで共有される定数を一元管理し、
モジュール間の循環依存を解消します。
"""

from typing import Dict, Final, Tuple

# =============================================================================
# センチネル値
# =============================================================================

# セマンティクスなしのポリゴン
NO_SEMANTIC_SURFACE: Final[int] = -1
# オブジェクト種別がレジストリに存在しない
OBJECT_TYPE_NOT_FOUND: Final[int] = -1
# LOD未指定
NO_LOD: Final[int] = -1
# ジオメトリ・境界インデックス未指定
NO_INDEX: Final[int] = -1

# =============================================================================
# 平面投影関連
# =============================================================================

# ローカル2D基底を作るためのプローブベクトル
PROBE_VECTOR: Final[Tuple[float, float, float]] = (1.1, 1.1, 1.1)
# プローブが法線に近すぎる場合に加算するオフセット
PROBE_OFFSET: Final[Tuple[float, float, float]] = (1.0, 2.0, 3.0)
# プローブと法線の距離閾値
PROBE_DISTANCE_THRESHOLD: Final[float] = 0.01

# 法線長がこれ未満なら退化ポリゴンとみなす
NORMAL_EPSILON: Final[float] = 1e-12

# 三角形のみで構成される高速パスの頂点数
TRIANGLE_VERTEX_COUNT: Final[int] = 3

# =============================================================================
# デフォルトカラーテーブル (0xRRGGBB)
# =============================================================================

DEFAULT_OBJECT_COLORS: Final[Dict[str, int]] = {
    "Building": 0x7497df,
    "BuildingPart": 0x7497df,
    "BuildingInstallation": 0x7497df,
    "Bridge": 0x999999,
    "BridgePart": 0x999999,
    "BridgeInstallation": 0x999999,
    "BridgeConstructionElement": 0x999999,
    "CityObjectGroup": 0xffffb3,
    "CityFurniture": 0xcc0000,
    "GenericCityObject": 0xcc0000,
    "LandUse": 0xffffb3,
    "PlantCover": 0x39ac39,
    "Railway": 0x000000,
    "Road": 0x999999,
    "SolitaryVegetationObject": 0x39ac39,
    "TINRelief": 0xffdb99,
    "TransportSquare": 0x999999,
    "Tunnel": 0x999999,
    "TunnelPart": 0x999999,
    "TunnelInstallation": 0x999999,
    "WaterBody": 0x4da6ff,
}

DEFAULT_SEMANTIC_COLORS: Final[Dict[str, int]] = {
    "GroundSurface": 0x999999,
    "WallSurface": 0xffffff,
    "RoofSurface": 0xff0000,
    "TrafficArea": 0x6e6e6e,
    "AuxiliaryTrafficArea": 0x2c8200,
    "Window": 0x0059ff,
    "Door": 0x640000,
}

# 未知のセマンティクスに割り当てる色の上限
MAX_COLOR_VALUE: Final[int] = 0xffffff

# =============================================================================
# 並列処理
# =============================================================================

DEFAULT_MAX_WORKERS: Final[int] = 1
WORKER_THREAD_PREFIX: Final[str] = "citymesh"
