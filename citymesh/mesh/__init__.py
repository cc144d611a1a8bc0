"""
citymesh 三角形メッシュ生成フェーズ

このパッケージは都市モデルのジオメトリを三角形分割し、
描画用の属性付きメッシュバッファを構築する機能を提供します。

処理フロー:
1. バウンダリ走査 (walker.py)
2. 法線推定 (normals.py)
3. ローカル平面への投影 (projection.py)
4. 2D三角形分割 (triangulate.py)
5. カテゴリ解決 (registry.py)
6. 出力バッファへの追加 (buffer.py)
"""

# ベクトル演算
from .vector import (
    normalize,
    dot,
    cross,
    subtract,
    scale,
    length,
    distance
)

# 法線推定
from .normals import (
    newell_normal,
    newell_vector,
    is_degenerate
)

# 平面投影
from .projection import (
    PlanarProjector,
    project_to_plane
)

# 三角形分割
from .triangulate import (
    PolygonTriangulator,
    earcut_triangulate,
    flatten_polygon,
    triangulate_polygon
)

# カテゴリレジストリ
from .registry import (
    Category,
    IndexRegistry,
    SemanticSurfaceRegistry,
    ObjectTypeRegistry,
    LodRegistry
)

# 出力バッファ
from .buffer import (
    GeometryData,
    EmittedVertex,
    TriangleMesh,
    STREAM_NAMES
)

# バウンダリ走査
from .walker import (
    BoundaryWalker,
    OwnerInfo
)

# パイプライン
from .pipeline import (
    CityModelParser,
    ParseResult,
    ParseIssue,
    parse_city_model
)

__all__ = [
    # ベクトル
    'normalize',
    'dot',
    'cross',
    'subtract',
    'scale',
    'length',
    'distance',

    # 法線
    'newell_normal',
    'newell_vector',
    'is_degenerate',

    # 投影
    'PlanarProjector',
    'project_to_plane',

    # 三角形分割
    'PolygonTriangulator',
    'earcut_triangulate',
    'flatten_polygon',
    'triangulate_polygon',

    # レジストリ
    'Category',
    'IndexRegistry',
    'SemanticSurfaceRegistry',
    'ObjectTypeRegistry',
    'LodRegistry',

    # バッファ
    'GeometryData',
    'EmittedVertex',
    'TriangleMesh',
    'STREAM_NAMES',

    # 走査
    'BoundaryWalker',
    'OwnerInfo',

    # パイプライン
    'CityModelParser',
    'ParseResult',
    'ParseIssue',
    'parse_city_model'
]
