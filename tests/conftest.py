#!/usr/bin/env python3
"""
pytest共通設定とフィクスチャ

テスト実行時の共通設定と、小さなCityJSONモデルのフィクスチャを提供します。
"""

import pytest
import sys
import os
import tempfile
from typing import Any, Dict, Generator

# パッケージのパス追加
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from citymesh import setup_logging, get_logger
from citymesh.config import CityMeshConfig
from citymesh.data_types import CityModel

# =============================================================================
# テストロギング設定
# =============================================================================

@pytest.fixture(scope="session", autouse=True)
def setup_test_logging():
    """テスト全体のロギング設定"""
    setup_logging(level="DEBUG")
    logger = get_logger("test")
    logger.info("=== テストセッション開始 ===")
    yield
    logger.info("=== テストセッション終了 ===")


@pytest.fixture
def test_logger():
    """テスト用ロガー"""
    return get_logger("test")


# =============================================================================
# テストデータフィクスチャ
# =============================================================================

# 単位立方体の頂点
CUBE_VERTICES = [
    [0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [1.0, 1.0, 0.0], [0.0, 1.0, 0.0],
    [0.0, 0.0, 1.0], [1.0, 0.0, 1.0], [1.0, 1.0, 1.0], [0.0, 1.0, 1.0],
]

# 外向きの6面（各面は穴なしの四角形）
CUBE_SHELL = [
    [[0, 3, 2, 1]],  # 底面
    [[4, 5, 6, 7]],  # 上面
    [[0, 1, 5, 4]],
    [[1, 2, 6, 5]],
    [[2, 3, 7, 6]],
    [[3, 0, 4, 7]],
]


def make_citymodel_tree() -> Dict[str, Any]:
    """テスト用CityJSONツリー（建物1棟 + 道路1本 + 未対応ジオメトリ）"""
    return {
        "type": "CityJSON",
        "version": "1.1",
        "transform": {"scale": [1.0, 1.0, 1.0], "translate": [0.0, 0.0, 0.0]},
        "CityObjects": {
            "building-1": {
                "type": "Building",
                "geometry": [{
                    "type": "Solid",
                    "lod": "2",
                    "boundaries": [CUBE_SHELL],
                    "semantics": {
                        "surfaces": [
                            {"type": "GroundSurface"},
                            {"type": "RoofSurface"},
                            {"type": "WallSurface"},
                        ],
                        "values": [[0, 1, 2, 2, 2, 2]],
                    },
                }],
            },
            "road-1": {
                "type": "Road",
                "geometry": [
                    {
                        "type": "MultiSurface",
                        "lod": 1,
                        "boundaries": [[[0, 1, 2, 3]]],
                    },
                    {
                        "type": "MultiLineString",
                        "lod": 1,
                        "boundaries": [[0, 1]],
                    },
                ],
            },
        },
        "vertices": CUBE_VERTICES,
    }


@pytest.fixture
def citymodel_tree() -> Dict[str, Any]:
    """テスト用CityJSONツリー"""
    return make_citymodel_tree()


@pytest.fixture
def city_model(citymodel_tree) -> CityModel:
    """テスト用都市モデル"""
    return CityModel.from_dict(citymodel_tree)


@pytest.fixture
def default_config() -> CityMeshConfig:
    """設定ファイルに依存しないデフォルト設定"""
    return CityMeshConfig()


@pytest.fixture
def temp_directory() -> Generator[str, None, None]:
    """一時ディレクトリ"""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield temp_dir


# =============================================================================
# テストスイート選択
# =============================================================================

def pytest_collection_modifyitems(config, items):
    """テスト収集時の自動マーカー付与"""
    for item in items:
        if "pipeline" in item.nodeid or "cli" in item.nodeid:
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)
