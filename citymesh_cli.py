#!/usr/bin/env python3
"""
CLI 三角形分割ユーティリティ

CityJSON ファイルを読み込み、citymesh のパイプラインで三角形分割して
結果の統計を表示します。必要に応じて出力バッファを .npz に保存します。

使い方:
    python citymesh_cli.py model.city.json
    python citymesh_cli.py model.city.json --workers 4 --output mesh.npz
    python citymesh_cli.py model.city.json --strict --log-level DEBUG

保存される .npz のキー:
    vertices, object_ids, object_types, semantic_surfaces,
    geometry_ids, boundary_ids, lod_ids : 出力頂点ごとの並列ストリーム
    positions                           : 共有頂点テーブル (N, 3)

何らかのオブジェクトでエラーが記録された場合は終了コード 1 を返します。
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

import numpy as np

from citymesh import setup_logging, get_logger
from citymesh.config import load_config
from citymesh.data_types import CityModel
from citymesh.mesh import CityModelParser

logger = get_logger("cli")


def build_arg_parser() -> argparse.ArgumentParser:
    """コマンドライン引数パーサーを作成"""
    parser = argparse.ArgumentParser(
        description="CityJSON モデルをフラットな三角形メッシュバッファに変換",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser.add_argument('input', type=Path, help='CityJSON ファイル')
    parser.add_argument('--config', type=Path, default=None,
                        help='YAML 設定ファイル（省略時は既定の検索パス）')
    parser.add_argument('--log-level', default=None,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        help='ログレベル（省略時は設定ファイルの値）')

    parse_group = parser.add_argument_group('パースオプション')
    parse_group.add_argument('--workers', type=int, default=None,
                             help='ワーカースレッド数（省略時は設定ファイルの値）')
    parse_group.add_argument('--strict', action='store_true',
                             help='未知のオブジェクト種別をエラーとして扱う')

    output_group = parser.add_argument_group('出力オプション')
    output_group.add_argument('--output', type=Path, default=None,
                              help='出力バッファを保存する .npz ファイル')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)

    config = load_config(args.config)
    if args.workers is not None:
        config.parser.max_workers = args.workers
    if args.strict:
        config.parser.strict_object_types = True
    setup_logging(level=args.log_level or config.log_level, format_style=config.log_format_style)

    with open(args.input, "r", encoding="utf-8") as f:
        tree = json.load(f)

    model = CityModel.from_dict(tree)
    parser = CityModelParser(model, config=config)
    result = parser.parse()

    print(f"objects      : {result.num_objects}")
    print(f"geometries   : {result.num_geometries}")
    print(f"triangles    : {result.num_triangles}")
    print(f"semantics    : {', '.join(parser.semantic_registry.names)}")
    print(f"lods         : {', '.join(parser.lod_registry.names) or '-'}")
    print(f"elapsed      : {result.elapsed_ms:.1f}ms")

    for issue in result.issues:
        where = issue.object_id if issue.geometry_index is None else f"{issue.object_id}[{issue.geometry_index}]"
        print(f"[{issue.kind}] {where}: {issue.message}")

    if args.output is not None:
        arrays = result.data.to_arrays()
        np.savez_compressed(args.output, positions=model.vertices, **arrays)
        logger.info("Saved %d triangles to %s", result.num_triangles, args.output)

    return 0 if result.ok else 1


if __name__ == "__main__":
    sys.exit(main())
