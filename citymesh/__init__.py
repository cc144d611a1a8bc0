#!/usr/bin/env python3
"""
citymesh メインパッケージ

3D都市モデル (CityJSON形式) のジオメトリを三角形分割し、
描画用のフラットなメッシュバッファへ変換します。

ロギングはルートロガーではなくパッケージロガー ``citymesh`` に設定するため、
ライブラリとして組み込んだアプリケーション側のログ設定を上書きしません。
"""

import logging
import sys
from pathlib import Path
from typing import Dict, Optional, Union

# プロジェクト情報
__version__ = "0.1.0"
__author__ = "citymesh Development Team"

PACKAGE_LOGGER = "citymesh"

LOG_FORMATS: Dict[str, str] = {
    "simple": "%(levelname)s: %(message)s",
    "detailed": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    "debug": "%(asctime)s [%(levelname)s] %(name)s:%(funcName)s:%(lineno)d [%(threadName)s]: %(message)s",
}

# setup_logging() が追加したハンドラーの目印
_HANDLER_TAG = "_citymesh_handler"


def _to_level(level: Union[str, int]) -> int:
    if isinstance(level, int):
        return level
    numeric_level = logging.getLevelName(str(level).upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f'Invalid log level: {level}')
    return numeric_level


def setup_logging(
    level: Union[str, int] = "INFO",
    log_file: Optional[Path] = None,
    format_style: str = "detailed"
) -> logging.Logger:
    """
    パッケージロガーのログ設定

    再呼び出し時は以前に追加したハンドラーだけを置き換えます。

    Args:
        level: ログレベル（"DEBUG" などの名前、または数値）
        log_file: ログファイルパス（Noneならコンソールのみ）
        format_style: フォーマットスタイル ("simple", "detailed", "debug")

    Returns:
        設定済みパッケージロガー
    """
    numeric_level = _to_level(level)
    formatter = logging.Formatter(LOG_FORMATS.get(format_style, LOG_FORMATS["detailed"]), datefmt='%H:%M:%S')

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(numeric_level)

    for handler in package_logger.handlers[:]:
        if getattr(handler, _HANDLER_TAG, False):
            package_logger.removeHandler(handler)
            handler.close()

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file is not None:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    for handler in handlers:
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)
        setattr(handler, _HANDLER_TAG, True)
        package_logger.addHandler(handler)

    return package_logger


def get_logger(name: str) -> logging.Logger:
    """
    モジュール用ロガーを取得

    パッケージ外の名前（テストやCLIなど）は ``citymesh.`` 配下にまとめます。

    Args:
        name: ロガー名（通常は __name__ を使用）

    Returns:
        パッケージロガー配下のロガー
    """
    if name != PACKAGE_LOGGER and not name.startswith(PACKAGE_LOGGER + "."):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)


def ensure_default_logging() -> None:
    """パッケージロガーが未設定なら既定の設定を適用"""
    if not logging.getLogger(PACKAGE_LOGGER).handlers:
        setup_logging(level="INFO", format_style="detailed")


ensure_default_logging()
