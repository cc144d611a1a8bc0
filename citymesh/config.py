#!/usr/bin/env python3
"""
citymesh 設定管理システム

三角形分割・パーサーで使用される設定値を統一管理し、
YAMLファイル（PyYAML）から読み込み、未知のキーは無視します。
"""

import os
from dataclasses import dataclass, field, fields
from typing import Optional, Dict, Any, Tuple
from pathlib import Path

import yaml

from citymesh import get_logger
from citymesh.constants import (
    PROBE_VECTOR,
    PROBE_OFFSET,
    PROBE_DISTANCE_THRESHOLD,
    NORMAL_EPSILON,
    DEFAULT_MAX_WORKERS,
)

logger = get_logger(__name__)


@dataclass
class TriangulationConfig:
    """三角形分割設定"""
    # 平面投影のプローブ設定
    probe_vector: Tuple[float, float, float] = PROBE_VECTOR
    probe_offset: Tuple[float, float, float] = PROBE_OFFSET
    probe_threshold: float = PROBE_DISTANCE_THRESHOLD

    # 退化判定
    normal_epsilon: float = NORMAL_EPSILON


@dataclass
class ParserConfig:
    """パーサー設定"""
    # 並列処理（1なら逐次処理）
    max_workers: int = DEFAULT_MAX_WORKERS

    # 未知のオブジェクト種別をエラーとして扱うか
    strict_object_types: bool = False

    # 未知セマンティクスの色生成シード
    semantic_color_seed: int = 1234


@dataclass
class CityMeshConfig:
    """プロジェクト全体設定"""
    triangulation: TriangulationConfig = field(default_factory=TriangulationConfig)
    parser: ParserConfig = field(default_factory=ParserConfig)

    # ログ設定
    log_level: str = "INFO"
    log_format_style: str = "detailed"


_SECTIONS = ("triangulation", "parser")

# 設定ファイルパスを指定する環境変数
CONFIG_ENV_VAR = "CITYMESH_CONFIG"
CONFIG_FILE_NAMES = ("citymesh.yaml", "config.yaml")


class ConfigManager:
    """設定管理クラス

    検索順: 環境変数 CITYMESH_CONFIG → カレントディレクトリの
    citymesh.yaml / config.yaml → ~/.citymesh/config.yaml
    """

    def __init__(self):
        self._config: Optional[CityMeshConfig] = None
        self._config_file_path: Optional[Path] = None

    @staticmethod
    def find_config_file() -> Optional[Path]:
        """既定の検索順で最初に見つかった設定ファイル"""
        env_path = os.environ.get(CONFIG_ENV_VAR)
        candidates = [Path(env_path)] if env_path else []
        candidates += [Path.cwd() / name for name in CONFIG_FILE_NAMES]
        candidates.append(Path.home() / ".citymesh" / "config.yaml")
        for path in candidates:
            if path.is_file():
                return path
        return None

    def load_config(self, config_file: Optional[Path] = None) -> CityMeshConfig:
        """
        設定ファイルを読み込み

        読み込みに失敗した場合は警告を出してデフォルト設定を使います。

        Args:
            config_file: 設定ファイルパス（Noneなら既定の検索順で探す）

        Returns:
            読み込まれた設定
        """
        path = Path(config_file) if config_file is not None else self.find_config_file()

        config = CityMeshConfig()
        if path is None or not path.is_file():
            logger.debug("No config file found, using defaults")
        else:
            try:
                config = self._read_config_file(path)
                self._config_file_path = path
                logger.info(f"Loaded config: {path}")
            except (OSError, yaml.YAMLError, TypeError, ValueError) as e:
                logger.warning(f"Ignoring config {path} ({e}), using defaults")

        self._config = config
        return config

    def _read_config_file(self, path: Path) -> CityMeshConfig:
        with path.open('r', encoding='utf-8') as f:
            return self._dict_to_config(yaml.safe_load(f) or {})

    def save_config(self, config_file: Optional[Path] = None) -> bool:
        """
        現在の設定をYAMLで保存

        Args:
            config_file: 保存先（Noneなら読み込み元、無ければ ./citymesh.yaml）

        Returns:
            保存できたかどうか
        """
        if self._config is None:
            logger.error("Nothing to save: no configuration loaded or set")
            return False

        path = Path(config_file or self._config_file_path or CONFIG_FILE_NAMES[0])
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open('w', encoding='utf-8') as f:
                yaml.safe_dump(self._config_to_dict(self._config), f,
                               sort_keys=False, allow_unicode=True)
        except OSError as e:
            logger.error(f"Could not write config {path}: {e}")
            return False

        self._config_file_path = path
        logger.info(f"Saved config: {path}")
        return True

    def get_config(self) -> CityMeshConfig:
        """現在の設定を取得（未読み込みなら検索して読み込む）"""
        if self._config is None:
            return self.load_config()
        return self._config

    def set_config(self, config: CityMeshConfig) -> None:
        """設定を差し替え"""
        self._config = config

    def _dict_to_config(self, config_dict: Dict[str, Any]) -> CityMeshConfig:
        """辞書を設定オブジェクトに変換（未知のキーは無視）"""
        if not isinstance(config_dict, dict):
            raise TypeError(f"Config root must be a mapping, got {type(config_dict).__name__}")

        config = CityMeshConfig()

        for section_name in _SECTIONS:
            section_dict = config_dict.get(section_name)
            if not isinstance(section_dict, dict):
                continue
            section = getattr(config, section_name)
            for key, value in section_dict.items():
                if not hasattr(section, key):
                    logger.debug(f"Ignoring unknown config key {section_name}.{key}")
                    continue
                # YAMLではタプルがリストになるため元の型に戻す
                if isinstance(getattr(section, key), tuple):
                    value = tuple(float(v) for v in value)
                setattr(section, key, value)

        for key in ("log_level", "log_format_style"):
            if key in config_dict:
                setattr(config, key, str(config_dict[key]))

        return config

    def _config_to_dict(self, config: CityMeshConfig) -> Dict[str, Any]:
        """設定オブジェクトを辞書に変換"""
        result: Dict[str, Any] = {}
        for section_name in _SECTIONS:
            section = getattr(config, section_name)
            section_dict = {}
            for f in fields(section):
                value = getattr(section, f.name)
                section_dict[f.name] = list(value) if isinstance(value, tuple) else value
            result[section_name] = section_dict
        result['log_level'] = config.log_level
        result['log_format_style'] = config.log_format_style
        return result


# グローバル設定マネージャー
_config_manager: Optional[ConfigManager] = None

def get_config_manager() -> ConfigManager:
    """グローバル設定マネージャーを取得"""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager

def get_config() -> CityMeshConfig:
    """現在の設定を取得"""
    return get_config_manager().get_config()

def load_config(config_file: Optional[Path] = None) -> CityMeshConfig:
    """設定を読み込み"""
    return get_config_manager().load_config(config_file)

def save_config(config_file: Optional[Path] = None) -> bool:
    """設定を保存"""
    return get_config_manager().save_config(config_file)
