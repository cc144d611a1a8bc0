#!/usr/bin/env python3
"""
カテゴリレジストリ

名前 → 安定した整数インデックスの対応を管理します。

- SemanticSurfaceRegistry: セマンティックサーフェス種別。未知の名前は登録順に
  新しいインデックス（と仮の色）を割り当てて拡張します。
- LodRegistry: LOD値。セマンティクスと同様に拡張します。
- ObjectTypeRegistry: 都市オブジェクト種別。外部から与えられた固定の一覧で、
  拡張しません。

インデックスは1つのレジストリの生存期間内でのみ有効です。
"""

import threading
from collections import OrderedDict
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Union
import numpy as np

from ..constants import (
    DEFAULT_OBJECT_COLORS,
    DEFAULT_SEMANTIC_COLORS,
    MAX_COLOR_VALUE,
    NO_LOD,
    OBJECT_TYPE_NOT_FOUND,
)
from ..data_types import ObjectCategoryNotFoundError
from .. import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Category:
    """レジストリのエントリ"""
    name: str
    index: int
    color: Optional[int] = None


class IndexRegistry:
    """拡張可能な名前 → インデックスのレジストリ（スレッドセーフ）

    「検索して無ければ登録」は単一のロック内で行うため、
    同じ未知の名前が複数スレッドから同時に解決されても
    インデックスは一度だけ割り当てられます。
    """

    def __init__(self, names: Iterable[str] = ()):
        self._lock = threading.Lock()
        self._entries: "OrderedDict[str, Category]" = OrderedDict()
        for name in names:
            if name not in self._entries:
                self._register(name)

    def _make_entry(self, name: str, index: int) -> Category:
        return Category(name=name, index=index)

    def _register(self, name: str) -> int:
        entry = self._make_entry(name, len(self._entries))
        self._entries[name] = entry
        return entry.index

    def resolve(self, name: str) -> int:
        """
        名前をインデックスに解決（未登録なら登録）

        Args:
            name: カテゴリ名

        Returns:
            登録順のインデックス（0始まり）
        """
        with self._lock:
            entry = self._entries.get(name)
            if entry is not None:
                return entry.index
            index = self._register(name)
        logger.debug("Registered %s %r as index %d", type(self).__name__, name, index)
        return index

    def index_of(self, name: str) -> int:
        """登録せずにインデックスを取得（未登録なら -1）"""
        with self._lock:
            entry = self._entries.get(name)
        return entry.index if entry is not None else -1

    def get(self, name: str) -> Optional[Category]:
        """エントリを取得"""
        with self._lock:
            return self._entries.get(name)

    @property
    def names(self) -> List[str]:
        """登録順の名前一覧"""
        with self._lock:
            return list(self._entries)

    @property
    def entries(self) -> List[Category]:
        """登録順のエントリ一覧"""
        with self._lock:
            return list(self._entries.values())

    def as_dict(self) -> Dict[str, int]:
        """名前 → インデックスの辞書"""
        with self._lock:
            return {name: entry.index for name, entry in self._entries.items()}

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self.names)


class SemanticSurfaceRegistry(IndexRegistry):
    """セマンティックサーフェス種別レジストリ"""

    def __init__(
        self,
        seed_colors: Optional[Mapping[str, int]] = None,
        color_seed: int = 1234
    ):
        """
        初期化

        Args:
            seed_colors: 事前登録する名前と色（Noneならデフォルトテーブル）
            color_seed: 未知の名前に割り当てる色の乱数シード
        """
        # 登録順に色を引くので、同じ登録順なら同じ色になる
        self._rng = np.random.default_rng(color_seed)
        super().__init__()
        for name, color in (DEFAULT_SEMANTIC_COLORS if seed_colors is None else seed_colors).items():
            if name not in self._entries:
                self._entries[name] = Category(name=name, index=len(self._entries), color=int(color))

    def _make_entry(self, name: str, index: int) -> Category:
        color = int(self._rng.integers(0, MAX_COLOR_VALUE + 1))
        return Category(name=name, index=index, color=color)

    @property
    def colors(self) -> List[Optional[int]]:
        """インデックス順の色一覧"""
        return [entry.color for entry in self.entries]


class LodRegistry(IndexRegistry):
    """LODレジストリ"""

    def resolve(self, lod: Optional[Union[str, int, float]]) -> int:  # type: ignore[override]
        """LOD値をインデックスに解決（Noneなら NO_LOD）"""
        if lod is None:
            return NO_LOD
        return super().resolve(str(lod))


class ObjectTypeRegistry:
    """都市オブジェクト種別レジストリ（固定・読み取り専用）

    パース中に変更されないためロックは持ちません。
    """

    def __init__(self, type_names: Optional[Union[Iterable[str], Mapping[str, int]]] = None):
        """
        初期化

        Args:
            type_names: 種別名の順序付き一覧、または種別名 → 色の辞書
                （Noneならデフォルトテーブル）
        """
        if type_names is None:
            type_names = DEFAULT_OBJECT_COLORS

        if isinstance(type_names, Mapping):
            names = list(type_names)
            self._colors: List[Optional[int]] = [int(type_names[name]) for name in names]
        else:
            names = list(type_names)
            self._colors = [None] * len(names)

        self._names: List[str] = names
        self._index: Dict[str, int] = {}
        for i, name in enumerate(names):
            # 位置による検索（最初に一致したもの）
            self._index.setdefault(name, i)

    def resolve(self, type_name: str) -> int:
        """
        種別名をインデックスに解決

        Raises:
            ObjectCategoryNotFoundError: 一覧に存在しない場合
        """
        try:
            return self._index[type_name]
        except KeyError:
            raise ObjectCategoryNotFoundError(type_name) from None

    def index_of(self, type_name: str) -> int:
        """種別名のインデックス（存在しなければ OBJECT_TYPE_NOT_FOUND）"""
        return self._index.get(type_name, OBJECT_TYPE_NOT_FOUND)

    @property
    def names(self) -> List[str]:
        return list(self._names)

    @property
    def colors(self) -> List[Optional[int]]:
        return list(self._colors)

    def __len__(self) -> int:
        return len(self._names)

    def __contains__(self, type_name: object) -> bool:
        return type_name in self._index
