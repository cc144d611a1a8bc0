#!/usr/bin/env python3
"""
ポリゴン法線推定

Newell法により、非平面・非凸のリングでも定義される単位法線を計算します。
開始点の巡回シフトに対して不変で、わずかな非平面性にも鈍感です。
"""

import numpy as np

from .vector import normalize
from ..constants import NORMAL_EPSILON


def newell_vector(points: np.ndarray) -> np.ndarray:
    """
    Newell法で正規化前の法線ベクトルを計算

    Args:
        points: リング頂点座標 (N, 3)（始点と終点は重複させない）

    Returns:
        法線ベクトル (3,)（長さはポリゴン面積の2倍）
    """
    pts = np.asarray(points, dtype=np.float64)
    if pts.ndim != 2 or pts.shape[1] != 3:
        raise ValueError(f"Points must be (N, 3), got {pts.shape}")

    nxt = np.roll(pts, -1, axis=0)
    x, y, z = pts[:, 0], pts[:, 1], pts[:, 2]
    nx_, ny_, nz_ = nxt[:, 0], nxt[:, 1], nxt[:, 2]

    return np.array([
        np.sum((y - ny_) * (z + nz_)),
        np.sum((z - nz_) * (x + nx_)),
        np.sum((x - nx_) * (y + ny_)),
    ])


def newell_normal(points: np.ndarray, eps: float = NORMAL_EPSILON) -> np.ndarray:
    """
    Newell法で単位法線を計算

    全点が一致・共線などで法線が定義できない場合はゼロベクトルを返します。

    Args:
        points: リング頂点座標 (N, 3)
        eps: 退化判定の閾値

    Returns:
        単位法線 (3,) またはゼロベクトル
    """
    return normalize(newell_vector(points), eps)


def is_degenerate(normal: np.ndarray) -> bool:
    """法線がゼロベクトル（退化ポリゴン）か"""
    return not np.any(normal)
