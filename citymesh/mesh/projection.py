#!/usr/bin/env python3
"""
ポリゴン平面投影

法線からローカルな正規直交2D基底を構築し、3D点をその平面へ投影します。
三角形分割（2D）の前処理として使用されます。
"""

from typing import Optional, Tuple
import numpy as np

from .vector import as_vector, normalize, dot, cross, distance, length
from .normals import is_degenerate
from ..config import TriangulationConfig
from ..constants import PROBE_VECTOR, PROBE_OFFSET, PROBE_DISTANCE_THRESHOLD


class PlanarProjector:
    """法線に直交する平面への投影クラス"""

    def __init__(
        self,
        normal: np.ndarray,
        probe_vector: Tuple[float, float, float] = PROBE_VECTOR,
        probe_offset: Tuple[float, float, float] = PROBE_OFFSET,
        probe_threshold: float = PROBE_DISTANCE_THRESHOLD,
    ):
        """
        初期化

        Args:
            normal: 平面法線（正規化されていなくてもよい）
            probe_vector: X軸の元になる参照ベクトル
            probe_offset: 参照ベクトルが法線に近すぎる場合に加算するオフセット
            probe_threshold: 近さの判定閾値
        """
        n = normalize(normal)
        if is_degenerate(n):
            raise ValueError("Cannot build a plane frame from a zero normal")

        probe = as_vector(probe_vector)
        # 参照ベクトルが法線と（反）平行だとGram-Schmidt後にゼロになる
        if (distance(probe, n) < probe_threshold
                or length(probe - dot(probe, n) * n) < probe_threshold):
            probe = probe + as_vector(probe_offset)

        x_axis = normalize(probe - dot(probe, n) * n)
        y_axis = cross(n, x_axis)

        self.normal = n
        self.x_axis = x_axis
        self.y_axis = y_axis
        self._basis = np.vstack([x_axis, y_axis])  # (2, 3)

    @classmethod
    def from_config(cls, normal: np.ndarray, config: TriangulationConfig) -> "PlanarProjector":
        """設定から投影器を作成"""
        return cls(
            normal,
            probe_vector=config.probe_vector,
            probe_offset=config.probe_offset,
            probe_threshold=config.probe_threshold,
        )

    @property
    def basis(self) -> np.ndarray:
        """ローカル基底 (2, 3)"""
        return self._basis

    def project(self, points: np.ndarray) -> np.ndarray:
        """
        3D点をローカル2D座標へ投影

        Args:
            points: 3D点 (N, 3)

        Returns:
            2D点 (N, 2)
        """
        pts = np.asarray(points, dtype=np.float64)
        if pts.ndim != 2 or pts.shape[1] != 3:
            raise ValueError(f"Points must be (N, 3), got {pts.shape}")
        return pts @ self._basis.T

    def unproject(self, points_2d: np.ndarray, origin: Optional[np.ndarray] = None) -> np.ndarray:
        """
        ローカル2D座標を3D平面上の点へ戻す

        Args:
            points_2d: 2D点 (N, 2)
            origin: 平面上の任意の点（Noneなら原点を通る平面）

        Returns:
            3D点 (N, 3)
        """
        uv = np.asarray(points_2d, dtype=np.float64)
        points = uv[:, :1] * self.x_axis + uv[:, 1:2] * self.y_axis
        if origin is not None:
            points = points + dot(origin, self.normal) * self.normal
        return points


def project_to_plane(
    points: np.ndarray,
    normal: np.ndarray,
    config: Optional[TriangulationConfig] = None
) -> np.ndarray:
    """
    3D点を法線に直交する平面へ投影（簡単なインターフェース）

    Args:
        points: 3D点 (N, 3)
        normal: 平面法線
        config: 三角形分割設定

    Returns:
        2D点 (N, 2)
    """
    projector = PlanarProjector.from_config(normal, config or TriangulationConfig())
    return projector.project(points)
