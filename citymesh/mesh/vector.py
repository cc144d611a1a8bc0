from __future__ import annotations

"""Vector helpers.

Small 3D vector operations shared by the normal estimator and the planar
projector.  Every function accepts anything ``np.asarray`` understands and
returns float64 arrays.
"""

import numpy as np

from ..constants import NORMAL_EPSILON


def as_vector(v) -> np.ndarray:
    """Return *v* as a float64 array."""
    return np.asarray(v, dtype=np.float64)


def length(v) -> float:
    """Euclidean length of *v*."""
    return float(np.linalg.norm(as_vector(v)))


def normalize(v, eps: float = NORMAL_EPSILON) -> np.ndarray:
    """Return *v* scaled to unit length.

    A vector shorter than *eps* is returned as the zero vector instead of
    being divided by (almost) zero.
    """
    vec = as_vector(v)
    norm = np.linalg.norm(vec)
    if norm < eps:
        return np.zeros_like(vec)
    return vec / norm


def dot(a, b) -> float:
    return float(np.dot(as_vector(a), as_vector(b)))


def cross(a, b) -> np.ndarray:
    return np.cross(as_vector(a), as_vector(b))


def subtract(a, b) -> np.ndarray:
    return as_vector(a) - as_vector(b)


def scale(v, factor: float) -> np.ndarray:
    return as_vector(v) * factor


def distance(a, b) -> float:
    """Euclidean distance between points *a* and *b*."""
    return length(subtract(a, b))
