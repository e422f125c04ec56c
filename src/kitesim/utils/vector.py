"""
Three-component vector helpers used throughout the physics core.

All functions accept array-likes and return fresh ``float64`` arrays; none of
them mutate their inputs.
"""
from __future__ import annotations

import numpy as np
from numpy.typing import ArrayLike, NDArray

# Below this magnitude a vector has no usable direction
NORMALIZE_EPSILON = 1e-4

ZERO: NDArray[np.float64] = np.zeros(3, dtype=np.float64)
UP: NDArray[np.float64] = np.array([0.0, 1.0, 0.0], dtype=np.float64)


def vector(x: float = 0.0, y: float = 0.0, z: float = 0.0) -> NDArray[np.float64]:
    """Build a (3,) float64 vector."""
    return np.array([x, y, z], dtype=np.float64)


def as_vector(v: ArrayLike) -> NDArray[np.float64]:
    """
    Convert an array-like to a fresh (3,) float64 vector.

    Raises
    ------
    ValueError
        If the input does not have exactly three components.
    """
    out = np.array(v, dtype=np.float64).reshape(-1)
    if out.shape != (3,):
        raise ValueError(f"Vector must have 3 components, got shape {out.shape}")
    return out


def add(a: ArrayLike, b: ArrayLike) -> NDArray[np.float64]:
    return np.asarray(a, dtype=np.float64) + np.asarray(b, dtype=np.float64)


def subtract(a: ArrayLike, b: ArrayLike) -> NDArray[np.float64]:
    return np.asarray(a, dtype=np.float64) - np.asarray(b, dtype=np.float64)


def scale(v: ArrayLike, s: float) -> NDArray[np.float64]:
    return np.asarray(v, dtype=np.float64) * float(s)


def dot(a: ArrayLike, b: ArrayLike) -> float:
    return float(np.dot(np.asarray(a, dtype=np.float64), np.asarray(b, dtype=np.float64)))


def cross(a: ArrayLike, b: ArrayLike) -> NDArray[np.float64]:
    return np.cross(np.asarray(a, dtype=np.float64), np.asarray(b, dtype=np.float64))


def magnitude(v: ArrayLike) -> float:
    return float(np.linalg.norm(np.asarray(v, dtype=np.float64)))


def normalize(v: ArrayLike) -> NDArray[np.float64]:
    """
    Return the unit vector along ``v``.

    Returns the zero vector when ``|v| < NORMALIZE_EPSILON`` or when ``v``
    holds non-finite values, so the result never contains NaN.
    """
    arr = np.asarray(v, dtype=np.float64)
    n = np.linalg.norm(arr)
    if not np.isfinite(n) or n < NORMALIZE_EPSILON:
        return np.zeros(3, dtype=np.float64)
    return arr / n


def distance(a: ArrayLike, b: ArrayLike) -> float:
    return magnitude(subtract(b, a))


def clamp_magnitude(v: ArrayLike, max_magnitude: float) -> NDArray[np.float64]:
    """Scale ``v`` down so that its magnitude does not exceed ``max_magnitude``."""
    arr = np.array(v, dtype=np.float64)
    n = np.linalg.norm(arr)
    if n > max_magnitude:
        arr *= max_magnitude / n
    return arr


def is_finite(v: ArrayLike) -> bool:
    """True when every component is a finite number."""
    return bool(np.all(np.isfinite(np.asarray(v, dtype=np.float64))))
