"""Point helpers. Points are float numpy arrays of shape (3,)."""
from __future__ import annotations

from typing import Sequence, Union

import numpy as np

PointLike = Union[Sequence[float], np.ndarray]

DEFAULT_TOLERANCE = 1e-6


def as_point(value: PointLike) -> np.ndarray:
    point = np.asarray(value, dtype=float)
    if point.shape != (3,):
        raise ValueError(f"Expected a 3D point, got shape {point.shape}")
    return point.copy()


def distance(p1: PointLike, p2: PointLike) -> float:
    return float(np.linalg.norm(as_point(p2) - as_point(p1)))


def is_almost_equal(p1: PointLike, p2: PointLike, tolerance: float = DEFAULT_TOLERANCE) -> bool:
    """Coincidence test used for connector lookup (per-axis, like the host)."""
    return bool(np.all(np.abs(as_point(p1) - as_point(p2)) <= tolerance))


def interpolate(start: PointLike, end: PointLike, fraction: float) -> np.ndarray:
    """start + (end - start) * fraction"""
    start = as_point(start)
    return start + (as_point(end) - start) * fraction


def format_point(point: PointLike, decimals: int = 3) -> str:
    x, y, z = np.round(as_point(point), decimals)
    return f"({x}, {y}, {z})"
