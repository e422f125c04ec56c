"""
Validation utilities for physical parameters and control inputs.

Provides functions to validate inputs for the kite simulation, ensuring
physical consistency and numerical stability.
"""
from __future__ import annotations
import math
import warnings

import numpy as np
from numpy.typing import ArrayLike


def validate_positive(value: float, name: str, strict: bool = True) -> None:
    """
    Validate that a scalar value is positive.

    Parameters
    ----------
    value : float
        Value to validate
    name : str
        Parameter name for error messages
    strict : bool
        If True, raise ValueError. If False, issue warning.

    Raises
    ------
    ValueError
        If strict=True and value <= 0
    """
    if not value > 0:
        msg = f"{name} must be positive, got {value}"
        if strict:
            raise ValueError(msg)
        else:
            warnings.warn(msg, RuntimeWarning, stacklevel=2)


def validate_non_negative(value: float, name: str) -> None:
    """Validate that a value is non-negative."""
    if not value >= 0:
        raise ValueError(f"{name} must be non-negative, got {value}")


def validate_finite_vector(v: ArrayLike, name: str) -> None:
    """
    Validate that an array has three finite components.

    Raises
    ------
    ValueError
        If shape is not (3,) or any component is NaN/inf
    """
    arr = np.asarray(v, dtype=np.float64)
    if arr.shape != (3,):
        raise ValueError(f"{name} must have shape (3,), got {arr.shape}")
    if not np.all(np.isfinite(arr)):
        raise ValueError(f"{name} must be finite, got {arr}")


def validate_timestep(dt: float, max_dt: float = 0.1) -> None:
    """
    Validate timestep is positive and reasonable.

    Parameters
    ----------
    dt : float
        Time step [s]
    max_dt : float
        Maximum reasonable timestep [s]

    Raises
    ------
    ValueError
        If timestep is invalid
    """
    if not dt > 0:
        raise ValueError(f"Timestep must be positive, got {dt}")
    if dt > max_dt:
        warnings.warn(
            f"Large timestep {dt}s may cause instability. "
            f"Consider using dt < {max_dt}s.",
            RuntimeWarning,
            stacklevel=2
        )


def clamp(value: float, lo: float, hi: float) -> float:
    """
    Clamp a scalar into ``[lo, hi]``.

    NaN maps to ``lo`` so a bad control value never reaches the physics.
    """
    value = float(value)
    if math.isnan(value):
        return float(lo)
    return max(lo, min(hi, value))
