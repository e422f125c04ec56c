"""
Orientation helpers for the kite's Euler-angle attitude.

The physics core keeps attitude as a ``[pitch, yaw, roll]`` vector of
rotations about the world ``[x, y, z]`` axes (Y-up frame). This is a
deliberate simplification: there are no roll-coupled cross terms and no
rotation matrix in the dynamics. The helpers here derive the quantities the
aerodynamic model needs from those angles, and convert them into the
quaternion/matrix forms that rendering hosts usually expect.

Examples
--------
>>> from kitesim.utils.orientation import surface_normal, euler_to_quaternion
>>> n = surface_normal([0.0, 0.0, 0.0])      # faces +Z (downwind)
>>> q = euler_to_quaternion([-np.pi / 3, 0, 0])  # [x, y, z, w]
"""
from __future__ import annotations

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy.spatial.transform import Rotation as R

PITCH, YAW, ROLL = 0, 1, 2

# Euler sequence matching the [pitch, yaw, roll] -> [x, y, z] layout
EULER_ORDER = "xyz"


def surface_normal(rotation: ArrayLike) -> NDArray[np.float64]:
    """
    Approximate kite surface normal from pitch and yaw.

    Parameters
    ----------
    rotation : array-like
        Euler angles ``[pitch, yaw, roll]`` [rad]

    Returns
    -------
    NDArray[np.float64]
        Unit normal ``(sin(yaw) cos(pitch), sin(pitch), cos(yaw) cos(pitch))``

    Notes
    -----
    Roll does not enter the normal. This proxy stands in for a full rotation
    matrix and is what the lift/drag model is calibrated against.
    """
    pitch, yaw = float(rotation[PITCH]), float(rotation[YAW])
    return np.array([
        np.sin(yaw) * np.cos(pitch),
        np.sin(pitch),
        np.cos(yaw) * np.cos(pitch),
    ], dtype=np.float64)


def euler_to_quaternion(rotation: ArrayLike) -> NDArray[np.float64]:
    """
    Convert ``[pitch, yaw, roll]`` to a scalar-last quaternion ``[x, y, z, w]``.

    For display only; the dynamics never integrate this quaternion.
    """
    angles = np.asarray(rotation, dtype=np.float64)
    return R.from_euler(EULER_ORDER, angles, degrees=False).as_quat()


def euler_to_matrix(rotation: ArrayLike) -> NDArray[np.float64]:
    """Rotation matrix (3, 3) equivalent of ``[pitch, yaw, roll]``."""
    angles = np.asarray(rotation, dtype=np.float64)
    return R.from_euler(EULER_ORDER, angles, degrees=False).as_matrix()


def wrap_angle(angle: float) -> float:
    """Wrap an angle into ``[-pi, pi)``."""
    return float((angle + np.pi) % (2.0 * np.pi) - np.pi)
