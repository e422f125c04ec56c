"""
Library of stunt kite presets.

Each preset fixes the mass and aerodynamic properties of a kite; the state
variables (pose, velocities) are owned by ``KiteState``.
"""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class KiteType:
    """
    Physical description of a kite model.

    Attributes
    ----------
    name : str
        Display name
    mass : float
        Kite mass [kg]
    wingspan : float
        Tip-to-tip width [m]
    area : float
        Sail area [m²]
    drag_coefficient : float
        Base drag coefficient [-]
    lift_coefficient : float
        Peak lift coefficient [-]
    """
    name: str
    mass: float
    wingspan: float
    area: float
    drag_coefficient: float
    lift_coefficient: float = 1.2


KITE_TYPES: dict[str, KiteType] = {
    "standard": KiteType(
        name="Standard Stunt Kite",
        mass=0.5, wingspan=2.0, area=1.2, drag_coefficient=0.8,
    ),
    "delta": KiteType(
        name="Delta Kite",
        mass=0.4, wingspan=1.8, area=1.0, drag_coefficient=0.7,
    ),
    "precision": KiteType(
        name="Precision Stunt Kite",
        mass=0.6, wingspan=2.2, area=1.5, drag_coefficient=0.9,
    ),
}


def get_kite_type(key: str) -> KiteType:
    """
    Look up a preset by key.

    Raises
    ------
    ValueError
        If ``key`` is not a known preset
    """
    try:
        return KITE_TYPES[key]
    except KeyError:
        raise ValueError(
            f"Unknown kite type '{key}'. Valid options: {sorted(KITE_TYPES)}"
        ) from None
