"""
Physics models for the kite.

Models return forces and never mutate the kite state:
- aerodynamics: lift/drag with angle of attack and stall
- wind: gust, turbulence and user-scaled wind field
- kite_types: mass and sail presets
"""

from .aerodynamics import AerodynamicModel, AeroForces
from .kite_types import KITE_TYPES, KiteType, get_kite_type
from .wind import WindField, WindState

__all__ = [
    "AerodynamicModel",
    "AeroForces",
    "KITE_TYPES",
    "KiteType",
    "get_kite_type",
    "WindField",
    "WindState",
]
