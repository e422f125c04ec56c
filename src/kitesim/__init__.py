"""
kitesim - Physics core of a two-line stunt kite simulator.

Core Components
---------------
KiteSimulation : Fixed-timestep simulation orchestrator and control surface
KiteState : Kite rigid-body state with filtered force/torque integration
WindField : Time-varying wind (gust, turbulence, user scale)
TetherModel : Two-line tether and bridle model
AerodynamicModel : Lift/drag with angle of attack and stall

Examples
--------
>>> from kitesim import KiteSimulation
>>> sim = KiteSimulation(seed=7)
>>> sim.set_left_input(0.2)
>>> sim.set_right_input(0.8)
>>> for _ in range(60):
...     sim.update(1 / 60)
"""

__version__ = "0.1.0"

# Core simulation classes
from kitesim.core.config import FilterConfig, PhysicsConfig, SimulationConfig
from kitesim.core.events import DiagnosticChannel, DiagnosticEvent, DiagnosticKind
from kitesim.core.simulation import KiteSimulation
from kitesim.core.solver import FixedStepAccumulator
from kitesim.core.telemetry import FlightTelemetry
from kitesim.dynamics.body import KiteState

# Forces and models
from kitesim.dynamics.forces import Gravity, GroundContact, Stabilizer
from kitesim.dynamics.tether import TetherModel, TetherResult, TetherState
from kitesim.models.aerodynamics import AerodynamicModel, AeroForces
from kitesim.models.kite_types import KITE_TYPES, KiteType
from kitesim.models.wind import WindField, WindState

# Logging
from kitesim.logger import CSVLogger

__all__ = [
    # Version
    "__version__",
    # Core
    "KiteSimulation",
    "FixedStepAccumulator",
    "KiteState",
    "FlightTelemetry",
    # Configuration
    "PhysicsConfig",
    "FilterConfig",
    "SimulationConfig",
    # Diagnostics
    "DiagnosticChannel",
    "DiagnosticEvent",
    "DiagnosticKind",
    # Forces
    "Gravity",
    "Stabilizer",
    "GroundContact",
    # Models
    "TetherModel",
    "TetherState",
    "TetherResult",
    "AerodynamicModel",
    "AeroForces",
    "WindField",
    "WindState",
    "KiteType",
    "KITE_TYPES",
    # Logging
    "CSVLogger",
]
