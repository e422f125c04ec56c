from .config import FilterConfig, PhysicsConfig, SimulationConfig
from .events import DiagnosticChannel, DiagnosticEvent, DiagnosticKind
