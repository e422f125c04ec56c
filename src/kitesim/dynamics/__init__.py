from .body import KiteState
from .forces import Gravity, GroundContact, Stabilizer
from .tether import TetherModel, TetherResult, TetherState
