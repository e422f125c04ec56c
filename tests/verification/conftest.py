"""
Verification suite for the kite physics core.

Scenario tests that drive a full :class:`KiteSimulation` through host
frames and check behaviour that must hold regardless of tuning:

- Ground: a kite without lift or lines settles on the ground buffer
- Steering: asymmetric line input yaws the kite, symmetric input does not
- Wind: the speed floor holds when the wind is scaled to zero
- Determinism: snapshot/restore and reset reproduce runs exactly
- Stepping: overloaded frames drain the accumulator
"""

import pytest

from kitesim import DiagnosticChannel, KiteSimulation

# -----------------------------------------------------------------------------
# Test Configuration
# -----------------------------------------------------------------------------

FRAME_DT = 1.0 / 60.0
SEED = 7


# -----------------------------------------------------------------------------
# Common Fixtures
# -----------------------------------------------------------------------------

@pytest.fixture
def recorder():
    """Diagnostic channel that records events instead of warning."""
    ch = DiagnosticChannel()
    ch.events = []
    ch.subscribe(ch.events.append)
    return ch


@pytest.fixture
def make_sim(recorder):
    """Factory for seeded simulations sharing the recording channel."""
    def _make(**kwargs):
        kwargs.setdefault("seed", SEED)
        kwargs.setdefault("diagnostics", recorder)
        return KiteSimulation(**kwargs)
    return _make


# -----------------------------------------------------------------------------
# Helper Functions
# -----------------------------------------------------------------------------

def _run_frames(sim, n, frame_dt=FRAME_DT, record=None):
    """Advance ``n`` host frames, collecting ``record(sim)`` after each."""
    out = []
    for _ in range(n):
        sim.update(frame_dt)
        if record is not None:
            out.append(record(sim))
    return out


@pytest.fixture
def run_frames():
    return _run_frames
