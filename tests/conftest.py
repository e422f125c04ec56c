import os
import sys

import pytest

# Get the path to the project root (one level up from 'tests')
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
src_path = os.path.join(project_root, 'src')

# Add 'src' to sys.path
sys.path.insert(0, src_path)

from kitesim.core.events import DiagnosticChannel  # noqa: E402


@pytest.fixture
def channel():
    """Diagnostic channel that records events instead of warning."""
    ch = DiagnosticChannel()
    ch.events = []
    ch.subscribe(ch.events.append)
    return ch
