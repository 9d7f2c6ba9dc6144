"""
Pytest configuration and shared fixtures.
"""

import os
import sys

import pytest

# Add project root to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from paper_drum.config import DrumConfig, TriggerParams, Zone


@pytest.fixture
def zone_a():
    """Single pad used by the trigger scenarios."""
    return Zone("A", 100, 100, 30)


@pytest.fixture
def params():
    """Reference trigger constants."""
    return TriggerParams(v_hit=220, v_arm=120, min_retrigger_ms=100)


@pytest.fixture
def reference_config():
    """Six-pad reference layout on a 384x288 sheet."""
    return DrumConfig.default()
