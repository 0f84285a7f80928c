"""Pytest configuration and fixtures for stable fluids tests."""

import sys
from pathlib import Path

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


@pytest.fixture(params=["serial", "parallel"])
def backend(request):
    """Each execution backend in turn."""
    from stablefluids.backends import create_backend

    return create_backend(request.param)


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def small_grid_params():
    """Parameters for the 4x4 end-to-end scenarios."""
    return {
        "n": 4,
        "dt": 1.0,
        "diff": 0.0,
        "visc": 0.0,
        "iterations": 20,
    }


@pytest.fixture
def medium_grid_params():
    """Parameters for a 16x16 grid with diffusion and viscosity."""
    return {
        "n": 16,
        "dt": 0.1,
        "diff": 1e-4,
        "visc": 1e-4,
        "force": 5.0,
        "source": 100.0,
    }
