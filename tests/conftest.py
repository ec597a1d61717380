"""Pytest configuration and fixtures for field_geometry tests."""

import numpy as np
import pytest

from field_geometry.grid import ScalarGrid


@pytest.fixture
def bump_grid():
    """21x21 Gaussian bump (peak 10) on a 1-degree lon/lat grid centred on (0, 0)."""
    lons = np.linspace(-10.0, 10.0, 21)
    lats = np.linspace(-10.0, 10.0, 21)
    xx, yy = np.meshgrid(lons, lats)
    values = 10.0 * np.exp(-(xx ** 2 + yy ** 2) / 20.0)
    return ScalarGrid(values, lons, lats)


@pytest.fixture
def plane_grid():
    """Linear field 2*x + 0.5*y on an integer lon/lat grid (coordinates equal indices)."""
    x = np.arange(8, dtype=np.float64)
    y = np.arange(6, dtype=np.float64)
    values = 2.0 * x[None, :] + 0.5 * y[:, None]
    return ScalarGrid(values, x, y)


@pytest.fixture
def constant_grid():
    """6x5 grid holding the value 5 everywhere."""
    return ScalarGrid(np.full((5, 6), 5.0), np.arange(6.0), np.arange(5.0))


@pytest.fixture
def grid_5x5():
    """5x5 grid over [-2, 2] degrees, used for thinning tests."""
    coords = np.linspace(-2.0, 2.0, 5)
    values = np.arange(25, dtype=np.float64).reshape(5, 5)
    return ScalarGrid(values, coords, coords)


@pytest.fixture
def polar_grid():
    """11x11 grid reaching the south pole (lats -90..-80), values equal to longitude."""
    lons = np.linspace(0.0, 10.0, 11)
    lats = np.linspace(-90.0, -80.0, 11)
    values = np.broadcast_to(lons[None, :], (11, 11))
    return ScalarGrid(values, lons, lats)
