"""Pytest configuration and fixtures for topoindex tests."""
import sys
from pathlib import Path

# Add src directory to Python path for imports
src_root = Path(__file__).parent.parent / "src"
if str(src_root) not in sys.path:
    sys.path.insert(0, str(src_root))

import pytest
import numpy as np

from topoindex.grid import FineGrid


@pytest.fixture
def flat_grid():
    """3x3 basin at uniform elevation 10 with 10 m cells."""
    elevation = np.full((3, 3), 10.0)
    return FineGrid.from_arrays(elevation, cell_size=10.0)


@pytest.fixture
def step_grid():
    """1x2 row stepping down from 20 (left) to 10 (right)."""
    elevation = np.array([[20.0, 10.0]])
    return FineGrid.from_arrays(elevation, cell_size=10.0)


@pytest.fixture
def tilted_grid():
    """7x7 plane descending one unit per column toward the east."""
    x = np.arange(7, dtype=np.float64)
    elevation = np.tile(100.0 - x, (7, 1))
    return FineGrid.from_arrays(elevation, cell_size=10.0)


@pytest.fixture
def cone_grid():
    """21x21 cone peaking in the center, with a circular basin mask."""
    size = 21
    center = size // 2
    yy, xx = np.mgrid[0:size, 0:size]
    dist = np.sqrt((yy - center) ** 2 + (xx - center) ** 2)
    elevation = 200.0 - 5.0 * dist
    mask = dist <= 9.5
    return FineGrid.from_arrays(elevation, mask=mask, cell_size=30.0)


@pytest.fixture
def valley_grid():
    """30x30 V-shaped valley draining toward the bottom rows."""
    rows, cols = 30, 30
    dem = np.zeros((rows, cols), dtype=np.float64)
    center = cols // 2
    for i in range(rows):
        for j in range(cols):
            dem[i, j] = 100.0 + abs(j - center) * 2.0 - i * 1.0
    return FineGrid.from_arrays(dem, cell_size=10.0)
