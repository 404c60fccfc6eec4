"""Tests for FineGrid construction and processing order helpers."""

import numpy as np
import pytest

from topoindex.grid import FineGrid, descending_elevation_order, order_for_grid


class TestFineGrid:
    def test_from_arrays_defaults_mask_to_finite_cells(self):
        elevation = np.array([[1.0, np.nan], [3.0, 4.0]])

        grid = FineGrid.from_arrays(elevation, cell_size=5.0)

        np.testing.assert_array_equal(grid.mask, [[True, False], [True, True]])
        assert grid.n_cells == 3
        assert grid.cell_area == 25.0

    def test_dimensions(self, valley_grid):
        assert valley_grid.shape == (30, 30)
        assert valley_grid.nx == 30
        assert valley_grid.ny == 30

    def test_integer_mask_converted_to_bool(self):
        grid = FineGrid.from_arrays(np.ones((2, 2)), mask=np.array([[1, 0], [0, 1]]))

        assert grid.mask.dtype == bool
        assert grid.n_cells == 2

    def test_mask_shape_mismatch(self):
        with pytest.raises(ValueError, match="does not match"):
            FineGrid(elevation=np.ones((2, 2)), mask=np.ones((3, 3), dtype=bool), cell_size=1.0)

    def test_non_2d_elevation(self):
        with pytest.raises(ValueError, match="2-D"):
            FineGrid(elevation=np.ones(4), mask=np.ones(4, dtype=bool), cell_size=1.0)

    def test_cell_size_must_be_positive(self):
        with pytest.raises(ValueError, match="cell_size"):
            FineGrid.from_arrays(np.ones((2, 2)), cell_size=0.0)

    def test_nan_inside_basin_rejected(self):
        elevation = np.array([[1.0, np.nan]])
        with pytest.raises(ValueError, match="finite"):
            FineGrid(elevation=elevation, mask=np.ones((1, 2), dtype=bool), cell_size=1.0)

    def test_contains(self, cone_grid):
        assert cone_grid.contains(10, 10)
        assert not cone_grid.contains(0, 0)
        assert not cone_grid.contains(-1, 10)
        assert not cone_grid.contains(10, 21)


class TestDescendingElevationOrder:
    def test_order_is_descending(self, valley_grid):
        order = order_for_grid(valley_grid)

        elevations = valley_grid.elevation[order[:, 1], order[:, 0]]
        assert np.all(np.diff(elevations) <= 0)

    def test_order_covers_basin_only(self, cone_grid):
        order = order_for_grid(cone_grid)

        assert order.shape == (cone_grid.n_cells, 2)
        assert np.all(cone_grid.mask[order[:, 1], order[:, 0]])

    def test_pairs_are_x_then_y(self):
        elevation = np.array([[1.0, 2.0], [3.0, 9.0]])

        order = descending_elevation_order(elevation, np.ones((2, 2), dtype=bool))

        # Highest cell is row 1, column 1; next is row 1, column 0
        assert tuple(order[0]) == (1, 1)
        assert tuple(order[1]) == (0, 1)

    def test_ties_keep_row_major_order(self):
        elevation = np.full((2, 2), 5.0)

        order = descending_elevation_order(elevation, np.ones((2, 2), dtype=bool))

        assert [tuple(p) for p in order] == [(0, 0), (1, 0), (0, 1), (1, 1)]

    def test_empty_mask(self):
        order = descending_elevation_order(np.ones((3, 3)), np.zeros((3, 3), dtype=bool))

        assert order.shape == (0, 2)
