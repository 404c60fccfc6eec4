"""Tests for the fixed 8-neighbor stencil tables."""

import warnings
from pathlib import Path

import numpy as np
import pytest

from topoindex import stencil
from topoindex.errors import InvariantViolation
from topoindex.stencil import (
    IS_DIAGONAL,
    NEIGHBOR_COUNT,
    NEIGHBOR_OFFSETS,
    contour_weights,
    diagonal_length,
    flat_tanbeta,
    slope_distances,
    validate_stencil,
)


class TestStencilTables:
    def test_eight_slots(self):
        assert NEIGHBOR_COUNT == 8
        assert NEIGHBOR_OFFSETS.shape == (8, 2)

    def test_slot_order(self):
        """Slot 0 is the lower-left neighbor (next row, previous column), slot 7 the left one."""
        expected = [(-1, 1), (0, 1), (1, 1), (1, 0), (1, -1), (0, -1), (-1, -1), (-1, 0)]
        assert [tuple(o) for o in NEIGHBOR_OFFSETS] == expected

    def test_positive_dy_is_next_row(self):
        """Offsets index the [y, x] array directly, so dy = +1 moves down one row."""
        grid = np.arange(9).reshape(3, 3)
        dx, dy = NEIGHBOR_OFFSETS[1]

        assert grid[1 + dy, 1 + dx] == grid[2, 1]

    def test_module_source_compiles_without_warnings(self):
        """The ASCII diagram in the module docstring holds no invalid escapes."""
        source = Path(stencil.__file__).read_text(encoding="utf-8")

        with warnings.catch_warnings():
            warnings.simplefilter("error")
            compile(source, stencil.__file__, "exec")

    def test_even_slots_are_diagonal(self):
        assert list(np.flatnonzero(IS_DIAGONAL)) == [0, 2, 4, 6]

    def test_builtin_table_is_valid(self):
        validate_stencil()


class TestStencilGeometry:
    def test_diagonal_length(self):
        assert diagonal_length(10.0) == pytest.approx(np.sqrt(200.0))

    def test_contour_weights_total_four_cell_sizes(self):
        """4 * 0.4 + 4 * 0.6 = 4 cell sizes of contour around a cell."""
        weights = contour_weights(10.0)

        assert weights[0] == pytest.approx(4.0)
        assert weights[1] == pytest.approx(6.0)
        assert weights.sum() == pytest.approx(40.0)

    def test_slope_distances(self):
        distances = slope_distances(10.0)

        assert distances[1] == pytest.approx(10.0)
        assert distances[2] == pytest.approx(np.sqrt(200.0))

    def test_flat_tanbeta_closed_form(self):
        expected = 4 * (0.5 / np.sqrt(200.0)) + 4 * (0.5 / 10.0)
        assert flat_tanbeta(10.0, 1.0) == pytest.approx(expected)
        assert flat_tanbeta(10.0, 1.0) == pytest.approx(0.3414, abs=1e-4)


class TestValidateStencil:
    def test_wrong_slot_count(self):
        with pytest.raises(InvariantViolation, match="8 slots"):
            validate_stencil(NEIGHBOR_OFFSETS[:4], IS_DIAGONAL[:4])

    def test_duplicate_offsets(self):
        offsets = NEIGHBOR_OFFSETS.copy()
        offsets[1] = offsets[3]
        with pytest.raises(InvariantViolation, match="unique"):
            validate_stencil(offsets, IS_DIAGONAL)

    def test_swapped_diagonal_flags(self):
        flags = ~IS_DIAGONAL
        with pytest.raises(InvariantViolation, match="diagonal flag"):
            validate_stencil(NEIGHBOR_OFFSETS, flags)

    def test_non_adjacent_offset(self):
        offsets = NEIGHBOR_OFFSETS.copy()
        offsets[3] = (2, 0)
        with pytest.raises(InvariantViolation, match="not adjacent"):
            validate_stencil(offsets, IS_DIAGONAL)

    def test_rotated_table_breaks_layout(self):
        """Starting the table on an orthogonal slot moves diagonals to odd slots."""
        offsets = np.roll(NEIGHBOR_OFFSETS, 1, axis=0)
        flags = np.roll(IS_DIAGONAL, 1)
        with pytest.raises(InvariantViolation, match="even-diagonal"):
            validate_stencil(offsets, flags)
