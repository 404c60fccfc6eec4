r"""
Fixed 8-neighbor stencil for multiple flow direction routing.

Offsets are (dx, dy) relative to the cell of interest, where x is the array
column and y is the array row. Row 0 is the top of a north-up grid, so
dy = +1 is the row below. Drawn with row 0 at the top, the slots are:

      6-----5-----4      row y - 1
      |\    |    /|
      |  \  |  /  |
      7-----*-----3      row y
      |  /  |  \  |
      |/    |    \|
      0-----1-----2      row y + 1

Even slots (0, 2, 4, 6) are diagonal neighbors, odd slots (1, 3, 5, 7) are
orthogonal neighbors. Contour weighting depends on slot position.
"""

import numpy as np

from .config import DIAGONAL_CONTOUR_FRACTION, ORTHOGONAL_CONTOUR_FRACTION
from .errors import InvariantViolation

# (dx, dy) offsets for slots 0..7
NEIGHBOR_OFFSETS = np.array([
    (-1, 1),   # 0: diagonal
    (0, 1),    # 1: orthogonal
    (1, 1),    # 2: diagonal
    (1, 0),    # 3: orthogonal
    (1, -1),   # 4: diagonal
    (0, -1),   # 5: orthogonal
    (-1, -1),  # 6: diagonal
    (-1, 0),   # 7: orthogonal
], dtype=np.int64)

IS_DIAGONAL = np.array([True, False, True, False, True, False, True, False])

NEIGHBOR_COUNT = len(NEIGHBOR_OFFSETS)


def diagonal_length(cell_size: float) -> float:
    """Distance between centers of diagonally adjacent square cells."""
    return float(np.sqrt(cell_size ** 2 + cell_size ** 2))


def contour_weights(cell_size: float) -> np.ndarray:
    """
    Contour length assigned to each stencil slot.

    Parameters
    ----------
    cell_size : float
        Grid spacing (square cells)

    Returns
    -------
    np.ndarray
        Length-8 array, ``0.4 * cell_size`` for diagonals and
        ``0.6 * cell_size`` for orthogonal neighbors
    """
    return np.where(
        IS_DIAGONAL,
        DIAGONAL_CONTOUR_FRACTION * cell_size,
        ORTHOGONAL_CONTOUR_FRACTION * cell_size,
    ).astype(np.float64)


def slope_distances(cell_size: float) -> np.ndarray:
    """Center-to-center distance to each stencil slot."""
    return np.where(IS_DIAGONAL, diagonal_length(cell_size), float(cell_size)).astype(np.float64)


def flat_tanbeta(cell_size: float, vertical_resolution: float) -> float:
    """
    Fallback tanbeta for a cell with no strictly lower neighbor.

    Sum over the stencil of half the vertical resolution divided by the
    horizontal distance to each neighbor, split evenly between diagonal and
    orthogonal slots regardless of which neighbors actually exist.
    """
    half = NEIGHBOR_COUNT // 2
    return (half * ((0.5 * vertical_resolution) / diagonal_length(cell_size))
            + half * ((0.5 * vertical_resolution) / cell_size))


def validate_stencil(offsets: np.ndarray = NEIGHBOR_OFFSETS,
                     is_diagonal: np.ndarray = IS_DIAGONAL) -> None:
    """
    Check that a stencil table has the fixed 8-slot layout the sweep expects.

    Raises
    ------
    InvariantViolation
        If the table does not have 8 unique unit offsets with diagonals on the
        even slots
    """
    if offsets.shape != (8, 2) or is_diagonal.shape != (8,):
        raise InvariantViolation(
            f"Stencil table must have 8 slots, got offsets {offsets.shape} "
            f"and diagonal flags {is_diagonal.shape}"
        )
    if len({(int(dx), int(dy)) for dx, dy in offsets}) != 8:
        raise InvariantViolation("Stencil offsets must be unique")
    for n, (dx, dy) in enumerate(offsets):
        if max(abs(dx), abs(dy)) != 1:
            raise InvariantViolation(f"Stencil slot {n} offset ({dx}, {dy}) is not adjacent")
        if bool(is_diagonal[n]) != (dx != 0 and dy != 0):
            raise InvariantViolation(f"Stencil slot {n} diagonal flag does not match its offset")
        if bool(is_diagonal[n]) != (n % 2 == 0):
            raise InvariantViolation(f"Stencil slot {n} breaks the even-diagonal layout")
