"""
Fine-resolution terrain grid and processing order helpers.

The grid is stored as dense numpy arrays indexed ``[y, x]`` (row, column).
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional, Tuple

import numpy as np

logger = logging.getLogger(__name__)


@dataclass
class FineGrid:
    """Elevation, basin mask and geometry of the fine terrain grid."""

    elevation: np.ndarray
    """Elevation per cell, shape (ny, nx)."""

    mask: np.ndarray
    """True for cells inside the basin."""

    cell_size: float
    """Cell size (dx == dy)."""

    x_origin: float = 0.0
    """X coordinate of the upper-left corner."""

    y_origin: float = 0.0
    """Y coordinate of the upper-left corner."""

    crs: Optional[Any] = None
    """Coordinate reference system of the source raster, if known."""

    topo_index: Optional[np.ndarray] = None
    """Topographic index written back by compute_topo_index (NaN where unprocessed)."""

    def __post_init__(self):
        self.elevation = np.asarray(self.elevation, dtype=np.float64)
        self.mask = np.asarray(self.mask)

        if self.elevation.ndim != 2:
            raise ValueError(f"elevation must be 2-D, got shape {self.elevation.shape}")
        if self.mask.shape != self.elevation.shape:
            raise ValueError(
                f"mask shape {self.mask.shape} does not match elevation shape {self.elevation.shape}"
            )
        if self.mask.dtype != np.bool_:
            self.mask = self.mask.astype(bool)
        if not self.cell_size > 0:
            raise ValueError(f"cell_size must be positive, got {self.cell_size}")
        if not np.all(np.isfinite(self.elevation[self.mask])):
            raise ValueError("elevation must be finite for every cell inside the basin")

    @classmethod
    def from_arrays(cls, elevation, mask=None, cell_size: float = 1.0,
                    x_origin: float = 0.0, y_origin: float = 0.0, crs=None) -> "FineGrid":
        """
        Build a grid from raw arrays.

        Args:
            elevation: 2-D elevation array
            mask: Basin mask; defaults to every finite elevation cell
            cell_size: Cell size in map units
            x_origin: X coordinate of the upper-left corner
            y_origin: Y coordinate of the upper-left corner
            crs: Coordinate reference system, if known

        Returns:
            FineGrid instance
        """
        elevation = np.asarray(elevation, dtype=np.float64)
        if mask is None:
            mask = np.isfinite(elevation)
        return cls(elevation=elevation, mask=mask, cell_size=float(cell_size),
                   x_origin=x_origin, y_origin=y_origin, crs=crs)

    @property
    def shape(self) -> Tuple[int, int]:
        return self.elevation.shape

    @property
    def ny(self) -> int:
        return self.elevation.shape[0]

    @property
    def nx(self) -> int:
        return self.elevation.shape[1]

    @property
    def n_cells(self) -> int:
        """Number of cells inside the basin."""
        return int(np.count_nonzero(self.mask))

    @property
    def cell_area(self) -> float:
        return self.cell_size * self.cell_size

    def contains(self, x: int, y: int) -> bool:
        """True if (x, y) lies on the grid and inside the basin."""
        return 0 <= x < self.nx and 0 <= y < self.ny and bool(self.mask[y, x])


def descending_elevation_order(elevation: np.ndarray, mask: np.ndarray) -> np.ndarray:
    """
    Order basin cells from highest to lowest elevation.

    Ties keep row-major order (stable sort), so the same grid always yields the
    same sequence.

    Parameters
    ----------
    elevation : np.ndarray
        Elevation grid, shape (ny, nx)
    mask : np.ndarray (bool)
        Basin mask, True inside the basin

    Returns
    -------
    np.ndarray
        Integer array of shape (N, 2) holding ``(x, y)`` pairs
    """
    elevation = np.asarray(elevation)
    mask = np.asarray(mask, dtype=bool)
    ys, xs = np.nonzero(mask)
    order = np.argsort(-elevation[ys, xs], kind="stable")

    logger.debug(f"Ordered {len(order):,} basin cells by descending elevation")
    return np.column_stack([xs[order], ys[order]]).astype(np.int64)


def order_for_grid(grid: FineGrid) -> np.ndarray:
    """Descending elevation order for every basin cell of ``grid``."""
    return descending_elevation_order(grid.elevation, grid.mask)
